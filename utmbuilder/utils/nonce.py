"""Anti-forgery tokens bound to an action name

A nonce is a truncated HMAC-SHA256 over the current time tick, the action
name and the user. A tick lasts half of `life` seconds and the previous
tick is still accepted, so a token stays valid between life/2 and life.

Functions:
    nonce_tick(life=NONCE_LIFE_SECONDS, now=None) -> int
    create_nonce(action, user, secret, life=..., now=None) -> str
    verify_nonce(nonce, action, user, secret, life=..., now=None) -> bool
    require_nonce(nonce, action, user, secret) -> None

Example:
    >>> token = create_nonce('utm_builder_autocomplete', 'admin', secret='s3cr3t')
    >>> verify_nonce(token, 'utm_builder_autocomplete', 'admin', secret='s3cr3t')
    True
    >>> verify_nonce(token, 'another_action', 'admin', secret='s3cr3t')
    False
"""

import hashlib
import hmac
import math
import time

from utmbuilder.exceptions import UnauthorizedError
from utmbuilder.utils.constants import NONCE_LENGTH, NONCE_LIFE_SECONDS


def nonce_tick(life: int = NONCE_LIFE_SECONDS, now: float | None = None) -> int:
    now = time.time() if now is None else now
    return math.ceil(now / (life / 2))


def _digest(tick: int, action: str, user: str, secret: str) -> str:
    message = f'{tick}{action}{user}'.encode('utf-8')
    return hmac.new(secret.encode('utf-8'), message, hashlib.sha256).hexdigest()[:NONCE_LENGTH]


def create_nonce(action: str, user: str, secret: str, life: int = NONCE_LIFE_SECONDS, now: float | None = None) -> str:
    if not secret:
        raise ValueError('Nonce secret must be a non-empty string.')
    return _digest(nonce_tick(life, now), action, user, secret)


def verify_nonce(nonce: str | None, action: str, user: str, secret: str, life: int = NONCE_LIFE_SECONDS, now: float | None = None) -> bool:
    if not nonce or not secret or not isinstance(nonce, str):
        return False
    tick = nonce_tick(life, now)
    # Accept the current and the previous tick
    return any(hmac.compare_digest(nonce, _digest(t, action, user, secret)) for t in (tick, tick - 1))


def require_nonce(nonce: str | None, action: str, user: str, secret: str) -> None:
    """Raise UnauthorizedError unless `nonce` is valid for `action` and `user`."""
    if not verify_nonce(nonce, action, user, secret):
        raise UnauthorizedError(f"Invalid or missing anti-forgery token for action '{action}'.")
