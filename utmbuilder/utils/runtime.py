"""Runtime utilities

Functions:
    running_locally() -> bool:
        True if the handler runs under local SAM or APP_ENV=local, False otherwise.
    get_user_id(event) -> str:
        Cognito 'sub' of the caller, '' for anonymous requests.

Example:
    >>> from utmbuilder.utils.runtime import running_locally
    >>> os.environ['APP_ENV'] = 'local'
    >>> running_locally()
    True
"""

import os

from utmbuilder.types import LambdaEvent
from utmbuilder.utils.constants import ENV


def running_locally() -> bool:
    env = os.getenv(ENV.App.APP_ENV, '').lower()
    return env == 'local' or os.getenv(ENV.App.AWS_SAM_LOCAL) == 'true'


def get_user_id(event: LambdaEvent) -> str:
    """Identity anti-forgery tokens are bound to."""
    claims = (event.get('requestContext') or {}).get('authorizer', {}).get('claims', {})
    return claims.get('sub') or ''
