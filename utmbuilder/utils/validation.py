"""Field validation and input sanitizers

Functions:
    trim_value(value) -> str
    find_missing(values, required_keys=REQUIRED_KEYS) -> list[str]
    sanitize_identifier(identifier, lowercase=False) -> str
    sanitize_url(url) -> str
    sanitize_utm_value(value) -> str
"""

import re
import unicodedata
from collections.abc import Iterable, Mapping

from utmbuilder.exceptions import InvalidIdentifierError
from utmbuilder.utils.constants import REQUIRED_KEYS, UTM_VALUE_MAX_LENGTH


_IDENTIFIER_UNSAFE = re.compile(r'[^\w\-]')
_UTM_UNSAFE = re.compile(r'[<>"\'`\\]')
_WHITESPACE_RUN = re.compile(r'\s+')


def trim_value(value: object) -> str:
    """Coerce to string and strip surrounding whitespace (None becomes '')."""
    if value is None:
        return ''
    return str(value).strip()


def find_missing(values: Mapping[str, str | None], required_keys: Iterable[str] = REQUIRED_KEYS) -> list[str]:
    """Return the required keys whose value is blank, in `required_keys` order

    Example:
        >>> find_missing({})
        ['utm_source', 'utm_medium', 'utm_campaign']
        >>> find_missing({'utm_source': 'x', 'utm_medium': '  ', 'utm_campaign': 'z'})
        ['utm_medium']
    """
    return [key for key in required_keys if not trim_value(values.get(key))]


def _strip_control_characters(value: str) -> str:
    return ''.join(char for char in value if unicodedata.category(char)[0] != 'C')


def sanitize_identifier(identifier: object, lowercase: bool = False) -> str:
    """Sanitize a short-link keyword

    Keeps letters and digits (any script, NFC-normalized), '-' and '_';
    other characters are dropped. Case is preserved unless `lowercase` is set
    (host convention).

    Raises:
        InvalidIdentifierError:
            If nothing is left after sanitization.
    """
    cleaned = _IDENTIFIER_UNSAFE.sub('', unicodedata.normalize('NFC', trim_value(identifier)))
    if lowercase:
        cleaned = cleaned.lower()
    if not cleaned:
        raise InvalidIdentifierError(f'Invalid short-link identifier: {identifier!r}')
    return cleaned


def sanitize_url(url: object) -> str:
    """Trim a URL and drop control characters and inner whitespace."""
    return _WHITESPACE_RUN.sub('', _strip_control_characters(trim_value(url)))


def sanitize_utm_value(value: object) -> str:
    """Constrain a UTM value to a single safe phrase

    Control characters and markup-significant characters are removed,
    whitespace runs collapse to one space, and the result is truncated to
    UTM_VALUE_MAX_LENGTH characters.

    Example:
        >>> sanitize_utm_value('  spring\\n<sale>  ')
        'spring sale'
    """
    text = _WHITESPACE_RUN.sub(' ', trim_value(value))
    text = _UTM_UNSAFE.sub('', _strip_control_characters(text))
    return text.strip()[:UTM_VALUE_MAX_LENGTH].strip()
