"""URL Param Codec: read, strip and merge UTM query parameters

All functions operate on the raw query string so parameters that are not
touched keep their original spelling, encoding and order. Scheme, authority,
path and fragment are carried over verbatim.

Functions:
    parse_absolute_url(url) -> SplitResult | None
        Split a URL, or None if it is not an absolute URL.
    extract_fields(url) -> FieldValueSet
        Collect the five known UTM parameters present in a URL.
    strip_fields(url) -> str
        Remove the five known UTM parameters from a URL.
    strip_utm_params(url) -> str
        Remove every parameter whose name starts with "utm_" (any case).
    merge_fields(url, fields) -> str | None
        Set non-blank fields and delete blank ones; None if the URL is invalid.

Example:
    >>> merge_fields('https://example.com/page?ref=1', {'utm_source': 'newsletter', 'utm_medium': 'email'})
    'https://example.com/page?ref=1&utm_source=newsletter&utm_medium=email'
    >>> strip_fields('https://example.com/?utm_source=x&ref=1#top')
    'https://example.com/?ref=1#top'
    >>> extract_fields('https://example.com/?utm_term=&utm_source=a%20b')
    {'utm_source': 'a b', 'utm_term': ''}
    >>> merge_fields('not a url', {'utm_source': 'x'}) is None
    True
"""

import re
from collections.abc import Callable, Mapping
from urllib.parse import SplitResult, quote_plus, unquote_plus, urlsplit, urlunsplit

from utmbuilder.models import FieldValueSet
from utmbuilder.utils.constants import FIELD_KEYS


_SCHEME_PATTERN = re.compile(r'^[A-Za-z][A-Za-z0-9+.\-]*$')


def parse_absolute_url(url: str | None) -> SplitResult | None:
    """Split `url` into components, or return None if it isn't an absolute URL

    An absolute URL needs a valid scheme and a non-empty authority
    (e.g. "https://example.com"). Surrounding whitespace is ignored.
    """
    if not url or not isinstance(url, str):
        return None
    try:
        parts = urlsplit(url.strip())
        # Accessing .port validates the authority (raises ValueError on garbage)
        parts.port  # noqa: B018
    except ValueError:
        return None
    if not _SCHEME_PATTERN.match(parts.scheme) or not parts.netloc:
        return None
    return parts


def _split_query(query: str) -> list[tuple[str, str]]:
    """Split a raw query string into (decoded name, raw segment) pairs."""
    pairs = []
    for segment in query.split('&'):
        if not segment:
            continue
        name = segment.split('=', 1)[0]
        pairs.append((unquote_plus(name), segment))
    return pairs


def _decode_value(segment: str) -> str:
    _, _, value = segment.partition('=')
    return unquote_plus(value)


def _rebuild(parts: SplitResult, segments: list[str]) -> str:
    return urlunsplit(parts._replace(query='&'.join(segments)))


def _drop_params(url: str, should_drop: Callable[[str], bool]) -> str:
    parts = parse_absolute_url(url)
    if parts is None:
        return url
    kept = [segment for name, segment in _split_query(parts.query) if not should_drop(name)]
    return _rebuild(parts, kept)


def extract_fields(url: str | None) -> FieldValueSet:
    """Return the known UTM parameters present in `url`

    Absent keys are omitted, present-but-empty keys map to ''. When a key
    repeats, the first occurrence wins. Returns {} for unparseable URLs.
    """
    parts = parse_absolute_url(url)
    if parts is None:
        return {}

    found: FieldValueSet = {}
    for name, segment in _split_query(parts.query):
        if name in FIELD_KEYS and name not in found:
            found[name] = _decode_value(segment)
    return {key: found[key] for key in FIELD_KEYS if key in found}


def strip_fields(url: str) -> str:
    """Remove the five known UTM parameters; unparseable input is returned unchanged."""
    return _drop_params(url, lambda name: name in FIELD_KEYS)


def strip_utm_params(url: str) -> str:
    """Remove every "utm_*" parameter (name compared case-insensitively)."""
    return _drop_params(url, lambda name: name.lower().startswith('utm_'))


def merge_fields(url: str, fields: Mapping[str, str | None]) -> str | None:
    """Merge a field set into `url`

    For every key in `fields`:
        - non-blank value (after trimming): replace the first occurrence in place
          (dropping duplicates) or append it at the end;
        - blank value: delete every occurrence.
    Parameters not named in `fields` are preserved as-is.

    Returns:
        str | None:
            The merged URL, or None if `url` is not a parseable absolute URL.
            Callers report None as a validation error.
    """
    parts = parse_absolute_url(url)
    if parts is None:
        return None

    pairs = _split_query(parts.query)
    for key, raw_value in fields.items():
        value = (raw_value or '').strip()
        replacement = f'{quote_plus(key)}={quote_plus(value)}' if value else None

        merged, placed = [], False
        for name, segment in pairs:
            if name != key:
                merged.append((name, segment))
            elif replacement is not None and not placed:
                merged.append((key, replacement))
                placed = True
        if replacement is not None and not placed:
            merged.append((key, replacement))
        pairs = merged

    return _rebuild(parts, [segment for _, segment in pairs])
