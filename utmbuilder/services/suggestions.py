"""Suggestion Source: previously used values for a UTM field

Every query must carry a valid anti-forgery token for the fixed
'utm_builder_autocomplete' action. Results are distinct, non-blank values
containing the search fragment (case-sensitive), sorted ascending and
limited to `limit` clamped to [5, 100].
"""

import logging
from dataclasses import dataclass, field
from typing import Any

from utmbuilder.dao.base import UTMMetadataBaseDAO
from utmbuilder.dao.exceptions import DAOError
from utmbuilder.utils.constants import (
    AUTOCOMPLETE_ACTION,
    AUTOCOMPLETE_CLIENT_LIMIT,
    AUTOCOMPLETE_MAX_LIMIT,
    AUTOCOMPLETE_MIN_LIMIT,
    FIELD_KEYS,
    UTM_VALUE_MAX_LENGTH,
)
from utmbuilder.utils.nonce import require_nonce
from utmbuilder.utils.validation import trim_value


logger = logging.getLogger(__name__)


def clamp_limit(limit: object) -> int:
    """Parse `limit` and clamp it to [AUTOCOMPLETE_MIN_LIMIT, AUTOCOMPLETE_MAX_LIMIT]."""
    try:
        value = int(limit)
    except (TypeError, ValueError):
        value = AUTOCOMPLETE_CLIENT_LIMIT
    return max(AUTOCOMPLETE_MIN_LIMIT, min(AUTOCOMPLETE_MAX_LIMIT, value))


def normalize_field(field_key: object) -> str:
    return trim_value(field_key).lower()


@dataclass(frozen=True)
class SuggestionPage:
    field_key: str
    values: list[str] = field(default_factory=list)
    has_more: bool = False

    def to_response(self) -> dict[str, Any]:
        return {'success': True, 'field': self.field_key, 'values': list(self.values), 'hasMore': self.has_more}


class SuggestionSource:
    """Read-only query layer over the metadata DAO.

    Args:
        dao (UTMMetadataBaseDAO | None):
            Metadata DAO; None means storage is unavailable (always empty).
        secret (str):
            Anti-forgery token signing secret.
        user (str):
            Identity the tokens are bound to.

    Example:
        >>> source = SuggestionSource(dao, secret='s3cr3t', user='admin')
        >>> page = source.suggest('utm_source', 'new', 10, token)
        >>> page.values, page.has_more
        (['news', 'newsletter'], False)
    """

    def __init__(self, dao: UTMMetadataBaseDAO | None, secret: str, user: str = ''):
        self.dao = dao
        self.secret = secret
        self.user = user

    def suggest(self, field_key: str, search: str | None, limit: object, token: str | None) -> SuggestionPage:
        """Return one page of suggestions

        Raises:
            UnauthorizedError:
                If `token` is missing or invalid. No data is returned.
        """
        require_nonce(token, AUTOCOMPLETE_ACTION, self.user, self.secret)

        field_key = normalize_field(field_key)
        if field_key not in FIELD_KEYS:
            logger.info('Rejected suggestion query for unknown field.', extra={'field': field_key})
            return SuggestionPage(field_key=field_key)

        limit = clamp_limit(limit)
        fragment = trim_value(search)[:UTM_VALUE_MAX_LENGTH]
        if self.dao is None:
            return SuggestionPage(field_key=field_key)

        try:
            values = self.dao.distinct_values(field_key, fragment, limit)
        except DAOError:
            logger.warning('Suggestion query failed; returning no values.', exc_info=True, extra={'field': field_key})
            values = []

        return SuggestionPage(field_key=field_key, values=values, has_more=len(values) >= limit)
