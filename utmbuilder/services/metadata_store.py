"""Best-effort Metadata Store

Wraps a UTMMetadataBaseDAO so that metadata problems never reach the
short-link create/edit/delete path:

    - identifiers are sanitized; an invalid identifier means "nothing to act on";
    - storage failures (DataStoreError, unprovisioned schema, unreachable Redis)
      are logged and writes degrade to no-ops, reads to "not found";
    - upserting an all-empty record deletes instead (absence means "no metadata").

Example:
    >>> store = MetadataStore(dao=UTMMetadataRedisDAO(prefix='utmbuilder:dev'))
    >>> store.upsert('abc1', UTMMetadataData(original_url='https://example.com'))
    True
    >>> store.move('abc1', 'xyz9')
    True
    >>> store.get('abc1') is None
    True
"""

import logging
from collections.abc import Callable

from utmbuilder.models import MetadataSettings, UTMMetadataData, UTMMetadataModel
from utmbuilder.dao.base import UTMMetadataBaseDAO
from utmbuilder.dao.exceptions import DAOError, MetadataNotFoundError
from utmbuilder.exceptions import InvalidIdentifierError
from utmbuilder.utils.validation import sanitize_identifier


logger = logging.getLogger(__name__)


class MetadataStore:
    """Metadata Store keyed by sanitized short-link identifier.

    Args:
        dao (UTMMetadataBaseDAO | None):
            Ready DAO instance.
        settings (MetadataSettings):
            Explicit configuration for this request.
        dao_factory (Callable[[], UTMMetadataBaseDAO] | None):
            Lazily builds the DAO on first use. Construction failures
            (e.g. Redis unreachable) leave the store in degraded mode.
    """

    def __init__(
        self,
        dao: UTMMetadataBaseDAO | None = None,
        settings: MetadataSettings | None = None,
        dao_factory: Callable[[], UTMMetadataBaseDAO] | None = None,
    ):
        self.settings = settings or MetadataSettings()
        self._dao = dao
        self._dao_factory = dao_factory

    @property
    def dao(self) -> UTMMetadataBaseDAO | None:
        if self._dao is None and self._dao_factory is not None:
            factory, self._dao_factory = self._dao_factory, None
            try:
                self._dao = factory()
            except DAOError:
                logger.warning('Metadata storage unavailable; metadata operations are disabled.', exc_info=True)
        return self._dao

    def normalize(self, identifier: object) -> str | None:
        """Sanitize `identifier`, or None if nothing usable is left."""
        try:
            return sanitize_identifier(identifier, lowercase=self.settings.lowercase_identifiers)
        except InvalidIdentifierError:
            logger.info('Ignoring invalid short-link identifier.', extra={'identifier': repr(identifier)})
            return None

    def _degraded(self, operation: str, identifier: str) -> None:
        logger.warning(
            'Metadata %s failed; continuing without metadata.',
            operation,
            exc_info=True,
            extra={'operation': operation, 'identifier': identifier},
        )

    def upsert(self, identifier: object, data: UTMMetadataData) -> bool:
        """Create or update the record; an empty `data` deletes it instead."""
        key = self.normalize(identifier)
        if key is None or self.dao is None:
            return False
        if data.is_empty():
            return self.delete(key)

        try:
            self.dao.upsert(key, data)
        except DAOError:
            self._degraded('upsert', key)
            return False
        logger.debug('Metadata upserted.', extra={'identifier': key})
        return True

    def delete(self, identifier: object) -> bool:
        """Remove the record if present. Returns True if a record was removed."""
        key = self.normalize(identifier)
        if key is None or self.dao is None:
            return False

        try:
            removed = self.dao.delete(key)
        except DAOError:
            self._degraded('delete', key)
            return False
        logger.debug('Metadata deleted.', extra={'identifier': key, 'removed': removed})
        return removed

    def move(self, source: object, target: object) -> bool:
        """Relocate the record at `source` to `target`, replacing `target`'s record."""
        source_key, target_key = self.normalize(source), self.normalize(target)
        if source_key is None or target_key is None or self.dao is None:
            return False
        if source_key == target_key:
            return False

        try:
            moved = self.dao.move(source_key, target_key)
        except DAOError:
            self._degraded('move', f'{source_key}->{target_key}')
            return False
        logger.debug('Metadata moved.', extra={'source': source_key, 'target': target_key, 'moved': moved})
        return moved

    def get(self, identifier: object) -> UTMMetadataModel | None:
        key = self.normalize(identifier)
        if key is None or self.dao is None:
            return None

        try:
            return self.dao.get(key)
        except MetadataNotFoundError:
            return None
        except DAOError:
            self._degraded('get', key)
            return None
