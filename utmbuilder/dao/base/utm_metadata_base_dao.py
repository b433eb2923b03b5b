"""Abstract base class for UTM metadata data access objects (DAOs).

This class establishes a consistent contract for every metadata store
implementation, regardless of the underlying storage mechanism.

Responsibilities:
    - Keep at most one metadata record per short-link identifier.
    - Upsert, delete, rename (move) and read records.
    - Serve distinct stored values for a UTM field (suggestions).
    - Provision the storage schema on first use.

Example:
    >>> from utmbuilder.models import UTMMetadataData
    >>> from utmbuilder.dao.redis import UTMMetadataRedisDAO

    >>> dao = UTMMetadataRedisDAO(prefix='utmbuilder:dev')
    >>> dao.upsert('abc1', UTMMetadataData(original_url='https://example.com', utm_source='newsletter'))
    <UTMMetadataRedisDAO>
    >>> dao.get('abc1').data.utm_source
    'newsletter'
    >>> dao.move('abc1', 'xyz9')
    <UTMMetadataRedisDAO>
"""

from abc import ABC, abstractmethod

from utmbuilder.models import UTMMetadataData, UTMMetadataModel


class UTMMetadataBaseDAO(ABC):
    """Interface for UTM metadata data access objects (DAOs).

    Identifiers passed to these methods are expected to be sanitized already.

    Methods:
        ensure_schema(**kwargs) -> bool:
            Provision the storage schema unless the version marker is current.
            Returns True if provisioning ran.

        upsert(identifier, data, **kwargs) -> UTMMetadataBaseDAO:
            Insert or fully update the record; created_at is preserved on update.

        delete(identifier, **kwargs) -> bool:
            Remove the record. Returns False if there was none.

        move(source, target, **kwargs) -> bool:
            Rename the record at `source` to `target`, replacing any record at `target`.
            Returns False if there was nothing to move.

        get(identifier, **kwargs) -> UTMMetadataModel:
            Raises MetadataNotFoundError if no record exists.

        distinct_values(field_key, search, limit, **kwargs) -> list[str]:
            Distinct non-empty values of a field containing `search`, sorted ascending.

    All methods raise DataStoreError on connection or read/write failure.
    """

    @abstractmethod
    def ensure_schema(self, **kwargs) -> bool:
        pass

    @abstractmethod
    def upsert(self, identifier: str, data: UTMMetadataData, **kwargs) -> 'UTMMetadataBaseDAO':
        pass

    @abstractmethod
    def delete(self, identifier: str, **kwargs) -> bool:
        pass

    @abstractmethod
    def move(self, source: str, target: str, **kwargs) -> bool:
        pass

    @abstractmethod
    def get(self, identifier: str, **kwargs) -> UTMMetadataModel:
        pass

    @abstractmethod
    def distinct_values(self, field_key: str, search: str, limit: int, **kwargs) -> list[str]:
        pass
