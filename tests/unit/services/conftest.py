from datetime import datetime, UTC
from unittest.mock import MagicMock

import pytest

from utmbuilder.models import MetadataSettings, UTMMetadataData, UTMMetadataModel
from utmbuilder.dao.base import UTMMetadataBaseDAO
from utmbuilder.dao.exceptions import MetadataNotFoundError
from utmbuilder.services import MetadataStore


class InMemoryMetadataDAO(UTMMetadataBaseDAO):
    """Dictionary-backed DAO with the same contract as UTMMetadataRedisDAO."""

    def __init__(self):
        self.records: dict[str, UTMMetadataModel] = {}

    def ensure_schema(self, **kwargs) -> bool:
        return False

    def upsert(self, identifier, data, **kwargs):
        now = datetime.now(UTC)
        existing = self.records.get(identifier)
        created_at = existing.created_at if existing is not None else now
        self.records[identifier] = UTMMetadataModel(identifier=identifier, data=data, created_at=created_at, updated_at=now)
        return self

    def delete(self, identifier, **kwargs) -> bool:
        return self.records.pop(identifier, None) is not None

    def move(self, source, target, **kwargs) -> bool:
        if source == target or source not in self.records:
            return False
        record = self.records.pop(source)
        self.records[target] = UTMMetadataModel(
            identifier=target,
            data=record.data,
            created_at=record.created_at,
            updated_at=datetime.now(UTC),
        )
        return True

    def get(self, identifier, **kwargs) -> UTMMetadataModel:
        if identifier not in self.records:
            raise MetadataNotFoundError(f"No UTM metadata for '{identifier}'.")
        return self.records[identifier]

    def distinct_values(self, field_key, search, limit, **kwargs) -> list[str]:
        values = {getattr(record.data, field_key) for record in self.records.values()}
        return sorted(value for value in values if value.strip() and search in value)[:limit]


@pytest.fixture
def memory_dao() -> InMemoryMetadataDAO:
    return InMemoryMetadataDAO()


@pytest.fixture
def store(memory_dao) -> MetadataStore:
    return MetadataStore(dao=memory_dao, settings=MetadataSettings())


@pytest.fixture
def mock_dao() -> UTMMetadataBaseDAO:
    return MagicMock(spec=UTMMetadataBaseDAO)


@pytest.fixture
def campaign_data() -> UTMMetadataData:
    return UTMMetadataData(
        original_url='https://example.com/page?ref=1',
        utm_source='newsletter',
        utm_medium='email',
        utm_campaign='spring',
    )
