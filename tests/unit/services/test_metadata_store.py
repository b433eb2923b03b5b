"""Unit tests for the best-effort MetadataStore facade

Test coverage includes:

1. Record lifecycle
   - upsert then get returns the written data; upserting twice keeps created_at.
   - delete removes the record and is a no-op when absent.
   - move relocates the record and replaces an existing target record.
   - upserting an all-empty record deletes instead.

2. Identifier handling
   - Identifiers are sanitized; invalid identifiers are treated as "nothing to act on".
   - Lowercasing follows MetadataSettings.

3. Failure isolation
   - Storage errors degrade writes to no-ops and reads to "not found".
   - A failing DAO factory leaves the store in degraded mode.
"""

import pytest
from freezegun import freeze_time

from utmbuilder.models import MetadataSettings, UTMMetadataData
from utmbuilder.dao.exceptions import DataStoreError, SchemaNotProvisionedError
from utmbuilder.services import MetadataStore


# -------------------------------
# 1. Record lifecycle
# -------------------------------


def test_upsert_then_get(store, campaign_data):
    assert store.upsert('abc1', campaign_data) is True

    record = store.get('abc1')
    assert record.identifier == 'abc1'
    assert record.data == campaign_data


def test_upsert_twice_keeps_created_at(store, campaign_data):
    with freeze_time('2025-10-15 10:00:00'):
        store.upsert('abc1', campaign_data)
    with freeze_time('2025-10-16 10:00:00'):
        store.upsert('abc1', campaign_data)

    record = store.get('abc1')
    assert record.data == campaign_data
    assert record.created_at.isoformat() == '2025-10-15T10:00:00+00:00'
    assert record.updated_at.isoformat() == '2025-10-16T10:00:00+00:00'


def test_upsert_empty_data_deletes(store, memory_dao, campaign_data):
    store.upsert('abc1', campaign_data)

    store.upsert('abc1', UTMMetadataData())

    assert 'abc1' not in memory_dao.records


def test_delete(store, campaign_data):
    store.upsert('abc1', campaign_data)

    assert store.delete('abc1') is True
    assert store.get('abc1') is None
    assert store.delete('abc1') is False


def test_move_replaces_target(store, memory_dao, campaign_data):
    """move(A, B) leaves exactly one record, at B, with A's data."""
    store.upsert('abc1', campaign_data)
    store.upsert('xyz9', UTMMetadataData(utm_source='other'))

    assert store.move('abc1', 'xyz9') is True

    assert list(memory_dao.records) == ['xyz9']
    assert store.get('xyz9').data == campaign_data


def test_move_noops(mock_dao):
    store = MetadataStore(dao=mock_dao)

    assert store.move('abc1', 'abc1') is False
    assert store.move('abc1', '???') is False
    mock_dao.move.assert_not_called()


def test_move_without_source_record(store, memory_dao):
    assert store.move('abc1', 'xyz9') is False
    assert memory_dao.records == {}


# -------------------------------
# 2. Identifier handling
# -------------------------------


def test_identifiers_are_sanitized(store, memory_dao, campaign_data):
    store.upsert('  abc1/ ', campaign_data)
    assert list(memory_dao.records) == ['abc1']


@pytest.mark.parametrize('identifier', ['', '   ', '%%%', None])
def test_invalid_identifiers_do_nothing(mock_dao, campaign_data, identifier):
    store = MetadataStore(dao=mock_dao)

    assert store.upsert(identifier, campaign_data) is False
    assert store.delete(identifier) is False
    assert store.get(identifier) is None
    mock_dao.upsert.assert_not_called()
    mock_dao.delete.assert_not_called()
    mock_dao.get.assert_not_called()


def test_lowercase_identifiers(memory_dao, campaign_data):
    store = MetadataStore(dao=memory_dao, settings=MetadataSettings(lowercase_identifiers=True))
    store.upsert('AbC1', campaign_data)

    assert list(memory_dao.records) == ['abc1']
    assert store.get('ABC1') is not None


# -------------------------------
# 3. Failure isolation
# -------------------------------


@pytest.mark.parametrize('error', [DataStoreError("Can't connect to Redis."), SchemaNotProvisionedError('no schema')])
def test_storage_errors_degrade(mock_dao, campaign_data, error):
    mock_dao.upsert.side_effect = error
    mock_dao.delete.side_effect = error
    mock_dao.move.side_effect = error
    mock_dao.get.side_effect = error
    store = MetadataStore(dao=mock_dao)

    assert store.upsert('abc1', campaign_data) is False
    assert store.delete('abc1') is False
    assert store.move('abc1', 'xyz9') is False
    assert store.get('abc1') is None


def test_storage_errors_are_logged(mock_dao, campaign_data, caplog):
    mock_dao.upsert.side_effect = DataStoreError("Can't connect to Redis.")

    with caplog.at_level('WARNING'):
        MetadataStore(dao=mock_dao).upsert('abc1', campaign_data)

    assert 'Metadata upsert failed' in caplog.text


def test_failing_dao_factory(campaign_data):
    calls = []

    def factory():
        calls.append(1)
        raise DataStoreError("Can't connect to Redis.")

    store = MetadataStore(dao_factory=factory)

    assert store.upsert('abc1', campaign_data) is False
    assert store.get('abc1') is None
    assert len(calls) == 1  # the factory is only tried once


def test_dao_factory_is_lazy(memory_dao, campaign_data):
    calls = []

    def factory():
        calls.append(1)
        return memory_dao

    store = MetadataStore(dao_factory=factory)
    assert calls == []

    store.upsert('abc1', campaign_data)
    store.get('abc1')
    assert calls == [1]
