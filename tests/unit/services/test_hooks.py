"""Unit tests for the entity lifecycle hooks

Test coverage includes:

1. Link created
   - Builder payloads are stored; failed creations and plain requests change nothing.

2. Link edited
   - Renames with build mode off relocate metadata (skip + move).
   - Renames with a payload store at the new identifier only.
   - With capture switched off, an edit deletes the edited link's metadata.

3. Link deleted
   - Metadata is removed; deleting again is a no-op.

4. Isolation
   - Metadata failures never propagate to the host.
"""

from utmbuilder.models import MetadataSettings, UTMMetadataData
from utmbuilder.dao.exceptions import DataStoreError
from utmbuilder.services import DeletePayload, LinkLifecycleHooks, MetadataStore, SkipPayload, UpsertPayload, encode_payload


def builder_params(original_url='https://example.com/page?ref=1', **values):
    return {'action': 'add', 'url': 'https://example.com/page?ref=1&utm_source=newsletter', **encode_payload(True, original_url, values)}


# -------------------------------
# 1. Link created
# -------------------------------


def test_link_created_stores_metadata(store):
    hooks = LinkLifecycleHooks(store)

    payload = hooks.on_link_created('abc1', True, builder_params(utm_source='newsletter', utm_medium='email', utm_campaign='spring'))

    assert isinstance(payload, UpsertPayload)
    record = store.get('abc1')
    assert record.original_url == 'https://example.com/page?ref=1'
    assert record.data.utm_campaign == 'spring'


def test_link_created_without_success(store, memory_dao):
    assert LinkLifecycleHooks(store).on_link_created('abc1', False, builder_params(utm_source='x')) is None
    assert memory_dao.records == {}


def test_link_created_without_builder_fields(store, memory_dao):
    assert LinkLifecycleHooks(store).on_link_created('abc1', True, {'url': 'https://example.com'}) == SkipPayload()
    assert memory_dao.records == {}


# -------------------------------
# 2. Link edited
# -------------------------------


def test_link_renamed_with_build_mode_off(store, memory_dao):
    """abc1 -> xyz9 without a payload: no record at abc1, the record now lives at xyz9."""
    data = UTMMetadataData(original_url='https://example.com', utm_source='newsletter')
    store.upsert('abc1', data)

    payload = LinkLifecycleHooks(store).on_link_edited('abc1', 'xyz9', 'success', {'url': 'https://example.com'})

    assert payload == SkipPayload()
    assert store.get('abc1') is None
    assert store.get('xyz9').data == data


def test_link_renamed_without_stored_metadata(store, memory_dao):
    LinkLifecycleHooks(store).on_link_edited('abc1', 'xyz9', 'success', {})
    assert memory_dao.records == {}


def test_link_renamed_with_payload(store, memory_dao):
    store.upsert('abc1', UTMMetadataData(utm_source='old'))

    LinkLifecycleHooks(store).on_link_edited('abc1', 'xyz9', True, builder_params(utm_source='new'))

    assert list(memory_dao.records) == ['xyz9']
    assert store.get('xyz9').data.utm_source == 'new'


def test_link_edited_with_cleared_fields(store, memory_dao):
    store.upsert('abc1', UTMMetadataData(utm_source='old'))

    payload = LinkLifecycleHooks(store).on_link_edited('abc1', 'abc1', 'success', {'utm_builder_meta_enabled': '0'})

    assert payload == DeletePayload()
    assert memory_dao.records == {}


def test_link_edit_failed(store, memory_dao):
    store.upsert('abc1', UTMMetadataData(utm_source='old'))

    assert LinkLifecycleHooks(store).on_link_edited('abc1', 'xyz9', 'fail', {}) is None
    assert list(memory_dao.records) == ['abc1']


def test_link_edited_with_capture_disabled(memory_dao):
    """An edit with capture off deletes the edited link's metadata; other links keep theirs."""
    enabled_store = MetadataStore(dao=memory_dao)
    enabled_store.upsert('abc1', UTMMetadataData(utm_source='old'))
    enabled_store.upsert('def2', UTMMetadataData(utm_source='kept'))
    disabled_store = MetadataStore(dao=memory_dao, settings=MetadataSettings(enabled=False))

    payload = LinkLifecycleHooks(disabled_store).on_link_edited('abc1', 'abc1', 'success', builder_params(utm_source='new'))

    assert payload == DeletePayload()
    assert list(memory_dao.records) == ['def2']


def test_link_created_with_capture_disabled(memory_dao):
    store = MetadataStore(dao=memory_dao, settings=MetadataSettings(enabled=False))

    assert LinkLifecycleHooks(store).on_link_created('abc1', True, builder_params(utm_source='x')) == SkipPayload()
    assert memory_dao.records == {}


# -------------------------------
# 3. Link deleted
# -------------------------------


def test_link_deleted(store, memory_dao):
    store.upsert('abc1', UTMMetadataData(utm_source='newsletter'))
    hooks = LinkLifecycleHooks(store)

    hooks.on_link_deleted('abc1', 3)
    assert memory_dao.records == {}

    hooks.on_link_deleted('abc1', 0)
    assert memory_dao.records == {}


# -------------------------------
# 4. Isolation
# -------------------------------


def test_hooks_never_raise(mock_dao):
    for method in (mock_dao.upsert, mock_dao.delete, mock_dao.move):
        method.side_effect = DataStoreError("Can't connect to Redis.")
    hooks = LinkLifecycleHooks(MetadataStore(dao=mock_dao))

    assert isinstance(hooks.on_link_created('abc1', True, builder_params(utm_source='x')), UpsertPayload)
    assert hooks.on_link_edited('abc1', 'xyz9', 'success', {}) == SkipPayload()
    hooks.on_link_deleted('xyz9', 1)


def test_hooks_with_invalid_identifier(mock_dao):
    hooks = LinkLifecycleHooks(MetadataStore(dao=mock_dao))

    hooks.on_link_created(None, True, builder_params(utm_source='x'))
    hooks.on_link_deleted('', 1)

    mock_dao.upsert.assert_not_called()
    mock_dao.delete.assert_not_called()
