"""Unit tests for the Request Payload Protocol

Test coverage includes:

1. encode_payload() builds the wire fields
2. derive_payload()
   - Absent flag or disabled capture -> skip.
   - False flag -> delete.
   - True flag -> sanitized upsert, or delete when everything is empty.
3. apply_payload()
   - skip/delete/upsert without and with a rename.
   - Invalid identifiers are ignored.
"""

import pytest

from utmbuilder.models import MetadataSettings, UTMMetadataData
from utmbuilder.services import DeletePayload, MetadataStore, SkipPayload, UpsertPayload, apply_payload, derive_payload, encode_payload
from utmbuilder.services.payload import parse_flag


ENABLED = MetadataSettings(enabled=True)
DISABLED = MetadataSettings(enabled=False)


# -------------------------------
# 1. encode_payload()
# -------------------------------


def test_encode_enabled_payload():
    payload = encode_payload(True, ' https://example.com/page?ref=1 ', {'utm_source': ' newsletter ', 'utm_medium': 'email'})

    assert payload == {
        'utm_builder_meta_enabled': '1',
        'utm_builder_original_url': 'https://example.com/page?ref=1',
        'utm_builder_utm_source': 'newsletter',
        'utm_builder_utm_medium': 'email',
        'utm_builder_utm_campaign': '',
        'utm_builder_utm_term': '',
        'utm_builder_utm_content': '',
    }


def test_encode_disabled_payload():
    assert encode_payload(False, 'https://example.com', {'utm_source': 'x'}) == {'utm_builder_meta_enabled': '0'}


@pytest.mark.parametrize('value, expected', [('1', True), ('true', True), (' ON ', True), (True, True), ('0', False), ('', False), (None, False)])
def test_parse_flag(value, expected):
    assert parse_flag(value) is expected


# -------------------------------
# 2. derive_payload()
# -------------------------------


def test_derive_without_flag_is_skip():
    assert derive_payload({'utm_builder_utm_source': 'x'}, ENABLED) == SkipPayload()


def test_derive_with_disabled_capture_is_skip():
    params = encode_payload(True, 'https://example.com', {'utm_source': 'x'})
    assert derive_payload(params, DISABLED) == SkipPayload()


def test_derive_with_false_flag_is_delete():
    assert derive_payload({'utm_builder_meta_enabled': '0'}, ENABLED) == DeletePayload()


def test_derive_upsert_sanitizes_values():
    params = encode_payload(
        True,
        'https://example.com/page?ref=1&UTM_Source=old&utm_id=7',
        {'utm_source': 'news<letter>', 'utm_medium': 'e\nmail', 'utm_campaign': 'x' * 300},
    )

    payload = derive_payload(params, ENABLED)

    assert isinstance(payload, UpsertPayload)
    assert payload.action == 'upsert'
    assert payload.data.original_url == 'https://example.com/page?ref=1'
    assert payload.data.utm_source == 'newsletter'
    assert payload.data.utm_medium == 'e mail'
    assert len(payload.data.utm_campaign) == 255


def test_derive_all_empty_is_delete():
    params = encode_payload(True, '   ', {'utm_source': '  ', 'utm_term': '<>'})
    assert derive_payload(params, ENABLED) == DeletePayload()


def test_derive_with_missing_fields_in_request():
    payload = derive_payload({'utm_builder_meta_enabled': '1', 'utm_builder_utm_source': 'newsletter'}, ENABLED)
    assert payload == UpsertPayload(data=UTMMetadataData(utm_source='newsletter'))


# -------------------------------
# 3. apply_payload()
# -------------------------------


def test_apply_skip_without_rename(mock_dao):
    apply_payload(SkipPayload(), MetadataStore(dao=mock_dao), 'abc1')
    assert mock_dao.mock_calls == []


def test_apply_skip_with_rename_moves(store, memory_dao, campaign_data):
    store.upsert('abc1', campaign_data)

    apply_payload(SkipPayload(), store, 'xyz9', previous_identifier='abc1')

    assert list(memory_dao.records) == ['xyz9']
    assert store.get('xyz9').data == campaign_data


def test_apply_delete(store, memory_dao, campaign_data):
    store.upsert('abc1', campaign_data)
    store.upsert('xyz9', campaign_data)

    apply_payload(DeletePayload(), store, 'xyz9', previous_identifier='abc1')

    assert memory_dao.records == {}


def test_apply_upsert_with_rename_deletes_previous(store, memory_dao, campaign_data):
    store.upsert('abc1', UTMMetadataData(utm_source='old'))

    apply_payload(UpsertPayload(data=campaign_data), store, 'xyz9', previous_identifier='abc1')

    assert list(memory_dao.records) == ['xyz9']
    assert store.get('xyz9').data == campaign_data


def test_apply_upsert_without_rename(store, campaign_data):
    apply_payload(UpsertPayload(data=campaign_data), store, 'abc1', previous_identifier='abc1')
    assert store.get('abc1').data == campaign_data


def test_apply_with_invalid_identifier(mock_dao, campaign_data):
    apply_payload(UpsertPayload(data=campaign_data), MetadataStore(dao=mock_dao), '   ')
    mock_dao.upsert.assert_not_called()


def test_apply_unsupported_payload(store):
    with pytest.raises(TypeError, match='Unsupported request payload'):
        apply_payload({'action': 'skip'}, store, 'abc1')
