"""Request Payload Protocol

The payload travels with every create/update request of a short link and
tells the metadata side what to do:

    SkipPayload            leave metadata untouched (only follow a rename)
    DeletePayload          remove metadata
    UpsertPayload(data)    store `data`

Wire format (form fields, see WireKey):
    utm_builder_meta_enabled   '1' | '0' (absent = skip)
    utm_builder_original_url
    utm_builder_utm_source ... utm_builder_utm_content

Functions:
    encode_payload(enabled, original_url='', values=None) -> dict[str, str]
    derive_payload(params, settings) -> RequestPayload
    apply_payload(payload, store, identifier, previous_identifier=None) -> None

Example:
    >>> params = encode_payload(True, 'https://example.com/page?ref=1', {'utm_source': 'newsletter'})
    >>> derive_payload(params, MetadataSettings(enabled=True))
    UpsertPayload(data=UTMMetadataData(original_url='https://example.com/page?ref=1', utm_source='newsletter', ...))
    >>> derive_payload({}, MetadataSettings(enabled=True))
    SkipPayload()
"""

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, ClassVar

from utmbuilder.models import FieldValueSet, MetadataSettings, UTMMetadataData
from utmbuilder.services.metadata_store import MetadataStore
from utmbuilder.utils.constants import FIELD_KEYS, WireKey
from utmbuilder.utils.urlparams import strip_utm_params
from utmbuilder.utils.validation import sanitize_url, sanitize_utm_value, trim_value


logger = logging.getLogger(__name__)

_TRUTHY = frozenset({'1', 'true', 'yes', 'on'})


@dataclass(frozen=True)
class SkipPayload:
    action: ClassVar[str] = 'skip'


@dataclass(frozen=True)
class DeletePayload:
    action: ClassVar[str] = 'delete'


@dataclass(frozen=True)
class UpsertPayload:
    data: UTMMetadataData
    action: ClassVar[str] = 'upsert'


type RequestPayload = SkipPayload | DeletePayload | UpsertPayload


def parse_flag(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    return trim_value(value).lower() in _TRUTHY


def encode_payload(enabled: bool, original_url: str = '', values: FieldValueSet | None = None) -> dict[str, str]:
    """Build the form fields attached to an outbound create/update request

    A disabled payload carries only the flag ('0'); an enabled payload carries
    the trimmed original URL and all five fields (missing ones as '').
    """
    payload = {WireKey.ENABLED.value: '1' if enabled else '0'}
    if enabled:
        values = values or {}
        payload[WireKey.ORIGINAL_URL.value] = trim_value(original_url)
        for field_key in FIELD_KEYS:
            payload[WireKey.for_field(field_key).value] = trim_value(values.get(field_key))
    return payload


def derive_payload(params: Mapping[str, Any], settings: MetadataSettings) -> RequestPayload:
    """Derive the payload of a request from its raw parameters

    Steps:
        1. flag absent, or capture disabled in `settings` -> SkipPayload
        2. flag present but false                          -> DeletePayload
        3. flag true: sanitize original URL and fields; all empty -> DeletePayload,
           otherwise UpsertPayload
    """
    if WireKey.ENABLED.value not in params or not settings.enabled:
        return SkipPayload()
    if not parse_flag(params[WireKey.ENABLED.value]):
        return DeletePayload()

    original_url = strip_utm_params(sanitize_url(params.get(WireKey.ORIGINAL_URL.value)))
    values = {field_key: sanitize_utm_value(params.get(WireKey.for_field(field_key).value)) for field_key in FIELD_KEYS}
    data = UTMMetadataData.from_fields(original_url, values)
    if data.is_empty():
        return DeletePayload()
    return UpsertPayload(data=data)


def apply_payload(
    payload: RequestPayload,
    store: MetadataStore,
    identifier: object,
    previous_identifier: object | None = None,
) -> None:
    """Apply `payload` to the record of `identifier`

    When `previous_identifier` differs from `identifier` (rename), metadata is
    relocated rather than duplicated or orphaned:

        skip:    move(previous, current)
        delete:  delete(current) and delete(previous)
        upsert:  upsert(current) and delete(previous)
    """
    current = store.normalize(identifier)
    if current is None:
        return
    previous = store.normalize(previous_identifier) if previous_identifier is not None else None
    renamed = previous is not None and previous != current

    logger.debug(
        'Applying metadata payload.',
        extra={'action': getattr(payload, 'action', None), 'identifier': current, 'previous_identifier': previous},
    )
    match payload:
        case SkipPayload():
            if renamed:
                store.move(previous, current)
        case DeletePayload():
            store.delete(current)
            if renamed:
                store.delete(previous)
        case UpsertPayload(data=data):
            store.upsert(current, data)
            if renamed:
                store.delete(previous)
        case _:
            raise TypeError(f'Unsupported request payload: {payload!r}')
