from utmbuilder.services.metadata_store import MetadataStore
from utmbuilder.services.suggestions import SuggestionPage, SuggestionSource, clamp_limit
from utmbuilder.services.payload import (
    DeletePayload,
    RequestPayload,
    SkipPayload,
    UpsertPayload,
    apply_payload,
    derive_payload,
    encode_payload,
)
from utmbuilder.services.hooks import LinkLifecycleHooks
from utmbuilder.services.settings import load_metadata_settings


__all__ = [
    'MetadataStore',
    'SuggestionPage',
    'SuggestionSource',
    'clamp_limit',
    'DeletePayload',
    'RequestPayload',
    'SkipPayload',
    'UpsertPayload',
    'apply_payload',
    'derive_payload',
    'encode_payload',
    'LinkLifecycleHooks',
    'load_metadata_settings',
]
