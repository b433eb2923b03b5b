from dataclasses import dataclass, field, asdict
from datetime import datetime

from utmbuilder.utils.constants import FIELD_KEYS


# Transient map of UTM field key -> value (keys restricted to FIELD_KEYS)
type FieldValueSet = dict[str, str]


@dataclass(frozen=True)
class UTMMetadataData:
    """Data carried by an upsert: the base URL plus the five UTM values.

    Attributes:
        original_url (str):
            Destination URL with every UTM parameter removed.
        utm_source, utm_medium, utm_campaign, utm_term, utm_content (str):
            Sanitized UTM values. Empty string means "not set".

    Example:
        >>> data = UTMMetadataData(original_url='https://example.com', utm_source='newsletter')
        >>> data.is_empty()
        False
        >>> data.fields()['utm_medium']
        ''
    """

    original_url: str = ''
    utm_source: str = ''
    utm_medium: str = ''
    utm_campaign: str = ''
    utm_term: str = ''
    utm_content: str = ''

    def fields(self) -> FieldValueSet:
        return {key: getattr(self, key) for key in FIELD_KEYS}

    def is_empty(self) -> bool:
        return not self.original_url and not any(self.fields().values())

    def to_dict(self) -> dict[str, str]:
        return asdict(self)

    @classmethod
    def from_fields(cls, original_url: str, values: FieldValueSet) -> 'UTMMetadataData':
        unknown = set(values) - set(FIELD_KEYS)
        if unknown:
            raise KeyError(f'Unknown UTM field(s): {", ".join(sorted(unknown))}')
        return cls(original_url=original_url, **{key: values.get(key, '') for key in FIELD_KEYS})


# fmt: off
@dataclass(frozen=True)
class UTMMetadataModel:
    identifier: str                          # Short-link keyword owning this record
    data: UTMMetadataData = field(default_factory=UTMMetadataData)
    created_at: datetime | None = None       # First successful write
    updated_at: datetime | None = None       # Last write or rename
# fmt: on

    @property
    def original_url(self) -> str:
        return self.data.original_url

    def fields(self) -> FieldValueSet:
        return self.data.fields()
