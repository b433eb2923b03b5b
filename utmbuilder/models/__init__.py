from utmbuilder.models.utm_metadata_model import FieldValueSet, UTMMetadataData, UTMMetadataModel
from utmbuilder.models.settings_model import MetadataSettings


__all__ = [
    'FieldValueSet',
    'UTMMetadataData',
    'UTMMetadataModel',
    'MetadataSettings',
]
