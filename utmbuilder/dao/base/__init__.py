from utmbuilder.dao.base.utm_metadata_base_dao import UTMMetadataBaseDAO
from utmbuilder.dao.base.settings_base_dao import SettingsBaseDAO


__all__ = [
    'UTMMetadataBaseDAO',
    'SettingsBaseDAO',
]
