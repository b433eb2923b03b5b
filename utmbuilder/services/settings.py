"""Settings surface: the metadata capture toggle

load_metadata_settings() reads the toggle once per request and returns the
MetadataSettings object that is then passed explicitly to the payload
derivation and the Metadata Store.
"""

import logging

from utmbuilder.dao.base import SettingsBaseDAO
from utmbuilder.dao.exceptions import DAOError
from utmbuilder.models import MetadataSettings


logger = logging.getLogger(__name__)


def load_metadata_settings(dao: SettingsBaseDAO | None, lowercase_identifiers: bool = False) -> MetadataSettings:
    """Read the toggle; unreachable storage reads as the default (enabled)."""
    enabled = True
    if dao is not None:
        try:
            enabled = dao.metadata_enabled()
        except DAOError:
            logger.warning('Could not read the metadata toggle; assuming enabled.', exc_info=True)
    return MetadataSettings(enabled=enabled, lowercase_identifiers=bool(lowercase_identifiers))
