from enum import StrEnum


class UTMField(StrEnum):
    """Canonical UTM query parameter names, in display order."""

    SOURCE = 'utm_source'
    MEDIUM = 'utm_medium'
    CAMPAIGN = 'utm_campaign'
    TERM = 'utm_term'
    CONTENT = 'utm_content'


# fmt: off
FIELD_LABELS = {
    UTMField.SOURCE: 'Source',
    UTMField.MEDIUM: 'Medium',
    UTMField.CAMPAIGN: 'Campaign',
    UTMField.TERM: 'Term',
    UTMField.CONTENT: 'Content',
}
# fmt: on

FIELD_KEYS = tuple(field.value for field in UTMField)
REQUIRED_KEYS = (UTMField.SOURCE.value, UTMField.MEDIUM.value, UTMField.CAMPAIGN.value)

# Stored UTM values are truncated to this many characters
UTM_VALUE_MAX_LENGTH = 255

# Suggestion Source paging
AUTOCOMPLETE_MIN_LIMIT = 5
AUTOCOMPLETE_MAX_LIMIT = 100
AUTOCOMPLETE_CLIENT_LIMIT = 25
AUTOCOMPLETE_DEBOUNCE_SECONDS = 0.25

# Anti-forgery token actions
AUTOCOMPLETE_ACTION = 'utm_builder_autocomplete'
SETTINGS_ACTION = 'utm_builder_settings'
NONCE_LIFE_SECONDS = 43_200  # 12 hours
NONCE_LENGTH = 10

# Bump to force re-provisioning of the metadata indexes
SCHEMA_VERSION = '1.0.0'

# Help and error messages shown by the builder
HELP_TEXT = 'Source, Medium and Campaign are required. Term and Content are optional.'
TOGGLE_ON_LABEL = 'Hide UTM Builder'
TOGGLE_OFF_LABEL = 'Build UTM?'
MISSING_URL_MESSAGE = 'Enter a destination URL before building UTMs.'
INVALID_URL_MESSAGE = 'The destination URL is invalid. Please check and try again.'
MISSING_FIELDS_MESSAGE = 'Please fill in required UTM fields: {labels}'


class WireKey(StrEnum):
    """Form field names of the request payload attached to create/update requests."""

    ENABLED = 'utm_builder_meta_enabled'
    ORIGINAL_URL = 'utm_builder_original_url'
    SOURCE = 'utm_builder_utm_source'
    MEDIUM = 'utm_builder_utm_medium'
    CAMPAIGN = 'utm_builder_utm_campaign'
    TERM = 'utm_builder_utm_term'
    CONTENT = 'utm_builder_utm_content'

    @classmethod
    def for_field(cls, field_key: str) -> 'WireKey':
        return cls(f'utm_builder_{field_key}')


class ENV:
    """Environment variable names."""

    class App(StrEnum):
        APP_ENV = 'APP_ENV'
        APP_NAME = 'APP_NAME'
        AWS_SAM_LOCAL = 'AWS_SAM_LOCAL'
        LOG_LEVEL = 'LOG_LEVEL'
        CONFIG_FILE = 'UTM_BUILDER_CONFIG_FILE'
        NONCE_SECRET = 'UTM_BUILDER_NONCE_SECRET'  # noqa: S105

    class AppConfig(StrEnum):
        APP_ID = 'APPCONFIG_APP_ID'
        ENV_ID = 'APPCONFIG_ENV_ID'
        PROFILE_ID = 'APPCONFIG_PROFILE_ID'


# Error codes
UNKNOWN_INTERNAL_SERVER_ERROR = 'UNKNOWN_INTERNAL_SERVER_ERROR'
UNAUTHORIZED = 'UNAUTHORIZED'
UNKNOWN_FIELD = 'UNKNOWN_FIELD'
BAD_REQUEST = 'BAD_REQUEST'
