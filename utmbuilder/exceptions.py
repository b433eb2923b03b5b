class UTMBuilderError(Exception):
    """Base exception for all application-specific errors."""

    error_code = 'app:utm_builder_error'


class ValidationError(UTMBuilderError):
    """Raised when the build step rejects user input (missing field, unparseable URL).

    Attributes:
        missing (list[str]):
            Required field keys left blank, in required order.
        field (str | None):
            Key of the input that should receive focus ('url' for the URL input).
    """

    error_code = 'input:validation_error'

    def __init__(self, message: str, missing: list[str] | None = None, field: str | None = None):
        super().__init__(message)
        self.message = message
        self.missing = list(missing or [])
        self.field = field


class UnauthorizedError(UTMBuilderError):
    """Raised when an anti-forgery token is missing or invalid."""

    error_code = 'auth:unauthorized'


class InvalidIdentifierError(UTMBuilderError):
    """Raised when a short-link identifier is empty after sanitization."""

    error_code = 'input:invalid_identifier'


class ConfigurationError(UTMBuilderError):
    """Base exception for all configuration errors."""

    error_code = 'config:configuration_error'


class MissingEnvironmentVariableError(ConfigurationError, KeyError):
    """Raised when a required environment variable is missing."""

    error_code = 'config:missing_environment_variable_error'
