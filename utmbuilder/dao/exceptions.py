"""Exceptions related to Data Access Objects (DAO) operations.

Classes:
    DAOError:
        Generic base class for DAO-related exceptions.

    DataStoreError:
        Raised when the data store is unavailable (connection issues, timeouts, OOM, etc.).
        This is the "storage unavailable" condition of the metadata path.

    SchemaNotProvisionedError:
        Raised when the metadata keys could not be provisioned or the marker is unusable.

    MetadataNotFoundError:
        Raised when no metadata record exists for an identifier.

Example:
    >>> from utmbuilder.dao.exceptions import MetadataNotFoundError
    >>> raise MetadataNotFoundError("No UTM metadata for 'abc1'.")
    Traceback (most recent call last):
        ...
    utmbuilder.dao.exceptions.MetadataNotFoundError: No UTM metadata for 'abc1'.
"""


class DAOError(Exception):
    """Generic base class for DAO-related exceptions."""

    pass


class DataStoreError(DAOError):
    """Exception raised when there is an error in the data store.

    e.g. connection issues, timeouts, OOM, etc.
    """

    pass


class SchemaNotProvisionedError(DataStoreError):
    """Exception raised when the metadata schema is missing and cannot be provisioned."""

    pass


class MetadataNotFoundError(DAOError):
    """Exception raised when a metadata record is not found in the data store."""

    pass
