from dataclasses import dataclass


@dataclass(frozen=True)
class MetadataSettings:
    """Explicit configuration handed to every metadata-affecting call.

    Attributes:
        enabled (bool):
            Whether metadata capture is active for new writes.
        lowercase_identifiers (bool):
            Host convention for short-link keywords (lowercase or case-preserving).
    """

    enabled: bool = True
    lowercase_identifiers: bool = False
