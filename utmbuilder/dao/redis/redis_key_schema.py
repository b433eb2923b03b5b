import functools
from collections.abc import Callable


__all__ = ['RedisKeySchema']  # hide internal decorator prefix_key from imports


def prefix_key(func: Callable) -> Callable:
    @functools.wraps(func)
    def wrapper(self, *args, **kwargs) -> str:
        key = func(self, *args, **kwargs)
        return f'{self.prefix}:{key}' if self.prefix is not None else key

    return wrapper


class RedisKeySchema:
    """Provide standardized Redis keys for UTM metadata and settings.

    An optional prefix can be provided to namespace all generated keys.
    It is highly encouraged to set a custom prefix for each app and environment,
    e.g. "utmbuilder:prod" or "utmbuilder:dev".
    """

    def __init__(self, prefix: str | None = None):
        if prefix is not None and not isinstance(prefix, str):
            raise TypeError(f'Prefix must be of type string (given type: {type(prefix)}).')

        self.prefix = prefix

    @prefix_key
    def metadata_key(self, identifier: str) -> str:
        return f'utm:meta:{identifier}'

    @prefix_key
    def metadata_index_key(self) -> str:
        return 'utm:meta:index'

    @prefix_key
    def field_values_key(self, field_key: str) -> str:
        return f'utm:values:{field_key}'

    @prefix_key
    def schema_version_key(self) -> str:
        return 'utm:schema:version'

    @prefix_key
    def metadata_enabled_key(self) -> str:
        return 'settings:metadata_enabled'
