import logging

from beartype import beartype

from utmbuilder.dao.base import SettingsBaseDAO
from utmbuilder.dao.redis.mixins import RedisClientMixin
from utmbuilder.dao.redis.helpers import handle_redis_connection_error


logger = logging.getLogger(__name__)


class SettingsRedisDAO(RedisClientMixin, SettingsBaseDAO):
    """Redis-backed storage of the metadata capture toggle

    The toggle is stored as '1' (enabled) or '0' (disabled) under
    <prefix>:settings:metadata_enabled. A missing key reads as enabled.

    Example:
        >>> dao = SettingsRedisDAO(prefix='utmbuilder:dev')
        >>> dao.activate()
        True
        >>> dao.set_metadata_enabled(False)
        False
        >>> dao.metadata_enabled()
        False
    """

    @handle_redis_connection_error
    def activate(self, **kwargs) -> bool:
        initialized = bool(self.redis.set(self.keys.metadata_enabled_key(), '1', nx=True))
        if initialized:
            logger.info('Metadata capture initialized to enabled.')
        return initialized

    @handle_redis_connection_error
    def metadata_enabled(self, **kwargs) -> bool:
        value = self.redis.get(self.keys.metadata_enabled_key())
        if isinstance(value, bytes):
            value = value.decode('utf-8')
        return value is None or value == '1'

    @handle_redis_connection_error
    @beartype
    def set_metadata_enabled(self, enabled: bool, **kwargs) -> bool:
        self.redis.set(self.keys.metadata_enabled_key(), '1' if enabled else '0')
        logger.info('Metadata capture toggled.', extra={'enabled': enabled})
        return enabled
