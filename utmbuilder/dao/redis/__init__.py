from utmbuilder.dao.redis.redis_key_schema import RedisKeySchema
from utmbuilder.dao.redis.mixins import RedisClientMixin
from utmbuilder.dao.redis.utm_metadata_redis_dao import UTMMetadataRedisDAO
from utmbuilder.dao.redis.settings_redis_dao import SettingsRedisDAO


__all__ = [
    'RedisKeySchema',
    'RedisClientMixin',
    'UTMMetadataRedisDAO',
    'SettingsRedisDAO',
]
