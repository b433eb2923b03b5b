"""Data Access Object (DAO) implementation for UTM metadata in Redis

Responsibilities:
    - Keep one hash per short-link identifier holding the original URL,
      the five UTM values and created/updated timestamps;
    - Track identifiers holding a record in an index set;
    - Maintain per-field reference counts of stored values (suggestions);
    - Provision the value indexes on first use, guarded by a version marker.

Key layout (see RedisKeySchema):
    <prefix>:utm:meta:<identifier>    -> hash {original_url, utm_*, created_at, updated_at}
    <prefix>:utm:meta:index           -> set of identifiers
    <prefix>:utm:values:<utm field>   -> hash {value: reference count}
    <prefix>:utm:schema:version       -> SCHEMA_VERSION once provisioned

Classes:
    UTMMetadataRedisDAO:
        DAO for storing and retrieving UTMMetadataModel in a Redis datastore.

Example:
    >>> dao = UTMMetadataRedisDAO(prefix='utmbuilder:dev')
    >>> dao.upsert('abc1', UTMMetadataData(original_url='https://example.com/page?ref=1', utm_source='newsletter'))
    <UTMMetadataRedisDAO>
    >>> dao.get('abc1').original_url
    'https://example.com/page?ref=1'
    >>> dao.distinct_values('utm_source', 'new', 10)
    ['newsletter']
"""

import logging
from collections import Counter
from datetime import datetime, UTC

import redis
from beartype import beartype

from utmbuilder.models import UTMMetadataData, UTMMetadataModel
from utmbuilder.dao.base import UTMMetadataBaseDAO
from utmbuilder.dao.redis.mixins import RedisClientMixin
from utmbuilder.dao.redis.helpers import handle_redis_connection_error
from utmbuilder.dao.exceptions import MetadataNotFoundError, SchemaNotProvisionedError
from utmbuilder.utils.constants import FIELD_KEYS, SCHEMA_VERSION


logger = logging.getLogger(__name__)

_GLOB_SPECIAL = frozenset('*?[]\\')

# Decrement a value reference and drop the entry once nothing refers to it
_RELEASE_VALUE_SCRIPT = """
local count = redis.call('HINCRBY', KEYS[1], ARGV[1], -1)
if count <= 0 then
    redis.call('HDEL', KEYS[1], ARGV[1])
end
return count
"""


def _escape_glob(text: str) -> str:
    return ''.join(f'\\{char}' if char in _GLOB_SPECIAL else char for char in text)


def _now() -> str:
    return datetime.now(UTC).isoformat()


def _parse_timestamp(value: str | None) -> datetime | None:
    if not value:
        return None
    try:
        return datetime.fromisoformat(value)
    except ValueError:
        return None


class UTMMetadataRedisDAO(RedisClientMixin, UTMMetadataBaseDAO):
    """Redis-based Data Access Object (DAO) for UTM metadata records

    Attributes (see RedisClientMixin):
        redis (redis.Redis):
            Redis client used to communicate with the Redis datastore.
        keys (RedisKeySchema):
            Key schema helper for generating namespaced Redis keys.

    Every public method provisions the schema first (once per DAO instance)
    and raises DataStoreError on Redis failures.
    """

    _schema_ready = False

    @handle_redis_connection_error
    def ensure_schema(self, **kwargs) -> bool:
        """Provision the value indexes unless the version marker is current

        Returns:
            bool: True if provisioning ran, False if the schema was already current.
        """
        if self._schema_ready:
            return False

        marker = self.redis.get(self.keys.schema_version_key())
        if marker == SCHEMA_VERSION:
            self._schema_ready = True
            return False

        logger.info(
            'Provisioning UTM metadata schema.',
            extra={'found_version': marker, 'schema_version': SCHEMA_VERSION},
        )
        try:
            self._provision()
        except redis.exceptions.ResponseError as e:
            raise SchemaNotProvisionedError(f'Could not provision UTM metadata schema {SCHEMA_VERSION}: {e}') from e
        self._schema_ready = True
        return True

    def _provision(self) -> None:
        """Rebuild per-field value counts from the stored records and write the marker."""
        index_key = self.keys.metadata_index_key()
        counts = {field_key: Counter() for field_key in FIELD_KEYS}
        stale = []

        for identifier in sorted(self.redis.smembers(index_key)):
            record = self.redis.hgetall(self.keys.metadata_key(identifier))
            if not record:
                stale.append(identifier)
                continue
            for field_key in FIELD_KEYS:
                if record.get(field_key):
                    counts[field_key][record[field_key]] += 1

        with self.redis.pipeline(transaction=True) as pipe:
            for field_key, field_counts in counts.items():
                values_key = self.keys.field_values_key(field_key)
                pipe.delete(values_key)
                if field_counts:
                    pipe.hset(values_key, mapping=dict(field_counts))
            if stale:
                pipe.srem(index_key, *stale)
            pipe.set(self.keys.schema_version_key(), SCHEMA_VERSION)
            pipe.execute()

    def _queue_value_changes(self, pipe, old: dict[str, str], new: dict[str, str]) -> None:
        """Queue reference count updates for every field whose value changed

        Entries whose count reaches zero are removed from the value hash.
        """
        for field_key in FIELD_KEYS:
            old_value, new_value = old.get(field_key, ''), new.get(field_key, '')
            if old_value == new_value:
                continue
            values_key = self.keys.field_values_key(field_key)
            if old_value:
                pipe.eval(_RELEASE_VALUE_SCRIPT, 1, values_key, old_value)
            if new_value:
                pipe.hincrby(values_key, new_value, 1)

    @handle_redis_connection_error
    @beartype
    def upsert(self, identifier: str, data: UTMMetadataData, **kwargs) -> 'UTMMetadataRedisDAO':
        """Insert or update the metadata record of `identifier`

        created_at is kept from an existing record; updated_at is always refreshed.
        Repeating the call with the same data leaves the stored values unchanged.

        Raises:
            DataStoreError:
                If a Redis issue occurs.
        """
        self.ensure_schema()
        key = self.keys.metadata_key(identifier)
        existing = self.redis.hgetall(key)

        now = _now()
        record = {**data.to_dict(), 'created_at': existing.get('created_at') or now, 'updated_at': now}

        with self.redis.pipeline(transaction=True) as pipe:
            pipe.hset(key, mapping=record)
            pipe.sadd(self.keys.metadata_index_key(), identifier)
            self._queue_value_changes(pipe, old=existing, new=record)
            pipe.execute()
        return self

    @handle_redis_connection_error
    @beartype
    def delete(self, identifier: str, **kwargs) -> bool:
        """Delete the metadata record of `identifier` (False if there was none)."""
        self.ensure_schema()
        key = self.keys.metadata_key(identifier)
        existing = self.redis.hgetall(key)

        with self.redis.pipeline(transaction=True) as pipe:
            pipe.delete(key)
            pipe.srem(self.keys.metadata_index_key(), identifier)
            self._queue_value_changes(pipe, old=existing, new={})
            pipe.execute()
        return bool(existing)

    @handle_redis_connection_error
    @beartype
    def move(self, source: str, target: str, **kwargs) -> bool:
        """Rename the record at `source` to `target`

        Any record already at `target` is replaced. updated_at is refreshed,
        created_at travels with the record.

        Returns:
            bool: False when source == target or no record exists at `source`.
        """
        if source == target:
            return False

        self.ensure_schema()
        source_key = self.keys.metadata_key(source)
        target_key = self.keys.metadata_key(target)
        if not self.redis.exists(source_key):
            return False
        replaced = self.redis.hgetall(target_key)

        # NOTE: RENAME overwrites target_key atomically, so only the replaced
        #       record's value counts need adjusting.
        with self.redis.pipeline(transaction=True) as pipe:
            pipe.rename(source_key, target_key)
            pipe.hset(target_key, 'updated_at', _now())
            pipe.srem(self.keys.metadata_index_key(), source)
            pipe.sadd(self.keys.metadata_index_key(), target)
            self._queue_value_changes(pipe, old=replaced, new={})
            pipe.execute()
        return True

    @handle_redis_connection_error
    @beartype
    def get(self, identifier: str, **kwargs) -> UTMMetadataModel:
        """Retrieve the metadata record of `identifier`

        Raises:
            MetadataNotFoundError:
                If no record exists.
            DataStoreError:
                If a Redis issue occurs.
        """
        self.ensure_schema()
        record = self.redis.hgetall(self.keys.metadata_key(identifier))
        if not record:
            raise MetadataNotFoundError(f"No UTM metadata for '{identifier}'.")

        return UTMMetadataModel(
            identifier=identifier,
            data=UTMMetadataData(
                original_url=record.get('original_url', ''),
                **{field_key: record.get(field_key, '') for field_key in FIELD_KEYS},
            ),
            created_at=_parse_timestamp(record.get('created_at')),
            updated_at=_parse_timestamp(record.get('updated_at')),
        )

    @handle_redis_connection_error
    @beartype
    def distinct_values(self, field_key: str, search: str, limit: int, **kwargs) -> list[str]:
        """Distinct non-blank values of `field_key` containing `search`

        The substring match is case-sensitive (Redis MATCH glob). Values are
        sorted ascending and truncated to `limit`.

        Raises:
            ValueError:
                If `field_key` is not a known UTM field.
        """
        if field_key not in FIELD_KEYS:
            raise ValueError(f'Unknown UTM field: {field_key!r}')

        self.ensure_schema()
        pattern = f'*{_escape_glob(search)}*' if search else '*'
        values = {
            value
            for value, count in self.redis.hscan_iter(self.keys.field_values_key(field_key), match=pattern, count=500)
            if int(count) > 0 and value.strip()
        }
        return sorted(values)[:limit]
