"""Unit tests for handle_redis_connection_error decorator.

Test coverage includes:
    1. Normal function execution
       - Ensures the wrapped method executes and returns its result.
    2. Error handling
       - Ensures Redis connection errors and timeouts become DataStoreError.
       - Ensures other Redis command errors become DataStoreError naming the method.
       - Ensures non-Redis exceptions propagate unchanged.
    3. Function metadata preservation
       - Confirms functools.wraps preserves the original function's name and docstring.
"""

from unittest.mock import MagicMock

import pytest
import redis

from utmbuilder.dao.redis.helpers import describe_connection, handle_redis_connection_error
from utmbuilder.dao.exceptions import DataStoreError


class DummyDAO:
    def __init__(self, error: Exception | None = None):
        self.redis = MagicMock()
        self.redis.connection_pool.connection_kwargs = {'host': 'localhost', 'port': 6379, 'db': 0}
        self.error = error

    @handle_redis_connection_error
    def fetch(self):
        """Fetch something from Redis."""
        if self.error is not None:
            raise self.error
        return 'OK'


# -------------------------------
# 1. Normal execution
# -------------------------------


def test_decorator_allows_normal_execution():
    assert DummyDAO().fetch() == 'OK'


def test_describe_connection():
    assert describe_connection(DummyDAO().redis) == 'localhost:6379/0'


# -------------------------------
# 2. Error handling
# -------------------------------


@pytest.mark.parametrize('error', [redis.exceptions.ConnectionError('refused'), redis.exceptions.TimeoutError('timeout')])
def test_decorator_transforms_connectivity_errors(error):
    with pytest.raises(DataStoreError, match="Can't connect to Redis at localhost:6379/0.") as exc_info:
        DummyDAO(error).fetch()
    assert exc_info.value.__cause__ is error


def test_decorator_transforms_command_errors():
    error = redis.exceptions.ResponseError('WRONGTYPE Operation against a key holding the wrong kind of value')

    with pytest.raises(DataStoreError, match=r'Redis command failed in fetch\(\): WRONGTYPE'):
        DummyDAO(error).fetch()


def test_decorator_lets_other_errors_through():
    with pytest.raises(ValueError, match='not redis'):
        DummyDAO(ValueError('not redis')).fetch()


# -------------------------------
# 3. Function metadata preservation
# -------------------------------


def test_decorator_preserves_metadata():
    assert DummyDAO.fetch.__name__ == 'fetch'
    assert DummyDAO.fetch.__doc__ == 'Fetch something from Redis.'
