"""Unit tests for the settings AWS Lambda handler.

Test coverage includes:

1. Reading the toggle
   - Ensures GET returns the stored value and initializes it on first use.

2. Changing the toggle
   - Ensures POST with a valid token stores the new value.

3. Rejected changes
   - Ensures invalid tokens return HTTP 403 and missing values HTTP 400.

4. Errors
   - Ensures configuration and storage errors result in HTTP 500.

Fixtures:
    - `make_event`: builds an API Gateway event for a given method and body.
    - `token`: valid anti-forgery token for the settings action.
    - `config`: application configuration mock.
    - `settings_dao`: mock SettingsRedisDAO.
    - `_patch_lambda_dependencies`: autouse fixture that monkeypatches config and DAO.
"""

import json
from unittest.mock import MagicMock
from urllib.parse import urlencode

import pytest

from utmbuilder.lambdas.settings import app
from utmbuilder.dao.redis import SettingsRedisDAO
from utmbuilder.dao.exceptions import DataStoreError
from utmbuilder.exceptions import ConfigurationError
from utmbuilder.utils.constants import AUTOCOMPLETE_ACTION, SETTINGS_ACTION
from utmbuilder.utils.nonce import create_nonce


SECRET = 'test-secret'  # noqa: S105


# -------------------------------
# Fixtures
# -------------------------------


@pytest.fixture()
def token():
    return create_nonce(SETTINGS_ACTION, 'admin1', SECRET)


@pytest.fixture()
def make_event():
    def _make_event(method='GET', params=None):
        return {
            'resource': '/v1/utm/settings',
            'httpMethod': method,
            'path': '/v1/utm/settings',
            'headers': {'User-Agent': 'pytest', 'Content-Type': 'application/x-www-form-urlencoded'},
            'body': urlencode(params) if params is not None else None,
            'requestContext': {
                'resourcePath': '/v1/utm/settings',
                'httpMethod': method,
                'stage': 'test',
                'authorizer': {'claims': {'sub': 'admin1', 'cognito:username': 'pytest-admin'}},
            },
        }

    return _make_event


@pytest.fixture()
def context():
    class _Context:
        function_name = 'settings'

    return _Context()


@pytest.fixture()
def config():
    return {'redis': {'host': 'redis.test', 'port': 6379, 'db': 0}, 'nonce_secret': SECRET}


@pytest.fixture()
def settings_dao():
    _dao = MagicMock(spec=SettingsRedisDAO)
    _dao.metadata_enabled.return_value = True
    _dao.set_metadata_enabled.side_effect = lambda enabled, **kw: enabled
    return _dao


@pytest.fixture(autouse=True)
def _patch_lambda_dependencies(monkeypatch, config, settings_dao):
    monkeypatch.setenv('APP_ENV', 'test')
    monkeypatch.delenv('AWS_SAM_LOCAL', raising=False)
    monkeypatch.delenv('UTM_BUILDER_NONCE_SECRET', raising=False)
    monkeypatch.setattr(app, 'load_config', lambda *a, **kw: config)
    monkeypatch.setattr(app, 'SettingsRedisDAO', lambda *a, **kw: settings_dao)


# -------------------------------
# 1. Reading the toggle
# -------------------------------


def test_get_settings(make_event, context, settings_dao):
    """Ensure GET returns the toggle and initializes it on first use."""
    response = app.lambda_handler(make_event('GET'), context)
    body = json.loads(response['body'])

    assert response['statusCode'] == 200
    assert body == {'success': True, 'metadata_enabled': True}
    settings_dao.activate.assert_called_once()
    settings_dao.set_metadata_enabled.assert_not_called()


def test_get_settings_disabled(make_event, context, settings_dao):
    settings_dao.metadata_enabled.return_value = False

    response = app.lambda_handler(make_event('GET'), context)

    assert json.loads(response['body'])['metadata_enabled'] is False


# -------------------------------
# 2. Changing the toggle
# -------------------------------


@pytest.mark.parametrize('value, expected', [('0', False), ('1', True), ('off', False), ('true', True)])
def test_post_settings(make_event, context, settings_dao, token, value, expected):
    """Ensure POST with a valid token stores the new value."""
    event = make_event('POST', {'nonce': token, 'metadata_enabled': value})

    response = app.lambda_handler(event, context)
    body = json.loads(response['body'])

    assert response['statusCode'] == 200
    assert body == {'success': True, 'metadata_enabled': expected}
    settings_dao.set_metadata_enabled.assert_called_once_with(expected)


# -------------------------------
# 3. Rejected changes
# -------------------------------


@pytest.mark.parametrize('nonce', ['', 'forged12345', create_nonce(AUTOCOMPLETE_ACTION, 'admin1', SECRET)])
def test_post_settings_with_invalid_token(make_event, context, settings_dao, nonce):
    """Ensure POST without a valid settings token returns HTTP 403."""
    event = make_event('POST', {'nonce': nonce, 'metadata_enabled': '0'})

    response = app.lambda_handler(event, context)

    assert response['statusCode'] == 403
    assert json.loads(response['body'])['errorCode'] == 'UNAUTHORIZED'
    settings_dao.set_metadata_enabled.assert_not_called()


def test_post_settings_without_value(make_event, context, settings_dao, token):
    """Ensure POST without 'metadata_enabled' returns HTTP 400."""
    response = app.lambda_handler(make_event('POST', {'nonce': token}), context)
    body = json.loads(response['body'])

    assert response['statusCode'] == 400
    assert body['error'] == "Bad Request (missing 'metadata_enabled')"
    settings_dao.set_metadata_enabled.assert_not_called()


# -------------------------------
# 4. Errors
# -------------------------------


def test_lambda_handler_with_invalid_configuration(monkeypatch, make_event, context):
    """Ensure ConfigurationError in load_config returns HTTP 500."""

    def _broken(*args, **kwargs):
        raise ConfigurationError("Missing configuration for 'settings'.")

    monkeypatch.setattr(app, 'load_config', _broken)

    response = app.lambda_handler(make_event('GET'), context)

    assert response['statusCode'] == 500


def test_lambda_handler_with_unreachable_redis(make_event, context, settings_dao):
    """Ensure storage errors on the settings surface return HTTP 500."""
    settings_dao.activate.side_effect = DataStoreError('Connection refused')

    response = app.lambda_handler(make_event('GET'), context)

    assert response['statusCode'] == 500
    assert json.loads(response['body'])['errorCode'] == 'UNKNOWN_INTERNAL_SERVER_ERROR'


def test_lambda_handler_reraises_locally(monkeypatch, make_event, context, settings_dao):
    """Ensure unexpected errors surface when running locally."""
    monkeypatch.setenv('APP_ENV', 'local')
    settings_dao.activate.side_effect = DataStoreError('Connection refused')

    with pytest.raises(DataStoreError):
        app.lambda_handler(make_event('GET'), context)
