"""Utility functions for application configuration management.

Handlers read their configuration from **AWS AppConfig**. Each environment
(`APP_ENV`) has a dedicated AppConfig *Environment* within the AppConfig
*Application* identified by `APP_NAME`. The configuration document looks like:

    {
        "active_backend": "redis",
        "nonce_secret": "...",
        "lowercase_identifiers": false,
        "configs": {
            "autocomplete": {"redis": { ... }},
            "link_events": {"redis": { ... }},
            "settings": {"redis": { ... }}
        }
    }

When running locally, `UTM_BUILDER_CONFIG_FILE` may point at a YAML file
with the same structure, which is read instead of contacting AppConfig.

Functions:
    app_env() -> str
    app_name() -> str | None
    app_prefix() -> str | None
    load_document() -> dict
        Full configuration document (YAML locally, AppConfig otherwise).
    load_config(function_name: str) -> dict
        {backend: {...}} section for one handler, plus shared options.
    nonce_secret(config: dict) -> str
        Secret used to sign anti-forgery tokens.

Example:
    >>> from utmbuilder.utils.config import load_config
    >>> config = load_config('autocomplete')
    >>> config['redis']['host']
    'redis.internal'
"""

import os
import json
import logging
from pathlib import Path
from typing import Any

import boto3
import yaml

from utmbuilder.exceptions import ConfigurationError
from utmbuilder.types import LambdaConfiguration
from utmbuilder.utils.helpers import require_environment
from utmbuilder.utils.runtime import running_locally
from utmbuilder.utils.constants import ENV


logger = logging.getLogger(__name__)

# Keys copied from the document root into every handler's config
SHARED_OPTIONS = ('nonce_secret', 'lowercase_identifiers')


def app_env() -> str:
    """Return the current application environment ('APP_ENV', 'local' by default)."""
    return os.environ.get(ENV.App.APP_ENV, 'local').lower()


def app_name() -> str | None:
    return os.environ.get(ENV.App.APP_NAME)


def app_prefix() -> str | None:
    """Return application prefix for DAOs as <app name>:<app env>, or None if APP_NAME is not set.

    Example:
        >>> os.environ['APP_NAME'] = 'utmbuilder'
        >>> os.environ['APP_ENV'] = 'local'
        >>> app_prefix()
        'utmbuilder:local'
    """
    return None if app_name() is None else f'{app_name()}:{app_env()}'


def _load_local_document(path: Path) -> dict[str, Any]:
    logger.debug('Loading configuration from local file.', extra={'path': str(path)})
    with path.open('r', encoding='utf-8') as f:
        document = yaml.safe_load(f) or {}
    if not isinstance(document, dict):
        raise ConfigurationError(f'Configuration file {path} must contain a mapping.')
    return document


@require_environment(ENV.AppConfig.APP_ID, ENV.AppConfig.ENV_ID, ENV.AppConfig.PROFILE_ID)
def _load_appconfig_document() -> dict[str, Any]:
    logger.debug('Loading configuration from AWS AppConfig.')
    appconfig = boto3.client('appconfigdata')

    session_token = appconfig.start_configuration_session(
        ApplicationIdentifier=os.environ[ENV.AppConfig.APP_ID],
        EnvironmentIdentifier=os.environ[ENV.AppConfig.ENV_ID],
        ConfigurationProfileIdentifier=os.environ[ENV.AppConfig.PROFILE_ID],
    )['InitialConfigurationToken']

    response = appconfig.get_latest_configuration(ConfigurationToken=session_token)
    content = response['Configuration'].read()
    return json.loads(content.decode('utf-8'))


def load_document() -> dict[str, Any]:
    config_file = os.environ.get(ENV.App.CONFIG_FILE)
    if running_locally() and config_file:
        return _load_local_document(Path(config_file))
    return _load_appconfig_document()


def load_config(function_name: str) -> LambdaConfiguration:
    """Load the configuration section of one handler

    Returns:
        dict: {<active backend>: {...}} plus the shared root options
              ('nonce_secret', 'lowercase_identifiers') when present.

    Raises:
        ConfigurationError:
            If the document lacks the active backend or the handler's section.
        MissingEnvironmentVariableError:
            If AppConfig identifiers are not set (non-local runs).
    """
    document = load_document()
    try:
        backend = document['active_backend']
        data = {backend: document['configs'][function_name][backend]}
    except (KeyError, TypeError) as e:
        raise ConfigurationError(f"Missing configuration for '{function_name}'.") from e

    for option in SHARED_OPTIONS:
        if option in document:
            data[option] = document[option]

    logger.debug('Loaded configuration.', extra={'functionName': function_name, 'build': document.get('build')})
    return data


def nonce_secret(config: LambdaConfiguration) -> str:
    """Return the token signing secret (environment wins over the config document)."""
    secret = os.environ.get(ENV.App.NONCE_SECRET) or config.get('nonce_secret')
    if not secret:
        raise ConfigurationError('No anti-forgery token secret configured.')
    return secret
