"""Helper utilities for handlers.

Functions:
    require_environment(*names: str) -> Callable
        Decorator: Ensure required environment variables are present
    json_response(status_code, body, headers=None) -> dict
        Build an API Gateway proxy response with a JSON body
    request_params(event) -> dict
        Merge query string and form/JSON body parameters of a proxy event
    guarantee_500_response(handler) -> Callable
        Decorator: turn any uncaught exception into a logged 500 response
"""

import os
import json
import base64
import logging
import functools
from typing import Any
from urllib.parse import parse_qsl
from collections.abc import Callable

from utmbuilder.exceptions import MissingEnvironmentVariableError
from utmbuilder.types import LambdaEvent, LambdaResponse, RequestParams
from utmbuilder.utils.constants import UNKNOWN_INTERNAL_SERVER_ERROR
from utmbuilder.utils.runtime import running_locally


logger = logging.getLogger(__name__)


def require_environment(*names: str) -> Callable:
    """Decorator ensuring required environment variables are present.

    Raises:
        MissingEnvironmentVariableError:
            If any required environment variable is missing or empty.

    Example:
        >>> @require_environment('APPCONFIG_APP_ID')
        ... def my_function():
        ...     pass
        >>> my_function()
        MissingEnvironmentVariableError: "Missing required environment variables: 'APPCONFIG_APP_ID'"
    """

    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            missing = [name for name in names if not os.environ.get(name)]
            if missing:
                missing_list = ', '.join(f"'{name}'" for name in missing)
                raise MissingEnvironmentVariableError(f'Missing required environment variables: {missing_list}')
            return func(*args, **kwargs)

        return wrapper

    return decorator


def json_response(status_code: int, body: dict[str, Any], headers: dict[str, str] | None = None) -> LambdaResponse:
    return {
        'statusCode': status_code,
        'headers': {'Content-Type': 'application/json', **(headers or {})},
        'body': json.dumps(body),
    }


def request_params(event: LambdaEvent) -> RequestParams:
    """Collect request parameters from a proxy event

    Query string parameters are read first; body parameters (form-encoded or
    JSON object) override them. Absent keys stay absent, which matters for the
    request payload protocol ("flag absent" differs from "flag false").
    """
    params: RequestParams = dict(event.get('queryStringParameters') or {})

    body = event.get('body')
    if not body:
        return params
    if event.get('isBase64Encoded'):
        body = base64.b64decode(body).decode('utf-8')

    headers = {k.lower(): v for k, v in (event.get('headers') or {}).items()}
    if 'json' in headers.get('content-type', ''):
        try:
            decoded = json.loads(body)
        except json.JSONDecodeError:
            logger.info('Ignoring request body with invalid JSON.')
        else:
            if isinstance(decoded, dict):
                params.update(decoded)
    else:
        params.update(parse_qsl(body, keep_blank_values=True))
    return params


def guarantee_500_response(handler: Callable) -> Callable:
    """Decorator: respond with 500 (and log) if the handler raises anything

    When running locally the exception is re-raised so it shows up in the
    local invocation output.
    """

    @functools.wraps(handler)
    def wrapper(event, context, *args, **kwargs):
        try:
            return handler(event, context, *args, **kwargs)
        except Exception:
            if running_locally():
                raise
            logger.exception(
                'Unhandled exception in handler. Responding with 500.',
                extra={'handler': handler.__module__, 'event': UNKNOWN_INTERNAL_SERVER_ERROR},
            )
            return json_response(500, {'success': False, 'error': 'Internal Server Error', 'errorCode': UNKNOWN_INTERNAL_SERVER_ERROR})

    return wrapper
