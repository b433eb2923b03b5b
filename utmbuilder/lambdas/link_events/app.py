import json
import logging

from utmbuilder.dao.redis import SettingsRedisDAO, UTMMetadataRedisDAO
from utmbuilder.dao.exceptions import DataStoreError
from utmbuilder.exceptions import ConfigurationError
from utmbuilder.types import LambdaContext, LambdaEvent, LambdaResponse
from utmbuilder.services import LinkLifecycleHooks, MetadataStore, load_metadata_settings
from utmbuilder.services.payload import parse_flag
from utmbuilder.utils import app_prefix, guarantee_500_response, initialize_logging, json_response, load_config
from utmbuilder.utils.constants import BAD_REQUEST, UNKNOWN_INTERNAL_SERVER_ERROR
from utmbuilder.lambdas.link_events import constants
from utmbuilder.lambdas.link_events.constants import LINK_EVENTS


initialize_logging()
logger = logging.getLogger(__name__)


def response_error(status_code: int, error: str, error_code: str) -> LambdaResponse:
    return json_response(status_code, {'success': False, 'error': error, 'errorCode': error_code})


@guarantee_500_response
def lambda_handler(event: LambdaEvent, context: LambdaContext) -> LambdaResponse:
    """Receive short link lifecycle events and keep UTM metadata in sync

    Request body (JSON):
        {"event": "link_created", "identifier": "abc1", "success": true, "params": {...}}
        {"event": "link_edited", "previous_identifier": "abc1", "identifier": "xyz9", "status": "success", "params": {...}}
        {"event": "link_deleted", "identifier": "abc1", "rows_affected": 1}

    `params` holds the host request's form fields, including the
    utm_builder_* payload fields when the builder was used.

    HTTP responses:
        200: {success: true, event, action} (action is null when nothing was applied)
        400: {success: false, error} for invalid JSON or unknown events
        500: {success: false, error} on configuration errors

    Metadata failures never turn into error responses: the link operation
    already succeeded and must keep appearing so.
    """
    # 1- Parse lifecycle event
    try:
        body = json.loads(event.get('body') or '{}')
    except json.JSONDecodeError:
        logger.info('Invalid JSON body. Responding with 400.', extra={'event': BAD_REQUEST})
        return response_error(400, 'Bad Request (invalid JSON body)', BAD_REQUEST)
    link_event = body.get('event') if isinstance(body, dict) else None
    if link_event not in LINK_EVENTS:
        logger.info('Unknown lifecycle event. Responding with 400.', extra={'link_event': link_event, 'event': BAD_REQUEST})
        return response_error(400, 'Bad Request (unknown event)', BAD_REQUEST)

    # 2- Get application's config
    try:
        app_config = load_config('link_events')
    except ConfigurationError:
        logger.exception('Failed to load configuration for link events function. Responding with 500.')
        return response_error(500, 'Internal Server Error', UNKNOWN_INTERNAL_SERVER_ERROR)
    else:
        redis_config = {f'redis_{k}': v for k, v in app_config['redis'].items()}

    # 3- Read the metadata toggle once for this request
    try:
        settings_dao = SettingsRedisDAO(**redis_config, prefix=app_prefix())
    except DataStoreError:
        logger.warning('Settings storage unavailable.', exc_info=True)
        settings_dao = None
    settings = load_metadata_settings(settings_dao, app_config.get('lowercase_identifiers', False))

    store = MetadataStore(
        settings=settings,
        dao_factory=lambda: UTMMetadataRedisDAO(**redis_config, prefix=app_prefix()),
    )
    hooks = LinkLifecycleHooks(store)

    # 4- Dispatch
    params = body.get('params') or {}
    payload = None
    match link_event:
        case constants.LINK_CREATED:
            payload = hooks.on_link_created(body.get('identifier'), parse_flag(body.get('success', True)), params)
        case constants.LINK_EDITED:
            payload = hooks.on_link_edited(body.get('previous_identifier'), body.get('identifier'), body.get('status', 'success'), params)
        case constants.LINK_DELETED:
            hooks.on_link_deleted(body.get('identifier'), body.get('rows_affected', 0))

    return json_response(
        200,
        {
            'success': True,
            'event': link_event,
            'action': payload.action if payload is not None else None,
        },
    )
