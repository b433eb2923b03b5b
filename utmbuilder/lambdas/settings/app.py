import logging

from utmbuilder.dao.redis import SettingsRedisDAO
from utmbuilder.exceptions import ConfigurationError, UnauthorizedError
from utmbuilder.types import LambdaContext, LambdaEvent, LambdaResponse
from utmbuilder.services.payload import parse_flag
from utmbuilder.utils import app_prefix, get_user_id, guarantee_500_response, initialize_logging, json_response, load_config, nonce_secret, request_params
from utmbuilder.utils.constants import BAD_REQUEST, SETTINGS_ACTION, UNAUTHORIZED, UNKNOWN_INTERNAL_SERVER_ERROR
from utmbuilder.utils.nonce import require_nonce


initialize_logging()
logger = logging.getLogger(__name__)

SETTING_PARAM = 'metadata_enabled'


def response_error(status_code: int, error: str, error_code: str) -> LambdaResponse:
    return json_response(status_code, {'success': False, 'error': error, 'errorCode': error_code})


@guarantee_500_response
def lambda_handler(event: LambdaEvent, context: LambdaContext) -> LambdaResponse:
    """Read or change the metadata capture toggle

    GET returns the current value. POST stores `metadata_enabled` and needs a
    valid anti-forgery token (`nonce`) for the settings action. The toggle is
    initialized to enabled the first time this surface is used. Switching it
    off keeps existing records.

    HTTP responses:
        200: {success: true, metadata_enabled}
        400: {success: false, error} if POST lacks `metadata_enabled`
        403: {success: false, error} for missing or invalid tokens
        500: {success: false, error} on configuration or storage errors
    """
    # 1- Get application's config
    try:
        app_config = load_config('settings')
    except ConfigurationError:
        logger.exception('Failed to load configuration for settings function. Responding with 500.')
        return response_error(500, 'Internal Server Error', UNKNOWN_INTERNAL_SERVER_ERROR)
    else:
        redis_config = {f'redis_{k}': v for k, v in app_config['redis'].items()}

    settings_dao = SettingsRedisDAO(**redis_config, prefix=app_prefix())
    settings_dao.activate()

    # 2- Reads need no token
    if (event.get('httpMethod') or 'GET').upper() != 'POST':
        return json_response(200, {'success': True, SETTING_PARAM: settings_dao.metadata_enabled()})

    # 3- Writes need a valid token and a value
    params = request_params(event)
    try:
        require_nonce(params.get('nonce'), SETTINGS_ACTION, get_user_id(event), nonce_secret(app_config))
    except UnauthorizedError:
        logger.info('Rejected settings change with invalid token. Responding with 403.', extra={'event': UNAUTHORIZED})
        return response_error(403, 'Unauthorized', UNAUTHORIZED)

    if SETTING_PARAM not in params:
        logger.info("Missing 'metadata_enabled'. Responding with 400.", extra={'event': BAD_REQUEST})
        return response_error(400, f"Bad Request (missing '{SETTING_PARAM}')", BAD_REQUEST)

    enabled = settings_dao.set_metadata_enabled(parse_flag(params[SETTING_PARAM]))
    return json_response(200, {'success': True, SETTING_PARAM: enabled})
