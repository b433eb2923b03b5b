import logging

from utmbuilder.dao.redis import UTMMetadataRedisDAO
from utmbuilder.dao.exceptions import DataStoreError
from utmbuilder.exceptions import ConfigurationError, UnauthorizedError
from utmbuilder.types import LambdaContext, LambdaEvent, LambdaResponse
from utmbuilder.services import SuggestionSource
from utmbuilder.utils import app_prefix, get_user_id, guarantee_500_response, initialize_logging, json_response, load_config, nonce_secret, request_params
from utmbuilder.utils.constants import FIELD_KEYS, UNAUTHORIZED, UNKNOWN_FIELD, UNKNOWN_INTERNAL_SERVER_ERROR


initialize_logging()
logger = logging.getLogger(__name__)


def response_error(status_code: int, error: str, error_code: str) -> LambdaResponse:
    return json_response(status_code, {'success': False, 'error': error, 'errorCode': error_code})


@guarantee_500_response
def lambda_handler(event: LambdaEvent, context: LambdaContext) -> LambdaResponse:
    """Serve one page of autocomplete suggestions for a UTM field

    This Lambda handler follows this procedure:
    - Step 1: Load configuration (Redis connection, token secret)
    - Step 2: Read field, search, limit and nonce from the request
    - Step 3: Verify the anti-forgery token and query distinct stored values
    - Step 4: Reject unknown fields
    - Step 5: Respond with one page of values

    HTTP responses:
        200: {success: true, field, values, hasMore}
        400: {success: false, error} for unknown fields
        403: {success: false, error} for missing or invalid tokens
        500: {success: false, error} on configuration or unexpected errors

    Example:
        >>> event = {'queryStringParameters': {'field': 'utm_source', 'search': 'new', 'limit': '10', 'nonce': token}}
        >>> response = lambda_handler(event, None)
        >>> json.loads(response['body'])
        {'success': True, 'field': 'utm_source', 'values': ['news', 'newsletter'], 'hasMore': False}
    """
    # 1- Get application's config
    try:
        app_config = load_config('autocomplete')
        secret = nonce_secret(app_config)
    except ConfigurationError:
        logger.exception('Failed to load configuration for autocomplete function. Responding with 500.')
        return response_error(500, 'Internal Server Error', UNKNOWN_INTERNAL_SERVER_ERROR)
    else:
        redis_config = {f'redis_{k}': v for k, v in app_config['redis'].items()}

    # 2- Extract query parameters
    params = request_params(event)

    # Suggestions degrade to an empty list when Redis is unreachable
    try:
        dao = UTMMetadataRedisDAO(**redis_config, prefix=app_prefix())
    except DataStoreError:
        logger.warning('Metadata storage unavailable for suggestions.', exc_info=True)
        dao = None

    # 3- Verify token and query suggestions
    source = SuggestionSource(dao, secret=secret, user=get_user_id(event))
    try:
        page = source.suggest(params.get('field'), params.get('search'), params.get('limit'), params.get('nonce'))
    except UnauthorizedError:
        logger.info('Rejected suggestion request with invalid token. Responding with 403.', extra={'event': UNAUTHORIZED})
        return response_error(403, 'Unauthorized', UNAUTHORIZED)

    # 4- Unknown fields are an error, not an empty result
    if page.field_key not in FIELD_KEYS:
        logger.info('Unknown suggestion field. Responding with 400.', extra={'field': page.field_key, 'event': UNKNOWN_FIELD})
        return response_error(400, 'Unknown field', UNKNOWN_FIELD)

    # 5- Respond with the page
    return json_response(200, page.to_response())
