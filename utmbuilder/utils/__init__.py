from utmbuilder.utils.config import app_env, app_name, app_prefix, load_config, nonce_secret
from utmbuilder.utils.helpers import require_environment, json_response, request_params, guarantee_500_response
from utmbuilder.utils.logging import initialize_logging
from utmbuilder.utils.runtime import get_user_id, running_locally


__all__ = [
    'app_env',
    'app_name',
    'app_prefix',
    'load_config',
    'nonce_secret',
    'require_environment',
    'json_response',
    'request_params',
    'guarantee_500_response',
    'initialize_logging',
    'get_user_id',
    'running_locally',
]
