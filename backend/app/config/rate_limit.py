from typing import Dict, Any

from app.config.environment import APP_ENV

# rating/review creation limiter
WRITE_WINDOW_SECONDS = 60 * 60
WRITE_MAX_REQUESTS = 10 if APP_ENV == 'production' else 100


def get_rate_limit_config() -> Dict[str, Any]:
    return {
        'write': {
            'requests': WRITE_MAX_REQUESTS,
            'window': WRITE_WINDOW_SECONDS
        }
    }
