# vidhub/core/rate_limit.py
from slowapi import Limiter
from slowapi.util import get_remote_address

# Disabled until create_app() applies settings.ENABLE_RATE_LIMITING.
limiter = Limiter(key_func=get_remote_address, enabled=False)

LOGIN_LIMIT = "10/minute"
REGISTER_LIMIT = "5/minute"
CODE_REQUEST_LIMIT = "5/minute"
