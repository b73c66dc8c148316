"""Rate limiter configuration module.

Kept apart from main.py so routers can decorate endpoints without importing
the application.
"""

from slowapi import Limiter
from slowapi.util import get_remote_address

from models.config import settings

# Imported by the auth router and registered on the app in main.py
limiter = Limiter(key_func=get_remote_address)

login_limit = settings.RATE_LIMIT_LOGIN
register_limit = settings.RATE_LIMIT_REGISTER
