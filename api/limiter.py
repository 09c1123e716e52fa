"""
api/limiter.py -- Shared slowapi instance for per-IP HTTP throttling.

This is the coarse outer layer: it caps how fast a single client address can
hit the login and password routes at all. The per-identifier lockout lives in
auth.rate_limiter.LoginRateLimiter and is unaffected by this limiter.

Import this in api/main.py (to mount as middleware) and in route modules (to
apply @limiter.limit()). One shared instance means one counter store.
"""

from slowapi import Limiter
from slowapi.util import get_remote_address

from core.config import get_settings

LOGIN_RATE_LIMIT = get_settings().login_rate_limit

limiter = Limiter(key_func=get_remote_address, storage_uri="memory://")
