from slowapi import Limiter

from app.features.admins.dependencies import get_authorization_header

# Keyed by the bearer token so limits apply per session
limiter = Limiter(key_func=get_authorization_header)
