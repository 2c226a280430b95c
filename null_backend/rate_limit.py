"""Rate limiting globale / Global rate limiter.

Utilizza slowapi per limitare le richieste per IP.
"""

from slowapi import Limiter
from slowapi.util import get_remote_address

from null_backend.config import settings

limiter = Limiter(key_func=get_remote_address, enabled=settings.RATE_LIMIT_ENABLED)
