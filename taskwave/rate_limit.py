from fastapi import Request
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.util import get_remote_address

from .config import settings


def get_storage_uri() -> str:
    return settings.REDIS_URL or settings.RATE_LIMIT_STORAGE_URI


def client_key(request: Request) -> str:
    """Rate-limit key: first X-Forwarded-For hop when behind a trusted proxy."""
    if settings.TRUST_FORWARDED_FOR:
        forwarded = request.headers.get("X-Forwarded-For", "")
        first = forwarded.split(",")[0].strip()
        if first:
            return first
    return get_remote_address(request)


# Register and login are the only limited routes (see routers/auth.py)
limiter = Limiter(
    key_func=client_key,
    storage_uri=get_storage_uri(),
    headers_enabled=True,
    enabled=settings.RATE_LIMIT_ENABLED,
)

__all__ = ["limiter", "client_key", "_rate_limit_exceeded_handler"]
