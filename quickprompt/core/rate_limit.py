"""Inbound rate limiting for the generate endpoint using slowapi.

This only protects the service from its own clients. Provider calls are
never retried or throttled here.
"""

from fastapi import Request
from fastapi.responses import JSONResponse
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address

from quickprompt.core.config import settings
from quickprompt.gateway.types import ClassifiedError, ErrorKind

limiter = Limiter(key_func=get_remote_address, enabled=settings.rate_limit_enabled)


def generate_limit() -> str:
    """Limit string for /generate, read per request so settings changes apply."""
    return settings.generate_rate_limit


def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    """Answer in the same ``{"error": ...}`` shape as provider failures."""
    error = ClassifiedError(
        ErrorKind.RATE_LIMIT,
        f"Too many generate requests from this address ({exc.detail}). Wait a moment and try again.",
        status_code=429,
        detail=str(exc.detail),
    )
    return JSONResponse(status_code=429, content={"error": error.to_dict()})
