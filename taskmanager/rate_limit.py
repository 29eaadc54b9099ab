"""Per-client request throttling for the ``/api`` routes."""
import logging

from fastapi import Request
from fastapi.responses import JSONResponse
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address

from taskmanager.config import Settings
from taskmanager.errors import error_response

logger = logging.getLogger(__name__)

RATE_LIMIT_MESSAGE = "Too many requests from this IP, please try again later."


def build_limiter(settings: Settings) -> Limiter:
    """Limiter keyed on the client address; one counter is shared by every route."""
    return Limiter(
        key_func=get_remote_address,
        application_limits=[settings.rate_limit],
        enabled=settings.RATE_LIMIT_ENABLED,
    )


def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    logger.warning("Rate limit hit by %s on %s %s", get_remote_address(request), request.method, request.url.path)
    return error_response(429, RATE_LIMIT_MESSAGE)
