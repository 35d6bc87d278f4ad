import logging

from fastapi import Request
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address

from herbal_backend.utils.exceptions import error_response

logger = logging.getLogger("herbal")

DEFAULT_RATE_LIMIT = "100/15 minutes"
RATE_LIMIT_MESSAGE = "Too many requests from this IP, please try again later."

limiter = Limiter(key_func=get_remote_address, default_limits=[])

_current_limit = DEFAULT_RATE_LIMIT


def configure_rate_limit(value: str) -> None:
    """Set the per-IP limit applied to the remedy endpoint (slowapi syntax)."""
    global _current_limit
    _current_limit = value or DEFAULT_RATE_LIMIT


def current_rate_limit() -> str:
    return _current_limit


async def rate_limit_handler(request: Request, exc: RateLimitExceeded):
    try:
        retry_after = max(1, int(exc.limit.limit.get_expiry()))
    except AttributeError:
        retry_after = 60
    logger.info({
        "function": "rate_limit",
        "path": str(request.url.path),
        "client": get_remote_address(request),
    })
    return error_response(
        request,
        429,
        RATE_LIMIT_MESSAGE,
        headers={"Retry-After": str(retry_after)},
    )
