import logging
import traceback
from typing import Any, Dict, Optional

from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from herbal_backend.middleware.tracing import TRACE_ID_CTX_VAR

logger = logging.getLogger("herbal")


class ApiError(Exception):
    """Error that maps directly onto an HTTP status and a user-facing message."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "Internal server error"

    def __init__(self, message: Optional[str] = None, status_code: Optional[int] = None,
                 extras: Optional[Dict[str, Any]] = None):
        super().__init__(message or self.default_message)
        self.message = message or self.default_message
        if status_code is not None:
            self.status_code = status_code
        self.extras = extras or {}


class InvalidInput(ApiError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Please provide symptoms to get herbal remedy suggestions."


class TooShort(ApiError):
    status_code = status.HTTP_400_BAD_REQUEST


class TooLong(ApiError):
    status_code = status.HTTP_400_BAD_REQUEST


class NotHealthRelated(ApiError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = (
        "Please provide health-related symptoms to receive relevant herbal remedy suggestions."
    )


class UpstreamTimeout(ApiError):
    status_code = status.HTTP_504_GATEWAY_TIMEOUT
    default_message = "Request to AI service timed out. Please try again."


class InsufficientResponse(ApiError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "Insufficient response from Google AI. Please try again."


class UpstreamAuthError(ApiError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Invalid Google AI API key. Please check your configuration."


class UpstreamQuotaExceeded(ApiError):
    status_code = status.HTTP_429_TOO_MANY_REQUESTS
    default_message = "API quota exceeded. Please try again later."


class UpstreamSafetyBlock(ApiError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = (
        "The content was blocked due to safety concerns. Please rephrase your symptoms."
    )


class UpstreamUnknownError(ApiError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "Failed to get a response from Google AI. Please try again later."


def status_to_code(status_code: int) -> str:
    mapping = {
        400: "BAD_REQUEST",
        401: "UNAUTHORIZED",
        403: "FORBIDDEN",
        404: "NOT_FOUND",
        405: "METHOD_NOT_ALLOWED",
        413: "PAYLOAD_TOO_LARGE",
        415: "UNSUPPORTED_MEDIA_TYPE",
        422: "UNPROCESSABLE_ENTITY",
        429: "TOO_MANY_REQUESTS",
        500: "INTERNAL_SERVER_ERROR",
        502: "BAD_GATEWAY",
        504: "GATEWAY_TIMEOUT",
    }
    return mapping.get(status_code, f"HTTP_{status_code}")


def _is_debug(request: Request) -> bool:
    settings = getattr(request.app.state, "settings", None)
    return bool(settings is not None and settings.debug)


def error_response(
    request: Request,
    status_code: int,
    message: str,
    details: Any = None,
    exc: Optional[BaseException] = None,
    headers: Optional[Dict[str, str]] = None,
) -> JSONResponse:
    """Render the shared error envelope.

    ``stack`` is only attached outside production.
    """
    body: Dict[str, Any] = {
        "status": "error",
        "code": status_to_code(status_code),
        "message": message,
        "trace_id": TRACE_ID_CTX_VAR.get(),
    }
    if details:
        body["details"] = details
    if exc is not None and _is_debug(request):
        body["stack"] = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
    return JSONResponse(status_code=status_code, content=body, headers=headers)


async def handle_api_error(request: Request, exc: ApiError):
    log = logger.error if exc.status_code >= 500 else logger.warning
    log({
        "function": "api_error",
        "path": str(request.url.path),
        "method": request.method,
        "status_code": exc.status_code,
        "error": type(exc).__name__,
        "message": exc.message,
    })
    return error_response(request, exc.status_code, exc.message, details=exc.extras or None, exc=exc)


async def handle_http_exception(request: Request, exc: StarletteHTTPException):
    if exc.status_code == status.HTTP_404_NOT_FOUND:
        message = f"Resource not found - {request.url.path}"
    else:
        message = exc.detail if isinstance(exc.detail, str) else "HTTP error"
    details = exc.detail if not isinstance(exc.detail, str) else None
    return error_response(request, exc.status_code, message, details=details,
                          headers=getattr(exc, "headers", None))


async def handle_validation_error(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    if any(err.get("type") == "json_invalid" for err in errors):
        return error_response(request, status.HTTP_400_BAD_REQUEST, "Invalid JSON payload")
    details = {
        "errors": [
            {
                "field": ".".join(str(p) for p in err.get("loc", ()) if p != "body") or "body",
                "message": err.get("msg", "Invalid value"),
            }
            for err in errors
        ]
    }
    return error_response(request, status.HTTP_400_BAD_REQUEST, "Validation failed", details=details)


async def handle_unhandled_exception(request: Request, exc: Exception):
    logger.exception("unhandled error on %s", request.url.path)
    details = str(exc) if _is_debug(request) else None
    return error_response(
        request,
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        "An unexpected error occurred",
        details=details,
        exc=exc,
    )
