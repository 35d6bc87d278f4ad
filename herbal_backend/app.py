# --- imports (top of herbal_backend/app.py) ---
import logging
from typing import Optional

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from slowapi.errors import RateLimitExceeded
from starlette.exceptions import HTTPException as StarletteHTTPException

from herbal_backend import __version__
from herbal_backend.config import Settings
from herbal_backend.middleware.security import BodySizeLimitMiddleware, SecurityHeadersMiddleware
from herbal_backend.middleware.tracing import TracingMiddleware
from herbal_backend.routes import herbal_routes
from herbal_backend.services.gemini import GeminiClient
from herbal_backend.utils.exceptions import (
    ApiError,
    handle_api_error,
    handle_http_exception,
    handle_unhandled_exception,
    handle_validation_error,
)
from herbal_backend.utils.logging_setup import configure_logging
from herbal_backend.utils.rate_limit import configure_rate_limit, limiter, rate_limit_handler

logger = logging.getLogger("herbal")


def create_app(settings: Optional[Settings] = None, ai_client=None) -> FastAPI:
    """Build the FastAPI application.

    Settings come from the environment when not given, which raises
    ConfigError if no Google AI key is configured. The AI client is built
    here once and handed to routes through app.state.
    """
    configure_logging()
    if settings is None:
        settings = Settings.from_env()

    owns_client = ai_client is None
    if owns_client:
        ai_client = GeminiClient(settings.google_api_key, base_url=settings.gemini_base_url)

    app = FastAPI(title="Herbal AI Backend", version=__version__, debug=False)
    app.state.settings = settings
    app.state.ai_client = ai_client

    # ---- Rate limiting (slowapi) ----
    configure_rate_limit(settings.rate_limit)
    app.state.limiter = limiter

    # ---- Middleware (last added runs first) ----
    app.add_middleware(BodySizeLimitMiddleware, max_bytes=settings.max_body_bytes)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization"],
    )
    app.add_middleware(
        TracingMiddleware,
        access_log=not settings.is_test,
        error_handler=handle_unhandled_exception,
    )
    app.add_middleware(SecurityHeadersMiddleware)

    # ---- Error envelope ----
    app.add_exception_handler(ApiError, handle_api_error)
    app.add_exception_handler(RateLimitExceeded, rate_limit_handler)
    app.add_exception_handler(RequestValidationError, handle_validation_error)
    app.add_exception_handler(StarletteHTTPException, handle_http_exception)
    app.add_exception_handler(Exception, handle_unhandled_exception)

    app.include_router(herbal_routes.router)

    @app.on_event("startup")
    async def _log_startup():
        logger.info({
            "function": "startup",
            "environment": settings.environment,
            "classifier_model": settings.classifier_model,
            "remedy_model": settings.remedy_model,
            "rate_limit": settings.rate_limit,
        })

    @app.on_event("shutdown")
    async def _close_ai_client():
        if owns_client:
            await ai_client.aclose()

    return app
