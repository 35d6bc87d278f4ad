import logging
import time
import uuid
from contextvars import ContextVar
from typing import Awaitable, Callable, Optional

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response
from starlette.types import ASGIApp

TRACE_ID_CTX_VAR: ContextVar[str] = ContextVar("trace_id", default="")

TRACE_HEADER = "x-trace-id"

logger = logging.getLogger("herbal")

ErrorHandler = Callable[[Request, Exception], Awaitable[Response]]


class TracingMiddleware(BaseHTTPMiddleware):
    """
    Middleware to add a trace_id to every request and response.
    The trace_id is also stored in a context variable for logging.
    When access_log is on, one line per request is written with the
    method, path, status and duration.
    An error_handler turns exceptions escaping the app into a response
    here, so the trace header and outer middleware still apply to it.
    """

    def __init__(
        self,
        app: ASGIApp,
        access_log: bool = True,
        error_handler: Optional[ErrorHandler] = None,
    ) -> None:
        super().__init__(app)
        self.access_log = access_log
        self.error_handler = error_handler

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        incoming = (request.headers.get(TRACE_HEADER) or "").strip()
        trace_id = incoming[:64] if incoming else str(uuid.uuid4())
        TRACE_ID_CTX_VAR.set(trace_id)
        request.state.trace_id = trace_id

        started = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception as exc:
            if self.error_handler is None:
                raise
            response = await self.error_handler(request, exc)

        # Propagate trace id to client; header names are case-insensitive
        response.headers[TRACE_HEADER] = trace_id
        if self.access_log:
            logger.info({
                "function": "access",
                "method": request.method,
                "path": request.url.path,
                "status_code": response.status_code,
                "duration_ms": round((time.perf_counter() - started) * 1000, 1),
            })
        return response
