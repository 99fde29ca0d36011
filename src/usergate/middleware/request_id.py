"""Request ID middleware — unique ID per request for tracing.

Learn: Every request gets a UUID, either from the incoming
X-Request-ID header (for distributed tracing) or auto-generated.
The ID, method and path are bound to structlog's contextvars so they
appear in every log entry for that request (including the gate's
rejections and dependency failures), and the ID is returned in the
response header.

Exceptions no handler claimed are caught here, logged, and turned into
the usual JSON error envelope, so even a 500 carries the request ID.
"""

import uuid

import structlog
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from usergate.errors import UsergateError

logger = structlog.get_logger()


class RequestIdMiddleware(BaseHTTPMiddleware):
    """Generate and propagate a unique request ID."""

    async def dispatch(self, request: Request, call_next) -> Response:
        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        request.state.request_id = request_id

        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(
            request_id=request_id,
            method=request.method,
            path=request.url.path,
        )

        try:
            response: Response = await call_next(request)
        except Exception as e:
            logger.exception("api.unhandled_error", error=type(e).__name__)
            response = JSONResponse(
                status_code=UsergateError.status_code,
                content={"error": UsergateError.message, "code": UsergateError.code},
            )
        response.headers["X-Request-ID"] = request_id
        return response
