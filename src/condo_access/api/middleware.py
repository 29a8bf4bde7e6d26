"""Per-request correlation id and access log line."""

import time
import uuid

import structlog
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

logger = structlog.get_logger()

REQUEST_ID_HEADER = "X-Request-Id"

UNLOGGED_PATHS: frozenset[str] = frozenset(
    {"/health", "/docs", "/openapi.json", "/redoc"}
)


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Emit one ``http_request`` event per API call.

    A caller-supplied ``X-Request-Id`` is reused, otherwise one is minted.
    It is bound into structlog contextvars before the route runs, so the
    identity and tenant events logged by the access dependencies carry
    it too, and it is echoed on the response.
    """

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        path = request.url.path
        if path in UNLOGGED_PATHS:
            return await call_next(request)

        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex
        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(request_id=request_id)

        started = time.perf_counter()
        response = await call_next(request)
        response.headers[REQUEST_ID_HEADER] = request_id

        log = logger.warning if response.status_code >= 500 else logger.info
        log(
            "http_request",
            method=request.method,
            path=path,
            status_code=response.status_code,
            latency_ms=round((time.perf_counter() - started) * 1000),
        )
        return response
