"""Per-request log context and access logging.

Each request gets an ID, taken from a well-formed ``X-Request-ID`` header or
freshly generated, which is echoed on the response and bound into structlog
contextvars together with the method and path.  Once the response is ready a
``Request finished`` line records its status and latency.
"""

from __future__ import annotations

import re
import time
import uuid
from collections.abc import Collection

import structlog
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response
from starlette.types import ASGIApp

logger = structlog.get_logger()

REQUEST_ID_HEADER = "X-Request-ID"

# Client-supplied IDs end up in every log line of the request.
_REQUEST_ID_PATTERN = re.compile(r"^[A-Za-z0-9._:-]{1,128}$")


def resolve_request_id(supplied: str | None) -> str:
    """Return *supplied* if it is a safe request ID, otherwise a new UUID4."""
    if supplied and _REQUEST_ID_PATTERN.match(supplied):
        return supplied
    return str(uuid.uuid4())


class RequestIdMiddleware(BaseHTTPMiddleware):
    """Bind request context for logging and write one access log line per request.

    Args:
        app: The wrapped ASGI application.
        service: Value of the ``service`` field bound into every log entry.
        quiet_paths: Paths served without an access log line.
    """

    def __init__(
        self,
        app: ASGIApp,
        service: str = "collabhub",
        quiet_paths: Collection[str] = ("/health", "/ready", "/metrics"),
    ) -> None:
        super().__init__(app)
        self._service = service
        self._quiet_paths = frozenset(quiet_paths)

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        request_id = resolve_request_id(request.headers.get(REQUEST_ID_HEADER))
        path = request.url.path
        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(
            request_id=request_id,
            service=self._service,
            method=request.method,
            path=path,
        )

        started = time.perf_counter()
        response = await call_next(request)
        response.headers[REQUEST_ID_HEADER] = request_id

        if path not in self._quiet_paths:
            logger.info(
                "Request finished",
                status_code=response.status_code,
                duration_ms=round((time.perf_counter() - started) * 1000, 1),
            )
        return response
