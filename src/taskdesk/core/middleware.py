"""HTTP middleware for request correlation."""

from __future__ import annotations

import logging
import time
import uuid

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response
from starlette.types import ASGIApp

from .context import (
    REQUEST_ID_HEADER,
    bind_request_id,
    bind_user_id,
    reset_request_id,
    reset_user_id,
)

logger = logging.getLogger(__name__)


class CorrelationIdMiddleware(BaseHTTPMiddleware):
    """Bind a request id for the lifetime of each request and echo it back.

    The id is taken from the incoming ``X-Request-ID`` header when the client
    supplies one, otherwise a fresh UUID is generated. One access log line is
    emitted per request with its method, path, status and duration.
    """

    def __init__(self, app: ASGIApp, header_name: str = REQUEST_ID_HEADER) -> None:
        super().__init__(app)
        self._header_name = header_name

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        request_id = request.headers.get(self._header_name) or str(uuid.uuid4())
        request.state.request_id = request_id
        request_token = bind_request_id(request_id)
        user_token = bind_user_id(None)
        started = time.perf_counter()
        try:
            response = await call_next(request)
            logger.info(
                "%s %s -> %s",
                request.method,
                request.url.path,
                response.status_code,
                extra={"duration_ms": round((time.perf_counter() - started) * 1000, 2)},
            )
        finally:
            reset_user_id(user_token)
            reset_request_id(request_token)
        response.headers.setdefault(self._header_name, request_id)
        return response


__all__ = ["CorrelationIdMiddleware"]
