from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from .logs import RequestLogContext

LIVENESS_HEADER = "X-Liveness-Probe"
LIVENESS_VALUE = "Healtz"


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Logs start and completion of every request; liveness checks are passed through unlogged."""

    def __init__(self, app, logger: logging.Logger):
        super().__init__(app)
        self.logger = logger

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        if request.headers.get(LIVENESS_HEADER) == LIVENESS_VALUE:
            return await call_next(request)

        client = request.client
        ctx = RequestLogContext(self.logger, {
            "http-scheme": request.url.scheme,
            "http-proto": f"HTTP/{request.scope.get('http_version', '1.1')}",
            "http-method": request.method,
            "remote-addr": f"{client.host}:{client.port}" if client else "",
            "user-agent": request.headers.get("user-agent", ""),
            "uri": str(request.url),
        })
        ctx.started()
        try:
            response = await call_next(request)
        except Exception as e:
            ctx.failed(e)
            raise
        ctx.completed(response.status_code)
        response.headers["X-Request-Id"] = ctx.request_id
        return response
