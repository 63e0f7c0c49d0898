# Number Chain - Collaborative Arithmetic Discussion Service
# Copyright (c) 2026 George Scott Foley
# ORCID: 0009-0006-4957-0540
# Email: Georgescottfoley@proton.me
# Licensed under the MIT License - see LICENSE file for details

"""
Request Context Middleware

Provides request ID propagation:
- Generates or accepts the X-Request-ID header
- Binds the request ID (and later the user id) into structured logging
- Logs request start/end with timing

Usage:
    app.add_middleware(RequestContextMiddleware)
"""

import logging
import secrets
import time
from collections.abc import Callable

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from ..observability.logging import bind_request, unbind_request

logger = logging.getLogger(__name__)


class RequestContextMiddleware(BaseHTTPMiddleware):
    """
    Middleware for request ID propagation and request logging.

    Configuration:
        app.add_middleware(
            RequestContextMiddleware,
            header_name="X-Request-ID",
            log_requests=True,
        )
    """

    def __init__(
        self,
        app,
        header_name: str = "X-Request-ID",
        generate_id: Callable[[], str] | None = None,
        log_requests: bool = True,
    ):
        super().__init__(app)
        self.header_name = header_name
        self.generate_id = generate_id or (lambda: secrets.token_hex(16))
        self.log_requests = log_requests

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        request_id = self._sanitize_request_id(
            request.headers.get(self.header_name) or self.generate_id()
        )
        start = time.perf_counter()

        context_tokens = bind_request(request_id)
        request.state.request_id = request_id

        try:
            if self.log_requests:
                logger.info(
                    f"Request started: {request.method} {request.url.path}",
                    extra={"method": request.method, "path": request.url.path},
                )

            response = await call_next(request)
            response.headers[self.header_name] = request_id

            if self.log_requests:
                duration_ms = (time.perf_counter() - start) * 1000
                logger.info(
                    f"Request completed: {request.method} {request.url.path} "
                    f"status={response.status_code} duration={duration_ms:.2f}ms",
                    extra={
                        "method": request.method,
                        "path": request.url.path,
                        "status_code": response.status_code,
                        "duration_ms": round(duration_ms, 2),
                    },
                )

            return response

        except Exception as e:
            logger.error(
                f"Request failed: {request.method} {request.url.path} error={type(e).__name__}",
                exc_info=True,
            )
            raise

        finally:
            unbind_request(context_tokens)

    def _sanitize_request_id(self, request_id: str) -> str:
        """Limit length and strip anything but alphanumerics, dash and underscore."""
        sanitized = "".join(c for c in request_id[:64] if c.isalnum() or c in "-_")
        return sanitized or self.generate_id()


__all__ = ["RequestContextMiddleware"]
