"""
ProfileHub Backend — Request Logging Middleware
=================================================

What:  Writes one access line per request to the `profilehub.access` logger.
How:   Runs inside RequestIDMiddleware, so the line carries the request ID
       set there. Multipart requests (registration and image uploads) also
       log their declared body size.

Never logged: form fields and JSON bodies (they hold plaintext passwords),
uploaded file bytes.
"""

import logging
import time
from typing import Optional

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from app.middleware.request_id import request_id_var

logger = logging.getLogger("profilehub.access")

# Container probes hit this every few seconds
QUIET_PATHS = frozenset({"/health"})


def level_for_status(status: int) -> int:
    if status >= 500:
        return logging.ERROR
    if status >= 400:
        return logging.WARNING
    return logging.INFO


def _upload_size(request: Request) -> Optional[int]:
    content_type = request.headers.get("content-type", "")
    if not content_type.startswith("multipart/"):
        return None
    try:
        return int(request.headers.get("content-length", ""))
    except ValueError:
        return None


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Access log: `METHOD path status duration [request-id] client (upload size)`."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        if request.url.path in QUIET_PATHS:
            return await call_next(request)

        started = time.perf_counter()
        response = await call_next(request)
        elapsed_ms = (time.perf_counter() - started) * 1000

        client = request.client.host if request.client else "-"
        upload_size = _upload_size(request)
        suffix = f" upload={upload_size}B" if upload_size is not None else ""

        logger.log(
            level_for_status(response.status_code),
            "%s %s %d %.1fms [%s] %s%s",
            request.method,
            request.url.path,
            response.status_code,
            elapsed_ms,
            request_id_var.get(""),
            client,
            suffix,
        )
        return response
