"""
ProfileHub Backend — Request ID Middleware
============================================

What:  Assigns an ID to each request and echoes it in the X-Request-ID header.
Why:   Lets every log line from one request be correlated, and lets a client
       quote the ID when reporting a failed call.
How:   Uses the client's X-Request-ID if sent, otherwise a short UUID.
       The ID lives in a ContextVar, which is per-coroutine in async code.
"""

import uuid
from contextvars import ContextVar

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

request_id_var: ContextVar[str] = ContextVar("request_id", default="")


class RequestIDMiddleware(BaseHTTPMiddleware):
    """Sets request_id_var and request.state.request_id for the request's lifetime."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        # 8 chars is enough for correlation and readable in logs
        rid = request.headers.get("X-Request-ID") or str(uuid.uuid4())[:8]

        token = request_id_var.set(rid)
        request.state.request_id = rid
        try:
            response = await call_next(request)
        finally:
            request_id_var.reset(token)

        response.headers["X-Request-ID"] = rid
        return response
