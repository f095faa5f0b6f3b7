"""Request context for board views.

Every request gets an ID (``X-Request-ID``, kept when the client sends
one) and the public proxy path. Both land on ``request.state``; the ID is
also kept in a ``ContextVar`` so a refresh cycle started by the request
records which request triggered it.
"""

import logging
import uuid
from contextvars import ContextVar

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response
from starlette.types import ASGIApp

REQUEST_ID_HEADER = "X-Request-ID"

request_id_var: ContextVar[str | None] = ContextVar("request_id", default=None)


def current_request_id() -> str | None:
    return request_id_var.get()


class BoardRequestMiddleware(BaseHTTPMiddleware):
    """Attach request ID and proxy path to each board request."""

    def __init__(self, app: ASGIApp, proxy_path: str = "") -> None:
        super().__init__(app)
        self.proxy_path = proxy_path.rstrip("/") or None

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex
        request.state.request_id = request_id
        request.state.proxy_path = self.proxy_path
        token = request_id_var.set(request_id)
        try:
            response = await call_next(request)
        finally:
            request_id_var.reset(token)
        response.headers[REQUEST_ID_HEADER] = request_id
        return response


class RequestIDFilter(logging.Filter):
    """Stamp records with the current request ID unless one was passed in ``extra``."""

    def filter(self, record: logging.LogRecord) -> bool:
        if getattr(record, "request_id", None) is None:
            record.request_id = current_request_id()  # type: ignore[attr-defined]
        return True
