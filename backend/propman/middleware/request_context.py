"""
Request correlation middleware.

WHY: Log lines emitted from services and DAOs carry no request object.
Storing a small context in a ContextVar lets the logging filter stamp
every line with the request ID, so a blocked cross-organization write or
a failed backup can be traced back to the call that caused it.
"""

import uuid
from contextvars import ContextVar
from dataclasses import dataclass
from typing import Callable, Optional

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

REQUEST_ID_HEADER = "X-Request-ID"


@dataclass(frozen=True)
class RequestContext:
    request_id: str
    ip_address: str
    path: str
    method: str


_current: ContextVar[Optional[RequestContext]] = ContextVar("request_context", default=None)


def get_request_context() -> Optional[RequestContext]:
    """The context of the request being served, or None outside a request."""
    return _current.get()


def get_client_ip(request: Request) -> str:
    """
    Best guess at the caller's address.

    Proxy headers are trusted first (X-Real-IP, then the first
    X-Forwarded-For hop), then the socket peer.
    """
    real_ip = request.headers.get("X-Real-IP")
    if real_ip:
        return real_ip.strip()

    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip()

    if request.client and request.client.host:
        return request.client.host
    return "unknown"


class RequestContextMiddleware(BaseHTTPMiddleware):
    """
    Binds a RequestContext for the duration of each request.

    An incoming X-Request-ID is reused so a caller can correlate its own
    logs with ours; otherwise a UUID4 is generated. The ID is echoed on
    the response.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        context = RequestContext(
            request_id=request.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4()),
            ip_address=get_client_ip(request),
            path=request.url.path,
            method=request.method,
        )
        request.state.context = context
        token = _current.set(context)
        try:
            response = await call_next(request)
        finally:
            _current.reset(token)
        response.headers[REQUEST_ID_HEADER] = context.request_id
        return response
