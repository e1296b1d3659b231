"""
Middleware package.

WHY: Middleware provides cross-cutting concerns (request correlation)
that apply to all requests.
"""

from propman.middleware.request_context import (
    RequestContext,
    RequestContextMiddleware,
    get_client_ip,
    get_request_context,
)

__all__ = [
    "RequestContext",
    "RequestContextMiddleware",
    "get_client_ip",
    "get_request_context",
]
