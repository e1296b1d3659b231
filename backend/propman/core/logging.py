"""
Logging configuration.

WHY: Every module logs through logging.getLogger(__name__). This module
only decides where those records go and stamps each one with the ID of
the request that produced it, so interleaved async requests can be told
apart in the output.
"""

import logging
import sys
from typing import Optional

from propman.middleware.request_context import get_request_context

LOG_FORMAT = "%(asctime)s %(levelname)s [%(request_id)s] %(name)s: %(message)s"


class RequestIdFilter(logging.Filter):
    """Adds request_id to every record ("-" outside a request)."""

    def filter(self, record: logging.LogRecord) -> bool:
        context = get_request_context()
        record.request_id = context.request_id if context else "-"
        return True


def configure_logging(level: Optional[str] = None) -> None:
    """
    Install a single stream handler on the root logger.

    Safe to call more than once; an existing handler installed by this
    function is replaced rather than duplicated.

    Args:
        level: Log level name (defaults to settings.LOG_LEVEL)
    """
    from propman.core.config import settings

    root = logging.getLogger()
    for handler in list(root.handlers):
        if getattr(handler, "_propman_handler", False):
            root.removeHandler(handler)

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    handler.addFilter(RequestIdFilter())
    handler._propman_handler = True  # type: ignore[attr-defined]
    root.addHandler(handler)
    root.setLevel((level or settings.LOG_LEVEL).upper())

    # SQL echo goes through sqlalchemy.engine; keep it quiet unless debugging
    if not settings.DEBUG:
        logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
