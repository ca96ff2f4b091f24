"""
Logging configuration.

WHAT: Installs a root handler whose format includes the request id.

WHY: Every module logs through logging.getLogger(__name__); this is the one
place that decides level and format, driven by LOG_LEVEL.
"""

import logging
from typing import Optional

from app.core.config import settings
from app.middleware.request_context import RequestIdLogFilter

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] [%(request_id)s] %(message)s"


def configure_logging(level: Optional[str] = None) -> None:
    """
    Configure the root logger once.

    Calling it again only adjusts the level.

    Args:
        level: Level name, defaults to settings.LOG_LEVEL
    """
    root = logging.getLogger()
    root.setLevel((level or settings.LOG_LEVEL).upper())

    if any(getattr(h, "_portal_handler", False) for h in root.handlers):
        return

    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    handler.addFilter(RequestIdLogFilter())
    handler._portal_handler = True
    root.addHandler(handler)
