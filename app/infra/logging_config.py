"""
Logging configuration for the whole service.
Call setup_logging() once at startup (create_app).
"""

import logging
import sys
from typing import Optional

LOGGER_NAMESPACE = "app"
_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"


def setup_logging(level: str = "INFO") -> None:
    """Configure logging to stdout for the 'app' namespace. Safe to call twice."""
    root = logging.getLogger(LOGGER_NAMESPACE)
    root.setLevel(level.upper())
    if any(getattr(h, "_inbox_relay", False) for h in root.handlers):
        return
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(_FORMAT))
    handler._inbox_relay = True  # type: ignore[attr-defined]
    root.addHandler(handler)


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Return a logger under the 'app' namespace."""
    if not name:
        return logging.getLogger(LOGGER_NAMESPACE)
    if name.startswith(LOGGER_NAMESPACE):
        return logging.getLogger(name)
    return logging.getLogger(f"{LOGGER_NAMESPACE}.{name}")
