"""
Logging setup - stdlib logging configured once at app startup.

Modules grab their own logger with logging.getLogger(__name__);
this only installs the root handler and level.
"""

import logging
import sys

from hireflow.core.config import get_settings

_FORMAT = "%(asctime)s  %(levelname)-8s  %(name)s  %(message)s"
_DATE_FMT = "%Y-%m-%d %H:%M:%S"
_configured = False


def configure_logging(level: str = None) -> None:
    """Install a stdout handler on the root logger (idempotent)."""
    global _configured
    if _configured:
        return

    level_name = (level or get_settings().log_level or "INFO").upper()
    root = logging.getLogger()
    root.setLevel(getattr(logging, level_name, logging.INFO))

    if not root.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(_FORMAT, datefmt=_DATE_FMT))
        root.addHandler(handler)

    # pymongo is chatty at DEBUG (heartbeats, pool events)
    logging.getLogger("pymongo").setLevel(logging.WARNING)
    _configured = True
