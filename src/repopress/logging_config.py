"""Logging configuration.

Applies the levels from Settings so that the HTTP stack (urllib3 connection
pool chatter, retry warnings) can be silenced without affecting repopress's
own loggers.

Usage:
    from repopress.logging_config import setup_logging
    setup_logging()   # once, at startup
"""

import logging
import sys
from typing import Optional

from .config import Settings, get_settings

_HTTP_LOGGERS = ("urllib3", "requests")


def _parse_level(raw: str) -> int:
    level = logging.getLevelName(str(raw).upper())
    return level if isinstance(level, int) else logging.INFO


def setup_logging(settings: Optional[Settings] = None) -> None:
    """Configure logging levels from settings."""
    settings = settings or get_settings()

    root = logging.getLogger()
    root.setLevel(_parse_level(settings.log_level))

    # Scripts and tests may start without any handler installed
    if not root.handlers:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(
            logging.Formatter("%(asctime)s %(levelname)-8s %(name)s: %(message)s")
        )
        root.addHandler(handler)

    http_level = _parse_level(settings.log_level_http)
    for name in _HTTP_LOGGERS:
        logging.getLogger(name).setLevel(http_level)

    logging.getLogger(__name__).debug(
        "Logging configured: root=%s http=%s", settings.log_level, settings.log_level_http
    )
