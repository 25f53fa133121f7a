"""
Logging setup shared by the application modules.
"""

import logging
import sys

from gatherly.core.config import get_settings

_LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def setup_logger(name: str) -> logging.Logger:
    """Return a logger writing to stdout at the configured level."""
    log = logging.getLogger(name)
    if not log.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(_LOG_FORMAT))
        log.addHandler(handler)
        log.propagate = False
    log.setLevel(get_settings().LOG_LEVEL.upper())
    return log


logger = setup_logger("gatherly")
