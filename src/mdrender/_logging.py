"""Logging configuration for mdrender.

Modules log through ``logging.getLogger(__name__)``. The CLI calls
``configure_logging()`` once at startup; the level comes from the
MDRENDER_LOG_LEVEL environment variable (default WARNING).
"""

import logging
import os
import sys


def configure_logging(level_name: str = None) -> None:
    """Attach a stderr handler to the package logger. Subsequent calls are no-ops."""
    root_logger = logging.getLogger("mdrender")
    if root_logger.handlers:
        return

    level_name = (level_name or os.environ.get("MDRENDER_LOG_LEVEL", "WARNING")).upper()
    level = getattr(logging, level_name, logging.WARNING)

    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(fmt="[%(levelname)s] %(name)s: %(message)s"))

    root_logger.setLevel(level)
    root_logger.addHandler(handler)
    root_logger.propagate = False
