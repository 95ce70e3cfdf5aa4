"""Logging helpers for py-frame.

The library never configures the root logger. Every module takes a child of
the ``py_frame`` logger; applications opt in with :func:`configure_logging`.
"""

import logging
import sys
from typing import Optional

ROOT_LOGGER_NAME = "py_frame"

logging.getLogger(ROOT_LOGGER_NAME).addHandler(logging.NullHandler())


def get_logger(name: str) -> logging.Logger:
    """Get a logger instance for a module.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Logger instance
    """
    if name != ROOT_LOGGER_NAME and not name.startswith(ROOT_LOGGER_NAME + "."):
        name = f"{ROOT_LOGGER_NAME}.{name}"
    return logging.getLogger(name)


def configure_logging(level: int = logging.INFO, stream=None, fmt: Optional[str] = None) -> logging.Logger:
    """Attach a stream handler to the ``py_frame`` logger.

    Safe to call more than once: the previously attached stream handler is
    replaced rather than duplicated.
    """
    logger = logging.getLogger(ROOT_LOGGER_NAME)
    for handler in list(logger.handlers):
        if getattr(handler, "_py_frame_handler", False):
            logger.removeHandler(handler)

    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setFormatter(logging.Formatter(
        fmt or "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    ))
    handler._py_frame_handler = True
    logger.addHandler(handler)
    logger.setLevel(level)
    return logger
