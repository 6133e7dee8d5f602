"""
Logging helpers for pyorm.

Modules log through ``logging.getLogger(__name__)``; this module only wires a
handler onto the ``pyorm`` root logger for applications that do not configure
logging themselves.
"""

import logging
import sys
from typing import Optional, Union

ROOT_LOGGER = "pyorm"

DEFAULT_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

# Library code must not print unless the application asks for it
logging.getLogger(ROOT_LOGGER).addHandler(logging.NullHandler())


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Get a logger below the pyorm namespace"""
    if not name or name == ROOT_LOGGER:
        return logging.getLogger(ROOT_LOGGER)
    if not name.startswith(ROOT_LOGGER + "."):
        name = f"{ROOT_LOGGER}.{name}"
    return logging.getLogger(name)


def configure_logging(level: Union[int, str] = logging.INFO,
                      fmt: str = DEFAULT_FORMAT,
                      stream=None) -> logging.Logger:
    """Attach a stream handler to the pyorm logger and set its level"""
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())

    logger = logging.getLogger(ROOT_LOGGER)
    logger.setLevel(level)

    # Remove existing handlers to avoid duplicates
    for handler in logger.handlers[:]:
        if not isinstance(handler, logging.NullHandler):
            logger.removeHandler(handler)

    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setFormatter(logging.Formatter(fmt))
    logger.addHandler(handler)
    return logger
