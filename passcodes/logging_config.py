"""Logger setup for the passcode service.

Every handler carries `PasscodeRedactFilter`, so passcode values that reach a
log line through request paths (our middleware or uvicorn's access log) are
written as `***`.
"""

import logging
import os
import re
import sys
from logging.handlers import RotatingFileHandler
from typing import List

from . import config


_UVICORN_LOGGERS = ("uvicorn", "uvicorn.error", "uvicorn.access")
_PASSCODE_IN_PATH = re.compile(r"(/api/passcodes/)-?\d+")
_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"


def mask_passcodes(text: str) -> str:
    """Replace passcode path segments in `text` with `***`."""
    return _PASSCODE_IN_PATH.sub(r"\1***", str(text or ""))


class PasscodeRedactFilter(logging.Filter):
    """Mask passcode path segments in a record's message and string args."""

    def filter(self, record: logging.LogRecord) -> bool:
        if isinstance(record.msg, str):
            record.msg = mask_passcodes(record.msg)
        if isinstance(record.args, tuple):
            record.args = tuple(mask_passcodes(a) if isinstance(a, str) else a for a in record.args)
        return True


def _level() -> int:
    return logging.DEBUG if config.DEBUG else logging.INFO


def _mute_uvicorn() -> None:
    for name in _UVICORN_LOGGERS:
        ul = logging.getLogger(name)
        ul.handlers.clear()
        ul.propagate = False
        ul.setLevel(logging.CRITICAL)


def _build_handlers(level: int) -> List[logging.Handler]:
    """Create the file handler and, when enabled, the console handler."""
    os.makedirs(config.DATA_DIR, exist_ok=True)
    fmt = logging.Formatter(_FORMAT)
    redact = PasscodeRedactFilter()

    handlers: List[logging.Handler] = [
        RotatingFileHandler(config.LOG_FILE, maxBytes=2_000_000, backupCount=3, encoding="utf-8")
    ]
    if config.CONSOLE_LOG:
        handlers.append(logging.StreamHandler(sys.stdout))
    for h in handlers:
        h.setFormatter(fmt)
        h.setLevel(level)
        h.addFilter(redact)
    return handlers


def setup_logging() -> logging.Logger:
    """Set up the `passcodes` logger and route uvicorn through the same handlers."""
    logger = logging.getLogger("passcodes")
    level = _level()
    logger.setLevel(level)

    if not config.LOG_ENABLED:
        logger.handlers.clear()
        logger.addHandler(logging.NullHandler())
        logger.propagate = False
        _mute_uvicorn()
        return logger

    if logger.handlers:
        return logger

    handlers = _build_handlers(level)
    for h in handlers:
        logger.addHandler(h)

    for name in _UVICORN_LOGGERS:
        ul = logging.getLogger(name)
        ul.handlers.clear()
        ul.propagate = False
        ul.setLevel(level)
        for h in handlers:
            ul.addHandler(h)

    return logger


log = setup_logging()


def reload_logging() -> logging.Logger:
    """Close current handlers and rebuild them from configuration."""
    logger = logging.getLogger("passcodes")
    for h in list(logger.handlers):
        try:
            h.close()
        except Exception:
            pass
    logger.handlers.clear()
    logger.propagate = True

    for name in _UVICORN_LOGGERS:
        ul = logging.getLogger(name)
        ul.handlers.clear()
        ul.propagate = True

    return setup_logging()
