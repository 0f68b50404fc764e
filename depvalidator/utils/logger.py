"""
Logging utilities for depvalidator.

This module centralizes logger configuration, formatting, and retrieval
for the depvalidator package. Every handler installed by
:func:`setup_logging` carries a :class:`RedactingFilter`, so access tokens
registered through :func:`register_secret` never reach log output.
"""

from __future__ import annotations

import os
import sys
import logging
import threading
from typing import IO, Optional, Set

from depvalidator.constants import (
    LOG_DATE_FORMAT,
    LOG_DEFAULT_FORMAT,
    LOG_VERBOSE_FORMAT,
)

ROOT_LOGGER_NAME = "depvalidator"
REDACTED = "***"

_logging_configured: bool = False
_lock = threading.Lock()
_secrets: Set[str] = set()


class ColoredFormatter(logging.Formatter):
    """Logging formatter with optional ANSI color support."""

    COLORS = {
        "DEBUG": "\033[36m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[35m",
    }
    RESET = "\033[0m"

    def __init__(
        self,
        fmt: str,
        *,
        datefmt: Optional[str] = None,
        use_color: bool = True,
    ) -> None:
        super().__init__(fmt=fmt, datefmt=datefmt)
        self.use_color = use_color

    def format(self, record: logging.LogRecord) -> str:
        if self.use_color and self._should_use_color():
            color = self.COLORS.get(record.levelname)
            if color:
                record.levelname = f"{color}{record.levelname}{self.RESET}"
        return super().format(record)

    @staticmethod
    def _should_use_color() -> bool:
        """Determine whether ANSI colors should be emitted."""
        if os.environ.get("NO_COLOR"):
            return False
        if os.environ.get("CI"):
            return False
        try:
            return sys.stderr.isatty()
        except (AttributeError, OSError):
            return False


class RedactingFilter(logging.Filter):
    """Mask every registered secret in a record's rendered message."""

    def filter(self, record: logging.LogRecord) -> bool:
        if not _secrets:
            return True

        message = record.getMessage()
        redacted = redact(message)
        if redacted != message:
            record.msg = redacted
            record.args = None
        return True


def register_secret(secret: Optional[str]) -> None:
    """Register a credential that must never appear in log output."""
    if secret:
        with _lock:
            _secrets.add(secret)


def clear_secrets() -> None:
    """Forget all registered secrets."""
    with _lock:
        _secrets.clear()


def redact(text: str, *extra: Optional[str]) -> str:
    """Replace registered secrets (and any ``extra`` ones) in ``text``."""
    for secret in (*_secrets, *extra):
        if secret:
            text = text.replace(secret, REDACTED)
    return text


def setup_logging(
    *,
    level: int = logging.INFO,
    verbose: bool = False,
    stream: Optional[IO[str]] = None,
) -> None:
    """Configure logging for depvalidator.

    Safe to call multiple times; configuration is protected by a
    process-wide lock and replaces previously installed handlers.

    Args:
        level: Logging level (e.g., ``logging.INFO``, ``logging.DEBUG``).
        verbose: Enable verbose formatting with timestamps.
        stream: Output stream; defaults to ``sys.stderr``.
    """
    global _logging_configured

    with _lock:
        root_logger = logging.getLogger(ROOT_LOGGER_NAME)
        root_logger.handlers.clear()
        root_logger.setLevel(level)

        handler = logging.StreamHandler(stream or sys.stderr)
        handler.setLevel(level)
        handler.addFilter(RedactingFilter())

        fmt = LOG_VERBOSE_FORMAT if verbose else LOG_DEFAULT_FORMAT
        formatter = ColoredFormatter(
            fmt,
            datefmt=LOG_DATE_FORMAT,
            use_color=not os.environ.get("NO_COLOR"),
        )
        handler.setFormatter(formatter)

        root_logger.addHandler(handler)
        root_logger.propagate = False
        _logging_configured = True


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Return a logger within the depvalidator namespace.

    Args:
        name: Logger name, e.g. ``"parser"`` or ``"depvalidator.parser"``.

    Returns:
        A logger instance under the ``depvalidator`` hierarchy.
    """
    if not name or name == ROOT_LOGGER_NAME:
        logger = logging.getLogger(ROOT_LOGGER_NAME)
    elif name.startswith(f"{ROOT_LOGGER_NAME}."):
        logger = logging.getLogger(name)
    else:
        logger = logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")

    # Ensure library-safe behavior if logging is not configured
    if not logger.handlers and (not logger.parent or not logger.parent.handlers):
        logger.addHandler(logging.NullHandler())

    return logger


def is_logging_configured() -> bool:
    """Return True if depvalidator logging has been configured."""
    return _logging_configured


def disable_logging() -> None:
    """Disable all depvalidator logging output."""
    global _logging_configured

    with _lock:
        root_logger = logging.getLogger(ROOT_LOGGER_NAME)
        root_logger.handlers.clear()
        root_logger.addHandler(logging.NullHandler())
        root_logger.setLevel(logging.NOTSET)
        _logging_configured = False
