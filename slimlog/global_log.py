"""A process-wide logger and shortcuts to it."""

from __future__ import annotations

import sys
from typing import Any, Optional

from .logger import Context, Event, Logger, new
from .sampler import Sampler

_logger: Logger = new(sys.stderr).with_().timestamp().logger()


def set_logger(logger: Logger) -> None:
    """Replace the global logger."""
    global _logger
    _logger = logger


def get_logger() -> Logger:
    """Return the global logger."""
    return _logger


def output(writer: Any) -> Logger:
    return _logger.output(writer)


def with_() -> Context:
    return _logger.with_()


def level(level: int) -> Logger:
    return _logger.level(level)


def sample(sampler: Optional[Sampler]) -> Logger:
    return _logger.sample(sampler)


def hook(h: Any) -> Logger:
    return _logger.hook(h)


def err(error: Optional[BaseException]) -> Event:
    return _logger.err(error)


def trace() -> Event:
    return _logger.trace()


def debug() -> Event:
    return _logger.debug()


def info() -> Event:
    return _logger.info()


def warn() -> Event:
    return _logger.warn()


def error() -> Event:
    return _logger.error()


def fatal() -> Event:
    return _logger.fatal()


def panic() -> Event:
    return _logger.panic()


def with_level(level: int) -> Event:
    return _logger.with_level(level)


def log() -> Event:
    return _logger.log()


def print_(*args: Any) -> None:
    """Log at debug level, joining arguments like the logger's print()."""
    _logger.print(*args)


def printf(fmt: str, *args: Any) -> None:
    _logger.debug().msgf(fmt, *args)