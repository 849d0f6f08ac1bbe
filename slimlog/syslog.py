"""Routing of log lines to the matching priority of a syslog writer."""

from __future__ import annotations

from typing import Any, Optional, Protocol

from .levels import Level
from .writers import LevelWriter

CEE_PREFIX = "@cee:"

_METHODS = {
    Level.DEBUG: "debug",
    Level.INFO: "info",
    Level.WARN: "warning",
    Level.ERROR: "err",
    Level.FATAL: "emerg",
    Level.PANIC: "crit",
    Level.NO_LEVEL: "info",
}


class _SyslogTarget(Protocol):
    def write(self, data: bytes) -> Optional[int]: ...
    def debug(self, message: str) -> Any: ...
    def info(self, message: str) -> Any: ...
    def warning(self, message: str) -> Any: ...
    def err(self, message: str) -> Any: ...
    def emerg(self, message: str) -> Any: ...
    def crit(self, message: str) -> Any: ...


class SyslogLevelWriter(LevelWriter):
    """Calls the syslog method matching each line's level.

    Trace lines are dropped; lines without a level go to ``info``.
    """

    def __init__(self, writer: _SyslogTarget, prefix: str = "") -> None:
        self.writer = writer
        self.prefix = prefix

    def write(self, data: bytes) -> int:
        count = 0
        if self.prefix:
            prefix = self.prefix.encode()
            result = self.writer.write(prefix)
            count += len(prefix) if result is None else result
        result = self.writer.write(data)
        return count + (len(data) if result is None else result)

    def write_level(self, level: Level, data: bytes) -> int:
        if level == Level.TRACE:
            return len(data)
        method = _METHODS.get(int(level))
        if method is None:
            raise ValueError("invalid level")
        getattr(self.writer, method)(self.prefix + bytes(data).decode("utf-8", errors="replace"))
        # The prefix is not part of the message, so it is not counted.
        return len(data)

    def close(self) -> None:
        """Close the wrapped writer if it can be closed."""
        closer = getattr(self.writer, "close", None)
        if callable(closer):
            closer()


def syslog_level_writer(writer: _SyslogTarget) -> SyslogLevelWriter:
    """Wrap a syslog writer so each line goes to its level's priority."""
    return SyslogLevelWriter(writer)


def syslog_cee_writer(writer: _SyslogTarget) -> SyslogLevelWriter:
    """Like :func:`syslog_level_writer`, prefixing lines with the CEE marker."""
    return SyslogLevelWriter(writer, CEE_PREFIX)