"""Writers that receive rendered log lines, optionally with their level."""

from __future__ import annotations

import inspect
import io
import os
import threading
from abc import ABC, abstractmethod
from typing import Any, Callable, List, Optional, Tuple

from .levels import Level


class ShortWriteError(OSError):
    """A writer accepted fewer bytes than it was given."""

    def __init__(self, message: str = "short write") -> None:
        super().__init__(message)


class LevelWriter(ABC):
    """A writer that can also receive the level of each line."""

    @abstractmethod
    def write(self, data: bytes) -> int:
        """Write ``data`` and return the number of bytes written."""

    @abstractmethod
    def write_level(self, level: Level, data: bytes) -> int:
        """Write ``data`` logged at ``level`` and return the bytes written."""


def _is_level_writer(writer: Any) -> bool:
    return callable(getattr(writer, "write_level", None))


def _close(writer: Any) -> None:
    closer = getattr(writer, "close", None)
    if callable(closer):
        closer()


def _written(result: Optional[int], data: bytes) -> int:
    return len(data) if result is None else result


class _Discard:
    """A sink that accepts and drops everything."""

    def write(self, data: bytes) -> int:
        return len(data)


class LevelWriterAdapter(LevelWriter):
    """Gives a plain writer the level-writer interface, ignoring the level.

    Text streams such as ``sys.stderr`` receive the data decoded as UTF-8.
    """

    def __init__(self, writer: Any) -> None:
        self.writer = writer

    def write(self, data: bytes) -> int:
        if isinstance(self.writer, io.TextIOBase):
            self.writer.write(bytes(data).decode("utf-8", errors="replace"))
            return len(data)
        return _written(self.writer.write(data), data)

    def write_level(self, level: Level, data: bytes) -> int:
        return self.write(data)

    def close(self) -> None:
        """Close the wrapped writer if it can be closed."""
        _close(self.writer)


def as_level_writer(writer: Any) -> LevelWriter:
    """Return ``writer`` as a level writer; ``None`` gives a discarding one."""
    if writer is None:
        return LevelWriterAdapter(_Discard())
    if _is_level_writer(writer):
        return writer
    return LevelWriterAdapter(writer)


class SyncWriter(LevelWriter):
    """Serialises every call to the wrapped writer with a lock."""

    def __init__(self, writer: Any) -> None:
        self._writer = as_level_writer(writer)
        self._lock = threading.Lock()

    def write(self, data: bytes) -> int:
        with self._lock:
            return _written(self._writer.write(data), data)

    def write_level(self, level: Level, data: bytes) -> int:
        with self._lock:
            return _written(self._writer.write_level(level, data), data)

    def close(self) -> None:
        """Close the wrapped writer if it can be closed."""
        with self._lock:
            _close(self._writer)


class MultiLevelWriter(LevelWriter):
    """Duplicates every write to all its writers, like tee(1).

    Every writer is called even when an earlier one fails; the first
    failure is raised once all have been called.
    """

    def __init__(self, *writers: Any) -> None:
        self.writers = tuple(as_level_writer(w) for w in writers)

    def _fan_out(self, call: Callable[[LevelWriter], Optional[int]], data: bytes) -> int:
        count = 0
        error: Optional[BaseException] = None
        for writer in self.writers:
            try:
                result = call(writer)
            except Exception as exc:  # noqa: BLE001 - first failure is re-raised
                if error is None:
                    error = exc
                continue
            if error is None:
                count = _written(result, data)
                if count != len(data):
                    error = ShortWriteError()
        if error is not None:
            raise error
        return count

    def write(self, data: bytes) -> int:
        return self._fan_out(lambda w: w.write(data), data)

    def write_level(self, level: Level, data: bytes) -> int:
        return self._fan_out(lambda w: w.write_level(level, data), data)

    def close(self) -> None:
        """Close each writer in turn; the first failure stops the rest."""
        for writer in self.writers:
            _close(writer)


class TestingLogWriter:
    """Sends each written line, without trailing newlines, to a test log sink.

    With ``frame`` above zero the line is prefixed with ``file:line`` of the
    frame that many levels above the caller of :meth:`write`.
    """

    __test__ = False

    def __init__(self, sink: Callable[[str], Any], frame: int = 0) -> None:
        self.sink = sink
        self.frame = frame

    def write(self, data: bytes) -> int:
        count = len(data)
        text = bytes(data).rstrip(b"\n").decode("utf-8", errors="replace")
        if self.frame > 0:
            frame = inspect.currentframe()
            for _ in range(1 + self.frame):
                frame = frame.f_back if frame is not None else None
            if frame is not None:
                location = f"{os.path.basename(frame.f_code.co_filename)}:{frame.f_lineno}"
                del frame
                self.sink(f"{location}: {text}")
                return count
        self.sink(text)
        return count


class FilteredLevelWriter(LevelWriter):
    """Passes on only lines at ``level`` or above."""

    def __init__(self, writer: Any, level: int) -> None:
        self.writer = as_level_writer(writer)
        self.level = Level(level)

    def write(self, data: bytes) -> int:
        return _written(self.writer.write(data), data)

    def write_level(self, level: Level, data: bytes) -> int:
        if level >= self.level:
            return _written(self.writer.write_level(level, data), data)
        return len(data)


class TriggerLevelWriter(LevelWriter):
    """Holds back lines at ``conditional_level`` or below until a trigger.

    A line at ``trigger_level`` or above (or a call to :meth:`trigger`)
    flushes what was held back, and from then on everything passes through.
    Lines above ``conditional_level`` always pass through.
    """

    def __init__(
        self,
        writer: Any,
        conditional_level: int = Level.DEBUG,
        trigger_level: int = Level.ERROR,
    ) -> None:
        self.writer = writer
        self.conditional_level = Level(conditional_level)
        self.trigger_level = Level(trigger_level)
        self._buffer: List[Tuple[Level, bytes]] = []
        self._triggered = False
        self._lock = threading.Lock()

    @property
    def triggered(self) -> bool:
        """Whether the held-back lines have been released."""
        return self._triggered

    def write(self, data: bytes) -> int:
        return _written(self.writer.write(data), data)

    def _pass_through(self, level: Level, data: bytes) -> int:
        if _is_level_writer(self.writer):
            return _written(self.writer.write_level(level, data), data)
        return self.write(data)

    def write_level(self, level: Level, data: bytes) -> int:
        with self._lock:
            if not self._triggered and level >= self.trigger_level:
                self._trigger()
            if not self._triggered and level <= self.conditional_level:
                self._buffer.append((Level(level), bytes(data)))
                return len(data)
            return self._pass_through(level, data)

    def _trigger(self) -> None:
        if self._triggered:
            return
        self._triggered = True
        pending, self._buffer = self._buffer, []
        for level, line in pending:
            self._pass_through(level, line)

    def trigger(self) -> None:
        """Flush the held-back lines unless that has already happened."""
        with self._lock:
            self._trigger()

    def close(self) -> None:
        """Drop any held-back lines."""
        with self._lock:
            self._buffer = []