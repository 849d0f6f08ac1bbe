"""Structured JSON loggers, their events and their contexts."""

from __future__ import annotations

import copy
import dataclasses
import ipaddress
import json
import math
import sys
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Iterable, List, Optional, Tuple

from .levels import Level, global_level, level_field_marshal
from .sampler import Sampler, sampling_disabled
from .writers import LevelWriter, as_level_writer

TIME_FORMAT_RFC3339 = "rfc3339"
TIME_FORMAT_UNIX = ""
TIME_FORMAT_UNIX_MS = "UNIXMS"


def _now() -> datetime:
    return datetime.now().astimezone()


def _identity(error: Any) -> Any:
    return error


def _report_write_error(error: BaseException) -> None:
    sys.stderr.write(f"slimlog: could not write event: {error}\n")


@dataclass
class Settings:
    """Process-wide settings shared by every logger."""

    level_field_name: str = "level"
    message_field_name: str = "message"
    error_field_name: str = "error"
    error_stack_field_name: str = "stack"
    timestamp_field_name: str = "time"
    time_field_format: str = TIME_FORMAT_RFC3339
    timestamp_func: Callable[[], datetime] = _now
    level_field_marshal_func: Callable[[Level], str] = level_field_marshal
    error_marshal_func: Callable[[BaseException], Any] = _identity
    error_stack_marshaler: Optional[Callable[[BaseException], Any]] = None
    error_handler: Callable[[BaseException], Any] = field(default=_report_write_error)


settings = Settings()


class LogPanic(Exception):
    """Raised after a panic-level event has been written."""


class Hook:
    """Runs on every event just before its message is written."""

    def run(self, event: Event, level: Level, message: str) -> None:
        """Add to ``event``; the base hook does nothing."""


class _TimestampHook(Hook):
    def run(self, event: Event, level: Level, message: str) -> None:
        event.timestamp()


_TIMESTAMP_HOOK = _TimestampHook()


def _run_hook(hook: Any, event: Event, level: Level, message: str) -> None:
    runner = getattr(hook, "run", None)
    if callable(runner):
        runner(event, level, message)
    else:
        hook(event, level, message)


# --- encoding -------------------------------------------------------------

def _string(text: str) -> str:
    return json.dumps(text, ensure_ascii=False)


def _pair(key: str, encoded: str) -> str:
    return f"{_string(key)}:{encoded}"


def _float_text(value: float) -> str:
    number = float(value)
    if math.isnan(number):
        return '"NaN"'
    if math.isinf(number):
        return '"+Inf"' if number > 0 else '"-Inf"'
    if number.is_integer() and abs(number) < 1e21:
        return str(int(number))
    return repr(number)


def _time_text(moment: datetime) -> str:
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    fmt = settings.time_field_format
    if fmt == TIME_FORMAT_UNIX:
        return str(int(moment.timestamp()))
    if fmt == TIME_FORMAT_UNIX_MS:
        return str(int(moment.timestamp() * 1000))
    if fmt != TIME_FORMAT_RFC3339:
        return _string(moment.strftime(fmt))
    base = (
        f"{moment.year:04d}-{moment.month:02d}-{moment.day:02d}"
        f"T{moment.hour:02d}:{moment.minute:02d}:{moment.second:02d}"
    )
    offset = moment.utcoffset() or timedelta(0)
    if offset == timedelta(0):
        return _string(base + "Z")
    minutes = int(offset.total_seconds()) // 60
    sign = "+" if minutes >= 0 else "-"
    hours, mins = divmod(abs(minutes), 60)
    return _string(f"{base}{sign}{hours:02d}:{mins:02d}")


def _render_object(obj: Any) -> str:
    sub = Event(None, Level.NO_LEVEL)
    obj.marshal_log_object(sub)
    return sub._render()


def _encode(value: Any) -> str:
    if value is None:
        return "null"
    if callable(getattr(value, "marshal_log_object", None)):
        return _render_object(value)
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int):
        return str(int(value))
    if isinstance(value, float):
        return _float_text(value)
    if isinstance(value, str):
        return _string(value)
    if isinstance(value, (bytes, bytearray)):
        return _string(bytes(value).decode("utf-8", errors="replace"))
    if isinstance(value, BaseException):
        return _encode_error(value)
    if isinstance(value, datetime):
        return _time_text(value)
    if isinstance(value, timedelta):
        return _float_text(value.total_seconds() * 1000)
    if isinstance(
        value,
        (ipaddress.IPv4Address, ipaddress.IPv6Address, ipaddress.IPv4Network,
         ipaddress.IPv6Network, ipaddress.IPv4Interface, ipaddress.IPv6Interface),
    ):
        return _string(str(value))
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return _encode({f.name: getattr(value, f.name) for f in dataclasses.fields(value)})
    if isinstance(value, Mapping):
        items = sorted(value.items(), key=lambda item: str(item[0]))
        return "{" + ",".join(_pair(str(k), _encode(v)) for k, v in items) + "}"
    if isinstance(value, (list, tuple, set, frozenset)):
        return "[" + ",".join(_encode(v) for v in value) + "]"
    return _string(str(value))


def _encode_error(error: BaseException) -> str:
    value = settings.error_marshal_func(error)
    if value is None:
        return "null"
    if callable(getattr(value, "marshal_log_object", None)):
        return _render_object(value)
    if isinstance(value, BaseException):
        return _string(str(value))
    return _encode(value)


def _stack_parts(error: BaseException) -> List[str]:
    marshaler = settings.error_stack_marshaler
    if marshaler is None:
        return []
    stack = marshaler(error)
    if stack is None:
        return []
    if isinstance(stack, BaseException):
        return [_pair(settings.error_stack_field_name, _string(str(stack)))]
    return [_pair(settings.error_stack_field_name, _encode(stack))]


def _error_parts(error: Optional[BaseException], stack: bool) -> List[str]:
    if error is None:
        return []
    parts = _stack_parts(error) if stack else []
    parts.append(_pair(settings.error_field_name, _encode_error(error)))
    return parts


def _field_items(fields: Any) -> Iterable[Tuple[Any, Any]]:
    if isinstance(fields, Mapping):
        return sorted(fields.items(), key=lambda item: str(item[0]))
    if isinstance(fields, (list, tuple)):
        values = iter(fields)
        return zip(values, values)
    return ()


def _fields_parts(fields: Any, stack: bool) -> List[str]:
    parts: List[str] = []
    for key, value in _field_items(fields):
        if not isinstance(key, str):
            continue
        if isinstance(value, BaseException):
            parts.append(_pair(key, _encode_error(value)))
            if stack:
                parts.extend(_stack_parts(value))
        else:
            parts.append(_pair(key, _encode(value)))
    return parts


def _go_text(value: Any) -> str:
    if value is None:
        return "<nil>"
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _sprint(args: Tuple[Any, ...]) -> str:
    pieces: List[str] = []
    previous: Any = None
    for position, arg in enumerate(args):
        if position and not isinstance(arg, str) and not isinstance(previous, str):
            pieces.append(" ")
        pieces.append(_go_text(arg))
        previous = arg
    return "".join(pieces)


# --- events ---------------------------------------------------------------

class Event:
    """A single log line being built; nothing is written until msg()."""

    def __init__(
        self,
        writer: Optional[LevelWriter],
        level: int,
        *,
        done: Optional[Callable[[str], None]] = None,
        hooks: Tuple[Any, ...] = (),
        stack: bool = False,
        enabled: bool = True,
    ) -> None:
        self._writer = writer
        self._level = Level(level)
        self._done = done
        self._hooks = hooks
        self._stack = stack
        self._enabled = enabled
        self._parts: List[str] = []

    def _render(self) -> str:
        return "{" + ",".join(self._parts) + "}"

    def _add(self, parts: Iterable[str]) -> Event:
        if self._enabled:
            self._parts.extend(parts)
        return self

    def enabled(self) -> bool:
        """Whether this event will be written."""
        return self._enabled

    def discard(self) -> Event:
        """Turn the event off so that msg() writes nothing."""
        self._enabled = False
        return self

    def str(self, key: str, value: Any) -> Event:
        return self._add([_pair(key, _string(value))])

    def int(self, key: str, value: Any) -> Event:
        return self._add([_pair(key, str(int(value)))])

    def float(self, key: str, value: Any) -> Event:
        return self._add([_pair(key, _float_text(value))])

    def bool(self, key: str, value: Any) -> Event:
        return self._add([_pair(key, "true" if value else "false")])

    def err(self, error: Optional[BaseException]) -> Event:
        """Add ``error`` under the error field, with its stack if requested."""
        if not self._enabled:
            return self
        return self._add(_error_parts(error, self._stack))

    def fields(self, fields: Any) -> Event:
        """Add a mapping (sorted by key) or a flat key/value list."""
        if not self._enabled:
            return self
        return self._add(_fields_parts(fields, self._stack))

    def timestamp(self) -> Event:
        if not self._enabled:
            return self
        moment = settings.timestamp_func()
        return self._add([_pair(settings.timestamp_field_name, _time_text(moment))])

    def stack(self) -> Event:
        """Request a stack trace to be added by the next err()."""
        self._stack = True
        return self

    def msg(self, message: str) -> None:
        """Run the hooks, add ``message`` if not empty and write the line."""
        if not self._enabled:
            return
        for hook in self._hooks:
            _run_hook(hook, self, self._level, message)
        if message:
            self._parts.append(_pair(settings.message_field_name, _string(message)))
        self._enabled = False
        data = (self._render() + "\n").encode("utf-8")
        if self._writer is not None:
            try:
                self._writer.write_level(self._level, data)
            except Exception as exc:  # noqa: BLE001 - handed to the error handler
                settings.error_handler(exc)
        if self._done is not None:
            self._done(message)

    def msgf(self, fmt: str, *args: Any) -> None:
        """Like msg() with a %-formatted message."""
        if not self._enabled:
            return
        self.msg(fmt % args if args else fmt)

    def send(self) -> None:
        """Write the event without a message."""
        self.msg("")


def _disabled_event() -> Event:
    return Event(None, Level.DISABLED, enabled=False)


# --- loggers --------------------------------------------------------------

class Logger:
    """Writes one JSON line per event to its writer."""

    def __init__(self, writer: Optional[LevelWriter], level: int = Level.TRACE) -> None:
        self._writer = writer
        self._level = Level(level)
        self._sampler: Optional[Sampler] = None
        self._context: Tuple[str, ...] = ()
        self._hooks: Tuple[Any, ...] = ()
        self._stack = False

    def _copy(self) -> Logger:
        return copy.copy(self)

    def output(self, writer: Any) -> Logger:
        """Return a copy of this logger writing to ``writer``."""
        other = self._copy()
        other._writer = as_level_writer(writer)
        return other

    def with_(self) -> Context:
        """Start a child logger's context."""
        return Context(self._copy())

    def update_context(self, update: Callable[[Context], Context]) -> None:
        """Replace this logger's context with what ``update`` returns. Not thread safe."""
        self._context = update(Context(self._copy()))._logger._context

    def level(self, level: int) -> Logger:
        other = self._copy()
        other._level = Level(level)
        return other

    def get_level(self) -> Level:
        return self._level

    def sample(self, sampler: Optional[Sampler]) -> Logger:
        other = self._copy()
        other._sampler = sampler
        return other

    def hook(self, *args: Any) -> Logger:
        if not args:
            return self
        other = self._copy()
        other._hooks = self._hooks + tuple(args)
        return other

    def _should(self, level: Level) -> bool:
        if self._writer is None:
            return False
        if level < self._level or level < global_level():
            return False
        if self._sampler is not None and not sampling_disabled():
            return self._sampler.sample(level)
        return True

    def _new_event(self, level: int, done: Optional[Callable[[str], None]] = None) -> Event:
        level = Level(level)
        if not self._should(level):
            if done is not None:
                done("")
            return _disabled_event()
        event = Event(self._writer, level, done=done, hooks=self._hooks)
        if level != Level.NO_LEVEL and settings.level_field_name:
            event.str(settings.level_field_name, settings.level_field_marshal_func(level))
        event._parts.extend(self._context)
        if self._stack:
            event.stack()
        return event

    def trace(self) -> Event:
        return self._new_event(Level.TRACE)

    def debug(self) -> Event:
        return self._new_event(Level.DEBUG)

    def info(self) -> Event:
        return self._new_event(Level.INFO)

    def notice(self) -> Event:
        return self._new_event(Level.NOTICE)

    def warn(self) -> Event:
        return self._new_event(Level.WARN)

    def error(self) -> Event:
        return self._new_event(Level.ERROR)

    def err(self, error: Optional[BaseException]) -> Event:
        """An error event carrying ``error``, or an info event if it is None."""
        if error is not None:
            return self.error().err(error)
        return self.info()

    def fatal(self) -> Event:
        """An event whose msg() closes the writer and exits with status 1."""
        def done(message: str) -> None:
            closer = getattr(self._writer, "close", None)
            if callable(closer):
                closer()
            sys.exit(1)

        return self._new_event(Level.FATAL, done)

    def panic(self) -> Event:
        """An event whose msg() raises LogPanic with the message."""
        def done(message: str) -> None:
            raise LogPanic(message)

        return self._new_event(Level.PANIC, done)

    def with_level(self, level: int) -> Event:
        """An event at ``level`` that never exits nor raises."""
        level = Level(level)
        if level == Level.NO_LEVEL:
            return self.log()
        if level == Level.DISABLED:
            return _disabled_event()
        return self._new_event(level)

    def log(self) -> Event:
        return self._new_event(Level.NO_LEVEL)

    def print(self, *args: Any) -> None:
        event = self.debug()
        if event.enabled():
            event.msg(_sprint(args))

    def printf(self, fmt: str, *args: Any) -> None:
        event = self.debug()
        if event.enabled():
            event.msg(fmt % args if args else fmt)

    def println(self, *args: Any) -> None:
        event = self.debug()
        if event.enabled():
            event.msg(" ".join(_go_text(a) for a in args) + "\n")

    def write(self, data: bytes) -> int:
        """Log ``data`` without a level, minus one trailing newline."""
        count = len(data)
        raw = bytes(data)
        if raw.endswith(b"\n"):
            raw = raw[:-1]
        self.log().msg(raw.decode("utf-8", errors="replace"))
        return count


class Context:
    """Fields fixed into a child logger; each call returns a new context."""

    def __init__(self, logger: Logger) -> None:
        self._logger = logger

    def _extend(self, parts: Iterable[str]) -> Context:
        child = self._logger._copy()
        child._context = self._logger._context + tuple(parts)
        return Context(child)

    def str(self, key: str, value: Any) -> Context:
        return self._extend([_pair(key, _string(value))])

    def int(self, key: str, value: Any) -> Context:
        return self._extend([_pair(key, str(int(value)))])

    def float(self, key: str, value: Any) -> Context:
        return self._extend([_pair(key, _float_text(value))])

    def bool(self, key: str, value: Any) -> Context:
        return self._extend([_pair(key, "true" if value else "false")])

    def err(self, error: Optional[BaseException]) -> Context:
        return self._extend(_error_parts(error, self._logger._stack))

    def fields(self, fields: Any) -> Context:
        return self._extend(_fields_parts(fields, self._logger._stack))

    def timestamp(self) -> Context:
        """Add the current time to every event, just before its message."""
        return Context(self._logger.hook(_TIMESTAMP_HOOK))

    def stack(self) -> Context:
        child = self._logger._copy()
        child._stack = True
        return Context(child)

    def reset(self) -> Context:
        """Drop every field added so far."""
        child = self._logger._copy()
        child._context = ()
        return Context(child)

    def logger(self) -> Logger:
        return self._logger._copy()


def new(writer: Any) -> Logger:
    """Create a root logger writing to ``writer``; None discards everything."""
    return Logger(as_level_writer(writer), Level.TRACE)


def nop() -> Logger:
    """A disabled logger."""
    return new(None).level(Level.DISABLED)