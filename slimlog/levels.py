"""Log levels, their text forms and the process-wide minimum level."""

from __future__ import annotations

import operator
import re

_INT8_MIN = -128
_INT8_MAX = 127

_NAMES = {
    -1: "trace",
    0: "debug",
    1: "info",
    2: "notice",
    3: "warn",
    4: "error",
    5: "fatal",
    6: "panic",
    7: "",
    8: "disabled",
}

_INTEGER = re.compile(r"[+-]?[0-9]+")


class Level(int):
    """A log level; values outside the named ones are rendered as numbers."""

    __slots__ = ()

    TRACE: Level
    DEBUG: Level
    INFO: Level
    NOTICE: Level
    WARN: Level
    ERROR: Level
    FATAL: Level
    PANIC: Level
    NO_LEVEL: Level
    DISABLED: Level

    def __new__(cls, value: int = 0) -> Level:
        number = operator.index(value)
        if not _INT8_MIN <= number <= _INT8_MAX:
            raise ValueError(f"level {number} is outside [{_INT8_MIN}, {_INT8_MAX}]")
        return super().__new__(cls, number)

    def __str__(self) -> str:
        return _NAMES.get(int(self), str(int(self)))

    def __format__(self, spec: str) -> str:
        if not spec:
            return str(self)
        return int.__format__(int(self), spec)

    def __repr__(self) -> str:
        name = str(self)
        if int(self) in _NAMES:
            return f"Level({name!r})"
        return f"Level({int(self)})"

    def marshal_text(self) -> bytes:
        """Return the level as it appears in the level field, encoded."""
        return level_field_marshal(self).encode()

    @classmethod
    def unmarshal_text(cls, text: bytes | str) -> Level:
        """Parse a level from its text form."""
        if isinstance(text, (bytes, bytearray)):
            text = bytes(text).decode()
        return parse_level(text)


Level.TRACE = Level(-1)
Level.DEBUG = Level(0)
Level.INFO = Level(1)
Level.NOTICE = Level(2)
Level.WARN = Level(3)
Level.ERROR = Level(4)
Level.FATAL = Level(5)
Level.PANIC = Level(6)
Level.NO_LEVEL = Level(7)
Level.DISABLED = Level(8)

_PARSE_ORDER = (
    Level.TRACE,
    Level.DEBUG,
    Level.INFO,
    Level.NOTICE,
    Level.WARN,
    Level.ERROR,
    Level.FATAL,
    Level.PANIC,
    Level.DISABLED,
    Level.NO_LEVEL,
)


def level_field_marshal(level: int) -> str:
    """Return the text written into the level field for ``level``."""
    return str(Level(level))


def parse_level(level_str: str) -> Level:
    """Convert a level name or number into a Level.

    Raises ValueError for unknown names and out-of-range numbers.
    """
    folded = level_str.casefold()
    for candidate in _PARSE_ORDER:
        if folded == level_field_marshal(candidate).casefold():
            return candidate
    if not _INTEGER.fullmatch(level_str):
        raise ValueError(f"Unknown Level String: '{level_str}', defaulting to NoLevel")
    number = int(level_str)
    if number > _INT8_MAX or number < _INT8_MIN:
        raise ValueError(f"Out-Of-Bounds Level: '{number}', defaulting to NoLevel")
    return Level(number)


_global_level: Level = Level.TRACE


def set_global_level(level: int) -> None:
    """Set the minimum level accepted by every logger."""
    global _global_level
    _global_level = Level(level)


def global_level() -> Level:
    """Return the minimum level accepted by every logger."""
    return _global_level