"""Samplers deciding which log events are kept."""

from __future__ import annotations

import random
import threading
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import timedelta
from typing import Callable, Optional

from .levels import Level

_UINT32_MASK = 0xFFFFFFFF


class Sampler(ABC):
    """Decides whether an event at a level is part of the sample."""

    @abstractmethod
    def sample(self, level: int) -> bool:
        """Return True to keep the event, False to drop it."""


@dataclass(frozen=True)
class RandomSampler(Sampler):
    """Randomly keeps about one event out of ``n``, regardless of level."""

    n: int
    rng: random.Random = field(default_factory=random.Random, repr=False, compare=False)

    def sample(self, level: int) -> bool:
        if self.n <= 0:
            return False
        return self.rng.randrange(self.n) == 0


@dataclass
class BasicSampler(Sampler):
    """Keeps every ``n``-th event, regardless of level."""

    n: int
    _counter: int = field(default=0, init=False, repr=False, compare=False)
    _lock: threading.Lock = field(
        default_factory=threading.Lock, init=False, repr=False, compare=False
    )

    def sample(self, level: int) -> bool:
        n = self.n
        if n == 0:
            return False
        if n == 1:
            return True
        with self._lock:
            self._counter = (self._counter + 1) & _UINT32_MASK
            count = self._counter
        return count % n == 1


@dataclass
class BurstSampler(Sampler):
    """Lets ``burst`` events pass per ``period`` then defers to ``next_sampler``.

    ``period`` is in seconds (or a timedelta). Without a next sampler,
    events beyond the burst are dropped.
    """

    burst: int
    period: float | timedelta = 0.0
    next_sampler: Optional[Sampler] = None
    clock: Callable[[], int] = field(default=time.time_ns, repr=False, compare=False)
    _counter: int = field(default=0, init=False, repr=False, compare=False)
    _reset_at: int = field(default=0, init=False, repr=False, compare=False)
    _lock: threading.Lock = field(
        default_factory=threading.Lock, init=False, repr=False, compare=False
    )

    def __post_init__(self) -> None:
        if isinstance(self.period, timedelta):
            self.period = self.period.total_seconds()

    @property
    def _period_ns(self) -> int:
        return int(self.period * 1_000_000_000)

    def _inc(self) -> int:
        now = self.clock()
        with self._lock:
            if now > self._reset_at:
                self._counter = 1
                self._reset_at = now + self._period_ns
            else:
                self._counter = (self._counter + 1) & _UINT32_MASK
            return self._counter

    def sample(self, level: int) -> bool:
        if self.burst > 0 and self.period > 0 and self._inc() <= self.burst:
            return True
        if self.next_sampler is None:
            return False
        return self.next_sampler.sample(level)


@dataclass
class LevelSampler(Sampler):
    """Applies a separate sampler per level; unset levels always pass."""

    trace: Optional[Sampler] = None
    debug: Optional[Sampler] = None
    info: Optional[Sampler] = None
    notice: Optional[Sampler] = None
    warn: Optional[Sampler] = None
    error: Optional[Sampler] = None

    def sample(self, level: int) -> bool:
        chosen = {
            Level.TRACE: self.trace,
            Level.DEBUG: self.debug,
            Level.INFO: self.info,
            Level.NOTICE: self.notice,
            Level.WARN: self.warn,
            Level.ERROR: self.error,
        }.get(int(level))
        if chosen is None:
            return True
        return chosen.sample(level)


OFTEN = RandomSampler(10)
SOMETIMES = RandomSampler(100)
RARELY = RandomSampler(1000)

_sampling_disabled = False


def disable_sampling(value: bool) -> None:
    """Turn sampling off (True) or back on (False) for every logger."""
    global _sampling_disabled
    _sampling_disabled = bool(value)


def sampling_disabled() -> bool:
    """Return whether sampling is currently turned off."""
    return _sampling_disabled