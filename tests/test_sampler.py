import random
from datetime import timedelta

import pytest

from slimlog.levels import Level
from slimlog.sampler import (
    BasicSampler,
    BurstSampler,
    LevelSampler,
    RandomSampler,
    Sampler,
    disable_sampling,
    sampling_disabled,
)

SAMPLER_CASES = [
    ("BasicSampler_1", lambda: BasicSampler(1), 100, 100, 100),
    ("BasicSampler_5", lambda: BasicSampler(5), 100, 20, 20),
    ("BasicSampler_0", lambda: BasicSampler(0), 100, 0, 0),
    ("RandomSampler", lambda: RandomSampler(5, rng=random.Random(1234)), 100, 10, 30),
    ("RandomSampler_0", lambda: RandomSampler(0), 100, 0, 0),
    ("BurstSampler", lambda: BurstSampler(burst=20, period=1.0), 100, 20, 20),
    ("BurstSampler_0", lambda: BurstSampler(burst=0, period=1.0), 100, 0, 0),
    (
        "BurstSamplerNext",
        lambda: BurstSampler(burst=20, period=1.0, next_sampler=BasicSampler(5)),
        120,
        40,
        40,
    ),
]


@pytest.mark.parametrize(
    "name, factory, total, want_min, want_max",
    SAMPLER_CASES,
    ids=[case[0] for case in SAMPLER_CASES],
)
def test_samplers(name, factory, total, want_min, want_max):
    sampler = factory()
    got = sum(1 for _ in range(total) if sampler.sample(Level(0)))
    assert want_min <= got <= want_max


def test_basic_sampler_keeps_first_of_each_group():
    sampler = BasicSampler(3)
    assert [sampler.sample(Level.INFO) for _ in range(7)] == [
        True, False, False, True, False, False, True,
    ]


def test_burst_sampler_resets_after_period():
    now = [1_000]
    sampler = BurstSampler(burst=2, period=timedelta(seconds=1), clock=lambda: now[0])
    assert [sampler.sample(Level.INFO) for _ in range(3)] == [True, True, False]
    now[0] += 2_000_000_000
    assert [sampler.sample(Level.INFO) for _ in range(3)] == [True, True, False]


def test_burst_sampler_zero_period_defers_to_next():
    sampler = BurstSampler(burst=5, period=0, next_sampler=BasicSampler(1))
    assert all(sampler.sample(Level.INFO) for _ in range(10))


def test_level_sampler_routes_by_level():
    sampler = LevelSampler(debug=BasicSampler(0), info=BasicSampler(1))
    assert sampler.sample(Level.DEBUG) is False
    assert sampler.sample(Level.INFO) is True
    assert sampler.sample(Level.WARN) is True
    assert sampler.sample(Level.FATAL) is True


def test_level_sampler_trace_and_error():
    sampler = LevelSampler(trace=RandomSampler(0), error=BasicSampler(2))
    assert sampler.sample(Level.TRACE) is False
    assert [sampler.sample(Level.ERROR) for _ in range(4)] == [True, False, True, False]


def test_sampler_is_abstract():
    with pytest.raises(TypeError):
        Sampler()


def test_disable_sampling_toggle():
    assert sampling_disabled() is False
    try:
        disable_sampling(True)
        assert sampling_disabled() is True
    finally:
        disable_sampling(False)
    assert sampling_disabled() is False