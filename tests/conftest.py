"""Pytest fixtures for shell game tests."""

import asyncio
from random import Random

import pytest

from shellgame.cups import CupTable
from shellgame.game import RoundTiming, ShuffleEngine
from shellgame.scoring import ScoreTracker


class ScriptedRandom(Random):
    """
    Random whose ``randrange`` (and so ``randint``) answers come from a script.

    Engine draw order: coin cup, shuffle count, then two slots per swap.
    """

    def __init__(self, values: list[int]) -> None:
        super().__init__(0)
        self._script = list(values)

    def randrange(self, start, stop=None, step=1):
        if stop is None:
            start, stop = 0, start
        if not self._script:
            raise AssertionError("Scripted random ran out of values")
        value = self._script.pop(0)
        assert start <= value < stop, f"{value} not in [{start}, {stop})"
        return value

    @property
    def remaining(self) -> int:
        return len(self._script)


class SleepRecorder:
    """Sleep stand-in that records delays and returns immediately."""

    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)
        await asyncio.sleep(0)


@pytest.fixture
def rng():
    """Seeded random number generator for reproducible tests."""
    return Random(42)


@pytest.fixture
def instant():
    """Timing with no delays."""
    return RoundTiming.instant()


@pytest.fixture
def engine(rng, instant):
    """A new engine with instant timing."""
    return ShuffleEngine(timing=instant, rng=rng)


@pytest.fixture
def scripted_engine():
    """Factory for an engine driven by a scripted RNG."""

    def make(values, min_shuffles=3, max_shuffles=5, **kwargs):
        timing = kwargs.pop("timing", RoundTiming.instant(min_shuffles, max_shuffles))
        return ShuffleEngine(timing=timing, rng=ScriptedRandom(values), **kwargs)

    return make


@pytest.fixture
def table():
    """Cups in their starting slots."""
    return CupTable()


@pytest.fixture
def tracker():
    """An empty score tracker."""
    return ScoreTracker()


@pytest.fixture
def sleep_recorder():
    """A recording sleep function."""
    return SleepRecorder()


async def play_to_guessing(engine: ShuffleEngine) -> None:
    """Initialize a round and run its sequence up to GUESSING."""
    engine.initialize()
    await engine.run_round_sequence()


@pytest.fixture
def play():
    """Coroutine that runs a round up to GUESSING."""
    return play_to_guessing
