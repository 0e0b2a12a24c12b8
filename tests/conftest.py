import itertools

import pytest

import puzzle_engine as eng
import svg_renderer as svg


class ScriptedRandom:
    """Stand-in for random.Random that replays a fixed cycle of integers."""

    def __init__(self, values):
        self._values = itertools.cycle(values)
        self.calls = 0

    def randrange(self, stop):
        self.calls += 1
        return next(self._values) % stop


@pytest.fixture
def scripted():
    return ScriptedRandom


@pytest.fixture
def log_lines():
    """Collect engine and renderer log messages instead of printing them."""
    lines = []
    eng.set_logger(lines.append)
    svg.set_logger(lines.append)
    yield lines
    eng.set_logger(None)
    svg.set_logger(None)
