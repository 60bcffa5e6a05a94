from collections import deque

import pytest

from game_loop import GameLoop
from score_store import MemoryScoreStore
from snake_core import FoodPlacer, GameConfig, SnakeState


class ScriptedPlacer(FoodPlacer):
    """Hands out queued food cells first, then falls back to seeded random placement."""

    def __init__(self, cells=(), seed=0):
        super().__init__(seed)
        self.queue = deque(cells)
        self.calls = []

    def place(self, segments, arena_size):
        self.calls.append(list(segments))
        if self.queue:
            return self.queue.popleft()
        return super().place(segments, arena_size)


@pytest.fixture
def config():
    return GameConfig()


@pytest.fixture
def placer():
    # First placement parks the food in a corner away from the start cell.
    return ScriptedPlacer([(1, 1)])


@pytest.fixture
def state(config, placer):
    return SnakeState(config, placer)


@pytest.fixture
def store():
    return MemoryScoreStore()


@pytest.fixture
def events():
    return []


@pytest.fixture
def game(state, store, events):
    return GameLoop(state, store=store, on_event=events.append)
