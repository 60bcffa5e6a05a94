from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from typing import Callable, Optional, Tuple

from score_store import MemoryScoreStore, ScoreStore
from snake_core import FIRST_CELL, Cell, Direction, SnakeState, TickOutcome


logger = logging.getLogger(__name__)


class RunState(enum.Enum):
    IDLE = "idle"
    RUNNING = "running"
    PAUSED = "paused"
    GAME_OVER = "game_over"


class GameEvent(enum.Enum):
    MOVE = "move"
    FOOD = "food"
    GAME_OVER = "game_over"
    PAUSE = "pause"
    RESUME = "resume"
    RESTART = "restart"


@dataclass(frozen=True)
class Snapshot:
    """Read-only view of the game handed to renderers after each tick."""

    segments: Tuple[Cell, ...]
    food: Optional[Cell]
    score: int
    high_score: int
    speed: float
    run_state: RunState
    direction: Direction
    arena_size: int

    @property
    def head(self) -> Cell:
        return self.segments[0]

    def board_text(self) -> str:
        """
        Returns the arena as text, top row first:
        . = empty, F = food, H = head, S = body
        """
        size = self.arena_size
        board = [["." for _ in range(size)] for _ in range(size)]

        def put(cell: Cell, mark: str) -> None:
            x, y = cell
            if FIRST_CELL <= x <= size and FIRST_CELL <= y <= size:
                board[y - FIRST_CELL][x - FIRST_CELL] = mark

        if self.food is not None:
            put(self.food, "F")
        for part in self.segments[1:]:
            put(part, "S")
        put(self.head, "H")
        return "\n".join(" ".join(row) for row in board)


EventHook = Callable[[GameEvent], None]


class GameLoop:
    """
    Drives a SnakeState from a host scheduler.

    The host calls tick(now) as often as it likes (every frame, every timer
    event); a tick only advances the snake once 1/speed seconds have passed
    since the last executed tick. Direction changes are buffered and the
    latest one is committed at the start of the next executed tick.
    """

    def __init__(
        self,
        state: SnakeState,
        store: ScoreStore | None = None,
        on_event: EventHook | None = None,
        auto_restart: bool = True,
    ):
        self.state = state
        self.store = store if store is not None else MemoryScoreStore()
        self.on_event = on_event
        self.auto_restart = auto_restart
        self.high_score = self.store.get_high_score()
        self.run_state = RunState.IDLE
        self.direction = Direction.IDLE
        self.pending_direction: Direction | None = None
        self.last_tick: float | None = None
        self.last_outcome: TickOutcome | None = None

    @property
    def tick_interval(self) -> float:
        return 1.0 / self.state.speed

    def set_direction(self, direction: Direction) -> None:
        self.pending_direction = direction
        if self.run_state is RunState.IDLE and direction is not Direction.IDLE:
            self.run_state = RunState.RUNNING
        self._emit(GameEvent.MOVE)

    def toggle_pause(self) -> RunState:
        if self.run_state is RunState.PAUSED:
            self.run_state = RunState.RUNNING
            self._emit(GameEvent.RESUME)
        elif self.run_state in (RunState.IDLE, RunState.RUNNING):
            self.run_state = RunState.PAUSED
            self._emit(GameEvent.PAUSE)
        return self.run_state

    def tick(self, now: float) -> bool:
        """Returns True when the snake was advanced, False for a skipped callback."""
        if self.run_state in (RunState.PAUSED, RunState.GAME_OVER):
            return False
        if self.run_state is RunState.IDLE:
            self.run_state = RunState.RUNNING
        if self.last_tick is not None and now - self.last_tick < self.tick_interval:
            return False
        self.last_tick = now

        if self.pending_direction is not None:
            self.direction = self.pending_direction
            self.pending_direction = None

        outcome = self.state.advance(self.direction)
        self.last_outcome = outcome
        if outcome is TickOutcome.ATE:
            self._emit(GameEvent.FOOD)
            self._record_score()
        elif outcome is TickOutcome.NO_SPACE:
            self._emit(GameEvent.FOOD)
            self._record_score()
            self._end_round(outcome)
        elif outcome is TickOutcome.COLLIDED:
            self._record_score()
            self._end_round(outcome)
        return True

    def restart(self) -> None:
        self.state.reset()
        self.direction = Direction.IDLE
        self.pending_direction = None
        self.last_tick = None
        self.run_state = RunState.RUNNING
        logger.info("Restarted at %s, food at %s", self.state.head, self.state.food)
        self._emit(GameEvent.RESTART)

    def snapshot(self) -> Snapshot:
        return Snapshot(
            segments=tuple(self.state.segments),
            food=self.state.food,
            score=self.state.score,
            high_score=self.high_score,
            speed=self.state.speed,
            run_state=self.run_state,
            direction=self.direction,
            arena_size=self.state.arena_size,
        )

    def _record_score(self) -> None:
        score = self.state.score
        if score <= self.high_score:
            return
        self.high_score = score
        self.store.set_high_score(score)
        logger.debug("New high score %d", score)

    def _end_round(self, outcome: TickOutcome) -> None:
        self.run_state = RunState.GAME_OVER
        logger.info("Game over (%s) with score %d, length %d", outcome.value, self.state.score, len(self.state.segments))
        self._emit(GameEvent.GAME_OVER)
        if self.auto_restart:
            self.restart()

    def _emit(self, event: GameEvent) -> None:
        if self.on_event is None:
            return
        try:
            self.on_event(event)
        except Exception as exc:
            logger.warning("Event hook failed for %s: %s", event.value, exc)
