from __future__ import annotations

import enum
import logging
import math
import random
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

import numpy as np


logger = logging.getLogger(__name__)

GRID_SIZE = 18
INITIAL_SPEED = 6.0  # ticks per second
SPEED_STEP = 0.5
SPEED_INCREMENT_EVERY = 5  # points
START_CELL = (13, 15)

# Cells are 1-indexed; a coordinate is in bounds when FIRST_CELL <= c <= arena_size.
FIRST_CELL = 1

# Rejection sampling gives up after this many hits and scans the free cells instead.
MAX_FOOD_ATTEMPTS = 64

Cell = Tuple[int, int]


class Direction(enum.Enum):
    IDLE = (0, 0)
    UP = (0, -1)
    DOWN = (0, 1)
    LEFT = (-1, 0)
    RIGHT = (1, 0)

    @property
    def dx(self) -> int:
        return self.value[0]

    @property
    def dy(self) -> int:
        return self.value[1]


class TickOutcome(enum.Enum):
    IDLE = "idle"
    MOVED = "moved"
    ATE = "ate"
    COLLIDED = "collided"
    NO_SPACE = "no_space"


@dataclass(frozen=True)
class GameConfig:
    arena_size: int = GRID_SIZE
    initial_speed: float = INITIAL_SPEED
    speed_step: float = SPEED_STEP
    speed_increment_every: int = SPEED_INCREMENT_EVERY
    start_cell: Cell = START_CELL

    def __post_init__(self) -> None:
        if not isinstance(self.arena_size, int) or self.arena_size < 1:
            raise ValueError(f"arena_size must be at least 1, got {self.arena_size}")
        if not math.isfinite(self.initial_speed) or self.initial_speed <= 0:
            raise ValueError(f"initial_speed must be positive, got {self.initial_speed}")
        if not math.isfinite(self.speed_step) or self.speed_step < 0:
            raise ValueError(f"speed_step must not be negative, got {self.speed_step}")
        if self.speed_increment_every < 1:
            raise ValueError(f"speed_increment_every must be at least 1, got {self.speed_increment_every}")
        if is_out_of_bounds(self.start_cell, self.arena_size):
            raise ValueError(f"start_cell {self.start_cell} lies outside a {self.arena_size}x{self.arena_size} arena")


def is_out_of_bounds(cell: Cell, arena_size: int) -> bool:
    x, y = cell
    return x < FIRST_CELL or y < FIRST_CELL or x > arena_size or y > arena_size


def hits_self(segments: Sequence[Cell]) -> bool:
    head = segments[0]
    return any(part == head for part in segments[1:])


def is_colliding(segments: Sequence[Cell], arena_size: int) -> bool:
    """True if the head overlaps the body or has left the arena."""
    return hits_self(segments) or is_out_of_bounds(segments[0], arena_size)


class FoodPlacer:
    """Samples a free cell uniformly over the whole arena."""

    def __init__(self, seed: int | None = None, max_attempts: int = MAX_FOOD_ATTEMPTS):
        self.rng = random.Random(seed)
        self.np_rng = np.random.default_rng(seed)
        self.max_attempts = max_attempts

    def place(self, segments: Sequence[Cell], arena_size: int) -> Optional[Cell]:
        occupied = set(segments)
        for _ in range(self.max_attempts):
            cell = (
                self.rng.randint(FIRST_CELL, arena_size),
                self.rng.randint(FIRST_CELL, arena_size),
            )
            if cell not in occupied:
                return cell
        return self._place_exhaustive(occupied, arena_size)

    def _place_exhaustive(self, occupied: set[Cell], arena_size: int) -> Optional[Cell]:
        free = occupancy_grid(occupied, arena_size) == 0
        candidates = np.flatnonzero(free)
        if candidates.size == 0:
            logger.warning("No free cell left in a %dx%d arena", arena_size, arena_size)
            return None
        row, col = divmod(int(self.np_rng.choice(candidates)), arena_size)
        return (col + FIRST_CELL, row + FIRST_CELL)


def occupancy_grid(cells, arena_size: int) -> np.ndarray:
    # grid[y - 1, x - 1] == 1 where a cell is taken; out-of-bounds cells are ignored.
    grid = np.zeros((arena_size, arena_size), dtype=np.int8)
    for x, y in cells:
        if not is_out_of_bounds((x, y), arena_size):
            grid[y - FIRST_CELL, x - FIRST_CELL] = 1
    return grid


class SnakeState:
    """Segments, food, score and speed of a single round, advanced one tick at a time."""

    def __init__(self, config: GameConfig | None = None, placer: FoodPlacer | None = None):
        self.config = config or GameConfig()
        self.placer = placer or FoodPlacer()
        self.segments: List[Cell] = []
        self.food: Optional[Cell] = None
        self.score = 0
        self.speed = self.config.initial_speed
        self.reset()

    @property
    def head(self) -> Cell:
        return self.segments[0]

    @property
    def arena_size(self) -> int:
        return self.config.arena_size

    def reset(self) -> None:
        self.segments = [self.config.start_cell]
        self.score = 0
        self.speed = self.config.initial_speed
        self.food = self.placer.place(self.segments, self.arena_size)

    def advance(self, direction: Direction) -> TickOutcome:
        if direction is Direction.IDLE:
            return TickOutcome.IDLE

        head_x, head_y = self.head
        new_head = (head_x + direction.dx, head_y + direction.dy)
        eating = new_head == self.food

        # The tail cell is vacated this tick unless the snake grows.
        body = self.segments if eating else self.segments[:-1]
        if is_colliding([new_head, *body], self.arena_size):
            logger.debug("Collision at %s", new_head)
            return TickOutcome.COLLIDED

        # Shift tail-to-head, then move the head; a kept tail is the growth.
        if eating:
            self.segments.append(self.segments[-1])
        for i in range(len(self.segments) - 1, 0, -1):
            self.segments[i] = self.segments[i - 1]
        self.segments[0] = new_head

        if not eating:
            return TickOutcome.MOVED

        self.score += 1
        if self.score % self.config.speed_increment_every == 0:
            self.speed += self.config.speed_step
            logger.debug("Speed raised to %.2f at score %d", self.speed, self.score)
        self.food = self.placer.place(self.segments, self.arena_size)
        if self.food is None:
            return TickOutcome.NO_SPACE
        return TickOutcome.ATE
