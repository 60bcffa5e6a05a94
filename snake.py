from __future__ import annotations

import argparse
import logging
from pathlib import Path
from typing import Dict, Optional, Sequence, Tuple

import numpy as np
import pygame

from game_loop import GameEvent, GameLoop, RunState, Snapshot
from score_store import DEFAULT_SCORES_PATH, JsonScoreStore
from snake_core import FIRST_CELL, GRID_SIZE, INITIAL_SPEED, Cell, Direction, FoodPlacer, GameConfig, SnakeState


logger = logging.getLogger(__name__)

CELL_SIZE = 32
FONT_NAME = "arial"
FPS = 60
GAME_OVER_PAUSE_MS = 1000
SWIPE_MIN_DISTANCE = 10  # pixels; shorter drags are taps
SAMPLE_RATE = 22050

BACKGROUND = (24, 24, 24)
OVERLAY = (0, 0, 0, 160)


KEY_DIRECTIONS = {
    pygame.K_UP: Direction.UP,
    pygame.K_DOWN: Direction.DOWN,
    pygame.K_LEFT: Direction.LEFT,
    pygame.K_RIGHT: Direction.RIGHT,
}
QUIT_KEYS = (pygame.K_ESCAPE, pygame.K_q)


def swipe_direction(dx: float, dy: float) -> Optional[Direction]:
    """Map a drag vector to a direction by its dominant axis (screen y grows downward)."""
    if max(abs(dx), abs(dy)) < SWIPE_MIN_DISTANCE:
        return None
    if abs(dx) > abs(dy):
        return Direction.RIGHT if dx > 0 else Direction.LEFT
    return Direction.DOWN if dy > 0 else Direction.UP


class InputRouter:
    """Feeds keyboard and swipe events into a GameLoop."""

    def __init__(self, game: GameLoop):
        self.game = game
        self.drag_start: Tuple[int, int] | None = None

    def handle(self, event: pygame.event.Event) -> bool:
        """Returns False when the player asked to quit."""
        if event.type == pygame.QUIT:
            return False
        if event.type == pygame.KEYDOWN:
            if event.key in QUIT_KEYS:
                return False
            if event.key in KEY_DIRECTIONS:
                self.game.set_direction(KEY_DIRECTIONS[event.key])
            elif event.key == pygame.K_SPACE:
                self.game.toggle_pause()
        elif event.type == pygame.MOUSEBUTTONDOWN and event.button == 1:
            self.drag_start = event.pos
        elif event.type == pygame.MOUSEBUTTONUP and event.button == 1 and self.drag_start is not None:
            start_x, start_y = self.drag_start
            self.drag_start = None
            direction = swipe_direction(event.pos[0] - start_x, event.pos[1] - start_y)
            if direction is not None:
                self.game.set_direction(direction)
        return True


def create_tone(
    frequency_hz: float,
    duration_ms: int,
    volume: float = 0.3,
    end_frequency_hz: float | None = None,
    release_ms: int = 40,
) -> pygame.mixer.Sound:
    sample_count = max(1, int(SAMPLE_RATE * duration_ms / 1000))
    end_frequency_hz = frequency_hz if end_frequency_hz is None else end_frequency_hz
    freqs = np.linspace(frequency_hz, end_frequency_hz, sample_count)
    phase = np.cumsum(2.0 * np.pi * freqs / SAMPLE_RATE)
    envelope = np.ones(sample_count)
    release = min(sample_count, int(SAMPLE_RATE * release_ms / 1000))
    if release > 0:
        envelope[-release:] = np.linspace(1.0, 0.0, release)
    pcm = (32767 * max(0.0, min(volume, 1.0)) * envelope * np.sin(phase)).astype(np.int16)
    return pygame.mixer.Sound(buffer=pcm.tobytes())


class SoundBoard:
    """Fire-and-forget game audio; any mixer failure just turns sound off."""

    def __init__(self, enabled: bool = True):
        self.sounds: Dict[str, pygame.mixer.Sound] = {}
        self.theme: pygame.mixer.Sound | None = None
        self.theme_channel: pygame.mixer.Channel | None = None
        self.enabled = enabled and self._load()

    def _load(self) -> bool:
        try:
            if pygame.mixer.get_init() is None:
                pygame.mixer.init(frequency=SAMPLE_RATE, size=-16, channels=1, buffer=512)
            self.sounds = {
                "move": create_tone(560, 35, 0.12, end_frequency_hz=500, release_ms=20),
                "food": create_tone(720, 95, 0.26, end_frequency_hz=520, release_ms=70),
                "over": create_tone(420, 420, 0.2, end_frequency_hz=110, release_ms=220),
            }
            self.theme = create_tone(110, 2000, 0.05, release_ms=0)
        except pygame.error as exc:
            logger.info("Sound disabled: %s", exc)
            return False
        return True

    def play(self, name: str) -> None:
        if not self.enabled or name not in self.sounds:
            return
        try:
            self.sounds[name].play()
        except pygame.error:
            pass

    def start_music(self) -> None:
        if not self.enabled or self.theme is None:
            return
        if self.theme_channel is not None and self.theme_channel.get_busy():
            return
        try:
            self.theme_channel = self.theme.play(loops=-1)
        except pygame.error:
            self.theme_channel = None

    def stop_music(self) -> None:
        if self.theme is not None and self.enabled:
            self.theme.stop()
        self.theme_channel = None

    def __call__(self, event: GameEvent) -> None:
        if event is GameEvent.MOVE:
            self.play("move")
        elif event is GameEvent.FOOD:
            self.play("food")
        elif event is GameEvent.GAME_OVER:
            self.play("over")
            self.stop_music()
        elif event is GameEvent.PAUSE:
            self.stop_music()
        elif event in (GameEvent.RESUME, GameEvent.RESTART):
            self.start_music()


def cell_rect(position: Cell) -> pygame.Rect:
    return pygame.Rect(
        (position[0] - FIRST_CELL) * CELL_SIZE, (position[1] - FIRST_CELL) * CELL_SIZE, CELL_SIZE, CELL_SIZE
    )


def cell_center(position: Cell) -> tuple[int, int]:
    return cell_rect(position).center


def draw_block(surface: pygame.Surface, color: pygame.Color, position: Cell) -> None:
    pygame.draw.rect(surface, color, cell_rect(position))


def draw_snake(surface: pygame.Surface, snake: Sequence[Cell]) -> None:
    head_color = pygame.Color("lime")
    body_color = pygame.Color("green3")
    if len(snake) > 1:
        width = max(1, CELL_SIZE - 6)
        for i in range(len(snake) - 1):
            pygame.draw.line(surface, body_color, cell_center(snake[i]), cell_center(snake[i + 1]), width)
    radius = max(2, CELL_SIZE // 2 - 2)
    # Tail first so the head is painted on top.
    for idx in range(len(snake) - 1, -1, -1):
        color = head_color if idx == 0 else body_color
        pygame.draw.circle(surface, color, cell_center(snake[idx]), radius)


def draw_message(surface: pygame.Surface, font: pygame.font.Font, text: str) -> None:
    overlay = pygame.Surface(surface.get_size(), pygame.SRCALPHA)
    overlay.fill(OVERLAY)
    surface.blit(overlay, (0, 0))
    msg = font.render(text, True, pygame.Color("white"))
    surface.blit(msg, msg.get_rect(center=surface.get_rect().center))


def render(surface: pygame.Surface, font: pygame.font.Font, snap: Snapshot) -> None:
    surface.fill(BACKGROUND)
    if snap.food is not None:
        draw_block(surface, pygame.Color("red"), snap.food)
    draw_snake(surface, snap.segments)

    score_text = font.render(f"Score: {snap.score}", True, pygame.Color("white"))
    hi_text = font.render(f"Hi-Score: {snap.high_score}", True, pygame.Color("gray70"))
    surface.blit(score_text, (10, 10))
    surface.blit(hi_text, (10, 36))

    if snap.run_state is RunState.PAUSED:
        draw_message(surface, font, "Paused - press Space to resume")
    elif snap.run_state is RunState.GAME_OVER:
        draw_message(surface, font, "Game Over - restarting...")
    elif snap.run_state is RunState.IDLE or snap.direction is Direction.IDLE:
        hint = font.render("Arrow keys or swipe to move", True, pygame.Color("gray70"))
        surface.blit(hint, hint.get_rect(midbottom=(surface.get_width() // 2, surface.get_height() - 10)))


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Play Snake.")
    parser.add_argument("--grid-size", type=int, default=GRID_SIZE, help="Cells per side of the arena.")
    parser.add_argument("--speed", type=float, default=INITIAL_SPEED, help="Initial speed in ticks per second.")
    parser.add_argument("--scores-file", type=Path, default=DEFAULT_SCORES_PATH, help="Where the high score is kept.")
    parser.add_argument("--seed", type=int, default=None, help="Seed for food placement.")
    parser.add_argument("--mute", action="store_true", help="Disable sound.")
    parser.add_argument("--log-level", type=str, default="WARNING", help="Logging level.")
    return parser.parse_args(argv)


def build_config(args: argparse.Namespace) -> GameConfig:
    # Keep the reference start cell when it fits, otherwise start in the middle.
    start = GameConfig.start_cell
    if max(start) > args.grid_size:
        middle = (args.grid_size + 1) // 2
        start = (middle, middle)
    return GameConfig(arena_size=args.grid_size, initial_speed=args.speed, start_cell=start)


def main(argv: Sequence[str] | None = None) -> None:
    args = parse_args(argv)
    logging.basicConfig(level=args.log_level.upper(), format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    try:
        config = build_config(args)
    except ValueError as exc:
        raise SystemExit(f"Invalid configuration: {exc}")

    pygame.mixer.pre_init(SAMPLE_RATE, -16, 1, 512)
    pygame.init()
    size = config.arena_size * CELL_SIZE
    screen = pygame.display.set_mode((size, size))
    pygame.display.set_caption("Snake")
    clock = pygame.time.Clock()
    font = pygame.font.SysFont(FONT_NAME, 24)

    sound = SoundBoard(enabled=not args.mute)
    game = GameLoop(
        SnakeState(config, FoodPlacer(args.seed)),
        store=JsonScoreStore(args.scores_file),
        on_event=sound,
        auto_restart=False,
    )
    router = InputRouter(game)
    restart_at_ms: int | None = None
    sound.start_music()

    running = True
    while running:
        for event in pygame.event.get():
            if not router.handle(event):
                running = False
                break

        now_ms = pygame.time.get_ticks()
        if game.run_state is RunState.GAME_OVER:
            if restart_at_ms is None:
                restart_at_ms = now_ms + GAME_OVER_PAUSE_MS
            elif now_ms >= restart_at_ms:
                restart_at_ms = None
                game.restart()
        else:
            game.tick(now_ms / 1000.0)

        render(screen, font, game.snapshot())
        pygame.display.flip()
        clock.tick(FPS)

    pygame.quit()


if __name__ == "__main__":
    main()
