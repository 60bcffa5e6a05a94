"""
Tests for game_loop.py - throttling, the run-state machine, input buffering
and high-score bookkeeping.
"""

from conftest import ScriptedPlacer
from game_loop import GameEvent, GameLoop, RunState
from score_store import MemoryScoreStore
from snake_core import INITIAL_SPEED, START_CELL, Direction, GameConfig, SnakeState, TickOutcome


class TestThrottle:
    """Tests for the tick-rate throttle."""

    def test_first_tick_runs_immediately(self, game):
        """With no previous tick the first callback advances."""
        game.set_direction(Direction.UP)
        assert game.tick(10.0) is True
        assert game.state.head == (13, 14)

    def test_early_callbacks_are_skipped(self, game):
        """Callbacks inside 1/speed seconds do not advance the snake."""
        game.set_direction(Direction.UP)
        game.tick(0.0)
        assert game.tick(0.05) is False
        assert game.tick(0.1) is False
        assert game.state.head == (13, 14)
        assert game.tick(0.2) is True
        assert game.state.head == (13, 13)

    def test_interval_follows_speed(self, game):
        """The tick interval is the inverse of the current speed."""
        assert game.tick_interval == 1.0 / INITIAL_SPEED
        game.state.speed = 10.0
        assert game.tick_interval == 0.1


class TestRunState:
    """Tests for the run-state machine."""

    def test_starts_idle(self, game):
        """A new loop is idle with no direction."""
        assert game.run_state is RunState.IDLE
        assert game.direction is Direction.IDLE

    def test_first_input_starts_running(self, game):
        """A direction change leaves IDLE."""
        game.set_direction(Direction.LEFT)
        assert game.run_state is RunState.RUNNING

    def test_first_tick_starts_running(self, game):
        """A scheduled tick leaves IDLE even without input, but the snake stays put."""
        assert game.tick(0.0) is True
        assert game.run_state is RunState.RUNNING
        assert game.last_outcome is TickOutcome.IDLE
        assert game.state.segments == [START_CELL]

    def test_pause_and_resume(self, game, events):
        """Paused loops keep accepting callbacks but never advance."""
        game.set_direction(Direction.UP)
        game.tick(0.0)
        assert game.toggle_pause() is RunState.PAUSED
        assert game.tick(5.0) is False
        assert game.tick(6.0) is False
        assert game.state.head == (13, 14)
        assert game.toggle_pause() is RunState.RUNNING
        assert game.tick(7.0) is True
        assert game.state.head == (13, 13)
        assert GameEvent.PAUSE in events
        assert GameEvent.RESUME in events

    def test_toggle_ignored_after_game_over(self, store):
        """Pause does nothing while the game-over screen is up."""
        game = GameLoop(SnakeState(GameConfig(), ScriptedPlacer([(1, 1)])), store=store, auto_restart=False)
        game.state.segments = [(13, 1)]
        game.set_direction(Direction.UP)
        game.tick(0.0)
        assert game.run_state is RunState.GAME_OVER
        assert game.toggle_pause() is RunState.GAME_OVER
        assert game.tick(100.0) is False


class TestInput:
    """Tests for direction buffering."""

    def test_last_direction_wins(self, game):
        """Only the latest direction before a tick is applied."""
        game.set_direction(Direction.UP)
        game.set_direction(Direction.LEFT)
        game.set_direction(Direction.DOWN)
        game.tick(0.0)
        assert game.state.head == (13, 16)

    def test_direction_committed_on_executed_tick(self, game):
        """Input that arrives before a skipped callback waits for the next real tick."""
        game.set_direction(Direction.UP)
        game.tick(0.0)
        game.set_direction(Direction.RIGHT)
        game.tick(0.05)
        assert game.direction is Direction.UP
        game.tick(0.5)
        assert game.direction is Direction.RIGHT
        assert game.state.head == (14, 14)

    def test_direction_persists_between_ticks(self, game):
        """Without new input the snake keeps its heading."""
        game.set_direction(Direction.UP)
        for t in range(3):
            game.tick(float(t))
        assert game.state.segments == [(13, 12)]

    def test_reversal_is_not_rejected(self, game):
        """Reversing is allowed; a two-segment snake simply swaps ends."""
        game.state.segments = [(5, 5), (6, 5)]
        game.set_direction(Direction.RIGHT)
        game.tick(0.0)
        assert game.state.segments == [(6, 5), (5, 5)]
        assert game.run_state is RunState.RUNNING


class TestGameOver:
    """Tests for collision handling and restart."""

    def test_wall_hit_restarts_round(self, game, events):
        """Leaving the arena ends the round and auto-restart resets everything."""
        game.state.segments = [(18, 4), (17, 4)]
        game.state.score = 7
        game.state.speed = 7.0
        game.set_direction(Direction.RIGHT)
        game.tick(0.0)
        assert GameEvent.GAME_OVER in events
        assert GameEvent.RESTART in events
        assert game.run_state is RunState.RUNNING
        assert game.state.segments == [START_CELL]
        assert game.state.score == 0
        assert game.state.speed == INITIAL_SPEED
        assert game.direction is Direction.IDLE
        assert game.state.food not in game.state.segments

    def test_manual_restart(self, store):
        """Without auto-restart the loop waits in GAME_OVER until restart()."""
        game = GameLoop(SnakeState(GameConfig(), ScriptedPlacer([(1, 1)])), store=store, auto_restart=False)
        game.state.segments = [(1, 9)]
        game.set_direction(Direction.LEFT)
        game.tick(0.0)
        assert game.run_state is RunState.GAME_OVER
        assert game.last_outcome is TickOutcome.COLLIDED
        assert game.state.segments == [(1, 9)]
        game.restart()
        assert game.run_state is RunState.RUNNING
        assert game.state.segments == [START_CELL]
        assert game.state.score == 0

    def test_restart_drops_buffered_input(self, store):
        """Input buffered during game over does not leak into the next round."""
        game = GameLoop(SnakeState(GameConfig(), ScriptedPlacer([(1, 1)])), store=store, auto_restart=False)
        game.state.segments = [(1, 9)]
        game.set_direction(Direction.LEFT)
        game.tick(0.0)
        game.set_direction(Direction.UP)
        game.restart()
        game.tick(1.0)
        assert game.state.segments == [START_CELL]

    def test_no_space_ends_round(self, store):
        """Filling the arena is terminal for the round."""
        config = GameConfig(arena_size=2, start_cell=(1, 1))
        game = GameLoop(SnakeState(config, ScriptedPlacer([(1, 2)])), store=store, auto_restart=False)
        game.state.segments = [(1, 1), (2, 1), (2, 2)]
        game.set_direction(Direction.DOWN)
        game.tick(0.0)
        assert game.last_outcome is TickOutcome.NO_SPACE
        assert game.run_state is RunState.GAME_OVER

    def test_last_bite_is_announced(self, store, events):
        """Eating the final free cell still emits FOOD before GAME_OVER."""
        config = GameConfig(arena_size=2, start_cell=(1, 1))
        game = GameLoop(
            SnakeState(config, ScriptedPlacer([(1, 2)])), store=store, on_event=events.append, auto_restart=False
        )
        game.state.segments = [(1, 1), (2, 1), (2, 2)]
        game.set_direction(Direction.DOWN)
        game.tick(0.0)
        assert events == [GameEvent.MOVE, GameEvent.FOOD, GameEvent.GAME_OVER]
        assert store.get_high_score() == 1


class TestHighScore:
    """Tests for high-score tracking."""

    def test_reads_store_once_at_start(self):
        """The stored high score is loaded at construction."""
        game = GameLoop(SnakeState(GameConfig(), ScriptedPlacer([(1, 1)])), store=MemoryScoreStore(12))
        assert game.high_score == 12
        assert game.snapshot().high_score == 12

    def test_new_high_score_is_saved(self, config, store, events):
        """Scoring past the stored value writes it through."""
        state = SnakeState(config, ScriptedPlacer([(13, 14), (13, 13), (1, 1)]))
        game = GameLoop(state, store=store, on_event=events.append)
        game.set_direction(Direction.UP)
        game.tick(0.0)
        game.tick(1.0)
        assert game.state.score == 2
        assert game.high_score == 2
        assert store.get_high_score() == 2
        assert events.count(GameEvent.FOOD) == 2

    def test_high_score_survives_restart(self, config, store):
        """Restarting zeroes the score but not the high score."""
        state = SnakeState(config, ScriptedPlacer([(13, 14), (1, 1)]))
        game = GameLoop(state, store=store)
        game.set_direction(Direction.UP)
        game.tick(0.0)
        game.restart()
        assert game.state.score == 0
        assert game.high_score == 1
        assert store.get_high_score() == 1

    def test_lower_score_does_not_overwrite(self, config):
        """A run below the stored high score leaves the store alone."""
        store = MemoryScoreStore(5)
        state = SnakeState(config, ScriptedPlacer([(13, 14), (1, 1)]))
        game = GameLoop(state, store=store)
        game.set_direction(Direction.UP)
        game.tick(0.0)
        assert game.high_score == 5
        assert store.get_high_score() == 5


class TestEventsAndSnapshot:
    """Tests for the event hook and the renderer snapshot."""

    def test_failing_hook_does_not_break_tick(self, state, store):
        """Exceptions from the event hook are swallowed."""

        def explode(event):
            raise RuntimeError("speaker on fire")

        game = GameLoop(state, store=store, on_event=explode)
        game.set_direction(Direction.UP)
        assert game.tick(0.0) is True
        assert game.state.head == (13, 14)

    def test_snapshot_is_a_copy(self, game):
        """Snapshots do not change when the game moves on."""
        game.set_direction(Direction.UP)
        snap = game.snapshot()
        game.tick(0.0)
        assert snap.segments == (START_CELL,)
        assert snap.head == START_CELL
        assert game.snapshot().segments == ((13, 14),)

    def test_board_text(self):
        """The text board marks head, body and food with the top row first."""
        config = GameConfig(arena_size=3, start_cell=(2, 2))
        game = GameLoop(SnakeState(config, ScriptedPlacer([(3, 1)])))
        game.state.segments = [(2, 2), (2, 3)]
        assert game.snapshot().board_text() == ". . F\n. H .\n. S ."
