from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Protocol


logger = logging.getLogger(__name__)

DEFAULT_SCORES_PATH = Path.home() / ".snake_arena.json"
HIGH_SCORE_KEY = "hiScore"


def as_score(value) -> int:
    # Stored values may be strings or floats ("20", 20.0); anything unreadable counts as 0.
    try:
        return max(0, int(float(value)))
    except (TypeError, ValueError, OverflowError):
        return 0


class ScoreStore(Protocol):
    def get_high_score(self) -> int: ...

    def set_high_score(self, score: int) -> None: ...


class MemoryScoreStore:
    """Keeps the high score for the life of the process."""

    def __init__(self, high_score: int = 0):
        self.high_score = max(0, int(high_score))

    def get_high_score(self) -> int:
        return self.high_score

    def set_high_score(self, score: int) -> None:
        self.high_score = max(self.high_score, int(score))


class JsonScoreStore:
    """Persists the high score as a single key in a JSON file.

    A missing or unreadable file reads as 0. Write failures are logged and
    dropped so that a read-only home directory never stops a game.
    """

    def __init__(self, path: Path | str = DEFAULT_SCORES_PATH):
        self.path = Path(path)

    def _load(self) -> dict:
        try:
            payload = json.loads(self.path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return {}
        except (OSError, ValueError) as exc:
            logger.warning("Ignoring unreadable score file %s: %s", self.path, exc)
            return {}
        return payload if isinstance(payload, dict) else {}

    def get_high_score(self) -> int:
        return as_score(self._load().get(HIGH_SCORE_KEY, 0))

    def set_high_score(self, score: int) -> None:
        payload = self._load()
        if as_score(payload.get(HIGH_SCORE_KEY, 0)) >= score:
            return
        payload[HIGH_SCORE_KEY] = int(score)
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(json.dumps(payload), encoding="utf-8")
        except OSError as exc:
            logger.warning("Could not save high score to %s: %s", self.path, exc)
            return
        logger.info("High score %d saved to %s", score, self.path)
