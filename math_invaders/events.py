from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum


class GameEventKind(StrEnum):
    GAME_STARTED = "game_started"
    SCORE_CHANGED = "score_changed"
    LIVES_CHANGED = "lives_changed"
    LEVEL_CHANGED = "level_changed"
    LEVEL_UP = "level_up"
    INCORRECT_ANSWER = "incorrect_answer"
    EXPLOSION = "explosion"
    GUN_FIRED = "gun_fired"
    GAME_OVER = "game_over"


@dataclass(frozen=True, slots=True)
class GameEvent:
    """Notification for the render/UI layer. The core never draws."""

    kind: GameEventKind
    value: float | None = None
    x: float | None = None
    y: float | None = None
