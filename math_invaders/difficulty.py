"""Score-driven difficulty and wrong-answer penalties.

Two transitions exist and both are pure: :func:`advance_level` (triggered by a
score change) and :func:`apply_wrong_answer` (triggered by a submission that
matched nothing). Neither is reversible within a run.

Enemy speed is made of two parts. The level part is recomputed from
:class:`DifficultyTuning` on every level-up; the penalty part only grows and
is carried across level-ups until the run restarts.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, replace


@dataclass(frozen=True, slots=True)
class DifficultyTuning:
    base_enemy_speed: float = 30.0  # units per second
    speed_per_level: float = 3.0
    base_spawn_interval_ms: float = 4000.0
    spawn_interval_decrement_ms: float = 500.0
    min_spawn_interval_ms: float = 500.0
    penalty_speed_increment: float = 5.0
    points_per_level: int = 100

    def __post_init__(self) -> None:
        if self.base_enemy_speed < 0:
            raise ValueError("base_enemy_speed must be >= 0")
        if self.speed_per_level < 0:
            raise ValueError("speed_per_level must be >= 0")
        if self.min_spawn_interval_ms <= 0:
            raise ValueError("min_spawn_interval_ms must be > 0")
        if self.base_spawn_interval_ms < self.min_spawn_interval_ms:
            raise ValueError("base_spawn_interval_ms must be >= min_spawn_interval_ms")
        if self.spawn_interval_decrement_ms < 0:
            raise ValueError("spawn_interval_decrement_ms must be >= 0")
        if self.penalty_speed_increment < 0:
            raise ValueError("penalty_speed_increment must be >= 0")
        if self.points_per_level <= 0:
            raise ValueError("points_per_level must be > 0")

    def level_for_score(self, score: int) -> int:
        return int(math.floor(max(0, score) / self.points_per_level)) + 1

    def speed_for_level(self, level: int) -> float:
        return self.base_enemy_speed + (max(1, level) - 1) * self.speed_per_level

    def spawn_interval_for_level(self, level: int) -> float:
        interval = self.base_spawn_interval_ms - (max(1, level) - 1) * self.spawn_interval_decrement_ms
        return max(self.min_spawn_interval_ms, interval)


@dataclass(frozen=True, slots=True)
class DifficultyState:
    level: int
    enemy_speed: float
    spawn_interval_ms: float
    penalty_speed: float = 0.0

    @classmethod
    def initial(cls, tuning: DifficultyTuning) -> "DifficultyState":
        return cls(
            level=1,
            enemy_speed=tuning.speed_for_level(1),
            spawn_interval_ms=tuning.spawn_interval_for_level(1),
        )


def advance_level(state: DifficultyState, tuning: DifficultyTuning, *, score: int) -> DifficultyState:
    """Return the state for ``score``; unchanged unless the level went up."""

    new_level = tuning.level_for_score(score)
    if new_level <= state.level:
        return state
    return replace(
        state,
        level=new_level,
        enemy_speed=tuning.speed_for_level(new_level) + state.penalty_speed,
        spawn_interval_ms=tuning.spawn_interval_for_level(new_level),
    )


def apply_wrong_answer(state: DifficultyState, tuning: DifficultyTuning) -> DifficultyState:
    inc = tuning.penalty_speed_increment
    return replace(
        state,
        enemy_speed=state.enemy_speed + inc,
        penalty_speed=state.penalty_speed + inc,
    )
