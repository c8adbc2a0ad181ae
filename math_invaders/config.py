from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import StrEnum

from .difficulty import DifficultyTuning
from .effects import DESTROY, SHOOT_AND_DESTROY, SPRAY_AND_DESTROY, EffectStrategy
from .entities import Color

TIER_ENV = "MATH_INVADERS_TIER"
OPERATION_ENV = "MATH_INVADERS_OPERATION"

DEFAULT_TIER = "year1"
ALL_OPERATIONS = "all"


class Motion(StrEnum):
    DESCEND = "descend"  # falls from the top edge at the current enemy speed
    TRAVERSE = "traverse"  # crosses from off-screen left at a fixed speed


@dataclass(frozen=True, slots=True)
class EnemyArchetype:
    name: str
    spawn_weight: float
    color: Color
    effect: EffectStrategy
    tier_offset: int = 0
    motion: Motion = Motion.DESCEND
    use_operation_filter: bool = True

    def __post_init__(self) -> None:
        if self.spawn_weight < 0:
            raise ValueError("spawn_weight must be >= 0")
        if self.tier_offset < 0:
            raise ValueError("tier_offset must be >= 0")

    @property
    def is_threat(self) -> bool:
        return self.motion is Motion.DESCEND


GREEN = EnemyArchetype("green", spawn_weight=0.8, color=(0, 255, 0), effect=DESTROY)
RED = EnemyArchetype(
    "red",
    spawn_weight=0.2,
    color=(255, 0, 0),
    effect=SHOOT_AND_DESTROY,
    tier_offset=1,
    use_operation_filter=False,
)
PURPLE_SPRAYER = EnemyArchetype(
    "sprayer",
    spawn_weight=0.0,  # timer-driven, never drawn from the weighted pool
    color=(155, 89, 182),
    effect=SPRAY_AND_DESTROY,
    tier_offset=2,
    motion=Motion.TRAVERSE,
    use_operation_filter=False,
)

STANDARD_ARCHETYPES: tuple[EnemyArchetype, ...] = (GREEN, RED)

Vec = tuple[float, float]


@dataclass(frozen=True, slots=True)
class GameConfig:
    playfield_width: float = 1000.0
    playfield_height: float = 600.0

    enemy_width: float = 100.0
    enemy_height: float = 50.0

    gun_x: float = 500.0
    gun_y: float = 550.0
    gun_width: float = 80.0
    gun_height: float = 80.0
    gun_tier_offset: int = 1

    # Player volley: six shots fanned upwards and sideways from the gun top.
    shot_speed: float = 400.0
    shot_radius: float = 8.0
    shot_offset_y: float = -40.0
    shot_directions: tuple[Vec, ...] = (
        (-1.0, -1.0),
        (1.0, -1.0),
        (-0.5, -1.0),
        (0.5, -1.0),
        (-1.0, 0.0),
        (1.0, 0.0),
    )

    retaliation_speed: float = 150.0
    retaliation_radius: float = 5.0
    retaliation_bounces: bool = True
    retaliation_directions: tuple[Vec, ...] = ((1.0, -1.0), (1.0, 1.0), (-1.0, 1.0), (-1.0, -1.0))

    spray_bullet_count: int = 12
    spray_speed: float = 300.0
    spray_radius: float = 5.0

    sprayer_interval_ms: float = 30000.0
    sprayer_y: float = 75.0
    traverse_speed: float = 50.0

    initial_lives: int = 3
    points_per_enemy: int = 10
    initial_spawn_delays_ms: tuple[float, ...] = (500.0, 2000.0)
    max_answer_magnitude: float = 1e10

    difficulty: DifficultyTuning = field(default_factory=DifficultyTuning)

    def __post_init__(self) -> None:
        if self.playfield_width <= 0 or self.playfield_height <= 0:
            raise ValueError("playfield size must be > 0")
        if self.enemy_width <= 0 or self.enemy_height <= 0:
            raise ValueError("enemy size must be > 0")
        if self.enemy_width > self.playfield_width:
            raise ValueError("enemy_width must fit inside the playfield")
        if self.gun_tier_offset < 0:
            raise ValueError("gun_tier_offset must be >= 0")
        if self.initial_lives <= 0:
            raise ValueError("initial_lives must be > 0")
        if self.points_per_enemy < 0:
            raise ValueError("points_per_enemy must be >= 0")
        if self.sprayer_interval_ms <= 0:
            raise ValueError("sprayer_interval_ms must be > 0")
        if self.spray_bullet_count < 0:
            raise ValueError("spray_bullet_count must be >= 0")
        if any(d < 0 for d in self.initial_spawn_delays_ms):
            raise ValueError("initial_spawn_delays_ms must be >= 0")


@dataclass(frozen=True, slots=True)
class GameSettings:
    """Player-chosen run settings, read once when a run starts."""

    tier: str = DEFAULT_TIER
    operation: str | None = None  # None means any operation


def settings_from_env(environ: Mapping[str, str] | None = None) -> GameSettings:
    env = os.environ if environ is None else environ
    tier = env.get(TIER_ENV, "").strip().lower() or DEFAULT_TIER
    operation = env.get(OPERATION_ENV, "").strip().lower() or ALL_OPERATIONS
    return GameSettings(tier=tier, operation=None if operation == ALL_OPERATIONS else operation)
