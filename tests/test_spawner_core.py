from __future__ import annotations

import random

import pytest

from math_invaders.config import GREEN, PURPLE_SPRAYER, RED, EnemyArchetype, GameConfig, Motion
from math_invaders.effects import DESTROY, SHOOT_AND_DESTROY, SPRAY_AND_DESTROY
from math_invaders.problems import Problem
from math_invaders.spawner import EnemySpawner


class FixedRng(random.Random):
    """random() always returns ``draw``; uniform() returns the midpoint."""

    def __init__(self, draw: float) -> None:
        super().__init__(0)
        self.draw = draw

    def random(self) -> float:
        return self.draw

    def uniform(self, a: float, b: float) -> float:
        return (a + b) / 2.0


class RecordingProblems:
    tiers = ("t0", "t1", "t2")
    categories = ("addition", "division")

    def __init__(self) -> None:
        self.calls: list[tuple[int, str | None]] = []

    def get_problem(self, tier_index: int, category: str | None = None) -> Problem:
        self.calls.append((tier_index, category))
        return Problem(text=f"tier{tier_index}", answer=float(tier_index))


def _spawner(draw: float, **kwargs: object) -> tuple[EnemySpawner, RecordingProblems]:
    problems = RecordingProblems()
    spawner = EnemySpawner(config=GameConfig(), problems=problems, rng=FixedRng(draw), **kwargs)  # type: ignore[arg-type]
    return spawner, problems


def test_weighted_pick_uses_cumulative_boundaries() -> None:
    assert _spawner(0.0)[0].pick_archetype() is GREEN
    assert _spawner(0.79)[0].pick_archetype() is GREEN
    assert _spawner(0.8)[0].pick_archetype() is RED
    assert _spawner(0.99)[0].pick_archetype() is RED


def test_weights_need_not_sum_to_one() -> None:
    a = EnemyArchetype("a", spawn_weight=3.0, color=(1, 1, 1), effect=DESTROY)
    b = EnemyArchetype("b", spawn_weight=1.0, color=(2, 2, 2), effect=DESTROY)
    # draw 0.74 * total(4.0) = 2.96 -> a; 0.76 * 4.0 = 3.04 -> b
    assert _spawner(0.74, archetypes=(a, b))[0].pick_archetype() is a
    assert _spawner(0.76, archetypes=(a, b))[0].pick_archetype() is b


def test_pick_falls_back_to_first_archetype_when_draw_overshoots() -> None:
    spawner, _ = _spawner(1.0)
    assert spawner.pick_archetype() is GREEN


def test_zero_weight_archetype_never_drawn() -> None:
    zero = EnemyArchetype("zero", spawn_weight=0.0, color=(0, 0, 0), effect=DESTROY)
    for draw in (0.0, 0.5, 0.999):
        assert _spawner(draw, archetypes=(zero, GREEN))[0].pick_archetype() is GREEN


def test_invalid_archetype_pools_rejected() -> None:
    zero = EnemyArchetype("zero", spawn_weight=0.0, color=(0, 0, 0), effect=DESTROY)
    with pytest.raises(ValueError):
        _spawner(0.5, archetypes=())
    with pytest.raises(ValueError):
        _spawner(0.5, archetypes=(zero,))
    with pytest.raises(ValueError):
        EnemyArchetype("neg", spawn_weight=-1.0, color=(0, 0, 0), effect=DESTROY)


def test_descending_enemy_placement_velocity_and_problem() -> None:
    spawner, problems = _spawner(0.1)
    cfg = GameConfig()
    enemy = spawner.spawn_standard(entity_id=7, base_tier=0, operation="division", enemy_speed=42.0)

    assert enemy.entity_id == 7
    assert enemy.archetype == "green"
    assert enemy.effect is DESTROY
    assert enemy.is_threat is True
    assert enemy.x == cfg.playfield_width / 2.0
    assert enemy.y == cfg.enemy_height / 2.0
    assert (enemy.dx, enemy.dy) == (0.0, 42.0)
    assert problems.calls == [(0, "division")]


def test_harder_archetype_ignores_operation_filter_and_clamps_tier() -> None:
    spawner, problems = _spawner(0.9)
    enemy = spawner.spawn_standard(entity_id=1, base_tier=2, operation="division", enemy_speed=30.0)
    assert enemy.effect is SHOOT_AND_DESTROY
    assert problems.calls == [(2, None)]


def test_sprayer_traverses_from_off_screen_left_at_fixed_speed() -> None:
    spawner, problems = _spawner(0.5)
    cfg = GameConfig()
    enemy = spawner.spawn_sprayer(entity_id=3, base_tier=0, enemy_speed=999.0)

    assert PURPLE_SPRAYER.motion is Motion.TRAVERSE
    assert enemy.effect is SPRAY_AND_DESTROY
    assert enemy.is_threat is False
    assert enemy.x == -cfg.enemy_width / 2.0
    assert enemy.y == cfg.sprayer_y
    assert (enemy.dx, enemy.dy) == (cfg.traverse_speed, 0.0)
    assert problems.calls == [(2, None)]
