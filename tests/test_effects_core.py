from __future__ import annotations

import pytest

from math_invaders.config import GREEN, GameConfig, GameSettings
from math_invaders.difficulty import DifficultyTuning
from math_invaders.effects import DESTROY, SHOOT_AND_DESTROY, SPRAY_AND_DESTROY
from math_invaders.problems import Problem
from math_invaders.simulation import Simulation


class CountingProblems:
    tiers = ("t0", "t1", "t2")
    categories = ("addition",)

    def __init__(self) -> None:
        self._n = 0

    def get_problem(self, tier_index: int, category: str | None = None) -> Problem:
        self._n += 1
        return Problem(text=f"#{self._n}", answer=float(self._n))


def _sim() -> Simulation:
    sim = Simulation(
        problems=CountingProblems(),
        seed=3,
        config=GameConfig(
            initial_spawn_delays_ms=(),
            sprayer_interval_ms=1e9,
            difficulty=DifficultyTuning(base_spawn_interval_ms=1e9),
        ),
        settings=GameSettings(tier="t0"),
        archetypes=(GREEN,),
    )
    # A bystander keeps replacement spawns out of the way.
    sim.spawn_standard_enemy()
    return sim


@pytest.mark.parametrize(
    ("effect", "bullets"),
    [(DESTROY, 0), (SHOOT_AND_DESTROY, 4), (SPRAY_AND_DESTROY, 12)],
)
def test_every_effect_destroys_and_awards_once(effect, bullets: int) -> None:
    sim = _sim()
    enemy = sim.spawn_standard_enemy()
    assert enemy is not None

    effect.execute(sim, enemy)
    assert not enemy.alive
    assert sim.score == 10
    assert len(sim.enemy_bullets) == bullets

    # Running it again on a dead enemy is a no-op.
    effect.execute(sim, enemy)
    assert sim.score == 10
    assert len(sim.enemy_bullets) == bullets


def test_retaliation_bullets_fly_diagonally_from_enemy() -> None:
    sim = _sim()
    enemy = sim.spawn_standard_enemy()
    assert enemy is not None
    x, y = enemy.x, enemy.y

    SHOOT_AND_DESTROY.execute(sim, enemy)
    speed = sim.config.retaliation_speed
    for b in sim.enemy_bullets:
        assert (b.x, b.y) == (x, y)
        assert b.dx != 0 and b.dy != 0
        assert abs(abs(b.dx) - abs(b.dy)) < 1e-9
        assert abs((b.dx**2 + b.dy**2) ** 0.5 - speed) < 1e-9


def test_spray_ring_is_evenly_spread() -> None:
    sim = _sim()
    enemy = sim.spawn_standard_enemy()
    assert enemy is not None

    SPRAY_AND_DESTROY.execute(sim, enemy)
    bullets = sim.enemy_bullets
    speed = sim.config.spray_speed
    assert all(b.bounces for b in bullets)
    assert all(abs((b.dx**2 + b.dy**2) ** 0.5 - speed) < 1e-9 for b in bullets)
    assert abs(sum(b.dx for b in bullets)) < 1e-6
    assert abs(sum(b.dy for b in bullets)) < 1e-6
