"""What happens when an enemy's problem is solved.

Strategies are stateless and shared by every enemy of an archetype. Each one
ends with the enemy destroyed (and the fixed score award that goes with it);
some spawn enemy bullets first.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

from .entities import Enemy

if TYPE_CHECKING:
    from .simulation import Simulation


class EffectStrategy(Protocol):
    name: str

    def execute(self, sim: "Simulation", enemy: Enemy) -> None: ...


class DestroyEffect:
    name = "destroy"

    def execute(self, sim: "Simulation", enemy: Enemy) -> None:
        sim.destroy_enemy(enemy)


class ShootAndDestroyEffect:
    """Retaliates with a diagonal burst of bullets before dying."""

    name = "shoot_and_destroy"

    def execute(self, sim: "Simulation", enemy: Enemy) -> None:
        if not enemy.alive:
            return
        sim.fire_retaliation(enemy.x, enemy.y)
        sim.destroy_enemy(enemy)


class SprayAndDestroyEffect:
    """Releases a full ring of bouncing bullets before dying."""

    name = "spray_and_destroy"

    def execute(self, sim: "Simulation", enemy: Enemy) -> None:
        if not enemy.alive:
            return
        sim.fire_spray(enemy.x, enemy.y)
        sim.destroy_enemy(enemy)


DESTROY = DestroyEffect()
SHOOT_AND_DESTROY = ShootAndDestroyEffect()
SPRAY_AND_DESTROY = SprayAndDestroyEffect()
