from __future__ import annotations

import logging
import random

from .config import PURPLE_SPRAYER, STANDARD_ARCHETYPES, EnemyArchetype, GameConfig, Motion
from .entities import Enemy
from .problems import ProblemSource, problem_for_offset

logger = logging.getLogger(__name__)


class EnemySpawner:
    """Builds enemies from archetypes.

    Standard enemies come from a weighted pool; the sprayer archetype is
    spawned separately on its own timer. Problems are dealt from the
    archetype's tier offset above the run's base tier. Descending enemies
    take the current enemy speed; traversing ones use a fixed speed that
    difficulty never touches.
    """

    def __init__(
        self,
        *,
        config: GameConfig,
        problems: ProblemSource,
        rng: random.Random,
        archetypes: tuple[EnemyArchetype, ...] = STANDARD_ARCHETYPES,
        sprayer: EnemyArchetype = PURPLE_SPRAYER,
    ) -> None:
        if not archetypes:
            raise ValueError("archetypes must not be empty")
        total = sum(a.spawn_weight for a in archetypes)
        if total <= 0:
            raise ValueError("archetype spawn weights must sum to > 0")
        self._config = config
        self._problems = problems
        self._rng = rng
        self._archetypes = archetypes
        self._total_weight = float(total)
        self._sprayer = sprayer

    def pick_archetype(self) -> EnemyArchetype:
        draw = self._rng.random() * self._total_weight
        cumulative = 0.0
        for archetype in self._archetypes:
            cumulative += archetype.spawn_weight
            if draw < cumulative:
                return archetype
        # Float rounding can leave the draw just past the last boundary.
        return self._archetypes[0]

    def spawn_standard(
        self,
        *,
        entity_id: int,
        base_tier: int,
        operation: str | None,
        enemy_speed: float,
    ) -> Enemy:
        return self.build(
            self.pick_archetype(),
            entity_id=entity_id,
            base_tier=base_tier,
            operation=operation,
            enemy_speed=enemy_speed,
        )

    def spawn_sprayer(self, *, entity_id: int, base_tier: int, enemy_speed: float) -> Enemy:
        return self.build(
            self._sprayer,
            entity_id=entity_id,
            base_tier=base_tier,
            operation=None,
            enemy_speed=enemy_speed,
        )

    def build(
        self,
        archetype: EnemyArchetype,
        *,
        entity_id: int,
        base_tier: int,
        operation: str | None,
        enemy_speed: float,
    ) -> Enemy:
        cfg = self._config
        problem = problem_for_offset(
            self._problems,
            base_tier=base_tier,
            offset=archetype.tier_offset,
            category=operation if archetype.use_operation_filter else None,
        )

        if archetype.motion is Motion.TRAVERSE:
            x = -cfg.enemy_width / 2.0
            y = cfg.sprayer_y
            dx, dy = cfg.traverse_speed, 0.0
        else:
            half_w = cfg.enemy_width / 2.0
            x = self._rng.uniform(half_w, cfg.playfield_width - half_w)
            y = cfg.enemy_height / 2.0
            dx, dy = 0.0, float(enemy_speed)

        logger.debug("spawned %s enemy #%d at (%.1f, %.1f)", archetype.name, entity_id, x, y)
        return Enemy(
            entity_id=entity_id,
            x=x,
            y=y,
            dx=dx,
            dy=dy,
            width=cfg.enemy_width,
            height=cfg.enemy_height,
            problem=problem,
            effect=archetype.effect,
            is_threat=archetype.is_threat,
            color=archetype.color,
            archetype=archetype.name,
        )
