"""Deterministic core of the game.

The :class:`Simulation` owns every entity, the run state (score, lives, game
over) and the difficulty state. It is advanced one frame at a time with
:meth:`Simulation.tick` and receives typed answers through
:meth:`Simulation.submit_answer`. Both calls run to completion; nothing else
mutates the simulation.

Spawning is driven by logical clocks accumulated from the elapsed time passed
to ``tick`` rather than by callbacks, so two simulations built with the same
seed, problem source and inputs evolve identically. The simulation never
draws anything: the UI drains :class:`~math_invaders.events.GameEvent`
notifications with :meth:`Simulation.drain_events` and reads
:meth:`Simulation.snapshot`.
"""

from __future__ import annotations

import itertools
import logging
import math
import random
from dataclasses import dataclass, replace
from numbers import Real

from .config import (
    DEFAULT_TIER,
    PURPLE_SPRAYER,
    STANDARD_ARCHETYPES,
    EnemyArchetype,
    GameConfig,
    GameSettings,
)
from .difficulty import DifficultyState, advance_level, apply_wrong_answer
from .entities import Enemy, Gun, Projectile
from .events import GameEvent, GameEventKind
from .problems import Problem, ProblemSource, answers_match, clamp_tier_index, problem_for_offset
from .spawner import EnemySpawner

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class RunState:
    score: int = 0
    lives: int = 3
    game_over: bool = False


@dataclass(slots=True)
class RunStats:
    answers_submitted: int = 0
    correct_submissions: int = 0
    incorrect_submissions: int = 0
    enemies_solved: int = 0  # by typed answer
    enemies_destroyed: int = 0  # by any means
    gun_volleys: int = 0
    lives_lost: int = 0
    elapsed_ms: float = 0.0
    highest_level: int = 1


@dataclass(frozen=True, slots=True)
class AnswerOutcome:
    value: float
    gun_fired: bool
    enemies_solved: int
    penalized: bool

    @property
    def correct(self) -> bool:
        return self.gun_fired or self.enemies_solved > 0


@dataclass(frozen=True, slots=True)
class SimulationSnapshot:
    """View model for the UI (pure data apart from the entity references)."""

    score: int
    lives: int
    level: int
    game_over: bool
    enemy_speed: float
    spawn_interval_ms: float
    gun_problem_text: str
    tier: str
    operation: str | None
    gun: Gun
    enemies: tuple[Enemy, ...]
    shots: tuple[Projectile, ...]
    enemy_bullets: tuple[Projectile, ...]


class Simulation:
    def __init__(
        self,
        *,
        problems: ProblemSource,
        seed: int,
        config: GameConfig | None = None,
        settings: GameSettings | None = None,
        archetypes: tuple[EnemyArchetype, ...] = STANDARD_ARCHETYPES,
        sprayer: EnemyArchetype = PURPLE_SPRAYER,
    ) -> None:
        self._config = config if config is not None else GameConfig()
        self._problems = problems
        self._seed = int(seed)
        self._rng = random.Random(self._seed)
        self._spawner = EnemySpawner(
            config=self._config,
            problems=problems,
            rng=self._rng,
            archetypes=archetypes,
            sprayer=sprayer,
        )
        cfg = self._config
        self._gun = Gun(cfg.gun_x, cfg.gun_y, cfg.gun_width, cfg.gun_height)
        self._ids = itertools.count(1)
        self._events: list[GameEvent] = []

        self._base_tier, self._operation = self._resolve_settings(settings or GameSettings())

        self._run = RunState(lives=cfg.initial_lives)
        self._difficulty = DifficultyState.initial(cfg.difficulty)
        self._stats = RunStats()
        self._enemies: list[Enemy] = []
        self._shots: list[Projectile] = []
        self._enemy_bullets: list[Projectile] = []
        self._gun_problem: Problem = Problem(text="", answer=math.nan)
        self._ms_since_last_spawn = 0.0
        self._ms_since_last_sprayer_spawn = 0.0
        self._pending_spawns: list[float] = []

        self.start_game()

    # ------------------------------------------------------------------
    # Read-only state

    @property
    def seed(self) -> int:
        return self._seed

    @property
    def config(self) -> GameConfig:
        return self._config

    @property
    def score(self) -> int:
        return self._run.score

    @property
    def lives(self) -> int:
        return self._run.lives

    @property
    def game_over(self) -> bool:
        return self._run.game_over

    @property
    def run_state(self) -> RunState:
        return replace(self._run)

    @property
    def difficulty(self) -> DifficultyState:
        return self._difficulty

    @property
    def level(self) -> int:
        return self._difficulty.level

    @property
    def enemy_speed(self) -> float:
        return self._difficulty.enemy_speed

    @property
    def spawn_interval_ms(self) -> float:
        return self._difficulty.spawn_interval_ms

    @property
    def stats(self) -> RunStats:
        return replace(self._stats)

    @property
    def gun(self) -> Gun:
        return self._gun

    @property
    def gun_problem(self) -> Problem:
        return self._gun_problem

    @property
    def base_tier(self) -> int:
        return self._base_tier

    @property
    def tier_name(self) -> str:
        return self._problems.tiers[self._base_tier]

    @property
    def operation(self) -> str | None:
        return self._operation

    @property
    def enemies(self) -> tuple[Enemy, ...]:
        return tuple(e for e in self._enemies if e.alive)

    @property
    def shots(self) -> tuple[Projectile, ...]:
        return tuple(s for s in self._shots if s.alive)

    @property
    def enemy_bullets(self) -> tuple[Projectile, ...]:
        return tuple(b for b in self._enemy_bullets if b.alive)

    @property
    def ms_since_last_spawn(self) -> float:
        return self._ms_since_last_spawn

    @property
    def ms_since_last_sprayer_spawn(self) -> float:
        return self._ms_since_last_sprayer_spawn

    def snapshot(self) -> SimulationSnapshot:
        return SimulationSnapshot(
            score=self._run.score,
            lives=self._run.lives,
            level=self._difficulty.level,
            game_over=self._run.game_over,
            enemy_speed=self._difficulty.enemy_speed,
            spawn_interval_ms=self._difficulty.spawn_interval_ms,
            gun_problem_text=self._gun_problem.text,
            tier=self.tier_name,
            operation=self._operation,
            gun=self._gun,
            enemies=self.enemies,
            shots=self.shots,
            enemy_bullets=self.enemy_bullets,
        )

    def drain_events(self) -> list[GameEvent]:
        events = self._events
        self._events = []
        return events

    # ------------------------------------------------------------------
    # Run lifecycle

    def start_game(self) -> None:
        """Reset to a fresh run. Also used to restart after game over."""

        cfg = self._config
        self._events = []
        self._run = RunState(score=0, lives=cfg.initial_lives, game_over=False)
        self._difficulty = DifficultyState.initial(cfg.difficulty)
        self._stats = RunStats()
        self._enemies.clear()
        self._shots.clear()
        self._enemy_bullets.clear()
        self._ms_since_last_spawn = 0.0
        self._ms_since_last_sprayer_spawn = 0.0
        self._pending_spawns = sorted(float(d) for d in cfg.initial_spawn_delays_ms)
        self._gun_problem = self._deal_gun_problem()

        self._emit(GameEventKind.GAME_STARTED)
        self._emit(GameEventKind.SCORE_CHANGED, value=0)
        self._emit(GameEventKind.LIVES_CHANGED, value=self._run.lives)
        self._emit(GameEventKind.LEVEL_CHANGED, value=self._difficulty.level)
        logger.info("run started: tier=%s operation=%s", self.tier_name, self._operation or "all")

    def configure(self, settings: GameSettings) -> None:
        """Apply new tier/operation settings; always restarts the run."""

        self._base_tier, self._operation = self._resolve_settings(settings)
        self.start_game()

    # ------------------------------------------------------------------
    # Frame step

    def tick(self, elapsed_ms: float) -> None:
        if self._run.game_over:
            return
        if not math.isfinite(elapsed_ms) or elapsed_ms <= 0.0:
            return
        elapsed_ms = float(elapsed_ms)
        self._stats.elapsed_ms += elapsed_ms

        self._run_spawn_timers(elapsed_ms)
        self._advance(elapsed_ms / 1000.0)
        self._check_boundaries()
        if not self._run.game_over:
            self._resolve_collisions()
        self._prune()

    def _run_spawn_timers(self, elapsed_ms: float) -> None:
        cfg = self._config

        # Staggered opening spawns, measured from the start of the run.
        while self._pending_spawns and self._pending_spawns[0] <= self._stats.elapsed_ms:
            self._pending_spawns.pop(0)
            self.spawn_standard_enemy()

        self._ms_since_last_spawn += elapsed_ms
        while self._ms_since_last_spawn >= self._difficulty.spawn_interval_ms:
            self._ms_since_last_spawn -= self._difficulty.spawn_interval_ms
            self.spawn_standard_enemy()

        self._ms_since_last_sprayer_spawn += elapsed_ms
        while self._ms_since_last_sprayer_spawn >= cfg.sprayer_interval_ms:
            self._ms_since_last_sprayer_spawn -= cfg.sprayer_interval_ms
            self.spawn_sprayer_enemy()

    def _advance(self, dt_s: float) -> None:
        for entity in itertools.chain(self._enemies, self._shots, self._enemy_bullets):
            if entity.alive:
                entity.x += entity.dx * dt_s
                entity.y += entity.dy * dt_s

    def _check_boundaries(self) -> None:
        w = self._config.playfield_width
        h = self._config.playfield_height

        # Copy: a breach may spawn a replacement enemy.
        for enemy in list(self._enemies):
            if not enemy.alive:
                continue
            if enemy.is_threat:
                if enemy.y > h:
                    enemy.alive = False
                    self._stats.enemies_destroyed += 1
                    self._lose_life()
                    self._replace_if_empty()
            elif enemy.outside(w, h):
                enemy.alive = False

        for projectile in itertools.chain(self._shots, self._enemy_bullets):
            if projectile.alive and projectile.outside(w, h):
                projectile.alive = False

    def _resolve_collisions(self) -> None:
        # Snapshots: effects below may spawn bullets and replacement enemies,
        # which only take part in collisions from the next tick on.
        enemies = [e for e in self._enemies if e.alive]
        shots = [s for s in self._shots if s.alive]
        bullets = [b for b in self._enemy_bullets if b.alive]

        for shot in shots:
            target = _first_hit(shot, enemies)
            if target is None:
                continue
            shot.alive = False
            self.solve_enemy(target)

        for bullet in bullets:
            if not bullet.alive:
                continue
            target = _first_hit(bullet, enemies)
            if target is None:
                continue
            if bullet.bounces:
                bullet.reflect_off(target.rect)
            else:
                bullet.alive = False
            self.solve_enemy(target)

        gun_rect = self._gun.rect
        for bullet in bullets:
            if self._run.game_over:
                break
            if bullet.alive and gun_rect.contains_point(bullet.x, bullet.y):
                bullet.alive = False
                self._lose_life()

    def _prune(self) -> None:
        self._enemies = [e for e in self._enemies if e.alive]
        self._shots = [s for s in self._shots if s.alive]
        self._enemy_bullets = [b for b in self._enemy_bullets if b.alive]

    # ------------------------------------------------------------------
    # Spawning

    def spawn_standard_enemy(self) -> Enemy | None:
        if self._run.game_over:
            return None
        enemy = self._spawner.spawn_standard(
            entity_id=next(self._ids),
            base_tier=self._base_tier,
            operation=self._operation,
            enemy_speed=self._difficulty.enemy_speed,
        )
        self._enemies.append(enemy)
        return enemy

    def spawn_sprayer_enemy(self) -> Enemy | None:
        if self._run.game_over:
            return None
        enemy = self._spawner.spawn_sprayer(
            entity_id=next(self._ids),
            base_tier=self._base_tier,
            enemy_speed=self._difficulty.enemy_speed,
        )
        self._enemies.append(enemy)
        return enemy

    def _replace_if_empty(self) -> None:
        if self._run.game_over:
            return
        if any(e.alive for e in self._enemies):
            return
        self.spawn_standard_enemy()

    # ------------------------------------------------------------------
    # Effects API (called by effect strategies)

    def solve_enemy(self, enemy: Enemy) -> bool:
        """Run the enemy's bound effect. Returns False if it was already dead."""

        if self._run.game_over or not enemy.alive:
            return False
        enemy.effect.execute(self, enemy)
        return True

    def destroy_enemy(self, enemy: Enemy) -> bool:
        if self._run.game_over or not enemy.alive:
            return False
        enemy.alive = False
        self._stats.enemies_destroyed += 1
        self._emit(GameEventKind.EXPLOSION, x=enemy.x, y=enemy.y)
        self._award(self._config.points_per_enemy)
        self._replace_if_empty()
        return True

    def fire_retaliation(self, x: float, y: float) -> None:
        cfg = self._config
        for ux, uy in _unit_vectors(cfg.retaliation_directions):
            self._enemy_bullets.append(
                Projectile(
                    entity_id=next(self._ids),
                    x=x,
                    y=y,
                    dx=ux * cfg.retaliation_speed,
                    dy=uy * cfg.retaliation_speed,
                    radius=cfg.retaliation_radius,
                    bounces=cfg.retaliation_bounces,
                )
            )

    def fire_spray(self, x: float, y: float) -> None:
        cfg = self._config
        n = cfg.spray_bullet_count
        for i in range(n):
            angle = 2.0 * math.pi * i / n
            self._enemy_bullets.append(
                Projectile(
                    entity_id=next(self._ids),
                    x=x,
                    y=y,
                    dx=math.cos(angle) * cfg.spray_speed,
                    dy=math.sin(angle) * cfg.spray_speed,
                    radius=cfg.spray_radius,
                    bounces=True,
                )
            )

    # ------------------------------------------------------------------
    # Answers

    def submit_answer(self, value: float) -> AnswerOutcome | None:
        """Match ``value`` against the gun problem and every live enemy.

        Returns None when the submission was ignored (run over, not a finite
        number, or out of range).
        """

        if self._run.game_over:
            return None
        if isinstance(value, bool) or not isinstance(value, Real):
            return None
        try:
            value = float(value)
        except OverflowError:
            return None
        if not math.isfinite(value) or abs(value) > self._config.max_answer_magnitude:
            return None

        gun_hit = answers_match(self._gun_problem, value)
        matches = [e for e in self._enemies if e.alive and answers_match(e.problem, value)]

        if gun_hit:
            self._fire_gun()
        for enemy in matches:
            self.solve_enemy(enemy)

        penalized = not gun_hit and not matches
        if penalized:
            self._apply_penalty(value)

        self._stats.answers_submitted += 1
        if penalized:
            self._stats.incorrect_submissions += 1
        else:
            self._stats.correct_submissions += 1
            self._stats.enemies_solved += len(matches)

        if gun_hit and matches:
            context = f"gun + {len(matches)} enemy(s)"
        elif gun_hit:
            context = "gun"
        elif matches:
            context = f"{len(matches)} enemy(s)"
        else:
            context = "incorrect"
        logger.debug("answered %s (%s)", value, context)

        return AnswerOutcome(value=value, gun_fired=gun_hit, enemies_solved=len(matches), penalized=penalized)

    def _fire_gun(self) -> None:
        cfg = self._config
        x = self._gun.x
        y = self._gun.y + cfg.shot_offset_y
        for ux, uy in _unit_vectors(cfg.shot_directions):
            self._shots.append(
                Projectile(
                    entity_id=next(self._ids),
                    x=x,
                    y=y,
                    dx=ux * cfg.shot_speed,
                    dy=uy * cfg.shot_speed,
                    radius=cfg.shot_radius,
                )
            )
        self._stats.gun_volleys += 1
        self._emit(GameEventKind.GUN_FIRED, x=self._gun.x, y=self._gun.y)
        self._gun_problem = self._deal_gun_problem()

    def _deal_gun_problem(self) -> Problem:
        return problem_for_offset(
            self._problems,
            base_tier=self._base_tier,
            offset=self._config.gun_tier_offset,
            category=None,
        )

    # ------------------------------------------------------------------
    # Score, lives and difficulty

    def _award(self, points: int) -> None:
        self._run.score += points
        self._emit(GameEventKind.SCORE_CHANGED, value=self._run.score)

        before = self._difficulty
        self._difficulty = advance_level(before, self._config.difficulty, score=self._run.score)
        if self._difficulty.level == before.level:
            return
        self._stats.highest_level = max(self._stats.highest_level, self._difficulty.level)
        self._apply_speed_to_threats()
        self._emit(GameEventKind.LEVEL_CHANGED, value=self._difficulty.level)
        self._emit(GameEventKind.LEVEL_UP, value=self._difficulty.level)
        logger.info(
            "level %d: enemy_speed=%.2f spawn_interval_ms=%.0f",
            self._difficulty.level,
            self._difficulty.enemy_speed,
            self._difficulty.spawn_interval_ms,
        )

    def _apply_penalty(self, value: float) -> None:
        self._difficulty = apply_wrong_answer(self._difficulty, self._config.difficulty)
        self._apply_speed_to_threats()
        self._emit(GameEventKind.INCORRECT_ANSWER, value=value)

    def _apply_speed_to_threats(self) -> None:
        speed = self._difficulty.enemy_speed
        for enemy in self._enemies:
            if enemy.alive and enemy.is_threat:
                enemy.dy = speed

    def _lose_life(self) -> None:
        if self._run.game_over:
            return
        self._run.lives = max(0, self._run.lives - 1)
        self._stats.lives_lost += 1
        self._emit(GameEventKind.LIVES_CHANGED, value=self._run.lives)
        if self._run.lives <= 0:
            self._run.game_over = True
            self._emit(GameEventKind.GAME_OVER, value=self._run.score)
            logger.info("game over: score=%d level=%d", self._run.score, self._difficulty.level)

    # ------------------------------------------------------------------

    def _resolve_settings(self, settings: GameSettings) -> tuple[int, str | None]:
        tiers = self._problems.tiers
        if settings.tier in tiers:
            tier = tiers.index(settings.tier)
        elif DEFAULT_TIER in tiers:
            logger.warning("unknown tier %r, using %s", settings.tier, DEFAULT_TIER)
            tier = tiers.index(DEFAULT_TIER)
        else:
            tier = 0
        operation = settings.operation
        if operation is not None and operation not in self._problems.categories:
            logger.warning("unknown operation %r, using all", operation)
            operation = None
        return clamp_tier_index(self._problems, tier), operation

    def _emit(self, kind: GameEventKind, *, value: float | None = None, x: float | None = None, y: float | None = None) -> None:
        self._events.append(GameEvent(kind=kind, value=value, x=x, y=y))


def _first_hit(projectile: Projectile, enemies: list[Enemy]) -> Enemy | None:
    # First live match in spawn order wins; later overlapping enemies are untouched.
    for enemy in enemies:
        if enemy.alive and enemy.rect.contains_point(projectile.x, projectile.y):
            return enemy
    return None


def _unit_vectors(directions: tuple[tuple[float, float], ...]) -> list[tuple[float, float]]:
    out = []
    for dx, dy in directions:
        n = math.hypot(dx, dy)
        out.append((0.0, 0.0) if n == 0.0 else (dx / n, dy / n))
    return out
