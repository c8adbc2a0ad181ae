"""Pygame UI shell for Math Invaders.

Screens:
- Main menu (play, starting tier, operation filter, quit)
- Game screen (typed answers, playfield, HUD, game-over overlay)

Deterministic timing/scoring/RNG/state lives in math_invaders/* (core modules);
this module only maps keys to the input dispatcher, feeds frame time to the
simulation and draws what it reports.
"""

from __future__ import annotations

import logging
import os
import random
import sqlite3
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path
from typing import Protocol

import pygame

from .clock import FrameTimer, RealClock
from .config import ALL_OPERATIONS, GameConfig, GameSettings, settings_from_env
from .events import GameEventKind
from .input_dispatcher import InputDispatcher
from .persistence import best_score, record_run
from .problems import CATEGORIES, TieredProblemGenerator
from .results import run_result_from_simulation
from .simulation import Simulation

logger = logging.getLogger(__name__)

APP_VERSION = "0.1.0"
WINDOW_SIZE = (1000, 600)
TARGET_FPS = 60

DB_PATH_ENV = "MATH_INVADERS_DB_PATH"
LOG_LEVEL_ENV = "MATH_INVADERS_LOG_LEVEL"

BACKGROUND = (240, 248, 255)
GRID = (230, 230, 250)
TEXT = (51, 51, 51)
GUN_COLOR = (65, 105, 225)
SHOT_COLOR = (255, 215, 0)
BULLET_COLOR = (255, 0, 0)
INPUT_BG = (51, 51, 51)
INPUT_BORDER = (170, 170, 170)

_KEY_CHARS = {
    **{getattr(pygame, f"K_{d}"): str(d) for d in range(10)},
    **{getattr(pygame, f"K_KP{d}"): str(d) for d in range(10)},
    pygame.K_PERIOD: ".",
    pygame.K_KP_PERIOD: ".",
}


class Screen(Protocol):
    def handle_event(self, event: pygame.event.Event) -> None: ...
    def update(self, elapsed_ms: float) -> None: ...
    def render(self, surface: pygame.Surface) -> None: ...


@dataclass(frozen=True, slots=True)
class MenuItem:
    label: str
    action: Callable[[], None]
    value: Callable[[], str] | None = None


class App:
    def __init__(self, surface: pygame.Surface) -> None:
        self._surface = surface
        self._screens: list[Screen] = []
        self._running = True

    @property
    def running(self) -> bool:
        return self._running

    def push(self, screen: Screen) -> None:
        self._screens.append(screen)

    def pop(self) -> None:
        # Never pop the last/root screen; root handles its own quit/back behavior.
        if len(self._screens) > 1:
            self._screens.pop()

    def quit(self) -> None:
        self._running = False

    def handle_event(self, event: pygame.event.Event) -> None:
        if event.type == pygame.QUIT:
            self.quit()
            return
        if not self._screens:
            return
        self._screens[-1].handle_event(event)

    def update(self, elapsed_ms: float) -> None:
        if not self._screens:
            return
        self._screens[-1].update(elapsed_ms)

    def render(self) -> None:
        if not self._screens:
            return
        self._screens[-1].render(self._surface)


class MenuScreen:
    def __init__(self, app: App, title: str, items: list[MenuItem], *, is_root: bool = False) -> None:
        self._app = app
        self._title = title
        self._items = items
        self._selected = 0
        self._is_root = is_root
        self._title_font = pygame.font.Font(None, 56)
        self._item_font = pygame.font.Font(None, 36)
        self._hint_font = pygame.font.Font(None, 22)

    def handle_event(self, event: pygame.event.Event) -> None:
        if event.type != pygame.KEYDOWN:
            return
        key = event.key
        if key in (pygame.K_UP, pygame.K_w):
            self._move(-1)
        elif key in (pygame.K_DOWN, pygame.K_s):
            self._move(1)
        elif key in (pygame.K_RETURN, pygame.K_KP_ENTER, pygame.K_SPACE):
            self._activate()
        elif key in (pygame.K_ESCAPE, pygame.K_BACKSPACE):
            self._back()

    def update(self, elapsed_ms: float) -> None:
        _ = elapsed_ms

    def _move(self, delta: int) -> None:
        if not self._items:
            return
        self._selected = (self._selected + delta) % len(self._items)

    def _activate(self) -> None:
        if not self._items:
            return
        self._items[self._selected].action()

    def _back(self) -> None:
        if self._is_root:
            self._app.quit()
        else:
            self._app.pop()

    def render(self, surface: pygame.Surface) -> None:
        w, h = surface.get_size()
        surface.fill(BACKGROUND)
        _draw_grid(surface)

        title = self._title_font.render(self._title, True, TEXT)
        surface.blit(title, title.get_rect(center=(w // 2, h // 5)))

        row_h = 48
        y = h // 3
        for idx, item in enumerate(self._items):
            row = pygame.Rect(w // 2 - 220, y, 440, row_h - 8)
            selected = idx == self._selected
            pygame.draw.rect(surface, GUN_COLOR if selected else (255, 255, 255), row)
            pygame.draw.rect(surface, INPUT_BORDER, row, 2)

            color = (255, 255, 255) if selected else TEXT
            label = self._item_font.render(item.label, True, color)
            surface.blit(label, (row.x + 14, row.y + (row.h - label.get_height()) // 2))
            if item.value is not None:
                value = self._item_font.render(item.value(), True, color)
                surface.blit(value, (row.right - 14 - value.get_width(), row.y + (row.h - value.get_height()) // 2))
            y += row_h

        footer = "Up/Down: Move  |  Enter: Select  |  Esc: Quit"
        foot = self._hint_font.render(footer, True, TEXT)
        surface.blit(foot, foot.get_rect(midbottom=(w // 2, h - 16)))


@dataclass(slots=True)
class _Flash:
    kind: GameEventKind
    ttl_ms: float
    total_ms: float
    x: float = 0.0
    y: float = 0.0
    value: float | None = None

    @property
    def fade(self) -> float:
        return max(0.0, min(1.0, self.ttl_ms / self.total_ms))


_FLASH_MS = {
    GameEventKind.EXPLOSION: 200.0,
    GameEventKind.LEVEL_UP: 1500.0,
    GameEventKind.INCORRECT_ANSWER: 500.0,
    GameEventKind.GUN_FIRED: 150.0,
}


@dataclass(slots=True)
class _RunSettings:
    tiers: tuple[str, ...]
    tier: str
    operation: str | None
    operations: tuple[str | None, ...] = field(default=(None, *CATEGORIES))

    def as_settings(self) -> GameSettings:
        return GameSettings(tier=self.tier, operation=self.operation)

    def cycle_tier(self) -> None:
        idx = self.tiers.index(self.tier) if self.tier in self.tiers else -1
        self.tier = self.tiers[(idx + 1) % len(self.tiers)]

    def cycle_operation(self) -> None:
        idx = self.operations.index(self.operation) if self.operation in self.operations else -1
        self.operation = self.operations[(idx + 1) % len(self.operations)]

    def operation_label(self) -> str:
        return self.operation or ALL_OPERATIONS


class GameScreen:
    def __init__(self, app: App, *, sim: Simulation, settings: _RunSettings, db_path: Path) -> None:
        self._app = app
        self._sim = sim
        self._settings = settings
        self._input = InputDispatcher(sim)
        self._db_path = db_path
        self._flashes: list[_Flash] = []
        self._best: int | None = None

        self._problem_font = pygame.font.Font(None, 28)
        self._hud_font = pygame.font.Font(None, 30)
        self._big_font = pygame.font.Font(None, 64)
        self._mid_font = pygame.font.Font(None, 32)

        # Events from construction (GAME_STARTED etc.) carry nothing to draw.
        self._sim.drain_events()

    def handle_event(self, event: pygame.event.Event) -> None:
        if event.type != pygame.KEYDOWN:
            return
        key = event.key
        if key == pygame.K_ESCAPE:
            self._app.pop()
            return
        if key in (pygame.K_RETURN, pygame.K_KP_ENTER):
            self._input.submit()
            return
        if key == pygame.K_BACKSPACE:
            self._input.backspace()
            return
        if key == pygame.K_F2:
            self._settings.cycle_tier()
            self._restart_with_settings()
            return
        if key == pygame.K_F3:
            self._settings.cycle_operation()
            self._restart_with_settings()
            return

        char = event.unicode if getattr(event, "unicode", "") else _KEY_CHARS.get(key, "")
        if char:
            self._input.press(char)

    def _restart_with_settings(self) -> None:
        self._input.clear()
        self._flashes.clear()
        self._sim.configure(self._settings.as_settings())

    def update(self, elapsed_ms: float) -> None:
        self._sim.tick(elapsed_ms)

        for flash in self._flashes:
            flash.ttl_ms -= elapsed_ms
        self._flashes = [f for f in self._flashes if f.ttl_ms > 0.0]

        for event in self._sim.drain_events():
            if event.kind is GameEventKind.GAME_STARTED:
                self._flashes.clear()
                self._best = None
            elif event.kind is GameEventKind.GAME_OVER:
                self._record_run()
            total = _FLASH_MS.get(event.kind)
            if total is not None:
                self._flashes.append(
                    _Flash(
                        kind=event.kind,
                        ttl_ms=total,
                        total_ms=total,
                        x=event.x or 0.0,
                        y=event.y or 0.0,
                        value=event.value,
                    )
                )

    def _record_run(self) -> None:
        result = run_result_from_simulation(self._sim)
        try:
            record_run(db_path=self._db_path, result=result, app_version=APP_VERSION)
            self._best = best_score(db_path=self._db_path, tier=result.tier)
        except sqlite3.Error:
            logger.warning("could not record run to %s", self._db_path, exc_info=True)

    def render(self, surface: pygame.Surface) -> None:
        snap = self._sim.snapshot()
        surface.fill(BACKGROUND)
        _draw_grid(surface)

        for flash in self._flashes:
            if flash.kind is GameEventKind.INCORRECT_ANSWER:
                overlay = pygame.Surface(surface.get_size(), pygame.SRCALPHA)
                overlay.fill((255, 0, 0, int(77 * flash.fade)))
                surface.blit(overlay, (0, 0))

        for enemy in snap.enemies:
            r = enemy.rect
            rect = pygame.Rect(int(r.left), int(r.top), int(r.width), int(r.height))
            pygame.draw.rect(surface, enemy.color, rect)
            pygame.draw.rect(surface, TEXT, rect, 2)
            text = self._problem_font.render(enemy.problem.text, True, (0, 0, 0))
            surface.blit(text, text.get_rect(center=rect.center))

        gun = snap.gun.rect
        grow = 1.0
        for flash in self._flashes:
            if flash.kind is GameEventKind.GUN_FIRED:
                grow = 1.0 + 0.2 * flash.fade
        gun_rect = pygame.Rect(0, 0, int(gun.width * grow), int(gun.height * grow))
        gun_rect.center = (int(gun.cx), int(gun.cy))
        pygame.draw.rect(surface, GUN_COLOR, gun_rect)
        pygame.draw.rect(surface, (0, 0, 0), gun_rect, 2)
        gun_text = self._problem_font.render(snap.gun_problem_text, True, (255, 255, 255))
        surface.blit(gun_text, gun_text.get_rect(center=gun_rect.center))

        for shot in snap.shots:
            pygame.draw.circle(surface, SHOT_COLOR, (int(shot.x), int(shot.y)), int(shot.radius))
        for bullet in snap.enemy_bullets:
            pygame.draw.circle(surface, BULLET_COLOR, (int(bullet.x), int(bullet.y)), int(bullet.radius))

        for flash in self._flashes:
            if flash.kind is GameEventKind.EXPLOSION:
                radius = int(5 + 20 * (1.0 - flash.fade))
                pygame.draw.circle(surface, (255, 165, 0), (int(flash.x), int(flash.y)), radius, 3)
            elif flash.kind is GameEventKind.LEVEL_UP:
                text = self._big_font.render(f"LEVEL {int(flash.value or snap.level)}!", True, (255, 85, 0))
                text.set_alpha(int(255 * flash.fade))
                surface.blit(text, text.get_rect(center=(surface.get_width() // 2, surface.get_height() // 2)))

        self._render_hud(surface, snap.score, snap.lives, snap.level, snap.tier, snap.operation)
        self._render_input(surface)
        if snap.game_over:
            self._render_game_over(surface, snap.score)

    def _render_hud(self, surface: pygame.Surface, score: int, lives: int, level: int, tier: str, op: str | None) -> None:
        lines = (f"Score: {score}", f"Lives: {lives}", f"Level: {level}")
        for i, line in enumerate(lines):
            surface.blit(self._hud_font.render(line, True, TEXT), (20, 20 + i * 30))
        setting = self._problem_font.render(f"{tier} / {op or ALL_OPERATIONS}  (F2/F3)", True, TEXT)
        surface.blit(setting, (surface.get_width() - setting.get_width() - 20, 20))

    def _render_input(self, surface: pygame.Surface) -> None:
        box = pygame.Rect(0, 0, 200, 40)
        box.center = (surface.get_width() // 2, 480)
        pygame.draw.rect(surface, INPUT_BG, box)
        pygame.draw.rect(surface, INPUT_BORDER, box, 2)
        text = self._mid_font.render(self._input.display(), True, (255, 255, 255))
        surface.blit(text, text.get_rect(center=box.center))

    def _render_game_over(self, surface: pygame.Surface, score: int) -> None:
        cx, cy = surface.get_width() // 2, surface.get_height() // 2
        panel = pygame.Surface((500, 220), pygame.SRCALPHA)
        panel.fill((0, 0, 0, 180))
        surface.blit(panel, panel.get_rect(center=(cx, cy)))

        title = self._big_font.render("Game Over", True, (255, 0, 0))
        surface.blit(title, title.get_rect(center=(cx, cy - 60)))
        final = self._mid_font.render(f"Final Score: {score}", True, (255, 255, 255))
        surface.blit(final, final.get_rect(center=(cx, cy)))
        if self._best is not None:
            best = self._mid_font.render(f"Best: {self._best}", True, (255, 255, 255))
            surface.blit(best, best.get_rect(center=(cx, cy + 34)))
        hint = self._problem_font.render("Press ENTER to Play Again", True, (255, 255, 255))
        surface.blit(hint, hint.get_rect(center=(cx, cy + 72)))


def _draw_grid(surface: pygame.Surface) -> None:
    w, h = surface.get_size()
    for x in range(0, w, 50):
        pygame.draw.line(surface, GRID, (x, 0), (x, h))
    for y in range(0, h, 50):
        pygame.draw.line(surface, GRID, (0, y), (w, y))


def _configure_logging() -> None:
    level_name = os.environ.get(LOG_LEVEL_ENV, "WARNING").strip().upper()
    level = getattr(logging, level_name, None)
    if not isinstance(level, int):
        level = logging.WARNING
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")


def _default_db_path() -> Path:
    explicit = os.environ.get(DB_PATH_ENV)
    if explicit:
        return Path(explicit).expanduser()
    return Path.home() / ".math_invaders.sqlite3"


def _new_seed() -> int:
    return random.SystemRandom().randint(1, 2**31 - 1)


def run(*, max_frames: int | None = None, event_injector: Callable[[int], None] | None = None) -> int:
    _configure_logging()
    pygame.init()

    pygame.display.set_caption("Math Invaders")
    surface = pygame.display.set_mode(WINDOW_SIZE)

    clock = pygame.time.Clock()
    frame_timer = FrameTimer(RealClock())

    app = App(surface=surface)

    env_settings = settings_from_env()
    tiers = TieredProblemGenerator(seed=0).tiers
    run_settings = _RunSettings(
        tiers=tiers,
        tier=env_settings.tier if env_settings.tier in tiers else tiers[0],
        operation=env_settings.operation if env_settings.operation in CATEGORIES else None,
    )
    db_path = _default_db_path()
    config = GameConfig(playfield_width=float(WINDOW_SIZE[0]), playfield_height=float(WINDOW_SIZE[1]))

    def open_game() -> None:
        seed = _new_seed()
        sim = Simulation(
            problems=TieredProblemGenerator(seed=seed),
            seed=seed,
            config=config,
            settings=run_settings.as_settings(),
        )
        app.push(GameScreen(app, sim=sim, settings=run_settings, db_path=db_path))

    main_items = [
        MenuItem("Play", open_game),
        MenuItem("Starting tier", run_settings.cycle_tier, value=lambda: run_settings.tier),
        MenuItem("Operations", run_settings.cycle_operation, value=run_settings.operation_label),
        MenuItem("Quit", app.quit),
    ]

    app.push(MenuScreen(app, "Math Invaders", main_items, is_root=True))

    frame = 0
    try:
        while app.running:
            if event_injector is not None:
                event_injector(frame)

            for event in pygame.event.get():
                app.handle_event(event)

            app.update(frame_timer.elapsed_ms())
            app.render()

            pygame.display.flip()

            frame += 1
            if max_frames is not None and frame >= max_frames:
                break

            clock.tick(TARGET_FPS)
    finally:
        pygame.quit()

    return 0
