from __future__ import annotations

import os
from pathlib import Path

import pytest


def test_ui_smoke_play_type_answer_and_back(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    # Headless SDL for CI.
    os.environ.setdefault("SDL_VIDEODRIVER", "dummy")
    os.environ.setdefault("SDL_AUDIODRIVER", "dummy")
    monkeypatch.setenv("MATH_INVADERS_DB_PATH", str(tmp_path / "runs.sqlite3"))

    import pygame

    from math_invaders.app import run

    def key(k: int, unicode: str = "") -> None:
        pygame.event.post(pygame.event.Event(pygame.KEYDOWN, {"key": k, "unicode": unicode}))

    def inject(frame: int) -> None:
        # Main Menu -> Play, type an answer, submit, change tier, back out.
        if frame == 1:
            key(pygame.K_RETURN)
        elif frame == 2:
            key(pygame.K_7, "7")
        elif frame == 3:
            key(pygame.K_PERIOD, ".")
        elif frame == 4:
            key(pygame.K_5, "5")
        elif frame == 5:
            key(pygame.K_RETURN)
        elif frame == 6:
            key(pygame.K_F2)
        elif frame == 7:
            key(pygame.K_F3)
        elif frame == 8:
            key(pygame.K_ESCAPE)
        elif frame == 9:
            key(pygame.K_DOWN)

    assert run(max_frames=20, event_injector=inject) == 0


def test_ui_smoke_menu_cycles_settings(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    os.environ.setdefault("SDL_VIDEODRIVER", "dummy")
    os.environ.setdefault("SDL_AUDIODRIVER", "dummy")
    monkeypatch.setenv("MATH_INVADERS_DB_PATH", str(tmp_path / "runs.sqlite3"))
    monkeypatch.setenv("MATH_INVADERS_TIER", "year3")
    monkeypatch.setenv("MATH_INVADERS_OPERATION", "division")

    import pygame

    from math_invaders.app import run

    def inject(frame: int) -> None:
        # Starting tier and Operations rows cycle in place; then Quit.
        keys = {
            1: pygame.K_DOWN,
            2: pygame.K_RETURN,
            3: pygame.K_DOWN,
            4: pygame.K_RETURN,
            5: pygame.K_DOWN,
            6: pygame.K_RETURN,
        }
        if frame in keys:
            pygame.event.post(pygame.event.Event(pygame.KEYDOWN, {"key": keys[frame], "unicode": ""}))

    assert run(max_frames=20, event_injector=inject) == 0
