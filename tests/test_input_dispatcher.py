from __future__ import annotations

from math_invaders.config import GREEN, GameConfig, GameSettings
from math_invaders.input_dispatcher import InputDispatcher
from math_invaders.problems import Problem
from math_invaders.simulation import Simulation


class FixedProblems:
    tiers = ("t0", "t1")
    categories = ("addition",)

    def get_problem(self, tier_index: int, category: str | None = None) -> Problem:
        return Problem(text="6 + 6", answer=12.0)


def _dispatcher(max_length: int = 10) -> tuple[InputDispatcher, Simulation]:
    sim = Simulation(
        problems=FixedProblems(),
        seed=5,
        config=GameConfig(initial_spawn_delays_ms=()),
        settings=GameSettings(tier="t0"),
        archetypes=(GREEN,),
    )
    return InputDispatcher(sim, max_length=max_length), sim


def _type(d: InputDispatcher, text: str) -> list[bool]:
    return [d.press(c) for c in text]


def test_digits_and_single_decimal_point() -> None:
    d, _ = _dispatcher()
    assert d.display() == "_"
    assert _type(d, "1.2.5") == [True, True, True, False, True]
    assert d.text == "1.25"
    assert _type(d, "a-+ ") == [False, False, False, False]
    assert d.press("12") is False
    assert d.text == "1.25"


def test_max_length_and_backspace() -> None:
    d, _ = _dispatcher(max_length=3)
    assert _type(d, "1234") == [True, True, True, False]
    d.backspace()
    assert d.text == "12"
    d.clear()
    d.backspace()
    assert d.text == ""


def test_submit_parses_and_clears() -> None:
    d, sim = _dispatcher()
    _type(d, "12")
    outcome = d.submit()
    assert outcome is not None and outcome.gun_fired
    assert d.text == ""
    assert len(sim.shots) == 6


def test_wrong_answer_goes_through_as_penalty() -> None:
    d, sim = _dispatcher()
    speed = sim.enemy_speed
    _type(d, "3")
    outcome = d.submit()
    assert outcome is not None and outcome.penalized
    assert sim.enemy_speed > speed


def test_empty_or_unparsable_submit_is_dropped() -> None:
    d, sim = _dispatcher()
    assert d.submit() is None
    d.press(".")
    assert d.submit() is None
    assert d.text == ""
    assert sim.stats.answers_submitted == 0
    assert sim.difficulty.penalty_speed == 0.0


def test_submit_after_game_over_restarts() -> None:
    d, sim = _dispatcher()
    for x in (200.0, 500.0, 800.0):
        enemy = sim.spawn_standard_enemy()
        assert enemy is not None
        enemy.x, enemy.y = x, sim.config.playfield_height - 1.0
    sim.tick(100.0)
    assert sim.game_over

    assert d.press("1") is False
    assert d.submit() is None
    assert not sim.game_over
    assert sim.lives == sim.config.initial_lives
    assert sim.score == 0
