from __future__ import annotations

import sqlite3
from pathlib import Path

from math_invaders.config import GREEN, GameConfig, GameSettings
from math_invaders.persistence import SCHEMA_VERSION, best_score, open_db, record_run
from math_invaders.problems import Problem
from math_invaders.results import RunResult, run_result_from_simulation
from math_invaders.simulation import Simulation


class FixedProblems:
    tiers = ("year1", "year2")
    categories = ("addition",)

    def get_problem(self, tier_index: int, category: str | None = None) -> Problem:
        return Problem(text="2 + 2", answer=4.0)


def _result(score: int, tier: str = "year1") -> RunResult:
    return RunResult(
        seed=1,
        tier=tier,
        operation=None,
        score=score,
        level=score // 100 + 1,
        lives_lost=3,
        duration_s=42.5,
        answers_submitted=4,
        correct_submissions=3,
        accuracy=0.75,
        enemies_solved=2,
        enemies_destroyed=5,
        gun_volleys=1,
    )


def test_run_result_from_simulation() -> None:
    sim = Simulation(
        problems=FixedProblems(),
        seed=77,
        config=GameConfig(initial_spawn_delays_ms=()),
        settings=GameSettings(tier="year2", operation="addition"),
        archetypes=(GREEN,),
    )
    sim.tick(1500.0)
    sim.spawn_standard_enemy()
    sim.submit_answer(4)  # gun and enemy share the answer
    sim.submit_answer(9)

    r = run_result_from_simulation(sim)
    assert r.seed == 77
    assert r.tier == "year2"
    assert r.operation == "addition"
    assert r.score == 10
    assert r.level == 1
    assert r.answers_submitted == 2
    assert r.correct_submissions == 1
    assert r.accuracy == 0.5
    assert r.enemies_solved == 1
    assert r.gun_volleys == 1
    assert r.duration_s == 1.5


def test_accuracy_is_zero_without_submissions() -> None:
    sim = Simulation(problems=FixedProblems(), seed=1, settings=GameSettings(tier="year1"))
    assert run_result_from_simulation(sim).accuracy == 0.0


def test_record_run_writes_run_and_metrics(tmp_path: Path) -> None:
    db = tmp_path / "runs.sqlite3"
    run_id = record_run(db_path=db, result=_result(120), app_version="test")
    assert run_id > 0

    conn = sqlite3.connect(db)
    try:
        assert conn.execute("PRAGMA user_version;").fetchone()[0] == SCHEMA_VERSION
        row = conn.execute("SELECT tier, score, level, app_version FROM run WHERE id = ?", (run_id,)).fetchone()
        assert row == ("year1", 120, 2, "test")
        metrics = dict(conn.execute("SELECT key, value FROM metric WHERE run_id = ?", (run_id,)).fetchall())
    finally:
        conn.close()
    assert metrics["accuracy"] == "0.750000"
    assert metrics["gun_volleys"] == "1"
    assert metrics["lives_lost"] == "3"


def test_best_score_per_tier(tmp_path: Path) -> None:
    db = tmp_path / "runs.sqlite3"
    assert best_score(db_path=db) is None
    assert not db.exists()

    record_run(db_path=db, result=_result(30), app_version="test")
    record_run(db_path=db, result=_result(250), app_version="test")
    record_run(db_path=db, result=_result(400, tier="year3"), app_version="test")

    assert best_score(db_path=db, tier="year1") == 250
    assert best_score(db_path=db, tier="year3") == 400
    assert best_score(db_path=db, tier="reception") is None
    assert best_score(db_path=db) == 400


def test_migration_is_idempotent(tmp_path: Path) -> None:
    db = tmp_path / "runs.sqlite3"
    open_db(db).close()
    conn = open_db(db)
    try:
        tables = {r[0] for r in conn.execute("SELECT name FROM sqlite_master WHERE type='table'")}
    finally:
        conn.close()
    assert {"run", "metric"} <= tables
