from __future__ import annotations

from pathlib import Path
import sqlite3
import time

from .results import RunResult

SCHEMA_VERSION = 1


def open_db(path: Path) -> sqlite3.Connection:
    conn = sqlite3.connect(path)
    conn.execute("PRAGMA foreign_keys=ON;")
    conn.execute("PRAGMA journal_mode=WAL;")
    conn.execute("PRAGMA synchronous=NORMAL;")
    _migrate(conn)
    return conn


def _utc_now_iso() -> str:
    return time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime(time.time()))


def _migrate(conn: sqlite3.Connection) -> None:
    row = conn.execute("PRAGMA user_version;").fetchone()
    ver = int(row[0]) if row else 0
    if ver >= SCHEMA_VERSION:
        return

    with conn:
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS run (
                id INTEGER PRIMARY KEY,
                app_version TEXT NOT NULL,
                rng_seed INTEGER NOT NULL,
                tier TEXT NOT NULL,
                operation TEXT,
                score INTEGER NOT NULL,
                level INTEGER NOT NULL,
                duration_s REAL NOT NULL,
                completed_at_utc TEXT NOT NULL
            );
            """
        )
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS metric (
                run_id INTEGER NOT NULL REFERENCES run(id) ON DELETE CASCADE,
                key TEXT NOT NULL,
                value TEXT NOT NULL,
                PRIMARY KEY (run_id, key)
            );
            """
        )
        conn.execute("CREATE INDEX IF NOT EXISTS idx_run_tier_score ON run(tier, score);")
        conn.execute(f"PRAGMA user_version={SCHEMA_VERSION};")


def record_run(*, db_path: Path, result: RunResult, app_version: str) -> int:
    """
    Run history only (player settings are not stored here):
      run -> metric
    """
    conn = open_db(db_path)
    try:
        return _insert_run(conn=conn, result=result, app_version=app_version)
    finally:
        conn.close()


def best_score(*, db_path: Path, tier: str | None = None) -> int | None:
    if not db_path.exists():
        return None
    conn = open_db(db_path)
    try:
        if tier is None:
            row = conn.execute("SELECT MAX(score) FROM run").fetchone()
        else:
            row = conn.execute("SELECT MAX(score) FROM run WHERE tier = ?", (tier,)).fetchone()
    finally:
        conn.close()
    if row is None or row[0] is None:
        return None
    return int(row[0])


def _insert_run(*, conn: sqlite3.Connection, result: RunResult, app_version: str) -> int:
    with conn:
        cur = conn.execute(
            """
            INSERT INTO run(
                app_version, rng_seed, tier, operation,
                score, level, duration_s, completed_at_utc
            )
            VALUES (?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                app_version,
                int(result.seed),
                str(result.tier),
                result.operation,
                int(result.score),
                int(result.level),
                float(result.duration_s),
                _utc_now_iso(),
            ),
        )
        run_id = int(cur.lastrowid)

        metrics = {
            "answers_submitted": str(result.answers_submitted),
            "correct_submissions": str(result.correct_submissions),
            "accuracy": f"{result.accuracy:.6f}",
            "enemies_solved": str(result.enemies_solved),
            "enemies_destroyed": str(result.enemies_destroyed),
            "gun_volleys": str(result.gun_volleys),
            "lives_lost": str(result.lives_lost),
        }
        for k, v in metrics.items():
            conn.execute("INSERT INTO metric(run_id, key, value) VALUES (?, ?, ?)", (run_id, k, v))

    return run_id
