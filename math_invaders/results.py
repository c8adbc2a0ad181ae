from __future__ import annotations

from dataclasses import dataclass

from .simulation import Simulation


@dataclass(frozen=True, slots=True)
class RunResult:
    """Persistable summary of one run.

    Built from the simulation once the run is over (or abandoned).
    """

    seed: int
    tier: str
    operation: str | None

    score: int
    level: int
    lives_lost: int
    duration_s: float

    answers_submitted: int
    correct_submissions: int
    accuracy: float
    enemies_solved: int
    enemies_destroyed: int
    gun_volleys: int


def run_result_from_simulation(sim: Simulation) -> RunResult:
    stats = sim.stats
    submitted = int(stats.answers_submitted)
    accuracy = 0.0 if submitted == 0 else stats.correct_submissions / float(submitted)

    return RunResult(
        seed=int(sim.seed),
        tier=str(sim.tier_name),
        operation=sim.operation,
        score=int(sim.score),
        level=int(stats.highest_level),
        lives_lost=int(stats.lives_lost),
        duration_s=float(stats.elapsed_ms) / 1000.0,
        answers_submitted=submitted,
        correct_submissions=int(stats.correct_submissions),
        accuracy=float(accuracy),
        enemies_solved=int(stats.enemies_solved),
        enemies_destroyed=int(stats.enemies_destroyed),
        gun_volleys=int(stats.gun_volleys),
    )
