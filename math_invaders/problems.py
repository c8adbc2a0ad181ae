"""Arithmetic problems and the tiered source that deals them.

The simulation only depends on the :class:`ProblemSource` protocol: an ordered
set of difficulty tiers (index 0 is easiest) and an optional operation
category filter. :class:`TieredProblemGenerator` is the deterministic
implementation shipped with the game; tests usually substitute a scripted
source.
"""

from __future__ import annotations

import logging
import math
import random
from dataclasses import dataclass
from typing import Protocol

logger = logging.getLogger(__name__)

CATEGORIES: tuple[str, ...] = ("addition", "subtraction", "multiplication", "division")


@dataclass(frozen=True, slots=True)
class Problem:
    text: str
    answer: float


class ProblemSource(Protocol):
    @property
    def tiers(self) -> tuple[str, ...]: ...

    @property
    def categories(self) -> tuple[str, ...]: ...

    def get_problem(self, tier_index: int, category: str | None = None) -> Problem: ...


def max_tier_index(source: ProblemSource) -> int:
    return max(0, len(source.tiers) - 1)


def clamp_tier_index(source: ProblemSource, index: int) -> int:
    return max(0, min(int(index), max_tier_index(source)))


def problem_for_offset(
    source: ProblemSource,
    *,
    base_tier: int,
    offset: int,
    category: str | None = None,
) -> Problem:
    """Deal a problem ``offset`` tiers above ``base_tier``, clamped to the hardest tier."""

    tier = clamp_tier_index(source, base_tier + offset)
    problem = source.get_problem(tier, category)
    logger.debug("dealt problem %r (answer=%s) tier=%d category=%s", problem.text, problem.answer, tier, category)
    return problem


def answers_match(problem: Problem, value: float) -> bool:
    return math.isclose(float(problem.answer), float(value), rel_tol=0.0, abs_tol=1e-9)


@dataclass(frozen=True, slots=True)
class TierSpec:
    name: str
    add_max: int  # operand ceiling for + and -
    times_max: int  # factor ceiling for x and /
    decimal_places: int = 0  # applies to + and - only


DEFAULT_TIERS: tuple[TierSpec, ...] = (
    TierSpec("reception", add_max=5, times_max=2),
    TierSpec("year1", add_max=10, times_max=5),
    TierSpec("year2", add_max=20, times_max=10),
    TierSpec("year3", add_max=50, times_max=10),
    TierSpec("year4", add_max=100, times_max=12),
    TierSpec("year5", add_max=100, times_max=12, decimal_places=1),
    TierSpec("year6", add_max=1000, times_max=12, decimal_places=2),
)


class TieredProblemGenerator:
    """Deterministic generator of tiered arithmetic problems.

    Operand ranges grow with the tier. Division is always exact. From
    ``year5`` upward, addition and subtraction use decimal operands so the
    player has to type a decimal point.
    """

    def __init__(self, *, seed: int, tiers: tuple[TierSpec, ...] = DEFAULT_TIERS) -> None:
        if not tiers:
            raise ValueError("tiers must not be empty")
        self._rng = random.Random(int(seed))
        self._specs = tiers

    @property
    def tiers(self) -> tuple[str, ...]:
        return tuple(spec.name for spec in self._specs)

    @property
    def categories(self) -> tuple[str, ...]:
        return CATEGORIES

    def tier_index(self, name: str) -> int | None:
        try:
            return self.tiers.index(name)
        except ValueError:
            return None

    def get_problem(self, tier_index: int, category: str | None = None) -> Problem:
        spec = self._specs[max(0, min(int(tier_index), len(self._specs) - 1))]
        if category not in CATEGORIES:
            category = self._rng.choice(CATEGORIES)

        if category == "addition":
            return self._addition(spec)
        if category == "subtraction":
            return self._subtraction(spec)
        if category == "multiplication":
            return self._multiplication(spec)
        return self._division(spec)

    def _operand(self, spec: TierSpec) -> float:
        if spec.decimal_places <= 0:
            return float(self._rng.randint(0, spec.add_max))
        scale = 10**spec.decimal_places
        return self._rng.randint(0, spec.add_max * scale) / scale

    def _addition(self, spec: TierSpec) -> Problem:
        a = self._operand(spec)
        b = self._operand(spec)
        ans = round(a + b, spec.decimal_places)
        return Problem(text=f"{_fmt(a, spec)} + {_fmt(b, spec)}", answer=ans)

    def _subtraction(self, spec: TierSpec) -> Problem:
        a = self._operand(spec)
        b = self._operand(spec)
        if b > a:
            a, b = b, a
        ans = round(a - b, spec.decimal_places)
        return Problem(text=f"{_fmt(a, spec)} - {_fmt(b, spec)}", answer=ans)

    def _multiplication(self, spec: TierSpec) -> Problem:
        a = self._rng.randint(1, spec.times_max)
        b = self._rng.randint(1, spec.times_max)
        return Problem(text=f"{a} × {b}", answer=float(a * b))

    def _division(self, spec: TierSpec) -> Problem:
        divisor = self._rng.randint(1, spec.times_max)
        quotient = self._rng.randint(1, spec.times_max)
        return Problem(text=f"{divisor * quotient} ÷ {divisor}", answer=float(quotient))


def _fmt(x: float, spec: TierSpec) -> str:
    if spec.decimal_places <= 0:
        return str(int(x))
    return f"{x:.{spec.decimal_places}f}"
