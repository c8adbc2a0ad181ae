"""Time sources for the frame loop.

The simulation itself never reads a clock: the shell converts readings into
per-frame elapsed milliseconds with :class:`FrameTimer` and passes them to
``Simulation.tick``. Tests substitute a fake clock.
"""

from __future__ import annotations

import time
from typing import Protocol


class Clock(Protocol):
    def now(self) -> float:
        """Monotonic seconds."""


class RealClock:
    def now(self) -> float:
        return time.monotonic()


class FrameTimer:
    """Turns clock readings into per-frame elapsed milliseconds.

    The first call to :meth:`elapsed_ms` returns 0.0. Steps longer than
    ``max_step_ms`` are clamped so a stalled window does not release a burst
    of timer-driven spawns on the next frame.
    """

    def __init__(self, clock: Clock, *, max_step_ms: float = 250.0) -> None:
        if max_step_ms <= 0:
            raise ValueError("max_step_ms must be > 0")
        self._clock = clock
        self._max_step_ms = float(max_step_ms)
        self._last_s: float | None = None

    def reset(self) -> None:
        self._last_s = None

    def elapsed_ms(self) -> float:
        now = self._clock.now()
        last = self._last_s
        self._last_s = now
        if last is None:
            return 0.0
        step = (now - last) * 1000.0
        if step <= 0.0:
            return 0.0
        return min(step, self._max_step_ms)
