from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from .problems import Problem

if TYPE_CHECKING:
    from .effects import EffectStrategy

Color = tuple[int, int, int]


@dataclass(frozen=True, slots=True)
class Rect:
    """Axis-aligned box described by its centre."""

    cx: float
    cy: float
    width: float
    height: float

    @property
    def left(self) -> float:
        return self.cx - self.width / 2.0

    @property
    def right(self) -> float:
        return self.cx + self.width / 2.0

    @property
    def top(self) -> float:
        return self.cy - self.height / 2.0

    @property
    def bottom(self) -> float:
        return self.cy + self.height / 2.0

    def contains_point(self, x: float, y: float) -> bool:
        # Strict: a point on the edge is not inside.
        return self.left < x < self.right and self.top < y < self.bottom


@dataclass(slots=True, eq=False)
class Enemy:
    entity_id: int
    x: float
    y: float
    dx: float
    dy: float
    width: float
    height: float
    problem: Problem
    effect: "EffectStrategy"
    is_threat: bool
    color: Color
    archetype: str = ""
    alive: bool = True

    @property
    def rect(self) -> Rect:
        return Rect(self.x, self.y, self.width, self.height)

    def outside(self, width: float, height: float) -> bool:
        """True once the whole box has left the playfield."""

        r = self.rect
        return r.right < 0.0 or r.left > width or r.bottom < 0.0 or r.top > height


@dataclass(slots=True, eq=False)
class Projectile:
    """Circular shot: player shots from the gun, enemy bullets from effects."""

    entity_id: int
    x: float
    y: float
    dx: float
    dy: float
    radius: float
    bounces: bool = False
    alive: bool = True

    def outside(self, width: float, height: float) -> bool:
        return self.x < 0.0 or self.x > width or self.y < 0.0 or self.y > height

    def reflect_off(self, rect: Rect) -> None:
        """Bounce off whichever face of ``rect`` the centre is nearest to."""

        half_w = rect.width / 2.0 or 1.0
        half_h = rect.height / 2.0 or 1.0
        nx = (self.x - rect.cx) / half_w
        ny = (self.y - rect.cy) / half_h
        if abs(nx) >= abs(ny):
            self.dx = abs(self.dx) if nx >= 0 else -abs(self.dx)
        else:
            self.dy = abs(self.dy) if ny >= 0 else -abs(self.dy)


@dataclass(frozen=True, slots=True)
class Gun:
    x: float
    y: float
    width: float
    height: float

    @property
    def rect(self) -> Rect:
        return Rect(self.x, self.y, self.width, self.height)
