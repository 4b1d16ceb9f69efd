"""Geometric primitives for overlay placement."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Point:
    """A position in screen pixels."""

    x: float
    y: float

    def __add__(self, other: Point) -> Point:
        return Point(self.x + other.x, self.y + other.y)

    def __sub__(self, other: Point) -> Point:
        return Point(self.x - other.x, self.y - other.y)


ORIGIN = Point(0.0, 0.0)


@dataclass(frozen=True)
class Rect:
    """An axis-aligned rectangle in pixel space."""

    x: float
    y: float
    width: float
    height: float

    @property
    def right(self) -> float:
        return self.x + self.width

    @property
    def bottom(self) -> float:
        return self.y + self.height

    def inset(self, margin: float) -> Rect:
        return Rect(
            self.x + margin,
            self.y + margin,
            self.width - 2 * margin,
            self.height - 2 * margin,
        )

    def clamp_box(self, origin: Point, width: float, height: float) -> Point:
        """Move a width x height box at ``origin`` to lie inside this rect.

        When the box is larger than the rect it is pinned to the top-left.
        """
        x = min(origin.x, self.right - width)
        y = min(origin.y, self.bottom - height)
        return Point(max(self.x, x), max(self.y, y))
