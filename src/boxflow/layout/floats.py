"""
Floats

Floated boxes are taken out of the normal flow. They don't take space in
line boxes, but the lines next to them get shorter.
All coordinates here are relative to the content box of the element that
established the block formatting context.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator

from boxflow.Box import Box
from boxflow.Element import Element
from boxflow.types import FloatSide


@dataclass(frozen=True)
class FloatEntry:
    """
    A placed float. The extents describe its margin box
    """

    element: Element
    box: Box
    side: FloatSide
    left: float
    top: float
    right: float
    bottom: float


class FloatedBoxList:
    def __init__(self):
        self.entries: list[FloatEntry] = []

    def __iter__(self) -> Iterator[FloatEntry]:
        return iter(self.entries)

    def __len__(self):
        return len(self.entries)

    def __bool__(self):
        return bool(self.entries)

    def add(self, entry: FloatEntry):
        self.entries.append(entry)

    def colliding(self, top: float, bottom: float) -> list[FloatEntry]:
        """
        All floats that overlap the vertical range [top, bottom).
        An empty range collides with the floats that contain top
        """
        if bottom <= top:
            return [e for e in self.entries if e.top <= top < e.bottom]
        return [e for e in self.entries if e.top < bottom and top < e.bottom]

    def bounds(
        self, top: float, bottom: float, left: float, right: float
    ) -> tuple[float, float, list[FloatEntry]]:
        """
        The free horizontal span between left and right in the vertical range
        """
        colliding = self.colliding(top, bottom)
        for entry in colliding:
            if entry.side == "left":
                left = max(left, entry.right)
            else:
                right = min(right, entry.left)
        return left, right, colliding

    def available_span(
        self, top: float, height: float, left: float, right: float
    ) -> tuple[float, float]:
        span_left, span_right, _ = self.bounds(top, top + height, left, right)
        return span_left, span_right

    def line_span(
        self, top: float, min_width: float, left: float, right: float
    ) -> tuple[float, float, float]:
        """
        Where a line that needs at least `min_width` can start.
        If the floats make the span too narrow the line moves down
        to just below the nearest float, until it fits or no float is left.

        Returns the top, left and right of the line
        """
        while True:
            span_left, span_right, colliding = self.bounds(top, top, left, right)
            if span_right - span_left >= min_width or not colliding:
                return top, span_left, span_right
            top = min(entry.bottom for entry in colliding)

    def place(
        self,
        width: float,
        height: float,
        side: FloatSide,
        top: float,
        left: float,
        right: float,
    ) -> tuple[float, float]:
        """
        Finds the position of the margin box of a new float:
        the highest position at or below `top` (and not above any earlier float)
        where it fits, as far to its side as possible.
        If it fits nowhere it goes below all floats it collides with.
        """
        if self.entries:
            top = max(top, self.entries[-1].top)
        while True:
            span_left, span_right, colliding = self.bounds(top, top + height, left, right)
            if width <= span_right - span_left or not colliding:
                break
            top = min(entry.bottom for entry in colliding)
        x = span_left if side == "left" else span_right - width
        return x, top

    def clearance(self, clear: str, top: float) -> float:
        """
        The lowest position at or below top that is clear of the floats on the side(s)
        """
        cleared = ("left", "right") if clear == "both" else (clear,)
        bottoms = [entry.bottom for entry in self.entries if entry.side in cleared]
        return max([top, *bottoms])

    def lowest(self) -> float:
        return max((entry.bottom for entry in self.entries), default=0)
