"""
Text align

Supports:

left, right, center, justify (and start/end as left/right)

Every function takes the width of the line and the advances of the items
on it and returns the x offset of every item.
Lines that overflow stay at the start.
"""

from typing import Protocol


class TextAlign(Protocol):
    def __call__(self, max_width: float, widths: list[float]) -> list[float]:
        """
        Aligns a line
        """


def space_left(max_width, widths):
    return max(0, max_width - sum(widths))


def _left(widths):
    acc = 0
    for w in widths:
        yield acc
        acc = acc + w


def left(max_width, widths):
    return [*_left(widths)]


def right(max_width, widths):
    rem = space_left(max_width, widths)
    return [x + rem for x in _left(widths)]


def center(max_width, widths):
    rem = space_left(max_width, widths) / 2
    return [x + rem for x in _left(widths)]


def justify(max_width, widths):
    if len(widths) < 2:
        return left(max_width, widths)
    rem = space_left(max_width, widths) / (len(widths) - 1)
    return [x + rem * i for i, x in enumerate(_left(widths))]


aligners: dict[str, TextAlign] = {
    "left": left,
    "start": left,
    "right": right,
    "end": right,
    "center": center,
    "justify": justify,
}


def align_by(alignment: str, max_width: float, widths: list[float]) -> list[float]:
    return aligners.get(alignment, left)(max_width, widths)
