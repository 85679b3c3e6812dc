"""
A single source of thruth for types that are used in the other modules.
Instead of importing Vectors from pygame, import them from here.
"""
from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum as _Enum

# fmt: off
from typing import (Any, Generator, Iterable, Literal, Optional, Protocol,
                    TypeVar, Union)
# fmt: on

from pygame.math import Vector2 as _Vector2


class BugError(AssertionError):
    """A type of error that should never occur. If it occurs, something needs to be fixed. Please report any BugErrors found."""


############################ Layout errors ##############################
class LayoutError(Exception):
    """Base class of everything that can stop or degrade a layout pass"""


class UnresolvedDimension(LayoutError):
    """
    A percentage or intrinsic size was requested against an indefinite basis.
    Recovered locally by treating the value as auto (sizes) or zero (edges).
    """


class MeasurementFailure(LayoutError):
    """
    The text or image measurer could not produce a value.
    Aborts the pass, the geometry can't be trusted without it.
    """


class StructuralViolation(LayoutError):
    """
    The element tree breaks an invariant layout relies on
    (cycles, replaced document roots, re-entrant passes).
    """


# Aliases
##########################################################################

Number = int, float  # for isinstance(x, Number)

# a size, vector, or position
Coordinate = Union[tuple[float, float], "Vector2"]
Index = int | slice

FloatSide = Literal["left", "right"]
Float4Tuple = tuple[float, float, float, float]
Str4Tuple = tuple[str, str, str, str]

V_T = TypeVar("V_T")
CO_T = TypeVar("CO_T", covariant=True)


def is_finite(*values: float) -> bool:
    return all(isinstance(v, Number) and math.isfinite(v) for v in values)


############################ Some Classes ##############################
class Enum(_Enum):
    def __repr__(self):
        return f"{self.__class__.__name__}.{self.name}"


class Vector2(_Vector2):
    def __iter__(self) -> Generator[float, None, None]:
        yield self.x
        yield self.y

    def __add__(self, other: Coordinate | _Vector2) -> "Vector2":
        other: Vector2 = Vector2(other)
        return Vector2(self.x + other.x, self.y + other.y)

    def __sub__(self, other: Coordinate | _Vector2) -> "Vector2":
        other: Vector2 = Vector2(other)
        return Vector2(self.x - other.x, self.y - other.y)


@dataclass(frozen=True)
class Rect:
    """
    A float rectangle. pygame's Rect truncates to integers,
    which would break the exact box arithmetic.
    """

    x: float
    y: float
    width: float
    height: float

    @property
    def left(self):
        return self.x

    @property
    def top(self):
        return self.y

    @property
    def right(self):
        return self.x + self.width

    @property
    def bottom(self):
        return self.y + self.height

    @property
    def topleft(self):
        return Vector2(self.x, self.y)

    @property
    def size(self):
        return (self.width, self.height)

    def move(self, dx: float, dy: float) -> Rect:
        return Rect(self.x + dx, self.y + dy, self.width, self.height)

    def union(self, other: Rect) -> Rect:
        return Rect.from_span(
            (min(self.left, other.left), min(self.top, other.top)),
            (max(self.right, other.right), max(self.bottom, other.bottom)),
        )

    @staticmethod
    def from_span(point1: Coordinate, point2: Coordinate):
        """
        Rect from two points.
        """
        x1, y1 = point1
        x2, y2 = point2
        return Rect(min(x1, x2), min(y1, y2), abs(x2 - x1), abs(y2 - y1))

    @staticmethod
    def union_all(rects: Iterable[Rect]) -> Rect | None:
        result = None
        for rect in rects:
            result = rect if result is None else result.union(rect)
        return result

    def __iter__(self):
        yield from (self.x, self.y, self.width, self.height)


CSSDimension_T = TypeVar("CSSDimension_T", bound="CSSDimension")


@dataclass(frozen=True)
class CSSDimension:
    value: float

    def __add__(self: CSSDimension_T, other: CSSDimension_T) -> CSSDimension_T:
        if not isinstance(other, self.__class__):
            raise ValueError
        return self.__class__(self.value + float(other))

    def __mul__(self: CSSDimension_T, other: float) -> CSSDimension_T:
        if not isinstance(other, Number):
            raise ValueError
        return self.__class__(self.value * other)

    __rmul__ = __mul__

    def __float__(self):
        return float(self.value)

    def __repr__(self):
        return f"{self.__class__.__name__}({self.value})"


@dataclass(frozen=True, repr=False)
class Percentage(CSSDimension):
    value: float

    def resolve(self, num: float):
        """
        Resolves the Percentage with the given number
        The number should be equivalent to 100%
        """
        if not isinstance(num, Number):
            raise ValueError
        return self.value * num * 0.01


@dataclass(frozen=True, repr=False)
class Length(CSSDimension):
    value: float


################## Sentinels ###################
class Sentinel(Enum):
    Auto = "auto"
    Normal = "normal"
    NoneValue = "none"
    FitContent = "fit-content"


# Type Aliases
AutoType = Literal[Sentinel.Auto]
NormalType = Literal[Sentinel.Normal]

Auto: AutoType = Sentinel.Auto
Normal: NormalType = Sentinel.Normal
NoneValue = Sentinel.NoneValue
FitContent = Sentinel.FitContent

#################################################


######################## Measurement boundary ###########################
@dataclass(frozen=True)
class FontSpec:
    """The resolved font properties a text measurer needs"""

    families: tuple[str, ...]
    size: float
    weight: int = 400
    style: Literal["normal", "italic", "oblique"] = "normal"


@dataclass(frozen=True)
class TextMetrics:
    width: float
    can_break: bool
    ascent: float
    descent: float

    @property
    def height(self):
        return self.ascent + self.descent


@dataclass(frozen=True)
class IntrinsicSize:
    width: Optional[float] = None
    height: Optional[float] = None
    ratio: Optional[float] = None

    def __post_init__(self):
        if self.ratio is None and self.width and self.height:
            object.__setattr__(self, "ratio", self.width / self.height)


class TextMeasurer(Protocol):
    def measure(
        self, text: str, font: FontSpec, available_width: float = math.inf
    ) -> TextMetrics:
        """
        Measures a text run. `can_break` says whether the run
        contains a soft wrap opportunity.
        The engine breaks lines itself and measures single words and
        spaces, so `available_width` is always infinite.
        """


class ImageMeasurer(Protocol):
    def intrinsic_size(self, resource: Any) -> IntrinsicSize:
        ...

