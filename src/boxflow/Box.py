from __future__ import annotations

from contextlib import suppress
from itertools import chain
from typing import Any, Mapping

# fmt: off
from boxflow.Style import (Calculator, FullyComputedStyle, bw_getter, directions,
                           mrg_getter, pad_getter)
from boxflow.types import (BugError, Coordinate, Float4Tuple, Index,
                           Rect, Vector2, is_finite)
from boxflow.utils import ensure_suffix, in_bounds, not_neg
import boxflow.types as _o  # Just for dotted access to Auto in match
# fmt: on

l = [("padding",), ("border",), ("margin",)]
box_types = [
    "content-box",
    "padding-box",
    "border-box",
    "outer-box",
]

top, right, bottom, left = range(4)


def box_sizing(name: str):
    _name = ensure_suffix(name, "-box")
    assert _name in box_types, f"{name} is not a box-sizing"
    return _name


_horizontal = slice(1, None, 2)  # [1::2]
_vertical = slice(None, None, 2)  # [::2]
part_slices: Mapping[str, Index] = {
    **{k: v for v, k in enumerate(directions)},
    **{"horizontal": _horizontal, "vertical": _vertical},
}


def _convert(box: Box, to: str, part: Index) -> float:
    """
    How much the given part grows when going from the content-box to `to`
    """
    lookup_chain = [*chain(*l[: box_types.index(to)])]
    return sum(_sum(getattr(box, name)[part]) for name in lookup_chain)


def _sum(x: float | tuple[float, ...]) -> float:
    return x if isinstance(x, (int, float)) else sum(x)


def collapse_margins(*margins: float) -> float:
    """
    Get the resulting margin of adjoining vertical margins:
    the largest positive margin plus the most negative one.
    """
    return max((0, *margins)) + min((0, *margins))


class Box:
    """
    A Box represents the CSS-Box-Model.

    x, y, width and height describe the content-box.
    Boxes are values, they are never changed after construction.
    Use `replace` or `moved` to derive a new Box.
    """

    __slots__ = ["x", "y", "width", "height", "margin", "border", "padding"]

    x: float
    y: float
    width: float
    height: float
    margin: Float4Tuple
    border: Float4Tuple
    padding: Float4Tuple

    def __init__(
        self,
        margin: Float4Tuple = (0,) * 4,
        border: Float4Tuple = (0,) * 4,
        padding: Float4Tuple = (0,) * 4,
        width: float = 0,
        height: float = 0,
        pos: Coordinate = (0, 0),
    ):
        x, y = pos
        values = (*margin, *border, *padding, width, height, x, y)
        if len(values) != 16 or not is_finite(*values):
            raise BugError(f"Box with non-finite geometry: {values}")
        if min(*border, *padding, width, height) < 0:
            raise BugError(f"Box with negative size: {values}")
        set_ = super().__setattr__
        set_("margin", tuple(map(float, margin)))
        set_("border", tuple(map(float, border)))
        set_("padding", tuple(map(float, padding)))
        set_("width", float(width))
        set_("height", float(height))
        set_("x", float(x))
        set_("y", float(y))

    def __setattr__(self, name: str, value: Any):
        raise AttributeError(f"Box is immutable, use Box.replace to change {name}")

    @staticmethod
    def empty():
        return Box()

    def is_empty(self):
        return Box.empty() == self

    @property
    def pos(self):
        return Vector2(self.x, self.y)

    def box(self, t: str) -> Rect:
        _t = box_sizing(t)
        return Rect(
            self.x - _convert(self, _t, left),
            self.y - _convert(self, _t, top),
            self.width + _convert(self, _t, _horizontal),
            self.height + _convert(self, _t, _vertical),
        )

    @property
    def outer_box(self):
        return self.box("outer")

    @property
    def border_box(self):
        return self.box("border")

    @property
    def padding_box(self):
        return self.box("padding")

    @property
    def content_box(self):
        return self.box("content")

    @property
    def outer_width(self):
        return self.outer_box.width

    @property
    def outer_height(self):
        return self.outer_box.height

    def edges(self, t: str = "outer") -> Float4Tuple:
        """
        The distance between the content-box and the box of type t on every side
        """
        _t = box_sizing(t)
        return tuple(_convert(self, _t, side) for side in range(4))  # type: ignore

    def replace(self, **kwargs) -> Box:
        props = dict(self._asdict())
        props.update(kwargs)
        if "x" in props or "y" in props:
            props["pos"] = (props.pop("x", self.x), props.pop("y", self.y))
        return Box(**props)

    def moved(self, dx: float, dy: float) -> Box:
        return self.replace(pos=(self.x + dx, self.y + dy))

    def set_pos(self, pos: Coordinate, t: str = "outer-box") -> Box:
        """
        A copy of this Box, whose box of type t starts at pos
        """
        rect = self.box(t)
        x, y = pos
        return self.moved(x - rect.x, y - rect.y)

    def _asdict(self):
        return {
            "margin": self.margin,
            "border": self.border,
            "padding": self.padding,
            "width": self.width,
            "height": self.height,
            "pos": (self.x, self.y),
        }

    def _props(self):
        return (
            self.margin,
            self.border,
            self.padding,
            self.width,
            self.height,
            (self.x, self.y),
        )

    def __eq__(self, other):
        if not isinstance(other, Box):
            return NotImplemented
        return self._props() == other._props()

    def __hash__(self):
        return hash(self._props())

    def __str__(self):
        if self.is_empty():
            return "<EmptyBox>"
        else:
            return f"<Box {tuple(self.outer_box)}>"

    def __repr__(self):
        return f"<Box{self._props()}>"

    def __getattr__(self, name: str):
        """
        Enables special member access, like padding_top, or margin_vertical
        """
        with suppress(KeyError, ValueError):
            prop, part = name.split("_")
            if prop in ("margin", "border", "padding"):
                return getattr(self, prop)[part_slices[part]]
        raise AttributeError(name)


########################## Box construction ##########################


def horizontal_edges(style: FullyComputedStyle, cb_width: float | None) -> float:
    """
    The horizontal margins, borders and paddings of the style.
    auto margins count as 0
    """
    calc = Calculator(cb_width)
    return sum(
        (
            *(calc.edge(v) for v in mrg_getter(style)[_horizontal]),
            *(not_neg(calc.edge(v)) for v in bw_getter(style)[_horizontal]),
            *(not_neg(calc.edge(v)) for v in pad_getter(style)[_horizontal]),
        )
    )


def clamp_width(style: FullyComputedStyle, width: float, cb_width: float | None):
    """
    Applies min-width and max-width to a content width
    """
    calc = Calculator(cb_width)
    inner = inner_offset(style, cb_width, _horizontal)
    lower = calc.optional(style["min-width"]) or 0
    upper = calc.optional(style["max-width"])
    lower = not_neg(lower - inner)
    upper = float("inf") if upper is None else not_neg(upper - inner)
    return in_bounds(width, lower, upper)


def clamp_height(style: FullyComputedStyle, height: float, cb_height: float | None):
    """
    Applies min-height and max-height to a content height
    """
    calc = Calculator(cb_height)
    inner = inner_offset(style, None, _vertical)
    lower = calc.optional(style["min-height"]) or 0
    upper = calc.optional(style["max-height"])
    lower = not_neg(lower - inner)
    upper = float("inf") if upper is None else not_neg(upper - inner)
    return in_bounds(height, lower, upper)


def inner_offset(style: FullyComputedStyle, cb_width: float | None, part: slice):
    """
    With box-sizing: border-box, sizes include borders and paddings
    """
    if style["box-sizing"] != "border-box":
        return 0
    calc = Calculator(cb_width)
    return sum(
        not_neg(calc.edge(v)) for v in (*bw_getter(style)[part], *pad_getter(style)[part])
    )


def make_box(
    style: FullyComputedStyle,
    available_width: float,
    containing_height: float | None,
    cb_width: float | None = None,
    content_width: float | None = None,
    center: bool = True,
) -> tuple[Box, bool]:
    """
    Makes a box from input.
    `available_width` is the width the outer box can take up,
    percentages resolve against `cb_width` (defaulting to `available_width`).
    A given `content_width` (from shrink-to-fit or replaced elements)
    takes precedence over the styles width.
    Without `center` auto margins are 0 (floats, inline-blocks, table cells).

    Returns the box and whether its height is auto.
    If so the caller has to derive the height later and replace the box.
    """
    cb_width = available_width if cb_width is None else cb_width
    calc = Calculator(cb_width)

    padding = tuple(not_neg(calc.edge(v)) for v in pad_getter(style))
    # doesn't allow auto or percentage
    border = tuple(not_neg(calc.edge(v)) for v in bw_getter(style))
    _margin = mrg_getter(style)
    mrg_t, mrg_b = (calc.edge(v) for v in _margin[_vertical])
    inner = sum(padding[_horizontal]) + sum(border[_horizontal])

    if content_width is None:
        if (width := calc.optional(style["width"])) is not None:
            width = not_neg(width - inner_offset(style, cb_width, _horizontal))
    else:
        width = content_width

    if width is None:
        # width is auto, so it fills the available space and auto margins are 0
        mrg_r, mrg_l = (calc.edge(v) for v in _margin[_horizontal])
        width = not_neg(available_width - inner - mrg_r - mrg_l)
        width = clamp_width(style, width, cb_width)
    elif not center:
        width = clamp_width(style, width, cb_width)
        mrg_r, mrg_l = (calc.edge(v) for v in _margin[_horizontal])
    else:
        # width is resolvable. So this time margin: auto resolves to all of the remaining space
        width = clamp_width(style, width, cb_width)
        mrg_r, mrg_l = merge_horizontal_margin(
            _margin[_horizontal], available_width - inner - width, calc
        )

    # percentage heights of an indefinite containing height are auto
    height = Calculator(containing_height).optional(style["height"])
    is_auto = height is None
    if height is not None:
        height = not_neg(height - inner_offset(style, cb_width, _vertical))
        height = clamp_height(style, height, containing_height)

    box = Box(
        (mrg_t, mrg_r, mrg_b, mrg_l),
        border,  # type: ignore
        padding,  # type: ignore
        width,
        0 if height is None else height,
    )
    return box, is_auto


def merge_horizontal_margin(
    mrg_h: tuple[Any, Any], avail: float, calc: Calculator
) -> tuple[float, float]:
    """
    Resolves the right and left margin, auto margins share the space `avail`
    """
    if not is_finite(avail):
        avail = 0
    match mrg_h:
        case _o.Auto, _o.Auto:
            return (not_neg(avail) / 2,) * 2  # type: ignore
        case _o.Auto, x:
            y = calc.edge(x)
            return (not_neg(avail - y), y)
        case x, _o.Auto:
            y = calc.edge(x)
            return (y, not_neg(avail - y))
        case x, y:
            return (calc.edge(x), calc.edge(y))
    raise BugError(f"Invalid horizontal margins: {mrg_h}")
