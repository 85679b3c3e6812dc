"""
Resolved style views

The document collaborator hands us styles as dicts. Here they are parsed
into typed values (Length, Percentage, Sentinels), completed with defaults
and inherited values and frozen, so that a layout pass can't mutate them.
"""
from __future__ import annotations

import math
import re
from operator import itemgetter
from typing import Any, Mapping, Protocol

from frozendict import frozendict

import boxflow.config as config
from boxflow.types import (CO_T, Auto, BugError, CSSDimension, FitContent,
                           FontSpec, Length, NoneValue, Normal, Number,
                           Percentage, Sentinel, Str4Tuple,
                           UnresolvedDimension)
from boxflow.utils import expand_sides, log_error_once, make_default

CompValue = Any
FullyComputedStyle = Mapping[str, CompValue]

#################### Itemgetters ###################################


class T4Getter(Protocol[CO_T]):
    def __call__(self, input: FullyComputedStyle) -> tuple[CO_T, CO_T, CO_T, CO_T]:
        ...


directions = ("top", "right", "bottom", "left")

# fmt: off
inset_keys: Str4Tuple = directions
marg_keys: Str4Tuple = tuple(f"margin-{k}" for k in directions)     # type: ignore[assignment]
pad_keys: Str4Tuple = tuple(f"padding-{k}" for k in directions)     # type: ignore[assignment]
bw_keys: Str4Tuple = tuple(f"border-{k}-width" for k in directions) # type: ignore[assignment]

inset_getter: T4Getter = itemgetter(*inset_keys)    # type: ignore[assignment]
mrg_getter: T4Getter = itemgetter(*marg_keys)       # type: ignore[assignment]
pad_getter: T4Getter = itemgetter(*pad_keys)        # type: ignore[assignment]
bw_getter: T4Getter = itemgetter(*bw_keys)          # type: ignore[assignment]
# fmt: on

shorthands: dict[str, Str4Tuple] = {
    "margin": marg_keys,
    "padding": pad_keys,
    "border-width": bw_keys,
    "inset": inset_keys,
}

####################################################################

######################### Calculator ###############################


class Calculator:
    """
    Turns computed values into numbers
    """

    def __init__(self, default_perc_val: float | None = None):
        self.default_perc_val = default_perc_val

    def __call__(
        self,
        value: CompValue,
        auto_val: float | None = None,
        perc_val: float | None = None,
    ) -> float:
        """
        This helper function takes a value, an auto_val
        and the perc_value and returns a Number
        if the value is Auto then the auto_value is returned
        if the value is a Length or similar that is returned
        if the value is a Percentage the Percentage is multiplied with the perc_value
        A percentage of an indefinite perc_value raises UnresolvedDimension
        """
        if isinstance(value, Number) and not isinstance(value, bool):
            return float(value)
        elif value is Auto:
            if auto_val is None:
                raise BugError("This attribute cannot be Auto")
            return auto_val
        elif isinstance(value, Percentage):
            perc_val = make_default(perc_val, self.default_perc_val)
            if perc_val is None or not math.isfinite(perc_val):
                raise UnresolvedDimension(f"{value} of an indefinite size")
            return value.resolve(perc_val)
        elif isinstance(value, CSSDimension):
            return value.value
        elif value is None:
            raise ValueError
        raise BugError(f"Unsupported type in calc, {value} {value.__class__.__name__}")

    def optional(self, value: CompValue, perc_val: float | None = None) -> float | None:
        """
        Like calling the Calculator, but auto, none, fit-content and
        percentages that can't be resolved return None
        """
        if isinstance(value, Sentinel):
            return None
        try:
            return self(value, perc_val=perc_val)
        except UnresolvedDimension as e:
            log_error_once(f"Treating {value} as auto: {e}")
            return None

    def edge(self, value: CompValue, perc_val: float | None = None) -> float:
        """
        Edges (margins, paddings) that can't be resolved are zero
        """
        try:
            return self(value, 0, perc_val)
        except UnresolvedDimension as e:
            log_error_once(f"Treating {value} as 0: {e}")
            return 0.0


####################################################################

########################## Parsing #################################
number_re = r"[-+]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][-+]?\d+)?"
dimension_re = re.compile(rf"({number_re})([a-zA-Z%]*)")
ratio_re = re.compile(rf"({number_re})\s*/\s*({number_re})")

keywords = {s.value: s for s in Sentinel}


def parse_value(value: Any, font_size: float | None = None) -> CompValue:
    """
    Parses a single css value.
    Strings are converted to Lengths, Percentages, Sentinels or plain numbers.
    Relative lengths are resolved against `font_size`
    (or the default font size if it is None).
    """
    if not isinstance(value, str):
        return value
    value = value.strip()
    if (sentinel := keywords.get(value.lower())) is not None:
        return sentinel
    if not (match := dimension_re.fullmatch(value)):
        raise ValueError(f"Invalid css value: {value!r}")
    num, unit = float(match.group(1)), match.group(2)
    root_size = config.g["default_font_size"]
    font_size = make_default(font_size, root_size)
    match unit:
        case "":
            return num
        case "%":
            return Percentage(num)
        case "em":
            return Length(num * font_size)
        case "rem":
            return Length(num * root_size)
        case "ex" | "ch":
            # an approximation without font metrics
            return Length(num * font_size / 2)
        case unit if (factor := config.abs_length_units.get(unit)) is not None:
            return Length(num * factor)
    raise ValueError(f"Unknown unit: {unit!r}")


def _length(value: Any, font_size: float) -> CompValue:
    result = parse_value(value, font_size)
    if isinstance(result, Number) and not isinstance(result, bool):
        # unitless lengths are pixels
        return Length(float(result))
    return result


def _border_width(value: Any, font_size: float) -> CompValue:
    if isinstance(value, str) and value in config.abs_border_width:
        return Length(float(config.abs_border_width[value]))
    return _length(value, font_size)


def _line_height(value: Any, font_size: float) -> CompValue:
    result = parse_value(value, font_size)
    if isinstance(result, Percentage):
        return Length(result.resolve(font_size))
    return result


def _aspect_ratio(value: Any, font_size: float) -> CompValue:
    if isinstance(value, str) and (match := ratio_re.fullmatch(value.strip())):
        return float(match.group(1)) / float(match.group(2))
    return parse_value(value, font_size)


def _font_weight(value: Any, font_size: float) -> int:
    if isinstance(value, str) and value in config.abs_font_weight:
        return config.abs_font_weight[value]
    return int(value)


def _font_family(value: Any, font_size: float) -> tuple[str, ...]:
    if isinstance(value, str):
        return tuple(f.strip().strip("'\"") for f in value.split(","))
    return tuple(value)


def _keyword(value: Any, font_size: float) -> str:
    return str(value).strip().lower()


# fmt: off
inherited_properties = {
    "font-family", "font-size", "font-weight", "font-style",
    "line-height", "text-align", "white-space", "border-spacing",
}
# fmt: on

keyword_properties = {
    "display",
    "box-sizing",
    "float",
    "clear",
    "position",
    "overflow",
    "text-align",
    "white-space",
    "font-style",
}

acceptors = {
    **dict.fromkeys(keyword_properties, _keyword),
    **dict.fromkeys(bw_keys, _border_width),
    "line-height": _line_height,
    "aspect-ratio": _aspect_ratio,
    "font-weight": _font_weight,
    "font-family": _font_family,
}


def get_defaults() -> dict[str, CompValue]:
    # fmt: off
    return {
        "display": "inline",
        "box-sizing": "content-box",
        "width": Auto, "height": Auto,
        "min-width": Length(0), "max-width": NoneValue,
        "min-height": Length(0), "max-height": NoneValue,
        **dict.fromkeys(marg_keys, Length(0)),
        **dict.fromkeys(pad_keys, Length(0)),
        **dict.fromkeys(bw_keys, Length(0)),
        **dict.fromkeys(inset_keys, Auto),
        "float": "none",
        "clear": "none",
        "position": "static",
        "overflow": "visible",
        "font-family": (config.g["default_font_family"],),
        "font-size": Length(float(config.g["default_font_size"])),
        "font-weight": 400,
        "font-style": "normal",
        "line-height": Normal,
        "text-align": "left",
        "white-space": "normal",
        "aspect-ratio": Auto,
        "border-spacing": Length(0),
    }
    # fmt: on


def expand_shorthands(style: Mapping[str, Any]) -> dict[str, Any]:
    """
    Expands margin, padding, border-width and inset into their 4 sides
    """
    result: dict[str, Any] = {}
    for key, value in style.items():
        if (keys := shorthands.get(key)) is None:
            result[key] = value
            continue
        values = value.split() if isinstance(value, str) else value
        if not isinstance(values, (list, tuple)):
            values = [values]
        result.update(zip(keys, expand_sides(values)))
    return result


def compute_style(
    style: Mapping[str, Any] | None = None,
    parent_style: FullyComputedStyle | None = None,
) -> frozendict:
    """
    Compute a full style view from an author dict.
    Inherited properties come from the `parent_style`, the rest from the defaults.
    """
    declared = expand_shorthands(style or {})
    computed = get_defaults()
    if parent_style is not None:
        computed.update({k: parent_style[k] for k in inherited_properties})
    parent_font_size = float(computed["font-size"])
    if "font-size" in declared:
        font_size = parse_value(declared.pop("font-size"), parent_font_size)
        if isinstance(font_size, Percentage):
            font_size = Length(font_size.resolve(parent_font_size))
        elif isinstance(font_size, Number):
            font_size = Length(float(font_size))
        computed["font-size"] = font_size
    font_size = float(computed["font-size"])
    for key, value in declared.items():
        acceptor = acceptors.get(key, _length)
        try:
            computed[key] = acceptor(value, font_size)
        except ValueError as e:
            log_error_once(f"Ignoring invalid value for {key}: {value!r} ({e})")
    return frozendict(computed)


def font_spec(style: FullyComputedStyle) -> FontSpec:
    return FontSpec(
        families=tuple(style["font-family"]),
        size=float(style["font-size"]),
        weight=style["font-weight"],
        style=style["font-style"],
    )


def line_height(style: FullyComputedStyle, ascent: float, descent: float) -> float:
    """
    The used line-height given the font metrics.
    normal is the ascent plus the descent of the font
    (or `g["line_height_normal"]` times the font-size if set)
    """
    value = style["line-height"]
    if value is Normal:
        if (factor := config.g["line_height_normal"]) is not None:
            return factor * float(style["font-size"])
        return ascent + descent
    if isinstance(value, Length):
        return value.value
    if isinstance(value, Number):
        return value * float(style["font-size"])
    raise BugError(f"Unsupported line-height: {value!r}")


__all__ = [
    "Calculator",
    "compute_style",
    "parse_value",
    "font_spec",
    "line_height",
    "directions",
    "inset_getter",
    "mrg_getter",
    "pad_getter",
    "bw_getter",
    "FullyComputedStyle",
    "Auto",
    "FitContent",
]
