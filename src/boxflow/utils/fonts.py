"""
Utils around fonts

The PygameTextMeasurer is the default text measurement collaborator
"""

import math

import pygame as pg
from pygame.font import Font as _Font
from pygame.font import SysFont as _SysFont
from pygame.font import match_font

from boxflow.config import generic_font_families
from boxflow.types import FontSpec, MeasurementFailure, TextMetrics
from boxflow.utils.func import log_error_once

font_cache: dict[tuple[str | None, int, bool, bool, bool], _Font] = {}
missing_fonts: set[tuple[str, bool, bool]] = set()


def find_font(family: str | None, size: float, style: str, weight: int) -> _Font | None:
    """
    Takes some font constraints and tries to find the most fitting (system) font.
    A family of None returns pygames default font
    """
    size = int(size)
    bold = weight > 500
    italic = style == "italic"
    oblique = style == "oblique"
    cache_key = (family, size, bold, italic, oblique)
    if font := font_cache.get(cache_key):
        return font
    if family is None:
        font = _SysFont(None, size, bold=bold, italic=italic)  # type: ignore
    else:
        if (family, bold, italic) in missing_fonts:
            return None
        path = match_font(family, bold=bold, italic=italic)
        if path is None:
            missing_fonts.add((family, bold, italic))
            return None
        font = _Font(path, size)
    # pygame can't do oblique with an angle, we just fake the italic
    font.italic = oblique or font.italic
    font_cache[cache_key] = font
    return font


def expand_families(families: tuple[str, ...]) -> list[str]:
    """
    Replaces generic families like `sans-serif` with concrete font names
    """
    result: list[str] = []
    for fam in families:
        if new_fams := generic_font_families.get(fam):
            result += new_fams
        else:
            result.append(fam)
    return result


class PygameTextMeasurer:
    """
    Measures text with pygame.font
    """

    def __init__(self):
        if not pg.font.get_init():
            pg.font.init()

    def get_font(self, spec: FontSpec) -> _Font:
        for family in expand_families(spec.families):
            if font := find_font(family, spec.size, spec.style, spec.weight):
                return font
        log_error_once("Failed to find font", spec.families, "using the default font")
        font = find_font(None, spec.size, spec.style, spec.weight)
        assert font is not None
        return font

    def measure(
        self, text: str, font: FontSpec, available_width: float = math.inf
    ) -> TextMetrics:
        pg_font = self.get_font(font)
        try:
            width, _ = pg_font.size(text)
        except (pg.error, UnicodeError) as e:
            raise MeasurementFailure(f"Couldn't measure {text!r}: {e}") from e
        return TextMetrics(
            width=float(width),
            can_break=any(c.isspace() for c in text),
            ascent=float(pg_font.get_ascent()),
            # pygame reports the descent as a negative offset from the baseline
            descent=float(-pg_font.get_descent()),
        )
