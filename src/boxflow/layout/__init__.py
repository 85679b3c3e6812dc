"""
This is the entry point of layout

A layout pass formats an element (and its subtree) into a containing block.
Every element is classified and handed to its formatter:

- display: none gets no geometry at all
- elements with a special kind (replaced, form controls, tables, <br>)
  go to the registered special formatters
- floats are taken out of the flow
- block-level elements are stacked vertically
- inline-blocks are laid out as a whole and join the line
- everything else is inline content

All Boxes of a pass are kept in a LayoutArena and written onto the
elements only if the whole pass succeeded.
"""

from __future__ import annotations

import logging
import math
import threading
from typing import Any, Optional

import boxflow.config as config
from boxflow.Element import Element, TextElement
from boxflow.layout.arena import LayoutArena
from boxflow.layout.block import (LayoutBlockBox, format_block, format_float,
                                  format_inline_block)
from boxflow.layout.inline import format_inline, format_text
from boxflow.layout.special import Formatter, formatters
from boxflow.Media import SurfaceImageMeasurer
from boxflow.Style import Calculator, inset_getter
from boxflow.types import (Coordinate, FontSpec, ImageMeasurer, IntrinsicSize,
                           LayoutError, MeasurementFailure,
                           StructuralViolation, TextMeasurer, TextMetrics,
                           is_finite)
from boxflow.utils import log_error
from boxflow.utils.fonts import PygameTextMeasurer

Node = Element | TextElement

# document roots with a pass in flight, shared by all engines
_active: set[int] = set()
_active_lock = threading.Lock()


def calc_inset(elem: Element, width: float | None, height: float | None) -> Coordinate:
    """
    The offset of a relatively positioned element.
    left wins over right and top wins over bottom
    """
    top, right, bottom, left = inset_getter(elem.cstyle)
    x = Calculator(width).optional(left)
    if x is None:
        x = -(Calculator(width).optional(right) or 0)
    y = Calculator(height).optional(top)
    if y is None:
        y = -(Calculator(height).optional(bottom) or 0)
    return (x, y)


class LayoutEngine:
    """
    Formats element trees. The measurers are the only way
    the engine learns about fonts and images.
    """

    def __init__(
        self,
        text_measurer: Optional[TextMeasurer] = None,
        image_measurer: Optional[ImageMeasurer] = None,
    ):
        self.text_measurer = (
            PygameTextMeasurer() if text_measurer is None else text_measurer
        )
        self.image_measurer = (
            SurfaceImageMeasurer() if image_measurer is None else image_measurer
        )
        self.formatters: dict[str, Formatter] = dict(formatters)

    def register_formatter(self, kind: str, formatter: Formatter):
        """
        Overrides the formatter of `kind` for this engine only
        """
        self.formatters[kind] = formatter

    ############################ Passes ##############################

    def format_element(
        self,
        element: Node,
        containing_block: tuple[float | None, float | None],
    ) -> bool:
        """
        Lays out element and its subtree in the containing block (width, height).
        An indefinite width (None or inf) shrink-wraps the element,
        an indefinite height (None) makes percentage heights auto.

        Returns whether the pass succeeded. Only then the elements get
        their new Boxes, otherwise the old ones stay untouched.
        """
        width, height = containing_block
        if width is None or not is_finite(width):
            width = math.inf
        if height is not None and not is_finite(height):
            height = None
        try:
            root = document_root(element)
        except StructuralViolation as e:
            log_error(f"Layout of {element!r} failed: {e}")
            return False
        with _active_lock:
            if id(root) in _active:
                log_error(f"Refusing a nested layout pass over the document of {element!r}")
                return False
            _active.add(id(root))
        logging.debug(f"Formatting {element!r} in {(width, height)}")
        try:
            with LayoutArena() as arena:
                self._format(arena, element, width, height)
                arena.commit(element)
                logging.debug(
                    f"Formatted {element!r}: {len(arena.boxes)} boxes, allocated {dict(arena.allocated)}"
                )
            return True
        except LayoutError as e:
            log_error(f"Layout of {element!r} failed: {e.__class__.__name__}: {e}")
            return False
        finally:
            with _active_lock:
                _active.discard(id(root))

    def _format(self, arena: LayoutArena, element: Node, width: float, height: float | None):
        if isinstance(element, Element) and element.is_root and element.is_replaced:
            raise StructuralViolation(
                f"The document root {element!r} can't be a replaced element"
            )
        initial = arena.allocate(
            LayoutBlockBox, self, arena, None, width, height, is_initial=True
        )
        self.dispatch(initial, element)
        initial.close()

    def format_element_in(self, block_box: LayoutBlockBox, element: Node) -> bool:
        """
        Formats element as a child of an open block box,
        for formatters that lay out their own children
        """
        try:
            self.dispatch(block_box, element)
        except LayoutError as e:
            log_error(f"Layout of {element!r} failed: {e.__class__.__name__}: {e}")
            return False
        return True

    def dispatch(self, block_box: LayoutBlockBox, element: Node):
        """
        Chooses the formatter of element and runs it
        """
        if isinstance(element, TextElement):
            with block_box.arena.visit(element):
                format_text(self, block_box, element)
            return
        if element.display == "none":
            return
        with block_box.arena.visit(element):
            if (kind := element.special_kind) is not None:
                self.formatters[kind](self, block_box, element)
            elif block_box.is_initial:
                format_block(self, block_box, element)
            elif element.float in ("left", "right"):
                format_float(self, block_box, element)
            elif element.display in config.block_level_displays:
                format_block(self, block_box, element)
            elif element.display in ("inline-block", "table-cell"):
                format_inline_block(self, block_box, element)
            else:
                format_inline(self, block_box, element)
        if element.cstyle["position"] == "relative":
            block_box.arena.set_offset(
                element, calc_inset(element, block_box.cb_width, block_box.height)
            )

    ########################## Measurement ###########################

    def measure_text(self, arena: LayoutArena, text: str, font: FontSpec) -> TextMetrics:
        key = (text, font)
        if (metrics := arena.text_cache.get(key)) is not None:
            return metrics
        try:
            metrics = self.text_measurer.measure(text, font, math.inf)
        except MeasurementFailure:
            raise
        except Exception as e:
            raise MeasurementFailure(f"Measuring {text!r} in {font} failed: {e}") from e
        if metrics is None or not is_finite(metrics.width, metrics.ascent, metrics.descent):
            raise MeasurementFailure(f"Unusable metrics for {text!r} in {font}: {metrics}")
        if metrics.width < 0:
            raise MeasurementFailure(f"Negative width for {text!r} in {font}: {metrics}")
        arena.text_cache[key] = metrics
        return metrics

    def measure_image(self, resource: Any) -> IntrinsicSize:
        try:
            size = self.image_measurer.intrinsic_size(resource)
        except MeasurementFailure:
            raise
        except Exception as e:
            raise MeasurementFailure(f"Measuring {resource!r} failed: {e}") from e
        if size is None:
            return IntrinsicSize()
        for value in (size.width, size.height, size.ratio):
            if value is not None and (not is_finite(value) or value < 0):
                raise MeasurementFailure(f"Unusable intrinsic size of {resource!r}: {size}")
        return size


def document_root(element: Node) -> Node:
    seen = {id(element)}
    while element.parent is not None:
        element = element.parent
        if id(element) in seen:
            raise StructuralViolation(f"{element!r} is its own ancestor")
        seen.add(id(element))
    return element


def format_element(
    element: Node,
    containing_block: tuple[float | None, float | None],
    text_measurer: Optional[TextMeasurer] = None,
    image_measurer: Optional[ImageMeasurer] = None,
) -> bool:
    """
    Runs a single layout pass with a new LayoutEngine
    """
    engine = LayoutEngine(text_measurer, image_measurer)
    return engine.format_element(element, containing_block)


__all__ = ["LayoutEngine", "LayoutBlockBox", "format_element"]
