"""
Block layout

A LayoutBlockBox is the frame of one block container while its children are
formatted. Block-level children are stacked vertically with their margins
collapsing, inline content is broken into line boxes.

Coordinates inside a LayoutBlockBox are relative to the content box of its
element, `offset` translates them into the coordinates of the float list
of the block formatting context.
"""
from __future__ import annotations

import logging
import math
from typing import TYPE_CHECKING

import boxflow.config as config
from boxflow.Box import (Box, clamp_height, clamp_width, collapse_margins,
                         horizontal_edges, make_box)
from boxflow.Element import Element, TextElement
from boxflow.layout.arena import LayoutArena
from boxflow.layout.floats import FloatEntry, FloatedBoxList
from boxflow.layout.inline import Fragment, LineBox, inline_box
from boxflow.Style import Calculator
from boxflow.types import Auto, Coordinate, FitContent, Rect, Vector2
from boxflow.utils import not_neg

if TYPE_CHECKING:
    from boxflow.layout import LayoutEngine


class LayoutBlockBox:
    """
    The state of a block container during layout.
    An infinite width means that the content is measured (shrink-to-fit),
    then lines never wrap and max_advance and min_advance are the preferred
    and the minimum content width.
    """

    def __init__(
        self,
        engine: LayoutEngine,
        arena: LayoutArena,
        element: Element | None,
        width: float,
        height: float | None = None,
        offset: Coordinate = (0, 0),
        floats: FloatedBoxList | None = None,
        is_initial: bool = False,
    ):
        self.engine = engine
        self.arena = arena
        self.element = element
        self.width = width
        self.height = height
        self.offset = Vector2(offset)
        self.is_initial = is_initial
        # a new float list means a new block formatting context
        self.establishes_bfc = floats is None
        self.floats = arena.allocate(FloatedBoxList) if floats is None else floats

        self.cursor = 0.0
        self.pending_margin = 0.0

        self.line: LineBox | None = None
        self.lines: list[LineBox] = []
        self.chunk: list[Fragment] = []
        self.fragments: list[Fragment] = []
        self.break_opportunity = True
        self.queued_floats: list[Element] = []

        self.inline_stack: list[Element] = []
        self.inlines: list[tuple[Element, Fragment]] = []
        self.texts: list[TextElement] = []

        self.max_advance = 0.0
        self.min_advance = 0.0

        self.text_align = "left" if element is None else element.cstyle["text-align"]

    @property
    def measuring(self) -> bool:
        return not math.isfinite(self.width)

    @property
    def cb_width(self) -> float | None:
        """
        The width percentages of the children resolve against
        """
        return None if self.measuring else self.width

    @property
    def line_busy(self) -> bool:
        return bool(self.line is not None and self.line.fragments or self.chunk)

    def __repr__(self):
        return f"<LayoutBlockBox of {self.element!r} width={self.width}>"

    ######################### Inline content ##########################

    def last_fragment(self) -> Fragment | None:
        if self.chunk:
            return self.chunk[-1]
        if self.line is not None and self.line.fragments:
            return self.line.fragments[-1]
        return None

    def collapse_space(self, width: float, wrap: bool):
        """
        White space between two runs. It collapses with the space before it
        and disappears at the start of a line
        """
        last = self.last_fragment()
        if last is not None and not last.space:
            if self.chunk:
                last.space = width
            else:
                self.line.add_space(last, width)  # type: ignore
        self.break_opportunity = wrap

    def add_fragment(self, frag: Fragment):
        self.fragments.append(frag)
        if frag.breakable_before:
            self.flush_chunk()
        self.chunk.append(frag)
        self.break_opportunity = False

    def flush_chunk(self):
        """
        Puts the current unbreakable chunk onto a line.
        If it doesn't fit the line is closed and a new one is opened
        """
        chunk, self.chunk = self.chunk, []
        if not chunk:
            return
        width = sum(f.advance for f in chunk) - chunk[-1].space
        min_width = sum(f.min_advance for f in chunk) - chunk[-1].space
        self.min_advance = max(self.min_advance, min_width)
        if self.line is None and not any(f.advance for f in chunk):
            # empty inline elements don't open lines
            for frag in chunk:
                frag.x, frag.y = 0, self.cursor + not_neg(self.pending_margin)
            return
        if self.line is not None and self.line.fragments and not self.line.fits(width):
            self.close_line(justify=True)
        if self.line is None:
            self.open_line(width)
        for frag in chunk:
            self.line.append(frag)  # type: ignore

    def open_line(self, min_width: float = 0) -> LineBox:
        top = self.cursor + self.pending_margin
        self.pending_margin = 0
        y, left, right = self.floats.line_span(
            self.offset.y + top, min_width, self.offset.x, self.offset.x + self.width
        )
        self.line = self.arena.allocate(
            LineBox, y - self.offset.y, left - self.offset.x, right - self.offset.x
        )
        return self.line

    def close_line(self, justify: bool = False):
        """
        Closes the current line. Only lines that were broken because of
        their length are justified
        """
        line, self.line = self.line, None
        if line is None:
            return
        alignment = self.text_align
        if self.measuring or (alignment == "justify" and not justify):
            alignment = "left"
        height = line.close(alignment)
        self.lines.append(line)
        self.cursor = line.top + height
        self.max_advance = max(self.max_advance, line.left + line.advance)
        self.place_queued_floats()

    def end_inline(self):
        """
        Ends the inline content, because a block-level box follows
        """
        self.flush_chunk()
        self.close_line()
        self.break_opportunity = True

    def force_break(self, strut: float):
        """
        A forced line break (<br> or a newline in preformatted text).
        Even an empty line is `strut` high
        """
        self.flush_chunk()
        line = self.line if self.line is not None else self.open_line()
        line.min_height = max(line.min_height, strut)
        self.close_line()
        self.break_opportunity = True

    def break_position(self) -> tuple[float, float]:
        """
        Where the next inline content would go on the current line
        """
        self.flush_chunk()
        line = self.line if self.line is not None else self.open_line()
        return line.left + line.advance, line.top

    def add_atomic_inline(self, elem: Element, box: Box, min_width: float):
        """
        An inline-level box that is laid out as a whole.
        Its baseline is the bottom of its margin box
        """
        self.add_fragment(
            Fragment(
                owner=elem,
                width=box.outer_width,
                kind="atomic",
                ascent=box.outer_height,
                breakable_before=True,
                ancestors=tuple(self.inline_stack),
                min_width=min_width,
                box=box,
            )
        )
        self.break_opportunity = True

    def place_queued_floats(self):
        queued, self.queued_floats = self.queued_floats, []
        for elem in queued:
            self.engine.dispatch(self, elem)

    ######################### Block-level content ########################

    def next_border_top(self, box: Box, clear: str) -> tuple[float, bool]:
        """
        The border top of the next block-level box and whether clearance moved it
        """
        self.end_inline()
        y = self.cursor + collapse_margins(self.pending_margin, box.margin_top)
        if clear in ("left", "right", "both"):
            cleared = self.floats.clearance(clear, self.offset.y + y) - self.offset.y
            if cleared > y:
                return cleared, True
        return y, False

    def advance_block(self, box: Box, border_top: float, cleared: bool, min_width: float):
        """
        Moves the cursor below a block-level box.
        Empty boxes let their margins collapse through
        """
        if box.border_box.height == 0 and not cleared:
            self.pending_margin = collapse_margins(
                self.pending_margin, box.margin_top, box.margin_bottom
            )
        else:
            self.cursor = border_top + box.border_box.height
            self.pending_margin = box.margin_bottom
        self.max_advance = max(self.max_advance, box.outer_width)
        self.min_advance = max(self.min_advance, min_width)

    def place_block(self, elem: Element, box: Box, min_width: float):
        """
        Puts a block-level box, which is already sized, into the flow
        """
        border_top, cleared = self.next_border_top(box, elem.cstyle["clear"])
        box = box.set_pos((0, border_top - box.margin_top))
        self.arena.store_box(elem, box, self.element)
        self.advance_block(box, border_top, cleared, min_width)

    def place_float(self, elem: Element, box: Box, min_width: float):
        side = elem.float
        if self.measuring:
            side = "left"
        top = self.offset.y + self.cursor + not_neg(self.pending_margin)
        if (clear := elem.cstyle["clear"]) != "none":
            top = self.floats.clearance(clear, top)
        width, height = box.outer_box.size
        x, y = self.floats.place(
            width, height, side, top, self.offset.x, self.offset.x + self.width
        )
        local = box.set_pos((x - self.offset.x, y - self.offset.y))
        self.arena.store_box(elem, local, self.element)
        self.floats.add(FloatEntry(elem, local, side, x, y, x + width, y + height))
        self.max_advance = max(self.max_advance, x - self.offset.x + width)
        self.min_advance = max(self.min_advance, min_width)
        if self.line is not None and not self.line.fragments:
            # the line has to make room for the float
            self.line = None

    def add_atomic(self, elem: Element, box: Box, min_width: float):
        """
        Routes a box that was laid out as a whole (replaced elements, tables)
        """
        if self.is_initial:
            self.place_block(elem, box, min_width)
        elif elem.float in ("left", "right"):
            if self.line_busy:
                self.queued_floats.append(elem)
            else:
                self.place_float(elem, box, min_width)
        elif elem.display in config.block_level_displays:
            self.place_block(elem, box, min_width)
        else:
            self.add_atomic_inline(elem, box, min_width)

    ############################ Closing ##############################

    def close(self) -> float:
        """
        Finishes the content and returns its height
        """
        self.end_inline()
        self.place_queued_floats()
        self.finish_inline_boxes()
        height = not_neg(self.cursor + self.pending_margin)
        if self.establishes_bfc:
            height = max(height, self.floats.lowest())
        return height

    def finish_inline_boxes(self):
        for frag in self.fragments:
            if frag.kind == "atomic":
                box = frag.box.set_pos((frag.x, frag.y))  # type: ignore
                self.arena.store_box(frag.owner, box, self.element)
        for text in self.texts:
            frags = [f for f in self.fragments if f.owner is text]
            if not frags:
                continue
            self.arena.store_fragments(
                text, [f.text_fragment() for f in frags], self.element
            )
            rect: Rect = Rect.union_all(f.rect for f in frags)  # type: ignore
            self.arena.store_box(
                text, Box(width=rect.width, height=rect.height, pos=rect.topleft), self.element
            )
        for elem, start in self.inlines:
            rect = Rect.union_all(f.rect for f in self.fragments if elem in f.ancestors)
            if rect is None:
                rect = Rect(start.x + start.width, start.baseline, 0, 0)
            self.arena.store_box(elem, inline_box(elem, rect, self.cb_width), self.element)


######################### Formatting ###############################


def establishes_bfc(elem: Element) -> bool:
    """
    Whether the element is the root of a new block formatting context.
    These contain their floats and don't overlap outside floats
    """
    style = elem.cstyle
    return (
        elem.is_root
        or elem.float in ("left", "right")
        or elem.display in ("inline-block", "table-cell", "flow-root")
        or style["overflow"] != "visible"
    )


def format_block(engine: LayoutEngine, parent: LayoutBlockBox, elem: Element):
    """
    A block-level box in the normal flow
    """
    style = elem.cstyle
    parent.end_inline()
    cb_width = parent.cb_width
    content_width = None
    if style["width"] is FitContent:
        available = parent.width - horizontal_edges(style, cb_width)
        content_width = shrink_to_fit(engine, parent.arena, elem, available)
    unbounded = (
        content_width is None
        and parent.measuring
        and not is_definite(style, "width", cb_width)
    )
    box, auto_height = make_box(
        style,
        0 if parent.measuring else parent.width,
        parent.height,
        cb_width=cb_width,
        content_width=0 if unbounded else content_width,
    )
    border_top, cleared = parent.next_border_top(box, style["clear"])
    content_pos = Vector2(
        box.margin_left + box.border_left + box.padding_left,
        border_top + box.border_top + box.padding_top,
    )
    child = open_block_box(
        engine,
        parent,
        elem,
        math.inf if unbounded else box.width,
        None if auto_height else box.height,
        content_pos,
    )
    for c in elem.display_children:
        engine.dispatch(child, c)
    height = child.close()
    if unbounded:
        box = box.replace(width=clamp_width(style, child.max_advance, cb_width))
    if auto_height:
        box = box.replace(height=clamp_height(style, height, parent.height))
    box = box.replace(pos=content_pos)
    parent.arena.store_box(elem, box, parent.element)
    if unbounded or style["width"] is Auto:
        min_width = child.min_advance + (box.outer_width - box.width)
    else:
        min_width = box.outer_width
    parent.advance_block(box, border_top, cleared, min_width)


def open_block_box(
    engine: LayoutEngine,
    parent: LayoutBlockBox,
    elem: Element,
    width: float,
    height: float | None,
    content_pos: Vector2,
) -> LayoutBlockBox:
    if establishes_bfc(elem):
        return parent.arena.allocate(
            LayoutBlockBox, engine, parent.arena, elem, width, height
        )
    return parent.arena.allocate(
        LayoutBlockBox,
        engine,
        parent.arena,
        elem,
        width,
        height,
        parent.offset + content_pos,
        parent.floats,
    )


def is_definite(style, key: str, cb_size: float | None) -> bool:
    """
    Whether the size `key` of the style resolves to a number
    """
    value = style[key]
    if value in (Auto, FitContent):
        return False
    return Calculator(cb_size).optional(value) is not None


def layout_interior(
    engine: LayoutEngine,
    arena: LayoutArena,
    elem: Element,
    box: Box,
    auto_height: bool,
    cb_height: float | None,
) -> tuple[Box, LayoutBlockBox]:
    """
    Lays out the content of a box that establishes a new block formatting
    context and whose width is already known
    """
    child = arena.allocate(
        LayoutBlockBox, engine, arena, elem, box.width, None if auto_height else box.height
    )
    for c in elem.display_children:
        engine.dispatch(child, c)
    height = child.close()
    if auto_height:
        box = box.replace(height=clamp_height(elem.cstyle, height, cb_height))
    return box, child


def measure_content(
    engine: LayoutEngine, arena: LayoutArena, elem: Element
) -> tuple[float, float]:
    """
    The minimum and the preferred content width of elem.
    The probe runs in a scratch arena, nothing of it is kept
    """
    with arena.scratch() as scratch:
        probe = scratch.allocate(LayoutBlockBox, engine, scratch, elem, math.inf)
        for c in elem.display_children:
            engine.dispatch(probe, c)
        probe.close()
        return probe.min_advance, probe.max_advance


def shrink_to_fit(
    engine: LayoutEngine, arena: LayoutArena, elem: Element, available: float
) -> float:
    """
    min(max(minimum content width, available width), preferred content width)
    """
    minimum, preferred = measure_content(engine, arena, elem)
    width = min(max(minimum, available), preferred)
    logging.debug(
        f"Shrink-to-fit of {elem!r}: min={minimum}, pref={preferred}, available={available} -> {width}"
    )
    return width


def size_atomic(
    engine: LayoutEngine, parent: LayoutBlockBox, elem: Element
) -> tuple[Box, float]:
    """
    Sizes and lays out a float or an inline-block.
    Returns the box (not yet positioned) and its minimum width
    """
    style = elem.cstyle
    cb_width = parent.cb_width
    content_width = None
    if not is_definite(style, "width", cb_width):
        available = parent.width - horizontal_edges(style, cb_width)
        content_width = shrink_to_fit(engine, parent.arena, elem, available)
    box, auto_height = make_box(
        style,
        0 if parent.measuring else parent.width,
        parent.height,
        cb_width=cb_width,
        content_width=content_width,
        center=False,
    )
    box, child = layout_interior(engine, parent.arena, elem, box, auto_height, parent.height)
    if content_width is None:
        return box, box.outer_width
    return box, child.min_advance + (box.outer_width - box.width)


def format_float(engine: LayoutEngine, parent: LayoutBlockBox, elem: Element):
    if parent.line_busy:
        # floats that come after content on a line go below it
        parent.queued_floats.append(elem)
        return
    box, min_width = size_atomic(engine, parent, elem)
    parent.place_float(elem, box, min_width)


def format_inline_block(engine: LayoutEngine, parent: LayoutBlockBox, elem: Element):
    box, min_width = size_atomic(engine, parent, elem)
    parent.add_atomic_inline(elem, box, min_width)

