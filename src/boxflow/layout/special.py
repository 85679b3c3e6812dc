"""
Special formatters

Elements whose layout doesn't follow the normal block or inline rules:
replaced elements, form controls, tables and line breaks.
Every formatter sizes the element and hands the box to its block container.

Additional formatters can be registered by kind:

```python
@register_formatter("replaced")
def my_formatter(engine, block_box, elem):
    ...
```
"""
from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Callable

import boxflow.config as config
# fmt: off
from boxflow.Box import (Box, _horizontal, _vertical, clamp_height,
                         clamp_width, horizontal_edges, inner_offset, make_box)
from boxflow.Element import Element, TextElement
from boxflow.layout.block import (LayoutBlockBox, layout_interior,
                                  measure_content)
from boxflow.Style import (Calculator, FullyComputedStyle, font_spec,
                           line_height)
from boxflow.types import IntrinsicSize, Number, StructuralViolation
from boxflow.utils import log_error_once, make_default, not_neg
import boxflow.types as _o  # Just for dotted access to the Sentinels in match
# fmt: on

if TYPE_CHECKING:
    from boxflow.layout import LayoutEngine

Formatter = Callable[["LayoutEngine", LayoutBlockBox, Element], None]

formatters: dict[str, Formatter] = {}


def register_formatter(kind: str):
    """
    Registers the decorated function as the formatter of `kind`
    (see Element.special_kind)
    """

    def decorator(fn: Formatter) -> Formatter:
        formatters[kind] = fn
        return fn

    return decorator


######################### Replaced elements ##########################


def preferred_ratio(style: FullyComputedStyle, intrinsic: IntrinsicSize) -> float | None:
    match style["aspect-ratio"]:
        case _o.NoneValue:
            return None
        case _o.Auto:
            return intrinsic.ratio
        case ratio if isinstance(ratio, Number) and ratio > 0:
            return ratio
    return intrinsic.ratio


def resolve_replaced_size(
    style: FullyComputedStyle,
    intrinsic: IntrinsicSize,
    cb_width: float | None,
    cb_height: float | None,
    keep_ratio: bool = True,
) -> tuple[float, float]:
    """
    The content size of a replaced element.
    Specified sizes win, a missing one follows the ratio,
    then the intrinsic size and then the default object size
    """
    if (width := Calculator(cb_width).optional(style["width"])) is not None:
        width = not_neg(width - inner_offset(style, cb_width, _horizontal))
    if (height := Calculator(cb_height).optional(style["height"])) is not None:
        height = not_neg(height - inner_offset(style, cb_width, _vertical))
    ratio = preferred_ratio(style, intrinsic) if keep_ratio else None
    fallback_w, fallback_h = config.g["replaced_fallback_size"]

    match width, height:
        case None, None:
            width = intrinsic.width
            height = intrinsic.height
            if width is None and height is None:
                width = fallback_w
            if width is None:
                width = height * ratio if ratio else fallback_w
            if height is None:
                height = width / ratio if ratio else fallback_h
        case None, h:
            if ratio:
                width = h * ratio
            else:
                width = make_default(intrinsic.width, fallback_w)
        case w, None:
            if ratio:
                height = w / ratio
            else:
                height = make_default(intrinsic.height, fallback_h)
    return clamp_width(style, width, cb_width), clamp_height(style, height, cb_height)


def atomic_box(
    elem: Element, block_box: LayoutBlockBox, width: float, height: float
) -> Box:
    box, _ = make_box(
        elem.cstyle,
        0 if block_box.measuring else block_box.width,
        block_box.height,
        cb_width=block_box.cb_width,
        content_width=width,
        center=elem.display in config.block_level_displays,
    )
    return box.replace(height=height)


@register_formatter("replaced")
def format_replaced(engine: LayoutEngine, block_box: LayoutBlockBox, elem: Element):
    if elem.is_root:
        raise StructuralViolation(f"The document root {elem!r} can't be a replaced element")
    intrinsic = engine.measure_image(elem.resource)
    width, height = resolve_replaced_size(
        elem.cstyle, intrinsic, block_box.cb_width, block_box.height
    )
    box = atomic_box(elem, block_box, width, height)
    block_box.add_atomic(elem, box, box.outer_width)


@register_formatter("form-control")
def format_form_control(engine: LayoutEngine, block_box: LayoutBlockBox, elem: Element):
    """
    Inputs are `size` characters wide, textareas `cols` characters wide
    and `rows` lines high
    """
    style = elem.cstyle
    zero = engine.measure_text(block_box.arena, "0", font_spec(style))
    line = line_height(style, zero.ascent, zero.descent)
    if elem.tag == "textarea":
        cols = _int_attr(elem, "cols", config.g["default_textarea_cols"])
        rows = _int_attr(elem, "rows", config.g["default_textarea_rows"])
        intrinsic = IntrinsicSize(cols * zero.width, rows * line)
    else:
        size = _int_attr(elem, "size", config.g["default_input_size"])
        intrinsic = IntrinsicSize(size * zero.width, line)
    width, height = resolve_replaced_size(
        style, intrinsic, block_box.cb_width, block_box.height, keep_ratio=False
    )
    box = atomic_box(elem, block_box, width, height)
    block_box.add_atomic(elem, box, box.outer_width)


def _int_attr(elem: Element, name: str, default: int) -> int:
    try:
        value = int(elem.attrs.get(name, default))
    except (TypeError, ValueError):
        log_error_once(f"Invalid {name} on {elem!r}: {elem.attrs[name]!r}")
        return default
    return value if value > 0 else default


@register_formatter("br")
def format_break(engine: LayoutEngine, block_box: LayoutBlockBox, elem: Element):
    style = elem.cstyle
    space = engine.measure_text(block_box.arena, " ", font_spec(style))
    x, y = block_box.break_position()
    block_box.arena.store_box(elem, Box(pos=(x, y)), block_box.element)
    block_box.force_break(line_height(style, space.ascent, space.descent))


############################## Tables ################################


def table_rows(elem: Element) -> list[Element]:
    rows = []
    for child in elem.display_children:
        if isinstance(child, Element) and child.display == "table-row":
            rows.append(child)
        elif isinstance(child, TextElement) and not child.text.strip():
            continue
        else:
            log_error_once(f"Ignoring {child!r} in {elem!r}, only table-rows are laid out")
    return rows


def row_cells(row: Element) -> list[Element]:
    cells = []
    for child in row.display_children:
        if isinstance(child, Element) and child.display == "table-cell":
            cells.append(child)
        elif isinstance(child, TextElement) and not child.text.strip():
            continue
        else:
            log_error_once(f"Ignoring {child!r} in {row!r}, only table-cells are laid out")
    return cells


def column_widths(
    engine: LayoutEngine, block_box: LayoutBlockBox, rows: list[list[Element]]
) -> tuple[list[float], list[float]]:
    """
    The minimum and preferred outer width of every column
    """
    columns = max((len(cells) for cells in rows), default=0)
    minimum = [0.0] * columns
    preferred = [0.0] * columns
    for cells in rows:
        for i, cell in enumerate(cells):
            style = cell.cstyle
            edges = horizontal_edges(style, None)
            cell_min, cell_pref = measure_content(engine, block_box.arena, cell)
            cell_min += edges
            cell_pref += edges
            if (width := Calculator(None).optional(style["width"])) is not None:
                if style["box-sizing"] != "border-box":
                    width += edges
                cell_min = max(cell_min, width)
                cell_pref = max(cell_min, width)
            minimum[i] = max(minimum[i], cell_min)
            preferred[i] = max(preferred[i], cell_pref, cell_min)
    return minimum, preferred


def distribute(minimum: list[float], preferred: list[float], width: float) -> list[float]:
    """
    Gives every column at least its minimum, the rest of `width` is shared
    in proportion to what the columns would like to have more
    """
    total_min = sum(minimum)
    total_pref = sum(preferred)
    if width <= total_min:
        return minimum[:]
    if width <= total_pref:
        wanted = total_pref - total_min
        if wanted == 0:
            return minimum[:]
        share = (width - total_min) / wanted
        return [lo + (hi - lo) * share for lo, hi in zip(minimum, preferred)]
    extra = width - total_pref
    if total_pref:
        return [w + extra * w / total_pref for w in preferred]
    return [extra / len(preferred)] * len(preferred) if preferred else []


@register_formatter("table")
def format_table(engine: LayoutEngine, block_box: LayoutBlockBox, elem: Element):
    """
    A table of rows and cells. Column widths come from the contents
    of the cells, every cell in a row is as high as the row
    """
    style = elem.cstyle
    cb_width = block_box.cb_width
    spacing = not_neg(Calculator(cb_width).edge(style["border-spacing"]))
    rows = table_rows(elem)
    cells = [row_cells(row) for row in rows]
    minimum, preferred = column_widths(engine, block_box, cells)
    gaps = spacing * (len(minimum) + 1) if minimum else 0
    needed, wanted = sum(minimum) + gaps, sum(preferred) + gaps

    if (width := Calculator(cb_width).optional(style["width"])) is not None:
        width -= inner_offset(style, cb_width, _horizontal)
        content_width = max(width, needed)
    else:
        available = block_box.width - horizontal_edges(style, cb_width)
        content_width = min(max(needed, available), wanted)
    columns = distribute(minimum, preferred, not_neg(content_width - gaps))
    logging.debug(f"Columns of {elem!r}: {columns}")

    row_width = not_neg(content_width - 2 * spacing)
    y = spacing
    for row, row_cell_list in zip(rows, cells):
        with block_box.arena.visit(row):
            height = format_row(engine, block_box, row, row_cell_list, columns, spacing, content_width)
        block_box.arena.store_box(row, Box(width=row_width, height=height, pos=(spacing, y)), elem)
        y += height + spacing
    table_height = y if rows else 0

    box, auto_height = make_box(
        style,
        0 if block_box.measuring else block_box.width,
        block_box.height,
        cb_width=cb_width,
        content_width=content_width,
    )
    if auto_height:
        box = box.replace(height=clamp_height(style, table_height, block_box.height))
    else:
        box = box.replace(height=max(box.height, table_height))
    min_width = needed + (box.outer_width - box.width)
    block_box.add_atomic(elem, box, min_width)


def format_row(
    engine: LayoutEngine,
    block_box: LayoutBlockBox,
    row: Element,
    cells: list[Element],
    columns: list[float],
    spacing: float,
    table_width: float,
) -> float:
    """
    Lays out the cells of a row and returns the height of the row
    """
    boxes: list[Box] = []
    for cell, column in zip(cells, columns):
        with block_box.arena.visit(cell):
            style = cell.cstyle
            edges = horizontal_edges(style, table_width)
            box, auto_height = make_box(
                style,
                column,
                None,
                cb_width=table_width,
                content_width=not_neg(column - edges),
                center=False,
            )
            box, _ = layout_interior(engine, block_box.arena, cell, box, auto_height, None)
            boxes.append(box)
    height = max((box.outer_height for box in boxes), default=0)
    x = 0.0
    for cell, column, box in zip(cells, columns, boxes):
        # cells are stretched to the height of the row
        box = box.replace(height=not_neg(height - (box.outer_height - box.height)))
        block_box.arena.store_box(cell, box.set_pos((x, 0)), row)
        x += column + spacing
    return height


__all__ = ["formatters", "register_formatter", "resolve_replaced_size"]
