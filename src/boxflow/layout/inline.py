"""
Inline layout

Inline content flows into line boxes. Everything that ends up in a line is a
Fragment. There are three kinds of fragments:

- text: a single word (or a whole preformatted line)
- atomic: the outer box of an inline-block or an inline replaced element
- spacer: the horizontal margin, border and padding at the start and
  the end of an inline element

Fragments that have no break opportunity between them are grouped into a
chunk, which is put on a line as a whole.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Literal

from boxflow.Box import Box
from boxflow.Element import Element, TextElement
from boxflow.layout.arena import TextFragment
from boxflow.layout.text_align import align_by
from boxflow.Style import Calculator, font_spec, line_height, mrg_getter
from boxflow.types import Rect
from boxflow.utils import not_neg

if TYPE_CHECKING:
    from boxflow.layout import LayoutEngine
    from boxflow.layout.block import LayoutBlockBox


@dataclass(eq=False)
class Fragment:
    owner: Element | TextElement
    width: float
    kind: Literal["text", "atomic", "spacer"] = "text"
    text: str = ""
    # collapsible white space after the fragment
    space: float = 0
    # extents above and below the baseline, including half-leading
    ascent: float = 0
    descent: float = 0
    glyph_ascent: float = 0
    glyph_height: float = 0
    breakable_before: bool = False
    # the non-atomic inline elements this fragment is part of
    ancestors: tuple[Element, ...] = ()
    min_width: float | None = None
    box: Box | None = None
    # available after the line was closed
    x: float = 0
    y: float = 0

    @property
    def advance(self):
        return self.width + self.space

    @property
    def min_advance(self):
        return (self.width if self.min_width is None else self.min_width) + self.space

    @property
    def baseline(self):
        return self.y + self.ascent

    @property
    def rect(self) -> Rect:
        match self.kind:
            case "text":
                top = self.baseline - self.glyph_ascent
                return Rect(self.x, top, self.width, self.glyph_height)
            case "atomic":
                return Rect(self.x, self.y, self.width, self.ascent + self.descent)
        return Rect(self.x, self.baseline, self.width, 0)

    def text_fragment(self) -> TextFragment:
        rect = self.rect
        return TextFragment(
            self.text, rect.x, rect.y, rect.width, rect.height, self.baseline
        )


class LineBox:
    """
    One line of inline content. Coordinates are relative to the content box
    of the block container.
    """

    def __init__(self, top: float, left: float, right: float):
        self.top = top
        self.left = left
        self.right = right
        self.fragments: list[Fragment] = []
        self.advance = 0.0
        self.height = 0.0
        # forced breaks on empty lines still take up one line-height
        self.min_height = 0.0

    @property
    def available(self):
        return self.right - self.left

    def fits(self, width: float) -> bool:
        return self.advance + width <= self.available

    def append(self, frag: Fragment):
        self.fragments.append(frag)
        self.advance += frag.advance

    def add_space(self, frag: Fragment, space: float):
        frag.space = space
        self.advance += space

    def trim_trailing_space(self):
        """
        White space at the end of a line doesn't count
        """
        for frag in reversed(self.fragments):
            if frag.space:
                self.advance -= frag.space
                frag.space = 0
                return
            if frag.width:
                return

    def close(self, alignment: str) -> float:
        """
        Aligns the fragments on the baseline and along the line.
        Returns the height of the line
        """
        self.trim_trailing_space()
        frags = self.fragments
        xs = align_by(alignment, self.available, [f.advance for f in frags])
        ascent = max((f.ascent for f in frags), default=0)
        descent = max((f.descent for f in frags), default=0)
        self.height = max(ascent + descent, self.min_height)
        baseline = self.top + ascent
        for frag, x in zip(frags, xs):
            frag.x = self.left + x
            frag.y = baseline - frag.ascent
        return self.height

    def __repr__(self):
        return f"<LineBox top={self.top} span=({self.left}, {self.right}) {len(self.fragments)} fragments>"


######################### Formatting ###############################


def format_text(engine: LayoutEngine, block_box: LayoutBlockBox, text: TextElement):
    """
    Splits a text run into fragments according to its white-space and
    adds them to the inline content of the block box
    """
    style = text.cstyle
    font = font_spec(style)
    space = engine.measure_text(block_box.arena, " ", font)
    leading = line_height(style, space.ascent, space.descent) - space.height
    ancestors = tuple(block_box.inline_stack)

    def word(s: str, trailing_space: float, breakable: bool):
        metrics = engine.measure_text(block_box.arena, s, font)
        return Fragment(
            owner=text,
            width=metrics.width,
            text=s,
            space=trailing_space,
            ascent=metrics.ascent + leading / 2,
            descent=metrics.descent + leading / 2,
            glyph_ascent=metrics.ascent,
            glyph_height=metrics.height,
            breakable_before=breakable,
            ancestors=ancestors,
        )

    def collapsed(segment: str, wrap: bool):
        words = segment.split()
        if segment[:1].isspace():
            block_box.collapse_space(space.width, wrap)
        for i, w in enumerate(words):
            trailing = i < len(words) - 1 or segment[-1:].isspace()
            breakable = block_box.break_opportunity if i == 0 else wrap
            block_box.add_fragment(word(w, space.width if trailing else 0, breakable))
            block_box.break_opportunity = trailing and wrap

    def preserved(segment: str):
        if segment:
            block_box.add_fragment(word(segment.expandtabs(8), 0, False))

    block_box.texts.append(text)
    match style["white-space"]:
        case "pre":
            for i, segment in enumerate(text.text.split("\n")):
                if i:
                    block_box.force_break(space.height + leading)
                preserved(segment)
        case "pre-line":
            for i, segment in enumerate(text.text.split("\n")):
                if i:
                    block_box.force_break(space.height + leading)
                collapsed(segment, True)
        case "nowrap":
            collapsed(text.text, False)
        case _:
            collapsed(text.text, True)


def inline_edges(elem: Element, cb_width: float | None):
    calc = Calculator(cb_width)
    style = elem.cstyle
    return (
        tuple(calc.edge(v) for v in mrg_getter(style)),
        tuple(not_neg(calc.edge(style[f"border-{side}-width"])) for side in _sides),
        tuple(not_neg(calc.edge(style[f"padding-{side}"])) for side in _sides),
    )


_sides = ("top", "right", "bottom", "left")


def format_inline(engine: LayoutEngine, block_box: LayoutBlockBox, elem: Element):
    """
    A non-atomic inline element. Its children join the surrounding line,
    its horizontal edges become spacers around them
    """
    margin, border, padding = inline_edges(elem, block_box.cb_width)
    ancestors = tuple(block_box.inline_stack)
    start = Fragment(
        owner=elem,
        width=margin[3] + border[3] + padding[3],
        kind="spacer",
        breakable_before=block_box.break_opportunity,
        ancestors=ancestors,
    )
    block_box.add_fragment(start)
    block_box.inline_stack.append(elem)
    try:
        for child in elem.display_children:
            engine.dispatch(block_box, child)
    finally:
        block_box.inline_stack.pop()
    break_opportunity = block_box.break_opportunity
    block_box.add_fragment(
        Fragment(
            owner=elem,
            width=margin[1] + border[1] + padding[1],
            kind="spacer",
            ancestors=ancestors,
        )
    )
    block_box.break_opportunity = break_opportunity
    block_box.inlines.append((elem, start))


def inline_box(elem: Element, rect: Rect, cb_width: float | None) -> Box:
    """
    The Box of an inline element, its content box encloses all its fragments
    """
    margin, border, padding = inline_edges(elem, cb_width)
    return Box(margin, border, padding, rect.width, rect.height, pos=rect.topleft)
