"""
The arena of one layout pass

Every transient object of a pass (block box frames, line boxes, float lists)
is allocated here and every computed Box is kept here until the pass
succeeded. Only then are the Boxes written onto the elements, so a failed
pass leaves the previous geometry untouched.
"""
from __future__ import annotations

from collections import Counter
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Callable, TypeVar

import boxflow.config as config
from boxflow.Box import Box
from boxflow.Element import Element, TextElement
from boxflow.types import FontSpec, StructuralViolation, TextMetrics

T = TypeVar("T")
Node = Element | TextElement


@dataclass(frozen=True)
class TextFragment:
    """
    One piece of a text run on one line, as the renderer needs it.
    (x, y) is the top left of the glyphs, baseline is absolute as well.
    """

    text: str
    x: float
    y: float
    width: float
    height: float
    baseline: float

    def moved(self, dx: float, dy: float) -> TextFragment:
        return TextFragment(
            self.text,
            self.x + dx,
            self.y + dy,
            self.width,
            self.height,
            self.baseline + dy,
        )


class LayoutArena:
    """
    Boxes are stored relative to the content box of another element
    (their containing block or the block container of their line),
    None means relative to the origin of the pass.
    """

    def __init__(self, parent: LayoutArena | None = None):
        self.parent = parent
        self.boxes: dict[int, tuple[Node, Box, Element | None]] = {}
        self.fragments: dict[int, tuple[Element | None, list[TextFragment]]] = {}
        self.offsets: dict[int, tuple[float, float]] = {}
        self.allocated: Counter[str] = Counter() if parent is None else parent.allocated
        # the elements currently being formatted, shared with scratch arenas
        self.path: list[int] = [] if parent is None else parent.path
        self.text_cache: dict[tuple[str, FontSpec], TextMetrics] = (
            {} if parent is None else parent.text_cache
        )

    def allocate(self, factory: Callable[..., T], *args: Any, **kwargs: Any) -> T:
        obj = factory(*args, **kwargs)
        self.allocated[type(obj).__name__] += 1
        return obj

    @contextmanager
    def visit(self, elem: Node):
        """
        Marks `elem` as being formatted. Guards against cycles and runaway nesting
        """
        key = id(elem)
        if key in self.path:
            raise StructuralViolation(f"{elem!r} is contained in itself")
        if len(self.path) >= config.g["max_depth"]:
            raise StructuralViolation(
                f"Nesting deeper than {config.g['max_depth']} at {elem!r}"
            )
        self.path.append(key)
        try:
            yield
        finally:
            self.path.pop()

    def store_box(self, elem: Node, box: Box, relative_to: Element | None):
        self.boxes[id(elem)] = (elem, box, relative_to)

    def get_box(self, elem: Node) -> Box:
        return self.boxes[id(elem)][1]

    def store_fragments(
        self, elem: TextElement, fragments: list[TextFragment], relative_to: Element | None
    ):
        self.fragments[id(elem)] = (relative_to, fragments)

    def set_offset(self, elem: Element, offset: tuple[float, float]):
        self.offsets[id(elem)] = offset

    def scratch(self) -> LayoutArena:
        """
        An arena for a measuring pass. Its results are thrown away
        """
        return LayoutArena(self)

    def commit(self, root: Node):
        """
        Writes the absolute Boxes onto the elements of the subtree of root.
        Elements without a stored Box get no geometry (None)
        """
        resolved: dict[int, Box] = {}

        def origin(elem: Element | None) -> tuple[float, float]:
            if elem is None:
                return (0, 0)
            rect = resolve(elem).content_box
            return (rect.x, rect.y)

        def resolve(elem: Node) -> Box:
            key = id(elem)
            if (box := resolved.get(key)) is None:
                _, box, relative_to = self.boxes[key]
                box = box.moved(*origin(relative_to))
                if (offset := self.offsets.get(key)) is not None:
                    box = box.moved(*offset)
                resolved[key] = box
            return box

        for elem in root.iter_tree():
            elem.box = resolve(elem) if id(elem) in self.boxes else None
            if isinstance(elem, TextElement):
                if (entry := self.fragments.get(id(elem))) is None:
                    elem.fragments = ()
                    continue
                relative_to, fragments = entry
                dx, dy = origin(relative_to)
                elem.fragments = tuple(f.moved(dx, dy) for f in fragments)

    def release(self):
        self.boxes.clear()
        self.fragments.clear()
        self.offsets.clear()
        if self.parent is None:
            self.text_cache.clear()

    def __enter__(self):
        return self

    def __exit__(self, *args):
        self.release()
