"""
The elements layout works on.

Building these trees (parsing markup, cascading stylesheets) is the job of the
document. Here is just enough of an element tree to hand styles
and children to the layout engine and to receive its Boxes.
"""
from __future__ import annotations

from typing import Any, Iterable, Mapping

from frozendict import frozendict

import boxflow.config as config
from boxflow.Box import Box
from boxflow.Style import FullyComputedStyle, compute_style
from boxflow.types import StructuralViolation


class Element:
    """
    A styled node in the document.
    Layout only ever writes its `box` (and the fragments of text runs).
    """

    tag: str
    attrs: dict[str, Any]
    children: list[Element | TextElement]
    parent: Element | None
    # None means no geometry (display: none or not laid out yet)
    box: Box | None

    def __init__(
        self,
        tag: str,
        style: Mapping[str, Any] | None = None,
        children: Iterable[Element | TextElement | str] = (),
        attrs: dict[str, Any] | None = None,
    ):
        self.tag = tag
        self.attrs = dict(attrs or {})
        self.style = style if isinstance(style, frozendict) else dict(style or {})
        self.children = [
            TextElement(child) if isinstance(child, str) else child
            for child in children
        ]
        self.parent = None
        self.box = None
        self._cstyle: frozendict | None = None
        for child in self.children:
            if child.parent is not None:
                raise StructuralViolation(f"{child!r} already has a parent")
            child.parent = self

    @property
    def cstyle(self) -> FullyComputedStyle:
        """
        The computed style. Inherited properties come from the parent
        """
        if self._cstyle is None:
            parent_style = self.parent.cstyle if self.parent is not None else None
            self._cstyle = compute_style(self.style, parent_style)
        return self._cstyle

    def restyle(self):
        """
        Forget the computed styles of this subtree
        """
        for elem in self.iter_tree():
            if isinstance(elem, Element):
                elem._cstyle = None

    @property
    def display(self) -> str:
        return self.cstyle["display"]

    @property
    def float(self) -> str:
        return self.cstyle["float"]

    @property
    def is_root(self) -> bool:
        return self.parent is None

    @property
    def is_replaced(self) -> bool:
        return self.tag in config.replaced_tags

    @property
    def resource(self) -> Any:
        """
        What the image measurer gets asked about
        """
        return self.attrs.get("src")

    @property
    def special_kind(self) -> str | None:
        """
        Elements that need a special formatter, None for everyone else
        """
        if self.tag == "br":
            return "br"
        elif self.tag in config.form_control_tags:
            return "form-control"
        elif self.is_replaced:
            return "replaced"
        elif self.display == "table":
            return "table"
        return None

    @property
    def display_children(self) -> list[Element | TextElement]:
        return [child for child in self.children if child.display != "none"]

    def iter_tree(self) -> Iterable[Element | TextElement]:
        """
        Yields the element and all of its descendants in document order
        """
        seen: set[int] = set()
        stack: list[Element | TextElement] = [self]
        while stack:
            elem = stack.pop()
            if id(elem) in seen:
                raise StructuralViolation(f"{elem!r} is contained in itself")
            seen.add(id(elem))
            yield elem
            if isinstance(elem, Element):
                stack.extend(reversed(elem.children))

    def __repr__(self):
        return f"<{self.tag}>"


class ReplacedElement(Element):
    """
    An element whose content comes from an external resource.
    The resource is handed to the image measurer as is.
    """

    def __init__(
        self,
        tag: str = "img",
        style: Mapping[str, Any] | None = None,
        attrs: dict[str, Any] | None = None,
        resource: Any = None,
    ):
        super().__init__(tag, style, (), attrs)
        self._resource = resource

    @property
    def is_replaced(self) -> bool:
        return True

    @property
    def resource(self) -> Any:
        return self._resource if self._resource is not None else super().resource

    @property
    def special_kind(self) -> str | None:
        return "replaced"


class TextElement:
    """
    A run of text. Its style is the style of its parent
    """

    display = "inline"
    children: tuple = ()

    def __init__(self, text: str):
        self.text = text
        self.parent: Element | None = None
        self.box: Box | None = None
        self.fragments: tuple = ()

    @property
    def cstyle(self) -> FullyComputedStyle:
        if self.parent is None:
            return compute_style()
        return self.parent.cstyle

    def iter_tree(self) -> Iterable[TextElement]:
        yield self

    def __repr__(self):
        return f"<TextElement {self.text!r}>"
