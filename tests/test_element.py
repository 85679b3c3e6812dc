import pygame as pg
import pytest

import boxflow.config as config
from boxflow import (Element, IntrinsicSize, MeasurementFailure,
                     ReplacedElement, StructuralViolation, SurfaceImageMeasurer,
                     TextElement, set_config)
from boxflow.types import Auto, Length


def test_tree():
    p = Element("p", {"display": "block", "font-size": "20px"}, ["Hello ", Element("b", {}, ["world"])])
    text, b = p.children
    assert isinstance(text, TextElement)
    assert text.parent is p and b.parent is p
    assert [*p.iter_tree()] == [p, text, b, b.children[0]]
    assert text.cstyle is p.cstyle
    assert b.cstyle["font-size"] == Length(20)
    assert b.display == "inline"
    assert p.is_root and not b.is_root


def test_text_elements_have_no_children():
    first, second = TextElement("a"), TextElement("b")
    assert first.children == ()
    assert isinstance(first.children, tuple)
    assert [*first.iter_tree()] == [first]
    assert first.cstyle["font-size"] == Length(16)
    Element("p", {}, [second])
    assert second.children == ()


def test_a_child_has_one_parent():
    b = Element("b")
    Element("p", {}, [b])
    with pytest.raises(StructuralViolation):
        Element("p", {}, [b])


def test_restyle():
    p = Element("p", {"width": "10px"})
    assert p.cstyle["width"] == Length(10)
    p.style["width"] = "auto"
    assert p.cstyle["width"] == Length(10)
    p.restyle()
    assert p.cstyle["width"] is Auto


def test_special_kinds():
    assert Element("br").special_kind == "br"
    assert Element("input").special_kind == "form-control"
    assert Element("img", attrs={"src": "cat.png"}).special_kind == "replaced"
    assert Element("img", attrs={"src": "cat.png"}).resource == "cat.png"
    assert Element("div", {"display": "table"}).special_kind == "table"
    assert Element("div").special_kind is None
    canvas = ReplacedElement("canvas", resource=(10, 10))
    assert canvas.is_replaced and canvas.special_kind == "replaced"


def test_display_children():
    hidden = Element("div", {"display": "none"})
    shown = Element("div")
    assert Element("div", {}, [hidden, shown]).display_children == [shown]


def test_set_config():
    old = config.g["default_font_size"]
    try:
        set_config(default_font_size=20)
        assert Element("p").cstyle["font-size"] == Length(20)
    finally:
        set_config(default_font_size=old)
    with pytest.raises(KeyError):
        set_config(no_such_setting=1)


def test_surface_image_measurer(tmp_path):
    measurer = SurfaceImageMeasurer()
    assert measurer.intrinsic_size(None) == IntrinsicSize()
    assert measurer.intrinsic_size((40, 20)).ratio == 2
    assert measurer.intrinsic_size(pg.Surface((30, 10))) == IntrinsicSize(30, 10)
    size = IntrinsicSize(ratio=1.5)
    assert measurer.intrinsic_size(size) is size
    with pytest.raises(MeasurementFailure):
        measurer.intrinsic_size(tmp_path / "missing.png")
    with pytest.raises(MeasurementFailure):
        measurer.intrinsic_size(object())
