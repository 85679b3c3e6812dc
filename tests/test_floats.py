from boxflow.Box import Box
from boxflow.Element import Element
from boxflow.layout.floats import FloatEntry, FloatedBoxList


def add(floats: FloatedBoxList, side, width, height, top=0, left=0, right=200):
    x, y = floats.place(width, height, side, top, left, right)
    floats.add(FloatEntry(Element("div"), Box(width=width, height=height), side, x, y, x + width, y + height))
    return x, y


def test_place():
    floats = FloatedBoxList()
    assert add(floats, "left", 50, 50) == (0, 0)
    assert add(floats, "right", 30, 20) == (170, 0)
    assert add(floats, "left", 50, 10) == (50, 0)
    # too wide next to all three, but fits once the third one ended
    assert add(floats, "left", 100, 10) == (50, 10)
    assert len(floats) == 4


def test_floats_dont_go_above_earlier_floats():
    floats = FloatedBoxList()
    add(floats, "left", 50, 50, top=30)
    assert add(floats, "right", 10, 10, top=0) == (190, 30)


def test_line_span():
    floats = FloatedBoxList()
    add(floats, "left", 50, 50)
    assert floats.line_span(0, 10, 0, 200) == (0, 50, 200)
    assert floats.line_span(50, 10, 0, 200) == (50, 0, 200)
    # too wide to fit next to the float
    assert floats.line_span(0, 160, 0, 200) == (50, 0, 200)
    assert floats.available_span(40, 20, 0, 200) == (50, 200)


def test_clearance():
    floats = FloatedBoxList()
    add(floats, "left", 50, 50)
    add(floats, "right", 50, 80)
    assert floats.clearance("left", 0) == 50
    assert floats.clearance("right", 0) == 80
    assert floats.clearance("both", 0) == 80
    assert floats.clearance("left", 60) == 60
    assert floats.lowest() == 80
    assert FloatedBoxList().clearance("both", 10) == 10
    assert FloatedBoxList().lowest() == 0
