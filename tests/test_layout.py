from conftest import FixedTextMeasurer, block, elem

import boxflow.config as config
from boxflow import (Box, Element, LayoutEngine, ReplacedElement, TextMetrics,
                     format_element)
from boxflow.types import Rect


def fragments(text_elem):
    return [(f.text, f.x, f.y) for f in text_elem.fragments]


############################## Lines ##############################


def test_line_breaking(layout):
    root = layout(block("aaaa bbbb cccc"), width=100)
    text = root.children[0]
    assert fragments(text) == [("aaaa", 0, 0), ("bbbb", 50, 0), ("cccc", 0, 10)]
    assert [f.baseline for f in text.fragments] == [8, 8, 18]
    assert root.box.content_box == Rect(0, 0, 100, 20)
    assert text.box.content_box == Rect(0, 0, 90, 20)


def test_trailing_space_is_not_aligned(layout):
    root = layout(block("aa bb ", text_align="right"), width=100)
    assert fragments(root.children[0]) == [("aa", 50, 0), ("bb", 80, 0)]


def test_text_align(layout):
    root = layout(block("aa", text_align="center"), width=100)
    assert fragments(root.children[0]) == [("aa", 40, 0)]
    # only lines that were broken because of their length are justified
    root = layout(block("aaaa bbbb cccc", text_align="justify"), width=100)
    assert fragments(root.children[0]) == [("aaaa", 0, 0), ("bbbb", 60, 0), ("cccc", 0, 10)]


def test_white_space(layout):
    root = layout(block("a  b\nc", white_space="pre"))
    assert fragments(root.children[0]) == [("a  b", 0, 0), ("c", 0, 10)]

    root = layout(block("aaaa bbbb cccc", white_space="nowrap"), width=50)
    assert fragments(root.children[0]) == [("aaaa", 0, 0), ("bbbb", 50, 0), ("cccc", 100, 0)]

    root = layout(block("aa   bb\ncc", white_space="pre-line"))
    assert fragments(root.children[0]) == [("aa", 0, 0), ("bb", 30, 0), ("cc", 0, 10)]


def test_line_height(layout):
    root = layout(block("aa bb", line_height="30px"), width=20)
    text = root.children[0]
    # the half-leading is distributed above and below the glyphs
    assert fragments(text) == [("aa", 0, 10), ("bb", 0, 40)]
    assert root.box.height == 60


def test_line_break_element(layout):
    br = Element("br")
    root = layout(block("aa", br, "bb"))
    assert fragments(root.children[2]) == [("bb", 0, 10)]
    assert br.box.pos == (20, 0)
    assert br.box.width == 0

    root = layout(block("aa", Element("br"), Element("br"), "bb"))
    assert fragments(root.children[3]) == [("bb", 0, 20)]
    assert root.box.height == 30


def test_inline_element_box(layout):
    span = elem("span", "aa", padding_left="5px", padding_right="5px")
    root = layout(block(span), width=200)
    assert fragments(span.children[0]) == [("aa", 5, 0)]
    assert span.box.content_box == Rect(5, 0, 20, 10)
    assert span.box.padding_box == Rect(0, 0, 30, 10)


def test_oversized_inline_block_gets_its_own_line(layout):
    ib = elem("div", display="inline-block", width="150px", height="20px")
    root = layout(block("aa ", ib, " bb"), width=100)
    assert fragments(root.children[0]) == [("aa", 0, 0)]
    assert ib.box.outer_box == Rect(0, 10, 150, 20)
    assert fragments(root.children[2]) == [("bb", 0, 30)]
    assert root.box.height == 40


def test_inline_block_shrinks_to_fit(layout):
    ib = elem("span", "aa bb", display="inline-block")
    root = layout(block("x ", ib))
    assert ib.box.outer_box == Rect(20, 0, 50, 10)
    # the inline-block sits on the baseline with the bottom of its margin box
    assert fragments(root.children[0]) == [("x", 0, 2)]
    assert root.box.height == 12


def test_text_is_measured_once_per_pass(layout, text_measurer):
    layout(block("aa aa aa"))
    # " " and "aa"
    assert text_measurer.calls == 2
    # lines are broken by the engine, runs are measured without a limit
    assert text_measurer.available_widths == [float("inf")] * 2


def test_nested_content_positions(layout):
    inner = block("aa", padding="10px")
    layout(block(inner, margin_left="5px"))
    assert fragments(inner.children[0]) == [("aa", 15, 10)]
    assert inner.box.outer_box == Rect(5, 0, 295, 30)


############################## Blocks ##############################


def test_sibling_margins_collapse(layout):
    second = block(height="10px", margin_top="30px")
    root = layout(block(block(height="10px", margin_bottom="20px"), second))
    assert second.box.border_box.y == 40
    assert root.box.height == 50

    second = block(height="10px", margin_top="-15px")
    layout(block(block(height="10px", margin_bottom="-10px"), second))
    assert second.box.border_box.y == -5

    second = block(height="10px", margin_top="-15px")
    layout(block(block(height="10px", margin_bottom="10px"), second))
    assert second.box.border_box.y == 5


def test_empty_blocks_collapse_through(layout):
    last = block(height="10px", margin_top="15px")
    root = layout(
        block(
            block(height="10px", margin_bottom="10px"),
            block(margin_top="20px", margin_bottom="5px"),
            last,
        )
    )
    assert last.box.border_box.y == 30
    assert root.box.height == 40


def test_auto_margins_center(layout):
    child = block(height="10px", width="100px", margin="0 auto")
    layout(block(child))
    assert child.box.border_box == Rect(100, 0, 100, 10)


def test_percentage_heights(layout):
    child = block(height="50%")
    layout(block(child), 500, 400)
    # the root has an auto height, so the percentage can't be resolved
    assert child.box.height == 0

    child = block(height="50%")
    root = layout(block(child, height="100%"), 500, 400)
    assert root.box.height == 400
    assert child.box.height == 200


def test_root_percentage_height_is_auto(layout):
    root = layout(block(height="50%"), 500, None)
    assert root.box.width == 500
    assert root.box.height == 0

    # the content decides the height, not the containing width
    root = layout(block("aa", height="50%"), 500, None)
    assert root.box.height == 10

    child = block(height="50%", min_height="10%")
    layout(block(child), 500, 400)
    assert child.box.height == 0


def test_display_none(layout):
    hidden = block(block(height="10px"), height="10px", display="none")
    visible = block(height="10px")
    root = layout(block(hidden, visible))
    assert hidden.box is None
    assert hidden.children[0].box is None
    assert visible.box.border_box.y == 0
    assert root.box.height == 10


def test_relative_position(layout):
    inner = block(height="10px")
    rel = block(inner, position="relative", left="10px", top="5px", height="20px")
    after = block(height="10px")
    root = layout(block(rel, after))
    assert rel.box.content_box.topleft == (10, 5)
    assert inner.box.content_box.topleft == (10, 5)
    # the flow isn't affected
    assert after.box.border_box.y == 20
    assert root.box.height == 30


def test_fit_content(layout):
    child = block("aaaa aaaa", width="fit-content")
    layout(block(child))
    assert child.box.width == 90


def test_shrink_wrapped_root(layout):
    root = layout(block("aaaa aaaa aaaa aaaa aaaa aa aa"), None)
    assert root.box.width == 300
    assert root.box.height == 10

    # percentages of an indefinite width are auto
    child = block("aaaa", width="50%")
    root = layout(block(child), None)
    assert child.box.width == 40
    assert root.box.width == 40


############################## Floats ##############################


def float_box(side="left", width="50px", height="50px", *children, **style):
    return elem("div", *children, float=side, width=width, height=height, **style)


def test_lines_are_shortened_by_floats(layout):
    left = float_box()
    root = layout(block(left, "hello"), width=200)
    assert left.box.outer_box == Rect(0, 0, 50, 50)
    assert fragments(root.children[1]) == [("hello", 50, 0)]
    # the root contains its floats
    assert root.box.height == 50


def test_right_float(layout):
    right = float_box("right", "30px", "30px")
    layout(block(right), width=200)
    assert right.box.outer_box == Rect(170, 0, 30, 30)


def test_float_shrinks_to_fit(layout):
    text = "aaaa aaaa aaaa aaaa aaaa aa aa"
    narrow = elem("div", text, float="left")
    layout(block(narrow), width=120)
    assert narrow.box.width == 120

    wide = elem("div", text, float="left")
    layout(block(wide), width=500)
    assert wide.box.width == 300


def test_float_after_text_goes_below_the_line(layout):
    fl = float_box("left", "30px", "30px")
    root = layout(block("aa ", fl, "bb"), width=200)
    assert fragments(root.children[2]) == [("bb", 30, 0)]
    assert fl.box.outer_box == Rect(0, 10, 30, 30)
    assert root.box.height == 40


def test_clear(layout):
    cleared = block(height="10px", clear="left")
    root = layout(block(float_box(), cleared), width=200)
    assert cleared.box.border_box.y == 50
    assert root.box.height == 60


def test_float_containment(layout):
    inner = block(float_box("left", "30px", "30px"))
    root = layout(block(inner))
    # floats stick out of normal blocks
    assert inner.box.height == 0
    assert root.box.height == 30

    inner = block(float_box("left", "30px", "30px"), overflow="hidden")
    layout(block(inner))
    # but not out of blocks that establish a block formatting context
    assert inner.box.height == 30


############################## Replaced ##############################


def test_replaced_sizing(layout):
    cases = [
        ({"width": "200px"}, "cat", (200, 100)),
        ({"height": "100px"}, "cat", (200, 100)),
        ({}, "cat", (100, 50)),
        ({"width": "200px", "aspect-ratio": "none"}, "cat", (200, 50)),
        ({}, "sized-only", (80, 150)),
        ({}, "nothing", (300, 150)),
        ({"aspect-ratio": "3"}, "nothing", (300, 100)),
        ({"width": "50px", "min-width": "60px"}, "square", (60, 50)),
    ]
    for style, resource, size in cases:
        img = ReplacedElement(style=style, resource=resource)
        layout(block(img), width=500)
        assert img.box.content_box.size == size, (style, resource)


def test_block_replaced_element(layout):
    img = ReplacedElement(style={"display": "block", "width": "100px", "margin": "0 auto"}, resource="cat")
    after = block(height="10px")
    layout(block(img, after))
    assert img.box.content_box == Rect(100, 0, 100, 50)
    assert after.box.border_box.y == 50


def test_form_controls(layout):
    text_input = Element("input")
    textarea = Element("textarea", attrs={"cols": "5", "rows": 3})
    layout(block(text_input, textarea), width=500)
    assert text_input.box.content_box.size == (200, 10)
    assert textarea.box.content_box.size == (50, 30)
    assert textarea.box.x == 200


############################## Tables ##############################


def cell(*children, **style):
    return elem("td", *children, display="table-cell", **style)


def row(*cells):
    return elem("tr", *cells, display="table-row")


def test_table(layout):
    first, second = cell("aa"), cell("bbbb bbbb")
    tr = row(first, second)
    table = elem("table", tr, display="table", border_spacing="2px")
    layout(block(table))
    assert table.box.content_box == Rect(0, 0, 116, 14)
    assert tr.box.content_box == Rect(2, 2, 112, 10)
    assert first.box.content_box == Rect(2, 2, 20, 10)
    assert second.box.content_box == Rect(24, 2, 90, 10)
    assert fragments(second.children[0]) == [("bbbb", 24, 2), ("bbbb", 74, 2)]


def test_table_cells_are_stretched(layout):
    short, tall = cell("aa"), cell(block(height="30px"))
    table = elem("table", row(short, tall), display="table")
    layout(block(table))
    assert short.box.height == 30
    assert tall.box.height == 30
    assert table.box.height == 30


############################## Passes ##############################


def test_idempotent(layout):
    root = block(
        float_box("left", "30px", "30px"),
        "aaaa bbbb cccc dddd",
        block("eeee", padding="5px"),
        ReplacedElement(resource="cat"),
    )
    layout(root, width=150)
    first = [(e.box, getattr(e, "fragments", None)) for e in root.iter_tree()]
    layout(root, width=150)
    assert [(e.box, getattr(e, "fragments", None)) for e in root.iter_tree()] == first


def test_failed_pass_keeps_old_boxes(layout):
    root = block("aaaa", block("bbbb"))
    layout(root)
    old = [e.box for e in root.iter_tree()]
    failing = LayoutEngine(FixedTextMeasurer(fail=True))
    assert not failing.format_element(root, (100, None))
    assert [e.box for e in root.iter_tree()] == old


def test_broken_measurers_fail_the_pass():
    class Broken:
        def measure(self, text, font, available_width=float("inf")):
            raise ValueError("broken")

    class Negative:
        def measure(self, text, font, available_width=float("inf")):
            return TextMetrics(-1, False, 8, 2)

    assert not format_element(block("aa"), (100, None), Broken())
    assert not format_element(block("aa"), (100, None), Negative())


def test_missing_image_fails_the_pass(engine):
    img = ReplacedElement(resource="unknown")
    assert not engine.format_element(block(img), (100, None))
    assert img.box is None


def test_replaced_root(engine):
    img = ReplacedElement(resource="cat")
    assert not engine.format_element(img, (100, None))
    assert img.box is None


def test_cycles(engine):
    a, b = block(), block()
    a.children.append(b)
    b.parent = a
    b.children.append(a)
    assert not engine.format_element(a, (100, None))

    x, y = block(), block()
    x.parent, y.parent = y, x
    assert not engine.format_element(x, (100, None))


def test_max_depth(engine):
    def chain(depth):
        elem = block("aa")
        for _ in range(depth):
            elem = block(elem)
        return elem

    assert engine.format_element(chain(50), (100, None))
    assert not engine.format_element(chain(config.g["max_depth"] + 10), (100, None))


def test_nested_pass_is_refused(engine, layout):
    results = []

    def formatter(engine, block_box, elem):
        results.append(engine.format_element(elem, (100, 100)))
        block_box.add_atomic(elem, Box(width=10, height=10), 10)

    engine.register_formatter("table", formatter)
    table = elem("div", display="table")
    layout(block(table))
    assert results == [False]
    assert table.box.content_box == Rect(0, 0, 10, 10)


def test_custom_formatter(engine, layout):
    results = []

    def flatten(engine, block_box, elem):
        for child in elem.display_children:
            results.append(engine.format_element_in(block_box, child))

    engine.register_formatter("table", flatten)
    second = block(height="10px")
    missing = ReplacedElement(resource="unknown")
    table = elem("div", block(height="10px"), second, missing, display="table")
    layout(block(table))
    assert results == [True, True, False]
    assert second.box.border_box.y == 10
    assert table.box is None


def test_element_without_parent_is_formatted_alone(layout):
    text = Element("p", {}, ["aa bb"])
    layout(text, width=30)
    assert fragments(text.children[0]) == [("aa", 0, 0), ("bb", 0, 10)]
