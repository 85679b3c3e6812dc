import pytest

from boxflow import (Element, IntrinsicSize, LayoutEngine, MeasurementFailure,
                     TextMetrics)


class FixedTextMeasurer:
    """
    Every character is 10px wide, the font has an ascent of 8 and a descent of 2.
    So a line of text is 10px high.
    """

    advance = 10
    ascent = 8
    descent = 2

    def __init__(self, fail: bool = False):
        self.fail = fail
        self.calls = 0
        self.available_widths = []

    def measure(self, text, font, available_width=None):
        self.calls += 1
        self.available_widths.append(available_width)
        if self.fail:
            raise MeasurementFailure(f"No font for {text!r}")
        return TextMetrics(
            width=len(text) * self.advance,
            can_break=any(c.isspace() for c in text),
            ascent=self.ascent,
            descent=self.descent,
        )


class DictImageMeasurer:
    def __init__(self, sizes: dict):
        self.sizes = sizes

    def intrinsic_size(self, resource):
        try:
            return self.sizes[resource]
        except KeyError:
            raise MeasurementFailure(f"Unknown image {resource!r}")


images = {
    "cat": IntrinsicSize(100, 50),
    "square": IntrinsicSize(40, 40),
    "sized-only": IntrinsicSize(width=80),
    "nothing": IntrinsicSize(),
}


@pytest.fixture
def text_measurer():
    return FixedTextMeasurer()


@pytest.fixture
def engine(text_measurer):
    return LayoutEngine(text_measurer, DictImageMeasurer(images))


@pytest.fixture
def layout(engine):
    """
    Formats the element and makes sure that the pass succeeded
    """

    def _layout(elem, width=300, height=None):
        assert engine.format_element(elem, (width, height))
        return elem

    return _layout


def block(*children, **style):
    """
    A display: block div, style keys use underscores instead of dashes
    """
    return Element(
        "div",
        {"display": "block", **{k.replace("_", "-"): v for k, v in style.items()}},
        children,
    )


def elem(tag, *children, **style):
    return Element(tag, {k.replace("_", "-"): v for k, v in style.items()}, children)
