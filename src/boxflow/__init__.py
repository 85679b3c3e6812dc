from boxflow.config import set_config
from boxflow.Box import Box, collapse_margins, make_box
from boxflow.Element import Element, ReplacedElement, TextElement
from boxflow.layout import LayoutEngine, format_element
from boxflow.layout.arena import TextFragment
from boxflow.layout.special import register_formatter
from boxflow.Media import SurfaceImageMeasurer
from boxflow.Style import compute_style
from boxflow.types import (BugError, FontSpec, IntrinsicSize, LayoutError,
                           MeasurementFailure, StructuralViolation,
                           TextMetrics, UnresolvedDimension)
from boxflow.utils.fonts import PygameTextMeasurer

__all__ = [
    # layout
    "LayoutEngine",
    "format_element",
    "register_formatter",
    # geometry
    "Box",
    "collapse_margins",
    "make_box",
    "TextFragment",
    # document
    "Element",
    "ReplacedElement",
    "TextElement",
    "compute_style",
    # measurement
    "FontSpec",
    "TextMetrics",
    "IntrinsicSize",
    "PygameTextMeasurer",
    "SurfaceImageMeasurer",
    # errors
    "BugError",
    "LayoutError",
    "UnresolvedDimension",
    "MeasurementFailure",
    "StructuralViolation",
    "set_config",
]
