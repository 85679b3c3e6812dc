""" Any global variables are stored here"""
from typing import Any

# fmt: off
g: dict[str, Any] = {
    # User settable
    "default_font_size": 16,            # float
    "default_font_family": "system-ui", # str
    "line_height_normal": None,         # None (ascent + descent) or a factor of the font-size
    "default_input_size": 20,           # int, characters of an <input>
    "default_textarea_cols": 20,        # int
    "default_textarea_rows": 2,         # int
    "replaced_fallback_size": (300, 150),  # the css default object size
    "max_depth": 128,                   # int, deeper trees are structural violations
}
# fmt: on


def set_config(**kws: Any):
    """
    Update the settings in `g`. Unknown keys raise a KeyError
    """
    for key in kws:
        if key not in g:
            raise KeyError(f"Unknown setting: {key!r}")
    g.update(kws)


################################ constant data ########################

abs_length_units = {
    "px": 1,
    "cm": 37.8,
    "mm": 3.78,
    "Q": 0.945,
    "in": 96,
    "pc": 16,
    "pt": 4 / 3,
}

abs_border_width = {
    # copied from firefox
    "thin": 1,
    "medium": 3,
    "thick": 5,
}

abs_font_weight = {
    "normal": 400,
    "bold": 700,
}

generic_font_families = {
    "serif": ["Times New Roman", "DejaVu Serif", "Liberation Serif"],
    "sans-serif": ["Arial", "Helvetica", "DejaVu Sans", "Liberation Sans"],
    "monospace": ["Courier New", "DejaVu Sans Mono", "Liberation Mono"],
    "system-ui": ["Segoe UI", "Ubuntu", "Cantarell", "DejaVu Sans"],
}

# tags whose content comes from an external resource
replaced_tags = {"img", "object", "embed", "canvas", "video", "iframe"}
form_control_tags = {"input", "textarea"}

block_level_displays = {"block", "list-item", "flow-root", "table"}
