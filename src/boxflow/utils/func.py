import logging
from functools import cache
from typing import Sequence

from boxflow.types import V_T


########################## Misc #########################
def make_default(value: V_T | None, default: V_T) -> V_T:
    """
    If the `value` is None this returns `default` else it returns `value`

    `make_default(age, 0)`
    """
    return default if value is None else value


def in_bounds(x: float, lower: float, upper: float) -> float:
    """
    Make `x` be between lower and upper.
    If the bounds contradict each other the lower bound wins
    """
    upper = max(lower, upper)
    x = max(lower, x)
    x = min(upper, x)
    return x


def not_neg(x: float):
    """
    return the maximum of x and 0
    """
    return max(0, x)


def ensure_suffix(s: str, suf: str) -> str:
    """
    Ensures that `s` definitely ends with the suffix `suf`
    """
    return s if s.endswith(suf) else s + suf


def expand_sides(values: Sequence[V_T]) -> tuple[V_T, V_T, V_T, V_T]:
    """
    Expands 1 to 4 values to top, right, bottom, left like css shorthands do
    """
    match values:
        case [a]:
            return (a, a, a, a)
        case [v, h]:
            return (v, h, v, h)
        case [t, h, b]:
            return (t, h, b, h)
        case [t, r, b, l]:
            return (t, r, b, l)
    raise ValueError(f"Expected 1 to 4 values, got {len(values)}")


####################################################################

########################## Logging #################################
def log_error(*args):
    """
    Logs the arguments joined by spaces as an error
    """
    logging.error(" ".join(map(str, args)))


log_error_once = cache(log_error)
####################################################################
