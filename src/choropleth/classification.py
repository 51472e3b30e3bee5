"""
Class-break resolution and class assignment.

Values are binned with upper-bound-inclusive breaks: a value belongs to the
first break it does not exceed.
"""

import logging
from enum import Enum
from typing import Mapping, Optional, Sequence, Tuple

import numpy as np

logger = logging.getLogger(__name__)

FALLBACK_CLASS_COUNT = 4


class OutOfRangePolicy(Enum):
    """What to do with a value above the last class break."""
    CLAMP = "clamp"          # assign the last class
    NO_COLOR = "no_color"    # leave the feature on the default color
    STRICT = "strict"        # raise ClassBreakError


class ClassBreakError(ValueError):
    """Raised when a value cannot be placed in any class."""


def equal_interval_breaks(
    stats: Mapping[str, float],
    classes: int = FALLBACK_CLASS_COUNT
) -> Tuple[float, ...]:
    """Interior breaks splitting [MIN, MAX] into equal-width classes.

    With the default four classes, MIN=0 and MAX=100 give (25, 50, 75).
    A zero range yields the single break MAX.
    """
    minimum = float(stats["MIN"])
    maximum = float(stats["MAX"])
    value_range = float(stats.get("RANGE", maximum - minimum))

    if value_range <= 0:
        return (maximum,)

    quantile = value_range / classes
    return tuple((minimum + quantile * np.arange(1, classes)).tolist())


def resolve_class_breaks(
    attribute_id: str,
    stats: Mapping[str, float],
    class_breaks: Optional[Sequence[float]],
    log: Optional[logging.Logger] = None
) -> Tuple[float, ...]:
    """Return precomputed breaks, or equal-interval fallback breaks.

    An empty break list counts as missing.

    The fallback ignores the shape of the distribution, so it is reported
    as a warning.
    """
    if class_breaks:
        return tuple(class_breaks)

    (log or logger).warning(
        "Include class break information to this data: %s", attribute_id
    )
    return equal_interval_breaks(stats)


def assign_class(value: float, class_breaks: Sequence[float]) -> Optional[int]:
    """Index of the first break the value does not exceed.

    Breaks are scanned in the given order and not re-sorted.

    Returns:
        Class index, or None if the value is above every break
    """
    for index, breakpoint in enumerate(class_breaks):
        if value <= breakpoint:
            return index
    return None
