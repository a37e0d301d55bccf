"""Small statistics helpers shared by the chart presenters."""

from __future__ import annotations

import math
from collections.abc import Iterable

_SMALL_SAMPLE_SIZE = 10
_NICE_STEPS = (1.0, 2.0, 2.5, 3.0, 4.0, 5.0, 6.0, 7.0, 8.0, 10.0)


def interpolated_quantile(values: Iterable[float], q: float) -> float:
    """Return the ``q`` quantile of ``values`` using linear interpolation.

    Empty input yields ``0``.
    """

    ordered = sorted(float(value) for value in values)
    if not ordered:
        return 0.0

    q = max(0.0, min(1.0, q))
    position = (len(ordered) - 1) * q
    lo = math.floor(position)
    hi = min(math.ceil(position), len(ordered) - 1)
    fraction = position - lo
    return ordered[lo] + (ordered[hi] - ordered[lo]) * fraction


def compute_normalized_max(values: Iterable[float], hi_quantile: float) -> float:
    """Return a colour/axis scale maximum that ignores extreme outliers.

    Samples of ten values or fewer are not trimmed so legitimate peaks are not
    clipped; larger samples use the ``hi_quantile`` and never go below 1.
    """

    collected = [float(value) for value in values]
    if not collected:
        return 1.0
    if len(collected) <= _SMALL_SAMPLE_SIZE:
        return max(collected)
    return max(interpolated_quantile(collected, hi_quantile), 1.0)


def nice_max(value: float) -> float:
    """Round ``value`` up to a human friendly axis bound (604 -> 700)."""

    if value <= 0:
        return 1.0

    magnitude = 10.0 ** math.floor(math.log10(value))
    mantissa = value / magnitude
    step = next((candidate for candidate in _NICE_STEPS if candidate >= mantissa), _NICE_STEPS[-1])
    # Rounding strips float noise such as 0.30000000000000004 but must not
    # take the bound below the input.
    return max(round(step * magnitude, 10), float(value))
