"""Half-up rounding, so 12.5 -> 13 regardless of Python's banker's rounding."""

from __future__ import annotations

import math


def round_half_up(value: float, ndigits: int = 0) -> float:
    scale = 10 ** ndigits
    return math.floor(value * scale + 0.5) / scale


def clamp(value: float, low: float, high: float) -> float:
    return min(high, max(low, value))
