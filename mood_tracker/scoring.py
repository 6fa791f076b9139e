"""Engagement score: a single 0-100 number from a percentage distribution.

    score = round(clamp(sum(weight[label] * pct[label]), 0, 100))

Happy (1.0) and surprised (0.8) count as high engagement, neutral (0.5) as
mid, bored (0.15), sad (0.1) and angry (0.0) as low.
"""

from __future__ import annotations

import math
from typing import Mapping

from . import config
from .labels import Label
from .rounding import clamp, round_half_up

ENGAGEMENT_WEIGHTS: dict[Label, float] = {
    Label(name): weight for name, weight in config.ENGAGEMENT_WEIGHTS.items()
}


def engagement_score(distribution: Mapping[Label | str, float]) -> int:
    """Weighted engagement score in [0, 100].

    Missing labels contribute 0; unknown keys and non-finite values are
    ignored.
    """
    total = 0.0
    for key, pct in distribution.items():
        try:
            label = Label(key)
        except ValueError:
            continue
        if pct is None or not math.isfinite(pct):
            continue
        total += ENGAGEMENT_WEIGHTS[label] * pct
    return int(round_half_up(clamp(total, 0.0, 100.0)))


def engagement_band(score: int) -> str:
    """Display band for a score, e.g. "Excellent" or "Very Low"."""
    for threshold, band in config.ENGAGEMENT_BANDS:
        if score >= threshold:
            return band
    return config.ENGAGEMENT_BANDS[-1][1]
