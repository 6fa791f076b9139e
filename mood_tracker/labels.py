"""Closed emotion label set and helpers for dense label mappings.

Declaration order of ``Label`` is the priority order used to break ties
everywhere (smoothed argmax, cumulative dominant label): among tied labels
the first-declared one wins.
"""

from __future__ import annotations

import math
from enum import Enum
from typing import Mapping


class Label(str, Enum):
    """Emotion categories tracked for the audience, in tie-break priority order."""

    HAPPY = "happy"
    NEUTRAL = "neutral"
    SURPRISED = "surprised"
    SAD = "sad"
    ANGRY = "angry"
    BORED = "bored"


LABELS: tuple[Label, ...] = tuple(Label)

# DeepFace emotion keys -> our labels. DeepFace has no "bored"; "disgust"
# (low energy, negative valence) stands in for it. "fear" is ignored.
DEEPFACE_LABEL_MAP: dict[Label, str] = {
    Label.HAPPY: "happy",
    Label.NEUTRAL: "neutral",
    Label.SURPRISED: "surprise",
    Label.SAD: "sad",
    Label.ANGRY: "angry",
    Label.BORED: "disgust",
}


def zeros() -> dict[Label, float]:
    return {label: 0.0 for label in LABELS}


def _clamp_unit(value: float) -> float:
    try:
        value = float(value)
    except (TypeError, ValueError):
        return 0.0
    if math.isnan(value):
        return 0.0
    return min(1.0, max(0.0, value))


def dense_scores(scores: Mapping[Label | str, float]) -> dict[Label, float]:
    """Coerce a possibly partial score mapping into a dense one over LABELS.

    Keys may be ``Label`` members or their string values. Missing labels score
    0, NaN or non-numeric scores 0, and everything is clamped to [0, 1].
    Unknown keys are dropped. Anything that is not a mapping scores 0 throughout.
    """
    dense = zeros()
    if not isinstance(scores, Mapping):
        return dense
    for key, value in scores.items():
        try:
            label = Label(key)
        except ValueError:
            continue
        dense[label] = _clamp_unit(value)
    return dense


def argmax(values: Mapping[Label, float]) -> Label:
    """Label with the highest value; ties go to the first-declared label."""
    best = LABELS[0]
    for label in LABELS[1:]:
        if values.get(label, 0) > values.get(best, 0):
            best = label
    return best
