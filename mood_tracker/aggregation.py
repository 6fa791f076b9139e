"""Frame aggregation: collapses every face in a frame into one group vector.

The reduction is one-way: face count, geometry and per-face scores are not
part of the output, so nothing downstream can single out an individual.
"""

from __future__ import annotations

from typing import Mapping, Sequence

import numpy as np

from .labels import LABELS, Label, dense_scores


def aggregate_frame(
    faces: Sequence[Mapping[Label | str, float]],
) -> dict[Label, float] | None:
    """Mean expression vector across all faces in one frame.

    Returns None when no faces were detected ("no signal"). Partial vectors
    contribute 0 for the labels they lack; entries that are not mappings are
    not faces and are skipped.
    """
    rows = [dense_scores(face) for face in faces or () if isinstance(face, Mapping)]
    if not rows:
        return None

    matrix = np.array([[row[label] for label in LABELS] for row in rows], dtype=float)
    means = matrix.mean(axis=0)
    return {label: float(means[i]) for i, label in enumerate(LABELS)}
