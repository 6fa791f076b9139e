"""Cumulative per-label detection counts for one tracking session."""

from __future__ import annotations

import threading

from .labels import LABELS, Label, argmax
from .rounding import clamp, round_half_up


def percentages(counts: dict[Label, int]) -> dict[Label, float]:
    """Percentage distribution with one decimal place; all 0 if counts are empty."""
    total = sum(counts.values())
    if total == 0:
        return {label: 0.0 for label in LABELS}
    return {
        label: clamp(round_half_up(counts.get(label, 0) / total * 1000) / 10, 0.0, 100.0)
        for label in LABELS
    }


class SessionAccumulator:
    """Counts the dominant smoothed label of every frame that had faces.

    Counts only ever grow within a session. Reads go through a lock so a
    timeline tick on another thread always sees a consistent snapshot.
    Once frozen (session summary), further increments are refused.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._counts: dict[Label, int] = {label: 0 for label in LABELS}
        self._frozen = False

    @property
    def frozen(self) -> bool:
        return self._frozen

    def increment(self, label: Label) -> bool:
        """Count one frame for ``label``. Returns False if the accumulator is frozen."""
        with self._lock:
            if self._frozen:
                return False
            self._counts[Label(label)] += 1
            return True

    def counts(self) -> dict[Label, int]:
        """Consistent copy of the current counts."""
        with self._lock:
            return dict(self._counts)

    def total(self) -> int:
        with self._lock:
            return sum(self._counts.values())

    def distribution(self) -> dict[Label, float]:
        return percentages(self.counts())

    def dominant_label(self) -> Label | None:
        """Label with the highest count (priority order on ties), None if empty."""
        counts = self.counts()
        if sum(counts.values()) == 0:
            return None
        return argmax(counts)

    def freeze(self) -> None:
        with self._lock:
            self._frozen = True

    def reset(self) -> None:
        """Zero every count and unfreeze, atomically."""
        with self._lock:
            self._counts = {label: 0 for label in LABELS}
            self._frozen = False
