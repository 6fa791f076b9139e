"""Periodic mood timeline built from per-interval count deltas.

Each tick compares the accumulator's counts with the counts captured at the
previous tick. Intervals with no new detections are skipped entirely rather
than recorded as flat samples. Snapshots carry session-relative time only.
"""

from __future__ import annotations

import json
import math
from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping

from . import config
from .accumulator import SessionAccumulator
from .errors import ConfigError
from .labels import LABELS, Label
from .rounding import round_half_up


def format_elapsed(elapsed_seconds: float) -> str:
    """Render session-elapsed seconds as ``m:ss`` (e.g. 0:30, 1:05, 12:00)."""
    total = max(0, int(elapsed_seconds))
    mins, secs = divmod(total, 60)
    return f"{mins}:{secs:02d}"


@dataclass(frozen=True)
class MoodSnapshot:
    """Emotion mix over one completed sampling interval."""

    elapsed_seconds: int
    label: str  # m:ss, relative to session start
    distribution: Mapping[Label, int]  # integer percentages of this interval

    def __post_init__(self) -> None:
        object.__setattr__(
            self, "distribution", MappingProxyType(dict(self.distribution))
        )

    def to_dict(self) -> dict:
        return {
            "timestamp": self.elapsed_seconds,
            "label": self.label,
            **{label.value: self.distribution.get(label, 0) for label in LABELS},
        }

    def to_json(self) -> str:
        return json.dumps(self.to_dict())


def validate_interval(interval_seconds: float) -> float:
    if isinstance(interval_seconds, bool) or not isinstance(interval_seconds, (int, float)):
        raise ConfigError(f"snapshot interval must be a number, got {interval_seconds!r}")
    if not (interval_seconds > 0 and math.isfinite(interval_seconds)):
        raise ConfigError(f"snapshot interval must be > 0, got {interval_seconds!r}")
    return float(interval_seconds)


class TimelineSampler:
    """Append-only sequence of MoodSnapshots driven by host ticks.

    The sampler owns no timer: the host calls ``tick`` on its own schedule,
    or asks ``due`` whether a full interval has passed since the last tick.
    """

    def __init__(
        self,
        accumulator: SessionAccumulator,
        interval_seconds: float = config.SNAPSHOT_INTERVAL_SECONDS,
    ) -> None:
        self._accumulator = accumulator
        self._interval = validate_interval(interval_seconds)
        self._previous: dict[Label, int] = accumulator.counts()
        self._last_tick = 0.0
        self._snapshots: list[MoodSnapshot] = []

    @property
    def interval_seconds(self) -> float:
        return self._interval

    @property
    def snapshots(self) -> tuple[MoodSnapshot, ...]:
        """Read-only view of the timeline, oldest first."""
        return tuple(self._snapshots)

    def due(self, elapsed_seconds: float) -> bool:
        return elapsed_seconds - self._last_tick >= self._interval

    def tick(self, elapsed_seconds: float) -> MoodSnapshot | None:
        """Close the current interval; returns the new snapshot or None if skipped.

        Snapshot seconds strictly increase, so two ticks inside the same whole
        second (a poll followed by a stop flush) get distinct labels: the later
        one is stamped one second past the previous snapshot.
        """
        self._last_tick = elapsed_seconds
        current = self._accumulator.counts()
        deltas = {label: current[label] - self._previous[label] for label in LABELS}
        total_delta = sum(deltas.values())
        if total_delta == 0:
            return None

        seconds = max(0, int(elapsed_seconds))
        if self._snapshots and seconds <= self._snapshots[-1].elapsed_seconds:
            seconds = self._snapshots[-1].elapsed_seconds + 1
        snapshot = MoodSnapshot(
            elapsed_seconds=seconds,
            label=format_elapsed(seconds),
            distribution={
                label: int(round_half_up(deltas[label] / total_delta * 100))
                for label in LABELS
            },
        )
        self._previous = current
        self._snapshots.append(snapshot)
        return snapshot

    def reset(self) -> None:
        """Start a fresh timeline against the accumulator's current counts."""
        self._previous = self._accumulator.counts()
        self._last_tick = 0.0
        self._snapshots = []
