"""Mood/timeline event dataclasses and callback-based event emitter."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Callable

from .labels import Label

if TYPE_CHECKING:
    from .timeline import MoodSnapshot


@dataclass
class MoodEvent:
    """Represents a change of the smoothed group mood."""

    elapsed_seconds: float  # session-relative, never wall-clock
    dominant: Label
    previous: Label | None = None
    scores: dict[Label, float] = field(default_factory=dict)  # smoothed, 0.0-1.0

    def to_dict(self) -> dict:
        return {
            "elapsed_seconds": round(self.elapsed_seconds, 1),
            "dominant": self.dominant.value,
            "previous": self.previous.value if self.previous else None,
            "scores": {label.value: round(v, 3) for label, v in self.scores.items()},
        }

    def to_json(self) -> str:
        return json.dumps(self.to_dict())


@dataclass
class SnapshotEvent:
    """Represents a snapshot appended to the mood timeline."""

    snapshot: MoodSnapshot
    index: int  # position in the timeline

    def to_dict(self) -> dict:
        return {"index": self.index, **self.snapshot.to_dict()}

    def to_json(self) -> str:
        return json.dumps(self.to_dict())


class EventEmitter:
    """Simple callback-based event system.

    A failing callback is reported and skipped so it can't stall the frame
    pipeline.
    """

    def __init__(self) -> None:
        self._mood_callbacks: list[Callable[[MoodEvent], None]] = []
        self._snapshot_callbacks: list[Callable[[SnapshotEvent], None]] = []

    def on_mood(self, callback: Callable[[MoodEvent], None]) -> None:
        """Register a callback for mood change events."""
        self._mood_callbacks.append(callback)

    def on_snapshot(self, callback: Callable[[SnapshotEvent], None]) -> None:
        """Register a callback for timeline snapshot events."""
        self._snapshot_callbacks.append(callback)

    def emit(self, event: MoodEvent) -> None:
        """Call all registered mood callbacks."""
        self._dispatch(self._mood_callbacks, event)

    def emit_snapshot(self, event: SnapshotEvent) -> None:
        """Call all registered snapshot callbacks."""
        self._dispatch(self._snapshot_callbacks, event)

    @staticmethod
    def _dispatch(callbacks: list[Callable], event) -> None:
        for cb in callbacks:
            try:
                cb(event)
            except Exception as e:
                print(f"[EVENTS] Callback {getattr(cb, '__name__', cb)!r} failed: {e}")
