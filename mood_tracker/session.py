"""Tracking session: owns all per-session state and the status machine.

    idle -> loading -> tracking -> summary -> idle
               \\-> idle (setup failure)

Frames and ticks are only accepted while tracking; anything arriving in
another status is dropped. Stopping forces one last timeline flush and
freezes the counts. Restarting throws every piece of session state away.

The session owns no threads or timers. The host calls ``on_frame`` once per
detection pass and ``on_tick``/``poll`` on its own schedule.
"""

from __future__ import annotations

import time
from enum import Enum
from typing import Callable, Mapping, Sequence

from . import config
from .accumulator import SessionAccumulator
from .aggregation import aggregate_frame
from .errors import SessionStateError
from .events import EventEmitter, SnapshotEvent
from .labels import Label
from .privacy import PrivacyNoiser, PrivateDistribution
from .scoring import engagement_band, engagement_score
from .smoothing import MoodSmoother, validate_alpha
from .timeline import MoodSnapshot, TimelineSampler, validate_interval


class Status(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    TRACKING = "tracking"
    SUMMARY = "summary"


class SessionClock:
    """Monotonic, session-relative elapsed time."""

    def __init__(self, time_fn: Callable[[], float] = time.monotonic) -> None:
        self._time_fn = time_fn
        self._started_at: float | None = None
        self._stopped_at: float | None = None

    def start(self) -> None:
        self._started_at = self._time_fn()
        self._stopped_at = None

    def stop(self) -> None:
        if self._started_at is not None:
            self._stopped_at = self._time_fn()

    def reset(self) -> None:
        self._started_at = None
        self._stopped_at = None

    def elapsed(self) -> float:
        if self._started_at is None:
            return 0.0
        end = self._stopped_at if self._stopped_at is not None else self._time_fn()
        return max(0.0, end - self._started_at)


class TrackingSession:
    """Audience mood pipeline for one tracking session.

    Frame Aggregator -> MoodSmoother -> SessionAccumulator per frame, with the
    TimelineSampler reading the accumulator on host ticks.
    """

    def __init__(
        self,
        alpha: float = config.EMA_SMOOTHING_FACTOR,
        snapshot_interval: float = config.SNAPSHOT_INTERVAL_SECONDS,
        epsilon: float = config.PRIVACY_EPSILON,
        clock: SessionClock | None = None,
        seed: int | None = None,
        event_emitter: EventEmitter | None = None,
    ) -> None:
        # Fail fast on bad tunables before any state exists
        self._alpha = validate_alpha(alpha)
        self._interval = validate_interval(snapshot_interval)
        self._epsilon = epsilon
        self._seed = seed
        self._noiser = PrivacyNoiser(epsilon=epsilon, seed=seed)

        self._emitter = event_emitter or EventEmitter()
        self._clock = clock or SessionClock()
        self._smoother = MoodSmoother(event_emitter=self._emitter, alpha=self._alpha)
        self._accumulator = SessionAccumulator()
        self._timeline = TimelineSampler(self._accumulator, self._interval)
        self._status = Status.IDLE
        self.error: str | None = None

    # --- status machine ---

    @property
    def status(self) -> Status:
        return self._status

    @property
    def event_emitter(self) -> EventEmitter:
        """Access the event emitter to register callbacks."""
        return self._emitter

    @property
    def clock(self) -> SessionClock:
        return self._clock

    def _transition(self, expected: Status, target: Status) -> None:
        if self._status is not expected:
            raise SessionStateError(
                f"cannot go {self._status.value} -> {target.value}"
            )
        print(f"[SESSION] {self._status.value} -> {target.value}")
        self._status = target

    def start(self) -> None:
        """Start request: idle -> loading, with every piece of state zeroed."""
        self._transition(Status.IDLE, Status.LOADING)
        self._reset_state()
        self.error = None

    def ready(self) -> None:
        """Model loaded and capture attached: loading -> tracking."""
        self._transition(Status.LOADING, Status.TRACKING)
        self._clock.start()
        self._timeline.reset()

    def fail(self, reason: str) -> None:
        """Setup failure: loading -> idle with state fully reset."""
        self._transition(Status.LOADING, Status.IDLE)
        self._reset_state()
        self.error = reason
        print(f"[SESSION] Setup failed: {reason}")

    def stop(self) -> MoodSnapshot | None:
        """Explicit stop: tracking -> summary.

        Frames are refused from here on. Counts are frozen before the final
        timeline flush, so the flushed snapshot and the summary see the same
        totals. Returns the flushed snapshot, if any.
        """
        self._transition(Status.TRACKING, Status.SUMMARY)
        self._clock.stop()
        self._accumulator.freeze()
        snapshot = self._take_snapshot(self._clock.elapsed())
        print(
            f"[SESSION] Stopped after {self._clock.elapsed():.0f}s: "
            f"{self._accumulator.total()} detections, {len(self._timeline.snapshots)} snapshots"
        )
        return snapshot

    def restart(self) -> None:
        """Explicit restart: summary -> idle, discarding the whole session."""
        self._transition(Status.SUMMARY, Status.IDLE)
        self._reset_state()

    def _reset_state(self) -> None:
        self._smoother.reset()
        self._accumulator.reset()
        self._timeline.reset()
        self._clock.reset()
        self._noiser = PrivacyNoiser(epsilon=self._epsilon, seed=self._seed)

    # --- host entry points ---

    def on_frame(self, faces: Sequence[Mapping[Label | str, float]]) -> Label | None:
        """Process one detection pass (one expression vector per face).

        Returns the frame's dominant smoothed label, or None when the frame
        had no faces or the session is not tracking.
        """
        if self._status is not Status.TRACKING:
            return None

        group_vector = aggregate_frame(faces)
        if group_vector is None:
            return None

        state = self._smoother.update(group_vector, self._clock.elapsed())
        self._accumulator.increment(state.dominant)
        return state.dominant

    def on_tick(self) -> MoodSnapshot | None:
        """Close the current timeline interval now."""
        if self._status is not Status.TRACKING:
            return None
        return self._take_snapshot(self._clock.elapsed())

    def poll(self) -> MoodSnapshot | None:
        """Tick only if a full snapshot interval has passed since the last tick."""
        if self._status is not Status.TRACKING:
            return None
        elapsed = self._clock.elapsed()
        if not self._timeline.due(elapsed):
            return None
        return self._take_snapshot(elapsed)

    def _take_snapshot(self, elapsed: float) -> MoodSnapshot | None:
        snapshot = self._timeline.tick(elapsed)
        if snapshot is not None:
            print(f"[TIMELINE] Snapshot {snapshot.label} ({len(self._timeline.snapshots)} total)")
            self._emitter.emit_snapshot(
                SnapshotEvent(snapshot=snapshot, index=len(self._timeline.snapshots) - 1)
            )
        return snapshot

    # --- read-only views ---

    def current_mood(self) -> Label | None:
        return self._smoother.state.dominant

    def smoothed_scores(self) -> dict[Label, float]:
        return dict(self._smoother.state.scores)

    def counts(self) -> dict[Label, int]:
        return self._accumulator.counts()

    def total_detections(self) -> int:
        return self._accumulator.total()

    def distribution(self) -> dict[Label, float]:
        return self._accumulator.distribution()

    def dominant_label(self) -> Label | None:
        return self._accumulator.dominant_label()

    def timeline(self) -> tuple[MoodSnapshot, ...]:
        return self._timeline.snapshots

    def engagement_score(self, distribution: Mapping[Label | str, float] | None = None) -> int:
        """Score for ``distribution``, or for the session's own distribution."""
        return engagement_score(self.distribution() if distribution is None else distribution)

    def engagement_band(self) -> str:
        return engagement_band(self.engagement_score())

    def privatize(
        self,
        distribution: Mapping[Label | str, float],
        epsilon: float | None = None,
    ) -> PrivateDistribution:
        """The gate every outbound distribution must pass through exactly once."""
        return self._noiser.privatize(distribution, epsilon)
