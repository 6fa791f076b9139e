"""Outbound payloads: everything that may leave the process goes through here.

Builders call the session's privacy gate exactly once per distribution they
carry and coarsen absolute counts. Payload constructors reject distributions
that did not come out of the gate.
"""

from __future__ import annotations

import json
from dataclasses import dataclass

from .errors import PrivacyError
from .labels import Label
from .privacy import PrivacyNoiser, PrivateDistribution, coarsen_count
from .scoring import engagement_score
from .session import TrackingSession
from .timeline import MoodSnapshot


def _require_private(distribution) -> None:
    if not isinstance(distribution, PrivateDistribution):
        raise PrivacyError("outbound distribution was not privatized")


@dataclass(frozen=True)
class PrivateSnapshot:
    """Timeline entry with its distribution passed through the gate."""

    elapsed_seconds: int
    label: str
    distribution: PrivateDistribution

    def __post_init__(self) -> None:
        _require_private(self.distribution)

    def to_dict(self) -> dict:
        return {
            "timestamp": self.elapsed_seconds,
            "label": self.label,
            **self.distribution.to_dict(),
        }


@dataclass(frozen=True)
class SessionSummary:
    """End-of-session report for the sessions endpoint."""

    total_detections: int  # coarsened
    dominant_mood: Label | None
    emotion_percentages: PrivateDistribution
    timeline: tuple[PrivateSnapshot, ...]
    engagement_score: int

    def __post_init__(self) -> None:
        _require_private(self.emotion_percentages)

    def to_dict(self) -> dict:
        return {
            "totalDetections": self.total_detections,
            "dominantMood": self.dominant_mood.value if self.dominant_mood else None,
            "emotionPercentages": self.emotion_percentages.to_dict(),
            "timelineData": [s.to_dict() for s in self.timeline],
            "engagementScore": self.engagement_score,
        }

    def to_json(self) -> str:
        return json.dumps(self.to_dict())


@dataclass(frozen=True)
class ChatContext:
    """Event summary handed to the chat analyst as context."""

    total_detections: int  # coarsened
    dominant_mood: Label | None
    emotion_percentages: PrivateDistribution

    def __post_init__(self) -> None:
        _require_private(self.emotion_percentages)

    def to_dict(self) -> dict:
        return {
            "totalDetections": self.total_detections,
            "dominantMood": self.dominant_mood.value if self.dominant_mood else None,
            "emotionPercentages": self.emotion_percentages.to_dict(),
        }

    def to_json(self) -> str:
        return json.dumps(self.to_dict())


def _privatize(session: TrackingSession, noiser: PrivacyNoiser | None, distribution):
    if noiser is not None:
        return noiser.privatize(distribution)
    return session.privatize(distribution)


def _private_snapshot(
    session: TrackingSession, noiser: PrivacyNoiser | None, snapshot: MoodSnapshot
) -> PrivateSnapshot:
    return PrivateSnapshot(
        elapsed_seconds=snapshot.elapsed_seconds,
        label=snapshot.label,
        distribution=_privatize(session, noiser, snapshot.distribution),
    )


def build_session_summary(
    session: TrackingSession, noiser: PrivacyNoiser | None = None
) -> SessionSummary:
    """Privatized summary of a session; uses the session's own noiser by default."""
    percentages = _privatize(session, noiser, session.distribution())
    return SessionSummary(
        total_detections=coarsen_count(session.total_detections()),
        dominant_mood=session.dominant_label(),
        emotion_percentages=percentages,
        timeline=tuple(_private_snapshot(session, noiser, s) for s in session.timeline()),
        engagement_score=engagement_score(percentages),
    )


def build_chat_context(
    session: TrackingSession, noiser: PrivacyNoiser | None = None
) -> ChatContext:
    """Privatized chat context. Each call noises afresh: one call per outbound message."""
    return ChatContext(
        total_detections=coarsen_count(session.total_detections()),
        dominant_mood=session.dominant_label(),
        emotion_percentages=_privatize(session, noiser, session.distribution()),
    )
