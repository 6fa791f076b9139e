"""Temporal smoothing of the group expression vector (exponential moving average)."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Mapping

from . import config
from .errors import ConfigError
from .events import EventEmitter, MoodEvent
from .labels import Label, argmax, dense_scores, zeros
from .rounding import clamp


@dataclass
class SmoothedState:
    """Current smoothed mood state."""

    dominant: Label | None = None  # None until the first frame with faces
    scores: dict[Label, float] = field(default_factory=zeros)  # EMA scores, 0-1


def validate_alpha(alpha: float) -> float:
    if isinstance(alpha, bool) or not isinstance(alpha, (int, float)):
        raise ConfigError(f"smoothing factor must be a number, got {alpha!r}")
    if not 0.0 < alpha < 1.0:
        raise ConfigError(f"smoothing factor must be in (0, 1), got {alpha!r}")
    return float(alpha)


class MoodSmoother:
    """EMA over group frame vectors with event emission on mood change.

    ``new = alpha * raw + (1 - alpha) * old`` per label. Lower alpha means
    stronger smoothing, so a single adversarial frame can't flip the mood.
    Frames without faces never reach ``update``; the state does not decay.
    """

    def __init__(
        self,
        event_emitter: EventEmitter | None = None,
        alpha: float = config.EMA_SMOOTHING_FACTOR,
    ) -> None:
        self._emitter = event_emitter
        self._alpha = validate_alpha(alpha)
        self.state = SmoothedState()

    @property
    def alpha(self) -> float:
        return self._alpha

    def update(
        self,
        group_vector: Mapping[Label | str, float],
        elapsed_seconds: float = 0.0,
    ) -> SmoothedState:
        """Feed one group frame vector (0-1 scores) and get the smoothed state back."""
        raw = dense_scores(group_vector)
        old = self.state.scores
        scores = {
            label: clamp(self._alpha * raw[label] + (1.0 - self._alpha) * old[label], 0.0, 1.0)
            for label in raw
        }

        previous = self.state.dominant
        dominant = argmax(scores)
        self.state = SmoothedState(dominant=dominant, scores=scores)

        if dominant != previous and self._emitter is not None:
            self._emitter.emit(
                MoodEvent(
                    elapsed_seconds=elapsed_seconds,
                    dominant=dominant,
                    previous=previous,
                    scores=dict(scores),
                )
            )

        return self.state

    def reset(self) -> None:
        self.state = SmoothedState()
