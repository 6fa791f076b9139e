"""Expression model adapter: turns a video frame into per-face expression vectors.

Wraps DeepFace. The output is one dense ``{Label: score}`` mapping (0-1) per
detected face and nothing else: no region, no identity. A frame where the
model raises is treated as a frame with no faces.
"""

from __future__ import annotations

from typing import Protocol

import numpy as np

from . import config
from .labels import DEEPFACE_LABEL_MAP, Label, dense_scores


class ExpressionModel(Protocol):
    def load(self) -> None: ...

    def detect(self, frame: np.ndarray) -> list[dict[Label, float]]: ...


def to_expression_vector(emotion_scores: dict[str, float]) -> dict[Label, float]:
    """Map DeepFace's 0-100 emotion scores onto our labels at 0-1."""
    return dense_scores(
        {
            label: emotion_scores.get(key, 0.0) / 100.0
            for label, key in DEEPFACE_LABEL_MAP.items()
        }
    )


class DeepFaceExpressionModel:
    """DeepFace-backed expression model, loaded lazily on ``load()``."""

    def __init__(
        self,
        detector_backend: str = config.DETECTOR_BACKEND,
        min_confidence: float = config.MIN_DETECTION_CONFIDENCE,
    ) -> None:
        self._detector_backend = detector_backend
        self._min_confidence = min_confidence
        self._deepface = None  # lazy import

    def load(self) -> None:
        """Import DeepFace (slow; may download weights on first run)."""
        if self._deepface is None:
            print("[DETECTOR] Loading DeepFace emotion model...")
            from deepface import DeepFace
            self._deepface = DeepFace
            print("[DETECTOR] DeepFace loaded")

    def detect(self, frame: np.ndarray) -> list[dict[Label, float]]:
        """Run DeepFace.analyze() on one frame; one vector per confident face."""
        if self._deepface is None:
            self.load()
        try:
            results = self._deepface.analyze(
                img_path=frame,
                actions=config.ACTIONS,
                enforce_detection=config.ENFORCE_DETECTION,
                detector_backend=self._detector_backend,
                silent=True,
            )
        except Exception as e:
            print(f"[DETECTOR] Frame skipped: {e}")
            return []

        if isinstance(results, dict):
            results = [results]

        faces = []
        for face in results or []:
            if face.get("face_confidence", 0.0) < self._min_confidence:
                continue
            faces.append(to_expression_vector(face.get("emotion", {})))
        return faces
