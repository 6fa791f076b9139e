"""Privacy gate: Laplace noise on every distribution that leaves the process.

Each percentage gets ``round(clamp(p + Laplace(b), 0, 100))`` with
``b = 1 / epsilon``. Smaller epsilon means more noise and stronger privacy.
Noised distributions are returned as ``PrivateDistribution`` so the gate can
refuse to noise the same data twice and payload builders can refuse data
that never went through it.

This approximates differential privacy; it is not a certified mechanism.
"""

from __future__ import annotations

import math
from collections.abc import Mapping
from typing import Iterator

import numpy as np

from . import config
from .errors import ConfigError, PrivacyError
from .labels import LABELS, Label
from .rounding import clamp, round_half_up


def validate_epsilon(epsilon: float) -> float:
    if isinstance(epsilon, bool) or not isinstance(epsilon, (int, float)):
        raise ConfigError(f"epsilon must be a number, got {epsilon!r}")
    if not (epsilon > 0 and math.isfinite(epsilon)):
        raise ConfigError(f"epsilon must be in (0, inf), got {epsilon!r}")
    return float(epsilon)


def laplace_sample(scale: float, u: float) -> float:
    """Inverse-CDF Laplace draw for ``u`` uniform on (-0.5, 0.5)."""
    if u == 0.0 or scale == 0.0:
        return 0.0
    return -scale * math.copysign(1.0, u) * math.log(1.0 - 2.0 * abs(u))


def coarsen_count(count: int, step: int = config.COUNT_COARSENING) -> int:
    """Round an absolute count to the nearest ``step`` before it leaves the process."""
    if step <= 1:
        return int(count)
    return int(round_half_up(count / step)) * step


class PrivateDistribution(Mapping):
    """Read-only, already-noised percentage distribution (integer values)."""

    def __init__(self, values: Mapping[Label, int], epsilon: float) -> None:
        self._values = {label: int(values.get(label, 0)) for label in LABELS}
        self.epsilon = epsilon

    def __getitem__(self, key: Label | str) -> int:
        try:
            return self._values[Label(key)]
        except ValueError:
            raise KeyError(key) from None

    def __iter__(self) -> Iterator[Label]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __repr__(self) -> str:
        inner = ", ".join(f"{k.value}: {v}" for k, v in self._values.items())
        return f"PrivateDistribution({{{inner}}}, epsilon={self.epsilon})"

    def to_dict(self) -> dict[str, int]:
        return {label.value: value for label, value in self._values.items()}


class PrivacyNoiser:
    """Laplace mechanism bound to one session's random source.

    Pass ``seed`` only in tests; production sessions draw fresh entropy.
    """

    def __init__(
        self,
        epsilon: float = config.PRIVACY_EPSILON,
        seed: int | None = None,
        rng: np.random.Generator | None = None,
    ) -> None:
        self.epsilon = validate_epsilon(epsilon)
        self._rng = rng if rng is not None else np.random.default_rng(seed)

    def _uniform(self) -> float:
        # numpy's uniform is [low, high); -0.5 would give log(0)
        while True:
            u = float(self._rng.uniform(-0.5, 0.5))
            if abs(u) < 0.5:
                return u

    def privatize(
        self,
        distribution: Mapping[Label | str, float],
        epsilon: float | None = None,
    ) -> PrivateDistribution:
        """Noise every label's percentage once; missing labels count as 0."""
        if isinstance(distribution, PrivateDistribution):
            raise PrivacyError("distribution is already privatized")
        eps = self.epsilon if epsilon is None else validate_epsilon(epsilon)
        scale = 1.0 / eps

        values: dict[Label, float] = {label: 0.0 for label in LABELS}
        for key, pct in distribution.items():
            try:
                label = Label(key)
            except ValueError:
                continue
            if pct is not None and math.isfinite(pct):
                values[label] = float(pct)

        noised = {
            label: int(round_half_up(
                clamp(value + laplace_sample(scale, self._uniform()), 0.0, 100.0)
            ))
            for label, value in values.items()
        }
        return PrivateDistribution(noised, epsilon=eps)


def privatize(
    distribution: Mapping[Label | str, float],
    epsilon: float = config.PRIVACY_EPSILON,
    rng: np.random.Generator | None = None,
) -> PrivateDistribution:
    """One-off privatization with a fresh (or supplied) random source."""
    return PrivacyNoiser(epsilon=epsilon, rng=rng).privatize(distribution)
