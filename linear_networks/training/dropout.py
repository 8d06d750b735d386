"""Inverted dropout over graph parameters."""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np

from ..core.params import Parameters
from ..core.types import ConfigurationError


@dataclass(frozen=True)
class Dropout:
    """Zero parameters whose mask draw falls below ``rate``; scale the rest.

    Survivors are scaled by ``1 / (1 - rate)`` so the expected magnitude of
    the masked graph matches the unmasked one.
    """

    rate: float

    def __post_init__(self) -> None:
        if not 0.0 <= self.rate < 1.0:
            raise ConfigurationError(f"dropout rate must lie in [0, 1), got {self.rate}")

    @property
    def enabled(self) -> bool:
        return self.rate > 0.0

    def mask(self, graph: Parameters, rng: np.random.Generator) -> Parameters:
        """Uniform draws laid out exactly like ``graph``."""

        shape = graph.shape()
        return shape.from_iter(rng.uniform(0.0, 1.0, size=shape.size))

    def apply(self, params: Parameters, mask: Parameters) -> None:
        rate = self.rate
        scale = 1.0 / (1.0 - rate)
        params.map_mut_with(mask, lambda p, d: np.where(d < rate, 0.0, p * scale))


__all__ = ["Dropout"]
