"""Weight initialisers for dense leaves."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol, Tuple

import numpy as np

from .types import Array


class Distribution(Protocol):
    def sample(self, rng: np.random.Generator, size: Tuple[int, ...]) -> Array:
        ...


class Initialiser(Protocol):
    """Maps a ``(inputs, outputs)`` weight shape to a sampling distribution."""

    name: str

    def distribution(self, shape: Tuple[int, int]) -> Distribution:
        ...


@dataclass(frozen=True)
class Normal:
    mean: float
    std: float

    def sample(self, rng: np.random.Generator, size: Tuple[int, ...]) -> Array:
        return rng.normal(self.mean, self.std, size=size)


@dataclass(frozen=True)
class Fixed:
    value: float

    def sample(self, rng: np.random.Generator, size: Tuple[int, ...]) -> Array:
        return np.full(size, self.value, dtype=np.float64)


@dataclass(frozen=True)
class Xavier:
    """Glorot-style normal draws with variance ``1 / inputs``."""

    name: str = "xavier"

    def distribution(self, shape: Tuple[int, int]) -> Distribution:
        inputs, _ = shape
        return Normal(0.0, float(np.sqrt(1.0 / inputs)))


@dataclass(frozen=True)
class Constant:
    """Fill every weight and bias with ``value``; useful for fixtures."""

    value: float = 0.0
    name: str = "constant"

    def distribution(self, shape: Tuple[int, int]) -> Distribution:
        return Fixed(self.value)


INITIALISERS = {"xavier": Xavier, "constant": Constant}

__all__ = ["Distribution", "Initialiser", "Normal", "Fixed", "Xavier", "Constant", "INITIALISERS"]
