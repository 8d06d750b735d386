"""Parameter-container protocol shared by every graph state.

A graph state is a tree of numpy arrays. Optimisers, regularisers and
dropout never look at the concrete layout; they only use the operations
below, which visit parameter arrays in one fixed order: weights before bias,
the first stage of a composition before the second, row-major inside each
array. ``from_iter`` consumes values in that same order, so a container built
from a flat stream lines up element for element with ``map_mut_with``.
"""

from __future__ import annotations

import abc
import itertools
from typing import Callable, Iterable, Iterator, Tuple

import numpy as np

from .types import Array, ConfigurationError

ElementwiseFn = Callable[[Array], Array]
CombineFn = Callable[[Array, Array], Array]


def take_array(values: Iterator[float], shape: Tuple[int, ...], dtype: str) -> Array:
    """Fill a new array of ``shape`` row-major from ``values``."""

    count = int(np.prod(shape, dtype=np.int64))
    try:
        flat = np.fromiter(itertools.islice(values, count), dtype=dtype, count=count)
    except ValueError as exc:
        raise ConfigurationError(
            f"Ran out of values while filling an array of shape {shape}"
        ) from exc
    return flat.reshape(shape)


class Shape(abc.ABC):
    """Structure of a parameter container without its values."""

    @property
    @abc.abstractmethod
    def size(self) -> int:
        """Total number of scalar parameters."""

    @abc.abstractmethod
    def take(self, values: Iterator[float]) -> "Parameters":
        """Build a container, pulling exactly ``size`` values from ``values``."""

    def full(self, value: float) -> "Parameters":
        return self.take(itertools.repeat(value))

    def zero(self) -> "Parameters":
        return self.full(0.0)

    def one(self) -> "Parameters":
        return self.full(1.0)

    def from_iter(self, values: Iterable[float]) -> "Parameters":
        return self.take(iter(values))


class Parameters(abc.ABC):
    """Elementwise operations over the trainable arrays of a state.

    ``f`` passed to the ``map`` family receives whole arrays and must act
    elementwise (numpy ufuncs, arithmetic, ``np.where``...).
    """

    @abc.abstractmethod
    def parameters(self) -> Iterator[Array]:
        """Yield the parameter arrays in traversal order."""

    @abc.abstractmethod
    def shape(self) -> Shape:
        """Return the structural shape descriptor of this container."""

    @abc.abstractmethod
    def map(self, f: ElementwiseFn) -> "Parameters":
        """Return a new container with ``f`` applied to every element."""

    def map_mut(self, f: ElementwiseFn) -> None:
        for param in self.parameters():
            param[...] = f(param)

    def map_mut_with(self, other: "Parameters", f: CombineFn) -> None:
        if other.shape() != self.shape():
            raise ConfigurationError(
                f"Cannot combine containers of shape {self.shape()} and {other.shape()}"
            )
        for param, rhs in zip(self.parameters(), other.parameters()):
            param[...] = f(param, rhs)

    def copy(self) -> "Parameters":
        return self.map(lambda a: a.copy())

    @classmethod
    def zero(cls, shape: Shape) -> "Parameters":
        return shape.zero()

    @classmethod
    def one(cls, shape: Shape) -> "Parameters":
        return shape.one()

    @classmethod
    def from_iter(cls, shape: Shape, values: Iterable[float]) -> "Parameters":
        return shape.from_iter(values)


__all__ = ["Shape", "Parameters", "ElementwiseFn", "CombineFn", "take_array"]
