"""Affine (dense) leaf: ``output = input . w^T + b``."""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field
from typing import Iterator, Tuple

import numpy as np

from .activations import Activation, Linear
from .array import batch_count, compact_front, dot_front, dot_inner
from .graph import Graph, GraphState
from .initialisers import Initialiser, Xavier
from .params import Shape, take_array
from .types import Array, ConfigurationError


def _is_size(value: object) -> bool:
    return isinstance(value, (int, np.integer)) and not isinstance(value, bool) and value > 0


@dataclass(frozen=True)
class Dense(Graph):
    """Fully connected layer producing ``output_size`` features."""

    output_size: int
    initialiser: Initialiser = Xavier()
    dtype: str = "float64"

    def __post_init__(self) -> None:
        if not _is_size(self.output_size):
            raise ConfigurationError(
                f"Dense output_size must be a positive integer, got {self.output_size!r}"
            )

    def with_initialiser(self, initialiser: Initialiser) -> "Dense":
        return dataclasses.replace(self, initialiser=initialiser)

    def with_activation(self, activation: Activation) -> Linear:
        return Linear(self, activation)

    def get_output_shape(self) -> int:
        return self.output_size

    def check_input_shape(self, input_size: object) -> int:
        if not _is_size(input_size):
            raise ConfigurationError(
                f"Dense layer expects a positive integer input size, got {input_size!r}"
            )
        return self.output_size

    def _init(self, rng: np.random.Generator, input_size: int) -> "DenseState":
        dist = self.initialiser.distribution((int(input_size), self.output_size))
        w = dist.sample(rng, (self.output_size, int(input_size))).astype(self.dtype)
        b = dist.sample(rng, (self.output_size,)).astype(self.dtype)
        return DenseState(w=w, b=b)


@dataclass(frozen=True)
class DenseShape(Shape):
    outputs: int
    inputs: int
    dtype: str = field(default="float64", compare=False)

    @property
    def size(self) -> int:
        return self.outputs * (self.inputs + 1)

    def take(self, values: Iterator[float]) -> "DenseState":
        w = take_array(values, (self.outputs, self.inputs), self.dtype)
        b = take_array(values, (self.outputs,), self.dtype)
        return DenseState(w=w, b=b)

    def full(self, value: float) -> "DenseState":
        return DenseState(
            w=np.full((self.outputs, self.inputs), value, dtype=self.dtype),
            b=np.full(self.outputs, value, dtype=self.dtype),
        )


@dataclass(eq=False)
class DenseState(GraphState):
    """Weights ``w`` (outputs x inputs) and bias ``b`` (outputs)."""

    w: Array
    b: Array

    def parameters(self) -> Iterator[Array]:
        yield self.w
        yield self.b

    def shape(self) -> DenseShape:
        outputs, inputs = self.w.shape
        return DenseShape(outputs=outputs, inputs=inputs, dtype=self.w.dtype.name)

    def map(self, f) -> "DenseState":
        return DenseState(w=np.asarray(f(self.w)), b=np.asarray(f(self.b)))

    def exec(self, input: Array) -> Array:
        return dot_inner(input, self.w.T) + self.b

    def forward(self, input: Array) -> Tuple[Array, Array]:
        return input, self.exec(input)

    def back(self, input: Array, d_output: Array) -> Tuple[Array, "DenseState"]:
        d_input = dot_inner(d_output, self.w)
        # batch mean, so the step size does not depend on the batch size
        n = batch_count(d_output)
        dw = dot_front(d_output, input) / n
        db = compact_front(d_output).mean(axis=0)
        return d_input, DenseState(w=dw, b=db)


__all__ = ["Dense", "DenseShape", "DenseState"]
