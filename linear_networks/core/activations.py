"""Pointwise activations and the wrapper that attaches them to a stage."""

from __future__ import annotations

import abc
from dataclasses import dataclass
from typing import Any, ClassVar, Dict, Iterator, Tuple, Type

import numpy as np

from .graph import Graph, GraphState
from .params import Shape
from .types import Array


class Activation(abc.ABC):
    """Stateless elementwise nonlinearity."""

    name: ClassVar[str]

    @abc.abstractmethod
    def exec(self, input: Array) -> Array:
        ...

    def forward(self, input: Array) -> Tuple[Any, Array]:
        output = self.exec(input)
        return output, output

    @abc.abstractmethod
    def back(self, cache: Any, d_output: Array) -> Array:
        """Multiply the local derivative into ``d_output``."""


@dataclass(frozen=True)
class Identity(Activation):
    name: ClassVar[str] = "identity"

    def exec(self, input: Array) -> Array:
        return input

    def forward(self, input: Array) -> Tuple[Any, Array]:
        return None, input

    def back(self, cache: Any, d_output: Array) -> Array:
        return d_output


@dataclass(frozen=True)
class Relu(Activation):
    name: ClassVar[str] = "relu"

    def exec(self, input: Array) -> Array:
        return np.maximum(input, 0.0)

    def forward(self, input: Array) -> Tuple[Any, Array]:
        output = self.exec(input)
        return (input, output), output

    def back(self, cache: Any, d_output: Array) -> Array:
        input, output = cache
        # y / x is 1 above zero and 0 below; x == 0 contributes nothing
        ratio = np.divide(output, input, out=np.zeros_like(output), where=input != 0)
        return d_output * ratio


@dataclass(frozen=True)
class Sigmoid(Activation):
    name: ClassVar[str] = "sigmoid"

    def exec(self, input: Array) -> Array:
        return 1.0 / (1.0 + np.exp(-input))

    def back(self, cache: Any, d_output: Array) -> Array:
        output = cache
        return d_output * output * (1.0 - output)


@dataclass(frozen=True)
class Softmax(Activation):
    """Normalised exponentials over the last (activation) axis."""

    name: ClassVar[str] = "softmax"

    def exec(self, input: Array) -> Array:
        return self.forward(input)[1]

    def forward(self, input: Array) -> Tuple[Any, Array]:
        y = np.exp(input)
        s = y.sum(axis=-1, keepdims=True)
        output = y / s
        return (output, s), output

    def back(self, cache: Any, d_output: Array) -> Array:
        output, s = cache
        return d_output * (output - 1.0 / s**2)


@dataclass(frozen=True)
class Tanh(Activation):
    name: ClassVar[str] = "tanh"

    def exec(self, input: Array) -> Array:
        return np.tanh(input)

    def forward(self, input: Array) -> Tuple[Any, Array]:
        return input, self.exec(input)

    def back(self, cache: Any, d_output: Array) -> Array:
        # d/dx tanh = sech^2
        return d_output / np.cosh(cache) ** 2


ACTIVATIONS: Dict[str, Type[Activation]] = {
    cls.name: cls for cls in (Identity, Relu, Sigmoid, Softmax, Tanh)
}


def get_activation(name: str) -> Activation:
    try:
        return ACTIVATIONS[name.lower()]()
    except KeyError as exc:
        available = ", ".join(sorted(ACTIVATIONS))
        raise KeyError(f"Unknown activation {name!r}. Available activations: {available}") from exc


@dataclass(frozen=True)
class Linear(Graph):
    """``graph`` followed by the pointwise ``activation``."""

    graph: Graph
    activation: Activation

    def get_output_shape(self) -> Any:
        return self.graph.get_output_shape()

    def check_input_shape(self, input_shape: Any) -> Any:
        return self.graph.check_input_shape(input_shape)

    def _init(self, rng: np.random.Generator, input_shape: Any) -> "LinearState":
        return LinearState(self.graph._init(rng, input_shape), self.activation)


@dataclass(frozen=True)
class LinearShape(Shape):
    inner: Shape
    activation: Activation

    @property
    def size(self) -> int:
        return self.inner.size

    def take(self, values: Iterator[float]) -> "LinearState":
        return LinearState(self.inner.take(values), self.activation)

    def full(self, value: float) -> "LinearState":
        return LinearState(self.inner.full(value), self.activation)


@dataclass(eq=False)
class LinearState(GraphState):
    inner: GraphState
    activation: Activation

    def parameters(self) -> Iterator[Array]:
        yield from self.inner.parameters()

    def shape(self) -> LinearShape:
        return LinearShape(self.inner.shape(), self.activation)

    def map(self, f) -> "LinearState":
        return LinearState(self.inner.map(f), self.activation)

    def exec(self, input: Array) -> Array:
        return self.activation.exec(self.inner.exec(input))

    def forward(self, input: Array) -> Tuple[Any, Array]:
        inner_cache, hidden = self.inner.forward(input)
        act_cache, output = self.activation.forward(hidden)
        return (inner_cache, act_cache), output

    def back(self, cache: Any, d_output: Array) -> Tuple[Array, "LinearState"]:
        inner_cache, act_cache = cache
        d_hidden = self.activation.back(act_cache, d_output)
        d_input, grads = self.inner.back(inner_cache, d_hidden)
        return d_input, LinearState(grads, self.activation)


__all__ = [
    "Activation",
    "Identity",
    "Relu",
    "Sigmoid",
    "Softmax",
    "Tanh",
    "ACTIVATIONS",
    "get_activation",
    "Linear",
    "LinearShape",
    "LinearState",
]
