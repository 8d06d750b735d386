"""Pairwise composition of stages and helpers over composed networks."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Iterator, List, Mapping, Tuple

import numpy as np

from .activations import LinearState
from .dense import DenseState
from .graph import Graph, GraphState
from .params import Shape
from .types import Array, ConfigurationError, LayerDescription


@dataclass(frozen=True)
class Compose(Graph):
    """``first`` then ``second``; ``second`` receives ``first``'s declared output."""

    first: Graph
    second: Graph

    def get_output_shape(self) -> Any:
        return self.second.get_output_shape()

    def check_input_shape(self, input_shape: Any) -> Any:
        hidden = self.first.check_input_shape(input_shape)
        declared = self.first.get_output_shape()
        if hidden != declared:
            raise ConfigurationError(
                f"Stage declares output {declared!r} but produces {hidden!r}"
            )
        return self.second.check_input_shape(declared)

    def _init(self, rng: np.random.Generator, input_shape: Any) -> "ComposeState":
        first = self.first._init(rng, input_shape)
        second = self.second._init(rng, self.first.get_output_shape())
        return ComposeState(first, second)


@dataclass(frozen=True)
class PairShape(Shape):
    first: Shape
    second: Shape

    @property
    def size(self) -> int:
        return self.first.size + self.second.size

    def take(self, values: Iterator[float]) -> "ComposeState":
        first = self.first.take(values)
        return ComposeState(first, self.second.take(values))

    def full(self, value: float) -> "ComposeState":
        return ComposeState(self.first.full(value), self.second.full(value))


@dataclass(eq=False)
class ComposeState(GraphState):
    first: GraphState
    second: GraphState

    def parameters(self) -> Iterator[Array]:
        yield from self.first.parameters()
        yield from self.second.parameters()

    def shape(self) -> PairShape:
        return PairShape(self.first.shape(), self.second.shape())

    def map(self, f) -> "ComposeState":
        return ComposeState(self.first.map(f), self.second.map(f))

    def exec(self, input: Array) -> Array:
        return self.second.exec(self.first.exec(input))

    def forward(self, input: Array) -> Tuple[Any, Array]:
        first_cache, hidden = self.first.forward(input)
        second_cache, output = self.second.forward(hidden)
        return (first_cache, second_cache), output

    def back(self, cache: Any, d_output: Array) -> Tuple[Array, "ComposeState"]:
        first_cache, second_cache = cache
        d_hidden, second_grads = self.second.back(second_cache, d_output)
        d_input, first_grads = self.first.back(first_cache, d_hidden)
        return d_input, ComposeState(first_grads, second_grads)


def net(*stages: Graph) -> Graph:
    """Fold ``stages`` into nested :class:`Compose` pairs.

    Adjacent stages are paired level by level. With an odd count the first
    item is carried up unchanged, so ``net(a, b, c, d, e, f, g)`` builds
    ``((a, (b, c)), ((d, e), (f, g)))``. Execution order is always the
    argument order.
    """

    if not stages:
        raise ConfigurationError("net() requires at least one stage")
    items: List[Graph] = list(stages)
    while len(items) > 1:
        head = items[:1] if len(items) % 2 else []
        rest = items[len(head):]
        items = head + [Compose(rest[i], rest[i + 1]) for i in range(0, len(rest), 2)]
    return items[0]


def _dense_leaves(state: GraphState, activation: str = "identity") -> Iterator[Tuple[DenseState, str]]:
    if isinstance(state, DenseState):
        yield state, activation
    elif isinstance(state, LinearState):
        yield from _dense_leaves(state.inner, state.activation.name)
    elif isinstance(state, ComposeState):
        yield from _dense_leaves(state.first)
        yield from _dense_leaves(state.second)
    else:
        raise TypeError(f"Unsupported graph state: {type(state).__name__}")


def dense_layers(state: GraphState) -> List[DenseState]:
    """Dense leaves of ``state`` in traversal order."""

    return [leaf for leaf, _ in _dense_leaves(state)]


def describe(state: GraphState) -> List[LayerDescription]:
    return [
        LayerDescription(inputs=leaf.w.shape[1], outputs=leaf.w.shape[0], activation=act)
        for leaf, act in _dense_leaves(state)
    ]


def state_dict(state: GraphState) -> Dict[str, Array]:
    """Map each dense leaf to ``layer{i}/weights`` and ``layer{i}/bias``."""

    out: Dict[str, Array] = {}
    for idx, leaf in enumerate(dense_layers(state)):
        out[f"layer{idx}/weights"] = leaf.w.copy()
        out[f"layer{idx}/bias"] = leaf.b.copy()
    return out


def load_state_dict(state: GraphState, values: Mapping[str, Array]) -> None:
    for idx, leaf in enumerate(dense_layers(state)):
        for name, param in (("weights", leaf.w), ("bias", leaf.b)):
            key = f"layer{idx}/{name}"
            if key not in values:
                raise KeyError(f"Missing {key} in state dict")
            value = np.asarray(values[key])
            if value.shape != param.shape:
                raise ConfigurationError(
                    f"{key} has shape {value.shape}, expected {param.shape}"
                )
            param[...] = value


__all__ = [
    "Compose",
    "ComposeState",
    "PairShape",
    "net",
    "dense_layers",
    "describe",
    "state_dict",
    "load_state_dict",
]
