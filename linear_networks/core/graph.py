"""Graph protocol: build-time descriptors and their initialised states."""

from __future__ import annotations

import abc
from typing import Any, Optional, Protocol, Tuple

import numpy as np

from .params import Parameters
from .types import Array


class CostFunction(Protocol):
    """Anything exposing a scalar cost and its derivative w.r.t. the output."""

    def cost(self, output: Array, expected: Array) -> float:
        ...

    def diff(self, output: Array, expected: Array) -> Array:
        ...


class Graph(abc.ABC):
    """Immutable description of how to build a stage.

    Descriptors know their output shape without touching randomness, which is
    what lets a composition hand the declared output of one stage to the next
    as its input shape.
    """

    @abc.abstractmethod
    def get_output_shape(self) -> Any:
        """Return the output shape produced by this stage."""

    @abc.abstractmethod
    def check_input_shape(self, input_shape: Any) -> Any:
        """Validate ``input_shape`` and return the resulting output shape.

        Raises :class:`~linear_networks.core.types.ConfigurationError` for
        structurally incompatible inputs.
        """

    @abc.abstractmethod
    def _init(self, rng: np.random.Generator, input_shape: Any) -> "GraphState":
        ...

    def init_with_random(self, rng: np.random.Generator, input_shape: Any) -> "GraphState":
        """Allocate the trainable state, drawing every parameter from ``rng``.

        The whole descriptor tree is validated first, so a configuration
        error never consumes random numbers or allocates parameters.
        """

        self.check_input_shape(input_shape)
        return self._init(rng, input_shape)

    def input_shape(self, input_shape: Any, seed: Optional[int] = None) -> "GraphState":
        return self.init_with_random(np.random.default_rng(seed), input_shape)


class GraphState(Parameters):
    """Initialised, trainable form of a :class:`Graph`."""

    @abc.abstractmethod
    def exec(self, input: Array) -> Array:
        """Run inference."""

    @abc.abstractmethod
    def forward(self, input: Array) -> Tuple[Any, Array]:
        """Return ``(cache, output)``; ``cache`` feeds the paired :meth:`back`."""

    @abc.abstractmethod
    def back(self, cache: Any, d_output: Array) -> Tuple[Array, "GraphState"]:
        """Return ``(d_input, grads)`` where ``grads`` mirrors this state."""

    def get_grads(
        self, input: Array, expected: Array, cost: CostFunction
    ) -> Tuple["GraphState", float]:
        cache, output = self.forward(input)
        d_output = cost.diff(output, expected)
        _, grads = self.back(cache, d_output)
        return grads, cost.cost(output, expected)


__all__ = ["CostFunction", "Graph", "GraphState"]
