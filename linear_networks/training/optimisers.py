"""Optimisers working purely through the parameter-container protocol."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional, Protocol

import numpy as np

from ..core.params import Parameters, Shape
from ..core.types import ConfigurationError


class Optimiser(Protocol):
    """Mutates ``graph`` in place given cost gradients of the same shape."""

    def optimise(self, graph: Parameters, grads: Parameters) -> None:
        ...


@dataclass
class SGD:
    """Plain gradient descent: ``param -= alpha * grad``."""

    alpha: float = 0.01

    def optimise(self, graph: Parameters, grads: Parameters) -> None:
        alpha = self.alpha
        graph.map_mut_with(grads, lambda theta, g: theta - g * alpha)


@dataclass
class Adam:
    """Adam with bias-corrected first and second raw moments.

    The moment containers are allocated from ``shape`` when given, otherwise
    from the graph on the first step. Either way they must keep mirroring the
    graph they optimise.
    """

    alpha: float = 0.001
    beta1: float = 0.9
    beta2: float = 0.999
    epsilon: float = 1e-8
    shape: Optional[Shape] = None
    m: Optional[Parameters] = field(default=None, init=False, repr=False)
    v: Optional[Parameters] = field(default=None, init=False, repr=False)
    t: int = field(default=0, init=False)

    def __post_init__(self) -> None:
        if self.shape is not None:
            self._allocate(self.shape)

    def _allocate(self, shape: Shape) -> None:
        self.shape = shape
        self.m = shape.zero()
        self.v = shape.zero()

    def optimise(self, graph: Parameters, grads: Parameters) -> None:
        if self.m is None or self.v is None:
            self._allocate(graph.shape())
        elif graph.shape() != self.shape:
            raise ConfigurationError(
                f"Adam moments have shape {self.shape} but the graph has {graph.shape()}"
            )

        self.t += 1
        b1, b2, eps, alpha = self.beta1, self.beta2, self.epsilon, self.alpha

        self.m.map_mut_with(grads, lambda m, g: m * b1 + g * (1.0 - b1))
        self.v.map_mut_with(grads, lambda v, g: v * b2 + g * g * (1.0 - b2))

        m_hat = self.m.map(lambda m: m / (1.0 - b1**self.t))
        v_hat = self.v.map(lambda v: v / (1.0 - b2**self.t))

        m_hat.map_mut_with(v_hat, lambda m, v: m * alpha / (np.sqrt(v) + eps))
        graph.map_mut_with(m_hat, lambda theta, step: theta - step)


OPTIMISERS = {"sgd": SGD, "adam": Adam}

__all__ = ["Optimiser", "SGD", "Adam", "OPTIMISERS"]
