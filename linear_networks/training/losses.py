"""Cost registry used by the training loop.

Every cost exposes a scalar ``cost`` and ``diff``, its derivative with
respect to the network output. Batched costs are averaged over the leading
(batch) axes and summed over the feature axis; ``diff`` is per example and
left unscaled, since dense leaves already average their weight gradients over
the batch.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Dict, Iterable

import numpy as np

from ..core.array import batch_count
from ..core.types import Array

CostFn = Callable[[Array, Array], float]
DiffFn = Callable[[Array, Array], Array]


@dataclass(frozen=True)
class Loss:
    """Cost wrapper returning both the scalar cost and dC/dy."""

    name: str
    cost_fn: CostFn
    diff_fn: DiffFn

    def cost(self, output: Array, expected: Array) -> float:
        return self.cost_fn(output, expected)

    def diff(self, output: Array, expected: Array) -> Array:
        return self.diff_fn(output, expected)

    def __call__(self, output: Array, expected: Array) -> tuple[float, Array]:
        return self.cost(output, expected), self.diff(output, expected)


class LossRegistry:
    """Central registry for cost functions."""

    def __init__(self) -> None:
        self._registry: Dict[str, Loss] = {}

    def register(self, name: str, cost_fn: CostFn, diff_fn: DiffFn) -> None:
        self._registry[name] = Loss(name, cost_fn, diff_fn)

    def names(self) -> Iterable[str]:
        return sorted(self._registry)

    def get(self, name: str) -> Loss:
        if name not in self._registry:
            available = ", ".join(sorted(self._registry))
            raise KeyError(f"Unknown cost {name!r}. Available costs: {available}")
        return self._registry[name]

    def resolve(self, cost: "str | Loss") -> Loss:
        if isinstance(cost, Loss):
            return cost
        return self.get(str(cost).lower())


REGISTRY = LossRegistry()


def _mse_cost(output: Array, expected: Array) -> float:
    """Sum of squares per example, averaged over examples; a lone vector is one example."""
    diff = output - expected
    return float(np.sum(diff * diff) / batch_count(diff))


def _mse_diff(output: Array, expected: Array) -> Array:
    return (output - expected) * 2.0


def _mae_cost(output: Array, expected: Array) -> float:
    diff = output - expected
    return float(np.sum(np.abs(diff)) / batch_count(diff))


def _mae_diff(output: Array, expected: Array) -> Array:
    return np.sign(output - expected)


_CE_EPS = 1e-12


def _ce_cost(output: Array, expected: Array) -> float:
    # ``output`` holds probabilities, e.g. from a softmax or sigmoid leaf
    return float(-np.sum(expected * np.log(output + _CE_EPS)) / batch_count(output))


def _ce_diff(output: Array, expected: Array) -> Array:
    return -expected / (output + _CE_EPS)


REGISTRY.register("mse", _mse_cost, _mse_diff)
REGISTRY.register("mae", _mae_cost, _mae_diff)
REGISTRY.register("ce", _ce_cost, _ce_diff)

MSE = REGISTRY.get("mse")

__all__ = ["Loss", "LossRegistry", "REGISTRY", "MSE"]
