"""Weight penalties added to the gradient and the cost."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping, Optional

import numpy as np

from ..core.params import Parameters
from ..core.types import ConfigurationError


@dataclass(frozen=True)
class Regularisation:
    """``l1 * |x| + l2 * x^2`` penalty over every parameter.

    Either coefficient may be zero; :meth:`L1`, :meth:`L2` and :meth:`L1L2`
    build the three usual variants.
    """

    l1: float = 0.0
    l2: float = 0.0

    def __post_init__(self) -> None:
        if self.l1 < 0 or self.l2 < 0:
            raise ConfigurationError(
                f"regularisation coefficients must be non-negative, got l1={self.l1}, l2={self.l2}"
            )

    @classmethod
    def L1(cls, coefficient: float) -> "Regularisation":
        return cls(l1=coefficient)

    @classmethod
    def L2(cls, coefficient: float) -> "Regularisation":
        return cls(l2=coefficient)

    @classmethod
    def L1L2(cls, l1: float, l2: float) -> "Regularisation":
        return cls(l1=l1, l2=l2)

    @property
    def kind(self) -> str:
        if self.l1 and self.l2:
            return "l1_l2"
        return "l1" if self.l1 else "l2"

    def apply(self, grads: Parameters, graph: Parameters) -> float:
        """Add the penalty gradient into ``grads`` and return the penalty cost."""

        l1, l2 = self.l1, self.l2
        cost = 0.0

        def _penalise(g, x):
            nonlocal cost
            cost += float(l1 * np.sum(np.abs(x)) + l2 * np.sum(x * x))
            return g + l1 * np.sign(x) + l2 * 2.0 * x

        grads.map_mut_with(graph, _penalise)
        return cost


def from_config(config: Optional[Mapping[str, object]]) -> Optional[Regularisation]:
    if not config:
        return None
    kind = str(config.get("kind", "l2")).lower()
    if kind == "l1":
        return Regularisation.L1(float(config["coefficient"]))
    if kind == "l2":
        return Regularisation.L2(float(config["coefficient"]))
    if kind in {"l1_l2", "l1l2"}:
        return Regularisation.L1L2(float(config["l1"]), float(config["l2"]))
    raise ConfigurationError(f"Unknown regularisation kind: {kind}")


__all__ = ["Regularisation", "from_config"]
