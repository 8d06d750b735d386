"""Mini-batch training loop with dropout and weight regularisation."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Mapping, Optional, Sequence, Tuple, Union

import numpy as np

from ..core.graph import GraphState
from ..core.network import state_dict
from ..core.types import Array, Batch, ConfigurationError
from .dropout import Dropout
from .losses import REGISTRY as LOSS_REGISTRY
from .losses import Loss
from .metrics import check_metrics, compute_metrics
from .optimisers import Optimiser
from .regularisation import Regularisation

logger = logging.getLogger(__name__)


def gather_batch(inputs: Array, expected: Array, indices: Sequence[int]) -> Batch:
    """Copy the selected examples (batch axis first) into contiguous arrays."""

    idx = np.asarray(indices, dtype=np.intp)
    return Batch(
        inputs=np.take(inputs, idx, axis=0),
        targets=np.take(expected, idx, axis=0),
    )


def check_dataset(inputs: Array, expected: Array, batch_size: int) -> int:
    """Validate a dataset/batch-size pair and return the number of examples."""

    if inputs.ndim < 1 or expected.ndim < 1:
        raise ConfigurationError("inputs and expected outputs need a leading batch axis")
    total = inputs.shape[0]
    if expected.shape[0] != total:
        raise ConfigurationError(
            f"inputs hold {total} examples but expected outputs hold {expected.shape[0]}"
        )
    if total == 0:
        raise ConfigurationError("cannot train on an empty dataset")
    if isinstance(batch_size, bool) or not isinstance(batch_size, (int, np.integer)):
        raise ConfigurationError(f"batch_size must be an integer, got {batch_size!r}")
    if not 1 <= batch_size <= total:
        raise ConfigurationError(
            f"batch_size must lie in [1, {total}] for this dataset, got {batch_size}"
        )
    return total


class Train:
    """Own a graph state and its optimiser, and step them batch by batch."""

    def __init__(
        self,
        graph: GraphState,
        optimiser: Optimiser,
        cost: Union[str, Loss] = "mse",
        *,
        regularisation: Optional[Regularisation] = None,
        dropout: Union[float, Dropout] = 0.0,
        rng: Optional[np.random.Generator] = None,
        seed: Optional[int] = None,
        callbacks: Sequence[object] | None = None,
    ) -> None:
        self.graph = graph
        self.optimiser = optimiser
        self.cost = LOSS_REGISTRY.resolve(cost)
        self.regularisation = regularisation
        self.dropout = dropout if isinstance(dropout, Dropout) else Dropout(float(dropout))
        self.rng = rng if rng is not None else np.random.default_rng(seed)
        self.callbacks = list(callbacks or [])
        self.steps = 0

    def exec(self, input: Array) -> Array:
        return self.graph.exec(input)

    def get_grads(self, input: Array, expected: Array) -> Tuple[GraphState, float]:
        return self.graph.get_grads(input, expected, self.cost)

    def train(self, input: Array, expected: Array) -> float:
        """One optimisation step on a single batch; returns the batch cost."""

        if self.dropout.enabled:
            mask = self.dropout.mask(self.graph, self.rng)
            masked = self.graph.copy()
            self.dropout.apply(masked, mask)
            grads, cost = masked.get_grads(input, expected, self.cost)
            self.dropout.apply(grads, mask)
        else:
            grads, cost = self.get_grads(input, expected)

        if self.regularisation is not None:
            cost += self.regularisation.apply(grads, self.graph)

        self.optimiser.optimise(self.graph, grads)
        self.steps += 1
        self._emit_step(self.steps, {"cost": cost})
        return cost

    def train_batch(self, inputs: Array, expected: Array, indices: Sequence[int]) -> float:
        batch = gather_batch(inputs, expected, indices)
        return self.train(batch.inputs, batch.targets)

    def perform_epoch(self, inputs: Array, expected: Array, batch_size: int) -> float:
        """Shuffle once, train every batch, return the mean batch cost.

        A trailing remainder smaller than ``batch_size`` is trained as its own
        smaller batch.
        """

        total = check_dataset(inputs, expected, batch_size)
        order = self.rng.permutation(total)
        costs = [
            self.train_batch(inputs, expected, order[start : start + batch_size])
            for start in range(0, total, batch_size)
        ]
        return float(sum(costs) / len(costs))

    def run(
        self,
        inputs: Array,
        expected: Array,
        *,
        epochs: int,
        batch_size: int,
        metric_names: Sequence[str] = (),
        task_type: str = "regression",
    ) -> List[float]:
        check_dataset(inputs, expected, batch_size)
        if epochs < 0:
            raise ConfigurationError(f"epochs must be non-negative, got {epochs}")
        check_metrics(metric_names, task_type)

        history: List[float] = []
        for epoch in range(1, epochs + 1):
            cost = self.perform_epoch(inputs, expected, batch_size)
            history.append(cost)
            metrics = {"cost": cost}
            if metric_names:
                metrics.update(
                    compute_metrics(
                        metric_names, self.graph.exec(inputs), expected, task_type=task_type
                    )
                )
            logger.debug("epoch %d: %s", epoch, metrics)
            self._emit_epoch(epoch, metrics)
        return history

    def save_checkpoint(self, path: str | Path) -> Path:
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with path.open("wb") as handle:
            np.savez_compressed(handle, **state_dict(self.graph))
        return path

    # ------------------------------------------------------------------
    # Internal helpers

    def _emit_step(self, step: int, metrics: Mapping[str, float]) -> None:
        for callback in self.callbacks:
            if hasattr(callback, "on_step"):
                callback.on_step(step, metrics)  # type: ignore[attr-defined]

    def _emit_epoch(self, epoch: int, metrics: Mapping[str, float]) -> None:
        for callback in self.callbacks:
            if hasattr(callback, "on_epoch"):
                callback.on_epoch(epoch, metrics)  # type: ignore[attr-defined]
            elif callable(callback):
                callback(epoch, metrics)


__all__ = ["Train", "gather_batch", "check_dataset"]
