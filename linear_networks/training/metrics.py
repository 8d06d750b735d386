"""Evaluation metrics reported next to the epoch cost."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable, Mapping

import numpy as np

from ..core.types import Array, ConfigurationError

TASK_TYPES = ("regression", "multiclass", "binary")
METRICS = ("mae", "rmse", "accuracy")


@dataclass(frozen=True)
class MetricResult:
    name: str
    value: float


def check_metrics(names: Iterable[str], task_type: str = "regression") -> None:
    """Reject unknown metric names and accuracy on a regression task."""

    if task_type not in TASK_TYPES:
        raise ConfigurationError(f"task_type must be one of {TASK_TYPES}, got {task_type!r}")
    for name in names:
        key = str(name).lower()
        if key not in METRICS:
            raise ConfigurationError(
                f"Unknown metric {name!r}. Available metrics: {', '.join(METRICS)}"
            )
        if key == "accuracy" and task_type == "regression":
            raise ConfigurationError("accuracy needs a multiclass or binary task_type")


def compute_metric(
    name: str,
    predictions: Array,
    targets: Array,
    *,
    task_type: str = "regression",
) -> MetricResult:
    key = name.lower()
    if key == "mae":
        value = float(np.mean(np.abs(predictions - targets)))
    elif key == "rmse":
        value = float(np.sqrt(np.mean((predictions - targets) ** 2)))
    elif key == "accuracy":
        if task_type == "multiclass":
            pred_idx = np.argmax(predictions, axis=-1)
            if targets.shape == predictions.shape:
                targ_idx = np.argmax(targets, axis=-1)
            else:
                targ_idx = targets.reshape(pred_idx.shape).astype(int)
        elif task_type == "binary":
            pred_idx = (predictions >= 0.5).astype(int)
            targ_idx = targets.astype(int)
        else:
            raise ValueError(f"accuracy is undefined for task type {task_type!r}")
        value = float(np.mean(pred_idx == targ_idx))
    else:
        raise KeyError(f"Unknown metric: {name}")
    return MetricResult(name=key, value=value)


def compute_metrics(
    names: Iterable[str],
    predictions: Array,
    targets: Array,
    *,
    task_type: str = "regression",
) -> Mapping[str, float]:
    results: Dict[str, float] = {}
    for name in names:
        metric = compute_metric(name, predictions, targets, task_type=task_type)
        results[metric.name] = metric.value
    return results


__all__ = ["METRICS", "MetricResult", "TASK_TYPES", "check_metrics", "compute_metric", "compute_metrics"]
