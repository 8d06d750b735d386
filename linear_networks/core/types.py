"""Core typing contracts for linear_networks."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, List

import numpy as np

Array = np.ndarray


class ConfigurationError(ValueError):
    """Raised when a graph or training setup is structurally invalid."""


@dataclass(frozen=True)
class Batch:
    """A single mini-batch of data."""

    inputs: Array
    targets: Array


@dataclass(frozen=True)
class RunResult:
    """Summary returned by :func:`linear_networks.training.pipelines.run_pipeline`."""

    steps: int
    epoch_costs: List[float]
    metrics_path: str
    manifest_path: str
    summary_path: str = ""
    checkpoint_path: str = ""
    graph: Any = field(default=None, repr=False, compare=False)


@dataclass(frozen=True)
class LayerDescription:
    """Dimensions of one dense leaf, in traversal order."""

    inputs: int
    outputs: int
    activation: str = "identity"
