"""Config-driven assembly of networks, optimisers and training runs."""

from __future__ import annotations

import json
import time
from copy import deepcopy
from pathlib import Path
from typing import Dict, Mapping, Optional, Sequence

import numpy as np
import yaml

from ..core.activations import get_activation
from ..core.dense import Dense
from ..core.graph import Graph
from ..core.initialisers import INITIALISERS, Initialiser
from ..core.network import describe, net
from ..core.params import Shape
from ..core.types import Array, ConfigurationError, LayerDescription, RunResult
from ..reporting.artifacts import write_manifest
from ..reporting.metrics import CsvSink, JsonlSink
from ..reporting.summary import write_summary
from .dropout import Dropout
from .losses import REGISTRY as LOSS_REGISTRY
from .metrics import check_metrics
from .optimisers import OPTIMISERS, Adam, Optimiser
from .regularisation import Regularisation, from_config
from .trainer import Train, check_dataset

_PRESETS: Dict[str, Mapping[str, object]] = {
    "xor-sigmoid-sgd": {
        "model": {
            "input": 2,
            "layers": [
                {"size": 4, "activation": "sigmoid"},
                {"size": 1, "activation": "sigmoid"},
            ],
        },
        "train": {
            "epochs": 500,
            "batch_size": 4,
            "seed": 0,
            "cost": "mse",
            "optimizer": {"name": "sgd", "alpha": 0.5},
            "task_type": "binary",
            "metrics": ["accuracy"],
        },
    },
    "regression-tanh-adam": {
        "model": {
            "input": 1,
            "layers": [
                {"size": 16, "activation": "tanh"},
                {"size": 16, "activation": "tanh"},
                {"size": 1},
            ],
        },
        "train": {
            "epochs": 50,
            "batch_size": 16,
            "seed": 0,
            "cost": "mse",
            "optimizer": {"name": "adam", "alpha": 0.01},
            "metrics": ["mae", "rmse"],
        },
    },
}

_PRESET_DIR = Path(__file__).resolve().parents[1] / "presets"


def _read_config_file(path: Path) -> Mapping[str, object]:
    text = path.read_text()
    suffix = path.suffix.lower()
    if suffix in {".yaml", ".yml"}:
        data = yaml.safe_load(text) or {}
    elif suffix == ".json":
        data = json.loads(text or "{}")
    else:
        raise ValueError(f"Unsupported config file type: {path.suffix}")

    if not isinstance(data, Mapping):
        raise TypeError(f"Config {path.name} must decode to a mapping")
    missing = {"model", "train"} - set(data)
    if missing:
        raise KeyError(f"Config {path.name} is missing required sections: {', '.join(sorted(missing))}")
    return data


def load_config(path: str | Path) -> Mapping[str, object]:
    return _read_config_file(Path(path))


def _file_presets() -> Dict[str, Mapping[str, object]]:
    found: Dict[str, Mapping[str, object]] = {}
    if _PRESET_DIR.exists():
        for file in sorted(_PRESET_DIR.iterdir()):
            if file.suffix.lower() in {".yaml", ".yml", ".json"}:
                found[file.stem] = _read_config_file(file)
    return found


def presets() -> Mapping[str, Mapping[str, object]]:
    combined: Dict[str, Mapping[str, object]] = {}
    combined.update({name: deepcopy(cfg) for name, cfg in _PRESETS.items()})
    combined.update(_file_presets())
    return combined


def load_preset(name: str) -> Mapping[str, object]:
    available = presets()
    try:
        return available[name]
    except KeyError as exc:
        raise KeyError(f"Unknown preset {name!r}. Available presets: {', '.join(sorted(available))}") from exc


# ----------------------------------------------------------------------
# Builders


def build_initialiser(config: object) -> Initialiser:
    if isinstance(config, str):
        config = {"name": config}
    options = dict(config)  # type: ignore[arg-type]
    name = str(options.pop("name", "xavier")).lower()
    try:
        factory = INITIALISERS[name]
    except KeyError as exc:
        raise KeyError(f"Unknown initialiser {name!r}. Available initialisers: {', '.join(sorted(INITIALISERS))}") from exc
    return factory(**options)


def build_network(model_cfg: Mapping[str, object]) -> Graph:
    """Turn ``{"layers": [{"size": .., "activation": ..}, ..]}`` into a descriptor."""

    layers = model_cfg.get("layers")
    if not layers:
        raise ConfigurationError("model config needs a non-empty 'layers' list")
    dtype = str(model_cfg.get("dtype", "float64"))
    stages = []
    for layer in layers:  # type: ignore[union-attr]
        if "size" not in layer:
            raise ConfigurationError(f"layer config {layer!r} is missing 'size'")
        stage: Graph = Dense(
            int(layer["size"]),
            initialiser=build_initialiser(layer.get("initialiser", "xavier")),
            dtype=dtype,
        )
        activation = layer.get("activation")
        if activation:
            stage = stage.with_activation(get_activation(str(activation)))
        stages.append(stage)
    return net(*stages)


def build_optimiser(config: object, shape: Optional[Shape] = None) -> Optimiser:
    if isinstance(config, str):
        config = {"name": config}
    options = dict(config or {})  # type: ignore[arg-type]
    name = str(options.pop("name", "sgd")).lower()
    try:
        factory = OPTIMISERS[name]
    except KeyError as exc:
        raise ConfigurationError(
            f"Unknown optimizer {name!r}. Available optimizers: {', '.join(sorted(OPTIMISERS))}"
        ) from exc
    kwargs: Dict[str, object] = {key: float(value) for key, value in options.items()}
    if shape is not None and factory is Adam:
        kwargs["shape"] = shape
    try:
        return factory(**kwargs)
    except TypeError as exc:
        raise ConfigurationError(f"Bad options for optimizer {name!r}: {exc}") from exc


def build_regularisation(config: object) -> Optional[Regularisation]:
    """``{"kind": "l2", "coefficient": ..}`` or ``{"kind": "l1_l2", "l1": .., "l2": ..}``."""

    return from_config(config)  # type: ignore[arg-type]


# ----------------------------------------------------------------------
# Runs


def run_pipeline(
    config: Mapping[str, object], inputs: Array, targets: Array
) -> RunResult:
    """Train the configured network on ``inputs``/``targets`` (batch axis first)."""

    model_cfg = dict(config["model"])  # type: ignore[arg-type]
    train_cfg = dict(config["train"])  # type: ignore[arg-type]
    inputs = np.asarray(inputs)
    targets = np.asarray(targets)

    descriptor = build_network(model_cfg)
    input_size = int(model_cfg.get("input", inputs.shape[-1]))
    if inputs.shape[-1] != input_size:
        raise ConfigurationError(
            f"Configured input={input_size} but inputs have {inputs.shape[-1]} features"
        )
    if descriptor.get_output_shape() != targets.shape[-1]:
        raise ConfigurationError(
            f"Network produces {descriptor.get_output_shape()} outputs but targets have {targets.shape[-1]}"
        )

    epochs = int(train_cfg.get("epochs", 1))
    batch_size = int(train_cfg.get("batch_size", 1))
    seed = int(train_cfg.get("seed", 0))
    task_type = str(train_cfg.get("task_type", "regression"))
    metric_names = list(train_cfg.get("metrics", []))
    check_metrics(metric_names, task_type)
    check_dataset(inputs, targets, batch_size)
    descriptor.check_input_shape(input_size)
    regularisation = build_regularisation(train_cfg.get("regularisation"))
    dropout = Dropout(float(train_cfg.get("dropout", 0.0)))
    cost = LOSS_REGISTRY.resolve(str(train_cfg.get("cost", "mse")))
    optimiser = build_optimiser(train_cfg.get("optimizer", "sgd"))

    rng = np.random.default_rng(seed)
    graph = descriptor.init_with_random(rng, input_size)
    layers = describe(graph)

    run_dir = _resolve_run_dir(train_cfg)
    run_dir.mkdir(parents=True, exist_ok=True)
    jsonl = JsonlSink(
        run_dir / "metrics.jsonl",
        seed=seed,
        record_steps=bool(train_cfg.get("record_steps", False)),
    )
    csv_sink = CsvSink(run_dir / "metrics.csv")

    trainer = Train(
        graph,
        optimiser,
        cost=cost,
        regularisation=regularisation,
        dropout=dropout,
        rng=rng,
        callbacks=[jsonl, csv_sink],
    )

    _print_startup_summary(
        layers=layers,
        cost=trainer.cost.name,
        optimiser=optimiser,
        dropout=trainer.dropout.rate,
        regularisation=regularisation.kind if regularisation else "none",
        batch_size=batch_size,
        epochs=epochs,
    )

    epoch_costs = trainer.run(
        inputs,
        targets,
        epochs=epochs,
        batch_size=batch_size,
        metric_names=metric_names,
        task_type=task_type,
    )

    checkpoint = trainer.save_checkpoint(run_dir / "last.npz")
    safe_config = json.loads(json.dumps(config))
    manifest = write_manifest(run_dir / "manifest.json", config=safe_config, layers=layers)
    summary_path = write_summary(
        jsonl.path, run_dir / "summary.json", tail=int(train_cfg.get("summary_tail", 32))
    )
    (run_dir / "config.json").write_text(json.dumps(safe_config, indent=2))

    return RunResult(
        steps=trainer.steps,
        epoch_costs=epoch_costs,
        metrics_path=str(jsonl.path),
        manifest_path=manifest,
        summary_path=summary_path,
        checkpoint_path=str(checkpoint),
        graph=graph,
    )


def _resolve_run_dir(train_cfg: Mapping[str, object]) -> Path:
    if "run_dir" in train_cfg:
        return Path(str(train_cfg["run_dir"]))
    return Path("runs") / time.strftime("%Y%m%d-%H%M%S")


def _print_startup_summary(
    *,
    layers: Sequence[LayerDescription],
    cost: str,
    optimiser: Optimiser,
    dropout: float,
    regularisation: str,
    batch_size: int,
    epochs: int,
) -> None:
    dims = [layers[0].inputs] + [layer.outputs for layer in layers] if layers else []
    print("=== linear_networks run ===")
    print(f"Dimensions    : {dims}")
    print(f"Activations   : {[layer.activation for layer in layers]}")
    print(f"Cost          : {cost}")
    print(f"Optimiser     : {type(optimiser).__name__}")
    print(f"Dropout       : {dropout}")
    print(f"Regularisation: {regularisation}")
    print(f"Batch size    : {batch_size}")
    print(f"Epochs        : {epochs}")
    print(f"Parameters    : {sum(layer.outputs * (layer.inputs + 1) for layer in layers)}")
    print("===========================")


__all__ = [
    "build_initialiser",
    "build_network",
    "build_optimiser",
    "build_regularisation",
    "load_config",
    "load_preset",
    "presets",
    "run_pipeline",
]
