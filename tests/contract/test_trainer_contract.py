import csv
import json
from pathlib import Path

import numpy as np

from linear_networks import Dense, SGD, Tanh, Train, net
from linear_networks.core.network import state_dict
from linear_networks.training import pipelines


def test_pipeline_produces_artifacts(tmp_path):
    config = {
        "model": {
            "input": 2,
            "layers": [{"size": 3, "activation": "relu"}, {"size": 1}],
        },
        "train": {
            "epochs": 2,
            "batch_size": 3,
            "seed": 11,
            "optimizer": "sgd",
            "regularisation": {"kind": "l2", "coefficient": 0.001},
            "run_dir": str(tmp_path / "run"),
        },
    }
    x = np.random.default_rng(0).standard_normal((7, 2))
    y = x[:, :1] - x[:, 1:]

    result = pipelines.run_pipeline(config, x, y)
    # 7 examples in batches of 3 -> 3 steps per epoch
    assert result.steps == 6
    assert len(result.epoch_costs) == 2

    manifest = json.loads(Path(result.manifest_path).read_text())
    assert manifest["config"]["train"]["seed"] == 11
    assert manifest["network"]["parameters"] == 3 * 3 + 1 * 4
    assert [layer["activation"] for layer in manifest["network"]["layers"]] == ["relu", "identity"]

    metrics = [
        json.loads(line)
        for line in Path(result.metrics_path).read_text().splitlines()
        if line
    ]
    assert [record["epoch"] for record in metrics] == [1, 2]
    assert all(record["seed"] == 11 for record in metrics)
    assert metrics[-1]["cost"] == result.epoch_costs[-1]

    run_dir = tmp_path / "run"
    with (run_dir / "metrics.csv").open() as handle:
        rows = list(csv.DictReader(handle))
    assert [int(row["epoch"]) for row in rows] == [1, 2]

    assert json.loads((run_dir / "config.json").read_text()) == config
    with np.load(result.checkpoint_path) as data:
        saved = {key: data[key] for key in data.files}
    for key, value in state_dict(result.graph).items():
        np.testing.assert_array_equal(saved[key], value)


def test_seeded_trainers_are_reproducible():
    x = np.random.default_rng(2).standard_normal((9, 3))
    y = np.tanh(x.sum(axis=1, keepdims=True))

    def _run():
        graph = net(Dense(5).with_activation(Tanh()), Dense(1)).input_shape(3, seed=4)
        trainer = Train(graph, SGD(0.1), seed=4, dropout=0.1)
        return trainer.run(x, y, epochs=4, batch_size=2), state_dict(graph)

    costs_a, params_a = _run()
    costs_b, params_b = _run()
    assert costs_a == costs_b
    for key in params_a:
        np.testing.assert_array_equal(params_a[key], params_b[key])
