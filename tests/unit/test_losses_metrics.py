import numpy as np
import pytest

from linear_networks.core.types import ConfigurationError
from linear_networks.training.losses import MSE, REGISTRY, Loss
from linear_networks.training.metrics import check_metrics, compute_metric, compute_metrics


def test_mse_sums_features_and_averages_batch():
    output = np.array([[1.0, 2.0], [0.0, 0.0]])
    expected = np.array([[0.0, 0.0], [1.0, 1.0]])
    assert MSE.cost(output, expected) == pytest.approx((1 + 4 + 1 + 1) / 2)
    np.testing.assert_allclose(MSE.diff(output, expected), 2.0 * (output - expected))


def test_mse_single_example():
    cost, diff = MSE(np.array([0.5, 1.0]), np.array([1.0, 1.0]))
    assert cost == pytest.approx(0.25)
    np.testing.assert_allclose(diff, [-1.0, 0.0])


def test_mae_and_cross_entropy():
    mae = REGISTRY.get("mae")
    assert mae.cost(np.array([[1.0, -1.0]]), np.array([[0.0, 0.0]])) == pytest.approx(2.0)
    np.testing.assert_allclose(mae.diff(np.array([2.0, -2.0]), np.zeros(2)), [1.0, -1.0])

    ce = REGISTRY.get("ce")
    probs = np.array([[0.25, 0.75]])
    target = np.array([[0.0, 1.0]])
    assert ce.cost(probs, target) == pytest.approx(-np.log(0.75), rel=1e-6)
    np.testing.assert_allclose(ce.diff(probs, target), [[0.0, -1.0 / 0.75]], rtol=1e-6)


def test_registry_resolve_and_register():
    assert list(REGISTRY.names()) == ["ce", "mae", "mse"]
    assert REGISTRY.resolve("MSE") is MSE
    assert REGISTRY.resolve(MSE) is MSE
    with pytest.raises(KeyError):
        REGISTRY.get("hinge")

    custom = Loss("half", lambda o, e: 0.5, lambda o, e: o - e)
    assert custom(np.ones(2), np.zeros(2))[0] == 0.5


def test_regression_metrics():
    pred = np.array([[1.0], [3.0]])
    targ = np.array([[0.0], [1.0]])
    results = compute_metrics(["mae", "rmse"], pred, targ)
    assert results["mae"] == pytest.approx(1.5)
    assert results["rmse"] == pytest.approx(np.sqrt(2.5))


def test_accuracy_multiclass_and_binary():
    pred = np.array([[0.1, 0.9], [0.8, 0.2], [0.3, 0.7]])
    onehot = np.array([[0, 1], [0, 1], [0, 1]])
    assert compute_metric("accuracy", pred, onehot, task_type="multiclass").value == pytest.approx(2 / 3)
    labels = np.array([1, 0, 0])
    assert compute_metric("accuracy", pred, labels, task_type="multiclass").value == pytest.approx(2 / 3)

    binary = compute_metric(
        "accuracy", np.array([[0.9], [0.4]]), np.array([[1.0], [1.0]]), task_type="binary"
    )
    assert binary.value == pytest.approx(0.5)


def test_accuracy_needs_a_classification_task():
    with pytest.raises(ValueError):
        compute_metric("accuracy", np.zeros((2, 1)), np.zeros((2, 1)))
    with pytest.raises(KeyError):
        compute_metric("f1", np.zeros((2, 1)), np.zeros((2, 1)))


def test_mse_batched_equals_mean_of_single_examples():
    output = np.array([[1.0, 2.0], [0.5, -1.0], [0.0, 0.0]])
    expected = np.zeros((3, 2))
    singles = [MSE.cost(o, e) for o, e in zip(output, expected)]
    assert MSE.cost(output, expected) == pytest.approx(np.mean(singles))


def test_check_metrics_accepts_known_pairs():
    check_metrics(["MAE", "rmse"])
    check_metrics(["accuracy"], "binary")
    with pytest.raises(ConfigurationError):
        check_metrics(["accuracy"])
    with pytest.raises(ConfigurationError):
        check_metrics(["f1"], "multiclass")
