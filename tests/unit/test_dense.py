import numpy as np
import pytest

from linear_networks.core.array import batch_count, compact_front, dot_front, dot_inner
from linear_networks.core.dense import Dense, DenseShape, DenseState
from linear_networks.core.initialisers import Constant, Xavier
from linear_networks.core.types import ConfigurationError


def _state():
    w = np.array([[1.0, 2.0, 3.0], [-1.0, 0.5, 0.0]])
    b = np.array([0.5, -0.25])
    return DenseState(w=w, b=b)


def test_array_helpers_collapse_leading_axes():
    a = np.arange(24.0).reshape(2, 3, 4)
    assert compact_front(a).shape == (6, 4)
    assert batch_count(a) == 6
    assert batch_count(np.ones(4)) == 1

    rhs = np.ones((4, 5))
    assert dot_inner(a, rhs).shape == (2, 3, 5)
    assert dot_inner(np.ones(4), rhs).shape == (5,)
    assert dot_front(a, np.ones((2, 3, 5))).shape == (4, 5)


def test_init_shapes_and_determinism():
    layer = Dense(3)
    first = layer.init_with_random(np.random.default_rng(7), 5)
    second = layer.init_with_random(np.random.default_rng(7), 5)
    assert first.w.shape == (3, 5)
    assert first.b.shape == (3,)
    np.testing.assert_array_equal(first.w, second.w)
    np.testing.assert_array_equal(first.b, second.b)
    assert layer.get_output_shape() == 3


def test_xavier_variance_is_one_over_inputs():
    state = Dense(400).init_with_random(np.random.default_rng(0), 100)
    assert abs(np.mean(state.w)) < 0.01
    assert np.var(state.w) == pytest.approx(1.0 / 100, rel=0.05)


def test_xavier_draws_weights_then_bias():
    rng = np.random.default_rng(3)
    draws = rng.normal(0.0, np.sqrt(1.0 / 2), size=2 * 3 + 3)
    state = Dense(3, Xavier()).init_with_random(np.random.default_rng(3), 2)
    np.testing.assert_allclose(state.w.ravel(), draws[:6])
    np.testing.assert_allclose(state.b, draws[6:])


def test_constant_initialiser_fills_everything():
    state = Dense(2).with_initialiser(Constant(0.1)).input_shape(4)
    assert np.all(state.w == 0.1)
    assert np.all(state.b == 0.1)


@pytest.mark.parametrize("bad", [0, -3, 2.5, True, "4"])
def test_bad_input_size_is_a_configuration_error(bad):
    with pytest.raises(ConfigurationError):
        Dense(3).input_shape(bad)


def test_bad_output_size_fails_at_construction():
    with pytest.raises(ConfigurationError):
        Dense(0)


def test_exec_single_and_batched():
    state = _state()
    x = np.array([1.0, 1.0, 2.0])
    np.testing.assert_allclose(state.exec(x), [9.5, -0.75])

    batch = np.stack([x, np.zeros(3)])
    np.testing.assert_allclose(state.exec(batch), [[9.5, -0.75], [0.5, -0.25]])


def test_back_single_example_uses_raw_outer_product():
    state = _state()
    x = np.array([1.0, -2.0, 0.5])
    d_y = np.array([2.0, -1.0])
    cache, _ = state.forward(x)
    d_x, grads = state.back(cache, d_y)
    np.testing.assert_allclose(grads.w, np.outer(d_y, x))
    np.testing.assert_allclose(grads.b, d_y)
    np.testing.assert_allclose(d_x, state.w.T @ d_y)


def test_back_batch_averages_over_examples():
    state = _state()
    rng = np.random.default_rng(1)
    x = rng.standard_normal((4, 3))
    d_y = rng.standard_normal((4, 2))
    cache, _ = state.forward(x)
    d_x, grads = state.back(cache, d_y)
    np.testing.assert_allclose(grads.w, d_y.T @ x / 4)
    np.testing.assert_allclose(grads.b, d_y.mean(axis=0))
    np.testing.assert_allclose(d_x, d_y @ state.w)
    assert grads.shape() == state.shape()


def test_higher_rank_input_treats_leading_axes_as_batch():
    state = _state()
    x = np.random.default_rng(2).standard_normal((2, 3, 3))
    out = state.exec(x)
    assert out.shape == (2, 3, 2)
    np.testing.assert_allclose(out.reshape(6, 2), state.exec(x.reshape(6, 3)))


def test_shape_builds_zero_one_and_ordered_iter():
    shape = DenseShape(outputs=2, inputs=3)
    assert shape.size == 8
    assert np.all(shape.zero().w == 0) and np.all(shape.zero().b == 0)
    assert np.all(DenseState.one(shape).b == 1)

    filled = DenseState.from_iter(shape, range(8))
    np.testing.assert_array_equal(filled.w, [[0, 1, 2], [3, 4, 5]])
    np.testing.assert_array_equal(filled.b, [6, 7])

    with pytest.raises(ConfigurationError):
        shape.from_iter(range(5))
