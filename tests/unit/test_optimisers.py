import numpy as np
import pytest

from linear_networks.core.dense import Dense, DenseState
from linear_networks.core.initialisers import Constant
from linear_networks.core.network import dense_layers, net
from linear_networks.core.types import ConfigurationError
from linear_networks.training.optimisers import SGD, Adam


def _dense(w, b):
    return DenseState(w=np.array(w, dtype=float), b=np.array(b, dtype=float))


def test_sgd_steps_against_the_gradient():
    graph = _dense([[1.0, 2.0]], [0.5])
    grads = _dense([[0.5, -1.0]], [2.0])
    SGD(alpha=0.1).optimise(graph, grads)
    np.testing.assert_allclose(graph.w, [[0.95, 2.1]])
    np.testing.assert_allclose(graph.b, [0.3])


def test_adam_without_momentum_steps_by_alpha_times_sign():
    graph = _dense([[0.0, 0.0]], [0.0])
    grads = _dense([[4.0, -0.25]], [0.0])
    opt = Adam(alpha=0.1, beta1=0.0, beta2=0.0, epsilon=1e-8)
    opt.optimise(graph, grads)
    np.testing.assert_allclose(graph.w, [[-0.1, 0.1]], rtol=1e-6)
    np.testing.assert_allclose(graph.b, [0.0])
    assert opt.t == 1


def test_adam_first_step_is_bias_corrected():
    graph = _dense([[1.0]], [1.0])
    grads = _dense([[3.0]], [-2.0])
    opt = Adam(alpha=0.01)
    opt.optimise(graph, grads)
    # m_hat = g, v_hat = g^2 on the first step
    np.testing.assert_allclose(graph.w, [[0.99]], rtol=1e-6)
    np.testing.assert_allclose(graph.b, [1.01], rtol=1e-6)


def test_adam_tracks_moments_over_steps():
    graph = _dense([[0.0]], [0.0])
    grads = _dense([[1.0]], [1.0])
    opt = Adam(alpha=0.1, beta1=0.5, beta2=0.5)
    opt.optimise(graph, grads)
    opt.optimise(graph, grads)
    assert opt.t == 2
    np.testing.assert_allclose(opt.m.w, [[0.75]])
    np.testing.assert_allclose(opt.v.w, [[0.75]])
    np.testing.assert_allclose(graph.w, [[-0.2]], rtol=1e-6)


def test_adam_with_preallocated_shape_on_a_network():
    graph = net(Dense(2, Constant(0.0)), Dense(1, Constant(0.0))).input_shape(3)
    opt = Adam(alpha=0.5, beta1=0.0, beta2=0.0, shape=graph.shape())
    assert opt.m is not None
    grads = graph.shape().one()
    opt.optimise(graph, grads)
    for leaf in dense_layers(graph):
        np.testing.assert_allclose(leaf.w, -0.5, rtol=1e-6)


def test_adam_refuses_a_graph_of_another_shape():
    opt = Adam()
    opt.optimise(_dense([[0.0]], [0.0]), _dense([[1.0]], [1.0]))
    with pytest.raises(ConfigurationError):
        opt.optimise(_dense([[0.0, 0.0]], [0.0]), _dense([[1.0, 1.0]], [1.0]))
