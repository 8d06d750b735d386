"""linear_networks public API."""

from .core import types  # noqa: F401
from .core.activations import Identity, Linear, Relu, Sigmoid, Softmax, Tanh
from .core.dense import Dense
from .core.initialisers import Constant, Xavier
from .core.network import Compose, load_state_dict, net, state_dict
from .core.types import ConfigurationError
from .training.dropout import Dropout
from .training.losses import MSE
from .training.optimisers import SGD, Adam
from .training.pipelines import load_preset, presets, run_pipeline
from .training.regularisation import Regularisation
from .training.trainer import Train

__all__ = [
    "Adam",
    "Compose",
    "ConfigurationError",
    "Constant",
    "Dense",
    "Dropout",
    "Identity",
    "Linear",
    "MSE",
    "Regularisation",
    "Relu",
    "SGD",
    "Sigmoid",
    "Softmax",
    "Tanh",
    "Train",
    "Xavier",
    "load_preset",
    "load_state_dict",
    "net",
    "presets",
    "run_pipeline",
    "state_dict",
    "types",
]
