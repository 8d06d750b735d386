"""Training loop, optimisers and config-driven pipelines."""

from .dropout import Dropout
from .losses import MSE, REGISTRY
from .optimisers import SGD, Adam
from .regularisation import Regularisation
from .trainer import Train

__all__ = ["Dropout", "MSE", "REGISTRY", "SGD", "Adam", "Regularisation", "Train"]
