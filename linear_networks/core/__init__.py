"""Core numerical primitives for linear_networks."""

from . import activations, array, dense, graph, initialisers, network, params, types

__all__ = ["activations", "array", "dense", "graph", "initialisers", "network", "params", "types"]
