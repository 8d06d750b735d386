"""Tensor helpers that treat every axis but the last as a batch axis."""

from __future__ import annotations

from typing import Tuple

import numpy as np

from .types import Array


def compact_shape(shape: Tuple[int, ...]) -> Tuple[int, int]:
    """Collapse ``(A, B, ..., I)`` into ``(A*B*..., I)``."""

    if not shape:
        raise ValueError("cannot compact a 0-d array")
    *rest, last = shape
    return int(np.prod(rest, dtype=np.int64)), int(last)


def compact_front(a: Array) -> Array:
    """View ``a`` as a 2-D array with all leading axes merged."""

    return a.reshape(compact_shape(a.shape))


def batch_count(a: Array) -> int:
    """Number of examples carried by ``a`` (1 for an unbatched vector)."""

    return compact_shape(a.shape)[0]


def dot_inner(lhs: Array, rhs: Array) -> Array:
    """``(..., I) . (I, O) -> (..., O)``."""

    out_shape = lhs.shape[:-1] + (rhs.shape[-1],)
    return (compact_front(lhs) @ rhs).reshape(out_shape)


def dot_front(lhs: Array, rhs: Array) -> Array:
    """``(..., L)^T . (..., R) -> (L, R)``, summed over every leading axis."""

    return compact_front(lhs).T @ compact_front(rhs)


__all__ = ["compact_shape", "compact_front", "batch_count", "dot_inner", "dot_front"]
