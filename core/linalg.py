"""
Dense Matrix Primitives

Small wrappers around NumPy that the attention pipeline is written in terms
of. Every function takes and returns 2D float64 arrays, and none of them
modify their inputs.

Having these as named functions (instead of sprinkling @ and .T around)
keeps the pipeline readable as a sequence of textbook steps:
    scores = scale(matmul(Q, transpose(K)), 1 / sqrt(d_head))
"""

import numpy as np


def as_matrix(a):
    """Convert nested lists or arrays to a 2D float64 array."""
    m = np.asarray(a, dtype=np.float64)
    if m.ndim != 2:
        raise ValueError(f"expected a 2D matrix, got shape {m.shape}")
    return m


def matmul(a, b):
    """
    Matrix product.

    Args:
        a: Matrix of shape (n, m)
        b: Matrix of shape (m, p)

    Returns:
        Matrix of shape (n, p), out[i, j] = sum_k a[i, k] * b[k, j]
    """
    a = as_matrix(a)
    b = as_matrix(b)
    if a.shape[1] != b.shape[0]:
        raise ValueError(
            f"inner dimensions do not match: {a.shape} @ {b.shape}"
        )
    return a @ b


def transpose(a):
    """(n, m) -> (m, n). Returns a copy, not a view."""
    return as_matrix(a).T.copy()


def add(a, b):
    """Elementwise sum of two matrices with identical shapes."""
    a = as_matrix(a)
    b = as_matrix(b)
    if a.shape != b.shape:
        raise ValueError(f"shapes do not match: {a.shape} + {b.shape}")
    return a + b


def scale(a, s):
    """Multiply every entry by the scalar s."""
    return as_matrix(a) * float(s)


def identity(n):
    """n x n identity matrix."""
    return np.eye(n, dtype=np.float64)
