"""
Squared-exponential (RBF) covariance function.

k(x, x') = v² exp(-||x - x'||² / (2 l²))

This is the only covariance family the engine supports; there is no kernel
composition and no hyperparameter learning.
"""

import logging
import numpy as np
from typing import Optional

from .errors import DimensionMismatch, InvalidHyperparameter
from .linalg import MatrixLike, as_array

logger = logging.getLogger(__name__)


def check_scale(name: str, value: float) -> float:
    """Return ``value`` as float, rejecting non-positive or non-finite scales."""
    try:
        value = float(value)
    except (TypeError, ValueError):
        raise InvalidHyperparameter(name, value, "a positive real number") from None
    if not np.isfinite(value) or value <= 0.0:
        raise InvalidHyperparameter(name, value, "a positive real number")
    return value


def squared_pairwise_distance(A: MatrixLike, B: MatrixLike) -> np.ndarray:
    """
    Matrix of squared Euclidean distances between the rows of A and B.
    
    Parameters
    ----------
    A : matrix-like, shape (n, d)
    B : matrix-like, shape (m, d)
        
    Returns
    -------
    D : np.ndarray, shape (n, m)
        ``D[i, j] = ||A_i - B_j||²``. Computed from explicit differences, so
        ``D`` is exactly symmetric with a zero diagonal when ``A`` equals ``B``.
    """
    A, B = as_array(A), as_array(B)
    if A.shape[1] != B.shape[1]:
        raise DimensionMismatch(
            "Inputs must have the same number of columns", shapes=[A.shape, B.shape]
        )
    diff = A[:, np.newaxis, :] - B[np.newaxis, :, :]
    return np.einsum("ijk,ijk->ij", diff, diff)


class RBF:
    """
    Radial Basis Function (Squared Exponential) kernel.
    
    Parameters
    ----------
    vertical_scale : float, default=1.0
        Output scale v; the prior variance of the process is v².
    length_scale : float, default=1.0
        Characteristic length scale l.
    
    Raises
    ------
    InvalidHyperparameter
        If either scale is not strictly positive.
    """

    __slots__ = ("_v", "_l")

    def __init__(self, vertical_scale: float = 1.0, length_scale: float = 1.0):
        self._v = check_scale("v", vertical_scale)
        self._l = check_scale("l", length_scale)

    @property
    def vertical_scale(self) -> float:
        return self._v

    @property
    def length_scale(self) -> float:
        return self._l

    @property
    def variance(self) -> float:
        """Signal variance v²."""
        return self._v ** 2

    def __repr__(self):
        return f"RBF(vertical_scale={self._v!r}, length_scale={self._l!r})"

    def __call__(
        self,
        X1: MatrixLike,
        X2: Optional[MatrixLike] = None,
        diag: bool = False
    ) -> np.ndarray:
        """
        Compute covariance matrix K(X1, X2).
        
        If ``X2`` is None, uses X1. With ``diag=True`` only the diagonal of
        K(X1, X1) is returned, shape (n,).
        """
        X1 = as_array(X1)
        if diag:
            return np.full(X1.shape[0], self.variance)
        X2 = X1 if X2 is None else as_array(X2)
        return self.evaluate(X1, X2)

    def evaluate(self, A: MatrixLike, B: MatrixLike) -> np.ndarray:
        """``v² exp(-0.5 / l² * squared_pairwise_distance(A, B))``, shape (A.rows, B.rows)."""
        dists_sq = squared_pairwise_distance(A, B)
        K = self.variance * np.exp(-0.5 * dists_sq / (self._l ** 2))
        logger.debug(f"Kernel matrix of shape {K.shape}")
        return K
