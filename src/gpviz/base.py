"""
Base utilities for Gaussian Process computations.

Provides numerically stable operations for GP inference: jittered Cholesky
decomposition, solving linear systems from a Cholesky factor, and clamping
helpers for probabilities and variances.
"""

import logging
import numpy as np
from typing import Optional, Union

from .config import get_config
from .errors import SingularMatrix

logger = logging.getLogger(__name__)

RandomState = Union[None, int, np.random.Generator]


def make_rng(random_state: RandomState = None) -> np.random.Generator:
    """Return a Generator; an int seeds a new one, a Generator is used as is."""
    if isinstance(random_state, np.random.Generator):
        return random_state
    return np.random.default_rng(random_state)


def stable_cholesky(
    K: np.ndarray,
    jitter: Optional[float] = None,
    max_retries: Optional[int] = None
) -> np.ndarray:
    """
    Compute stable Cholesky decomposition with automatic jitter adaptation.
    
    Returns lower-triangular L such that K ≈ LL^T. The factorisation is first
    attempted on K itself; on failure a diagonal jitter is added and doubled
    after every further failure.
    
    Parameters
    ----------
    K : np.ndarray, shape (n, n)
        Symmetric positive (semi-)definite matrix.
    jitter : float, optional
        First diagonal regularisation term. Defaults to
        ``get_config().sampling_jitter``.
    max_retries : int, optional
        Number of jittered attempts. Defaults to
        ``get_config().max_jitter_retries``.
        
    Returns
    -------
    L : np.ndarray, shape (n, n)
        Lower-triangular Cholesky factor.
        
    Raises
    ------
    SingularMatrix
        If decomposition fails even with the largest jitter.
    """
    config = get_config()
    if jitter is None:
        jitter = config.sampling_jitter
    if max_retries is None:
        max_retries = config.max_jitter_retries

    n = K.shape[0]
    try:
        return np.linalg.cholesky(K)
    except np.linalg.LinAlgError:
        pass

    j = jitter
    for _ in range(max_retries):
        try:
            L = np.linalg.cholesky(K + np.eye(n) * j)
            logger.warning(f"Cholesky required jitter={j:.2e} for stability")
            return L
        except np.linalg.LinAlgError:
            j *= 2.0

    raise SingularMatrix(
        f"Cholesky decomposition failed after {max_retries} jitter retries. "
        "Matrix may be ill-conditioned.",
        jitter=j / 2.0
    )


def cholesky_solve(L: np.ndarray, b: np.ndarray) -> np.ndarray:
    """
    Solve K x = b given Cholesky factor L where K = LL^T.
    
    Efficient two-step triangular solve:
      1. Solve L y = b  (forward substitution)
      2. Solve L^T x = y  (backward substitution)
    
    Parameters
    ----------
    L : np.ndarray, shape (n, n)
        Lower-triangular Cholesky factor.
    b : np.ndarray, shape (n,) or (n, m)
        Right-hand side vector(s).
        
    Returns
    -------
    x : np.ndarray, shape (n,) or (n, m)
        Solution to K x = b.
    """
    y = np.linalg.solve(L, b)
    x = np.linalg.solve(L.T, y)
    return x


def clamp_probabilities(probs: np.ndarray, eps: float = 1e-12) -> np.ndarray:
    """
    Clamp probabilities to [eps, 1-eps] for numerical stability.
    
    Keeps the probit transform finite when a uniform draw hits 0 exactly.
    """
    return np.clip(probs, eps, 1.0 - eps)


def clamp_variance(variance: np.ndarray, warn_below: Optional[float] = None) -> np.ndarray:
    """
    Clamp negative variances (floating-point residue) to zero.
    
    Values below ``-warn_below`` are still clamped but logged, since they
    indicate a numerical-stability problem rather than rounding noise.
    
    Parameters
    ----------
    variance : np.ndarray
        Marginal variances.
    warn_below : float, optional
        Magnitude of negative variance that triggers a warning. Defaults to
        ``get_config().negative_variance_warning``.
        
    Returns
    -------
    clamped : np.ndarray
        Non-negative copy of ``variance``.
    """
    if warn_below is None:
        warn_below = get_config().negative_variance_warning

    most_negative = float(np.min(variance)) if variance.size else 0.0
    if most_negative < -warn_below:
        n_bad = int(np.sum(variance < -warn_below))
        logger.warning(
            f"Clamped {n_bad} negative variance(s), most negative {most_negative:.3e}. "
            "Consider a larger jitter or noise level."
        )
    return np.maximum(variance, 0.0)
