"""
Gaussian Process Regression with user-supplied hyperparameters.

The regressor is built once from a training set and a hyperparameter set;
the O(n³) inversion happens at construction and every prediction reuses it.
Instances are immutable: changing a hyperparameter means building a new one.
"""

import logging
import numpy as np
from dataclasses import dataclass
from typing import Optional, Tuple, Union

from .base import clamp_variance
from .config import get_config
from .errors import DimensionMismatch
from .hyperparameters import Hyperparameters, PriorMean
from .kernels import RBF
from .linalg import (
    Matrix, MatrixLike, add, add_scalar, as_array, check_finite, diagonal,
    identity, invert, multiply, subtract, transpose
)

logger = logging.getLogger(__name__)


def _readonly(a: np.ndarray) -> np.ndarray:
    a = np.array(a, dtype=np.float64)
    a.setflags(write=False)
    return a


@dataclass(frozen=True, eq=False)
class Posterior:
    """
    Posterior predictive distribution at q query points.
    
    Attributes
    ----------
    mean : np.ndarray, shape (q,)
    covariance : np.ndarray, shape (q, q)
        Symmetric; its diagonal equals ``variance``.
    variance : np.ndarray, shape (q,)
        Marginal variances, clamped to be non-negative.
    """

    mean: np.ndarray
    covariance: np.ndarray
    variance: np.ndarray

    def __post_init__(self):
        for name in ("mean", "covariance", "variance"):
            object.__setattr__(self, name, _readonly(getattr(self, name)))

    @property
    def std(self) -> np.ndarray:
        return np.sqrt(self.variance)

    def confidence_band(self, z: float = 1.96) -> Tuple[np.ndarray, np.ndarray]:
        """Pointwise ``mean ∓ z·std``; z=1.96 gives the 95% band."""
        half_width = z * self.std
        return self.mean - half_width, self.mean + half_width

    def as_matrices(self) -> Tuple[Matrix, Matrix, Matrix]:
        """Return ``(mean q×1, covariance q×q, variance q×1)`` as ``Matrix`` objects."""
        return (
            Matrix.from_array(self.mean),
            Matrix.from_array(self.covariance),
            Matrix.from_array(self.variance),
        )


class GaussianProcessRegressor:
    """
    Exact GP regression under an RBF prior with Gaussian noise.
    
    Construction performs:
      1. K = k(X, X)
      2. K_reg = K + (s² + ε) I
      3. K_inv = K_reg^{-1}
      4. y_c = y - m
      5. α = K_inv y_c
    
    Parameters
    ----------
    X : matrix-like, shape (n, d)
        Training inputs. A 1-D array is taken as n points in one dimension.
    y : matrix-like, shape (n,) or (n, 1)
        Training targets.
    v : float, default=1.0
        Vertical scale, > 0.
    l : float, default=1.0
        Length scale, > 0.
    s : float, default=0.0
        Observation noise standard deviation, >= 0.
    m : float, "auto" or PriorMean, default="auto"
        Prior mean; "auto" uses the mean of ``y``.
    jitter : float, optional
        Diagonal regularisation ε, added even when s = 0. Defaults to
        ``get_config().jitter``.
    max_condition : float, optional
        Condition-number tolerance for the inversion.
    
    Raises
    ------
    InvalidHyperparameter
        If v <= 0, l <= 0 or s < 0.
    DimensionMismatch
        If X and y have a different number of rows.
    SingularMatrix
        If the regularised kernel matrix cannot be inverted.
    """

    def __init__(
        self,
        X: MatrixLike,
        y: MatrixLike,
        v: float = 1.0,
        l: float = 1.0,
        s: float = 0.0,
        m: Union[float, str, PriorMean, None] = "auto",
        jitter: Optional[float] = None,
        max_condition: Optional[float] = None
    ):
        # Hyperparameters are rejected before any computation.
        self._hyperparameters = Hyperparameters(v=v, l=l, s=s, m=m)
        self._kernel = RBF(vertical_scale=self._hyperparameters.v,
                           length_scale=self._hyperparameters.l)
        self._jitter = float(get_config().jitter if jitter is None else jitter)

        X = check_finite(as_array(X), "X")
        y = check_finite(as_array(y), "y")
        if y.shape[1] != 1:
            raise DimensionMismatch("y must be a single column", shapes=[y.shape])
        if X.shape[0] != y.shape[0]:
            raise DimensionMismatch("X and y have incompatible shapes", shapes=[X.shape, y.shape])
        if X.shape[0] == 0:
            raise DimensionMismatch("Training set must contain at least one point", shapes=[X.shape])

        n = X.shape[0]
        s = self._hyperparameters.s
        prior_mean = self._hyperparameters.m.resolve(y)

        K = self._kernel(X, X)
        K_reg = add(K, identity(n, s ** 2 + self._jitter))
        K_inv = invert(K_reg, max_condition=max_condition)
        y_centered = add_scalar(y, -prior_mean)
        alpha = multiply(K_inv, y_centered)

        self._X = _readonly(X)
        self._y = _readonly(y)
        self._prior_mean = prior_mean
        self._K_inv = _readonly(K_inv)
        self._alpha = _readonly(alpha)

        logger.info(f"GP constructed with {n} samples, prior mean m={prior_mean:.6g}")

    @classmethod
    def from_hyperparameters(
        cls,
        X: MatrixLike,
        y: MatrixLike,
        hyperparameters: Hyperparameters,
        **kwargs
    ) -> "GaussianProcessRegressor":
        hp = hyperparameters
        return cls(X, y, v=hp.v, l=hp.l, s=hp.s, m=hp.m, **kwargs)

    @property
    def hyperparameters(self) -> Hyperparameters:
        return self._hyperparameters

    @property
    def kernel(self) -> RBF:
        return self._kernel

    @property
    def jitter(self) -> float:
        return self._jitter

    @property
    def prior_mean_(self) -> float:
        """Resolved prior mean m."""
        return self._prior_mean

    @property
    def X_train_(self) -> np.ndarray:
        return self._X

    @property
    def y_train_(self) -> np.ndarray:
        return self._y

    @property
    def K_inv_(self) -> np.ndarray:
        return self._K_inv

    @property
    def alpha_(self) -> np.ndarray:
        return self._alpha

    @property
    def n_features(self) -> int:
        return self._X.shape[1]

    def __repr__(self):
        hp = self._hyperparameters
        return (
            f"GaussianProcessRegressor(n={self._X.shape[0]}, v={hp.v}, l={hp.l}, "
            f"s={hp.s}, m={hp.m})"
        )

    def _check_query(self, Xt: MatrixLike) -> np.ndarray:
        Xt = check_finite(as_array(Xt), "Xt")
        if Xt.shape[1] != self._X.shape[1]:
            raise DimensionMismatch(
                "Query points must have as many columns as the training inputs",
                shapes=[Xt.shape, self._X.shape]
            )
        return Xt

    def predict_mean(self, Xt: MatrixLike) -> np.ndarray:
        """Posterior mean only, shape (q,)."""
        Xt = self._check_query(Xt)
        K_cross = self._kernel(self._X, Xt)
        return add_scalar(multiply(transpose(K_cross), self._alpha), self._prior_mean).ravel()

    def predict(self, Xt: MatrixLike) -> Posterior:
        """
        Posterior predictive distribution at the query points.
        
        Computes:
          - K_* = k(X, X_t),  K_** = k(X_t, X_t)
          - mean = K_*^T α + m
          - cov = K_** - K_*^T K_inv K_*
          - var = diag(cov), with floating-point negatives clamped to 0
        
        Parameters
        ----------
        Xt : matrix-like, shape (q, d)
            Query points.
            
        Returns
        -------
        posterior : Posterior
            
        Raises
        ------
        DimensionMismatch
            If ``Xt`` has a different number of columns than the training inputs.
        """
        Xt = self._check_query(Xt)
        q = Xt.shape[0]
        if q > 5000:
            logger.warning(
                f"Computing full covariance for {q} points. "
                "This may be memory-intensive."
            )

        K_cross = self._kernel(self._X, Xt)  # Shape (n, q)
        K_cross_T = transpose(K_cross)
        K_query = self._kernel(Xt, Xt)  # Shape (q, q)

        mean = add_scalar(multiply(K_cross_T, self._alpha), self._prior_mean)
        cov = subtract(K_query, multiply(multiply(K_cross_T, self._K_inv), K_cross))
        cov = 0.5 * (cov + cov.T)

        variance = clamp_variance(diagonal(cov).ravel())
        np.fill_diagonal(cov, variance)

        logger.debug(f"Predicted posterior at {q} points")
        return Posterior(mean=mean.ravel(), covariance=cov, variance=variance)
