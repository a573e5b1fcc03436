"""
Multivariate normal sampling for GP posterior and prior draws.

Draws are produced as ``mean + L z`` where ``L`` is a (jittered) Cholesky
factor of the covariance and ``z`` holds standard-normal variates obtained
from uniform draws through the probit (inverse normal CDF) transform.
Results are laid out with one column per draw.
"""

import logging
import numbers
import numpy as np
from typing import Optional, Tuple
from scipy.stats import norm

from .base import RandomState, clamp_probabilities, make_rng, stable_cholesky
from .config import get_config
from .errors import DimensionMismatch
from .kernels import RBF
from .linalg import MatrixLike, as_array, check_finite

logger = logging.getLogger(__name__)


def check_num_draws(num_draws) -> int:
    if isinstance(num_draws, bool) or not isinstance(num_draws, numbers.Integral) or num_draws <= 0:
        raise ValueError(f"num_draws must be a positive integer, got {num_draws!r}")
    return int(num_draws)


def standard_normal(shape: Tuple[int, ...], rng: np.random.Generator) -> np.ndarray:
    """Standard-normal variates via the probit transform of uniform draws."""
    u = clamp_probabilities(rng.random(shape))
    return norm.ppf(u)


class MultivariateNormalSampler:
    """
    Sampler for Normal(mean, covariance).
    
    The covariance is factorised once at construction, so repeated calls to
    ``sample`` only cost a matrix product.
    
    Parameters
    ----------
    mean : matrix-like, shape (q,) or (q, 1)
        Mean vector.
    covariance : matrix-like, shape (q, q)
        Symmetric positive semi-definite covariance.
    jitter : float, optional
        First jitter tried if the plain factorisation fails; doubled on each
        further failure. Defaults to ``get_config().sampling_jitter``.
    max_retries : int, optional
        Bound on jittered attempts. Defaults to ``get_config().max_jitter_retries``.
    
    Raises
    ------
    DimensionMismatch
        If ``covariance`` is not square or does not match ``mean``.
    SingularMatrix
        If no factorisation succeeds within the retry bound.
    """

    def __init__(
        self,
        mean: MatrixLike,
        covariance: MatrixLike,
        jitter: Optional[float] = None,
        max_retries: Optional[int] = None
    ):
        mean = check_finite(as_array(mean), "mean")
        covariance = check_finite(as_array(covariance), "covariance")
        if mean.shape[1] != 1:
            raise DimensionMismatch("mean must be a vector", shapes=[mean.shape])
        if covariance.shape[0] != covariance.shape[1]:
            raise DimensionMismatch("covariance must be square", shapes=[covariance.shape])
        if covariance.shape[0] != mean.shape[0]:
            raise DimensionMismatch(
                "mean and covariance sizes differ", shapes=[mean.shape, covariance.shape]
            )

        self.mean_ = mean
        if covariance.shape[0] == 0:
            self.L_ = np.zeros((0, 0))
        else:
            self.L_ = stable_cholesky(covariance, jitter=jitter, max_retries=max_retries)

    @classmethod
    def zero_mean(cls, covariance: MatrixLike, **kwargs) -> "MultivariateNormalSampler":
        """Sampler for Normal(0, covariance)."""
        covariance = as_array(covariance)
        return cls(np.zeros(covariance.shape[0]), covariance, **kwargs)

    @property
    def dimension(self) -> int:
        return self.L_.shape[0]

    def sample(self, num_draws: int, random_state: RandomState = None) -> np.ndarray:
        """
        Draw independent samples.
        
        Parameters
        ----------
        num_draws : int
            Number of draws N, > 0.
        random_state : int or np.random.Generator, optional
            Seed or generator; the same seed reproduces the same draws.
            
        Returns
        -------
        draws : np.ndarray, shape (q, N)
            One column per draw.
        """
        num_draws = check_num_draws(num_draws)
        rng = make_rng(random_state)
        z = standard_normal((self.dimension, num_draws), rng)
        logger.debug(f"Drawing {num_draws} samples of dimension {self.dimension}")
        return self.mean_ + self.L_ @ z


def standard_grid(
    resolution: Optional[int] = None,
    domain: Optional[Tuple[float, float]] = None
) -> np.ndarray:
    """
    Evenly spaced column of ``resolution + 1`` points spanning ``domain``, so
    ``resolution`` is the number of intervals as in ``Example.take_samples``.
    
    Defaults come from ``get_config().prior_resolution`` and
    ``get_config().prior_domain``.
    """
    config = get_config()
    resolution = config.prior_resolution if resolution is None else resolution
    lo, hi = config.prior_domain if domain is None else domain
    if resolution < 1:
        raise ValueError(f"resolution must be at least 1, got {resolution!r}")
    return np.linspace(lo, hi, int(resolution) + 1).reshape(-1, 1)


def sample_prior(
    num_draws: int,
    grid: MatrixLike,
    v: float = 1.0,
    l: float = 1.0,
    random_state: RandomState = None
) -> np.ndarray:
    """
    Draw sample paths from the zero-mean prior Normal(0, k(grid, grid)).
    
    Returns
    -------
    draws : np.ndarray, shape (q, num_draws)
    """
    num_draws = check_num_draws(num_draws)
    kernel = RBF(vertical_scale=v, length_scale=l)
    grid = check_finite(as_array(grid), "grid")
    sampler = MultivariateNormalSampler.zero_mean(kernel(grid, grid))
    return sampler.sample(num_draws, random_state=random_state)


def sample_standard_prior(
    num_draws: int,
    resolution: Optional[int] = None,
    v: float = 1.0,
    l: float = 1.0,
    random_state: RandomState = None
) -> Tuple[np.ndarray, np.ndarray]:
    """Prior draws on the standard grid; returns ``(grid, draws)``."""
    grid = standard_grid(resolution)
    return grid, sample_prior(num_draws, grid, v=v, l=l, random_state=random_state)


def sample_from_posterior(
    regressor,
    num_draws: int,
    Xt: MatrixLike,
    random_state: RandomState = None
) -> np.ndarray:
    """
    Draw sample paths from a fitted regressor's posterior at ``Xt``.
    
    Returns
    -------
    draws : np.ndarray, shape (q, num_draws)
    """
    num_draws = check_num_draws(num_draws)
    posterior = regressor.predict(Xt)
    sampler = MultivariateNormalSampler(posterior.mean, posterior.covariance)
    return sampler.sample(num_draws, random_state=random_state)
