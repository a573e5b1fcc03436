"""
Request/response interface to the GP engine.

``GPEngine`` exposes the four calls a UI or driver needs (``fit``,
``predict``, ``sample_from_posterior``, ``sample_prior``). Each call is a
fresh, synchronous computation. The numerical backend behind the engine is
initialised lazily through a ``BackendHandle``: the first caller triggers
initialisation, concurrent callers wait for that same initialisation, and
later callers reuse the ready instance.
"""

import logging
import threading
from concurrent.futures import Future
from typing import Callable, Optional, Union

import numpy as np
import scipy

from .hyperparameters import PriorMean
from .linalg import MatrixLike
from .regression import GaussianProcessRegressor, Posterior
from .sampling import RandomState, sample_from_posterior, sample_prior

logger = logging.getLogger(__name__)


class NumpyBackend:
    """
    Dense numpy/scipy compute backend.
    
    Construction runs a small Cholesky probe so that a broken LAPACK build
    fails at initialisation rather than in the middle of a request.
    """

    name = "numpy"

    def __init__(self):
        probe = np.array([[4.0, 2.0], [2.0, 3.0]])
        L = np.linalg.cholesky(probe)
        if not np.allclose(L @ L.T, probe):
            raise RuntimeError("LAPACK Cholesky probe returned an incorrect factor")
        self.versions = {"numpy": np.__version__, "scipy": scipy.__version__}
        logger.info(f"Backend '{self.name}' ready (numpy {np.__version__}, scipy {scipy.__version__})")

    def fit(self, X, y, v, l, s, m, **kwargs) -> GaussianProcessRegressor:
        return GaussianProcessRegressor(X, y, v=v, l=l, s=s, m=m, **kwargs)

    def predict(self, regressor: GaussianProcessRegressor, Xt) -> Posterior:
        return regressor.predict(Xt)

    def sample_from_posterior(self, regressor, num_draws, Xt, random_state) -> np.ndarray:
        return sample_from_posterior(regressor, num_draws, Xt, random_state=random_state)

    def sample_prior(self, num_draws, grid, v, l, random_state) -> np.ndarray:
        return sample_prior(num_draws, grid, v=v, l=l, random_state=random_state)


class BackendHandle:
    """
    Owns a lazily initialised backend with single-flight semantics.
    
    Parameters
    ----------
    factory : callable, default=NumpyBackend
        Zero-argument callable building the backend.
    
    Notes
    -----
    If initialisation raises, every caller waiting on it receives the same
    exception and the next call to ``get`` starts a new attempt.
    """

    def __init__(self, factory: Callable[[], object] = NumpyBackend):
        self._factory = factory
        self._lock = threading.Lock()
        self._future: Optional[Future] = None

    @property
    def ready(self) -> bool:
        future = self._future
        return future is not None and future.done() and future.exception() is None

    def get(self):
        """Return the backend, initialising it on first use."""
        with self._lock:
            future = self._future
            owner = future is None
            if owner:
                future = Future()
                self._future = future

        if owner:
            try:
                backend = self._factory()
            except BaseException as exc:
                with self._lock:
                    self._future = None
                future.set_exception(exc)
                raise
            future.set_result(backend)
            return backend

        return future.result()


class GPEngine:
    """
    Stateless GP engine fronting a lazily initialised backend.
    
    Parameters
    ----------
    backend : BackendHandle, optional
        Handle to use; a new handle over ``NumpyBackend`` by default.
    """

    def __init__(self, backend: Optional[BackendHandle] = None):
        self.backend = backend if backend is not None else BackendHandle()

    def fit(
        self,
        X: MatrixLike,
        y: MatrixLike,
        v: float = 1.0,
        l: float = 1.0,
        s: float = 0.0,
        m: Union[float, str, PriorMean, None] = "auto",
        **kwargs
    ) -> GaussianProcessRegressor:
        """Build a regressor; either fully succeeds or raises with no handle."""
        return self.backend.get().fit(X, y, v, l, s, m, **kwargs)

    def predict(self, handle: GaussianProcessRegressor, Xt: MatrixLike) -> Posterior:
        return self.backend.get().predict(handle, Xt)

    def sample_from_posterior(
        self,
        handle: GaussianProcessRegressor,
        num_draws: int,
        Xt: MatrixLike,
        random_state: RandomState = None
    ) -> np.ndarray:
        """Posterior draws at ``Xt``, shape (q, num_draws)."""
        return self.backend.get().sample_from_posterior(handle, num_draws, Xt, random_state)

    def sample_prior(
        self,
        num_draws: int,
        grid: MatrixLike,
        v: float = 1.0,
        l: float = 1.0,
        random_state: RandomState = None
    ) -> np.ndarray:
        """Zero-mean prior draws on ``grid``, shape (q, num_draws)."""
        return self.backend.get().sample_prior(num_draws, grid, v, l, random_state)
