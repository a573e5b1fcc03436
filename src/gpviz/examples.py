"""
Synthetic example datasets for exploring GP behaviour.

Each catalogue entry is a closed-form function with a sampling range and a
(usually wider) prediction range. ``Example`` draws a noisy training set from
one entry and wraps the engine calls the visualisation needs.
"""

import logging
import numpy as np
from dataclasses import dataclass
from typing import Callable, Optional, Tuple, Union

from .config import get_config
from .hyperparameters import PriorMean
from .regression import GaussianProcessRegressor, Posterior
from .sampling import sample_from_posterior, sample_standard_prior, standard_normal

logger = logging.getLogger(__name__)

SAMPLE_METHODS = ("systematic", "random")

# Visualisation defaults
DEFAULT_RESOLUTION = 200
DEFAULT_FUNCTION_SAMPLE_RESOLUTION = 100
DEFAULT_NUM_SAMPLES = 8
DEFAULT_NUM_FN_SAMPLES = 20
DEFAULT_NUM_STD_GP_SAMPLES = 2
DEFAULT_Y_NOISE = 0.1


@dataclass(frozen=True)
class ExampleFunction:
    name: str
    x_range: Tuple[float, float]
    xt_range: Tuple[float, float]
    fn: Callable[[np.ndarray], np.ndarray]
    hidden: bool = False


CATALOGUE = (
    ExampleFunction(
        name="sin(x)",
        x_range=(-np.pi, np.pi),
        xt_range=(-4 * np.pi, 4 * np.pi),
        fn=np.sin,
    ),
    ExampleFunction(
        name="exp(cos(x)) sin(x)",
        x_range=(0.0, 10.0),
        xt_range=(-2.0, 12.0),
        fn=lambda x: np.exp(np.cos(x)) * np.sin(x),
    ),
    ExampleFunction(
        name="Normal distribution PDF",
        x_range=(-5.0, 5.0),
        xt_range=(-5.0, 5.0),
        fn=lambda x: 1.0 / np.sqrt(2 * np.pi) * np.exp(-0.5 * x ** 2),
    ),
    ExampleFunction(
        name="Sigmoid function",
        x_range=(-5.0, 5.0),
        xt_range=(-10.0, 10.0),
        fn=lambda x: 1.0 / (1.0 + np.exp(-x)),
    ),
    # Degenerate training range, used to show a single-point posterior.
    ExampleFunction(
        name="Point",
        x_range=(-0.05, 0.05),
        xt_range=(-4.0, 4.0),
        fn=lambda x: x,
        hidden=True,
    ),
)


def visible_functions():
    return [f for f in CATALOGUE if not f.hidden]


def get_example_function(key: Union[int, str]) -> ExampleFunction:
    """Look up a catalogue entry by index or name."""
    if isinstance(key, str):
        for entry in CATALOGUE:
            if entry.name == key:
                return entry
        raise KeyError(f"Unknown example function: {key!r}")
    if not 0 <= key < len(CATALOGUE):
        raise KeyError(f"Example index {key} out of range [0, {len(CATALOGUE)})")
    return CATALOGUE[key]


class Example:
    """
    Noisy training set drawn from a catalogue function.
    
    Parameters
    ----------
    function : ExampleFunction, int or str
        Catalogue entry (or its index / name).
    sample_method : {"systematic", "random"}, default="systematic"
        Evenly spaced training inputs, or uniform random ones over ``x_range``.
    y_noise_std : float, default=0.1
        Standard deviation of the Gaussian noise added to the targets.
    num_predictions : int, default=200
        Size of the prediction grid over ``xt_range``.
    num_samples : int, default=8
        Number of training points.
    seed : int, optional
        Seed for the training inputs and noise. Defaults to ``get_config().seed``.
    """

    def __init__(
        self,
        function: Union[ExampleFunction, int, str] = 0,
        sample_method: str = "systematic",
        y_noise_std: float = DEFAULT_Y_NOISE,
        num_predictions: int = DEFAULT_RESOLUTION,
        num_samples: int = DEFAULT_NUM_SAMPLES,
        seed: Optional[int] = None
    ):
        if not isinstance(function, ExampleFunction):
            function = get_example_function(function)
        if sample_method not in SAMPLE_METHODS:
            raise ValueError(f"sample_method must be one of {SAMPLE_METHODS}, got {sample_method!r}")
        if num_samples < 1:
            raise ValueError(f"num_samples must be at least 1, got {num_samples}")
        if num_predictions < 2:
            raise ValueError(f"num_predictions must be at least 2, got {num_predictions}")
        if y_noise_std < 0:
            raise ValueError(f"y_noise_std must be non-negative, got {y_noise_std}")

        self.function = function
        self.sample_method = sample_method
        self.y_noise_std = float(y_noise_std)
        self.seed = get_config().seed if seed is None else seed
        self.rng = np.random.default_rng(self.seed)

        x_min, x_max = function.x_range
        if sample_method == "random":
            X = self.rng.uniform(x_min, x_max, size=num_samples)
        else:
            X = np.linspace(x_min, x_max, num_samples)
        self.X = X.reshape(-1, 1)

        noise = self.y_noise_std * standard_normal(self.X.shape, self.rng)
        self.y = np.asarray(function.fn(self.X), dtype=np.float64) + noise

        self.Xt = np.linspace(*function.xt_range, num_predictions).reshape(-1, 1)
        self.yt = np.array(function.fn(self.Xt), dtype=np.float64)

        logger.info(
            f"Example '{function.name}': {num_samples} {sample_method} samples, "
            f"noise std {self.y_noise_std}"
        )

    def _noise(self, s: Optional[float]) -> float:
        # None means "match the sample noise"
        return self.y_noise_std if s is None else s

    def fit(
        self,
        v: float = 1.0,
        l: float = 1.0,
        s: Optional[float] = None,
        m: Union[float, str, PriorMean, None] = "auto"
    ) -> GaussianProcessRegressor:
        return GaussianProcessRegressor(self.X, self.y, v=v, l=l, s=self._noise(s), m=m)

    def predict(
        self,
        v: float = 1.0,
        l: float = 1.0,
        s: Optional[float] = None,
        m: Union[float, str, PriorMean, None] = "auto"
    ) -> Posterior:
        """Posterior over the prediction grid ``Xt``."""
        return self.fit(v=v, l=l, s=s, m=m).predict(self.Xt)

    def take_samples(
        self,
        num_draws: int = DEFAULT_NUM_FN_SAMPLES,
        resolution: int = DEFAULT_FUNCTION_SAMPLE_RESOLUTION,
        v: float = 1.0,
        l: float = 1.0,
        s: Optional[float] = None,
        m: Union[float, str, PriorMean, None] = "auto",
        random_state=None
    ) -> Tuple[np.ndarray, np.ndarray]:
        """
        Posterior sample paths over the prediction range.
        
        Returns
        -------
        Xd : np.ndarray, shape (resolution + 1, 1)
        draws : np.ndarray, shape (resolution + 1, num_draws)
        """
        Xd = np.linspace(*self.function.xt_range, resolution + 1).reshape(-1, 1)
        regressor = self.fit(v=v, l=l, s=s, m=m)
        return Xd, sample_from_posterior(regressor, num_draws, Xd, random_state=random_state)

    def take_std_samples(
        self,
        num_draws: int = DEFAULT_NUM_STD_GP_SAMPLES,
        resolution: Optional[int] = None,
        v: float = 1.0,
        l: float = 1.0,
        random_state=None
    ) -> Tuple[np.ndarray, np.ndarray]:
        """Prior sample paths on the standard grid; returns ``(grid, draws)``."""
        return sample_standard_prior(num_draws, resolution, v=v, l=l, random_state=random_state)
