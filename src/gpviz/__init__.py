"""
Gaussian Process regression engine for interactive visualisation.

Computes posterior predictive distributions under a squared-exponential
prior with user-supplied hyperparameters, and draws sample paths from the
posterior or the prior.
"""

from .errors import GPVizError, DimensionMismatch, InvalidHyperparameter, SingularMatrix
from .config import get_config, reset_config
from .linalg import Matrix
from .kernels import RBF
from .hyperparameters import Hyperparameters, PriorMean
from .regression import GaussianProcessRegressor, Posterior
from .sampling import (
    MultivariateNormalSampler, sample_prior, sample_from_posterior, standard_grid
)
from .engine import GPEngine, BackendHandle
from . import examples

__version__ = "0.1.0"
__all__ = [
    'GPVizError',
    'DimensionMismatch',
    'InvalidHyperparameter',
    'SingularMatrix',
    'get_config',
    'reset_config',
    'Matrix',
    'RBF',
    'Hyperparameters',
    'PriorMean',
    'GaussianProcessRegressor',
    'Posterior',
    'MultivariateNormalSampler',
    'sample_prior',
    'sample_from_posterior',
    'standard_grid',
    'GPEngine',
    'BackendHandle',
    'examples',
]
