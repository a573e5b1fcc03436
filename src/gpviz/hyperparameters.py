"""
Hyperparameters of the GP prior.

The prior mean is an explicit sum type: either derived from the training
targets (``PriorMean.auto()``) or a fixed value (``PriorMean.fixed(m)``).
"""

import numpy as np
from dataclasses import dataclass
from typing import Optional, Union

from .errors import InvalidHyperparameter
from .kernels import check_scale

AUTO = "auto"


@dataclass(frozen=True)
class PriorMean:
    """Prior mean m: ``value is None`` means "use the mean of y"."""

    value: Optional[float] = None

    @classmethod
    def auto(cls) -> "PriorMean":
        return cls(None)

    @classmethod
    def fixed(cls, value: float) -> "PriorMean":
        try:
            value = float(value)
        except (TypeError, ValueError):
            raise InvalidHyperparameter("m", value, "a real number or 'auto'") from None
        if not np.isfinite(value):
            raise InvalidHyperparameter("m", value, "a finite real number or 'auto'")
        return cls(value)

    @classmethod
    def coerce(cls, m: Union["PriorMean", float, str, None]) -> "PriorMean":
        """Accept a ``PriorMean``, a number, or ``"auto"``/None for the data mean."""
        if isinstance(m, PriorMean):
            return m
        if m is None or (isinstance(m, str) and m.lower() == AUTO):
            return cls.auto()
        return cls.fixed(m)

    @property
    def is_auto(self) -> bool:
        return self.value is None

    def resolve(self, y: np.ndarray) -> float:
        if self.value is not None:
            return self.value
        return float(np.mean(y)) if np.size(y) else 0.0

    def __str__(self):
        return AUTO if self.is_auto else repr(self.value)


@dataclass(frozen=True)
class Hyperparameters:
    """
    Validated hyperparameter set.
    
    Parameters
    ----------
    v : float
        Vertical (output) scale, > 0.
    l : float
        Length scale, > 0.
    s : float
        Observation noise standard deviation, >= 0.
    m : PriorMean
        Prior mean.
    """

    v: float = 1.0
    l: float = 1.0
    s: float = 0.0
    m: PriorMean = PriorMean()

    def __post_init__(self):
        # frozen: validated values go through object.__setattr__
        object.__setattr__(self, "v", check_scale("v", self.v))
        object.__setattr__(self, "l", check_scale("l", self.l))
        object.__setattr__(self, "s", check_noise(self.s))
        object.__setattr__(self, "m", PriorMean.coerce(self.m))


def check_noise(s: float) -> float:
    try:
        s = float(s)
    except (TypeError, ValueError):
        raise InvalidHyperparameter("s", s, "a non-negative real number") from None
    if not np.isfinite(s) or s < 0.0:
        raise InvalidHyperparameter("s", s, "a non-negative real number")
    return s
