"""
Error taxonomy for the GP engine.

Every error carries enough context to tell the user which shape or
hyperparameter was at fault, without exposing internal tracebacks.
"""

from typing import Optional, Sequence, Tuple

import numpy as np


class GPVizError(Exception):
    """Base class for all engine errors."""

    kind = "GPVizError"

    def describe(self) -> str:
        """User-facing message: error kind followed by the detail."""
        return f"{self.kind}: {self}"


class DimensionMismatch(GPVizError, ValueError):
    """
    Caller-supplied shapes are incompatible.

    Parameters
    ----------
    message : str
        What was being checked.
    shapes : sequence of tuple, optional
        The offending shapes, in argument order.
    """

    kind = "DimensionMismatch"

    def __init__(self, message: str, shapes: Optional[Sequence[Tuple[int, ...]]] = None):
        self.shapes = tuple(tuple(s) for s in shapes) if shapes is not None else ()
        if self.shapes:
            message = f"{message} (shapes: {', '.join(str(s) for s in self.shapes)})"
        super().__init__(message)


class InvalidHyperparameter(GPVizError, ValueError):
    """A hyperparameter lies outside its admissible range."""

    kind = "InvalidHyperparameter"

    def __init__(self, parameter: str, value, requirement: str):
        self.parameter = parameter
        self.value = value
        self.requirement = requirement
        super().__init__(f"{parameter}={value!r} is invalid, must be {requirement}")


class SingularMatrix(GPVizError, np.linalg.LinAlgError):
    """
    Numerical inversion or factorisation failed.

    Raised after the engine's own jitter strategy has been exhausted.
    """

    kind = "SingularMatrix"

    def __init__(
        self,
        message: str,
        jitter: Optional[float] = None,
        condition_number: Optional[float] = None
    ):
        self.jitter = jitter
        self.condition_number = condition_number
        details = []
        if jitter is not None:
            details.append(f"jitter={jitter:.2e}")
        if condition_number is not None:
            details.append(f"cond={condition_number:.2e}")
        if details:
            message = f"{message} ({', '.join(details)})"
        super().__init__(message)
