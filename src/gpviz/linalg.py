"""
Dense linear-algebra primitives used by the GP engine.

Internally a matrix is a two-dimensional, C-contiguous (row-major) float64
``np.ndarray``. Every operation validates shapes, raises ``DimensionMismatch``
on incompatible inputs and returns a freshly allocated array, so no result
ever aliases an argument.

``Matrix`` is the boundary representation: a flat row-major buffer with
explicit row and column counts, used wherever data crosses the engine
interface so that the element order is never inferred from nesting.
"""

import logging
from typing import Optional, Union

import numpy as np

from .base import RandomState, cholesky_solve, make_rng
from .config import get_config
from .errors import DimensionMismatch, SingularMatrix

logger = logging.getLogger(__name__)


class Matrix:
    """
    Row-major matrix with explicit dimensions.

    Element ``(i, j)`` lives at ``data[i * cols + j]``.

    Parameters
    ----------
    data : array_like
        Flat buffer of ``rows * cols`` values.
    rows, cols : int
        Matrix dimensions.
    """

    __slots__ = ("data", "rows", "cols")

    def __init__(self, data, rows: int, cols: int):
        buf = np.array(data, dtype=np.float64).ravel()
        rows, cols = int(rows), int(cols)
        if rows < 0 or cols < 0 or buf.size != rows * cols:
            raise DimensionMismatch(
                f"Buffer of length {buf.size} does not match a {rows}x{cols} matrix"
            )
        buf.setflags(write=False)
        self.data = buf
        self.rows = rows
        self.cols = cols

    @classmethod
    def from_array(cls, a) -> "Matrix":
        """Build from a 1-D (taken as a column) or 2-D array-like."""
        arr = as_array(a)
        return cls(arr.ravel(order="C"), arr.shape[0], arr.shape[1])

    @classmethod
    def range(cls, start: float, stop: float, num: int) -> "Matrix":
        """Column vector of ``num`` evenly spaced values over ``[start, stop]``."""
        values = np.linspace(start, stop, int(num))
        return cls(values, values.size, 1)

    @classmethod
    def rand(cls, rows: int, cols: int, random_state: RandomState = None) -> "Matrix":
        """Matrix of uniform ``[0, 1)`` values; ``random_state`` is a seed or Generator."""
        rng = make_rng(random_state)
        return cls(rng.random(rows * cols), rows, cols)

    @property
    def shape(self):
        return (self.rows, self.cols)

    def to_array(self) -> np.ndarray:
        """Return a writable ``rows x cols`` copy."""
        return self.data.reshape(self.rows, self.cols).copy()

    def get(self, i: int, j: int) -> float:
        if not (0 <= i < self.rows and 0 <= j < self.cols):
            raise IndexError(f"Index ({i}, {j}) out of range for {self.rows}x{self.cols} matrix")
        return float(self.data[i * self.cols + j])

    def row(self, i: int) -> np.ndarray:
        if not 0 <= i < self.rows:
            raise IndexError(f"Row {i} out of range for {self.rows} rows")
        start = i * self.cols
        return self.data[start:start + self.cols].copy()

    def col(self, j: int) -> np.ndarray:
        if not 0 <= j < self.cols:
            raise IndexError(f"Column {j} out of range for {self.cols} columns")
        return self.data[j::self.cols].copy()

    def __eq__(self, other):
        if not isinstance(other, Matrix):
            return NotImplemented
        return self.shape == other.shape and bool(np.array_equal(self.data, other.data))

    def __repr__(self):
        return f"Matrix(rows={self.rows}, cols={self.cols})"


MatrixLike = Union[Matrix, np.ndarray, list, tuple]


def as_array(A: MatrixLike) -> np.ndarray:
    """
    Convert ``A`` into a 2-D row-major float64 array.

    A ``Matrix`` is reshaped with its declared dimensions; a 1-D array-like is
    treated as a column vector.
    """
    if isinstance(A, Matrix):
        return A.to_array()
    arr = np.array(A, dtype=np.float64, order="C")
    if arr.ndim == 0:
        arr = arr.reshape(1, 1)
    elif arr.ndim == 1:
        arr = arr.reshape(-1, 1)
    elif arr.ndim > 2:
        raise DimensionMismatch("Expected a matrix or vector", shapes=[arr.shape])
    return arr


def check_finite(A: np.ndarray, name: str) -> np.ndarray:
    if not np.all(np.isfinite(A)):
        raise ValueError(f"{name} contains NaN or infinite values")
    return A


def _require_same_shape(A: np.ndarray, B: np.ndarray, op: str) -> None:
    if A.shape != B.shape:
        raise DimensionMismatch(f"{op} requires matrices of equal shape", shapes=[A.shape, B.shape])


def _require_square(A: np.ndarray, op: str) -> None:
    if A.shape[0] != A.shape[1]:
        raise DimensionMismatch(f"{op} requires a square matrix", shapes=[A.shape])


def add(A: MatrixLike, B: MatrixLike) -> np.ndarray:
    A, B = as_array(A), as_array(B)
    _require_same_shape(A, B, "add")
    return A + B


def subtract(A: MatrixLike, B: MatrixLike) -> np.ndarray:
    A, B = as_array(A), as_array(B)
    _require_same_shape(A, B, "subtract")
    return A - B


def add_scalar(A: MatrixLike, c: float) -> np.ndarray:
    """Broadcast ``c`` over every element of ``A``."""
    return as_array(A) + float(c)


def scale(A: MatrixLike, c: float) -> np.ndarray:
    return as_array(A) * float(c)


def multiply(A: MatrixLike, B: MatrixLike) -> np.ndarray:
    """Matrix product ``A B``."""
    A, B = as_array(A), as_array(B)
    if A.shape[1] != B.shape[0]:
        raise DimensionMismatch(
            "multiply requires A.cols == B.rows", shapes=[A.shape, B.shape]
        )
    return A @ B


def transpose(A: MatrixLike) -> np.ndarray:
    return np.ascontiguousarray(as_array(A).T)


def identity(n: int, factor: float = 1.0) -> np.ndarray:
    """``factor * I_n``, used to regularise kernel diagonals."""
    if n < 0:
        raise DimensionMismatch("identity size must be non-negative", shapes=[(n,)])
    return np.eye(n) * float(factor)


def diagonal(A: MatrixLike) -> np.ndarray:
    """Return ``A[i, i]`` as an ``n x 1`` column."""
    A = as_array(A)
    _require_square(A, "diagonal")
    return np.diag(A).copy().reshape(-1, 1)


def frobenius_norm(A: MatrixLike) -> float:
    return float(np.linalg.norm(as_array(A), ord="fro"))


def invert(A: MatrixLike, max_condition: Optional[float] = None) -> np.ndarray:
    """
    Invert a symmetric positive-definite matrix.

    The inverse is obtained from a Cholesky factorisation, ``A^{-1} = L^{-T} L^{-1}``,
    and symmetrised to remove rounding asymmetry.

    Parameters
    ----------
    A : matrix-like, shape (n, n)
        Symmetric positive-definite matrix (already regularised by the caller).
    max_condition : float, optional
        Largest acceptable 2-norm condition number. Defaults to
        ``get_config().max_condition``.

    Returns
    -------
    A_inv : np.ndarray, shape (n, n)

    Raises
    ------
    DimensionMismatch
        If ``A`` is not square.
    SingularMatrix
        If the factorisation hits a non-positive pivot or the condition number
        exceeds ``max_condition``.
    """
    A = as_array(A)
    _require_square(A, "invert")
    if max_condition is None:
        max_condition = get_config().max_condition

    n = A.shape[0]
    if n == 0:
        return np.zeros((0, 0))

    try:
        L = np.linalg.cholesky(A)
    except np.linalg.LinAlgError as exc:
        raise SingularMatrix("Matrix is not positive definite") from exc

    cond = float(np.linalg.cond(A))
    if not np.isfinite(cond) or cond > max_condition:
        raise SingularMatrix("Matrix is numerically singular", condition_number=cond)

    logger.debug(f"Inverting {n}x{n} matrix, cond={cond:.2e}")
    A_inv = cholesky_solve(L, np.eye(n))
    return 0.5 * (A_inv + A_inv.T)
