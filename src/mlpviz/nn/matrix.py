from __future__ import annotations

from typing import TYPE_CHECKING, Optional, Sequence

import numpy as np

from mlpviz.errors import InvalidShape, OutOfBounds, ShapeMismatch

if TYPE_CHECKING:
    import numpy.typing as npt

    from mlpviz.nn.activation import ActivationKind


class Matrix:
    """
    Dense 2-D matrix of float64 values stored row-major.

    The values live in a numpy array of shape (rows, cols). A matrix can also
    wrap a view into a larger buffer (see Network), so every in-place
    operation writes through `self.data[...]` and never rebinds the array.
    """

    __slots__ = ("rows", "cols", "data")

    def __init__(
        self,
        rows: int,
        cols: int,
        data: Optional[npt.NDArray[np.float64]] = None
    ) -> None:
        """
        Allocate a zero-filled matrix, or wrap an existing array.

        Args:
            rows: Number of rows, at least 1.
            cols: Number of columns, at least 1.
            data: Optional array of shape (rows, cols) to wrap without copying.

        Raises:
            InvalidShape: If rows or cols is smaller than 1, or `data` has the wrong shape.
        """
        if rows < 1 or cols < 1:
            raise InvalidShape(f"Matrix dimensions must be positive, got {rows}x{cols}.")

        if data is None:
            data = np.zeros((rows, cols), dtype=np.float64)
        elif data.shape != (rows, cols):
            raise InvalidShape(f"Data of shape {data.shape} does not fit a {rows}x{cols} matrix.")
        elif data.dtype != np.float64:
            raise InvalidShape(f"Matrix data must be float64, got {data.dtype}.")

        self.rows = int(rows)
        self.cols = int(cols)
        self.data: npt.NDArray[np.float64] = data

    @classmethod
    def from_rows(cls, rows: Sequence[Sequence[float]]) -> Matrix:
        """Build a matrix from nested sequences, one inner sequence per row."""
        array = np.array(rows, dtype=np.float64)
        if array.ndim == 1:
            array = array.reshape(1, -1)
        if array.ndim != 2 or array.size == 0:
            raise InvalidShape(f"Cannot build a matrix from data of shape {array.shape}.")
        return cls(array.shape[0], array.shape[1], np.ascontiguousarray(array))

    @classmethod
    def from_array(cls, array: npt.ArrayLike) -> Matrix:
        """Copy any 2-D array-like into a new matrix."""
        array = np.array(array, dtype=np.float64, copy=True, order="C")
        if array.ndim != 2:
            raise InvalidShape(f"Expected a 2-D array, got {array.ndim} dimensions.")
        return cls(array.shape[0], array.shape[1], array)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(rows={self.rows}, cols={self.cols})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Matrix):
            return NotImplemented
        return self.shape == other.shape and bool(np.array_equal(self.data, other.data))

    __hash__ = None

    @property
    def shape(self) -> tuple[int, int]:
        return self.rows, self.cols

    @property
    def size(self) -> int:
        return self.rows * self.cols

    def _check_index(self, r: int, c: int) -> None:
        if not (0 <= r < self.rows and 0 <= c < self.cols):
            raise OutOfBounds(f"Index ({r}, {c}) out of range for a {self.rows}x{self.cols} matrix.")

    def get(self, r: int, c: int) -> float:
        self._check_index(r, c)
        return float(self.data[r, c])

    def set(self, r: int, c: int, value: float) -> None:
        self._check_index(r, c)
        self.data[r, c] = value

    def fill(self, value: float) -> None:
        self.data[...] = value

    def randomize(
        self,
        low: float,
        high: float,
        rng: Optional[np.random.Generator] = None
    ) -> None:
        """
        Fill every element with an independent uniform draw from [low, high].

        Args:
            low: Lower bound.
            high: Upper bound.
            rng: Random generator. A fresh unseeded one is used when omitted.
        """
        if rng is None:
            rng = np.random.default_rng()
        self.data[...] = rng.uniform(low, high, size=self.shape)

    def row(self, r: int) -> Matrix:
        """Return a copy of row `r` as a 1 x cols matrix."""
        if not 0 <= r < self.rows:
            raise OutOfBounds(f"Row {r} out of range for a matrix with {self.rows} rows.")
        return Matrix(1, self.cols, self.data[r:r + 1, :].copy())

    def transpose(self) -> Matrix:
        return Matrix(self.cols, self.rows, np.ascontiguousarray(self.data.T))

    def add_in_place(self, other: Matrix, broadcast: bool = False) -> None:
        """
        Elementwise addition `self += other`.

        Args:
            other: Matrix of the same shape. With `broadcast=True` a (rows x 1)
                column is also accepted and added to every column.
            broadcast: Allow adding a column vector across all columns.

        Raises:
            ShapeMismatch: If the shapes do not agree.
        """
        if other.shape == self.shape:
            self.data += other.data
        elif broadcast and other.cols == 1 and other.rows == self.rows:
            self.data += other.data
        else:
            raise ShapeMismatch(f"Cannot add a {other.rows}x{other.cols} matrix to a {self.rows}x{self.cols} matrix.")

    def apply_activation(self, kind: ActivationKind) -> None:
        kind.apply_in_place(self.data)

    def copy(self) -> Matrix:
        return Matrix(self.rows, self.cols, self.data.copy())

    def frozen_copy(self) -> Matrix:
        """Deep copy whose array rejects writes."""
        data = self.data.copy()
        data.setflags(write=False)
        return Matrix(self.rows, self.cols, data)

    def to_list(self) -> list[list[float]]:
        return self.data.tolist()


def multiply(a: Matrix, b: Matrix) -> Matrix:
    """
    Standard matrix product.

    Raises:
        ShapeMismatch: If `a.cols != b.rows`.

    Returns:
        New matrix of shape (a.rows, b.cols).
    """
    if a.cols != b.rows:
        raise ShapeMismatch(f"Cannot multiply {a.rows}x{a.cols} by {b.rows}x{b.cols}.")
    return Matrix(a.rows, b.cols, np.ascontiguousarray(a.data @ b.data))
