"""
Dense 2-D Matrix

This module implements the matrix abstraction the network is built on. A
Matrix has a fixed shape and mutable contents, and offers the handful of
primitives backpropagation needs: element-wise mapping, addition, Hadamard
and scalar multiplication, transposition and the true matrix product.

Storage is a float64 NumPy array. Instance methods mutate the receiver,
static methods return a new Matrix and leave their operands untouched.

Classes:
    Matrix: Fixed-shape 2-D array of real numbers
    ShapeMismatchError: Raised when operand shapes are incompatible
"""

from typing import Callable, List, Sequence, Tuple

import numpy as np

# func(value, row, col) -> new value
CellFunction = Callable[[float, int, int], float]
# func(array) -> array of the same shape
ArrayFunction = Callable[[np.ndarray], np.ndarray]


class ShapeMismatchError(ValueError):
    """Raised when a matrix operation is given operands of incompatible shape."""


class Matrix:
    """
    Fixed-shape 2-D matrix of real numbers.

    The shape only changes through transpose_in_place(), which swaps rows,
    columns and data together. Every mutation builds the new grid first and
    then commits it in a single step, so an operation whose operand is the
    receiver itself (m.add(m)) reads consistent values.

    Attributes:
        rows: Number of rows
        cols: Number of columns
        data: Backing array of shape (rows, cols)

    Example:
        >>> a = Matrix.from_column([1.0, 2.0])
        >>> b = Matrix.transpose(a)
        >>> Matrix.matrix_multiply(a, b).shape
        (2, 2)
    """

    def __init__(self, rows: int, cols: int):
        """
        Create a zero matrix.

        Args:
            rows: Number of rows (positive)
            cols: Number of columns (positive)
        """
        if not _is_positive_int(rows) or not _is_positive_int(cols):
            raise ValueError(
                f"Matrix dimensions must be positive integers, got ({rows!r}, {cols!r})"
            )
        self._data = np.zeros((int(rows), int(cols)), dtype=np.float64)

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------

    @staticmethod
    def from_column(values: Sequence[float]) -> "Matrix":
        """
        Create a single-column matrix from a sequence of values.

        Args:
            values: Values for data[i][0]

        Returns:
            Matrix of shape (len(values), 1)

        Raises:
            ShapeMismatchError: If values is not a flat sequence
        """
        column = np.asarray(values, dtype=np.float64)
        if column.ndim != 1:
            raise ShapeMismatchError(
                f"from_column() needs a flat sequence, got shape {column.shape}"
            )
        result = Matrix(len(column), 1)
        result._data[:, 0] = column
        return result

    @staticmethod
    def from_array(array) -> "Matrix":
        """Create a matrix holding a copy of a 2-D array-like."""
        array = np.array(array, dtype=np.float64)
        if array.ndim != 2 or array.size == 0:
            raise ValueError(f"Expected a non-empty 2-D array, got shape {array.shape}")
        return Matrix._wrap(array)

    @classmethod
    def _wrap(cls, array: np.ndarray) -> "Matrix":
        # Takes ownership of a freshly computed 2-D float64 array, no copy
        result = cls.__new__(cls)
        result._data = array
        return result

    def copy(self) -> "Matrix":
        return Matrix.from_array(self._data)

    # ------------------------------------------------------------------
    # Shape and conversion
    # ------------------------------------------------------------------

    @property
    def rows(self) -> int:
        return self._data.shape[0]

    @property
    def cols(self) -> int:
        return self._data.shape[1]

    @property
    def shape(self) -> Tuple[int, int]:
        return self._data.shape

    @property
    def data(self) -> np.ndarray:
        return self._data

    def to_column_array(self) -> List[float]:
        """
        Return the single column of this matrix as a list.

        Raises:
            ShapeMismatchError: If the matrix has more than one column
        """
        if self.cols != 1:
            raise ShapeMismatchError(
                f"to_column_array() needs a single-column matrix, got shape {self.shape}"
            )
        return self._data[:, 0].tolist()

    def to_list(self) -> List[List[float]]:
        return self._data.tolist()

    # ------------------------------------------------------------------
    # In-place operations
    # ------------------------------------------------------------------

    def add(self, other: "Matrix") -> None:
        """Add another matrix of the same shape element-wise."""
        _check_same_shape("add", self, other)
        self._replace(self._data + other._data)

    def multiply_elementwise(self, other: "Matrix") -> None:
        """Multiply element-wise (Hadamard product) by a matrix of the same shape."""
        _check_same_shape("multiply_elementwise", self, other)
        self._replace(self._data * other._data)

    def multiply_scalar(self, value: float) -> None:
        self._replace(self._data * value)

    def map_in_place(self, func: CellFunction) -> None:
        """
        Replace every element with func(value, row, col).

        The new grid is computed completely before it replaces the old one,
        so func always sees the original values.

        Args:
            func: Function of (value, row, col) returning the new value
        """
        self._replace(Matrix.mapped(self, func)._data)

    def apply_in_place(self, func: ArrayFunction) -> None:
        """
        Replace the contents with func(data) for a vectorized func.

        This is the value-only counterpart of map_in_place(): func receives
        the whole array at once (e.g. np.exp) instead of one cell at a time.
        """
        self._replace(Matrix.applied(self, func)._data)

    def transpose_in_place(self) -> None:
        """Transpose this matrix, swapping its shape and contents together."""
        self._replace(Matrix.transpose(self)._data)

    # ------------------------------------------------------------------
    # Pure (static) operations
    # ------------------------------------------------------------------

    @staticmethod
    def mapped(matrix: "Matrix", func: CellFunction) -> "Matrix":
        """
        Return a new matrix whose elements are func(value, row, col).

        Args:
            matrix: Source matrix, left untouched
            func: Function of (value, row, col) returning the new value

        Returns:
            New matrix of the same shape
        """
        source = matrix._data
        result = Matrix(matrix.rows, matrix.cols)
        for row in range(matrix.rows):
            for col in range(matrix.cols):
                result._data[row, col] = func(float(source[row, col]), row, col)
        return result

    @staticmethod
    def applied(matrix: "Matrix", func: ArrayFunction) -> "Matrix":
        """Return a new matrix holding func(matrix.data)."""
        values = np.asarray(func(matrix._data.copy()), dtype=np.float64)
        if values.shape != matrix.shape:
            raise ShapeMismatchError(
                f"Element-wise function changed shape {matrix.shape} to {values.shape}"
            )
        return Matrix._wrap(values)

    @staticmethod
    def subtract(a: "Matrix", b: "Matrix") -> "Matrix":
        """Return a - b, element-wise."""
        _check_same_shape("subtract", a, b)
        return Matrix._wrap(a._data - b._data)

    @staticmethod
    def transpose(matrix: "Matrix") -> "Matrix":
        """Return the transpose of matrix, with shape (cols, rows)."""
        return Matrix._wrap(matrix._data.T.copy())

    @staticmethod
    def matrix_multiply(a: "Matrix", b: "Matrix") -> "Matrix":
        """
        Return the matrix product a · b.

        result[i][j] = sum_k a[i][k] * b[k][j]

        Args:
            a: Left operand, shape (n, m)
            b: Right operand, shape (m, p)

        Returns:
            Matrix of shape (n, p)

        Raises:
            ShapeMismatchError: If a.cols != b.rows
        """
        if a.cols != b.rows:
            raise ShapeMismatchError(
                f"matrix_multiply: cannot multiply {a.shape} by {b.shape} "
                f"(inner dimensions {a.cols} and {b.rows} differ)"
            )
        return Matrix._wrap(a._data @ b._data)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _replace(self, values: np.ndarray) -> None:
        # Single assignment keeps rows, cols and data consistent
        self._data = np.ascontiguousarray(values, dtype=np.float64)

    def __eq__(self, other) -> bool:
        if not isinstance(other, Matrix):
            return NotImplemented
        return self.shape == other.shape and bool(np.array_equal(self._data, other._data))

    __hash__ = None

    def __repr__(self) -> str:
        return f"Matrix(rows={self.rows}, cols={self.cols}, data={self._data.tolist()})"


def _is_positive_int(value) -> bool:
    return isinstance(value, (int, np.integer)) and not isinstance(value, bool) and value > 0


def _check_same_shape(operation: str, a: Matrix, b: Matrix) -> None:
    if a.shape != b.shape:
        raise ShapeMismatchError(
            f"{operation}: shapes {a.shape} and {b.shape} must be identical"
        )
