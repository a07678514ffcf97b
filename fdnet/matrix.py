from __future__ import annotations

import math
import random
from collections.abc import Callable, Sequence


class ShapeError(ValueError):
    """Raised when operand shapes disagree."""


def sigmoid(x: float) -> float:
    if x >= 0:
        return 1.0 / (1.0 + math.exp(-x))
    # exp(-x) overflows for large negative x
    z = math.exp(x)
    return z / (1.0 + z)


class Matrix:
    """Dense row-major matrix of floats backed by one flat list."""

    def __init__(self, rows: int, cols: int) -> None:
        if rows < 0 or cols < 0:
            raise ValueError(f"Matrix shape must be non-negative, got ({rows}, {cols})")
        self.rows = rows
        self.cols = cols
        self.data: list[float] = [0.0] * (rows * cols)

    @classmethod
    def from_rows(cls, rows: Sequence[Sequence[float]]) -> Matrix:
        if not rows:
            raise ShapeError("Cannot build a matrix from zero rows")
        cols = len(rows[0])
        result = cls(len(rows), cols)
        data = []
        for i, row in enumerate(rows):
            if len(row) != cols:
                raise ShapeError(f"Row {i} has {len(row)} values, expected {cols}")
            data.extend(float(v) for v in row)
        result.data = data
        return result

    @property
    def shape(self) -> tuple[int, int]:
        return self.rows, self.cols

    def fill(self, value: float) -> None:
        for k in range(len(self.data)):
            self.data[k] = value

    def randomize(self, low: float, high: float, rng: random.Random | None = None) -> None:
        source = rng if rng is not None else random
        span = high - low
        for k in range(len(self.data)):
            self.data[k] = source.random() * span + low

    def _offset(self, i: int, j: int) -> int:
        if not (0 <= i < self.rows and 0 <= j < self.cols):
            raise IndexError(f"Index ({i}, {j}) out of range for shape {self.shape}")
        return i * self.cols + j

    def __getitem__(self, key: tuple[int, int]) -> float:
        return self.data[self._offset(*key)]

    def __setitem__(self, key: tuple[int, int], value: float) -> None:
        self.data[self._offset(*key)] = value

    def row(self, i: int) -> list[float]:
        if not 0 <= i < self.rows:
            raise IndexError(f"Row {i} out of range for {self.rows} rows")
        start = i * self.cols
        return self.data[start : start + self.cols]

    def set_row(self, i: int, values: Sequence[float]) -> None:
        if not 0 <= i < self.rows:
            raise IndexError(f"Row {i} out of range for {self.rows} rows")
        if len(values) != self.cols:
            raise ShapeError(f"Row needs {self.cols} values, got {len(values)}")
        start = i * self.cols
        self.data[start : start + self.cols] = [float(v) for v in values]

    def to_rows(self) -> list[list[float]]:
        return [self.row(i) for i in range(self.rows)]

    def copy(self) -> Matrix:
        result = Matrix(self.rows, self.cols)
        result.data = list(self.data)
        return result

    def add(self, other: Matrix) -> Matrix:
        if self.shape != other.shape:
            raise ShapeError(f"Cannot add {self.shape} and {other.shape}")
        result = Matrix(self.rows, self.cols)
        result.data = [a + b for a, b in zip(self.data, other.data)]
        return result

    def dot(self, other: Matrix) -> Matrix:
        if self.cols != other.rows:
            raise ShapeError(f"Cannot multiply {self.shape} by {other.shape}")
        inner = self.cols
        result = Matrix(self.rows, other.cols)
        for i in range(self.rows):
            for j in range(other.cols):
                acc = 0.0
                for k in range(inner):
                    acc += self.data[i * inner + k] * other.data[k * other.cols + j]
                result.data[i * other.cols + j] = acc
        return result

    def apply(self, fn: Callable[[float], float]) -> Matrix:
        result = Matrix(self.rows, self.cols)
        result.data = [fn(v) for v in self.data]
        return result

    def sigmoid(self) -> Matrix:
        return self.apply(sigmoid)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Matrix):
            return NotImplemented
        return self.shape == other.shape and self.data == other.data

    def __repr__(self) -> str:
        return f"Matrix(rows={self.rows}, cols={self.cols})"
