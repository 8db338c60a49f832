"""Square sparse matrices in compressed form and their structural operations."""

from __future__ import annotations

import math
import operator
from collections.abc import Iterator, Sequence
from dataclasses import dataclass
from functools import reduce
from itertools import groupby, pairwise

PIVOT_TOLERANCE = 1.0e-3
MEMORY_GROW = 1.5
PIPELINE_THRESHOLD = 16
STATIC_MEMORY_MULT = 3.0
STATIC_RNNZ_UB = 2
LOAD_BALANCE = 0.95
SYNC_CYCLES = 30.0
AMD_FLAG1 = 1
AMD_FLAG2 = 10.0


class SparseError(Exception):
    """Base class for errors raised by the sparse solver."""


class MatrixInvalidError(SparseError, ValueError):
    """The matrix structure is malformed."""


class StructurallySingularError(SparseError):
    """The matrix has no full structural matching."""


class NumericallySingularError(SparseError):
    """A zero pivot or an all-zero scaling factor was met."""


@dataclass
class CompressedMatrix:
    """An n-by-n matrix stored line by line (rows for CSR, columns for CSC).

    ``ap`` holds n+1 offsets; the entries of line ``i`` are
    ``ai[ap[i]:ap[i+1]]`` (minor indices) and ``ax[ap[i]:ap[i+1]]`` (values).
    """

    n: int
    ax: list[float]
    ai: list[int]
    ap: list[int]

    def __post_init__(self) -> None:
        self.ax = [float(v) for v in self.ax]
        self.ai = [int(i) for i in self.ai]
        self.ap = [int(p) for p in self.ap]

    @property
    def nnz(self) -> int:
        """Number of stored entries."""
        return len(self.ai)

    def validate(self) -> CompressedMatrix:
        """Check the structure and return self; raise MatrixInvalidError if broken."""
        if self.n <= 0:
            raise MatrixInvalidError("matrix order must be positive")
        if self.nnz == 0:
            raise MatrixInvalidError("matrix has no entries")
        if len(self.ax) != len(self.ai):
            raise MatrixInvalidError("values and indices differ in length")
        if len(self.ap) != self.n + 1:
            raise MatrixInvalidError("offset array must hold n+1 entries")
        if self.ap[0] != 0 or self.ap[self.n] != self.nnz:
            raise MatrixInvalidError("offsets do not span the entries")
        if any(b < a for a, b in pairwise(self.ap)):
            raise MatrixInvalidError("offsets are not monotone")
        if any(not 0 <= i < self.n for i in self.ai):
            raise MatrixInvalidError("index out of range")
        return self

    def lines(self) -> Iterator[list[tuple[int, float]]]:
        """Yield the (index, value) pairs of each line in order."""
        for start, end in pairwise(self.ap):
            yield list(zip(self.ai[start:end], self.ax[start:end]))


def _from_lines(n: int, lines: Sequence[Sequence[tuple[int, float]]]) -> CompressedMatrix:
    ap = [0]
    ai: list[int] = []
    ax: list[float] = []
    for line in lines:
        for index, value in line:
            ai.append(index)
            ax.append(value)
        ap.append(len(ai))
    return CompressedMatrix(n, ax, ai, ap)


def _transpose(matrix: CompressedMatrix) -> CompressedMatrix:
    buckets: list[list[tuple[int, float]]] = [[] for _ in range(matrix.n)]
    for major, line in enumerate(matrix.lines()):
        for minor, value in line:
            buckets[minor].append((major, value))
    return _from_lines(matrix.n, buckets)


def transpose(matrix: CompressedMatrix) -> CompressedMatrix:
    """Return the transpose; the result's lines have ascending indices."""
    matrix.validate()
    return _transpose(matrix)


def sort_indices(matrix: CompressedMatrix) -> CompressedMatrix:
    """Return the same matrix with the indices of every line in ascending order."""
    matrix.validate()
    return _transpose(_transpose(matrix))


def merge_duplicates(matrix: CompressedMatrix) -> CompressedMatrix:
    """Return a sorted copy in which repeated indices within a line are summed."""
    ordered = sort_indices(matrix)
    merged = [
        [
            (index, reduce(operator.add, (value for _, value in group)))
            for index, group in groupby(line, key=operator.itemgetter(0))
        ]
        for line in ordered.lines()
    ]
    return _from_lines(ordered.n, merged)


def _norm(values: Sequence[float], norm: int) -> float:
    if norm == 1:
        return sum(values, 0.0)
    if norm == 2:
        return math.sqrt(sum((t * t for t in values), 0.0))
    largest = 0.0
    for t in values:
        if t > largest:
            largest = t
    return largest


def residual(
    matrix: CompressedMatrix,
    x: Sequence[float],
    b: Sequence[float],
    norm: int = 1,
    mode: int = 0,
) -> float:
    """Return the norm of ``Ax - b``.

    ``mode`` 0 reads the matrix as rows, any other value as columns.
    ``norm`` 1 and 2 give those norms; any other value the infinity norm.
    """
    n = matrix.n
    if n <= 0:
        raise ValueError("matrix order must be positive")
    if len(x) < n or len(b) < n:
        raise ValueError("vectors are shorter than the matrix order")

    if mode == 0:
        products = [sum(value * x[col] for col, value in line) for line in matrix.lines()]
    else:
        products = [0.0] * n
        for i, line in enumerate(matrix.lines()):
            t = x[i]
            for row, value in line:
                products[row] += value * t
    errors = [abs(products[i] - b[i]) for i in range(n)]
    return _norm(errors, norm)