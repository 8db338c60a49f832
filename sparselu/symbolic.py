"""Symbolic LU structure in compressed-column form, with levels and a triangular solve."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from itertools import pairwise

from .sparse import MatrixInvalidError, NumericallySingularError, StructurallySingularError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SolveTransform:
    """Permutations and optional scales applied around the triangular solves.

    The right-hand side is gathered as ``rhs[col_perm[pivot[j]]]`` (times
    ``col_scale_perm[pivot[j]]`` when scaling), and the result is gathered as
    ``b[row_perm_inv[j]]`` (times ``row_scale[j]`` when scaling).
    """

    col_perm: Sequence[int]
    row_perm_inv: Sequence[int]
    pivot: Sequence[int]
    col_scale_perm: Sequence[float] | None = None
    row_scale: Sequence[float] | None = None

    def __post_init__(self) -> None:
        if (self.col_scale_perm is None) != (self.row_scale is None):
            raise ValueError("both scale vectors must be given, or neither")

    @property
    def scaled(self) -> bool:
        """Whether the scale vectors are applied."""
        return self.col_scale_perm is not None

    @classmethod
    def identity(cls, n: int) -> SolveTransform:
        """A transform that leaves the vectors unchanged."""
        order = list(range(n))
        return cls(order, order, order)


class SymbolicMatrix:
    """The fill-in pattern of an LU factorization and its numeric values.

    Column ``i`` holds the rows ``sym_r_idx[sym_c_ptr[i]:sym_c_ptr[i+1]]`` in
    ascending order; ``l_col_ptr[i]`` is the position of its diagonal, so the
    U part lies before it and the strictly lower L part after it.
    """

    def __init__(self, n: int) -> None:
        if n <= 0:
            raise ValueError("matrix order must be positive")
        self.n = n
        self.nnz = 0
        self.sym_c_ptr: list[int] = []
        self.sym_r_idx: list[int] = []
        self.l_col_ptr: list[int] = []
        self.csr_r_ptr: list[int] = []
        self.csr_c_idx: list[int] = []
        self.csr_diag_ptr: list[int] = []
        self.val: list[float] = []
        self.level_ptr: list[int] = []
        self.level_idx: list[int] = []
        self.num_lev = 0

    def _require(self, what: str, ready: bool) -> None:
        if not ready:
            raise RuntimeError(f"{what} must be computed first")

    def fill_in(self, ai: Sequence[int], ap: Sequence[int]) -> None:
        """Compute the fill-in pattern of a matrix given by columns."""
        n = self.n
        if len(ap) != n + 1:
            raise MatrixInvalidError("offset array must hold n+1 entries")
        if any(not 0 <= r < n for r in ai[ap[0]:ap[n]]):
            raise MatrixInvalidError("row index out of range")

        self.sym_c_ptr = [0]
        self.sym_r_idx = []
        self.l_col_ptr = []
        for i, (start, end) in enumerate(pairwise(ap)):
            column = sorted(set(ai[start:end]))
            j = 0
            while j < len(column) and column[j] < i:
                nz = column[j]
                lower = self.sym_r_idx[self.l_col_ptr[nz]:self.sym_c_ptr[nz + 1]]
                column = sorted(set(lower).union(column))
                j += 1
            try:
                diag = column.index(i)
            except ValueError:
                raise StructurallySingularError(f"column {i} has no diagonal entry") from None
            self.l_col_ptr.append(self.sym_c_ptr[-1] + diag)
            self.sym_c_ptr.append(self.sym_c_ptr[-1] + len(column))
            self.sym_r_idx.extend(column)

        self.nnz = self.sym_c_ptr[-1]
        logger.info("Symbolic nonzero: %d", self.nnz)

    def csr(self) -> None:
        """Build the row-wise view of the pattern."""
        self._require("fill_in", len(self.sym_c_ptr) == self.n + 1)
        rows: list[list[int]] = [[] for _ in range(self.n)]
        for i, (start, end) in enumerate(pairwise(self.sym_c_ptr)):
            for r in self.sym_r_idx[start:end]:
                rows[r].append(i)

        self.csr_r_ptr = [0]
        self.csr_c_idx = []
        self.csr_diag_ptr = []
        for i, row in enumerate(rows):
            for c in row:
                self.csr_c_idx.append(c)
                if c == i:
                    self.csr_diag_ptr.append(len(self.csr_c_idx) - 1)
            self.csr_r_ptr.append(len(self.csr_c_idx))

    def predict_lu(self, ai: Sequence[int], ap: Sequence[int], ax: Sequence[float]) -> None:
        """Fill ``val`` with the matrix values on the pattern, zero where fill-in occurs."""
        self._require("fill_in", len(self.sym_c_ptr) == self.n + 1)
        if len(ap) != self.n + 1:
            raise MatrixInvalidError("offset array must hold n+1 entries")
        self.val = []
        for i, (start, end) in enumerate(pairwise(ap)):
            first: dict[int, float] = {}
            for r, v in zip(ai[start:end], ax[start:end]):
                first.setdefault(r, float(v))
            rows = self.sym_r_idx[self.sym_c_ptr[i]:self.sym_c_ptr[i + 1]]
            self.val.extend(first.get(r, 0.0) for r in rows)

    def leveling(self) -> None:
        """Group columns into levels that can be factorized independently."""
        self._require("csr", len(self.csr_r_ptr) == self.n + 1)
        n = self.n
        inlevel: list[int] = []
        level_size = [0] * n
        self.num_lev = 0
        for i in range(n):
            max_lv = -1
            for j in range(self.sym_c_ptr[i], self.l_col_ptr[i]):
                nz = self.sym_r_idx[j]
                if self.l_col_ptr[nz] + 1 != self.sym_c_ptr[nz + 1]:
                    max_lv = max(max_lv, inlevel[nz])
            for j in range(self.csr_r_ptr[i], self.csr_diag_ptr[i]):
                max_lv = max(max_lv, inlevel[self.csr_c_idx[j]])
            lv = max_lv + 1
            inlevel.append(lv)
            level_size[lv] += 1
            self.num_lev = max(self.num_lev, lv)
        self.num_lev += 1

        self.level_ptr = [0]
        for size in level_size[:self.num_lev]:
            self.level_ptr.append(self.level_ptr[-1] + size)
        self.level_idx = [0] * n
        fill = list(self.level_ptr)
        for i, lv in enumerate(inlevel):
            self.level_idx[fill[lv]] = i
            fill[lv] += 1
        logger.info("Number of levels: %d", self.num_lev)

    def level_groups(self) -> list[list[int]]:
        """The columns of every level, level by level."""
        self._require("leveling", len(self.level_ptr) == self.num_lev + 1 and self.num_lev > 0)
        return [self.level_idx[a:b] for a, b in pairwise(self.level_ptr)]

    def column_sums(self) -> list[float]:
        """Sum of the stored values of every column."""
        self._require("predict_lu", len(self.val) == self.nnz and self.nnz > 0)
        return [sum(self.val[a:b], 0.0) for a, b in pairwise(self.sym_c_ptr)]

    def abft_check(self, reference: Sequence[float], tolerance: float = 1e-5) -> bool:
        """Check factorized values against the column sums of the original matrix.

        Returns True when every column's checksum recomputed from L and U is
        within ``tolerance`` of ``reference``.
        """
        self._require("predict_lu", len(self.val) == self.nnz and self.nnz > 0)
        n = self.n
        if len(reference) < n:
            raise ValueError("reference is shorter than the matrix order")
        ccl = [1.0 + sum(self.val[self.l_col_ptr[i] + 1:self.sym_c_ptr[i + 1]], 0.0) for i in range(n)]
        for i in range(n):
            checksum = 0.0
            for j in range(self.sym_c_ptr[i], self.l_col_ptr[i] + 1):
                checksum += ccl[self.sym_r_idx[j]] * self.val[j]
            if abs(checksum - reference[i]) > tolerance:
                logger.warning("Column %d: CCA = %g, CCA_ABFT = %g", i, reference[i], checksum)
                return False
        logger.info("Results passed ABFT check.")
        return True

    def solve(self, rhs: Sequence[float], transform: SolveTransform | None = None) -> list[float]:
        """Solve with the factorized values held in ``val``."""
        self._require("predict_lu", len(self.val) == self.nnz and self.nnz > 0)
        n = self.n
        if len(rhs) < n:
            raise ValueError("right-hand side is shorter than the matrix order")
        t = transform if transform is not None else SolveTransform.identity(n)

        if t.scaled:
            b = [rhs[t.col_perm[p]] * t.col_scale_perm[p] for p in t.pivot[:n]]
        else:
            b = [rhs[t.col_perm[p]] for p in t.pivot[:n]]

        val, rows = self.val, self.sym_r_idx
        for j in range(n):
            bj = b[j]
            for p in range(self.l_col_ptr[j] + 1, self.sym_c_ptr[j + 1]):
                b[rows[p]] -= val[p] * bj

        for jj in reversed(range(n)):
            pivot = val[self.l_col_ptr[jj]]
            if pivot == 0.0:
                raise NumericallySingularError(f"zero pivot in column {jj}")
            b[jj] /= pivot
            bj = b[jj]
            for p in range(self.sym_c_ptr[jj], self.l_col_ptr[jj]):
                b[rows[p]] -= val[p] * bj

        if t.scaled:
            return [b[t.row_perm_inv[j]] * t.row_scale[j] for j in range(n)]
        return [b[t.row_perm_inv[j]] for j in range(n)]