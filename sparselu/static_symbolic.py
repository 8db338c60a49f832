"""Row-wise symbolic factorization with pruning, workload and speedup estimates."""

from __future__ import annotations

import os
import sys
from collections.abc import Sequence
from dataclasses import dataclass

from .sparse import STATIC_MEMORY_MULT, STATIC_RNNZ_UB, SYNC_CYCLES, CompressedMatrix

DBL_MAX = sys.float_info.max


@dataclass
class StaticSymbolicResult:
    """Structure of L and U found row by row.

    ``u_index[i]`` holds the columns right of the diagonal in row ``i`` (in the
    order left after pruning); ``l_index[i]`` the columns left of it in
    topological order.
    """

    u_index: list[list[int]]
    l_index: list[list[int]]
    workload: list[int]
    l_capacity: list[int]
    u_capacity: list[int]
    flops: int
    lu_nnz: int
    predicted_speedup: float
    max_speedup: float

    @property
    def ulen(self) -> list[int]:
        """Number of U entries per row."""
        return [len(row) for row in self.u_index]

    @property
    def llen(self) -> list[int]:
        """Number of L entries per row."""
        return [len(row) for row in self.l_index]


def _prune(urow: list[int], i: int) -> int:
    head, tail = 0, len(urow)
    while head < tail:
        p = urow[head]
        if p <= i:
            head += 1
        else:
            tail -= 1
            urow[head] = urow[tail]
            urow[tail] = p
    return tail


def _row_structure(
    i: int,
    columns: Sequence[int],
    urows: list[list[int]],
    pend: list[int],
    flag: list[int],
) -> tuple[list[int], list[int]]:
    urow: list[int] = []
    postorder: list[int] = []
    for col in columns:
        if flag[col] == i:
            continue
        if col > i:
            flag[col] = i
            urow.append(col)
            continue
        if col == i:
            continue
        stack = [col]
        appos: list[int] = []
        while stack:
            p = stack[-1]
            if flag[p] != i:
                flag[p] = i
                appos.append(len(urows[p]) if pend[p] < 0 else pend[p])
            head = len(stack) - 1
            upper = urows[p]
            pos = appos[head] - 1
            descended = False
            while pos >= 0:
                ucol = upper[pos]
                if flag[ucol] != i:
                    if ucol < i:
                        appos[head] = pos
                        stack.append(ucol)
                        descended = True
                        break
                    if ucol > i:
                        flag[ucol] = i
                        urow.append(ucol)
                pos -= 1
            if not descended:
                stack.pop()
                appos.pop()
                postorder.append(p)
    postorder.reverse()
    return urow, postorder


def static_symbolic_factorize(
    matrix: CompressedMatrix,
    row_perm: Sequence[int] | None = None,
    cores: int | None = None,
    sync_cycles: float = SYNC_CYCLES,
    memory_mult: float = STATIC_MEMORY_MULT,
    rnnz_lower_bound: int = STATIC_RNNZ_UB,
) -> StaticSymbolicResult:
    """Factorize the row pattern of ``matrix`` symbolically.

    Row ``i`` of the factorization is line ``row_perm[i]`` of the matrix. The
    predicted speedup schedules rows on ``cores`` workers with ``sync_cycles``
    of overhead per dependency; it is 0 when there are more cores than rows and
    1 with a single core.
    """
    matrix.validate()
    n = matrix.n
    perm = list(range(n)) if row_perm is None else [int(p) for p in row_perm]
    if sorted(perm) != list(range(n)):
        raise ValueError("row_perm is not a permutation")
    if cores is None:
        cores = os.cpu_count() or 1
    if cores < 1:
        raise ValueError("cores must be positive")
    memory_mult = max(memory_mult, 1.0)
    prow = rnnz_lower_bound if rnnz_lower_bound > 0 else 1

    flag = [-1] * n
    pend = [-1] * n
    urows: list[list[int]] = []
    lrows: list[list[int]] = []
    used = 0
    for i, old in enumerate(perm):
        columns = matrix.ai[matrix.ap[old]:matrix.ap[old + 1]]
        urow, lrow = _row_structure(i, columns, urows, pend, flag)
        urows.append(urow)
        lrows.append(lrow)
        used += len(urow) + len(lrow)
        for lcol in lrow:
            if pend[lcol] < 0 and i in urows[lcol]:
                pend[lcol] = _prune(urows[lcol], i)

    ulen = [len(row) for row in urows]
    workload: list[int] = []
    l_capacity: list[int] = []
    u_capacity: list[int] = []
    for i, lrow in enumerate(lrows):
        tl = sum(2 * ulen[k] for k in lrow)
        workload.append(tl + ulen[i])
        ll = int(max(len(lrow), prow) * memory_mult)
        ul = int(max(ulen[i], prow) * memory_mult)
        l_capacity.append(min(ll, i))
        u_capacity.append(min(ul, n - i))
    flops = sum(workload)

    if cores > n:
        predicted = 0.0
    elif cores == 1:
        predicted = 1.0
    else:
        end = [0.0] * n
        finish = [0.0] * cores
        pflops = 0.0
        for i, lrow in enumerate(lrows):
            earliest = min(finish)
            worker = finish.index(earliest)
            ed = earliest
            for k in lrow:
                ed = max(ed, end[k])
                ed += 2 * ulen[k]
                ed += sync_cycles
            ed += ulen[i]
            ed += sync_cycles
            end[i] = ed
            finish[worker] = ed
            pflops = max(pflops, ed)
        predicted = float(n) if pflops == 0.0 else flops / pflops

    end = [0.0] * n
    pflops = 0.0
    for i, lrow in enumerate(lrows):
        ed = 0.0
        for k in lrow:
            ed = max(ed, end[k])
            ed += 2 * ulen[k]
        ed += ulen[i]
        end[i] = ed
        pflops = max(pflops, ed)
    maximum = float(n) if pflops == 0.0 else flops / pflops

    return StaticSymbolicResult(
        u_index=urows,
        l_index=lrows,
        workload=workload,
        l_capacity=l_capacity,
        u_capacity=u_capacity,
        flops=flops,
        lu_nnz=used + n,
        predicted_speedup=predicted,
        max_speedup=maximum,
    )