"""Maximum-product transversal matching and the row/column scaling derived from it."""

from __future__ import annotations

import math
import sys
from collections.abc import Sequence
from dataclasses import dataclass
from itertools import pairwise

from .sparse import CompressedMatrix, StructurallySingularError

DBL_MAX = sys.float_info.max


@dataclass(frozen=True)
class Mc64Result:
    """Outcome of a weighted matching.

    ``match[col]`` is the line matched to minor index ``col``; ``col_dual`` and
    ``line_dual`` are the dual variables of the assignment problem. After
    :func:`mc64_scaling` the duals are logarithms of the scaling factors.
    """

    matched: int
    match: list[int]
    col_dual: list[float]
    line_dual: list[float]

    @property
    def match_inv(self) -> list[int]:
        """For every line, the minor index it is matched to."""
        inverse = [0] * len(self.match)
        for col, line in enumerate(self.match):
            inverse[line] = col
        return inverse

    @property
    def row_scale(self) -> list[float]:
        """Scaling factor of every line."""
        return [math.exp(v) for v in self.line_dual]

    @property
    def col_scale_perm(self) -> list[float]:
        """Scaling factor of every minor index."""
        return [math.exp(v) for v in self.col_dual]


def _heap_up(i: int, q: list[int], d: list[float], l: list[int]) -> None:
    di = d[i]
    pos = l[i]
    while pos > 0:
        posk = (pos - 1) >> 1
        qk = q[posk]
        if di >= d[qk]:
            break
        q[pos] = qk
        l[qk] = pos
        pos = posk
    q[pos] = i
    l[i] = pos


def _sift_down(i: int, pos: int, ql: int, q: list[int], d: list[float], l: list[int]) -> None:
    di = d[i]
    while True:
        posk = ((pos + 1) << 1) - 1
        if posk > ql:
            break
        dk = d[q[posk]]
        if posk < ql:
            dr = d[q[posk + 1]]
            if dk > dr:
                posk += 1
                dk = dr
        if di <= dk:
            break
        qk = q[posk]
        q[pos] = qk
        l[qk] = pos
        pos = posk
    q[pos] = i
    l[i] = pos


def _heap_pop(qlen: int, q: list[int], d: list[float], l: list[int]) -> int:
    ql = qlen - 1
    _sift_down(q[ql], 0, ql, q, d, l)
    return qlen - 1


def _heap_remove(pos0: int, qlen: int, q: list[int], d: list[float], l: list[int]) -> int:
    ql = qlen - 1
    if pos0 == ql:
        return qlen - 1
    i = q[ql]
    di = d[i]
    pos = pos0
    while pos > 0:
        posk = (pos - 1) >> 1
        qk = q[posk]
        if di >= d[qk]:
            break
        q[pos] = qk
        l[qk] = pos
        pos = posk
    q[pos] = i
    l[i] = pos
    _sift_down(i, pos, ql, q, d, l)
    return qlen - 1


class _Matcher:
    """Minimum-cost bipartite matching with shortest augmenting paths."""

    def __init__(self, n: int, ai: Sequence[int], ap: Sequence[int], ax: Sequence[float]):
        self.n = n
        self.ai = ai
        self.ap = ap
        self.ax = ax
        self.u = [DBL_MAX] * n
        self.d = [0.0] * n
        self.iperm = [-1] * n
        self.jperm = [-1] * n
        self.l = [-1] * n
        self.pr = list(ap[:n])
        self.out = [0] * n
        self.q = [0] * n
        self.num = 0

    def run(self) -> Mc64Result:
        self._initial()
        if self.num < self.n:
            self._cheap_assign()
        if self.num < self.n:
            self._shortest_paths()
        self._finish()
        return Mc64Result(self.num, self.iperm, self.u, self.d)

    def _initial(self) -> None:
        ai, ap, ax, u = self.ai, self.ap, self.ax, self.u
        iperm, jperm, l = self.iperm, self.jperm, self.l
        for j in range(self.n):
            for k in range(ap[j], ap[j + 1]):
                col = ai[k]
                if ax[k] > u[col]:
                    continue
                u[col] = ax[k]
                iperm[col] = j
                l[col] = k
        for i in range(self.n):
            jj = iperm[i]
            if jj < 0:
                continue
            iperm[i] = -1
            if jperm[jj] >= 0:
                continue
            self.num += 1
            iperm[i] = jj
            jperm[jj] = l[i]

    def _cheap_assign(self) -> None:
        ai, ap, ax, u, d = self.ai, self.ap, self.ax, self.u, self.d
        iperm, jperm, pr = self.iperm, self.jperm, self.pr
        for j in range(self.n):
            if jperm[j] >= 0:
                continue
            start, end = ap[j], ap[j + 1]
            if start >= end:
                raise StructurallySingularError(f"line {j} is empty")

            vj = DBL_MAX
            i0 = k0 = -1
            for k in range(start, end):
                col = ai[k]
                di = ax[k] - u[col]
                if di > vj:
                    continue
                if not (di < vj or di == DBL_MAX):
                    if iperm[col] >= 0 or iperm[i0] < 0:
                        continue
                vj = di
                i0 = col
                k0 = k

            d[j] = vj
            k, col = k0, i0
            if iperm[col] >= 0:
                found = False
                for k in range(k0, end):
                    col = ai[k]
                    if ax[k] - u[col] > vj:
                        continue
                    jj = iperm[col]
                    kk1, kk2 = pr[jj], ap[jj + 1]
                    if kk1 >= kk2:
                        continue
                    for kk in range(kk1, kk2):
                        col1 = ai[kk]
                        if iperm[col1] >= 0:
                            continue
                        if ax[kk] - u[col1] <= d[jj]:
                            found = True
                            break
                    if found:
                        break
                    pr[jj] = kk2
                if not found:
                    continue
                jperm[jj] = kk
                iperm[col1] = jj
                pr[jj] = kk + 1

            self.num += 1
            jperm[j] = k
            iperm[col] = j
            pr[j] = k + 1

    def _shortest_paths(self) -> None:
        n = self.n
        ai, ap, ax, u = self.ai, self.ap, self.ax, self.u
        iperm, jperm, pr, out, q = self.iperm, self.jperm, self.pr, self.out, self.q
        d = self.d
        d[:] = [DBL_MAX] * n
        l = self.l
        l[:] = [-1] * n

        for jord in range(n):
            if jperm[jord] >= 0:
                continue
            dmin = DBL_MAX
            qlen = 0
            low = up = n
            csp = DBL_MAX
            isp = jsp = -1

            j = jord
            pr[j] = -2
            for k in range(ap[j], ap[j + 1]):
                col = ai[k]
                dnew = ax[k] - u[col]
                if dnew >= csp:
                    continue
                if iperm[col] < 0:
                    csp, isp, jsp = dnew, k, j
                else:
                    if dnew < dmin:
                        dmin = dnew
                    d[col] = dnew
                    q[qlen] = k
                    qlen += 1

            count = qlen
            qlen = 0
            for kk in range(count):
                k = q[kk]
                col = ai[k]
                if d[col] >= csp:
                    d[col] = DBL_MAX
                    continue
                if d[col] <= dmin:
                    low -= 1
                    q[low] = col
                    l[col] = low
                else:
                    l[col] = qlen
                    qlen += 1
                    _heap_up(col, q, d, l)
                jj = iperm[col]
                out[jj] = k
                pr[jj] = j

            for _ in range(self.num):
                if low == up:
                    if qlen == 0:
                        break
                    col = q[0]
                    if d[col] >= csp:
                        break
                    dmin = d[col]
                    while True:
                        qlen = _heap_pop(qlen, q, d, l)
                        low -= 1
                        q[low] = col
                        l[col] = low
                        if qlen == 0:
                            break
                        col = q[0]
                        if d[col] > dmin:
                            break

                head = q[up - 1]
                dq0 = d[head]
                if dq0 >= csp:
                    break
                up -= 1
                j = iperm[head]
                vj = dq0 - ax[jperm[j]] + u[head]

                for k in range(ap[j], ap[j + 1]):
                    col = ai[k]
                    if l[col] >= up:
                        continue
                    dnew = vj + ax[k] - u[col]
                    if dnew >= csp:
                        continue
                    if iperm[col] < 0:
                        csp, isp, jsp = dnew, k, j
                        continue
                    if d[col] <= dnew or l[col] >= low:
                        continue
                    d[col] = dnew
                    if dnew <= dmin:
                        if l[col] >= 0:
                            qlen = _heap_remove(l[col], qlen, q, d, l)
                        low -= 1
                        q[low] = col
                        l[col] = low
                    else:
                        if l[col] < 0:
                            l[col] = qlen
                            qlen += 1
                        _heap_up(col, q, d, l)
                    jj = iperm[col]
                    out[jj] = k
                    pr[jj] = j

            if csp != DBL_MAX:
                self.num += 1
                col = ai[isp]
                iperm[col] = jsp
                jperm[jsp] = isp
                j = jsp
                for _ in range(self.num):
                    jj = pr[j]
                    if jj == -2:
                        break
                    k = out[j]
                    col = ai[k]
                    iperm[col] = jj
                    jperm[jj] = k
                    j = jj
                for kk in range(up, n):
                    col = q[kk]
                    u[col] = u[col] + d[col] - csp

            for kk in range(low, n):
                col = q[kk]
                d[col] = DBL_MAX
                l[col] = -1
            for kk in range(qlen):
                col = q[kk]
                d[col] = DBL_MAX
                l[col] = -1

    def _finish(self) -> None:
        n = self.n
        ai, ax, u, d = self.ai, self.ax, self.u, self.d
        iperm = self.iperm
        for j in range(n):
            jj = self.jperm[j]
            d[j] = ax[jj] - u[ai[jj]] if jj >= 0 else 0.0
            if iperm[j] < 0:
                u[j] = 0.0
        if self.num == n:
            return

        jperm = [-1] * n
        free_cols = []
        for i in range(n):
            if iperm[i] < 0:
                free_cols.append(i)
            else:
                jperm[iperm[i]] = i
        unmatched = iter(free_cols)
        for j in range(n):
            if jperm[j] < 0:
                iperm[next(unmatched)] = j
        self.jperm = jperm


def weighted_matching(
    n: int, ai: Sequence[int], ap: Sequence[int], costs: Sequence[float]
) -> Mc64Result:
    """Find a minimum-cost matching of lines to minor indices.

    ``matched`` tells how many pairs are real; when it is below ``n`` the
    remaining minor indices are paired arbitrarily so that ``match`` is still a
    permutation. Raises StructurallySingularError when an unmatched line is empty.
    """
    if n <= 0:
        raise ValueError("matrix order must be positive")
    if len(ap) != n + 1:
        raise ValueError("offset array must hold n+1 entries")
    if len(costs) < ap[n] or len(ai) < ap[n]:
        raise ValueError("costs or indices are shorter than the offsets announce")
    return _Matcher(n, ai, ap, costs).run()


def mc64_scaling(matrix: CompressedMatrix) -> Mc64Result:
    """Match the matrix for the largest product of magnitudes and derive scales.

    Scaling line ``i`` by ``row_scale[i]`` and minor index ``c`` by
    ``col_scale_perm[c]`` makes every matched entry 1 in magnitude and no entry
    larger.
    """
    matrix.validate()
    n = matrix.n
    rinf = DBL_MAX / n
    costs = [0.0] * matrix.nnz
    line_max: list[float] = []
    for j, (start, end) in enumerate(pairwise(matrix.ap)):
        mags = [abs(v) for v in matrix.ax[start:end]]
        fact = 0.0
        for m in mags:
            if m > fact:
                fact = m
        if fact == 0.0:
            raise StructurallySingularError(f"line {j} has no nonzero entry")
        log_fact = math.log(fact)
        costs[start:end] = [log_fact - math.log(m) if m != 0.0 else rinf for m in mags]
        line_max.append(fact)

    result = weighted_matching(n, matrix.ai, matrix.ap, costs)
    if result.matched < n:
        raise StructurallySingularError("matrix has no full matching")
    line_dual = [dj - math.log(m) for dj, m in zip(result.line_dual, line_max)]
    return Mc64Result(result.matched, result.match, result.col_dual, line_dual)


def apply_mc64_scale(
    matrix: CompressedMatrix,
    row_scale: Sequence[float],
    col_scale_perm: Sequence[float],
) -> CompressedMatrix:
    """Return a copy with each entry multiplied by its line and minor scales."""
    ax = [
        value * (scale * col_scale_perm[col])
        for line, scale in zip(matrix.lines(), row_scale)
        for col, value in line
    ]
    return CompressedMatrix(matrix.n, ax, list(matrix.ai), list(matrix.ap))