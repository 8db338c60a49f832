"""Row reordering of a compressed matrix after analysis."""

from __future__ import annotations

from collections.abc import Sequence

from .sparse import CompressedMatrix


def permute_rows(matrix: CompressedMatrix, row_perm: Sequence[int]) -> CompressedMatrix:
    """Return a copy whose line ``i`` is line ``row_perm[i]`` of ``matrix``."""
    matrix.validate()
    perm = [int(p) for p in row_perm]
    if sorted(perm) != list(range(matrix.n)):
        raise ValueError("row_perm is not a permutation")

    ap = [0]
    ai: list[int] = []
    ax: list[float] = []
    for old in perm:
        start, end = matrix.ap[old], matrix.ap[old + 1]
        ai.extend(matrix.ai[start:end])
        ax.extend(matrix.ax[start:end])
        ap.append(len(ai))
    return CompressedMatrix(matrix.n, ax, ai, ap)