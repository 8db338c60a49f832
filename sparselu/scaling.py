"""Per-column scaling factors taken from the magnitudes of the entries."""

from __future__ import annotations

from collections.abc import Sequence
from enum import IntEnum

from .sparse import CompressedMatrix, NumericallySingularError


class ScaleMode(IntEnum):
    """How a column's scaling factor is formed."""

    NONE = 0
    MAXIMUM = 1
    SUM = 2


def column_scale(
    matrix: CompressedMatrix,
    row_perm: Sequence[int] | None = None,
    mode: ScaleMode | int = ScaleMode.MAXIMUM,
) -> list[float] | None:
    """Return the scaling factor of every minor index, or None when not scaling.

    Lines are visited in the order ``row_perm`` gives (all lines in order when
    None). MAXIMUM takes the largest magnitude, SUM the sum of magnitudes; any
    other mode means no scaling. Raises NumericallySingularError if a factor is 0.
    """
    if mode not in (ScaleMode.MAXIMUM, ScaleMode.SUM):
        return None
    mode = ScaleMode(mode)

    lines = list(matrix.lines())
    order = range(matrix.n) if row_perm is None else row_perm
    cscale = [0.0] * matrix.n
    for old in order:
        for col, value in lines[old]:
            magnitude = abs(value)
            if mode is ScaleMode.MAXIMUM:
                if magnitude > cscale[col]:
                    cscale[col] = magnitude
            else:
                cscale[col] += magnitude

    for col, factor in enumerate(cscale):
        if factor == 0.0:
            raise NumericallySingularError(f"column {col} has no nonzero entry")
    return cscale