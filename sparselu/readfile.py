"""Read square matrices stored as 1-based coordinate triplets."""

from __future__ import annotations

import re
from collections.abc import Iterable, Iterator
from itertools import pairwise
from os import PathLike
from typing import TextIO

from .sparse import CompressedMatrix, MatrixInvalidError, SparseError

_UINT = re.compile(r"\+?\d+")


def _parse_uint(token: str) -> int:
    if not _UINT.fullmatch(token):
        raise ValueError(f"not an unsigned integer: {token!r}")
    return int(token)


def _parse_header(line: str) -> tuple[int, int, int] | None:
    tokens = line.split()[:3]
    if len(tokens) < 3:
        return None
    try:
        m, n, nnz = (_parse_uint(tok) for tok in tokens)
    except ValueError:
        return None
    return m, n, nnz


def _read_header(lines: Iterator[str]) -> tuple[int, int, int]:
    for line in lines:
        if line.startswith("%"):
            continue
        header = _parse_header(line)
        if header is not None:
            return header
    raise SparseError("no matrix header found")


def _entries(tokens: Iterable[str], count: int, n: int) -> Iterator[tuple[int, int, float]]:
    stream = iter(tokens)
    for _ in range(count):
        triple = [next(stream, None) for _ in range(3)]
        if None in triple:
            raise MatrixInvalidError("fewer entries than the header announces")
        try:
            first = _parse_uint(triple[0]) - 1
            second = _parse_uint(triple[1]) - 1
            value = float(triple[2])
        except ValueError as exc:
            raise MatrixInvalidError(str(exc)) from exc
        if not (0 <= first < n and 0 <= second < n):
            raise MatrixInvalidError("entry index out of range")
        yield first, second, value


def read_triplets(stream: TextIO, column_major: bool = True) -> CompressedMatrix:
    """Read a triplet stream into compressed form.

    Each entry line holds ``row col value`` with 1-based indices; lines starting
    with ``%`` before the ``m n nnz`` header are comments. With ``column_major``
    the entries must be grouped by ascending column and the result is stored by
    columns; otherwise they must be grouped by ascending row and it is stored by
    rows.
    """
    lines = iter(stream)
    m, n, nnz = _read_header(lines)
    if m != n:
        raise MatrixInvalidError("matrix is not square")

    tokens = (tok for line in lines for tok in line.split())
    majors: list[int] = []
    ai: list[int] = []
    ax: list[float] = []
    for first, second, value in _entries(tokens, nnz, n):
        major, minor = (second, first) if column_major else (first, second)
        majors.append(major)
        ai.append(minor)
        ax.append(value)

    if any(b < a for a, b in pairwise(majors)):
        raise MatrixInvalidError("entries are not grouped by ascending line")

    counts = [0] * n
    for major in majors:
        counts[major] += 1
    ap = [0]
    for count in counts:
        ap.append(ap[-1] + count)
    return CompressedMatrix(n, ax, ai, ap)


def read_triplet_column(path: str | PathLike[str]) -> CompressedMatrix:
    """Read a file whose triplets are grouped by column."""
    with open(path, encoding="utf-8") as handle:
        return read_triplets(handle, True)


def read_triplet_row(path: str | PathLike[str]) -> CompressedMatrix:
    """Read a file whose triplets are grouped by row."""
    with open(path, encoding="utf-8") as handle:
        return read_triplets(handle, False)