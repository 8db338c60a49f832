import math

import pytest

from sparselu.sparse import (
    CompressedMatrix,
    MatrixInvalidError,
    SparseError,
    merge_duplicates,
    residual,
    sort_indices,
    transpose,
)


def dense(matrix):
    out = [[0.0] * matrix.n for _ in range(matrix.n)]
    for i, line in enumerate(matrix.lines()):
        for j, value in line:
            out[i][j] += value
    return out


@pytest.fixture
def sample():
    # rows with unsorted column indices
    return CompressedMatrix(
        3,
        ax=[1.0, 2.0, 3.0, 4.0, 5.0, 6.0],
        ai=[2, 0, 1, 2, 0, 1],
        ap=[0, 2, 4, 6],
    )


def test_nnz_counts_entries(sample):
    assert sample.nnz == len(sample.ai)


def test_validate_returns_self(sample):
    assert sample.validate() is sample


@pytest.mark.parametrize(
    "n, ax, ai, ap",
    [
        (0, [1.0], [0], [0, 1]),
        (2, [], [], [0, 0, 0]),
        (2, [1.0, 2.0], [0, 1], [0, 1, 3]),
        (2, [1.0, 2.0], [0, 5], [0, 1, 2]),
        (2, [1.0, 2.0], [0, 1], [0, 2, 1, 2]),
        (3, [1.0, 2.0], [0, 1], [0, 2, 1, 2]),
    ],
)
def test_validate_rejects_broken_structure(n, ax, ai, ap):
    with pytest.raises(MatrixInvalidError):
        CompressedMatrix(n, ax, ai, ap).validate()


def test_invalid_error_is_sparse_and_value_error():
    with pytest.raises(SparseError):
        transpose(CompressedMatrix(1, [], [], [0, 0]))
    with pytest.raises(ValueError):
        sort_indices(CompressedMatrix(1, [], [], [0, 0]))


def test_transpose_matches_dense_transpose(sample):
    result = transpose(sample)
    assert dense(result) == [list(col) for col in zip(*dense(sample))]
    assert result.nnz == sample.nnz


def test_transpose_twice_restores_matrix(sample):
    assert dense(transpose(transpose(sample))) == dense(sample)


def test_transpose_lines_are_sorted(sample):
    for line in transpose(sample).lines():
        indices = [i for i, _ in line]
        assert indices == sorted(indices)


def test_sort_indices_keeps_values_and_orders_lines(sample):
    before = dense(sample)
    result = sort_indices(sample)
    assert dense(result) == before
    for line in result.lines():
        indices = [i for i, _ in line]
        assert indices == sorted(indices)
    assert result.ap == sample.ap


def test_sort_indices_does_not_touch_input(sample):
    original = list(sample.ai)
    sort_indices(sample)
    assert sample.ai == original


def test_merge_duplicates_sums_repeats():
    matrix = CompressedMatrix(
        2,
        ax=[1.0, 2.5, 4.0, 0.5, 0.25],
        ai=[1, 0, 1, 1, 1],
        ap=[0, 3, 5],
    )
    result = merge_duplicates(matrix)
    assert dense(result) == dense(matrix)
    assert result.nnz == 3
    for line in result.lines():
        indices = [i for i, _ in line]
        assert len(set(indices)) == len(indices)
        assert indices == sorted(indices)
    assert result.ap[-1] == result.nnz


def test_merge_without_duplicates_equals_sort(sample):
    assert merge_duplicates(sample) == sort_indices(sample)


def test_merge_rejects_invalid():
    with pytest.raises(MatrixInvalidError):
        merge_duplicates(CompressedMatrix(2, [1.0], [0], [0, 1, 2]))


def test_residual_zero_for_exact_solution():
    matrix = CompressedMatrix(2, [2.0, 4.0], [0, 1], [0, 1, 2])
    for norm in (1, 2, 0):
        for mode in (0, 1):
            assert residual(matrix, [1.5, 0.25], [3.0, 1.0], norm, mode) == 0.0


def test_residual_norms_of_rhs_when_x_is_zero():
    matrix = CompressedMatrix(2, [1.0, 1.0], [0, 1], [0, 1, 2])
    b = [3.0, -4.0]
    assert residual(matrix, [0.0, 0.0], b, 1, 0) == pytest.approx(7.0)
    assert residual(matrix, [0.0, 0.0], b, 2, 0) == pytest.approx(5.0)
    assert residual(matrix, [0.0, 0.0], b, 0, 0) == pytest.approx(4.0)


def test_column_mode_equals_row_mode_of_transpose(sample):
    x = [0.5, -1.25, 2.0]
    b = [1.0, 2.0, -3.0]
    for norm in (1, 2, 3):
        assert residual(sample, x, b, norm, 1) == pytest.approx(
            residual(transpose(sample), x, b, norm, 0)
        )


def test_norm_ordering(sample):
    x = [0.3, 0.7, -0.2]
    b = [-1.0, 0.5, 0.0]
    one = residual(sample, x, b, 1, 0)
    two = residual(sample, x, b, 2, 0)
    inf = residual(sample, x, b, 7, 0)
    assert inf <= two + 1e-12
    assert two <= one + 1e-12
    assert math.isfinite(one)


def test_residual_rejects_empty_and_short_vectors(sample):
    with pytest.raises(ValueError):
        residual(CompressedMatrix(0, [], [], [0]), [], [], 1, 0)
    with pytest.raises(ValueError):
        residual(sample, [1.0], [1.0, 2.0, 3.0], 1, 0)