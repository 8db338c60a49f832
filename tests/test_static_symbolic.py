import pytest

from sparselu.sparse import CompressedMatrix, MatrixInvalidError
from sparselu.static_symbolic import static_symbolic_factorize
from sparselu.symbolic import SymbolicMatrix


def dense(n):
    ai = list(range(n)) * n
    ap = [n * i for i in range(n + 1)]
    return CompressedMatrix(n, [1.0] * (n * n), ai, ap)


def diagonal(n):
    return CompressedMatrix(n, [1.0] * n, list(range(n)), list(range(n + 1)))


SAMPLE = CompressedMatrix(4, [1.0] * 9, [3, 0, 1, 2, 0, 2, 3, 1, 3], [0, 2, 4, 6, 9])


def test_dense_fills_completely():
    for n in (3, 4, 5):
        result = static_symbolic_factorize(dense(n), cores=1)
        assert result.lu_nnz == n * n
        for i in range(n):
            assert sorted(result.l_index[i]) == list(range(i))
            assert sorted(result.u_index[i]) == list(range(i + 1, n))


def test_dense_l_order_is_topological():
    result = static_symbolic_factorize(dense(4), cores=1)
    for row in result.l_index:
        assert row == sorted(row)


def test_diagonal_has_no_factors():
    result = static_symbolic_factorize(diagonal(3), cores=1)
    assert result.ulen == [0, 0, 0]
    assert result.llen == [0, 0, 0]
    assert result.flops == 0
    assert result.max_speedup == 3.0
    assert result.lu_nnz == 3


def test_speedup_special_cases():
    assert static_symbolic_factorize(SAMPLE, cores=8).predicted_speedup == 0.0
    assert static_symbolic_factorize(SAMPLE, cores=1).predicted_speedup == 1.0


def test_flops_is_total_workload():
    result = static_symbolic_factorize(SAMPLE, cores=2)
    assert result.flops == sum(result.workload)
    assert result.predicted_speedup > 0.0
    assert result.max_speedup >= 1.0


def test_pattern_matches_column_symbolic_of_transpose():
    sym = SymbolicMatrix(4)
    sym.fill_in(SAMPLE.ai, SAMPLE.ap)
    result = static_symbolic_factorize(SAMPLE, cores=1)
    for i in range(4):
        column = set(sym.sym_r_idx[sym.sym_c_ptr[i]:sym.sym_c_ptr[i + 1]])
        assert set(result.l_index[i]) | set(result.u_index[i]) | {i} == column


def test_capacities_are_bounded():
    result = static_symbolic_factorize(SAMPLE, cores=1, memory_mult=3.0, rnnz_lower_bound=2)
    for i in range(4):
        assert result.l_capacity[i] <= i
        assert result.u_capacity[i] <= 4 - i
        assert result.u_capacity[i] >= min(result.ulen[i], 4 - i)


def test_row_permutation_changes_structure_source():
    flipped = static_symbolic_factorize(SAMPLE, row_perm=[3, 2, 1, 0], cores=1)
    assert flipped.lu_nnz >= SAMPLE.nnz


def test_invalid_permutation_raises():
    with pytest.raises(ValueError):
        static_symbolic_factorize(SAMPLE, row_perm=[0, 0, 1, 2], cores=1)


def test_invalid_cores_raises():
    with pytest.raises(ValueError):
        static_symbolic_factorize(SAMPLE, cores=0)


def test_invalid_matrix_raises():
    with pytest.raises(MatrixInvalidError):
        static_symbolic_factorize(CompressedMatrix(2, [1.0], [5], [0, 1, 1]), cores=1)