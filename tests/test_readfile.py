import io

import pytest

from sparselu.readfile import read_triplet_column, read_triplet_row, read_triplets
from sparselu.sparse import MatrixInvalidError, SparseError

COLUMN_TEXT = """% a comment line
% another one
3 3 4
1 1 2.0
3 1 -1.0
2 2 5.0
3 3 7.5
"""

ROW_TEXT = """3 3 4
1 1 2.0
1 3 -1.0
2 2 5.0
3 1 7.5
"""


def test_column_format_layout():
    matrix = read_triplets(io.StringIO(COLUMN_TEXT), True)
    assert matrix.n == 3
    assert matrix.nnz == 4
    assert matrix.ax == [2.0, -1.0, 5.0, 7.5]
    assert matrix.ap == [0, 2, 3, 4]
    assert matrix.ai == [0, 2, 1, 2]
    assert matrix.validate() is matrix


def test_row_format_uses_second_index_as_minor():
    matrix = read_triplets(io.StringIO(ROW_TEXT), False)
    assert matrix.ax == [2.0, -1.0, 5.0, 7.5]
    assert matrix.ai == [0, 2, 1, 0]
    assert matrix.ap[-1] == 4
    assert matrix.validate() is matrix


def test_path_readers_match_stream_reader(tmp_path):
    column_file = tmp_path / "col.mtx"
    column_file.write_text(COLUMN_TEXT)
    row_file = tmp_path / "row.mtx"
    row_file.write_text(ROW_TEXT)
    assert read_triplet_column(column_file) == read_triplets(io.StringIO(COLUMN_TEXT), True)
    assert read_triplet_row(row_file) == read_triplets(io.StringIO(ROW_TEXT), False)


def test_missing_file_raises(tmp_path):
    with pytest.raises(FileNotFoundError):
        read_triplet_column(tmp_path / "absent.mtx")


def test_empty_matrix_has_zero_offsets():
    matrix = read_triplets(io.StringIO("4 4 0\n"), True)
    assert matrix.ap == [0] * (matrix.n + 1)
    assert matrix.nnz == 0


def test_header_found_after_unparsable_line():
    matrix = read_triplets(io.StringIO("junk\n2 2 1\n2 2 9.0\n"), True)
    assert matrix.n == 2
    assert matrix.ax == [9.0]
    assert matrix.ai == [1]


def test_non_square_header_rejected():
    with pytest.raises(MatrixInvalidError):
        read_triplets(io.StringIO("3 4 1\n1 1 1.0\n"), True)


@pytest.mark.parametrize("entry", ["0 1 1.0", "1 3 1.0", "3 1 1.0", "1 x 1.0", "1 1 abc"])
def test_bad_entries_rejected(entry):
    with pytest.raises(MatrixInvalidError):
        read_triplets(io.StringIO(f"2 2 1\n{entry}\n"), True)


def test_truncated_file_rejected():
    with pytest.raises(MatrixInvalidError):
        read_triplets(io.StringIO("2 2 3\n1 1 1.0\n2 2 2.0\n"), True)


def test_unordered_major_index_rejected():
    with pytest.raises(MatrixInvalidError):
        read_triplets(io.StringIO("2 2 2\n1 2 1.0\n1 1 2.0\n"), True)


def test_missing_header_raises():
    with pytest.raises(SparseError):
        read_triplets(io.StringIO("% only comments\n"), True)