# sparselu

Building blocks for sparse LU factorization of square matrices. Everything is plain Python with no outside dependencies.

## Modules

- `sparselu.sparse` defines `CompressedMatrix`, an n-by-n matrix stored line by line. Lines are rows for CSR and columns for CSC. It has the fields `n`, `ax`, `ai` and `ap`, and the members `nnz`, `validate()` and `lines()`.
  - The module-level functions are `sort_indices`, `transpose`, `merge_duplicates` and `residual`.
  - `sort_indices`, `transpose` and `merge_duplicates` return new matrices. `merge_duplicates` sums repeated indices within a line.
  - `residual(matrix, x, b, norm=1, mode=0)` returns the norm of `Ax - b`. `norm` 1 and 2 give those norms; any other value gives the infinity norm. `mode` 0 reads the lines as rows; any other value reads them as columns.
  - Errors derive from `SparseError`: `MatrixInvalidError` (also a `ValueError`), `StructurallySingularError` and `NumericallySingularError`.
- `sparselu.readfile` reads 1-based `row col value` triplets that follow an `m n nnz` header. Lines starting with `%` before the header are skipped.
  - `read_triplet_column(path)` expects entries grouped by ascending column and stores the matrix by columns.
  - `read_triplet_row(path)` expects entries grouped by ascending row and stores the matrix by rows.
  - `read_triplets(stream, column_major=True)` reads from an open text stream.
  - A non-square header, a short file, an out-of-range index or badly grouped entries raise `MatrixInvalidError`.
- `sparselu.mc64` provides weighted matching and the scaling built on it.
  - `weighted_matching(n, ai, ap, costs)` finds a minimum-cost matching of lines to minor indices and returns an `Mc64Result`.
  - `mc64_scaling(matrix)` matches for the largest product of magnitudes. Its result's `row_scale` and `col_scale_perm` make every matched entry 1 in magnitude and no entry larger.
  - `apply_mc64_scale(matrix, row_scale, col_scale_perm)` returns the scaled copy.
- `sparselu.scaling` provides `column_scale(matrix, row_perm=None, mode=ScaleMode.MAXIMUM)`. It returns a per-column factor taken from the largest magnitude (`ScaleMode.MAXIMUM`) or the sum of magnitudes (`ScaleMode.SUM`). It returns `None` for `ScaleMode.NONE`.
- `sparselu.symbolic` provides `SymbolicMatrix`, the LU fill-in pattern in compressed-column form.
  - `fill_in(ai, ap)` computes the pattern.
  - `csr()` builds the row-wise view.
  - `predict_lu(ai, ap, ax)` places the matrix values on the pattern, with zeros at fill-in positions.
  - `leveling()` and `level_groups()` group columns into independent levels.
  - `column_sums()` and `abft_check(reference, tolerance=1e-5)` provide checksum verification.
  - `solve(rhs, transform=None)` runs the two triangular solves using the values in `val`. `SolveTransform` carries the permutations and optional scales applied around the solve.
- `sparselu.static_symbolic` provides `static_symbolic_factorize(matrix, row_perm=None, cores=None, ...)`. It computes the row-wise L and U structure with pruning and returns a `StaticSymbolicResult`, which holds:
  - per-row workload and storage capacities;
  - the total flop count;
  - a predicted speedup on `cores` workers (the machine's CPU count by default);
  - the maximum attainable speedup.
- `sparselu.preprocess` provides `permute_rows(matrix, row_perm)`, which returns a copy whose line `i` is line `row_perm[i]` of the input.
- `sparselu.timer` provides `Timer`, which measures wall-clock seconds with `start()`, `stop()` and `runtime()` and also works as a context manager. It also provides `local_time_string(moment=None)`, which formats a time as `YYYY-MM-DD hh:mm:ss`.

## Example

```python
from sparselu.readfile import read_triplet_column
from sparselu.symbolic import SymbolicMatrix
from sparselu.timer import Timer

matrix = read_triplet_column("matrix.mtx")
with Timer() as timer:
    sym = SymbolicMatrix(matrix.n)
    sym.fill_in(matrix.ai, matrix.ap)
    sym.csr()
    sym.predict_lu(matrix.ai, matrix.ap, matrix.ax)
    sym.leveling()
print(timer.runtime(), "seconds,", len(sym.level_groups()), "levels")
```

`fill_in` raises `StructurallySingularError` if a column's pattern has no diagonal entry.

## What it does not do

- There is no numeric factorization routine. `predict_lu` only copies the original values onto the symbolic pattern. `SymbolicMatrix.solve` and `abft_check` expect `val` to hold factorized L and U values, which you must supply yourself.
- There is no fill-reducing ordering and no analysis step that produces the permutations. Permutations are inputs to `permute_rows`, `column_scale`, `static_symbolic_factorize` and `SolveTransform`.
- There is no multi-threaded or GPU execution. The speedup figures from `static_symbolic_factorize` are estimates only.
- There is no command-line program.

## Tests

```
pip install -e .[test]
pytest
```