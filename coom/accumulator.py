from __future__ import annotations

from typing import Dict, Iterator, Tuple

import numpy as np
from scipy import sparse


class SparseAccumulator:
    """Symmetric n x n weight matrix stored as row -> {col: weight}.

    Only observed pairs are kept, so memory follows the number of distinct
    co-occurring pairs rather than n^2. The only mutations are `add`
    (which writes both (r, c) and (c, r)) and `merge`.
    """

    def __init__(self, n: int):
        if n < 0:
            raise ValueError(f"dimension must be non-negative, got {n}")
        self.n = int(n)
        self._rows: Dict[int, Dict[int, float]] = {}

    @property
    def shape(self) -> Tuple[int, int]:
        return (self.n, self.n)

    @property
    def nnz(self) -> int:
        return sum(len(cols) for cols in self._rows.values())

    def add(self, row: int, col: int, weight: float) -> None:
        if not (0 <= row < self.n and 0 <= col < self.n):
            raise IndexError(f"({row}, {col}) outside {self.n}x{self.n}")
        cols = self._rows.setdefault(row, {})
        cols[col] = cols.get(col, 0.0) + weight
        if row != col:
            cols = self._rows.setdefault(col, {})
            cols[row] = cols.get(row, 0.0) + weight

    def merge(self, other: "SparseAccumulator") -> "SparseAccumulator":
        """Sum `other` into this accumulator entrywise."""
        if other.n != self.n:
            raise ValueError(f"cannot merge {other.n}x{other.n} into {self.n}x{self.n}")
        for r, cols in other._rows.items():
            mine = self._rows.setdefault(r, {})
            for c, w in cols.items():
                mine[c] = mine.get(c, 0.0) + w
        return self

    def get(self, row: int, col: int) -> float:
        cols = self._rows.get(row)
        if not cols:
            return 0.0
        return cols.get(col, 0.0)

    def row(self, row: int) -> Dict[int, float]:
        return dict(self._rows.get(row, {}))

    def items(self) -> Iterator[Tuple[int, int, float]]:
        for r in sorted(self._rows):
            cols = self._rows[r]
            for c in sorted(cols):
                yield r, c, cols[c]

    def to_csr(self, dtype=np.float64) -> sparse.csr_matrix:
        rows, cols, data = [], [], []
        for r, c, w in self.items():
            rows.append(r)
            cols.append(c)
            data.append(w)
        coo = sparse.coo_matrix(
            (np.asarray(data, dtype=dtype), (np.asarray(rows, dtype=np.int64), np.asarray(cols, dtype=np.int64))),
            shape=self.shape,
            dtype=dtype,
        )
        return coo.tocsr()

    def __len__(self) -> int:
        return self.n

    def __repr__(self) -> str:
        return f"SparseAccumulator({self.n}x{self.n}, nnz={self.nnz})"
