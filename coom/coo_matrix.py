from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Tuple

import numpy as np
from scipy import sparse

from coom.vocabulary import VocabularyIndex


@dataclass(frozen=True, eq=False)
class CooMatrix:
    """Co-occurrence matrix of a document or corpus.

    Fields:
      * `coom` the symmetric n x n CSR matrix; entry (i, j) is the accumulated
        co-occurrence weight of terms i and j. Its arrays are read-only.
      * `terms` the lexicon, in column order
      * `column_indices` the term -> column mapping used to build `coom`
    """

    coom: sparse.csr_matrix
    terms: Tuple[str, ...]
    column_indices: VocabularyIndex

    def __post_init__(self) -> None:
        n = len(self.column_indices)
        if self.coom.shape != (n, n):
            raise ValueError(f"matrix shape {self.coom.shape} does not match vocabulary size {n}")
        if tuple(self.terms) != self.column_indices.terms:
            raise ValueError("terms do not match the vocabulary order")
        object.__setattr__(self, "terms", tuple(self.terms))
        for arr in (self.coom.data, self.coom.indices, self.coom.indptr):
            arr.setflags(write=False)

    @property
    def vocabulary(self) -> VocabularyIndex:
        return self.column_indices

    @property
    def dim(self) -> int:
        return len(self.terms)

    @property
    def shape(self) -> Tuple[int, int]:
        return self.coom.shape

    @property
    def dtype(self) -> np.dtype:
        return self.coom.dtype

    @property
    def nnz(self) -> int:
        return int(self.coom.nnz)

    def __len__(self) -> int:
        return self.dim

    def weight(self, term_a: str, term_b: str) -> float:
        """Co-occurrence weight of two terms; 0.0 if either is not in the lexicon."""
        i = self.column_indices.get(term_a)
        j = self.column_indices.get(term_b)
        if i is None or j is None:
            return 0.0
        return float(self.coom[i, j])

    def neighbors(self, term: str, k: Optional[int] = None) -> List[Tuple[str, float]]:
        """Co-occurring terms of `term` by descending weight (ties in column order)."""
        i = self.column_indices.get(term)
        if i is None:
            return []
        start, end = self.coom.indptr[i], self.coom.indptr[i + 1]
        pairs = [
            (int(c), float(w))
            for c, w in zip(self.coom.indices[start:end], self.coom.data[start:end])
            if w != 0
        ]
        pairs.sort(key=lambda t: (-t[1], t[0]))
        if k is not None:
            pairs = pairs[:k]
        return [(self.terms[c], w) for c, w in pairs]

    def top_pairs(self, k: int = 10) -> List[Tuple[str, str, float]]:
        """Strongest unordered pairs (upper triangle only)."""
        upper = sparse.triu(self.coom, k=1).tocoo()
        order = sorted(zip(upper.row, upper.col, upper.data), key=lambda t: (-t[2], t[0], t[1]))
        return [(self.terms[r], self.terms[c], float(w)) for r, c, w in order[:k]]

    def to_dense(self) -> np.ndarray:
        return self.coom.toarray()

    def summary(self, k: int = 5) -> str:
        n = self.dim
        cells = n * n
        density = (self.nnz / cells) if cells else 0.0
        lines = [repr(self)]
        lines.append(f" * Vocabulary: {n} terms")
        lines.append(f" * Stored entries: {self.nnz}")
        lines.append(f" * Density: {density:.4%}")
        pairs = self.top_pairs(k)
        if pairs:
            lines.append(" * Top pairs:")
            for a, b, w in pairs:
                lines.append(f"    {a} ~ {b}\t{w:.4g}")
        return "\n".join(lines)

    def __repr__(self) -> str:
        n, p = self.shape
        return f"A {n}x{p} CooMatrix{{{self.dtype.name}}}"
