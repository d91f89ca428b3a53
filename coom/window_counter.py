from __future__ import annotations

import logging
from typing import Sequence

import numpy as np

from coom.accumulator import SparseAccumulator
from coom.errors import ConfigurationError
from coom.vocabulary import VocabularyIndex


log = logging.getLogger("coom.window_counter")

DEFAULT_FLOAT_TYPE = np.float64


def check_window(window: int) -> int:
    if isinstance(window, bool) or not isinstance(window, (int, np.integer)):
        raise ConfigurationError(f"window must be a positive integer, got {window!r}")
    if window < 1:
        raise ConfigurationError(f"window must be >= 1, got {window}")
    return int(window)


def check_dtype(dtype) -> np.dtype:
    """Resolve `dtype` (a numpy type or its name) and require a floating type."""
    try:
        resolved = np.dtype(dtype)
    except TypeError as e:
        raise ConfigurationError(f"unknown weight type {dtype!r}") from e
    if not np.issubdtype(resolved, np.floating):
        raise ConfigurationError(f"weight type must be floating point, got {resolved}")
    return resolved


def check_tokens(tokens) -> Sequence[str]:
    if isinstance(tokens, (str, bytes)):
        raise TypeError("document must be a sequence of tokens, not a string; tokenize it first")
    return tokens if isinstance(tokens, (list, tuple)) else list(tokens)


def count_into(
    acc: SparseAccumulator,
    tokens: Sequence[str],
    vocabulary: VocabularyIndex,
    window: int,
    normalize: bool,
) -> int:
    """Scan one document into `acc`; returns the number of recorded events.

    Every unordered pair of positions (i, j) with 0 < j - i <= window whose
    terms are both known and distinct is one event of weight 1 or 1/(j - i).
    """
    m = len(tokens)
    # Resolve columns once; None marks out-of-vocabulary positions.
    cols = [vocabulary.get(t) for t in tokens]
    events = 0
    for i in range(m):
        row = cols[i]
        if row is None:
            continue
        end = i + window + 1 if i + window + 1 < m else m
        for j in range(i + 1, end):
            col = cols[j]
            if col is None or col == row:
                continue
            acc.add(row, col, 1.0 / (j - i) if normalize else 1.0)
            events += 1
    return events


def compute_window_counts(
    tokens: Sequence[str],
    vocabulary: VocabularyIndex,
    window: int,
    normalize: bool = True,
    dtype=DEFAULT_FLOAT_TYPE,
) -> SparseAccumulator:
    """Windowed co-occurrence counts of a single document.

    Returns an n x n SparseAccumulator, n = len(vocabulary). Tokens missing
    from the vocabulary are skipped. Windows are clamped at the document
    edges.

    `dtype` is only checked here: the accumulator sums Python floats and the
    weight type is applied when the result is converted with
    ``acc.to_csr(dtype)``.
    """
    window = check_window(window)
    check_dtype(dtype)
    tokens = check_tokens(tokens)
    acc = SparseAccumulator(len(vocabulary))
    events = count_into(acc, tokens, vocabulary, window, bool(normalize))
    log.debug("Counted %d events over %d tokens (window=%d)", events, len(tokens), window)
    return acc
