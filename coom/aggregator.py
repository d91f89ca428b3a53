from __future__ import annotations

import dataclasses
import json
import logging
from enum import Enum
from itertools import chain
from multiprocessing import Pool
from typing import Iterable, List, Mapping, Optional, Sequence, Tuple, Union

import numpy as np
from scipy import sparse

from coom.accumulator import SparseAccumulator
from coom.coo_matrix import CooMatrix
from coom.errors import ConfigurationError
from coom.vocabulary import VocabularyIndex, vocabulary_from_tokens
from coom.window_counter import (
    DEFAULT_FLOAT_TYPE,
    check_dtype,
    check_tokens,
    check_window,
    count_into,
)


log = logging.getLogger("coom.aggregator")

VocabularyLike = Union[VocabularyIndex, Mapping[str, object], Sequence[str]]


class VocabularySource(str, Enum):
    AUTO = "auto"          # supplied vocabulary, else the corpus lexicon
    EXPLICIT = "explicit"  # supplied vocabulary only
    LEXICON = "lexicon"    # corpus lexicon only
    DOCUMENT = "document"  # distinct terms of the documents, first-seen order


def check_source(value) -> VocabularySource:
    try:
        return VocabularySource(value)
    except ValueError as e:
        raise ConfigurationError(f"unknown vocabulary source {value!r}") from e


@dataclasses.dataclass(frozen=True)
class CooConfig:
    window: int = 5
    normalize: bool = True
    dtype: str = np.dtype(DEFAULT_FLOAT_TYPE).name
    vocabulary_source: str = VocabularySource.AUTO.value
    workers: int = 1

    @property
    def weight_type(self) -> np.dtype:
        return check_dtype(self.dtype)

    @property
    def source(self) -> VocabularySource:
        return check_source(self.vocabulary_source)

    def validate(self) -> "CooConfig":
        check_window(self.window)
        check_dtype(self.dtype)
        check_source(self.vocabulary_source)
        if not isinstance(self.normalize, bool):
            raise ConfigurationError(f"normalize must be true or false, got {self.normalize!r}")
        if isinstance(self.workers, bool) or not isinstance(self.workers, int) or self.workers < 1:
            raise ConfigurationError(f"workers must be a positive integer, got {self.workers!r}")
        return self

    def to_json(self) -> str:
        data = dataclasses.asdict(self)
        data["dtype"] = self.weight_type.name
        data["vocabulary_source"] = self.source.value
        return json.dumps(data, sort_keys=True, separators=(",", ":"))

    @classmethod
    def from_dict(cls, data: Mapping[str, object]) -> "CooConfig":
        # allow partial configs
        base = dataclasses.asdict(cls())
        base.update({k: data[k] for k in data.keys() if k in base})
        return cls(**base)


def as_vocabulary(vocabulary: VocabularyLike) -> VocabularyIndex:
    if isinstance(vocabulary, VocabularyIndex):
        return vocabulary
    if isinstance(vocabulary, (str, bytes)):
        raise TypeError("vocabulary must be a collection of terms, not a string")
    if isinstance(vocabulary, Mapping):
        return VocabularyIndex.from_lexicon(vocabulary)
    return VocabularyIndex(vocabulary)


def resolve_vocabulary(
    source: VocabularySource,
    corpus: object,
    documents: List[Sequence[str]],
    vocabulary: Optional[VocabularyLike],
) -> VocabularyIndex:
    if vocabulary is not None:
        if source in (VocabularySource.LEXICON, VocabularySource.DOCUMENT):
            raise ConfigurationError(f"a vocabulary was supplied but the vocabulary source is {source.value!r}")
        return as_vocabulary(vocabulary)
    if source is VocabularySource.EXPLICIT:
        raise ConfigurationError("no vocabulary supplied")
    if source is VocabularySource.DOCUMENT:
        return vocabulary_from_tokens(chain.from_iterable(documents))
    lexicon = getattr(corpus, "lexicon", None)
    if lexicon:
        return as_vocabulary(lexicon)
    raise ConfigurationError(
        "no vocabulary supplied and the corpus has no lexicon; "
        "pass a vocabulary (an empty one is allowed) or build the lexicon first"
    )


def _materialize(documents: Iterable[Sequence[str]]) -> List[Sequence[str]]:
    if isinstance(documents, (str, bytes)):
        raise TypeError("expected a collection of token documents, got a string")
    return [check_tokens(doc) for doc in documents]


def _count_shard(args: Tuple[List[Sequence[str]], VocabularyIndex, int, bool]) -> SparseAccumulator:
    docs, vocabulary, window, normalize = args
    acc = SparseAccumulator(len(vocabulary))
    for tokens in docs:
        count_into(acc, tokens, vocabulary, window, normalize)
    return acc


def _shards(documents: List[Sequence[str]], parts: int) -> List[List[Sequence[str]]]:
    size = -(-len(documents) // parts)
    return [documents[i:i + size] for i in range(0, len(documents), size)]


def accumulate(
    documents: List[Sequence[str]],
    vocabulary: VocabularyIndex,
    window: int,
    normalize: bool,
    workers: int = 1,
) -> SparseAccumulator:
    """Sum the windowed counts of every document into one accumulator."""
    acc = SparseAccumulator(len(vocabulary))
    if workers > 1 and len(documents) > 1:
        shards = _shards(documents, workers)
        log.info("Counting %d documents in %d shards", len(documents), len(shards))
        with Pool(processes=min(workers, len(shards))) as pool:
            jobs = [(shard, vocabulary, window, normalize) for shard in shards]
            for partial in pool.imap_unordered(_count_shard, jobs):
                acc.merge(partial)
        return acc
    for k, tokens in enumerate(documents, 1):
        count_into(acc, tokens, vocabulary, window, normalize)
        if k % 1000 == 0:
            log.info("Processed %d documents...", k)
    return acc


def build_coo_matrix(
    documents: Iterable[Sequence[str]],
    vocabulary: Optional[VocabularyLike] = None,
    config: Optional[CooConfig] = None,
    **overrides,
) -> CooMatrix:
    """Build the co-occurrence matrix of a corpus over one shared vocabulary.

    `documents` is any iterable of token sequences; if it carries a
    non-empty `lexicon` attribute (see `coom.corpus.Corpus`) that lexicon is
    used when no vocabulary is given. `overrides` replace fields of `config`
    (e.g. ``window=2``). All configuration problems raise ConfigurationError
    before any document is scanned.
    """
    cfg = config or CooConfig()
    if overrides:
        try:
            cfg = dataclasses.replace(cfg, **overrides)
        except TypeError as e:
            raise ConfigurationError(f"unknown configuration field in {sorted(overrides)}") from e
    cfg.validate()
    dtype = cfg.weight_type
    if cfg.source is VocabularySource.DOCUMENT and vocabulary is None:
        docs = _materialize(documents)
        vocab = resolve_vocabulary(cfg.source, documents, docs, vocabulary)
    else:
        # the documents are read only once the vocabulary is settled
        vocab = resolve_vocabulary(cfg.source, documents, [], vocabulary)
        docs = _materialize(documents)

    log.info(
        "Building COOM: %d documents, vocab=%d, window=%d, normalize=%s, dtype=%s",
        len(docs), len(vocab), cfg.window, cfg.normalize, dtype.name,
    )
    acc = accumulate(docs, vocab, int(cfg.window), bool(cfg.normalize), cfg.workers)
    matrix = acc.to_csr(dtype)
    log.info("COOM built: %dx%d with %d stored entries", matrix.shape[0], matrix.shape[1], matrix.nnz)
    return CooMatrix(matrix, vocab.terms, vocab)


def build_from_document(
    tokens: Sequence[str],
    vocabulary: Optional[VocabularyLike] = None,
    config: Optional[CooConfig] = None,
    **overrides,
) -> CooMatrix:
    """Single document; without a vocabulary its own distinct terms are used."""
    tokens = check_tokens(tokens)
    cfg = config or CooConfig()
    if vocabulary is None:
        overrides["vocabulary_source"] = VocabularySource.DOCUMENT.value
    return build_coo_matrix([tokens], vocabulary, cfg, **overrides)


def build_from_corpus(
    corpus: Iterable[Sequence[str]],
    vocabulary: Optional[VocabularyLike] = None,
    config: Optional[CooConfig] = None,
    **overrides,
) -> CooMatrix:
    return build_coo_matrix(corpus, vocabulary, config, **overrides)


def _is_token_sequence(entity: object) -> bool:
    if isinstance(entity, (list, tuple)):
        return all(isinstance(t, str) for t in entity)
    return False


def cooccurrence_matrix(
    entity,
    dtype=DEFAULT_FLOAT_TYPE,
    window: int = 5,
    normalize: bool = True,
) -> sparse.csr_matrix:
    """Just the sparse matrix of `entity` (a CooMatrix, a token list or a corpus)."""
    if isinstance(entity, CooMatrix):
        return entity.coom
    cfg = CooConfig(window=window, normalize=normalize, dtype=check_dtype(dtype).name)
    if _is_token_sequence(entity):
        return build_from_document(entity, config=cfg).coom
    return build_coo_matrix(entity, config=cfg).coom
