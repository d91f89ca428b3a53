from __future__ import annotations

import logging
from typing import Dict, Iterable, Iterator, Mapping, Optional, Tuple


log = logging.getLogger("coom.vocabulary")


class VocabularyIndex:
    """Immutable term -> column mapping; positions follow first-seen input order."""

    __slots__ = ("_terms", "_index")

    def __init__(self, terms: Iterable[str] = ()):
        index: Dict[str, int] = {}
        ordered = []
        dropped = 0
        for term in terms:
            if term in index:
                dropped += 1
                continue
            index[term] = len(ordered)
            ordered.append(term)
        if dropped:
            log.debug("Collapsed %d duplicate terms (first-seen wins)", dropped)
        self._terms: Tuple[str, ...] = tuple(ordered)
        self._index = index

    @classmethod
    def from_lexicon(cls, lexicon: Mapping[str, object]) -> "VocabularyIndex":
        """Use the lexicon keys, in mapping order, as the vocabulary."""
        return cls(lexicon.keys())

    @property
    def terms(self) -> Tuple[str, ...]:
        return self._terms

    def get(self, term: str, default: Optional[int] = None) -> Optional[int]:
        return self._index.get(term, default)

    def items(self) -> Iterator[Tuple[str, int]]:
        return iter(self._index.items())

    def as_dict(self) -> Dict[str, int]:
        return dict(self._index)

    def __getitem__(self, term: str) -> int:
        return self._index[term]

    def __contains__(self, term: object) -> bool:
        return term in self._index

    def __len__(self) -> int:
        return len(self._terms)

    def __iter__(self) -> Iterator[str]:
        return iter(self._terms)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, VocabularyIndex):
            return NotImplemented
        return self._terms == other._terms

    def __hash__(self) -> int:
        return hash(self._terms)

    def __getstate__(self):
        return {"terms": self._terms}

    def __setstate__(self, state) -> None:
        self._terms = tuple(state["terms"])
        self._index = {t: i for i, t in enumerate(self._terms)}

    def __repr__(self) -> str:
        return f"VocabularyIndex({len(self._terms)} terms)"


def build_vocabulary_index(terms: Iterable[str]) -> VocabularyIndex:
    return VocabularyIndex(terms)


def vocabulary_from_tokens(tokens: Iterable[str]) -> VocabularyIndex:
    """Distinct tokens of a document (or several), in order of first occurrence."""
    return VocabularyIndex(tokens)
