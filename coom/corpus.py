from __future__ import annotations

import re
from collections import Counter
from dataclasses import dataclass, field
from typing import Dict, Iterable, Iterator, List, Optional, Sequence


WORD_RE = re.compile(r"[A-Za-z’']+")


def tokenize(text: str) -> List[str]:
    return [w.lower() for w in WORD_RE.findall(text)]


def build_lexicon(
    documents: Iterable[Sequence[str]],
    min_count: int = 1,
    max_vocab: Optional[int] = None,
) -> Dict[str, int]:
    """Term counts over all documents, ordered by count desc then term.

    Terms seen fewer than `min_count` times are dropped; `max_vocab` keeps
    only the most frequent ones.
    """
    counts: Counter = Counter()
    for doc in documents:
        counts.update(doc)
    items = sorted(
        ((t, c) for t, c in counts.items() if c >= min_count),
        key=lambda kv: (-kv[1], kv[0]),
    )
    if max_vocab is not None:
        items = items[:max_vocab]
    return dict(items)


@dataclass
class Corpus:
    """Token documents sharing one lexicon. The lexicon may be left empty."""

    documents: List[List[str]]
    lexicon: Dict[str, int] = field(default_factory=dict)
    names: List[str] = field(default_factory=list)

    def __iter__(self) -> Iterator[List[str]]:
        return iter(self.documents)

    def __len__(self) -> int:
        return len(self.documents)

    def with_lexicon(self, min_count: int = 1, max_vocab: Optional[int] = None) -> "Corpus":
        """Copy of this corpus carrying a lexicon computed from its documents."""
        return Corpus(
            documents=self.documents,
            lexicon=build_lexicon(self.documents, min_count=min_count, max_vocab=max_vocab),
            names=list(self.names),
        )

    def __repr__(self) -> str:
        return f"A Corpus with {len(self.documents)} documents"
