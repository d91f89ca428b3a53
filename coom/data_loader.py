from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict, Iterator, List, Optional, Sequence

from sqlalchemy import func
from sqlalchemy.orm import Session

from coom.corpus import Corpus, tokenize
from coom.database import Document, Token

class DataLoader:
    def __init__(self, db: Session):
        self.db = db
        self.log = logging.getLogger("coom.data_loader")

    def load_document(self, name: str, tokens: Sequence[str], source: Optional[str] = None) -> Document:
        """
        Store one tokenized document, replacing the tokens of an existing
        document with the same source.
        """
        doc = None
        if source is not None:
            doc = self.db.query(Document).filter(Document.source == source).first()
        if doc is None:
            doc = Document(name=name, source=source)
            self.db.add(doc)
            self.db.commit()
            self.db.refresh(doc)
        else:
            doc.name = name
            self.db.query(Token).filter(Token.document_id == doc.id).delete()

        # Bulk insert for better performance
        self.db.bulk_save_objects(
            [Token(document_id=doc.id, position=i, term=t) for i, t in enumerate(tokens)]
        )
        self.db.commit()
        self.log.debug("Loaded %d tokens for document: %s", len(tokens), name)
        return doc

    def load_directory(self, corpus_dir: str | Path, pattern: str = "*.txt") -> int:
        """
        Load every matching text file as one document. Returns the number loaded.
        """
        corpus_path = Path(corpus_dir)
        if not corpus_path.is_dir():
            raise FileNotFoundError(f"Corpus directory not found: {corpus_path}")
        total = 0
        for text_file in sorted(corpus_path.rglob(pattern)):
            text = text_file.read_text(encoding="utf-8", errors="ignore")
            self.load_document(text_file.stem, tokenize(text), source=str(text_file))
            total += 1
        self.log.info("Loaded %d documents from %s", total, corpus_path)
        return total

    def iter_token_sequences(self) -> Iterator[List[str]]:
        """
        Yield each document's tokens in position order, documents in id order.
        Documents without tokens are not yielded.
        """
        q = (
            self.db.query(Token.document_id, Token.term)
            .order_by(Token.document_id, Token.position)
        )
        current = None
        seq: List[str] = []
        for document_id, term in q:
            if document_id != current and current is not None:
                yield seq
                seq = []
            current = document_id
            seq.append(term)
        if current is not None:
            yield seq

    def fetch_lexicon(self, min_count: int = 1, max_vocab: Optional[int] = None) -> Dict[str, int]:
        """
        Term counts ordered by count desc, then term.
        """
        count = func.count(Token.id)
        q = (
            self.db.query(Token.term, count)
            .group_by(Token.term)
            .having(count >= min_count)
            .order_by(count.desc(), Token.term.asc())
        )
        if max_vocab is not None:
            q = q.limit(max_vocab)
        return {term: int(c) for term, c in q}

    def load_corpus(self, min_count: int = 1, max_vocab: Optional[int] = None) -> Corpus:
        """
        Every stored document (empty ones included) with the lexicon of the store.
        """
        docs = self.db.query(Document).order_by(Document.id).all()
        by_doc: Dict[int, List[str]] = {d.id: [] for d in docs}
        q = self.db.query(Token.document_id, Token.term).order_by(Token.document_id, Token.position)
        for document_id, term in q:
            by_doc[document_id].append(term)
        self.log.info("Read %d documents from the token store", len(docs))
        return Corpus(
            documents=[by_doc[d.id] for d in docs],
            lexicon=self.fetch_lexicon(min_count=min_count, max_vocab=max_vocab),
            names=[d.name for d in docs],
        )

def load_corpus_from_db(url: str, min_count: int = 1, max_vocab: Optional[int] = None) -> Corpus:
    from coom.database import make_session_factory
    db = make_session_factory(url)()
    try:
        return DataLoader(db).load_corpus(min_count=min_count, max_vocab=max_vocab)
    finally:
        db.close()
