from __future__ import annotations

import hashlib
import logging
import sqlite3
import time
from pathlib import Path
from typing import Dict, List, Tuple

import numpy as np
from scipy import sparse

from coom.coo_matrix import CooMatrix
from coom.vocabulary import VocabularyIndex


SCHEMA_SQL = [
    """
    CREATE TABLE IF NOT EXISTS meta (
      key   TEXT PRIMARY KEY,
      value TEXT
    );
    """,
    # column order of the matrix
    """
    CREATE TABLE IF NOT EXISTS terms (
      idx  INTEGER PRIMARY KEY,
      term TEXT NOT NULL UNIQUE
    );
    """,
    # every stored entry, both triangles
    """
    CREATE TABLE IF NOT EXISTS cooc (
      row INTEGER NOT NULL,
      col INTEGER NOT NULL,
      w   REAL NOT NULL,
      PRIMARY KEY (row, col)
    );
    """,
]

INDEX_SQL = [
    "CREATE INDEX IF NOT EXISTS cooc_row ON cooc(row);",
    "CREATE INDEX IF NOT EXISTS cooc_col ON cooc(col);",
]


def sha256_str(s: str) -> str:
    return hashlib.sha256(s.encode("utf-8")).hexdigest()


def create_schema(conn: sqlite3.Connection) -> None:
    cur = conn.cursor()
    for sql in SCHEMA_SQL:
        cur.execute(sql)
    conn.commit()


def create_indices(conn: sqlite3.Connection) -> None:
    cur = conn.cursor()
    for sql in INDEX_SQL:
        cur.execute(sql)
    conn.commit()


def write_coom_to_db(db_path: str | Path, coom: CooMatrix, config=None, documents: int = 0) -> Path:
    """Persist `coom` to a fresh SQLite file (an existing file is replaced)."""
    log = logging.getLogger("coom.store")
    db_path = Path(db_path)
    db_path.parent.mkdir(parents=True, exist_ok=True)
    if db_path.exists():
        db_path.unlink()
    conn = sqlite3.connect(str(db_path))
    try:
        create_schema(conn)
        cur = conn.cursor()
        meta_items: Dict[str, str] = {
            "dtype": coom.dtype.name,
            "vocab_size": str(coom.dim),
            "nnz": str(coom.nnz),
            "documents": str(int(documents)),
            "built_at": time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime()),
        }
        if config is not None:
            meta_items.update(
                {
                    "window": str(config.window),
                    "normalize": "1" if config.normalize else "0",
                    "params_hash": sha256_str(config.to_json()),
                }
            )
        cur.executemany("INSERT INTO meta(key, value) VALUES(?,?)", meta_items.items())
        cur.executemany("INSERT INTO terms(idx, term) VALUES (?,?)", list(enumerate(coom.terms)))
        m = coom.coom.tocoo()
        cur.executemany(
            "INSERT INTO cooc(row, col, w) VALUES (?,?,?)",
            [(int(r), int(c), float(w)) for r, c, w in zip(m.row, m.col, m.data)],
        )
        create_indices(conn)
        conn.commit()
    finally:
        conn.close()
    log.info("Wrote %s (%d terms, %d entries)", db_path, coom.dim, coom.nnz)
    return db_path


def load_meta(db_path: str | Path) -> Dict[str, str]:
    db_path = Path(db_path)
    if not db_path.exists():
        raise FileNotFoundError(f"COOM database not found: {db_path}")
    conn = sqlite3.connect(str(db_path))
    try:
        cur = conn.cursor()
        cur.execute("SELECT key, value FROM meta")
        return {k: v for (k, v) in cur.fetchall()}
    finally:
        conn.close()


def read_coom_from_db(db_path: str | Path) -> CooMatrix:
    db_path = Path(db_path)
    meta = load_meta(db_path)
    dtype = np.dtype(meta.get("dtype", "float64"))
    conn = sqlite3.connect(str(db_path))
    try:
        cur = conn.cursor()
        cur.execute("SELECT term FROM terms ORDER BY idx ASC")
        terms = [r[0] for r in cur.fetchall()]
        cur.execute("SELECT row, col, w FROM cooc ORDER BY row, col")
        entries: List[Tuple[int, int, float]] = cur.fetchall()
    finally:
        conn.close()
    vocab = VocabularyIndex(terms)
    n = len(vocab)
    rows = np.asarray([e[0] for e in entries], dtype=np.int64)
    cols = np.asarray([e[1] for e in entries], dtype=np.int64)
    data = np.asarray([e[2] for e in entries], dtype=dtype)
    matrix = sparse.coo_matrix((data, (rows, cols)), shape=(n, n), dtype=dtype).tocsr()
    return CooMatrix(matrix, vocab.terms, vocab)
