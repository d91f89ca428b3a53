"""SQLite persistence of built matrices."""

import sqlite3
import sys
from pathlib import Path

import numpy as np
import pytest

PROJECT_ROOT = Path(__file__).parent.parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from coom.aggregator import CooConfig, build_coo_matrix
from coom.coom_store import load_meta, read_coom_from_db, write_coom_to_db


def _sample(dtype="float64"):
    cfg = CooConfig(window=2, normalize=True, dtype=dtype)
    docs = [["the", "cat", "sat", "on", "the", "mat"], ["the", "dog", "sat"]]
    vocab = ["the", "cat", "sat", "on", "mat", "dog", "unused"]
    return cfg, docs, build_coo_matrix(docs, vocab, cfg)


def test_round_trip(tmp_path):
    cfg, docs, coom = _sample()
    db = write_coom_to_db(tmp_path / "coom.db", coom, cfg, documents=len(docs))
    restored = read_coom_from_db(db)
    assert restored.terms == coom.terms
    assert restored.column_indices == coom.column_indices
    assert restored.dtype == coom.dtype
    assert np.allclose(restored.to_dense(), coom.to_dense())


def test_meta_records_build_parameters(tmp_path):
    cfg, docs, coom = _sample("float32")
    db = write_coom_to_db(tmp_path / "out" / "coom.db", coom, cfg, documents=len(docs))
    meta = load_meta(db)
    assert meta["window"] == "2"
    assert meta["normalize"] == "1"
    assert meta["dtype"] == "float32"
    assert meta["vocab_size"] == "7"
    assert meta["documents"] == "2"
    assert meta["nnz"] == str(coom.nnz)
    assert len(meta["params_hash"]) == 64
    assert read_coom_from_db(db).dtype == np.float32


def test_existing_file_is_replaced(tmp_path):
    cfg, docs, coom = _sample()
    path = tmp_path / "coom.db"
    write_coom_to_db(path, coom, cfg)
    small = build_coo_matrix([["x", "y"]], ["x", "y"])
    write_coom_to_db(path, small)
    restored = read_coom_from_db(path)
    assert restored.terms == ("x", "y")
    conn = sqlite3.connect(str(path))
    try:
        (count,) = conn.execute("SELECT COUNT(*) FROM cooc").fetchone()
    finally:
        conn.close()
    assert count == 2


def test_empty_matrix_round_trip(tmp_path):
    coom = build_coo_matrix([], [])
    restored = read_coom_from_db(write_coom_to_db(tmp_path / "empty.db", coom))
    assert restored.shape == (0, 0)


def test_missing_database(tmp_path):
    with pytest.raises(FileNotFoundError):
        read_coom_from_db(tmp_path / "missing.db")
