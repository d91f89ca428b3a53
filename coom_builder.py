#!/usr/bin/env python3
"""
Co-occurrence Matrix (COOM) Builder

Builds a term co-occurrence matrix from text files or a token store:
- Tokenize documents (one per file, or one per line with --per-line)
- Resolve the vocabulary (explicit vocab file, else corpus lexicon)
- Count co-occurrences within ±window positions (optionally 1/distance weighted)
- Sum per-document matrices and persist the result to SQLite

CLI:
- build <paths...> [--db coom.db] [--config config.json]
- inspect <db> <term>
- summary <db>
- load <corpus_dir> --corpus-db sqlite:///corpus.db
"""

from __future__ import annotations

import argparse
import dataclasses
import json
import logging
from pathlib import Path
from typing import Dict, List, Tuple

from coom.aggregator import CooConfig, build_coo_matrix
from coom.coom_store import load_meta, read_coom_from_db, write_coom_to_db
from coom.corpus import Corpus, build_lexicon, tokenize
from coom.errors import ConfigurationError


log = logging.getLogger("coom_builder")


# -----------------------
# Inputs
# -----------------------
def read_documents(paths: List[str | Path], per_line: bool = False) -> Tuple[List[List[str]], List[str]]:
    """Tokenized documents and their names, in path order (directories: *.txt, sorted)."""
    files: List[Path] = []
    for p in map(Path, paths):
        if p.is_dir():
            files.extend(sorted(p.rglob("*.txt")))
        elif p.exists():
            files.append(p)
        else:
            raise FileNotFoundError(f"Input not found: {p}")
    docs: List[List[str]] = []
    names: List[str] = []
    for f in files:
        text = f.read_text(encoding="utf-8", errors="ignore")
        if per_line:
            for n, line in enumerate(text.splitlines(), start=1):
                if line.strip():
                    docs.append(tokenize(line))
                    names.append(f"{f.name}:{n}")
        else:
            docs.append(tokenize(text))
            names.append(f.name)
    return docs, names


def read_vocab_file(path: str | Path) -> List[str]:
    """One term per line; blank lines are ignored."""
    with open(path, "r", encoding="utf-8") as f:
        return [line.strip() for line in f if line.strip()]


# -----------------------
# Build pipeline
# -----------------------
def build_coom(
    corpus: Corpus,
    config: CooConfig,
    db_path: str | Path = "coom.db",
    vocabulary: List[str] | None = None,
) -> Path:
    """
    Build the COOM of `corpus` and write it to `db_path`.
    Overwrites existing DB if present.
    """
    coom = build_coo_matrix(corpus, vocabulary, config)
    return write_coom_to_db(db_path, coom, config, documents=len(corpus))


# -----------------------
# Inspection helpers
# -----------------------
def inspect_term(db_path: str | Path, term: str, k: int | None = 20) -> Dict:
    coom = read_coom_from_db(db_path)
    idx = coom.column_indices.get(term)
    if idx is None:
        return {"term": term, "found": False}
    return {
        "term": term,
        "found": True,
        "index": idx,
        "neighbors": coom.neighbors(term, k),
    }


def _format_inspect_text(info: Dict) -> str:
    """Create a clean, human-readable text report for an inspected term."""
    lines: List[str] = []
    lines.append(f"Term: {info.get('term', '')}")
    if not info.get("found"):
        lines.append("Found: no")
        return "\n".join(lines) + "\n"
    lines.append("Found: yes")
    lines.append(f"Column: {info.get('index')}")
    neighbors = info.get("neighbors", [])
    lines.append("")
    lines.append(f"Neighbors ({len(neighbors)}):")
    for rank, (nbr, w) in enumerate(neighbors, start=1):
        lines.append(f"  {rank:>3}. {nbr}\tw={w:.4f}")
    return "\n".join(lines) + "\n"


def _format_summary(db_path: str | Path) -> str:
    meta = load_meta(db_path)
    coom = read_coom_from_db(db_path)
    lines = [coom.summary()]
    for key in ("window", "normalize", "documents", "built_at"):
        if key in meta:
            lines.append(f" * {key}: {meta[key]}")
    return "\n".join(lines) + "\n"


# -----------------------
# CLI
# -----------------------
def _parse_args(argv: List[str]) -> argparse.Namespace:
    ap = argparse.ArgumentParser(description="COOM Builder")
    ap.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    sub = ap.add_subparsers(dest="cmd", required=True)

    ap_b = sub.add_parser("build", help="Build coom.db from text files or a token store")
    ap_b.add_argument("paths", nargs="*", help="Text files or directories (*.txt)")
    ap_b.add_argument("--db", default="coom.db", help="Output SQLite path (default: coom.db)")
    ap_b.add_argument("--config", default=None, help="Optional JSON config file")
    ap_b.add_argument("--window", type=int, default=None, help="Half-width of the window (default from config: 5)")
    ap_b.add_argument("--no-normalize", action="store_true", help="Count 1 per event instead of 1/distance")
    ap_b.add_argument("--dtype", default=None, help="Floating weight type, e.g. float32 (default: float64)")
    ap_b.add_argument("--workers", type=int, default=None, help="Worker processes (default: 1)")
    ap_b.add_argument("--vocab", default=None, help="Vocabulary file, one term per line")
    ap_b.add_argument("--min-count", type=int, default=1, help="Drop lexicon terms rarer than this")
    ap_b.add_argument("--max-vocab", type=int, default=None, help="Keep only the N most frequent terms")
    ap_b.add_argument("--per-line", action="store_true", help="Treat each non-empty line as a document")
    ap_b.add_argument("--corpus-db", default=None, help="Read documents from a token store URL instead of paths")

    ap_i = sub.add_parser("inspect", help="Show the strongest co-occurring terms of a term")
    ap_i.add_argument("db", help="Path to coom.db")
    ap_i.add_argument("term", help="Term to inspect")
    ap_i.add_argument("--k", type=int, default=20, help="Top-k neighbors (default: 20)")
    ap_i.add_argument("--out", help="Write a clean text report to this file instead of JSON to stdout")

    ap_s = sub.add_parser("summary", help="Describe a built coom.db")
    ap_s.add_argument("db", help="Path to coom.db")

    ap_l = sub.add_parser("load", help="Load a directory of *.txt files into a token store")
    ap_l.add_argument("corpus_dir", help="Directory of text files")
    ap_l.add_argument("--corpus-db", required=True, help="SQLAlchemy URL, e.g. sqlite:///corpus.db")

    return ap.parse_args(argv)


def _load_config(path: str | None) -> CooConfig:
    if not path:
        return CooConfig()
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)
    return CooConfig.from_dict(data)


def _config_from_args(ns: argparse.Namespace) -> CooConfig:
    cfg = _load_config(ns.config)
    return dataclasses.replace(
        cfg,
        window=(ns.window if ns.window is not None else cfg.window),
        normalize=(False if ns.no_normalize else cfg.normalize),
        dtype=(ns.dtype if ns.dtype is not None else cfg.dtype),
        workers=(ns.workers if ns.workers is not None else cfg.workers),
    )


def _corpus_from_args(ns: argparse.Namespace) -> Corpus:
    if ns.corpus_db:
        from coom.data_loader import load_corpus_from_db
        return load_corpus_from_db(ns.corpus_db, min_count=ns.min_count, max_vocab=ns.max_vocab)
    if not ns.paths:
        raise ConfigurationError("build needs input paths or --corpus-db")
    docs, names = read_documents(ns.paths, per_line=ns.per_line)
    lexicon = {} if ns.vocab else build_lexicon(docs, min_count=ns.min_count, max_vocab=ns.max_vocab)
    return Corpus(documents=docs, lexicon=lexicon, names=names)


def _run(ns: argparse.Namespace) -> None:
    if ns.cmd == "build":
        cfg = _config_from_args(ns).validate()
        corpus = _corpus_from_args(ns)
        log.info("Read %d documents", len(corpus))
        vocabulary = read_vocab_file(ns.vocab) if ns.vocab else None
        db_path = build_coom(corpus, cfg, ns.db, vocabulary=vocabulary)
        print(f"Built {db_path}")
    elif ns.cmd == "inspect":
        info = inspect_term(ns.db, ns.term, k=ns.k)
        if getattr(ns, "out", None):
            out_path = Path(ns.out)
            out_path.write_text(_format_inspect_text(info), encoding="utf-8")
            print(f"Wrote {out_path}")
        else:
            print(json.dumps(info, indent=2, ensure_ascii=False))
    elif ns.cmd == "summary":
        print(_format_summary(ns.db), end="")
    elif ns.cmd == "load":
        from coom.data_loader import DataLoader
        from coom.database import make_session_factory
        db = make_session_factory(ns.corpus_db)()
        try:
            n = DataLoader(db).load_directory(ns.corpus_dir)
        finally:
            db.close()
        print(f"Loaded {n} documents into {ns.corpus_db}")
    else:
        raise SystemExit(2)


def main(argv: List[str] | None = None) -> None:
    import sys
    ns = _parse_args(sys.argv[1:] if argv is None else argv)
    if not logging.getLogger().handlers:
        logging.basicConfig(
            level=logging.DEBUG if ns.verbose else logging.INFO,
            format="%(asctime)s %(levelname)s %(message)s",
        )
    try:
        _run(ns)
    except (ConfigurationError, FileNotFoundError) as e:
        log.error("%s", e)
        raise SystemExit(2)


if __name__ == "__main__":
    main()
