"""Vocabulary index: ordering, duplicate collapse, read-only lookups."""

import pickle
import sys
from pathlib import Path

import pytest

PROJECT_ROOT = Path(__file__).parent.parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from coom.vocabulary import VocabularyIndex, build_vocabulary_index, vocabulary_from_tokens


def test_positions_follow_input_order():
    vocab = build_vocabulary_index(["a", "b", "c"])
    assert vocab.as_dict() == {"a": 0, "b": 1, "c": 2}
    assert vocab.terms == ("a", "b", "c")
    assert len(vocab) == 3


def test_duplicates_collapse_first_seen_wins():
    vocab = build_vocabulary_index(["b", "a", "b", "c", "a"])
    assert vocab.terms == ("b", "a", "c")
    assert vocab["b"] == 0
    assert vocab["a"] == 1
    assert vocab["c"] == 2
    # contiguous, no gaps
    assert sorted(i for _, i in vocab.items()) == list(range(len(vocab)))


def test_lookup_of_unknown_terms():
    vocab = build_vocabulary_index(["a"])
    assert "z" not in vocab
    assert vocab.get("z") is None
    assert vocab.get("z", -1) == -1
    with pytest.raises(KeyError):
        vocab["z"]


def test_from_lexicon_uses_key_order():
    lexicon = {"dog": 7, "cat": 3, "eel": 1}
    vocab = VocabularyIndex.from_lexicon(lexicon)
    assert vocab.terms == ("dog", "cat", "eel")


def test_vocabulary_from_tokens_first_occurrence():
    vocab = vocabulary_from_tokens(["to", "be", "or", "not", "to", "be"])
    assert vocab.terms == ("to", "be", "or", "not")


def test_empty_vocabulary():
    vocab = build_vocabulary_index([])
    assert len(vocab) == 0
    assert vocab.terms == ()


def test_as_dict_is_a_copy():
    vocab = build_vocabulary_index(["a", "b"])
    d = vocab.as_dict()
    d["c"] = 2
    assert "c" not in vocab


def test_equality_and_pickling():
    vocab = build_vocabulary_index(["x", "y"])
    assert vocab == VocabularyIndex(["x", "y"])
    assert vocab != VocabularyIndex(["y", "x"])
    restored = pickle.loads(pickle.dumps(vocab))
    assert restored == vocab
    assert restored["y"] == 1
    empty = pickle.loads(pickle.dumps(VocabularyIndex()))
    assert len(empty) == 0
