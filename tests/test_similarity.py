"""Tests for docwatch.similarity."""

from __future__ import annotations

import math

import pytest

from docwatch.models import FileRecord
from docwatch.similarity import SimilarityRanker, cosine_similarity, pseudo_embedding


def _record(path: str, content: str) -> FileRecord:
    return FileRecord(path=path, content=content, size=len(content), modified_at=0.0, line_count=1, extension=".md")


def test_pseudo_embedding_is_unit_length_and_deterministic() -> None:
    vector = pseudo_embedding("Hello   World", dimensions=16)

    assert len(vector) == 16
    assert math.isclose(math.sqrt(sum(v * v for v in vector)), 1.0)
    assert vector == pseudo_embedding("hello world", dimensions=16)


def test_empty_text_embeds_to_zero_vector() -> None:
    vector = pseudo_embedding("", dimensions=8)

    assert vector == [0.0] * 8
    assert cosine_similarity(vector, pseudo_embedding("abc", dimensions=8)) == 0.0


def test_cosine_similarity_requires_equal_lengths() -> None:
    with pytest.raises(ValueError):
        cosine_similarity([1.0, 0.0], [1.0])


def test_identical_text_has_similarity_one() -> None:
    vector = pseudo_embedding("def main(): pass")
    assert math.isclose(cosine_similarity(vector, vector), 1.0)


def test_rank_returns_best_match_first_and_honours_limit() -> None:
    query = "## Usage\nRun the watcher with docwatch watch ."
    files = [
        _record("a.md", "0123456789" * 5),
        _record("b.md", query),
        _record("c.md", "ZZZZZZZZZZZZ"),
    ]
    ranker = SimilarityRanker()

    ranked = ranker.rank(files, query, limit=2)

    assert len(ranked) == 2
    assert ranked[0].path == "b.md"
    assert ranker.rank(files, query, limit=0) == []


def test_rank_keeps_input_order_on_ties() -> None:
    files = [_record("first.md", "same"), _record("second.md", "same")]

    ranked = SimilarityRanker().rank(files, "something else", limit=2)

    assert [record.path for record in ranked] == ["first.md", "second.md"]
