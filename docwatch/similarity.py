"""Deterministic character-histogram similarity used to rank files for revisions.

The vectors produced here are *not* semantic embeddings. They fold character
codes into a fixed-width histogram and normalise it, which is enough to pick a
handful of files that look like an existing document and nothing more.
"""

from __future__ import annotations

import hashlib
import math
import re
from typing import Dict, List, Sequence, Tuple

from .models import FileRecord

DEFAULT_DIMENSIONS = 128

_WHITESPACE = re.compile(r"\s+")


def pseudo_embedding(text: str, dimensions: int = DEFAULT_DIMENSIONS) -> List[float]:
    """Fold lower-cased, whitespace-collapsed character codes into a unit vector."""
    normalized = _WHITESPACE.sub(" ", text.lower()).strip()
    vector = [0.0] * dimensions
    for index, char in enumerate(normalized):
        vector[index % dimensions] += ord(char) / 1000
    magnitude = math.sqrt(sum(value * value for value in vector)) or 1.0
    return [value / magnitude for value in vector]


def cosine_similarity(left: Sequence[float], right: Sequence[float]) -> float:
    if len(left) != len(right):
        raise ValueError("Vectors must be of the same length")
    dot = sum(a * b for a, b in zip(left, right))
    norm_left = math.sqrt(sum(a * a for a in left))
    norm_right = math.sqrt(sum(b * b for b in right))
    if norm_left == 0 or norm_right == 0:
        return 0.0
    return dot / (norm_left * norm_right)


class SimilarityRanker:
    """Ranks files against a query text, caching vectors by content digest."""

    def __init__(self, *, dimensions: int = DEFAULT_DIMENSIONS, cache_size: int = 4096) -> None:
        self.dimensions = dimensions
        self.cache_size = cache_size
        self._cache: Dict[str, List[float]] = {}

    def rank(self, files: Sequence[FileRecord], query: str, limit: int = 5) -> List[FileRecord]:
        """Return up to ``limit`` files, most similar first; ties keep input order."""
        if limit <= 0 or not files:
            return []
        query_vector = pseudo_embedding(query, self.dimensions)
        scored: List[Tuple[float, int, FileRecord]] = []
        for position, record in enumerate(files):
            score = cosine_similarity(query_vector, self._vector_for(record.content))
            scored.append((score, position, record))
        scored.sort(key=lambda item: (-item[0], item[1]))
        return [record for _, _, record in scored[:limit]]

    def _vector_for(self, content: str) -> List[float]:
        digest = hashlib.sha1(content.encode("utf-8", errors="replace")).hexdigest()
        cached = self._cache.get(digest)
        if cached is not None:
            return cached
        if len(self._cache) >= self.cache_size:
            # Oldest insertion goes first.
            self._cache.pop(next(iter(self._cache)))
        vector = pseudo_embedding(content, self.dimensions)
        self._cache[digest] = vector
        return vector


__all__ = ["DEFAULT_DIMENSIONS", "SimilarityRanker", "cosine_similarity", "pseudo_embedding"]
