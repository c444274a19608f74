"""Orders collected files by their relevance to a documentation section."""

from __future__ import annotations

from typing import List, Sequence

from .models import FileRecord
from .prompting.constants import SectionSpec, section_spec
from .similarity import SimilarityRanker


class FilePrioritizer:
    """Deterministic path-heuristic ranking, plus similarity ranking for revisions."""

    def __init__(self, *, ranker: SimilarityRanker | None = None) -> None:
        self.ranker = ranker or SimilarityRanker()

    def prioritize(self, files: Sequence[FileRecord], section_key: str) -> List[FileRecord]:
        """Stable sort of ``files`` for ``section_key``; ties keep collection order."""
        spec = section_spec(section_key)
        return self.order(files, spec)

    @staticmethod
    def order(files: Sequence[FileRecord], spec: SectionSpec) -> List[FileRecord]:
        return sorted(files, key=lambda record: spec.sort_key(record.path, record.tokens))

    def rank_similar(self, files: Sequence[FileRecord], query: str, limit: int) -> List[FileRecord]:
        return self.ranker.rank(files, query, limit)


__all__ = ["FilePrioritizer"]
