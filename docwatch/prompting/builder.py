"""Assembles token-budgeted prompt contexts for the documentation provider."""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Sequence

from jinja2 import Environment, StrictUndefined

from ..logging import get_logger
from ..models import FileRecord, GeneratedDocument, ProjectStats, TokenBudget
from ..prioritizer import FilePrioritizer
from ..tokens import estimate_tokens
from .constants import (
    EXCLUDED_NOTE_TEMPLATE,
    FILE_CLOSE,
    FILE_OPEN_TEMPLATE,
    FOOTER_TEMPLATE,
    HEADER_TEMPLATE,
    INCREMENTAL_EXCERPT_CHARS,
    INCREMENTAL_FILE_CHARS,
    INCREMENTAL_FILE_LIMIT,
    INCREMENTAL_FILES_HEADING,
    INCREMENTAL_FOOTER_TEMPLATE,
    INCREMENTAL_HEADER_TEMPLATE,
    INCREMENTAL_SECTION,
    OUTPUT_RULES,
    PROJECT_FOOTER_TEMPLATE,
    PROJECT_SPEC,
    STATS_TEMPLATE,
    SectionSpec,
    section_spec,
)

_ENV = Environment(undefined=StrictUndefined, keep_trailing_newline=True, autoescape=False)


@dataclass
class _Packed:
    bodies: List[str]
    paths: List[str]
    skipped: int


class ContextBuilder:
    """Builds header -> statistics -> file bodies -> footer contexts under a token budget.

    Structural text (header, statistics, footer) is always emitted and charged
    first; file bodies are admitted whole, in priority order, only while they fit
    in the budget minus its reserved headroom and under the section's file cap.
    """

    def __init__(
        self,
        *,
        prioritizer: FilePrioritizer | None = None,
        reserve_fraction: float = 0.1,
        project_name: str = "project",
    ) -> None:
        self.prioritizer = prioritizer or FilePrioritizer()
        self.reserve_fraction = reserve_fraction
        self.project_name = project_name
        self.logger = get_logger("builder")

    def build(self, section_key: str, files: Sequence[FileRecord], total_budget: int) -> GeneratedDocument:
        """Build the context for a single documentation section."""
        spec = section_spec(section_key)
        budget = TokenBudget(total=total_budget, reserve_fraction=self.reserve_fraction)

        header = self._render_header(spec)
        stats = self._render_stats(files)
        footer = _ENV.from_string(FOOTER_TEMPLATE).render(title=spec.title)
        for text in (header, stats, footer):
            budget.charge(estimate_tokens(text))

        ordered = self.prioritizer.prioritize(files, spec.key)
        packed = self._pack(ordered, budget, max_files=spec.max_files)

        content = header + stats + "".join(packed.bodies) + footer
        self.logger.debug(
            "Built %s context with %d files (~%d tokens)", spec.key, len(packed.paths), budget.used
        )
        return GeneratedDocument(
            section_key=spec.key,
            content=content,
            estimated_tokens=budget.used,
            included_file_paths=tuple(packed.paths),
            mode="section",
            skipped_files=packed.skipped,
            metadata={"budget": total_budget, "limit": budget.limit, "max_files": spec.max_files},
        )

    def build_initial(self, files: Sequence[FileRecord], total_budget: int) -> GeneratedDocument:
        """Build a whole-project context for a from-scratch generation."""
        spec = PROJECT_SPEC
        budget = TokenBudget(total=total_budget, reserve_fraction=self.reserve_fraction)

        header = self._render_header(spec)
        stats = self._render_stats(files)
        footer = _ENV.from_string(PROJECT_FOOTER_TEMPLATE).render()
        for text in (header, stats, footer):
            budget.charge(estimate_tokens(text))

        ordered = FilePrioritizer.order(files, spec)
        packed = self._pack(ordered, budget, max_files=spec.max_files)

        note = ""
        if packed.skipped:
            note = _ENV.from_string(EXCLUDED_NOTE_TEMPLATE).render(count=packed.skipped)
            budget.charge(estimate_tokens(note))

        content = header + stats + "".join(packed.bodies) + note + footer
        self.logger.info(
            "Built initial context with %d files, approximately %d tokens", len(packed.paths), budget.used
        )
        return GeneratedDocument(
            section_key=None,
            content=content,
            estimated_tokens=budget.used,
            included_file_paths=tuple(packed.paths),
            mode="initial",
            skipped_files=packed.skipped,
            metadata={"budget": total_budget, "limit": budget.limit},
        )

    def build_incremental(
        self,
        existing: str,
        files: Sequence[FileRecord],
        total_budget: int,
        *,
        limit: int = INCREMENTAL_FILE_LIMIT,
    ) -> GeneratedDocument:
        """Build a revision context from the current document and a few similar files."""
        budget = TokenBudget(total=total_budget, reserve_fraction=self.reserve_fraction)

        excerpt = existing[:INCREMENTAL_EXCERPT_CHARS] + "..."
        header = _ENV.from_string(INCREMENTAL_HEADER_TEMPLATE).render(
            rules=OUTPUT_RULES,
            project_name=self.project_name,
            excerpt=excerpt,
        )
        stats = self._render_stats(files)
        footer = _ENV.from_string(INCREMENTAL_FOOTER_TEMPLATE).render()
        for text in (header, stats, INCREMENTAL_FILES_HEADING, footer):
            budget.charge(estimate_tokens(text))

        relevant = self.prioritizer.rank_similar(files, existing, limit)
        packed = self._pack(relevant, budget, max_files=limit, excerpt_chars=INCREMENTAL_FILE_CHARS)

        content = header + stats + INCREMENTAL_FILES_HEADING + "".join(packed.bodies) + footer
        self.logger.info(
            "Built incremental context with %d files, approximately %d tokens", len(packed.paths), budget.used
        )
        return GeneratedDocument(
            section_key=None,
            content=content,
            estimated_tokens=budget.used,
            included_file_paths=tuple(packed.paths),
            mode="incremental",
            skipped_files=packed.skipped,
            metadata={"budget": total_budget, "limit": budget.limit, "section": INCREMENTAL_SECTION},
        )

    def _render_header(self, spec: SectionSpec) -> str:
        return _ENV.from_string(HEADER_TEMPLATE).render(
            title=spec.title,
            task=spec.task,
            rules=OUTPUT_RULES,
            outline=spec.outline,
            project_name=self.project_name,
        )

    @staticmethod
    def _render_stats(files: Sequence[FileRecord]) -> str:
        return _ENV.from_string(STATS_TEMPLATE).render(stats=ProjectStats.from_files(files).render())

    def _pack(
        self,
        ordered: Sequence[FileRecord],
        budget: TokenBudget,
        *,
        max_files: Optional[int],
        excerpt_chars: Optional[int] = None,
    ) -> _Packed:
        packed = _Packed(bodies=[], paths=[], skipped=0)
        for record in ordered:
            if max_files is not None and len(packed.paths) >= max_files:
                packed.skipped += 1
                continue
            opening = FILE_OPEN_TEMPLATE.format(path=record.path)
            body = record.content
            if excerpt_chars is not None and len(body) > excerpt_chars:
                body = body[:excerpt_chars] + "...\n"
            cost = estimate_tokens(opening) + estimate_tokens(body) + estimate_tokens(FILE_CLOSE)
            if not budget.try_consume(cost):
                self.logger.debug("Budget exhausted for %s (~%d tokens); skipping", record.path, cost)
                packed.skipped += 1
                continue
            packed.bodies.append(opening + body + FILE_CLOSE)
            packed.paths.append(record.path)
        return packed


__all__ = ["ContextBuilder"]
