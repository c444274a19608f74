"""Core data models shared across docwatch components."""

from __future__ import annotations

import math
import re
from collections import Counter
from dataclasses import dataclass, field
from enum import Enum
from functools import cached_property
from typing import Dict, Iterable, Optional, Tuple

from .tokens import estimate_tokens

_LINE_BREAK = re.compile(r"\r\n|\r|\n")


def count_lines(text: str) -> int:
    return len(_LINE_BREAK.split(text))


@dataclass(frozen=True)
class FileRecord:
    """Snapshot of a single project file taken during one collection pass."""

    path: str
    content: str
    size: int
    modified_at: float
    line_count: int
    extension: str

    @cached_property
    def tokens(self) -> int:
        return estimate_tokens(self.content)


@dataclass
class TokenBudget:
    """Running token accumulator with a reserved headroom fraction."""

    total: int
    reserve_fraction: float = 0.1
    used: int = 0

    @property
    def limit(self) -> int:
        """Tokens that may be spent; the reserved fraction is never handed out."""
        return max(0, math.floor(self.total * (1 - self.reserve_fraction)))

    @property
    def remaining(self) -> int:
        return max(0, self.limit - self.used)

    def fits(self, cost: int) -> bool:
        return self.used + cost <= self.limit

    def charge(self, cost: int) -> None:
        """Account structural text; it is always emitted even past the limit."""
        self.used += cost

    def try_consume(self, cost: int) -> bool:
        if not self.fits(cost):
            return False
        self.used += cost
        return True


@dataclass(frozen=True)
class ProjectStats:
    """Aggregate figures describing the collected file set."""

    total_files: int
    total_size: int
    total_lines: int
    extensions: Tuple[Tuple[str, int], ...]

    @classmethod
    def from_files(cls, files: Iterable[FileRecord]) -> "ProjectStats":
        total_files = 0
        total_size = 0
        total_lines = 0
        histogram: Counter[str] = Counter()
        for record in files:
            total_files += 1
            total_size += record.size
            total_lines += record.line_count
            histogram[record.extension or "unknown"] += 1
        ordered = tuple(sorted(histogram.items(), key=lambda item: (-item[1], item[0])))
        return cls(
            total_files=total_files,
            total_size=total_size,
            total_lines=total_lines,
            extensions=ordered,
        )

    def render(self) -> str:
        file_types = ", ".join(f"{ext}: {count}" for ext, count in self.extensions) or "none"
        return (
            f"- Total Files: {self.total_files}\n"
            f"- Total Size: {round(self.total_size / 1024)} KB\n"
            f"- Total Lines: {self.total_lines}\n"
            f"- File Types: {file_types}\n"
        )


@dataclass(frozen=True)
class GeneratedDocument:
    """A fully assembled prompt context plus what went into it."""

    section_key: Optional[str]
    content: str
    estimated_tokens: int
    included_file_paths: Tuple[str, ...]
    mode: str = "section"
    skipped_files: int = 0
    metadata: Dict[str, object] = field(default_factory=dict)


class WatchEventKind(str, Enum):
    ADD = "add"
    CHANGE = "change"
    UNLINK = "unlink"


@dataclass(frozen=True)
class WatchEvent:
    """Filesystem change reported by the watcher."""

    kind: WatchEventKind
    path: str
    timestamp: float


__all__ = [
    "FileRecord",
    "GeneratedDocument",
    "ProjectStats",
    "TokenBudget",
    "WatchEvent",
    "WatchEventKind",
    "count_lines",
]
