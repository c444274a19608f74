"""Helper utilities for constructing temporary projects in tests."""

from __future__ import annotations

import textwrap
from pathlib import Path
from typing import Mapping

from docwatch.collector import CollectionResult, FileCollector


class RepoBuilder:
    """Utility for writing files into a throwaway project and recollecting it."""

    def __init__(self, tmp_path: Path) -> None:
        self.root = tmp_path / "repo"
        self.root.mkdir()

    def write(self, files: Mapping[str, str]) -> None:
        """Write `path -> contents` entries into the project."""
        for relative, content in files.items():
            path = self.root / relative
            path.parent.mkdir(parents=True, exist_ok=True)
            normalised = textwrap.dedent(content).lstrip("\n")
            path.write_text(normalised, encoding="utf-8")

    def write_bytes(self, relative: str, size: int, fill: bytes = b"x") -> Path:
        """Write a file of exactly ``size`` bytes."""
        path = self.root / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(fill * size)
        return path

    def collect(self, **kwargs) -> CollectionResult:
        """Return a fresh collection of the project contents."""
        output = kwargs.pop("output_path", self.root / "project-doc.md")
        collector_kwargs = {
            key: kwargs.pop(key) for key in ("max_file_bytes", "extra_ignored", "excluded_paths") if key in kwargs
        }
        return FileCollector(**collector_kwargs).collect(self.root, output, **kwargs)

    def path(self) -> Path:
        """Return the project root path."""
        return self.root


__all__ = ["RepoBuilder"]
