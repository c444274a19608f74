"""Project file collection bounded by depth and an estimated-token ceiling."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, List, Optional, Sequence, Tuple

from .logging import get_logger
from .models import FileRecord, count_lines

DEFAULT_IGNORED_SUBSTRINGS: Tuple[str, ...] = (
    "node_modules",
    ".git",
    ".env",
    "dist",
    "build",
    "coverage",
    ".vscode",
    ".idea",
    "__pycache__",
    ".venv",
    ".pytest_cache",
    ".mypy_cache",
    ".DS_Store",
)

BINARY_EXTENSIONS = frozenset(
    {
        # images
        ".jpg", ".jpeg", ".png", ".gif", ".bmp", ".ico", ".svg", ".webp", ".tif", ".tiff", ".psd",
        # archives
        ".zip", ".tar", ".gz", ".tgz", ".bz2", ".xz", ".7z", ".rar", ".jar", ".war",
        # audio / video
        ".mp3", ".wav", ".ogg", ".flac", ".aac", ".mp4", ".mov", ".avi", ".mkv", ".webm",
        # compiled artefacts
        ".exe", ".dll", ".so", ".dylib", ".o", ".a", ".class", ".pyc", ".pyo", ".bin", ".wasm",
        # fonts
        ".ttf", ".otf", ".woff", ".woff2", ".eot",
        # documents and databases
        ".pdf", ".sqlite", ".db",
    }
)

CODE_EXTENSIONS = frozenset(
    {
        ".py", ".pyi", ".js", ".jsx", ".ts", ".tsx", ".mjs", ".cjs", ".java", ".kt", ".kts", ".go",
        ".rs", ".rb", ".php", ".cs", ".c", ".h", ".cpp", ".hpp", ".cc", ".hh", ".swift", ".m",
        ".scala", ".sh", ".vue", ".svelte",
    }
)

CONFIG_FILENAMES = frozenset(
    {
        "package.json",
        "tsconfig.json",
        "README.md",
        ".gitignore",
        "pyproject.toml",
        "setup.cfg",
        "requirements.txt",
        "Cargo.toml",
        "go.mod",
        "pom.xml",
        "Dockerfile",
        "docker-compose.yml",
        "Makefile",
    }
)

_KEPT_DOTFILES = frozenset({".gitignore", ".npmignore"})

_KB = 1024


def format_size(size: int) -> str:
    """Render a byte count in B/KB/MB/GB."""
    if size < _KB:
        return f"{size} B"
    if size < _KB * _KB:
        return f"{size / _KB:.2f} KB"
    if size < _KB ** 3:
        return f"{size / _KB ** 2:.2f} MB"
    return f"{size / _KB ** 3:.2f} GB"


def is_kept_dotfile(name: str) -> bool:
    return name in _KEPT_DOTFILES or name.endswith(".env.example")


def is_hidden_excluded(name: str) -> bool:
    return name.startswith(".") and not is_kept_dotfile(name)


def is_binary_name(name: str) -> bool:
    return os.path.splitext(name)[1].lower() in BINARY_EXTENSIONS


def matches_ignored_substring(rel_path: str, substrings: Iterable[str], *, is_dir: bool) -> bool:
    """Substring match anywhere in the path, not per segment.

    Kept dotfiles such as ``.gitignore`` are only matched on their parent
    directory so that ``.git`` does not swallow them.
    """
    target = rel_path
    if not is_dir:
        parent, _, name = rel_path.rpartition("/")
        if is_kept_dotfile(name):
            target = parent
    return any(pattern in target for pattern in substrings)


def entry_rank(name: str, *, is_dir: bool) -> int:
    """Code files first, then well-known configuration files, then everything else."""
    if is_dir:
        return 2
    if os.path.splitext(name)[1].lower() in CODE_EXTENSIONS:
        return 0
    if name in CONFIG_FILENAMES:
        return 1
    return 2


@dataclass
class CollectionResult:
    """Files gathered by one collection pass."""

    root: Path
    files: List[FileRecord]
    tokens_used: int
    skipped_for_budget: List[str] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)

    @property
    def paths(self) -> List[str]:
        return [record.path for record in self.files]


class FileCollector:
    """Walks a project root and snapshots the files worth documenting."""

    def __init__(
        self,
        *,
        max_file_bytes: int = 100 * _KB,
        ignored_substrings: Sequence[str] = DEFAULT_IGNORED_SUBSTRINGS,
        extra_ignored: Sequence[str] = (),
        excluded_paths: Sequence[Path] = (),
    ) -> None:
        self.max_file_bytes = max_file_bytes
        self.ignored_substrings: Tuple[str, ...] = tuple(ignored_substrings) + tuple(extra_ignored)
        self.excluded_paths: Tuple[Path, ...] = tuple(Path(p).resolve() for p in excluded_paths)
        self.logger = get_logger("collector")

    def collect(
        self,
        root: str | Path,
        output_path: str | Path,
        max_depth: int = 5,
        max_token_budget: Optional[int] = None,
    ) -> CollectionResult:
        """Return the project's files in walk order, greedily packed under the token ceiling."""
        root_path = Path(root).expanduser().resolve()
        if not root_path.exists():
            raise FileNotFoundError(f"Project path not found: {root}")
        if not root_path.is_dir():
            raise NotADirectoryError(f"Project path is not a directory: {root}")

        excluded = (Path(output_path).resolve(), *self.excluded_paths)
        result = CollectionResult(root=root_path, files=[], tokens_used=0)
        self._walk(root_path, root_path, 0, max_depth, max_token_budget, excluded, result)
        self.logger.debug(
            "Collected %d files (~%d tokens, %d skipped for budget) from %s",
            len(result.files),
            result.tokens_used,
            len(result.skipped_for_budget),
            root_path,
        )
        return result

    def _walk(
        self,
        root: Path,
        directory: Path,
        depth: int,
        max_depth: int,
        budget: Optional[int],
        excluded: Tuple[Path, ...],
        result: CollectionResult,
    ) -> None:
        if depth > max_depth:
            return
        try:
            with os.scandir(directory) as iterator:
                entries = [(entry.name, Path(entry.path), entry.is_dir(follow_symlinks=False)) for entry in iterator]
        except OSError as exc:
            self.logger.warning("Skipping directory %s: %s", directory, exc)
            result.errors.append(directory.relative_to(root).as_posix() or ".")
            return

        entries.sort(key=lambda item: (entry_rank(item[0], is_dir=item[2]), item[1].relative_to(root).as_posix()))

        for name, path, is_dir in entries:
            rel_path = path.relative_to(root).as_posix()
            if self._is_excluded(path, rel_path, name, is_dir, excluded):
                continue
            if is_dir:
                self._walk(root, path, depth + 1, max_depth, budget, excluded, result)
                continue
            if not path.is_file():
                continue

            record = self._read(path, rel_path)
            if budget is not None and result.tokens_used + record.tokens > budget:
                self.logger.debug("Token ceiling reached; skipping %s (~%d tokens)", rel_path, record.tokens)
                result.skipped_for_budget.append(rel_path)
                continue
            result.files.append(record)
            result.tokens_used += record.tokens

    def _is_excluded(
        self,
        path: Path,
        rel_path: str,
        name: str,
        is_dir: bool,
        excluded: Tuple[Path, ...],
    ) -> bool:
        resolved = path.resolve()
        for target in excluded:
            if resolved == target or target in resolved.parents:
                return True
        if matches_ignored_substring(rel_path, self.ignored_substrings, is_dir=is_dir):
            return True
        if not is_dir and is_binary_name(name):
            return True
        if is_hidden_excluded(name):
            return True
        return False

    def _read(self, path: Path, rel_path: str) -> FileRecord:
        size = 0
        modified_at = 0.0
        try:
            stat_result = path.stat()
            size = stat_result.st_size
            modified_at = stat_result.st_mtime
            if size > self.max_file_bytes:
                content = f"[File too large: {format_size(size)}]"
            else:
                content = path.read_bytes().decode("utf-8", errors="replace")
        except OSError as exc:
            self.logger.warning("Unable to read %s: %s", rel_path, exc)
            content = f"[Error reading file: {exc}]"

        return FileRecord(
            path=rel_path,
            content=content,
            size=size,
            modified_at=modified_at,
            line_count=count_lines(content),
            extension=path.suffix.lower(),
        )


__all__ = [
    "BINARY_EXTENSIONS",
    "CODE_EXTENSIONS",
    "CONFIG_FILENAMES",
    "CollectionResult",
    "DEFAULT_IGNORED_SUBSTRINGS",
    "FileCollector",
    "entry_rank",
    "format_size",
    "is_binary_name",
    "is_hidden_excluded",
    "is_kept_dotfile",
    "matches_ignored_substring",
]
