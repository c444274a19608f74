"""Filesystem watching on top of watchfiles."""

from __future__ import annotations

import asyncio
import time
from pathlib import Path
from typing import AsyncIterator, Dict, Optional, Sequence

from watchfiles import Change, DefaultFilter, awatch

from .collector import DEFAULT_IGNORED_SUBSTRINGS, is_hidden_excluded, matches_ignored_substring
from .logging import get_logger
from .models import WatchEvent, WatchEventKind

_KINDS: Dict[Change, WatchEventKind] = {
    Change.added: WatchEventKind.ADD,
    Change.modified: WatchEventKind.CHANGE,
    Change.deleted: WatchEventKind.UNLINK,
}

logger = get_logger("watcher")


class WatchFilter(DefaultFilter):
    """Drops our own outputs, config files, hidden entries and ignored directories.

    Atomic-write temp files are dotfiles next to the output, so the hidden
    rule covers them.
    """

    def __init__(
        self,
        root: Path,
        *,
        excluded_paths: Sequence[Path] = (),
        ignored_substrings: Sequence[str] = DEFAULT_IGNORED_SUBSTRINGS,
    ) -> None:
        self.root = Path(root).resolve()
        self.excluded_paths = tuple(Path(p).resolve() for p in excluded_paths)
        self.ignored_substrings = tuple(ignored_substrings)
        super().__init__(ignore_paths=[str(p) for p in self.excluded_paths])

    def __call__(self, change: Change, path: str) -> bool:
        if not super().__call__(change, path):
            return False
        return not self.is_ignored(path)

    def is_ignored(self, path: str) -> bool:
        candidate = Path(path)
        if not candidate.is_absolute():
            candidate = self.root / candidate
        candidate = candidate.resolve()
        for target in self.excluded_paths:
            if candidate == target or target in candidate.parents:
                return True
        try:
            rel_path = candidate.relative_to(self.root).as_posix()
        except ValueError:
            return True
        if matches_ignored_substring(rel_path, self.ignored_substrings, is_dir=False):
            return True
        return any(is_hidden_excluded(part) for part in rel_path.split("/"))


async def watch_events(
    root: Path,
    watch_filter: WatchFilter,
    stop_event: Optional[asyncio.Event] = None,
    *,
    step_ms: int = 50,
) -> AsyncIterator[WatchEvent]:
    """Yield one ``WatchEvent`` per filesystem change until ``stop_event`` is set."""
    logger.info("Watching %s for changes", root)
    # awatch batches with its own short debounce; the controller applies the real one.
    async for changes in awatch(root, watch_filter=watch_filter, stop_event=stop_event, debounce=step_ms, step=step_ms):
        for change, path in sorted(changes, key=lambda item: item[1]):
            yield WatchEvent(kind=_KINDS[change], path=path, timestamp=time.time())


__all__ = ["WatchFilter", "watch_events"]
