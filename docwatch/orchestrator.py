"""Generation pipeline and watch loop for docwatch."""

from __future__ import annotations

import asyncio
import os
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import AsyncIterator, Callable, List, Optional, Set

from .collector import CollectionResult, FileCollector
from .config import WatchConfig
from .controller import RegenerationController
from .failsafe import build_error_document, is_error_document
from .llm.base import Provider, ProviderError
from .logging import get_logger
from .models import GeneratedDocument, WatchEvent
from .postproc import MarkdownLinter, clean_generated_markdown
from .prompting.builder import ContextBuilder
from .prompting.constants import section_spec
from .scheduler import AsyncioScheduler, Scheduler
from .watcher import WatchFilter, watch_events

MODES = ("auto", "initial", "incremental")


def temp_path_for(path: Path) -> Path:
    return path.with_name(f".{path.name}.tmp")


def write_atomic(path: Path, content: str) -> None:
    """Replace ``path`` with ``content`` so readers never observe a partial file."""
    path.parent.mkdir(parents=True, exist_ok=True)
    temp_path = temp_path_for(path)
    try:
        temp_path.write_text(content, encoding="utf-8")
        os.replace(temp_path, path)
    except OSError:
        temp_path.unlink(missing_ok=True)
        raise


@dataclass
class GenerationOutcome:
    """Result of one generation pass."""

    path: Path
    mode: str
    document: Optional[GeneratedDocument]
    error: Optional[str] = None
    section_outcomes: List["GenerationOutcome"] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.error is None and all(outcome.ok for outcome in self.section_outcomes)


class Orchestrator:
    """Collects files, builds a context, calls the provider and writes the result."""

    def __init__(
        self,
        config: WatchConfig,
        provider: Provider,
        *,
        collector: FileCollector | None = None,
        builder: ContextBuilder | None = None,
        linter: MarkdownLinter | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self.config = config
        self.provider = provider
        self.collector = collector or FileCollector(
            max_file_bytes=config.max_file_bytes,
            extra_ignored=config.exclude_dirs,
            excluded_paths=config.self_excluded_paths(),
        )
        self.builder = builder or ContextBuilder(
            reserve_fraction=config.reserve_fraction,
            project_name=config.root.name or "project",
        )
        self.linter = linter or MarkdownLinter()
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self.logger = get_logger("orchestrator")

    def read_existing(self) -> Optional[str]:
        try:
            return self.config.output_path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except OSError as exc:
            self.logger.warning("Unable to read existing documentation %s: %s", self.config.output_path, exc)
            return None

    def choose_mode(self, requested: str = "auto") -> str:
        """Resolve ``auto``/``incremental`` to ``initial`` when there is nothing usable to revise."""
        if requested not in MODES:
            raise ValueError(f"Unknown generation mode '{requested}'. Choose one of: {', '.join(MODES)}")
        if requested == "initial":
            return "initial"
        existing = self.read_existing()
        if existing is None or not existing.strip():
            if requested == "incremental":
                self.logger.info("No existing documentation at %s; running initial generation", self.config.output_path)
            return "initial"
        if is_error_document(existing):
            self.logger.info("Previous run left an error document; running initial generation")
            return "initial"
        return "incremental"

    def collect(self) -> CollectionResult:
        return self.collector.collect(
            self.config.root,
            self.config.output_path,
            max_depth=self.config.max_depth,
            max_token_budget=self.config.max_tokens,
        )

    async def generate(self, mode: str = "auto") -> GenerationOutcome:
        """Run one full pass and write the main document (plus section files when configured)."""
        resolved = self.choose_mode(mode)
        self.logger.info("Starting %s generation for %s", resolved, self.config.root)
        collection = self.collect()

        if resolved == "incremental":
            existing = self.read_existing() or ""
            document = self.builder.build_incremental(existing, collection.files, self.config.max_tokens)
        else:
            document = self.builder.build_initial(collection.files, self.config.max_tokens)

        outcome = await self._generate_to(self.config.output_path, document, resolved, section=None)
        if self.config.sections:
            for key in self.config.sections:
                outcome.section_outcomes.append(await self.generate_section(key, collection))
        return outcome

    async def generate_section(self, key: str, collection: CollectionResult | None = None) -> GenerationOutcome:
        """Generate one section document into ``sections_dir``."""
        spec = section_spec(key)
        if collection is None:
            collection = self.collect()
        document = self.builder.build(key, collection.files, self.config.max_tokens)
        target = self.config.sections_dir / spec.filename
        return await self._generate_to(target, document, "section", section=spec.title)

    async def _generate_to(
        self,
        target: Path,
        document: GeneratedDocument,
        mode: str,
        *,
        section: Optional[str],
    ) -> GenerationOutcome:
        error: Optional[str] = None
        try:
            raw = await asyncio.wait_for(
                self.provider.generate(document.content, section=section),
                timeout=self.config.generation_timeout,
            )
            body = clean_generated_markdown(raw, linter=self.linter)
            if not body.strip():
                raise ProviderError("Provider returned no documentation content")
        except asyncio.TimeoutError:
            error = f"Provider did not respond within {self.config.generation_timeout:g} seconds"
        except ProviderError as exc:
            error = str(exc)
        except Exception as exc:
            self.logger.exception("Provider call failed for %s", target)
            error = f"{type(exc).__name__}: {exc}"

        if error is not None:
            self.logger.error("Generation failed for %s: %s", target, error)
            body = build_error_document(self.config.root, reason=error, timestamp=self._clock())

        write_atomic(target, body)
        if error is None:
            self.logger.info(
                "Wrote %s documentation to %s (%d files, ~%d tokens)",
                mode,
                target,
                len(document.included_file_paths),
                document.estimated_tokens,
            )
        return GenerationOutcome(path=target, mode=mode, document=document, error=error)

    async def watch(
        self,
        stop_event: asyncio.Event | None = None,
        *,
        scheduler: Scheduler | None = None,
        events: AsyncIterator[WatchEvent] | None = None,
    ) -> RegenerationController:
        """Run the startup generation, then regenerate on changes and on the interval.

        Returns when ``stop_event`` is set or the event stream ends. A run in
        flight at that point is awaited, not cancelled.
        """
        stop_event = stop_event or asyncio.Event()
        scheduler = scheduler or AsyncioScheduler()
        watch_filter = WatchFilter(
            self.config.root,
            excluded_paths=self.config.self_excluded_paths(),
            ignored_substrings=self.collector.ignored_substrings,
        )
        running: Set[asyncio.Task] = set()

        def launch(reason: str) -> None:
            task = asyncio.ensure_future(self._run_triggered(controller, reason))
            running.add(task)
            task.add_done_callback(running.discard)

        controller = RegenerationController(
            scheduler,
            launch,
            debounce_seconds=self.config.debounce_ms / 1000,
            is_ignored=watch_filter.is_ignored,
        )

        if not await self._check_provider():
            self.logger.warning("Provider health check failed; generation will be retried on each trigger")

        controller.request("startup")
        controller.start_interval(self.config.update_interval_ms / 1000)
        stream = events if events is not None else watch_events(self.config.root, watch_filter, stop_event)
        try:
            async for event in stream:
                if stop_event.is_set():
                    break
                controller.file_changed(event)
        finally:
            controller.stop()
            if running:
                await asyncio.gather(*running, return_exceptions=True)
        self.logger.info("Stopped watching %s", self.config.root)
        return controller

    async def aclose(self) -> None:
        await self.provider.aclose()

    async def _run_triggered(self, controller: RegenerationController, reason: str) -> None:
        mode = "initial" if reason == "startup" else "auto"
        try:
            await self.generate(mode)
        except Exception:
            self.logger.exception("Generation triggered by %s failed", reason)
        finally:
            controller.generation_complete()

    async def _check_provider(self) -> bool:
        try:
            return await self.provider.check()
        except ProviderError as exc:
            self.logger.warning("Provider check failed: %s", exc)
            return False


__all__ = ["GenerationOutcome", "MODES", "Orchestrator", "temp_path_for", "write_atomic"]
