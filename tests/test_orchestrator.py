"""Tests for docwatch.orchestrator."""

from __future__ import annotations

import asyncio
import time
from datetime import datetime, timezone
from pathlib import Path

import pytest

from docwatch.config import load_config
from docwatch.failsafe import ERROR_MARKER, is_error_document
from docwatch.models import WatchEvent, WatchEventKind
from docwatch.orchestrator import Orchestrator, temp_path_for, write_atomic
from tests._fixtures.providers import ExplodingProvider, FailingProvider, HangingProvider, RecordingProvider

FIXED_TIME = datetime(2024, 5, 6, 7, 8, 9, tzinfo=timezone.utc)


@pytest.fixture
def project(repo_builder):
    repo_builder.write(
        {
            "README.md": "# Demo\n\nA small demo.\n",
            "package.json": '{"name": "demo"}\n',
            "src/index.ts": "export const answer = 42;\n",
            "src/api/routes.ts": "export const routes = [];\n",
        }
    )
    return repo_builder.path()


def _orchestrator(root: Path, provider, **env: str) -> Orchestrator:
    config = load_config(root, env=env)
    return Orchestrator(config, provider, clock=lambda: FIXED_TIME)


def test_initial_then_incremental_generation(project: Path) -> None:
    provider = RecordingProvider(
        responses=(
            "Sure! Here is the doc:\n```markdown\n# Demo\n\nFirst.\n```",
            "# Demo\n\nSecond.\n",
        )
    )
    orchestrator = _orchestrator(project, provider)
    output = project / "project-doc.md"

    first = asyncio.run(orchestrator.generate())

    assert first.mode == "initial"
    assert first.ok
    assert output.read_text(encoding="utf-8") == "# Demo\n\nFirst.\n"
    assert first.document is not None
    assert first.document.included_file_paths[0] == "README.md"
    assert "project-doc.md" not in first.document.included_file_paths

    second = asyncio.run(orchestrator.generate())

    assert second.mode == "incremental"
    context, section = provider.calls[1]
    assert section is None
    assert "# PROJECT DOCUMENTATION UPDATE" in context
    assert "First." in context
    assert output.read_text(encoding="utf-8") == "# Demo\n\nSecond.\n"
    assert not temp_path_for(output).exists()


def test_provider_failure_writes_error_document(project: Path) -> None:
    orchestrator = _orchestrator(project, FailingProvider("connection refused"))
    output = project / "project-doc.md"
    output.write_text("# Old docs\n", encoding="utf-8")

    outcome = asyncio.run(orchestrator.generate("initial"))

    body = output.read_text(encoding="utf-8")
    assert outcome.error == "connection refused"
    assert not outcome.ok
    assert body.startswith(ERROR_MARKER)
    assert "- Time: 2024-05-06T07:08:09+00:00" in body
    assert "connection refused" in body
    assert orchestrator.choose_mode("auto") == "initial"


def test_unexpected_provider_exception_writes_error_document(project: Path) -> None:
    orchestrator = _orchestrator(project, ExplodingProvider(RuntimeError("socket closed")))
    output = project / "project-doc.md"
    output.write_text("# Old docs\n", encoding="utf-8")

    outcome = asyncio.run(orchestrator.generate("initial"))

    body = output.read_text(encoding="utf-8")
    assert outcome.error == "RuntimeError: socket closed"
    assert is_error_document(body)
    assert "RuntimeError: socket closed" in body
    assert "# Old docs" not in body


def test_provider_timeout_writes_error_document(project: Path) -> None:
    orchestrator = _orchestrator(project, HangingProvider(), GENERATION_TIMEOUT="0.05")

    outcome = asyncio.run(orchestrator.generate())

    assert outcome.error is not None
    assert "did not respond within 0.05 seconds" in outcome.error
    assert is_error_document((project / "project-doc.md").read_text(encoding="utf-8"))


def test_configured_sections_are_written_to_sections_dir(project: Path) -> None:
    provider = RecordingProvider(responses=("# Generated\n",))
    orchestrator = _orchestrator(project, provider, SECTIONS="overview,setup")

    outcome = asyncio.run(orchestrator.generate())

    sections_dir = project / "docs" / "sections"
    assert (sections_dir / "00-Overview.md").read_text(encoding="utf-8") == "# Generated\n"
    assert (sections_dir / "02-Setup.md").exists()
    assert [section for _, section in provider.calls] == [None, "Project Overview", "Setup & Installation"]
    assert [child.mode for child in outcome.section_outcomes] == ["section", "section"]
    assert outcome.ok
    assert not any(path.startswith("docs/") for path in orchestrator.collect().paths)


def test_generate_section_builds_single_section(project: Path) -> None:
    provider = RecordingProvider(responses=("# API Reference\n",))
    orchestrator = _orchestrator(project, provider)

    outcome = asyncio.run(orchestrator.generate_section("apis"))

    assert outcome.path == project.resolve() / "docs" / "sections" / "03-APIs.md"
    assert outcome.document is not None
    assert outcome.document.included_file_paths[0] == "src/api/routes.ts"
    assert provider.calls[0][1] == "API Reference"


def test_section_output_is_never_collected(project: Path) -> None:
    orchestrator = _orchestrator(project, RecordingProvider(responses=("# Overview\n",)))

    asyncio.run(orchestrator.generate_section("overview"))

    assert (project / "docs" / "sections" / "00-Overview.md").exists()
    assert not any(path.startswith("docs/sections") for path in orchestrator.collect().paths)


def test_choose_mode_falls_back_to_initial(project: Path) -> None:
    orchestrator = _orchestrator(project, RecordingProvider())

    assert orchestrator.choose_mode("incremental") == "initial"
    (project / "project-doc.md").write_text("# Docs\n", encoding="utf-8")
    assert orchestrator.choose_mode("auto") == "incremental"
    assert orchestrator.choose_mode("initial") == "initial"
    with pytest.raises(ValueError):
        orchestrator.choose_mode("sideways")


def test_write_atomic_creates_parents_and_replaces(tmp_path: Path) -> None:
    target = tmp_path / "nested" / "doc.md"

    write_atomic(target, "one\n")
    write_atomic(target, "two\n")

    assert target.read_text(encoding="utf-8") == "two\n"
    assert sorted(p.name for p in target.parent.iterdir()) == ["doc.md"]


def _events(root: Path, delay: float, tail: float):
    async def stream():
        await asyncio.sleep(delay)
        yield WatchEvent(WatchEventKind.CHANGE, str(root / "src" / "index.ts"), time.time())
        yield WatchEvent(WatchEventKind.CHANGE, str(root / "project-doc.md"), time.time())
        await asyncio.sleep(tail)

    return stream()


def test_watch_runs_startup_then_debounced_incremental(project: Path) -> None:
    provider = RecordingProvider(responses=("# Demo\n\nFirst.\n", "# Demo\n\nSecond.\n"))
    orchestrator = _orchestrator(project, provider, DEBOUNCE_MS="100", UPDATE_INTERVAL="60000")

    controller = asyncio.run(orchestrator.watch(events=_events(project, 0.2, 0.5)))

    assert controller.runs_started == 2
    assert len(provider.calls) == 2
    assert "# PROJECT DOCUMENTATION UPDATE" in provider.calls[1][0]
    assert (project / "project-doc.md").read_text(encoding="utf-8") == "# Demo\n\nSecond.\n"


def test_watch_survives_provider_failures(project: Path) -> None:
    provider = FailingProvider("boom")
    orchestrator = _orchestrator(project, provider, DEBOUNCE_MS="100", UPDATE_INTERVAL="60000")

    controller = asyncio.run(orchestrator.watch(events=_events(project, 0.2, 0.5)))

    assert controller.runs_started == 2
    assert len(provider.calls) == 2
    assert is_error_document((project / "project-doc.md").read_text(encoding="utf-8"))
