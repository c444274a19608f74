"""Tests for docwatch.models."""

from __future__ import annotations

from docwatch.models import FileRecord, ProjectStats, TokenBudget, count_lines


def _record(path: str, size: int, lines: int, extension: str) -> FileRecord:
    return FileRecord(path=path, content="", size=size, modified_at=0.0, line_count=lines, extension=extension)


def test_token_budget_keeps_reserve_out_of_reach() -> None:
    budget = TokenBudget(total=100, reserve_fraction=0.1)

    assert budget.limit == 90
    assert budget.try_consume(80) is True
    assert budget.try_consume(11) is False
    assert budget.try_consume(10) is True
    assert budget.remaining == 0


def test_token_budget_charges_structural_text_past_the_limit() -> None:
    budget = TokenBudget(total=10, reserve_fraction=0.0)

    budget.charge(25)

    assert budget.used == 25
    assert budget.remaining == 0
    assert budget.fits(0) is False


def test_project_stats_histogram_and_rendering() -> None:
    files = [
        _record("a.py", 1024, 10, ".py"),
        _record("b.py", 1024, 5, ".py"),
        _record("Makefile", 512, 3, ""),
        _record("c.ts", 512, 2, ".ts"),
    ]

    stats = ProjectStats.from_files(files)

    assert stats.total_files == 4
    assert stats.total_lines == 20
    assert stats.extensions == ((".py", 2), (".ts", 1), ("unknown", 1))
    rendered = stats.render()
    assert "- Total Size: 3 KB" in rendered
    assert "- File Types: .py: 2, .ts: 1, unknown: 1" in rendered


def test_count_lines_handles_all_line_endings() -> None:
    assert count_lines("") == 1
    assert count_lines("a\nb\r\nc\rd") == 4
