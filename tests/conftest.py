from __future__ import annotations

import logging
from pathlib import Path

import pytest

from tests._fixtures.repo_builder import RepoBuilder
from tests._fixtures.scheduler import VirtualScheduler


@pytest.fixture
def repo_builder(tmp_path: Path) -> RepoBuilder:
    """Provide a reusable project builder rooted at the pytest tmp_path."""
    return RepoBuilder(tmp_path)


@pytest.fixture
def scheduler() -> VirtualScheduler:
    return VirtualScheduler()


@pytest.fixture(autouse=True)
def _isolate_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep developer environment variables from leaking into config tests."""
    for key in (
        "PROVIDER",
        "LLM_MODEL",
        "OPENAI_API_KEY",
        "GROQ_API_KEY",
        "OPENWEBUI_API_KEY",
        "AWS_REGION",
        "AWS_ACCESS_KEY_ID",
        "AWS_SECRET_ACCESS_KEY",
        "OUTPUT_PATH",
        "UPDATE_INTERVAL",
        "MAX_TOKENS",
        "SECTIONS",
    ):
        monkeypatch.delenv(key, raising=False)


@pytest.fixture(autouse=True)
def _reset_docwatch_logger():
    """CLI tests install handlers bound to captured streams; drop them afterwards."""
    yield
    logger = logging.getLogger("docwatch")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.propagate = True
