"""Provider doubles for orchestrator tests."""

from __future__ import annotations

import asyncio
from typing import List, Optional, Sequence, Tuple

from docwatch.llm.base import ProviderError


class RecordingProvider:
    """Returns canned responses and records every context it receives."""

    name = "fake"

    def __init__(self, responses: Sequence[str] = ("# Docs\n\nGenerated.",), *, healthy: bool = True) -> None:
        self.responses = list(responses)
        self.calls: List[Tuple[str, Optional[str]]] = []
        self.healthy = healthy
        self.closed = False

    async def generate(self, context: str, *, section: str | None = None) -> str:
        self.calls.append((context, section))
        index = min(len(self.calls), len(self.responses)) - 1
        return self.responses[index]

    async def check(self) -> bool:
        return self.healthy

    async def aclose(self) -> None:
        self.closed = True


class FailingProvider(RecordingProvider):
    """Always raises ``ProviderError``."""

    def __init__(self, message: str = "connection refused") -> None:
        super().__init__()
        self.message = message

    async def generate(self, context: str, *, section: str | None = None) -> str:
        self.calls.append((context, section))
        raise ProviderError(self.message)


class ExplodingProvider(RecordingProvider):
    """Raises an unexpected exception instead of a ``ProviderError``."""

    def __init__(self, exc: Exception) -> None:
        super().__init__()
        self.exc = exc

    async def generate(self, context: str, *, section: str | None = None) -> str:
        self.calls.append((context, section))
        raise self.exc


class HangingProvider(RecordingProvider):
    """Never answers within any reasonable timeout."""

    async def generate(self, context: str, *, section: str | None = None) -> str:
        self.calls.append((context, section))
        await asyncio.sleep(3600)
        return ""


__all__ = ["ExplodingProvider", "FailingProvider", "HangingProvider", "RecordingProvider"]
