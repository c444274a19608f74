"""Shared request model and HTTP plumbing for provider clients."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, List, Mapping, Optional, Protocol

import httpx

DEFAULT_USER_PROMPT = "Analyze this project and generate comprehensive documentation."


class ProviderError(RuntimeError):
    """Raised when a provider call fails or returns something unusable."""


@dataclass
class LLMRequest:
    """Represents one generation request sent to a provider."""

    prompt: str
    system: Optional[str]
    model: str
    temperature: Optional[float]
    max_tokens: Optional[int]
    base_url: str
    api_key: Optional[str]
    request_timeout: Optional[float]
    section: Optional[str] = None


Runner = Callable[[LLMRequest], Awaitable[str]]


class Provider(Protocol):
    """Anything that turns a built context into generated markdown."""

    name: str

    async def generate(self, context: str, *, section: str | None = None) -> str:
        ...

    async def check(self) -> bool:
        ...

    async def aclose(self) -> None:
        ...


def compose_user_prompt(context: str, section: str | None) -> str:
    if section:
        instruction = f"Write the '{section}' documentation for this project."
    else:
        instruction = DEFAULT_USER_PROMPT
    return f"{instruction}\n\nProject context:\n{context}"


def build_messages(system: str | None, prompt: str) -> List[Dict[str, str]]:
    messages: List[Dict[str, str]] = []
    if system:
        messages.append({"role": "system", "content": system})
    messages.append({"role": "user", "content": prompt})
    return messages


class JSONClient:
    """Thin wrapper over ``httpx.AsyncClient`` that maps failures to ``ProviderError``."""

    def __init__(
        self,
        label: str,
        *,
        client: httpx.AsyncClient | None = None,
        timeout: float | None = 120.0,
    ) -> None:
        self.label = label
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=timeout)

    async def post(self, url: str, payload: Mapping[str, Any], *, headers: Mapping[str, str] | None = None) -> Any:
        return await self._send("POST", url, json=dict(payload), headers=headers)

    async def get(self, url: str, *, headers: Mapping[str, str] | None = None) -> Any:
        return await self._send("GET", url, headers=headers)

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def _send(self, method: str, url: str, **kwargs: Any) -> Any:
        try:
            response = await self._client.request(method, url, **kwargs)
        except httpx.TimeoutException as exc:
            raise ProviderError(f"{self.label} request timed out: {exc}") from exc
        except httpx.HTTPError as exc:
            raise ProviderError(f"{self.label} request failed: {exc}") from exc

        if response.is_error:
            detail = response.text.strip()[:500] or response.reason_phrase
            raise ProviderError(f"{self.label} failed with status {response.status_code}: {detail}")
        try:
            return response.json()
        except ValueError as exc:
            raise ProviderError(f"{self.label} returned invalid JSON") from exc


def bearer_headers(api_key: str | None) -> Dict[str, str]:
    headers = {"Content-Type": "application/json"}
    if api_key:
        headers["Authorization"] = f"Bearer {api_key}"
    return headers


__all__ = [
    "DEFAULT_USER_PROMPT",
    "JSONClient",
    "LLMRequest",
    "Provider",
    "ProviderError",
    "Runner",
    "bearer_headers",
    "build_messages",
    "compose_user_prompt",
]
