"""Client for OpenAI-style ``/chat/completions`` endpoints."""

from __future__ import annotations

from typing import Any, Dict, Optional

import httpx

from ..logging import get_logger
from .base import (
    JSONClient,
    LLMRequest,
    ProviderError,
    Runner,
    bearer_headers,
    build_messages,
    compose_user_prompt,
)


def chat_completions_payload(request: LLMRequest) -> Dict[str, object]:
    payload: Dict[str, object] = {
        "model": request.model,
        "messages": build_messages(request.system, request.prompt),
    }
    if request.temperature is not None:
        payload["temperature"] = request.temperature
    if request.max_tokens is not None:
        payload["max_tokens"] = request.max_tokens
    return payload


def extract_chat_content(payload: Any) -> str:
    if not isinstance(payload, dict):
        return ""
    choices = payload.get("choices")
    if not isinstance(choices, list) or not choices:
        return ""
    first = choices[0]
    if not isinstance(first, dict):
        return ""
    message = first.get("message")
    if isinstance(message, dict):
        content = message.get("content")
        if isinstance(content, str):
            return content
    text = first.get("text")
    if isinstance(text, str):
        return text
    return ""


class OpenAICompatibleProvider:
    """Talks to OpenAI, Groq, OpenWebUI or any server exposing the same chat API."""

    def __init__(
        self,
        *,
        name: str = "openai",
        model: str,
        base_url: str,
        api_key: str | None = None,
        temperature: Optional[float] = 0.7,
        max_tokens: Optional[int] = None,
        system_prompt: str | None = None,
        request_timeout: Optional[float] = 120.0,
        client: httpx.AsyncClient | None = None,
        runner: Runner | None = None,
    ) -> None:
        self.name = name
        self.model = model
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.system_prompt = system_prompt
        self.request_timeout = request_timeout
        self._runner = runner
        self._http = JSONClient(name, client=client, timeout=request_timeout)
        self.logger = get_logger(f"llm.{name}")

    async def generate(self, context: str, *, section: str | None = None) -> str:
        request = LLMRequest(
            prompt=compose_user_prompt(context, section),
            system=self.system_prompt,
            model=self.model,
            temperature=self.temperature,
            max_tokens=self.max_tokens,
            base_url=self.base_url,
            api_key=self.api_key,
            request_timeout=self.request_timeout,
            section=section,
        )
        if self._runner is not None:
            return await self._runner(request)
        payload = await self._http.post(
            f"{self.base_url}/chat/completions",
            chat_completions_payload(request),
            headers=bearer_headers(self.api_key),
        )
        content = extract_chat_content(payload)
        if not content.strip():
            raise ProviderError(f"{self.name} returned an empty response")
        return content.strip()

    async def check(self) -> bool:
        """Confirm the endpoint answers and, when it lists models, that ours is among them."""
        try:
            payload = await self._http.get(f"{self.base_url}/models", headers=bearer_headers(self.api_key))
        except ProviderError as exc:
            self.logger.warning("Unable to reach %s at %s: %s", self.name, self.base_url, exc)
            return False
        data = payload.get("data") if isinstance(payload, dict) else None
        if isinstance(data, list):
            names = {item.get("id") for item in data if isinstance(item, dict)}
            if names and self.model not in names:
                self.logger.warning("Model '%s' is not listed by %s", self.model, self.name)
                return False
        self.logger.info("Connected to %s with model %s", self.name, self.model)
        return True

    async def aclose(self) -> None:
        await self._http.aclose()


__all__ = ["OpenAICompatibleProvider", "chat_completions_payload", "extract_chat_content"]
