"""Client for a local Ollama server."""

from __future__ import annotations

from typing import Any, Dict, Optional

import httpx

from ..logging import get_logger
from .base import JSONClient, LLMRequest, ProviderError, Runner, build_messages, compose_user_prompt


def ollama_chat_payload(request: LLMRequest) -> Dict[str, object]:
    options: Dict[str, object] = {}
    if request.temperature is not None:
        options["temperature"] = request.temperature
    if request.max_tokens is not None:
        options["num_predict"] = request.max_tokens
    payload: Dict[str, object] = {
        "model": request.model,
        "messages": build_messages(request.system, request.prompt),
        "stream": False,
    }
    if options:
        payload["options"] = options
    return payload


def extract_ollama_content(payload: Any) -> str:
    if not isinstance(payload, dict):
        return ""
    message = payload.get("message")
    if isinstance(message, dict) and isinstance(message.get("content"), str):
        return message["content"]
    # /api/generate style responses
    response = payload.get("response")
    return response if isinstance(response, str) else ""


class OllamaProvider:
    name = "ollama"

    def __init__(
        self,
        *,
        model: str,
        base_url: str = "http://localhost:11434",
        temperature: Optional[float] = 0.7,
        max_tokens: Optional[int] = None,
        system_prompt: str | None = None,
        request_timeout: Optional[float] = 120.0,
        client: httpx.AsyncClient | None = None,
        runner: Runner | None = None,
    ) -> None:
        self.model = model
        self.base_url = base_url.rstrip("/")
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.system_prompt = system_prompt
        self.request_timeout = request_timeout
        self._runner = runner
        self._http = JSONClient("Ollama", client=client, timeout=request_timeout)
        self.logger = get_logger("llm.ollama")

    async def generate(self, context: str, *, section: str | None = None) -> str:
        request = LLMRequest(
            prompt=compose_user_prompt(context, section),
            system=self.system_prompt,
            model=self.model,
            temperature=self.temperature,
            max_tokens=self.max_tokens,
            base_url=self.base_url,
            api_key=None,
            request_timeout=self.request_timeout,
            section=section,
        )
        if self._runner is not None:
            return await self._runner(request)
        payload = await self._http.post(f"{self.base_url}/api/chat", ollama_chat_payload(request))
        content = extract_ollama_content(payload)
        if not content.strip():
            raise ProviderError("Ollama returned an empty response")
        return content.strip()

    async def check(self) -> bool:
        """Check the server is up and the configured model has been pulled."""
        try:
            payload = await self._http.get(f"{self.base_url}/api/tags")
        except ProviderError as exc:
            self.logger.warning("Unable to reach Ollama at %s: %s", self.base_url, exc)
            return False
        models = payload.get("models") if isinstance(payload, dict) else None
        names = [item.get("name") for item in models or [] if isinstance(item, dict)]
        if not any(name == self.model or (isinstance(name, str) and name.startswith(self.model)) for name in names):
            self.logger.warning(
                "Model '%s' not found in Ollama. Available: %s. Run: ollama pull %s",
                self.model,
                ", ".join(n for n in names if isinstance(n, str)) or "none",
                self.model,
            )
            return False
        self.logger.info("Connected to Ollama with model %s", self.model)
        return True

    async def aclose(self) -> None:
        await self._http.aclose()


__all__ = ["OllamaProvider", "extract_ollama_content", "ollama_chat_payload"]
