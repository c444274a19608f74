"""Client for Amazon Bedrock through the ``bedrock-runtime`` Converse API."""

from __future__ import annotations

import asyncio
from typing import Any, Dict, List, Optional

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from ..logging import get_logger
from .base import LLMRequest, ProviderError, Runner, compose_user_prompt


def converse_arguments(request: LLMRequest) -> Dict[str, Any]:
    inference: Dict[str, Any] = {}
    if request.temperature is not None:
        inference["temperature"] = request.temperature
    if request.max_tokens is not None:
        inference["maxTokens"] = request.max_tokens
    arguments: Dict[str, Any] = {
        "modelId": request.model,
        "messages": [{"role": "user", "content": [{"text": request.prompt}]}],
    }
    if request.system:
        arguments["system"] = [{"text": request.system}]
    if inference:
        arguments["inferenceConfig"] = inference
    return arguments


def extract_converse_text(response: Any) -> str:
    if not isinstance(response, dict):
        return ""
    message = (response.get("output") or {}).get("message") or {}
    blocks: List[Any] = message.get("content") or []
    return "".join(block["text"] for block in blocks if isinstance(block, dict) and isinstance(block.get("text"), str))


class BedrockProvider:
    """Calls a Bedrock model in a worker thread, since boto3 is synchronous."""

    name = "bedrock"

    def __init__(
        self,
        *,
        model: str,
        region: str | None,
        access_key_id: str | None = None,
        secret_access_key: str | None = None,
        endpoint_url: str | None = None,
        temperature: Optional[float] = 0.7,
        max_tokens: Optional[int] = None,
        system_prompt: str | None = None,
        request_timeout: Optional[float] = 120.0,
        client: Any = None,
        runner: Runner | None = None,
    ) -> None:
        self.model = model
        self.region = region
        self.endpoint_url = endpoint_url
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.system_prompt = system_prompt
        self.request_timeout = request_timeout
        self._runner = runner
        self.logger = get_logger("llm.bedrock")
        if client is None and runner is None:
            client = boto3.client(
                "bedrock-runtime",
                region_name=region,
                aws_access_key_id=access_key_id,
                aws_secret_access_key=secret_access_key,
                endpoint_url=endpoint_url,
                config=Config(read_timeout=request_timeout) if request_timeout else None,
            )
        self._client = client

    async def generate(self, context: str, *, section: str | None = None) -> str:
        request = LLMRequest(
            prompt=compose_user_prompt(context, section),
            system=self.system_prompt,
            model=self.model,
            temperature=self.temperature,
            max_tokens=self.max_tokens,
            base_url=self.endpoint_url or f"https://bedrock-runtime.{self.region}.amazonaws.com",
            api_key=None,
            request_timeout=self.request_timeout,
            section=section,
        )
        if self._runner is not None:
            return await self._runner(request)
        try:
            response = await asyncio.to_thread(self._client.converse, **converse_arguments(request))
        except ClientError as exc:
            error = exc.response.get("Error", {})
            raise ProviderError(
                f"Bedrock rejected the request ({error.get('Code', 'unknown')}): {error.get('Message', exc)}"
            ) from exc
        except BotoCoreError as exc:
            raise ProviderError(f"Bedrock request failed: {exc}") from exc
        content = extract_converse_text(response)
        if not content.strip():
            raise ProviderError("Bedrock returned an empty response")
        return content.strip()

    async def check(self) -> bool:
        """Only confirms a client exists; Bedrock has no cheap per-model probe."""
        if self._client is None and self._runner is None:
            self.logger.warning("Bedrock client not initialised for region %s", self.region)
            return False
        self.logger.info("Using Bedrock model %s in region %s", self.model, self.region)
        return True

    async def aclose(self) -> None:
        close = getattr(self._client, "close", None)
        if callable(close):
            close()


__all__ = ["BedrockProvider", "converse_arguments", "extract_converse_text"]
