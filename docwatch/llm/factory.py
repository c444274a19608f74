"""Selects the provider client for a configuration, once, at startup."""

from __future__ import annotations

from typing import Callable, Dict

import httpx

from ..config import ProviderKind, WatchConfig
from ..logging import get_logger
from .base import Provider, Runner
from .bedrock import BedrockProvider
from .ollama import OllamaProvider
from .openai_compat import OpenAICompatibleProvider

logger = get_logger("llm.factory")


def _create_openai_compatible(name: str) -> Callable[..., Provider]:
    """OpenAI, Groq and OpenWebUI differ only in name, base URL and key."""

    def create(
        config: WatchConfig, *, client: httpx.AsyncClient | None = None, runner: Runner | None = None
    ) -> Provider:
        return OpenAICompatibleProvider(
            name=name,
            model=config.model,
            base_url=config.resolved_base_url,
            api_key=config.api_key,
            temperature=config.temperature,
            max_tokens=config.response_max_tokens,
            system_prompt=config.system_prompt,
            request_timeout=config.request_timeout,
            client=client,
            runner=runner,
        )

    return create


def _create_ollama(
    config: WatchConfig, *, client: httpx.AsyncClient | None = None, runner: Runner | None = None
) -> Provider:
    return OllamaProvider(
        model=config.model,
        base_url=config.resolved_base_url,
        temperature=config.temperature,
        max_tokens=config.response_max_tokens,
        system_prompt=config.system_prompt,
        request_timeout=config.request_timeout,
        client=client,
        runner=runner,
    )


def _create_bedrock(config: WatchConfig, *, client=None, runner: Runner | None = None) -> Provider:
    return BedrockProvider(
        model=config.model,
        region=config.aws_region,
        access_key_id=config.aws_access_key_id,
        secret_access_key=config.aws_secret_access_key,
        endpoint_url=config.base_url,
        temperature=config.temperature,
        max_tokens=config.response_max_tokens,
        system_prompt=config.system_prompt,
        request_timeout=config.request_timeout,
        client=client,
        runner=runner,
    )


_BUILDERS: Dict[ProviderKind, Callable[..., Provider]] = {
    ProviderKind.OLLAMA: _create_ollama,
    ProviderKind.OPENAI: _create_openai_compatible("openai"),
    ProviderKind.GROQ: _create_openai_compatible("groq"),
    ProviderKind.OPENWEBUI: _create_openai_compatible("openwebui"),
    ProviderKind.BEDROCK: _create_bedrock,
}


def create_provider(
    config: WatchConfig,
    *,
    client: object = None,
    runner: Runner | None = None,
) -> Provider:
    """Build the client for ``config.provider``.

    ``client`` is an ``httpx.AsyncClient`` for the HTTP backends or a
    boto3 ``bedrock-runtime`` client for Bedrock.

    Raises ``MissingCredentialsError`` before any network traffic when the
    provider needs credentials that are not configured.
    """
    config.require_credentials()
    provider = _BUILDERS[config.provider](config, client=client, runner=runner)
    logger.info("Using %s provider with model %s", config.provider.value, config.model)
    return provider


__all__ = ["create_provider"]
