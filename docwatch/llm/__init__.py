"""LLM provider clients."""

from .base import LLMRequest, Provider, ProviderError
from .bedrock import BedrockProvider
from .factory import create_provider
from .ollama import OllamaProvider
from .openai_compat import OpenAICompatibleProvider

__all__ = [
    "BedrockProvider",
    "LLMRequest",
    "OllamaProvider",
    "OpenAICompatibleProvider",
    "Provider",
    "ProviderError",
    "create_provider",
]
