"""LLM providers for the prose gate."""

from prosegate.providers.base import ABCAIProvider, Prompt
from prosegate.providers.anthropic_provider import AnthropicError, AnthropicProvider
from prosegate.providers.openai_provider import (
    OpenAICompatibleError,
    OpenAICompatibleProvider,
)
from prosegate.providers.config import ProviderConfig, ProviderType
from prosegate.providers.factory import ProviderFactory

__all__ = [
    "ABCAIProvider",
    "Prompt",
    "AnthropicProvider",
    "AnthropicError",
    "OpenAICompatibleProvider",
    "OpenAICompatibleError",
    "ProviderFactory",
    "ProviderConfig",
    "ProviderType",
]
