"""Provider factory - maps a provider name onto a configured client."""

from typing import Any

from kungfu import Nothing, Option, Some

from prosegate.providers.anthropic_provider import AnthropicProvider
from prosegate.providers.base import ABCAIProvider
from prosegate.providers.config import ProviderConfig, ProviderType
from prosegate.providers.openai_provider import OpenAICompatibleProvider

OPENROUTER_BASE_URL = "https://openrouter.ai/api/v1"
LMSTUDIO_BASE_URL = "http://localhost:1234/v1"

# LM Studio ignores the key but the OpenAI client insists on one
LMSTUDIO_API_KEY = "lm-studio"


class ProviderFactory:
    """Creates drafting and review providers."""

    @staticmethod
    def create(
        provider_type: ProviderType,
        model: str,
        api_key: str | None = None,
        temperature: float = 0.0,
        max_tokens: int = 4096,
        base_url: str | None = None,
    ) -> ABCAIProvider[Any]:
        """
        Create an LLM provider.

        Args:
            provider_type: "openai", "anthropic", "openrouter" or "lmstudio"
            model: Model identifier
            api_key: API key (the client reads its env var if None)
            temperature: Sampling temperature, always sent explicitly
            max_tokens: Output budget when a prompt does not set one
            base_url: Override for OpenAI-compatible endpoints
        """
        temperature_opt: Option[float] = Some(temperature)

        match provider_type:
            case "anthropic":
                return AnthropicProvider(
                    model=model,
                    api_key=Some(api_key) if api_key else Nothing(),
                    temperature=temperature_opt,
                    max_tokens=max_tokens,
                )
            case "openai":
                url, key = base_url, api_key
            case "openrouter":
                url, key = base_url or OPENROUTER_BASE_URL, api_key or ""
            case "lmstudio":
                url, key = base_url or LMSTUDIO_BASE_URL, LMSTUDIO_API_KEY
            case _:
                raise ValueError(f"Unknown provider type: {provider_type!r}")

        return OpenAICompatibleProvider(
            model=model,
            base_url=url,
            api_key=key,
            temperature=temperature_opt,
            max_tokens=max_tokens,
        )

    @staticmethod
    def from_config(config: ProviderConfig) -> ABCAIProvider[Any]:
        return ProviderFactory.create(
            provider_type=config.provider_type,
            model=config.model,
            api_key=config.api_key,
            temperature=config.temperature,
            max_tokens=config.max_tokens,
            base_url=config.base_url,
        )


__all__ = ["ProviderFactory", "OPENROUTER_BASE_URL", "LMSTUDIO_BASE_URL"]
