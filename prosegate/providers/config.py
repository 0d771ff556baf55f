"""Provider configuration."""

from typing import Literal

from pydantic import BaseModel, Field

ProviderType = Literal["openai", "anthropic", "openrouter", "lmstudio"]


class ProviderConfig(BaseModel):
    """Everything needed to build one drafting or review provider."""

    provider_type: ProviderType = Field(description="Type of LLM provider")
    model: str = Field(
        description="Model identifier (e.g., 'gpt-4o', 'claude-sonnet-4-20250514')"
    )
    api_key: str | None = Field(
        default=None,
        description="API key (if None, the client reads its environment variable)",
    )
    temperature: float = Field(
        default=0.0, description="Sampling temperature (0.0 for reproducible drafts)"
    )
    max_tokens: int = Field(default=4096, description="Default output token budget")
    base_url: str | None = Field(
        default=None, description="Endpoint override for OpenAI-compatible servers"
    )


__all__ = ["ProviderType", "ProviderConfig"]
