from pathlib import Path

from kungfu import cache
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from prosegate.constants import (
    DEFAULT_AUDIT_PATH,
    DEFAULT_LLM_RETRY_TIMES,
    DEFAULT_LLM_TIMEOUT_SECONDS,
    DEFAULT_MAX_ATTEMPTS,
    DEFAULT_MAX_FEEDBACK_DIRECTIVES,
    DEFAULT_MODELS,
)
from prosegate.providers.config import ProviderType


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    openai_api_key: str | None = Field(default=None, alias="OPENAI_API_KEY")
    anthropic_api_key: str | None = Field(default=None, alias="ANTHROPIC_API_KEY")
    openrouter_api_key: str | None = Field(default=None, alias="OPENROUTER_API_KEY")

    # Model selection
    provider: ProviderType = Field(
        default="anthropic",
        alias="PROSEGATE_PROVIDER",
        description="LLM provider used for drafting and review",
    )
    model: str | None = Field(
        default=None,
        alias="PROSEGATE_MODEL",
        description="Drafting model (provider default if unset)",
    )
    review_model: str | None = Field(
        default=None,
        alias="PROSEGATE_REVIEW_MODEL",
        description="Separate compliance review model (drafting model if unset)",
    )

    base_url: str | None = Field(
        default=None,
        alias="LLM_BASE_URL",
        description="Endpoint override for OpenAI-compatible providers",
    )

    # Pipeline limits
    max_attempts: int = Field(
        default=DEFAULT_MAX_ATTEMPTS,
        alias="MAX_ATTEMPTS",
        ge=1,
        description="Drafting attempts per document before rejection",
    )
    max_feedback_directives: int = Field(
        default=DEFAULT_MAX_FEEDBACK_DIRECTIVES,
        alias="MAX_FEEDBACK_DIRECTIVES",
        ge=1,
        description="Most recent correction directives carried into a retry prompt",
    )

    # LLM call behaviour
    llm_timeout_seconds: float = Field(
        default=DEFAULT_LLM_TIMEOUT_SECONDS,
        alias="LLM_TIMEOUT_SECONDS",
        description="Timeout for a single drafting or review call",
    )
    llm_retry_times: int = Field(
        default=DEFAULT_LLM_RETRY_TIMES,
        alias="LLM_RETRY_TIMES",
        description="Retries of transient LLM failures (rate limit, overload, 5xx)",
    )

    # Data and storage
    checklist_dir: Path | None = Field(
        default=None,
        alias="CHECKLIST_DIR",
        description="Override directory for checklist YAML files",
    )
    audit_path: Path = Field(
        default=Path(DEFAULT_AUDIT_PATH),
        alias="AUDIT_PATH",
        description="Directory for audit packages",
    )

    log_level: str = Field(default="WARNING", alias="LOG_LEVEL")

    def get_api_key(self, provider: ProviderType) -> str | None:
        match provider:
            case "openai":
                return self.openai_api_key
            case "anthropic":
                return self.anthropic_api_key
            case "openrouter":
                return self.openrouter_api_key
            case "lmstudio":
                return None  # LM Studio doesn't need API key

    def drafting_model(self) -> str:
        return self.model or DEFAULT_MODELS[self.provider]


@cache
def get_settings() -> Settings:
    return Settings()
