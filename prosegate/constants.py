"""Shared defaults."""

DEFAULT_MODELS: dict[str, str] = {
    "anthropic": "claude-sonnet-4-20250514",
    "openai": "gpt-4o",
    "openrouter": "anthropic/claude-sonnet-4-20250514",
    "lmstudio": "local-model",
}

# Drafting attempts per document before the pipeline rejects it
DEFAULT_MAX_ATTEMPTS = 3

# Correction directives carried into a retry prompt
DEFAULT_MAX_FEEDBACK_DIRECTIVES = 20

DEFAULT_LLM_TIMEOUT_SECONDS = 120.0
DEFAULT_LLM_RETRY_TIMES = 3

DEFAULT_AUDIT_PATH = "audit_packages"

__all__ = [
    "DEFAULT_MODELS",
    "DEFAULT_MAX_ATTEMPTS",
    "DEFAULT_MAX_FEEDBACK_DIRECTIVES",
    "DEFAULT_LLM_TIMEOUT_SECONDS",
    "DEFAULT_LLM_RETRY_TIMES",
    "DEFAULT_AUDIT_PATH",
]
