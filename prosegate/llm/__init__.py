"""LLM abstraction layer with retry, timeout, and error handling."""

from prosegate.llm.call import (
    LLMError,
    is_retryable_error,
    llm_interpret,
)

__all__ = [
    "LLMError",
    "is_retryable_error",
    "llm_interpret",
]
