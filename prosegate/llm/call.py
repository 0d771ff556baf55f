"""Structured provider calls wrapped in retry and timeout combinators.

Every drafting and review request goes through ``llm_interpret``. Remote
failures come back as ``Error(LLMError)`` and are never raised, so the
pipeline controller only ever matches on a Result.
"""

import logging
from dataclasses import dataclass
from typing import Any

from combinators import ast
from combinators.control import RetryPolicy
from kungfu import Error, LazyCoroResult, Ok, Result
from pydantic import BaseModel

from prosegate.providers.base import ABCAIProvider, Prompt

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LLMError:
    """Failure of a drafting or review call after retries."""

    message: str
    retryable: bool
    original: Any | None = None

    def __str__(self) -> str:
        return self.message


# Substrings of provider error messages that mark a transient failure
RETRYABLE_PATTERNS: tuple[str, ...] = (
    # throttling
    "rate_limit",
    "rate limit",
    "too many requests",
    # capacity
    "overloaded",
    "529",
    "503",
    "502",
    "internal server error",
    "service unavailable",
    "temporarily unavailable",
    # deadlines
    "timeout",
    "timed out",
)


def _describe(error: Any) -> str:
    return str(error) or type(error).__name__


def is_retryable_error(error: Any) -> bool:
    """True for rate limits, overload, gateway errors and timeouts."""
    if isinstance(error, LLMError):
        return error.retryable
    text = _describe(error).lower()
    return any(pattern in text for pattern in RETRYABLE_PATTERNS)


def to_llm_error(error: Any) -> LLMError:
    if isinstance(error, LLMError):
        return error
    return LLMError(
        message=_describe(error),
        retryable=is_retryable_error(error),
        original=error,
    )


def _retry_policy(times: int, initial: float) -> RetryPolicy[Any]:
    return RetryPolicy[Any].exponential_jitter(
        times=times,
        initial=initial,
        multiplier=2.0,
        max_delay=30.0,
        jitter_factor=0.3,
        retry_on=is_retryable_error,
    )


def llm_interpret[T: BaseModel](
    prompt: Prompt,
    provider: ABCAIProvider[Any],
    schema: type[T],
    *,
    timeout_seconds: float = 120,
    retry_times: int = 3,
    backoff_initial: float = 1.0,
) -> LazyCoroResult[T, LLMError]:
    """
    Ask the provider for ``schema``-shaped output.

    Transient failures are retried with jittered exponential backoff
    starting at ``backoff_initial`` seconds; the whole call, retries
    included, is bounded by ``timeout_seconds``.

    Example:
        match await llm_interpret(prompt, provider, ReviewResponse):
            case Ok(response): ...
            case Error(e): logger.warning("review failed: %s", e)
    """
    call = LazyCoroResult(lambda: provider.interpret(prompt, schema))
    guarded = (
        ast(call)
        .retry(policy=_retry_policy(retry_times, backoff_initial))
        .timeout(seconds=timeout_seconds)
        .lower()
    )

    async def run() -> Result[T, LLMError]:
        match await guarded:
            case Ok(parsed):
                return Ok(parsed)
            case Error(e):
                error = to_llm_error(e)
                logger.debug(
                    "%s call to %s failed (retryable=%s): %s",
                    schema.__name__,
                    getattr(provider, "model", "provider"),
                    error.retryable,
                    error.message,
                )
                return Error(error)

    return LazyCoroResult(run)


__all__ = [
    "LLMError",
    "RETRYABLE_PATTERNS",
    "is_retryable_error",
    "to_llm_error",
    "llm_interpret",
]
