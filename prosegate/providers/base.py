"""Provider interface - one structured-output call per prompt."""

from abc import ABC, abstractmethod
from dataclasses import dataclass

from kungfu import Result
from pydantic import BaseModel


@dataclass(frozen=True)
class Prompt:
    """System and user text for a single structured-output request."""

    system: str
    user: str
    max_tokens: int | None = None


class ABCAIProvider[E](ABC):
    """
    LLM provider returning validated structured output.

    Remote failures are returned as ``Error(E)``, never raised.
    """

    model: str

    @abstractmethod
    async def interpret[S: BaseModel](
        self, prompt: Prompt, schema: type[S]
    ) -> Result[S, E]:
        """Send the prompt and parse the answer into ``schema``."""


__all__ = ["Prompt", "ABCAIProvider"]
