"""Drafting collaborator - produces a prose bundle for a contract."""

import logging
from dataclasses import dataclass
from typing import Any, Protocol

from kungfu import Error, Ok, Result

from prosegate.constants import DEFAULT_LLM_RETRY_TIMES, DEFAULT_LLM_TIMEOUT_SECONDS
from prosegate.contracts.prose import ProseBundle
from prosegate.drafting.builder import DraftingContract
from prosegate.llm.call import LLMError, llm_interpret
from prosegate.providers.base import ABCAIProvider

logger = logging.getLogger(__name__)


class DraftingCollaborator(Protocol):
    """Anything that turns a drafting contract into a prose bundle."""

    async def draft(self, contract: DraftingContract) -> Result[ProseBundle, LLMError]: ...


@dataclass
class LLMDraftingCollaborator:
    """Drafting through a structured-output LLM call."""

    provider: ABCAIProvider[Any]
    timeout_seconds: float = DEFAULT_LLM_TIMEOUT_SECONDS
    retry_times: int = DEFAULT_LLM_RETRY_TIMES

    async def draft(self, contract: DraftingContract) -> Result[ProseBundle, LLMError]:
        schema = contract.prose_schema.as_model()
        result = await llm_interpret(
            contract.to_prompt(),
            self.provider,
            schema,
            timeout_seconds=self.timeout_seconds,
            retry_times=self.retry_times,
        )
        match result:
            case Ok(parsed):
                return Ok(ProseBundle.from_model(contract.doc_type, parsed))
            case Error(e):
                logger.warning("Drafting call failed for %s: %s", contract.doc_type, e)
                return Error(e)


__all__ = ["DraftingCollaborator", "LLMDraftingCollaborator"]
