"""Drafting contracts, prose schemas and the drafting collaborator."""

from prosegate.drafting.schemas import DATA_DIR, SchemaDataError, ProseSchemaRegistry
from prosegate.drafting.prompts import (
    LOAN_SYSTEM_PROMPT,
    BIO_SYSTEM_PROMPT,
    FIXED_FACTS_INSTRUCTION,
    FEEDBACK_HEADER,
    system_prompt,
)
from prosegate.drafting.builder import (
    DraftingContract,
    ContractBuilder,
    select_directives,
    format_feedback,
)
from prosegate.drafting.client import DraftingCollaborator, LLMDraftingCollaborator

__all__ = [
    "DATA_DIR",
    "SchemaDataError",
    "ProseSchemaRegistry",
    "LOAN_SYSTEM_PROMPT",
    "BIO_SYSTEM_PROMPT",
    "FIXED_FACTS_INSTRUCTION",
    "FEEDBACK_HEADER",
    "system_prompt",
    "DraftingContract",
    "ContractBuilder",
    "select_directives",
    "format_feedback",
    "DraftingCollaborator",
    "LLMDraftingCollaborator",
]
