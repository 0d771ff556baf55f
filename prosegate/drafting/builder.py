"""Contract builder - turns facts and checklist rules into a drafting request."""

from collections.abc import Sequence

from kungfu import Nothing, Option, Some
from pydantic import BaseModel, ConfigDict, Field

from prosegate.checklists.registry import ChecklistRegistry
from prosegate.constants import DEFAULT_MAX_FEEDBACK_DIRECTIVES
from prosegate.contracts.facts import Domain, FactContext
from prosegate.contracts.pipeline import CorrectionDirective
from prosegate.contracts.prose import ProseSchema
from prosegate.drafting.prompts import (
    FEEDBACK_HEADER,
    FEEDBACK_INTROS,
    FIXED_FACTS_INSTRUCTION,
    system_prompt,
)
from prosegate.drafting.schemas import ProseSchemaRegistry
from prosegate.providers.base import Prompt


class DraftingContract(BaseModel):
    """Bounded generation request for one drafting attempt."""

    model_config = ConfigDict(frozen=True)

    doc_type: str
    domain: Domain
    system_prompt: str
    user_prompt: str
    prose_schema: ProseSchema = Field(description="Fields the draft must contain")
    max_tokens: int
    directives: tuple[CorrectionDirective, ...] = Field(
        default=(), description="Corrections included in the feedback block"
    )

    def to_prompt(self) -> Prompt:
        return Prompt(
            system=self.system_prompt,
            user=self.user_prompt,
            max_tokens=self.max_tokens,
        )


def select_directives(
    directives: Sequence[CorrectionDirective], limit: int
) -> tuple[CorrectionDirective, ...]:
    """Deduplicate keeping first occurrence order, then keep the most recent ``limit``."""
    unique = tuple(dict.fromkeys(directives))
    return unique[-limit:] if limit > 0 else ()


def format_feedback(domain: Domain, directives: Sequence[CorrectionDirective]) -> str:
    """Render directives as the mandatory-corrections block."""
    lines = [FEEDBACK_HEADER, FEEDBACK_INTROS[domain], ""]
    for i, directive in enumerate(directives, 1):
        lines.append(f"{i}. [{directive.field}] {directive.reason}")
    return "\n".join(lines)


def _format_fields(schema: ProseSchema) -> str:
    lines = ["Return these sections:"]
    for f in schema.fields:
        kind = "list of strings" if f.kind == "list" else "text"
        lines.append(f'  - "{f.key}" ({kind}): {f.purpose}')
    return "\n".join(lines)


class ContractBuilder:
    """
    Build drafting contracts.

    Deterministic: identical facts and feedback produce an identical
    contract. The feedback block is capped at the most recent
    ``max_feedback_directives`` distinct directives.
    """

    def __init__(
        self,
        schemas: ProseSchemaRegistry,
        checklists: ChecklistRegistry,
        max_feedback_directives: int = DEFAULT_MAX_FEEDBACK_DIRECTIVES,
    ):
        self.schemas = schemas
        self.checklists = checklists
        self.max_feedback_directives = max_feedback_directives

    def build(
        self,
        facts: FactContext,
        feedback: Sequence[CorrectionDirective] = (),
    ) -> Option[DraftingContract]:
        """
        Build the contract for one attempt.

        Returns Nothing for document types without a prose schema; those
        are never sent to the drafting collaborator.
        """
        schema = self.schemas.get(facts.doc_type, facts.program)
        if schema is None:
            return Nothing()

        directives = select_directives(feedback, self.max_feedback_directives)
        sections = [facts.render()]

        excerpts = self.schemas.excerpts(facts.doc_type, facts.program)
        if excerpts:
            sections.append(excerpts)

        checklist = self._format_checklist(facts)
        if checklist:
            sections.append(checklist)

        sections.append(schema.instruction)

        if facts.program and facts.program in schema.program_guidance:
            sections.append(
                "PROGRAM GUIDANCE:\n" + schema.program_guidance[facts.program]
            )

        sections.append(_format_fields(schema))
        sections.append(self._format_fixed_facts(facts, schema))

        if directives:
            sections.append(format_feedback(facts.domain, directives))

        return Some(
            DraftingContract(
                doc_type=facts.doc_type,
                domain=facts.domain,
                system_prompt=system_prompt(facts.domain),
                user_prompt="\n\n".join(sections),
                prose_schema=schema,
                max_tokens=schema.max_tokens,
                directives=directives,
            )
        )

    def _format_checklist(self, facts: FactContext) -> str:
        entry = self.checklists.entry(facts.doc_type, facts.program)
        # Items the template already renders must not be drafted again
        required = [i for i in entry.required if i not in entry.template_guaranteed]
        if not required and not entry.cross_document:
            return ""

        lines = ["COMPLIANCE CHECKLIST (your prose MUST satisfy all required items):"]
        if required:
            lines.append("Required:")
            lines.extend(f"  - {item}" for item in required)
        if entry.cross_document:
            lines.append("Cross-document consistency (keep your prose aligned):")
            lines.extend(f"  - {item}" for item in entry.cross_document)
        return "\n".join(lines)

    @staticmethod
    def _format_fixed_facts(facts: FactContext, schema: ProseSchema) -> str:
        lines = [FIXED_FACTS_INSTRUCTION]
        mandatory = [
            fact
            for key in schema.mandatory_facts
            if (fact := facts.get(key)) is not None and not fact.placeholder
        ]
        if mandatory:
            lines.append("These values MUST appear verbatim in your prose:")
            lines.extend(f"  - {fact.label}: {fact.value}" for fact in mandatory)
        return "\n".join(lines)


__all__ = [
    "DraftingContract",
    "ContractBuilder",
    "select_directives",
    "format_feedback",
]
