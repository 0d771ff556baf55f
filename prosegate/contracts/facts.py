"""Fact contract - authoritative facts for one document-generation attempt."""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

Domain = Literal["loan", "bio"]


class Fact(BaseModel):
    """A single formatted fact taken from upstream deal state."""

    model_config = ConfigDict(frozen=True)

    key: str = Field(description="Stable fact identifier (e.g. 'principal_amount')")
    label: str = Field(description="Human label used when rendering the fact")
    value: str = Field(description="Formatted value, or a placeholder token")
    placeholder: bool = Field(
        default=False,
        description="True when the deal state lacked this fact and a placeholder was emitted",
    )


class TrackedNumeric(BaseModel):
    """A numeric attribute whose presence in narrative is checked as a weak signal."""

    model_config = ConfigDict(frozen=True)

    key: str = Field(description="Identifier used in the issue field (numeric:<key>)")
    label: str = Field(description="Human description of the attribute")
    candidates: tuple[str, ...] = Field(
        description="Acceptable textual renderings; any one of them satisfies the check"
    )


class FactContext(BaseModel):
    """
    Immutable record of a document's authoritative facts.

    Built once per (deal, document type) request. Values are already
    formatted, so the same string that is rendered into the drafting
    contract is the string searched for in the returned narrative.
    """

    model_config = ConfigDict(frozen=True)

    doc_type: str = Field(description="Document type this context was built for")
    domain: Domain = Field(description="Document domain")
    program: str | None = Field(
        default=None,
        description="Normalized program key (loan program id or drug class)",
    )
    program_label: str | None = Field(
        default=None, description="Human program name for rendering"
    )
    facts: tuple[Fact, ...] = Field(default=(), description="Ordered facts")
    primary_parties: tuple[str, ...] = Field(
        default=(),
        description="Fact keys naming the document's primary parties",
    )
    tracked_numerics: tuple[TrackedNumeric, ...] = Field(default=())

    def get(self, key: str) -> Fact | None:
        for fact in self.facts:
            if fact.key == key:
                return fact
        return None

    def value(self, key: str, default: str = "") -> str:
        fact = self.get(key)
        return fact.value if fact is not None else default

    def tokens(self) -> list[str]:
        """Formatted values that are real facts (placeholders excluded)."""
        return [f.value for f in self.facts if not f.placeholder and f.value]

    def party_facts(self) -> list[Fact]:
        return [f for key in self.primary_parties if (f := self.get(key)) is not None]

    def render(self) -> str:
        """Render the facts as the narrative-safe block used in contracts."""
        header = (
            "DEAL TERMS (source of truth - use these exact values):"
            if self.domain == "loan"
            else "PROGRAM DATA (source of truth - use these exact values):"
        )
        lines = [header]
        if self.program_label:
            lines.append(f"Program: {self.program_label}")
        for fact in self.facts:
            lines.append(f"{fact.label}: {fact.value}")
        return "\n".join(lines)


__all__ = ["Domain", "Fact", "TrackedNumeric", "FactContext"]
