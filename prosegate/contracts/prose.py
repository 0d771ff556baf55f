"""Prose contracts - narrative field schemas and the bundles drafted from them."""

from collections.abc import Mapping
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, create_model

ProseValue = str | list[str]
FieldKind = Literal["text", "list"]


class ProseField(BaseModel):
    """One narrative field a drafting collaborator must produce."""

    model_config = ConfigDict(frozen=True)

    key: str = Field(description="Field key as it appears in the bundle")
    kind: FieldKind = Field(default="text", description="Scalar text or list of items")
    purpose: str = Field(description="What the field must contain")


class ProseSchema(BaseModel):
    """
    Narrative schema for one document type.

    The key set is fixed before generation; every bundle drafted against
    this schema carries exactly these keys.
    """

    model_config = ConfigDict(frozen=True)

    doc_type: str
    title: str = Field(description="Upper-case document title used in prompts")
    instruction: str = Field(description="Drafting instruction for this type")
    fields: tuple[ProseField, ...]
    mandatory_facts: tuple[str, ...] = Field(
        default=(),
        description="Fact keys whose values must appear verbatim in the narrative",
    )
    max_tokens: int = Field(default=4000, description="Output token budget")
    program_guidance: dict[str, str] = Field(
        default_factory=dict,
        description="Extra drafting guidance keyed by normalized program",
    )

    @property
    def keys(self) -> list[str]:
        return [f.key for f in self.fields]

    def get_field(self, key: str) -> ProseField | None:
        for f in self.fields:
            if f.key == key:
                return f
        return None

    def as_model(self) -> type[BaseModel]:
        """Build a pydantic model for structured drafting output.

        Missing keys default to empty values so the shape check, not the
        parser, reports them.
        """
        definitions: dict[str, Any] = {}
        for f in self.fields:
            if f.kind == "list":
                definitions[f.key] = (
                    list[str],
                    Field(default_factory=list, description=f.purpose),
                )
            else:
                definitions[f.key] = (str, Field(default="", description=f.purpose))
        name = "".join(part.title() for part in self.doc_type.split("_")) + "Prose"
        return create_model(name, **definitions)


def flatten_value(value: ProseValue | None) -> str:
    if value is None:
        return ""
    if isinstance(value, list):
        return " ".join(item for item in value if isinstance(item, str))
    return value


def is_empty_value(value: ProseValue | None) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return value.strip() == ""
    return len(value) == 0 or all(
        not isinstance(item, str) or item.strip() == "" for item in value
    )


class ProseBundle(BaseModel):
    """Named narrative fields for one document. The key set never changes."""

    model_config = ConfigDict(frozen=True)

    doc_type: str
    fields: dict[str, ProseValue] = Field(default_factory=dict)

    @classmethod
    def from_model(cls, doc_type: str, parsed: BaseModel) -> "ProseBundle":
        return cls(doc_type=doc_type, fields=parsed.model_dump())

    @property
    def keys(self) -> list[str]:
        return list(self.fields)

    def get(self, key: str) -> ProseValue | None:
        return self.fields.get(key)

    def field_text(self, key: str) -> str:
        return flatten_value(self.fields.get(key))

    def text(self) -> str:
        """All narrative concatenated for substring checks."""
        return " ".join(flatten_value(v) for v in self.fields.values())

    def with_fields(self, updates: Mapping[str, ProseValue]) -> "ProseBundle":
        """Replace values of existing keys; unknown keys are ignored."""
        merged = dict(self.fields)
        for key, value in updates.items():
            if key in merged:
                merged[key] = value
        return ProseBundle(doc_type=self.doc_type, fields=merged)


__all__ = [
    "ProseValue",
    "FieldKind",
    "ProseField",
    "ProseSchema",
    "ProseBundle",
    "flatten_value",
    "is_empty_value",
]
