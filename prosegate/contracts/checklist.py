"""Checklist contracts - per-document-type compliance rules."""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

ChecklistCategory = Literal["required", "standard", "regulatory", "cross_document"]

CHECKLIST_CATEGORIES: tuple[ChecklistCategory, ...] = (
    "required",
    "standard",
    "regulatory",
    "cross_document",
)


def _merge_items(base: tuple[str, ...], extra: tuple[str, ...]) -> tuple[str, ...]:
    seen = set(base)
    additions: list[str] = []
    for item in extra:
        if item not in seen:
            seen.add(item)
            additions.append(item)
    return base + tuple(additions)


class ChecklistOverlay(BaseModel):
    """Program-specific additions for one document type. Never removes items."""

    model_config = ConfigDict(frozen=True)

    required: tuple[str, ...] = ()
    standard: tuple[str, ...] = ()
    regulatory: tuple[str, ...] = ()
    cross_document: tuple[str, ...] = ()


class ChecklistEntry(BaseModel):
    """
    Compliance checklist for one document type.

    - required: provisions that are critical if absent
    - standard: provisions that are a warning if absent
    - regulatory: citation strings expected to appear in the narrative
    - cross_document: facts that must match across sibling documents
    """

    model_config = ConfigDict(frozen=True)

    doc_type: str = Field(description="Document type key")
    required: tuple[str, ...] = ()
    standard: tuple[str, ...] = ()
    regulatory: tuple[str, ...] = ()
    cross_document: tuple[str, ...] = ()
    template_guaranteed: frozenset[str] = Field(
        default=frozenset(),
        description="Items already satisfied by the deterministic template",
    )

    @classmethod
    def empty(cls, doc_type: str) -> "ChecklistEntry":
        return cls(doc_type=doc_type)

    def merged(self, overlay: ChecklistOverlay) -> "ChecklistEntry":
        """Append overlay items, deduplicating by exact string."""
        return ChecklistEntry(
            doc_type=self.doc_type,
            required=_merge_items(self.required, overlay.required),
            standard=_merge_items(self.standard, overlay.standard),
            regulatory=_merge_items(self.regulatory, overlay.regulatory),
            cross_document=_merge_items(self.cross_document, overlay.cross_document),
            template_guaranteed=self.template_guaranteed,
        )

    def items(self) -> list[tuple[ChecklistCategory, str]]:
        """Every item with its category, in registry order."""
        return [
            (category, item)
            for category in CHECKLIST_CATEGORIES
            for item in getattr(self, category)
        ]

    def __len__(self) -> int:
        return (
            len(self.required)
            + len(self.standard)
            + len(self.regulatory)
            + len(self.cross_document)
        )


__all__ = [
    "ChecklistCategory",
    "CHECKLIST_CATEGORIES",
    "ChecklistOverlay",
    "ChecklistEntry",
]
