"""Cross-document check - shared facts must match across sibling documents."""

import re
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation

from prosegate.checklists.registry import ChecklistRegistry
from prosegate.contracts.facts import Domain, FactContext
from prosegate.contracts.pipeline import CrossDocumentIssue
from prosegate.contracts.prose import ProseBundle

SHARED_FACT_KEYS: dict[Domain, tuple[str, ...]] = {
    "loan": ("principal_amount", "interest_rate", "maturity_date", "borrower"),
    "bio": ("drug_name", "sponsor", "dar"),
}

_MONTHS = (
    "January|February|March|April|May|June|July|August|September|October|November|December"
)

# Characters after a cue word in which the value is expected
CUE_WINDOW = 48


def _as_decimal(text: str) -> str:
    cleaned = re.sub(r"[$,%\s]", "", text)
    try:
        return str(Decimal(cleaned).normalize())
    except InvalidOperation:
        return cleaned


def _collapse(text: str) -> str:
    return " ".join(text.split())


@dataclass(frozen=True)
class Rendering:
    """How a shared fact shows up in narrative text."""

    pattern: re.Pattern[str]
    cues: tuple[str, ...]
    normalize: Callable[[str], str]
    # Words between or just before the cue that mean a different quantity
    qualifiers: tuple[str, ...] = ()


NARRATIVE_RENDERINGS: dict[str, Rendering] = {
    "principal_amount": Rendering(
        pattern=re.compile(r"\$\d{1,3}(?:,\d{3})*(?:\.\d{2})?(?![\d,])"),
        cues=("principal", "loan amount", "guaranteed amount"),
        normalize=_as_decimal,
        qualifiers=("outstanding", "prepa", "partial", "reduc", "fee", "exceed"),
    ),
    "interest_rate": Rendering(
        pattern=re.compile(r"(?<![\w.])\d+(?:\.\d+)?\s?%"),
        cues=("interest rate", "rate of interest", "interest at", "bear interest"),
        normalize=_as_decimal,
        qualifiers=("default", "late", "maximum", "floor", "ceiling", "increase"),
    ),
    "maturity_date": Rendering(
        pattern=re.compile(rf"(?:{_MONTHS}) \d{{1,2}}, \d{{4}}"),
        cues=("matur",),
        normalize=_collapse,
        qualifiers=("extend", "extension"),
    ),
    "dar": Rendering(
        pattern=re.compile(r"(?<![\w.])\d+(?:\.\d+)?(?![\w%]|\.\d)"),
        cues=("dar of", "dar is", "dar:", "drug-to-antibody ratio of"),
        normalize=_as_decimal,
        qualifiers=("range", "between"),
    ),
}

_SENTENCE_END = re.compile(r"(?<=[.;!?])\s+")


def narrative_renderings(text: str, rendering: Rendering) -> list[str]:
    """Values rendered right after one of the fact's cue words."""
    found: list[str] = []
    for sentence in _SENTENCE_END.split(text):
        lowered = sentence.lower()
        for cue in rendering.cues:
            start = lowered.find(cue)
            while start != -1:
                end = start + len(cue)
                match = rendering.pattern.search(sentence, end, end + CUE_WINDOW)
                if match is not None:
                    context = lowered[max(0, start - 24) : match.start()]
                    if not any(q in context for q in rendering.qualifiers):
                        found.append(match.group(0))
                start = lowered.find(cue, end)
    return found


def _fact_value_issues(contexts: Mapping[str, FactContext]) -> list[CrossDocumentIssue]:
    issues: list[CrossDocumentIssue] = []
    domains = {c.domain for c in contexts.values()}

    for domain in sorted(domains):
        for key in SHARED_FACT_KEYS[domain]:
            values: dict[str, str] = {}
            label = key
            for doc_type, context in contexts.items():
                fact = context.get(key)
                if context.domain != domain or fact is None or fact.placeholder:
                    continue
                values[doc_type] = fact.value
                label = fact.label
            if len(set(values.values())) > 1:
                rendered = "; ".join(f"{d}: {v}" for d, v in values.items())
                issues.append(
                    CrossDocumentIssue(
                        fact_key=key,
                        label=label,
                        values=values,
                        message=f"{label} differs between documents ({rendered})",
                    )
                )
    return issues


def _narrative_issues(
    contexts: Mapping[str, FactContext], bundles: Mapping[str, ProseBundle]
) -> list[CrossDocumentIssue]:
    issues: list[CrossDocumentIssue] = []
    for key, rendering in NARRATIVE_RENDERINGS.items():
        values: dict[str, str] = {}
        conflicts: list[str] = []
        label = key
        for doc_type, bundle in bundles.items():
            context = contexts.get(doc_type)
            fact = context.get(key) if context is not None else None
            if fact is None or fact.placeholder:
                continue
            label = fact.label
            expected = rendering.normalize(fact.value)
            found = narrative_renderings(bundle.text(), rendering)
            wrong = next((v for v in found if rendering.normalize(v) != expected), None)
            values[doc_type] = wrong or fact.value
            if wrong is not None:
                conflicts.append(f"{doc_type} states {wrong} where the deal gives {fact.value}")
        if conflicts:
            issues.append(
                CrossDocumentIssue(
                    fact_key=key,
                    label=label,
                    values=values,
                    message=f"{label} differs between documents ({'; '.join(conflicts)})",
                )
            )
    return issues


def check_cross_document(
    contexts: Mapping[str, FactContext],
    bundles: Mapping[str, ProseBundle] | None = None,
) -> list[CrossDocumentIssue]:
    """
    Compare shared facts across the documents of one package.

    Fact values are compared between contexts; placeholders are ignored,
    since a fact missing from one document cannot contradict another. When
    narratives are given, every currency, percent, date or ratio written
    next to a shared fact's cue words must equal the fact value.
    """
    issues = _fact_value_issues(contexts)
    if bundles:
        issues += _narrative_issues(contexts, bundles)
    return issues


def cross_document_rules(
    checklists: ChecklistRegistry, contexts: Mapping[str, FactContext]
) -> dict[str, list[str]]:
    """Cross-document checklist items per document type, for the package report."""
    rules: dict[str, list[str]] = {}
    for doc_type, context in contexts.items():
        items = checklists.entry(doc_type, context.program).cross_document
        if items:
            rules[doc_type] = list(items)
    return rules


__all__ = [
    "SHARED_FACT_KEYS",
    "NARRATIVE_RENDERINGS",
    "Rendering",
    "narrative_renderings",
    "check_cross_document",
    "cross_document_rules",
]
