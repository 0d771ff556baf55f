"""Compliance reviewer - second-opinion pass with whole-field corrections."""

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any, Protocol, get_args

from kungfu import Error, Ok, Result

from prosegate.constants import DEFAULT_LLM_RETRY_TIMES, DEFAULT_LLM_TIMEOUT_SECONDS
from prosegate.contracts.checklist import ChecklistCategory, ChecklistEntry
from prosegate.contracts.facts import Domain, FactContext
from prosegate.contracts.prose import ProseBundle
from prosegate.contracts.review import (
    ChecklistResultPayload,
    ChecklistVerdict,
    FindingSeverity,
    ReviewFinding,
    ReviewIssuePayload,
    ReviewResponse,
    ReviewResult,
)
from prosegate.llm.call import LLMError, llm_interpret
from prosegate.providers.base import ABCAIProvider, Prompt
from prosegate.review.prompts import (
    REVIEWED_CATEGORIES,
    build_review_prompt,
    extract_regulation,
    review_system_prompt,
)

logger = logging.getLogger(__name__)

TEMPLATE_GUARANTEED_NOTE = "Guaranteed by document template"
NO_VERDICT_NOTE = "No verdict returned by reviewer"

_SEVERITIES: frozenset[str] = frozenset(get_args(FindingSeverity))


@dataclass(frozen=True)
class ReviewRequest:
    """Everything the review collaborator sees for one bundle."""

    bundle: ProseBundle
    facts: FactContext
    entry: ChecklistEntry
    items: tuple[tuple[ChecklistCategory, str], ...]


class ReviewCollaborator(Protocol):
    """Anything that reviews a bundle against its checklist."""

    async def review(self, request: ReviewRequest) -> Result[ReviewResponse, LLMError]: ...


@dataclass
class LLMReviewCollaborator:
    """Review through a structured-output LLM call."""

    provider: ABCAIProvider[Any]
    timeout_seconds: float = DEFAULT_LLM_TIMEOUT_SECONDS
    retry_times: int = DEFAULT_LLM_RETRY_TIMES
    max_tokens: int = 8000

    async def review(self, request: ReviewRequest) -> Result[ReviewResponse, LLMError]:
        prompt = Prompt(
            system=review_system_prompt(request.facts.domain),
            user=build_review_prompt(request.bundle, request.facts, request.items),
            max_tokens=self.max_tokens,
        )
        return await llm_interpret(
            prompt,
            self.provider,
            ReviewResponse,
            timeout_seconds=self.timeout_seconds,
            retry_times=self.retry_times,
        )


def _normalize_key(text: str) -> str:
    return " ".join(text.split()).lower()


def _normalize_finding(issue: ReviewIssuePayload) -> ReviewFinding | None:
    section = issue.section.strip()
    description = issue.description.strip()
    if not section or not description:
        return None
    severity = issue.severity.strip().lower()
    return ReviewFinding(
        severity=severity if severity in _SEVERITIES else "warning",  # type: ignore[arg-type]
        field=section,
        description=description,
        fix_applied=issue.fix_applied.strip(),
    )


def reviewable_items(entry: ChecklistEntry) -> list[tuple[ChecklistCategory, str]]:
    """Items the reviewer must rule on, excluding template-guaranteed ones."""
    return [
        (category, item)
        for category in REVIEWED_CATEGORIES
        for item in getattr(entry, category)
        if item not in entry.template_guaranteed
    ]


def align_verdicts(
    entry: ChecklistEntry,
    results: Sequence[ChecklistResultPayload],
    domain: Domain,
) -> list[ChecklistVerdict]:
    """
    One verdict per registry item, in registry order.

    Reviewer verdicts are matched by provision text ignoring case and
    surrounding whitespace. Verdicts for unknown provisions are discarded
    and missing ones are recorded as failed.
    """
    by_provision: dict[str, ChecklistResultPayload] = {}
    for result in results:
        key = _normalize_key(result.provision)
        if key and key not in by_provision:
            by_provision[key] = result

    verdicts: list[ChecklistVerdict] = []
    for category in REVIEWED_CATEGORIES:
        for item in getattr(entry, category):
            regulation = extract_regulation(domain, item)
            if item in entry.template_guaranteed:
                verdicts.append(
                    ChecklistVerdict(
                        provision=item,
                        category=category,
                        passed=True,
                        note=TEMPLATE_GUARANTEED_NOTE,
                        regulation=regulation,
                        template_guaranteed=True,
                    )
                )
                continue

            reported = by_provision.get(_normalize_key(item))
            if reported is None or reported.passed is None:
                verdicts.append(
                    ChecklistVerdict(
                        provision=item,
                        category=category,
                        passed=False,
                        note=NO_VERDICT_NOTE,
                        regulation=regulation,
                    )
                )
            else:
                verdicts.append(
                    ChecklistVerdict(
                        provision=item,
                        category=category,
                        passed=reported.passed,
                        note=reported.note.strip(),
                        regulation=regulation,
                    )
                )
    return verdicts


class ComplianceReviewer:
    """
    Normalizes collaborator output into a ReviewResult.

    A collaborator failure never fabricates verdicts: it yields a
    system_error result with one critical finding and nothing else.
    """

    def __init__(self, collaborator: ReviewCollaborator):
        self.collaborator = collaborator

    async def review(
        self,
        bundle: ProseBundle,
        facts: FactContext,
        entry: ChecklistEntry,
    ) -> ReviewResult:
        request = ReviewRequest(
            bundle=bundle,
            facts=facts,
            entry=entry,
            items=tuple(reviewable_items(entry)),
        )
        result = await self.collaborator.review(request)

        match result:
            case Ok(response):
                return self.normalize(response, facts, entry)
            case Error(e):
                logger.warning("Compliance review failed for %s: %s", facts.doc_type, e)
                return ReviewResult.system_error(str(e))

    @staticmethod
    def normalize(
        response: ReviewResponse,
        facts: FactContext,
        entry: ChecklistEntry,
    ) -> ReviewResult:
        findings = [
            finding
            for issue in response.issues_found
            if (finding := _normalize_finding(issue)) is not None
        ]
        dropped = len(response.issues_found) - len(findings)
        if dropped:
            logger.debug("Dropped %d incomplete review findings", dropped)

        result = ReviewResult(
            status="completed",
            findings=findings,
            corrected_fields=dict(response.corrected_sections),
            verdicts=align_verdicts(entry, response.checklist_results, facts.domain),
        )
        logger.info(
            "Reviewed %s: %d findings (%d critical), %d corrections",
            facts.doc_type,
            len(result.findings),
            len(result.critical_findings),
            len(result.corrected_fields),
        )
        return result


__all__ = [
    "TEMPLATE_GUARANTEED_NOTE",
    "NO_VERDICT_NOTE",
    "ReviewRequest",
    "ReviewCollaborator",
    "LLMReviewCollaborator",
    "ComplianceReviewer",
    "reviewable_items",
    "align_verdicts",
]
