"""Pipeline controller - drafting, verification, review and merge with retries."""

import asyncio
import logging
from dataclasses import dataclass, field

from kungfu import Error, Nothing, Ok, Some

from prosegate.checklists.registry import ChecklistRegistry
from prosegate.constants import DEFAULT_MAX_ATTEMPTS
from prosegate.contracts.facts import FactContext
from prosegate.contracts.pipeline import (
    CorrectionDirective,
    PipelineIssue,
    PipelineResult,
    PipelineState,
    ReviewRunStatus,
)
from prosegate.contracts.prose import ProseBundle, ProseSchema
from prosegate.contracts.review import ChecklistVerdict, ReviewResult
from prosegate.contracts.verification import VerificationResult
from prosegate.drafting.builder import ContractBuilder
from prosegate.drafting.client import DraftingCollaborator
from prosegate.drafting.schemas import ProseSchemaRegistry
from prosegate.pipeline.fallback import build_fallback_bundle
from prosegate.pipeline.merger import MergeOutcome, merge_corrections
from prosegate.review.reviewer import ComplianceReviewer
from prosegate.verification.verifier import DeterministicVerifier

logger = logging.getLogger(__name__)

CHECKLIST_FIELD_PREFIX = "checklist:"


@dataclass
class _Run:
    """Mutable state of one controller run."""

    facts: FactContext
    trace: list[PipelineState] = field(default_factory=list)
    issues: list[PipelineIssue] = field(default_factory=list)
    directives: list[CorrectionDirective] = field(default_factory=list)
    verdicts: list[ChecklistVerdict] = field(default_factory=list)
    verification: VerificationResult | None = None
    review_status: ReviewRunStatus = "not_run"
    used_fallback: bool = False

    def enter(self, state: PipelineState, attempt: int) -> None:
        self.trace.append(state)
        logger.debug("%s attempt %d: %s", self.facts.doc_type, attempt, state.value)

    def record_verification(self, result: VerificationResult, attempt: int) -> None:
        # A later verification of the same attempt replaces the earlier one
        self.issues = [
            i
            for i in self.issues
            if not (i.attempt == attempt and i.source == "verification")
        ]
        self.issues.extend(
            PipelineIssue(
                source="verification",
                field=issue.field,
                severity=issue.severity,
                message=issue.message,
                attempt=attempt,
            )
            for issue in result.issues
        )
        self.verification = result

    def record_review(self, review: ReviewResult, attempt: int) -> None:
        self.review_status = review.status
        self.verdicts = list(review.verdicts)
        self.issues.extend(
            PipelineIssue(
                source="review",
                field=finding.field,
                severity=finding.severity,
                message=finding.description,
                attempt=attempt,
            )
            for finding in review.findings
        )
        # Verdicts describe the bundle after the reviewer's own corrections,
        # so a failed required provision stays open whatever gets merged
        for verdict in review.verdicts:
            if verdict.passed:
                continue
            note = f" ({verdict.note})" if verdict.note else ""
            self.issues.append(
                PipelineIssue(
                    source="review",
                    field=f"{CHECKLIST_FIELD_PREFIX}{verdict.provision}",
                    severity="critical" if verdict.category == "required" else "warning",
                    message=f'{verdict.category.capitalize()} provision not satisfied: "{verdict.provision}"{note}',
                    attempt=attempt,
                )
            )

    def record_merge(self, outcome: MergeOutcome, attempt: int) -> None:
        applied = set(outcome.applied)
        self.issues = [
            i.model_copy(update={"resolved": True})
            if i.attempt == attempt and i.source == "review" and i.field in applied
            else i
            for i in self.issues
        ]
        for key in outcome.dropped:
            self.issues.append(
                PipelineIssue(
                    source="merge",
                    field=key,
                    severity="warning",
                    message=f'Correction for unknown section "{key}" was ignored',
                    attempt=attempt,
                )
            )
        for rejected in outcome.rejected:
            self.issues.append(
                PipelineIssue(
                    source="merge",
                    field=rejected.field,
                    severity="critical",
                    message=(
                        f'Correction for "{rejected.field}" was discarded because it '
                        f"dropped fact values: {', '.join(rejected.missing_tokens)}"
                    ),
                    attempt=attempt,
                )
            )

    def open_issues(self, attempt: int) -> list[PipelineIssue]:
        return [
            i
            for i in self.issues
            if i.attempt == attempt and i.severity == "critical" and not i.resolved
        ]

    def add_directives(self, issues: list[PipelineIssue]) -> None:
        for issue in issues:
            self.directives.append(
                CorrectionDirective(
                    field=issue.field.removeprefix("prose:"), reason=issue.message
                )
            )

    def finish(
        self,
        state: PipelineState,
        bundle: ProseBundle,
        attempt: int,
    ) -> PipelineResult:
        self.enter(state, attempt)
        result = PipelineResult(
            doc_type=self.facts.doc_type,
            domain=self.facts.domain,
            state=state,
            bundle=bundle,
            attempts=attempt,
            trace=self.trace,
            issues=self.issues,
            verdicts=self.verdicts,
            verification=self.verification,
            directives=list(dict.fromkeys(self.directives)),
            review_status=self.review_status,
            used_fallback=self.used_fallback,
        )
        logger.info(
            "%s finished %s after %d attempt(s) with %d open issue(s)",
            self.facts.doc_type,
            state.value,
            attempt,
            len(result.open_issues),
        )
        return result


class PipelineController:
    """
    Runs one document through DRAFTING, VERIFYING, REVIEWING and MERGING.

    Only deterministic critical issues and drafting failures lead to a
    retry, bounded by ``max_attempts``. A critical review finding is
    resolved only when the reviewer's rewrite of that field was merged. A
    failed or missing verdict on a required checklist item is never
    resolved and rejects the document. After merging, the deterministic
    verifier runs again on the merged bundle and its result replaces the
    attempt's earlier verification.
    """

    def __init__(
        self,
        contracts: ContractBuilder,
        drafting: DraftingCollaborator,
        verifier: DeterministicVerifier,
        reviewer: ComplianceReviewer,
        checklists: ChecklistRegistry,
        schemas: ProseSchemaRegistry,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
    ):
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self.contracts = contracts
        self.drafting = drafting
        self.verifier = verifier
        self.reviewer = reviewer
        self.checklists = checklists
        self.schemas = schemas
        self.max_attempts = max_attempts

    async def run(self, facts: FactContext) -> PipelineResult:
        run = _Run(facts=facts)
        schema = self.schemas.get(facts.doc_type, facts.program)

        if schema is None:
            return self._run_unsupported(run)

        entry = self.checklists.entry(facts.doc_type, facts.program)
        bundle = build_fallback_bundle(facts, schema)

        for attempt in range(1, self.max_attempts + 1):
            last_attempt = attempt == self.max_attempts
            logger.info(
                "Drafting %s (attempt %d/%d, %d directive(s))",
                facts.doc_type,
                attempt,
                self.max_attempts,
                len(run.directives),
            )

            run.enter(PipelineState.DRAFTING, attempt)
            drafted = await self._draft(run, schema, attempt, last_attempt)
            if drafted is None:
                run.enter(PipelineState.RETRY, attempt)
                continue
            bundle = drafted

            run.enter(PipelineState.VERIFYING, attempt)
            run.record_verification(self.verifier.verify(bundle, facts), attempt)
            open_issues = run.open_issues(attempt)
            if open_issues:
                run.add_directives(open_issues)
                if last_attempt:
                    return run.finish(PipelineState.REJECTED, bundle, attempt)
                logger.info(
                    "%s attempt %d failed verification with %d critical issue(s)",
                    facts.doc_type,
                    attempt,
                    len(open_issues),
                )
                run.enter(PipelineState.RETRY, attempt)
                continue

            run.enter(PipelineState.REVIEWING, attempt)
            review = await asyncio.shield(self.reviewer.review(bundle, facts, entry))
            run.record_review(review, attempt)
            if review.status == "system_error":
                logger.warning("%s reviewed with system error", facts.doc_type)
                return run.finish(PipelineState.REJECTED, bundle, attempt)

            run.enter(PipelineState.MERGING, attempt)
            outcome = merge_corrections(bundle, review.corrected_fields, facts)
            run.record_merge(outcome, attempt)
            bundle = outcome.bundle
            run.record_verification(self.verifier.verify(bundle, facts), attempt)

            open_issues = run.open_issues(attempt)
            if not open_issues:
                return run.finish(PipelineState.ACCEPTED, bundle, attempt)

            run.add_directives(open_issues)
            deterministic = [i for i in open_issues if i.source == "verification"]
            if deterministic and not last_attempt:
                run.enter(PipelineState.RETRY, attempt)
                continue
            return run.finish(PipelineState.REJECTED, bundle, attempt)

        # The final attempt always finishes inside the loop
        return run.finish(PipelineState.REJECTED, bundle, self.max_attempts)

    async def _draft(
        self,
        run: _Run,
        schema: ProseSchema,
        attempt: int,
        last_attempt: bool,
    ) -> ProseBundle | None:
        """
        Draft one bundle.

        On a collaborator failure returns None when another attempt remains,
        otherwise the generic fallback bundle.
        """
        facts = run.facts
        match self.contracts.build(facts, run.directives):
            case Some(contract):
                result = await asyncio.shield(self.drafting.draft(contract))
            case Nothing():
                result = Error(f"No drafting contract for {facts.doc_type}")

        match result:
            case Ok(bundle):
                run.used_fallback = False
                return bundle
            case Error(e):
                if not last_attempt:
                    run.issues.append(
                        PipelineIssue(
                            source="drafting",
                            field="drafting",
                            severity="critical",
                            message=f"Drafting collaborator failed: {e}",
                            attempt=attempt,
                        )
                    )
                    return None
                logger.warning(
                    "Drafting failed for %s on final attempt; using generic fallback: %s",
                    facts.doc_type,
                    e,
                )
                run.issues.append(
                    PipelineIssue(
                        source="drafting",
                        field="drafting",
                        severity="warning",
                        message=f"Drafting collaborator failed, generic fallback prose used: {e}",
                        attempt=attempt,
                    )
                )
                run.used_fallback = True
                return build_fallback_bundle(facts, schema)

    def _run_unsupported(self, run: _Run) -> PipelineResult:
        facts = run.facts
        logger.warning("No prose schema for %s; using generic fallback", facts.doc_type)
        run.enter(PipelineState.DRAFTING, 1)
        bundle = build_fallback_bundle(facts, None)
        run.used_fallback = True

        run.enter(PipelineState.VERIFYING, 1)
        run.record_verification(self.verifier.verify(bundle, facts), 1)
        state = PipelineState.REJECTED if run.open_issues(1) else PipelineState.ACCEPTED
        return run.finish(state, bundle, 1)


__all__ = ["CHECKLIST_FIELD_PREFIX", "PipelineController"]
