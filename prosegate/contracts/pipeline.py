"""Pipeline contracts - controller states, issues and per-document results."""

from enum import Enum
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from prosegate.contracts.facts import Domain
from prosegate.contracts.prose import ProseBundle
from prosegate.contracts.review import ChecklistVerdict
from prosegate.contracts.verification import VerificationResult


class PipelineState(Enum):
    DRAFTING = "drafting"
    VERIFYING = "verifying"
    REVIEWING = "reviewing"
    MERGING = "merging"
    ACCEPTED = "accepted"
    RETRY = "retry"
    REJECTED = "rejected"


IssueSource = Literal["drafting", "verification", "review", "merge"]
IssueSeverity = Literal["critical", "warning", "info"]
ReviewRunStatus = Literal["completed", "system_error", "not_run"]


class CorrectionDirective(BaseModel):
    """One instruction carried into the next drafting attempt."""

    model_config = ConfigDict(frozen=True)

    field: str
    reason: str


class PipelineIssue(BaseModel):
    """An issue raised during any attempt, tagged with where it came from."""

    source: IssueSource
    field: str
    severity: IssueSeverity
    message: str
    attempt: int = Field(description="1-based attempt number")
    resolved: bool = Field(
        default=False, description="Corrected by a reviewer rewrite that was merged"
    )


class PipelineResult(BaseModel):
    """Final outcome of running one document through the controller."""

    doc_type: str
    domain: Domain
    state: PipelineState = Field(description="ACCEPTED or REJECTED")
    bundle: ProseBundle = Field(description="Final narrative (merged if reviewed)")
    attempts: int
    trace: list[PipelineState] = Field(
        default_factory=list, description="Every state visited, in order"
    )
    issues: list[PipelineIssue] = Field(default_factory=list)
    verdicts: list[ChecklistVerdict] = Field(default_factory=list)
    verification: VerificationResult | None = None
    directives: list[CorrectionDirective] = Field(default_factory=list)
    review_status: ReviewRunStatus = "not_run"
    used_fallback: bool = False

    @property
    def accepted(self) -> bool:
        return self.state == PipelineState.ACCEPTED

    @property
    def open_issues(self) -> list[PipelineIssue]:
        """Unresolved critical issues from the final attempt."""
        return [
            i
            for i in self.issues
            if i.attempt == self.attempts and i.severity == "critical" and not i.resolved
        ]


class CrossDocumentIssue(BaseModel):
    """A shared fact whose value differs between sibling documents."""

    fact_key: str
    label: str
    values: dict[str, str] = Field(description="Value per document type")
    message: str
    severity: Literal["critical"] = "critical"


class PackageResult(BaseModel):
    """Outcome of generating a set of sibling documents for one deal."""

    domain: Domain
    documents: dict[str, PipelineResult] = Field(default_factory=dict)
    cross_document_issues: list[CrossDocumentIssue] = Field(default_factory=list)
    cross_document_rules: dict[str, list[str]] = Field(
        default_factory=dict, description="Cross-document checklist items per type"
    )

    @property
    def accepted(self) -> bool:
        return not self.cross_document_issues and all(
            r.accepted for r in self.documents.values()
        )


__all__ = [
    "PipelineState",
    "IssueSource",
    "IssueSeverity",
    "ReviewRunStatus",
    "CorrectionDirective",
    "PipelineIssue",
    "PipelineResult",
    "CrossDocumentIssue",
    "PackageResult",
]
