"""Review contracts - compliance reviewer output, raw and normalized."""

from typing import Literal

from pydantic import BaseModel, Field

from prosegate.contracts.checklist import ChecklistCategory
from prosegate.contracts.prose import ProseValue

FindingSeverity = Literal["critical", "warning", "info"]
ReviewStatus = Literal["completed", "system_error"]


class ReviewFinding(BaseModel):
    """A defect the reviewer found in one narrative field."""

    severity: FindingSeverity
    field: str = Field(description="Affected prose key, or 'system'")
    description: str = Field(description="Defect, citing the violated provision")
    fix_applied: str = Field(default="", description="What the correction changed")


class ChecklistVerdict(BaseModel):
    """Pass/fail outcome for one checklist item."""

    provision: str = Field(description="Exact checklist item text")
    category: ChecklistCategory
    passed: bool
    note: str = ""
    regulation: str = Field(default="", description="Regulatory framework name")
    template_guaranteed: bool = Field(
        default=False, description="Satisfied by the deterministic template"
    )


class ReviewResult(BaseModel):
    """Normalized review of one drafted bundle."""

    status: ReviewStatus = "completed"
    findings: list[ReviewFinding] = Field(default_factory=list)
    corrected_fields: dict[str, ProseValue] = Field(
        default_factory=dict, description="Whole-field replacement text"
    )
    verdicts: list[ChecklistVerdict] = Field(default_factory=list)

    @classmethod
    def system_error(cls, message: str) -> "ReviewResult":
        return cls(
            status="system_error",
            findings=[
                ReviewFinding(
                    severity="critical",
                    field="system",
                    description=f"Compliance review could not be completed due to a system error: {message}",
                    fix_applied="",
                )
            ],
        )

    @property
    def critical_findings(self) -> list[ReviewFinding]:
        return [f for f in self.findings if f.severity == "critical"]


# Structured output requested from the review collaborator. Fields are
# lenient so a partially malformed answer can still be normalized.


class ReviewIssuePayload(BaseModel):
    severity: str = Field(default="warning", description="critical | warning | info")
    section: str = Field(default="", description="Exact section key with the issue")
    description: str = Field(
        default="", description="The deficiency, citing the statute or standard"
    )
    fix_applied: str = Field(default="", description="What was changed to fix it")


class ChecklistResultPayload(BaseModel):
    provision: str = Field(default="", description="Exact checklist item text")
    category: str = Field(default="required")
    passed: bool | None = Field(default=None)
    note: str = Field(default="", description="Explanation citing the standard")


class ReviewResponse(BaseModel):
    issues_found: list[ReviewIssuePayload] = Field(default_factory=list)
    corrected_sections: dict[str, ProseValue] = Field(
        default_factory=dict,
        description="Complete rewritten text for each corrected section",
    )
    checklist_results: list[ChecklistResultPayload] = Field(default_factory=list)


__all__ = [
    "FindingSeverity",
    "ReviewStatus",
    "ReviewFinding",
    "ChecklistVerdict",
    "ReviewResult",
    "ReviewIssuePayload",
    "ChecklistResultPayload",
    "ReviewResponse",
]
