"""Verification contracts - results of the deterministic pass."""

from typing import Literal

from pydantic import BaseModel, Field

Severity = Literal["critical", "warning"]


class VerificationIssue(BaseModel):
    """A single deterministic check failure."""

    field: str = Field(
        description="Issue field: prose:<key>, <party key>, numeric:<key>, "
        "regulatory:<reference> or fact:<key>"
    )
    severity: Severity
    message: str


class VerificationResult(BaseModel):
    """Aggregate of one verifier run. passed means no critical issue."""

    passed: bool
    issues: list[VerificationIssue] = Field(default_factory=list)
    checks_run: int = 0
    checks_passed: int = 0
    references_checked: int = Field(
        default=0, description="Regulatory references searched for"
    )
    references_found: int = Field(
        default=0, description="Regulatory references found in the narrative"
    )

    @property
    def critical_issues(self) -> list[VerificationIssue]:
        return [i for i in self.issues if i.severity == "critical"]

    @property
    def warnings(self) -> list[VerificationIssue]:
        return [i for i in self.issues if i.severity == "warning"]


__all__ = ["Severity", "VerificationIssue", "VerificationResult"]
