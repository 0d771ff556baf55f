"""Data contracts for the prose gate."""

from prosegate.contracts.deal import Fee, Covenant, LoanDeal, BioProgram, DealState
from prosegate.contracts.facts import Domain, Fact, TrackedNumeric, FactContext
from prosegate.contracts.checklist import (
    ChecklistCategory,
    CHECKLIST_CATEGORIES,
    ChecklistOverlay,
    ChecklistEntry,
)
from prosegate.contracts.prose import (
    ProseValue,
    ProseField,
    ProseSchema,
    ProseBundle,
    flatten_value,
    is_empty_value,
)
from prosegate.contracts.verification import (
    Severity,
    VerificationIssue,
    VerificationResult,
)
from prosegate.contracts.review import (
    ReviewFinding,
    ChecklistVerdict,
    ReviewResult,
    ReviewIssuePayload,
    ChecklistResultPayload,
    ReviewResponse,
)
from prosegate.contracts.pipeline import (
    PipelineState,
    CorrectionDirective,
    PipelineIssue,
    PipelineResult,
    CrossDocumentIssue,
    PackageResult,
)
from prosegate.contracts.audit import PipelinePackage

__all__ = [
    # Deal
    "Fee",
    "Covenant",
    "LoanDeal",
    "BioProgram",
    "DealState",
    # Facts
    "Domain",
    "Fact",
    "TrackedNumeric",
    "FactContext",
    # Checklist
    "ChecklistCategory",
    "CHECKLIST_CATEGORIES",
    "ChecklistOverlay",
    "ChecklistEntry",
    # Prose
    "ProseValue",
    "ProseField",
    "ProseSchema",
    "ProseBundle",
    "flatten_value",
    "is_empty_value",
    # Verification
    "Severity",
    "VerificationIssue",
    "VerificationResult",
    # Review
    "ReviewFinding",
    "ChecklistVerdict",
    "ReviewResult",
    "ReviewIssuePayload",
    "ChecklistResultPayload",
    "ReviewResponse",
    # Pipeline
    "PipelineState",
    "CorrectionDirective",
    "PipelineIssue",
    "PipelineResult",
    "CrossDocumentIssue",
    "PackageResult",
    # Audit
    "PipelinePackage",
]
