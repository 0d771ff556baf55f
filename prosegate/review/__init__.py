"""Compliance review of drafted prose."""

from prosegate.review.prompts import (
    LOAN_REVIEW_SYSTEM_PROMPT,
    BIO_REVIEW_SYSTEM_PROMPT,
    REVIEWED_CATEGORIES,
    extract_regulation,
    review_system_prompt,
    build_review_prompt,
)
from prosegate.review.reviewer import (
    TEMPLATE_GUARANTEED_NOTE,
    NO_VERDICT_NOTE,
    ReviewRequest,
    ReviewCollaborator,
    LLMReviewCollaborator,
    ComplianceReviewer,
    reviewable_items,
    align_verdicts,
)

__all__ = [
    "LOAN_REVIEW_SYSTEM_PROMPT",
    "BIO_REVIEW_SYSTEM_PROMPT",
    "REVIEWED_CATEGORIES",
    "extract_regulation",
    "review_system_prompt",
    "build_review_prompt",
    "TEMPLATE_GUARANTEED_NOTE",
    "NO_VERDICT_NOTE",
    "ReviewRequest",
    "ReviewCollaborator",
    "LLMReviewCollaborator",
    "ComplianceReviewer",
    "reviewable_items",
    "align_verdicts",
]
