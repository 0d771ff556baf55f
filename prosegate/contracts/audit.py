"""Audit contracts - generation package for reproducibility."""

import datetime
import uuid

from pydantic import BaseModel, Field

from prosegate.contracts.facts import Domain
from prosegate.contracts.pipeline import CrossDocumentIssue, PipelineResult


class PipelinePackage(BaseModel):
    """
    Complete audit package for a generation run.

    Contains everything needed to reproduce and verify a run:
    - Original deal state
    - Every document outcome with issues, verdicts and state trace
    - Cross-document findings
    - Model and system information
    """

    package_id: str = Field(
        default_factory=lambda: str(uuid.uuid4()),
        description="Unique package identifier",
    )

    timestamp: datetime.datetime = Field(
        default_factory=lambda: datetime.datetime.now(datetime.timezone.utc),
        description="When the run finished (UTC)",
    )

    # Original input
    deal_json: str = Field(
        description="Deal state serialized as JSON for exact reproduction"
    )
    domain: Domain

    # Outcomes
    documents: list[PipelineResult] = Field(default_factory=list)
    cross_document_issues: list[CrossDocumentIssue] = Field(default_factory=list)
    accepted: bool = Field(description="Every document accepted, no package issues")

    # System info
    tool_version: str = Field(description="Version of prosegate")
    model_id: str = Field(description="Drafting model identifier")
    review_model_id: str = Field(description="Review model identifier")
    provider: str = Field(description="LLM provider name")
    mode: str = Field(default="single", description="'single' or 'package' run")
    temperature: float = Field(default=0.0, description="Sampling temperature")

    content_hash: str | None = Field(
        default=None, description="SHA-256 of the package without this field"
    )


__all__ = ["PipelinePackage"]
