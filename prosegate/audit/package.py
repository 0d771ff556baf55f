"""Pipeline package builder for the audit trail."""

import datetime
import hashlib
import json

from prosegate.contracts.audit import PipelinePackage
from prosegate.contracts.deal import DealState
from prosegate.contracts.facts import Domain
from prosegate.contracts.pipeline import PackageResult, PipelineResult


class PipelinePackageBuilder:
    """
    Builder for generation audit packages.

    Captures the deal, every document outcome and the model settings
    needed to reproduce and verify a run.
    """

    def __init__(
        self,
        tool_version: str = "0.1.0",
        model_id: str = "",
        review_model_id: str = "",
        provider: str = "",
        temperature: float = 0.0,
    ):
        self.tool_version = tool_version
        self.model_id = model_id
        self.review_model_id = review_model_id or model_id
        self.provider = provider
        self.temperature = temperature

    def build(
        self,
        deal: DealState,
        outcome: PipelineResult | PackageResult,
    ) -> PipelinePackage:
        """
        Build an audit package for a single document or a package run.

        Args:
            deal: Deal state the run was generated from
            outcome: Result of ``generate`` or ``generate_package``

        Returns:
            PipelinePackage without a content hash (added on save)
        """
        match outcome:
            case PackageResult():
                domain: Domain = outcome.domain
                documents = list(outcome.documents.values())
                cross_document_issues = list(outcome.cross_document_issues)
                mode = "package"
            case PipelineResult():
                domain = outcome.domain
                documents = [outcome]
                cross_document_issues = []
                mode = "single"

        return PipelinePackage(
            timestamp=datetime.datetime.now(datetime.timezone.utc),
            deal_json=deal.model_dump_json(indent=2),
            domain=domain,
            documents=documents,
            cross_document_issues=cross_document_issues,
            accepted=outcome.accepted,
            tool_version=self.tool_version,
            model_id=self.model_id,
            review_model_id=self.review_model_id,
            provider=self.provider,
            mode=mode,
            temperature=self.temperature,
        )


def compute_package_hash(package: PipelinePackage) -> str:
    """Compute SHA-256 hash of the package for integrity verification."""
    data = package.model_dump(mode="json", exclude={"content_hash"})
    json_str = json.dumps(data, sort_keys=True, ensure_ascii=True, default=str)
    return hashlib.sha256(json_str.encode()).hexdigest()


__all__ = [
    "PipelinePackageBuilder",
    "compute_package_hash",
]
