"""High-level Python API for ProseGate."""

import asyncio
import logging
from collections.abc import Sequence
from pathlib import Path

from prosegate import __version__
from prosegate.audit.package import PipelinePackageBuilder
from prosegate.audit.storage import AuditStorage
from prosegate.checklists.registry import ChecklistRegistry
from prosegate.constants import DEFAULT_MODELS
from prosegate.contracts.audit import PipelinePackage
from prosegate.contracts.checklist import ChecklistEntry
from prosegate.contracts.deal import BioProgram, DealState
from prosegate.contracts.facts import Domain, FactContext
from prosegate.contracts.pipeline import PackageResult, PipelineResult
from prosegate.contracts.prose import ProseBundle
from prosegate.contracts.verification import VerificationResult
from prosegate.drafting.builder import ContractBuilder
from prosegate.drafting.client import DraftingCollaborator, LLMDraftingCollaborator
from prosegate.drafting.schemas import ProseSchemaRegistry
from prosegate.facts.builder import FactContextBuilder
from prosegate.pipeline.controller import PipelineController
from prosegate.providers.config import ProviderConfig, ProviderType
from prosegate.providers.factory import ProviderFactory
from prosegate.review.reviewer import (
    ComplianceReviewer,
    LLMReviewCollaborator,
    ReviewCollaborator,
)
from prosegate.settings import Settings, get_settings
from prosegate.verification.cross_document import (
    check_cross_document,
    cross_document_rules,
)
from prosegate.verification.verifier import DeterministicVerifier

logger = logging.getLogger(__name__)


def deal_domain(deal: DealState) -> Domain:
    return "bio" if isinstance(deal, BioProgram) else "loan"


class ProseGate:
    """
    High-level API for generating and gating compliance prose.

    Example usage:

        gate = ProseGate(provider="anthropic")

        # One document
        result, audit_id = await gate.generate(deal, "promissory_note")

        # Sibling documents with a cross-document check
        package, audit_id = await gate.generate_package(
            deal, ["promissory_note", "security_agreement", "guaranty"]
        )

        # Offline checks
        entry = gate.checklist("guaranty", program="sba_7a")
        verification = gate.verify(bundle, deal, "guaranty")
    """

    def __init__(
        self,
        provider: ProviderType | None = None,
        model: str | None = None,
        review_model: str | None = None,
        audit_path: Path | str | None = None,
        save_audit: bool = False,
        settings: Settings | None = None,
        *,
        checklists: ChecklistRegistry | None = None,
        schemas: ProseSchemaRegistry | None = None,
        drafting: DraftingCollaborator | None = None,
        review: ReviewCollaborator | None = None,
    ):
        """
        Initialize the gate.

        Args:
            provider: LLM provider (default from settings)
            model: Drafting model (default: provider default)
            review_model: Compliance review model (default: drafting model)
            audit_path: Directory for audit packages
            save_audit: Whether runs save an audit package by default
            settings: Settings to use instead of the environment
            checklists: Preloaded checklist registry
            schemas: Preloaded prose schema registry
            drafting: Drafting collaborator replacing the LLM one
            review: Review collaborator replacing the LLM one
        """
        self.settings = settings or get_settings()
        self.provider_type: ProviderType = provider or self.settings.provider
        self.model = model or (
            self.settings.drafting_model()
            if self.provider_type == self.settings.provider
            else DEFAULT_MODELS[self.provider_type]
        )
        self.review_model = review_model or self.settings.review_model or self.model
        self.audit_path = Path(audit_path) if audit_path else self.settings.audit_path
        self.save_audit = save_audit

        self._checklists = checklists
        self._schemas = schemas
        self._drafting = drafting
        self._review = review
        self._facts = FactContextBuilder()
        self._verifier: DeterministicVerifier | None = None
        self._controller: PipelineController | None = None
        self._storage: AuditStorage | None = None

    def _ensure_registries(self) -> None:
        """Lazily load static data. Needs no network or credentials."""
        if self._checklists is None:
            self._checklists = ChecklistRegistry.load(self.settings.checklist_dir)
        if self._schemas is None:
            self._schemas = ProseSchemaRegistry.load()
        if self._verifier is None:
            self._verifier = DeterministicVerifier(self._schemas, self._checklists)

    def _provider_config(self, model: str) -> ProviderConfig:
        return ProviderConfig(
            provider_type=self.provider_type,
            model=model,
            api_key=self.settings.get_api_key(self.provider_type),
            base_url=self.settings.base_url,
        )

    def _ensure_initialized(self) -> None:
        """Lazily build providers, collaborators and the controller."""
        self._ensure_registries()

        if self._drafting is None:
            provider = ProviderFactory.from_config(self._provider_config(self.model))
            self._drafting = LLMDraftingCollaborator(
                provider,
                timeout_seconds=self.settings.llm_timeout_seconds,
                retry_times=self.settings.llm_retry_times,
            )

        if self._review is None:
            provider = ProviderFactory.from_config(
                self._provider_config(self.review_model)
            )
            self._review = LLMReviewCollaborator(
                provider,
                timeout_seconds=self.settings.llm_timeout_seconds,
                retry_times=self.settings.llm_retry_times,
            )

        if self._controller is None:
            self._controller = PipelineController(
                contracts=ContractBuilder(
                    self._schemas,
                    self._checklists,
                    max_feedback_directives=self.settings.max_feedback_directives,
                ),
                drafting=self._drafting,
                verifier=self._verifier,
                reviewer=ComplianceReviewer(self._review),
                checklists=self._checklists,
                schemas=self._schemas,
                max_attempts=self.settings.max_attempts,
            )

    @property
    def storage(self) -> AuditStorage:
        if self._storage is None:
            self._storage = AuditStorage(self.audit_path)
        return self._storage

    @property
    def checklists(self) -> ChecklistRegistry:
        self._ensure_registries()
        return self._checklists

    @property
    def schemas(self) -> ProseSchemaRegistry:
        self._ensure_registries()
        return self._schemas

    def facts(self, deal: DealState, doc_type: str) -> FactContext:
        """
        Build the fact context for one document.

        Raises:
            ValueError: If the document type belongs to the other domain
        """
        self._ensure_registries()
        domain = deal_domain(deal)
        known = self._checklists.domain_of(doc_type)
        if known is not None and known != domain:
            raise ValueError(
                f"Document type {doc_type!r} is a {known} document, "
                f"but the deal is a {domain} deal"
            )
        return self._facts.build(deal, doc_type)

    async def generate(
        self,
        deal: DealState,
        doc_type: str,
        save_audit: bool | None = None,
    ) -> tuple[PipelineResult, str | None]:
        """
        Run one document through the pipeline.

        Returns:
            (PipelineResult, audit_package_id or None)
        """
        self._ensure_initialized()
        result = await self._controller.run(self.facts(deal, doc_type))
        return result, self._maybe_save(deal, result, save_audit)

    async def generate_package(
        self,
        deal: DealState,
        doc_types: Sequence[str],
        save_audit: bool | None = None,
    ) -> tuple[PackageResult, str | None]:
        """
        Run sibling documents concurrently and check shared facts across them.

        Shared facts are compared between the fact contexts and between the
        narratives of the accepted documents.

        Returns:
            (PackageResult, audit_package_id or None)
        """
        if not doc_types:
            raise ValueError("A package needs at least one document type")
        self._ensure_initialized()

        contexts = {doc_type: self.facts(deal, doc_type) for doc_type in doc_types}
        logger.info("Generating package of %d documents", len(contexts))
        results = await asyncio.gather(
            *(self._controller.run(context) for context in contexts.values())
        )

        documents = dict(zip(contexts, results))
        accepted = {d: r.bundle for d, r in documents.items() if r.accepted}
        package = PackageResult(
            domain=deal_domain(deal),
            documents=documents,
            cross_document_issues=check_cross_document(contexts, accepted),
            cross_document_rules=cross_document_rules(self._checklists, contexts),
        )
        for issue in package.cross_document_issues:
            logger.warning("Cross-document issue: %s", issue.message)
        return package, self._maybe_save(deal, package, save_audit)

    def checklist(self, doc_type: str, program: str | None = None) -> ChecklistEntry:
        """Merged checklist entry for a document type and program."""
        return self.checklists.entry(doc_type, program)

    def verify(
        self,
        bundle: ProseBundle,
        deal: DealState,
        doc_type: str,
    ) -> VerificationResult:
        """Run only the deterministic verifier over an existing bundle."""
        facts = self.facts(deal, doc_type)
        return self._verifier.verify(bundle, facts)

    def build_audit_package(
        self,
        deal: DealState,
        outcome: PipelineResult | PackageResult,
    ) -> PipelinePackage:
        builder = PipelinePackageBuilder(
            tool_version=__version__,
            model_id=self.model,
            review_model_id=self.review_model,
            provider=self.provider_type,
        )
        return builder.build(deal, outcome)

    def _maybe_save(
        self,
        deal: DealState,
        outcome: PipelineResult | PackageResult,
        save_audit: bool | None,
    ) -> str | None:
        should_save = save_audit if save_audit is not None else self.save_audit
        if not should_save:
            return None
        package = self.build_audit_package(deal, outcome)
        self.storage.save(package)
        return package.package_id

    def get_audit_package(self, package_id: str) -> PipelinePackage | None:
        return self.storage.load(package_id)

    def verify_audit(self, package_id: str) -> tuple[bool, str]:
        """
        Verify integrity of an audit package.

        Returns:
            (is_valid, message) tuple
        """
        return self.storage.verify(package_id)

    def list_audits(self) -> list[str]:
        return self.storage.list_packages()


__all__ = ["ProseGate", "deal_domain"]
