"""Deterministic verification of prose bundles and packages."""

from prosegate.verification.verifier import DeterministicVerifier
from prosegate.verification.cross_document import (
    SHARED_FACT_KEYS,
    check_cross_document,
    cross_document_rules,
)

__all__ = [
    "DeterministicVerifier",
    "SHARED_FACT_KEYS",
    "check_cross_document",
    "cross_document_rules",
]
