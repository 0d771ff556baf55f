"""Audit packages for generation reproducibility."""

from prosegate.audit.package import PipelinePackageBuilder, compute_package_hash
from prosegate.audit.storage import AuditStorage

__all__ = [
    "PipelinePackageBuilder",
    "compute_package_hash",
    "AuditStorage",
]
