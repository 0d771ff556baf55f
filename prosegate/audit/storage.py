"""Audit storage for pipeline packages."""

import logging
from datetime import datetime
from pathlib import Path

from prosegate.audit.package import compute_package_hash
from prosegate.contracts.audit import PipelinePackage

logger = logging.getLogger(__name__)


class AuditStorage:
    """
    Storage for generation audit packages.

    Each package is a ``<id>.json`` file next to a ``<id>.sha256`` file
    holding its content hash.
    """

    def __init__(self, storage_path: Path | str):
        self.storage_path = Path(storage_path)
        self.storage_path.mkdir(parents=True, exist_ok=True)

    def _json_path(self, package_id: str) -> Path:
        return self.storage_path / f"{package_id}.json"

    def _hash_path(self, package_id: str) -> Path:
        return self.storage_path / f"{package_id}.sha256"

    def save(self, package: PipelinePackage) -> Path:
        """Hash and save a package, returning the JSON file path."""
        content_hash = compute_package_hash(package)
        package.content_hash = content_hash

        file_path = self._json_path(package.package_id)
        file_path.write_text(package.model_dump_json(indent=2), encoding="utf-8")
        self._hash_path(package.package_id).write_text(content_hash, encoding="utf-8")

        logger.info("Saved audit package %s", package.package_id)
        return file_path

    def load(self, package_id: str) -> PipelinePackage | None:
        file_path = self._json_path(package_id)
        if not file_path.exists():
            return None
        return PipelinePackage.model_validate_json(file_path.read_text(encoding="utf-8"))

    def verify(self, package_id: str) -> tuple[bool, str]:
        """
        Verify integrity of a stored package.

        Returns:
            (is_valid, message) tuple
        """
        package = self.load(package_id)
        if package is None:
            return False, f"Package {package_id} not found"

        hash_path = self._hash_path(package_id)
        if not hash_path.exists():
            return False, "Hash file missing"

        stored_hash = hash_path.read_text(encoding="utf-8").strip()
        if stored_hash == compute_package_hash(package):
            return True, "Package integrity verified"
        return False, "Hash mismatch - package may have been modified"

    def list_packages(
        self,
        start_date: datetime | None = None,
        end_date: datetime | None = None,
    ) -> list[str]:
        """List package IDs, optionally filtered by run timestamp."""
        packages: list[str] = []

        for file_path in self.storage_path.glob("*.json"):
            package_id = file_path.stem

            if start_date or end_date:
                package = self.load(package_id)
                if package:
                    if start_date and package.timestamp < start_date:
                        continue
                    if end_date and package.timestamp > end_date:
                        continue

            packages.append(package_id)

        return sorted(packages)

    def delete(self, package_id: str) -> bool:
        """Delete a package and its hash. False if the package did not exist."""
        file_path = self._json_path(package_id)
        hash_path = self._hash_path(package_id)

        deleted = False
        if file_path.exists():
            file_path.unlink()
            deleted = True
        if hash_path.exists():
            hash_path.unlink()

        return deleted

    def get_statistics(self) -> dict:
        """Get storage statistics."""
        packages = self.list_packages()
        total_size = sum(
            self._json_path(p).stat().st_size
            for p in packages
            if self._json_path(p).exists()
        )
        return {
            "total_packages": len(packages),
            "total_size_bytes": total_size,
            "storage_path": str(self.storage_path),
        }


__all__ = ["AuditStorage"]
