"""Checklist registry - static per-document-type compliance rules.

Loaded once from YAML at startup and passed by reference to whoever needs
it. Entries are immutable; program overlays are merged ahead of time so a
lookup is a dictionary access.
"""

import logging
import re
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml

from prosegate.contracts.checklist import (
    CHECKLIST_CATEGORIES,
    ChecklistEntry,
    ChecklistOverlay,
)
from prosegate.contracts.facts import Domain

logger = logging.getLogger(__name__)

DATA_DIR = Path(__file__).parent / "data"
DOMAINS: tuple[Domain, ...] = ("loan", "bio")


class ChecklistDataError(Exception):
    """Raised when checklist data files are malformed."""


def normalize_program(domain: Domain, program: str | None) -> str | None:
    """
    Normalize a program key for overlay lookup.

    Loan programs are ids ("sba_7a"). Drug classes are free-form
    ("Antibody-Drug Conjugate", "Small Molecule") and collapse onto the
    overlay keys.
    """
    if not program or not program.strip():
        return None
    key = re.sub(r"[\s-]+", "_", program.strip().lower())
    if domain == "bio" and ("antibody_drug" in key or "adc" in key):
        return "adc"
    return key


def _as_items(value: Any, where: str) -> tuple[str, ...]:
    if value is None:
        return ()
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise ChecklistDataError(f"{where}: expected a list of strings")
    return tuple(value)


def _parse_entry(doc_type: str, raw: Any, where: str) -> ChecklistEntry:
    if not isinstance(raw, dict):
        raise ChecklistDataError(f"{where}: expected a mapping")
    lists = {c: _as_items(raw.get(c), f"{where}.{c}") for c in CHECKLIST_CATEGORIES}
    guaranteed = frozenset(
        _as_items(raw.get("template_guaranteed"), f"{where}.template_guaranteed")
    )
    known = {item for items in lists.values() for item in items}
    unknown = guaranteed - known
    if unknown:
        raise ChecklistDataError(
            f"{where}: template_guaranteed items not in checklist: {sorted(unknown)}"
        )
    return ChecklistEntry(doc_type=doc_type, template_guaranteed=guaranteed, **lists)


def _parse_overlay(raw: Any, where: str) -> ChecklistOverlay:
    if not isinstance(raw, dict):
        raise ChecklistDataError(f"{where}: expected a mapping")
    return ChecklistOverlay(
        **{c: _as_items(raw.get(c), f"{where}.{c}") for c in CHECKLIST_CATEGORIES}
    )


class ChecklistRegistry:
    """
    Lookup of merged checklist entries by (document type, program).

    Unknown document types resolve to an empty entry; unknown programs
    resolve to the base entry.
    """

    def __init__(
        self,
        entries: Mapping[str, ChecklistEntry],
        domains: Mapping[str, Domain],
        overlays: Mapping[Domain, Mapping[str, Mapping[str, ChecklistOverlay]]]
        | None = None,
    ):
        """
        Args:
            entries: Base entry per document type
            domains: Domain per document type
            overlays: domain -> program -> document type -> overlay
        """
        self._base = dict(entries)
        self._domains = dict(domains)
        self._programs: dict[Domain, list[str]] = {d: [] for d in DOMAINS}
        self._merged: dict[tuple[str, str], ChecklistEntry] = {}

        for domain, by_program in (overlays or {}).items():
            for program, by_doc in by_program.items():
                self._programs[domain].append(program)
                for doc_type, overlay in by_doc.items():
                    base = self._base.get(doc_type)
                    if base is None:
                        raise ChecklistDataError(
                            f"Overlay {program!r} targets unknown document type {doc_type!r}"
                        )
                    self._merged[(doc_type, program)] = base.merged(overlay)

    @classmethod
    def load(cls, data_dir: Path | None = None) -> "ChecklistRegistry":
        """Load every ``*.yaml`` file in the data directory."""
        directory = Path(data_dir) if data_dir else DATA_DIR
        files = sorted(directory.glob("*.yaml"))
        if not files:
            raise ChecklistDataError(f"No checklist files found in {directory}")

        entries: dict[str, ChecklistEntry] = {}
        domains: dict[str, Domain] = {}
        overlays: dict[Domain, dict[str, dict[str, ChecklistOverlay]]] = {}

        for path in files:
            try:
                raw = yaml.safe_load(path.read_text(encoding="utf-8"))
            except yaml.YAMLError as e:
                raise ChecklistDataError(f"Invalid YAML in {path}: {e}") from e
            if not isinstance(raw, dict):
                raise ChecklistDataError(f"{path}: expected a mapping at top level")

            domain = raw.get("domain")
            if domain not in DOMAINS:
                raise ChecklistDataError(f"{path}: unknown domain {domain!r}")

            for doc_type, body in (raw.get("documents") or {}).items():
                if doc_type in entries:
                    raise ChecklistDataError(f"{path}: duplicate document type {doc_type!r}")
                entries[doc_type] = _parse_entry(doc_type, body, f"{path.name}:{doc_type}")
                domains[doc_type] = domain

            for program, by_doc in (raw.get("overlays") or {}).items():
                if not isinstance(by_doc, dict):
                    raise ChecklistDataError(f"{path}: overlay {program!r} must be a mapping")
                overlays.setdefault(domain, {})[program] = {
                    doc_type: _parse_overlay(body, f"{path.name}:{program}.{doc_type}")
                    for doc_type, body in by_doc.items()
                }

        logger.info(
            "Loaded %d checklist entries from %s", len(entries), directory
        )
        return cls(entries, domains, overlays)

    def entry(self, doc_type: str, program: str | None = None) -> ChecklistEntry:
        """Merged entry for a document type and optional program."""
        base = self._base.get(doc_type)
        if base is None:
            return ChecklistEntry.empty(doc_type)
        key = normalize_program(self._domains[doc_type], program)
        if key is None:
            return base
        return self._merged.get((doc_type, key), base)

    def domain_of(self, doc_type: str) -> Domain | None:
        return self._domains.get(doc_type)

    def is_known(self, doc_type: str) -> bool:
        return doc_type in self._base

    def doc_types(self, domain: Domain | None = None) -> list[str]:
        return [d for d in self._base if domain is None or self._domains[d] == domain]

    def programs(self, domain: Domain) -> list[str]:
        return list(self._programs.get(domain, []))


__all__ = [
    "DATA_DIR",
    "ChecklistDataError",
    "ChecklistRegistry",
    "normalize_program",
]
