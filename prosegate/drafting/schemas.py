"""Prose schema registry - narrative field schemas and statutory excerpts."""

import logging
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from prosegate.checklists.registry import normalize_program
from prosegate.contracts.facts import Domain
from prosegate.contracts.prose import ProseField, ProseSchema

logger = logging.getLogger(__name__)

DATA_DIR = Path(__file__).parent / "data"


class SchemaDataError(Exception):
    """Raised when prose schema data files are malformed."""


def _parse_fields(raw: Any, where: str) -> tuple[ProseField, ...]:
    if not isinstance(raw, list) or not raw:
        raise SchemaDataError(f"{where}: expected a non-empty list of fields")
    try:
        return tuple(ProseField.model_validate(item) for item in raw)
    except ValidationError as e:
        raise SchemaDataError(f"{where}: invalid field: {e}") from e


def _render_regulations(items: list[dict[str, str]]) -> str:
    lines = ["APPLICABLE REGULATIONS AND GUIDANCES:"]
    for item in items:
        lines.append(f"  - {item['regulation']}: {item['description']}")
    return "\n".join(lines)


class ProseSchemaRegistry:
    """
    Prose schemas and excerpts per document type.

    A program may add fields to a schema (e.g. ADC-specific narratives);
    the resulting key set is still fixed before generation.
    """

    def __init__(
        self,
        schemas: Mapping[str, ProseSchema],
        domains: Mapping[str, Domain],
        program_fields: Mapping[str, Mapping[str, tuple[ProseField, ...]]] | None = None,
        document_excerpts: Mapping[str, str] | None = None,
        program_excerpts: Mapping[str, str] | None = None,
    ):
        self._schemas = dict(schemas)
        self._domains = dict(domains)
        self._document_excerpts = dict(document_excerpts or {})
        self._program_excerpts = dict(program_excerpts or {})
        self._extended: dict[tuple[str, str], ProseSchema] = {}

        for doc_type, by_program in (program_fields or {}).items():
            base = self._schemas.get(doc_type)
            if base is None:
                raise SchemaDataError(
                    f"Program fields target unknown document type {doc_type!r}"
                )
            for program, extra in by_program.items():
                clash = set(base.keys) & {f.key for f in extra}
                if clash:
                    raise SchemaDataError(
                        f"{doc_type}.{program}: program fields redefine {sorted(clash)}"
                    )
                self._extended[(doc_type, program)] = base.model_copy(
                    update={"fields": base.fields + tuple(extra)}
                )

    @classmethod
    def load(cls, data_dir: Path | None = None) -> "ProseSchemaRegistry":
        directory = Path(data_dir) if data_dir else DATA_DIR
        files = sorted(directory.glob("*.yaml"))
        if not files:
            raise SchemaDataError(f"No prose schema files found in {directory}")

        schemas: dict[str, ProseSchema] = {}
        domains: dict[str, Domain] = {}
        program_fields: dict[str, dict[str, tuple[ProseField, ...]]] = {}
        document_excerpts: dict[str, str] = {}
        program_excerpts: dict[str, str] = {}

        for path in files:
            try:
                raw = yaml.safe_load(path.read_text(encoding="utf-8"))
            except yaml.YAMLError as e:
                raise SchemaDataError(f"Invalid YAML in {path}: {e}") from e
            if not isinstance(raw, dict):
                raise SchemaDataError(f"{path}: expected a mapping at top level")

            domain = raw.get("domain")
            if domain not in ("loan", "bio"):
                raise SchemaDataError(f"{path}: unknown domain {domain!r}")

            for doc_type, body in (raw.get("schemas") or {}).items():
                where = f"{path.name}:{doc_type}"
                if doc_type in schemas:
                    raise SchemaDataError(f"{where}: duplicate document type")
                try:
                    schemas[doc_type] = ProseSchema(
                        doc_type=doc_type,
                        title=body["title"],
                        instruction=body["instruction"],
                        fields=_parse_fields(body.get("fields"), where),
                        mandatory_facts=tuple(body.get("mandatory_facts") or ()),
                        max_tokens=body.get("max_tokens", 4000),
                        program_guidance=body.get("program_guidance") or {},
                    )
                except (KeyError, TypeError, ValidationError) as e:
                    raise SchemaDataError(f"{where}: invalid schema: {e}") from e
                domains[doc_type] = domain
                for program, extra in (body.get("program_fields") or {}).items():
                    program_fields.setdefault(doc_type, {})[program] = _parse_fields(
                        extra, f"{where}.program_fields.{program}"
                    )

            excerpts = raw.get("excerpts") or {}
            for doc_type, text in (excerpts.get("documents") or {}).items():
                document_excerpts[doc_type] = (
                    "STATUTORY AND REGULATORY REFERENCES:\n" + text.strip()
                )
            program_excerpts.update(excerpts.get("programs") or {})

            for doc_type, items in (raw.get("regulations") or {}).items():
                document_excerpts[doc_type] = _render_regulations(items)

        logger.info("Loaded %d prose schemas from %s", len(schemas), directory)
        return cls(schemas, domains, program_fields, document_excerpts, program_excerpts)

    def get(self, doc_type: str, program: str | None = None) -> ProseSchema | None:
        """Schema for a document type, extended for the program if it adds fields."""
        base = self._schemas.get(doc_type)
        if base is None:
            return None
        key = normalize_program(self._domains[doc_type], program)
        if key is None:
            return base
        return self._extended.get((doc_type, key), base)

    def is_supported(self, doc_type: str) -> bool:
        return doc_type in self._schemas

    def doc_types(self) -> list[str]:
        return list(self._schemas)

    def excerpts(self, doc_type: str, program: str | None = None) -> str:
        """Statutory excerpts for the type followed by program excerpts."""
        parts: list[str] = []
        base = self._document_excerpts.get(doc_type)
        if base:
            parts.append(base)
        domain = self._domains.get(doc_type)
        key = normalize_program(domain, program) if domain else None
        if key and key in self._program_excerpts:
            parts.append(
                f"PROGRAM REQUIREMENTS ({key.upper()}):\n"
                + self._program_excerpts[key].strip()
            )
        return "\n\n".join(parts)


__all__ = ["DATA_DIR", "SchemaDataError", "ProseSchemaRegistry"]
