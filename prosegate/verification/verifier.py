"""Deterministic verifier - local, rule-based checks on a prose bundle.

Runs before any review call and on every attempt. Makes no external
calls; the only output is a VerificationResult.
"""

import logging

from prosegate.checklists.registry import ChecklistRegistry
from prosegate.contracts.facts import FactContext
from prosegate.contracts.prose import ProseBundle, is_empty_value
from prosegate.contracts.verification import VerificationIssue, VerificationResult
from prosegate.drafting.schemas import ProseSchemaRegistry

logger = logging.getLogger(__name__)


class _Tally:
    def __init__(self) -> None:
        self.issues: list[VerificationIssue] = []
        self.run = 0
        self.passed = 0

    def check(self, ok: bool, issue: VerificationIssue) -> bool:
        self.run += 1
        if ok:
            self.passed += 1
        else:
            self.issues.append(issue)
        return ok


class DeterministicVerifier:
    """
    Shape, entity, numeric, regulatory-reference and mandatory-fact checks.

    Only shape and mandatory-fact violations are critical. Substring
    misses for parties, numerics and citations are warnings because
    synonyms produce false negatives.
    """

    def __init__(self, schemas: ProseSchemaRegistry, checklists: ChecklistRegistry):
        self.schemas = schemas
        self.checklists = checklists

    def verify(self, bundle: ProseBundle, facts: FactContext) -> VerificationResult:
        tally = _Tally()
        text = bundle.text()
        lowered = text.lower()

        self._check_shape(bundle, facts, tally)
        self._check_entities(lowered, facts, tally)
        self._check_numerics(lowered, facts, tally)
        checked, found = self._check_references(lowered, facts, tally)
        self._check_mandatory_facts(text, facts, tally)

        passed = not any(i.severity == "critical" for i in tally.issues)
        logger.debug(
            "Verified %s: passed=%s checks=%d/%d",
            facts.doc_type,
            passed,
            tally.passed,
            tally.run,
        )
        return VerificationResult(
            passed=passed,
            issues=tally.issues,
            checks_run=tally.run,
            checks_passed=tally.passed,
            references_checked=checked,
            references_found=found,
        )

    def _check_shape(self, bundle: ProseBundle, facts: FactContext, tally: _Tally) -> None:
        schema = self.schemas.get(facts.doc_type, facts.program)
        keys = schema.keys if schema is not None else bundle.keys
        for key in keys:
            tally.check(
                not is_empty_value(bundle.get(key)),
                VerificationIssue(
                    field=f"prose:{key}",
                    severity="critical",
                    message=f'Missing or empty prose section "{key}"',
                ),
            )

    @staticmethod
    def _check_entities(lowered: str, facts: FactContext, tally: _Tally) -> None:
        for fact in facts.party_facts():
            if fact.placeholder:
                continue
            tally.check(
                fact.value.lower() in lowered,
                VerificationIssue(
                    field=fact.key,
                    severity="warning",
                    message=f'{fact.label} "{fact.value}" not found in narrative',
                ),
            )

    @staticmethod
    def _check_numerics(lowered: str, facts: FactContext, tally: _Tally) -> None:
        for numeric in facts.tracked_numerics:
            tally.check(
                any(c.lower() in lowered for c in numeric.candidates),
                VerificationIssue(
                    field=f"numeric:{numeric.key}",
                    severity="warning",
                    message=f"{numeric.label} not found in narrative "
                    f"(expected one of: {', '.join(numeric.candidates)})",
                ),
            )

    def _check_references(
        self, lowered: str, facts: FactContext, tally: _Tally
    ) -> tuple[int, int]:
        entry = self.checklists.entry(facts.doc_type, facts.program)
        found = 0
        for reference in entry.regulatory:
            if tally.check(
                reference.lower() in lowered,
                VerificationIssue(
                    field=f"regulatory:{reference}",
                    severity="warning",
                    message=f'Expected regulatory reference "{reference}" not found',
                ),
            ):
                found += 1
        return len(entry.regulatory), found

    def _check_mandatory_facts(self, text: str, facts: FactContext, tally: _Tally) -> None:
        schema = self.schemas.get(facts.doc_type, facts.program)
        if schema is None:
            return
        for key in schema.mandatory_facts:
            fact = facts.get(key)
            if fact is None or fact.placeholder:
                label = fact.label if fact is not None else key
                tally.issues.append(
                    VerificationIssue(
                        field=f"fact:{key}",
                        severity="warning",
                        message=f"Mandatory fact {label} is missing from the deal "
                        "state and cannot be verified",
                    )
                )
                continue
            tally.check(
                fact.value in text,
                VerificationIssue(
                    field=f"fact:{key}",
                    severity="critical",
                    message=f'Mandatory fact {fact.label} "{fact.value}" does not '
                    "appear verbatim in the narrative",
                ),
            )


__all__ = ["DeterministicVerifier"]
