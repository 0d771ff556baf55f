import pytest
from kungfu import Ok

from prosegate.api.gate import ProseGate, deal_domain
from prosegate.contracts.deal import LoanDeal
from prosegate.settings import Settings
from prosegate.verification.cross_document import (
    NARRATIVE_RENDERINGS,
    check_cross_document,
    narrative_renderings,
)

from tests.conftest import (
    BORROWER,
    LOAN_TEXT,
    PRINCIPAL,
    RATE,
    ScriptedDrafting,
    ScriptedReview,
    complete_bundle,
    drafts_complete,
)


@pytest.fixture
def settings(tmp_path):
    return Settings(_env_file=None, audit_path=tmp_path / "audit")


@pytest.fixture
def gate(settings, checklists, schemas):
    return ProseGate(
        settings=settings,
        checklists=checklists,
        schemas=schemas,
        drafting=ScriptedDrafting([drafts_complete()]),
        review=ScriptedReview(),
    )


async def test_package_of_siblings_is_accepted(gate, loan_deal):
    package, audit_id = await gate.generate_package(loan_deal, ["promissory_note", "guaranty"])

    assert audit_id is None
    assert package.domain == "loan"
    assert list(package.documents) == ["promissory_note", "guaranty"]
    assert all(r.accepted for r in package.documents.values())
    assert package.cross_document_issues == []
    assert package.accepted
    assert package.cross_document_rules == {
        "guaranty": [
            "Guaranteed amount matches promissory note principal",
            "Borrower name is consistent across all documents",
        ]
    }


async def test_empty_package_is_refused(gate, loan_deal):
    with pytest.raises(ValueError):
        await gate.generate_package(loan_deal, [])


def test_mismatched_shared_fact_is_reported(fact_builder, loan_deal):
    other = loan_deal.model_copy(update={"principal": 450_000})
    contexts = {
        "promissory_note": fact_builder.build(loan_deal, "promissory_note"),
        "guaranty": fact_builder.build(other, "guaranty"),
    }

    [issue] = check_cross_document(contexts)

    assert issue.fact_key == "principal_amount"
    assert issue.values == {"promissory_note": "$500,000", "guaranty": "$450,000"}
    assert issue.severity == "critical"


def test_placeholders_never_conflict(fact_builder, loan_deal):
    partial = LoanDeal(borrower_name=BORROWER)
    contexts = {
        "promissory_note": fact_builder.build(loan_deal, "promissory_note"),
        "guaranty": fact_builder.build(partial, "guaranty"),
    }

    assert check_cross_document(contexts) == []


async def test_domain_mismatch_is_rejected(gate, bio_program, loan_deal):
    assert deal_domain(bio_program) == "bio"
    assert deal_domain(loan_deal) == "loan"
    with pytest.raises(ValueError, match="loan document"):
        await gate.generate(bio_program, "promissory_note")


def test_offline_verify(gate, schemas, loan_deal):
    bundle = complete_bundle(schemas.get("promissory_note"))

    result = gate.verify(bundle, loan_deal, "promissory_note")

    assert result.passed


async def test_generate_saves_audit_package(gate, loan_deal):
    result, audit_id = await gate.generate(loan_deal, "promissory_note", save_audit=True)

    assert result.accepted
    assert audit_id is not None
    assert gate.list_audits() == [audit_id]
    assert gate.verify_audit(audit_id) == (True, "Package integrity verified")

    package = gate.get_audit_package(audit_id)
    assert package.mode == "single"
    assert package.accepted
    assert [d.doc_type for d in package.documents] == ["promissory_note"]
    assert LoanDeal.model_validate_json(package.deal_json) == loan_deal


def test_checklist_lookup_applies_program(gate):
    base = gate.checklist("loan_agreement")
    cre = gate.checklist("loan_agreement", "commercial_cre")

    assert len(cre) == len(base) + 1


def drafts_guaranty_with(sentence: str):
    def step(contract):
        text = LOAN_TEXT
        if contract.doc_type == "guaranty":
            text = f"{LOAN_TEXT} {sentence}"
        return Ok(complete_bundle(contract.prose_schema, text))

    return step


async def test_conflicting_narrative_amount_fails_package(settings, checklists, schemas, loan_deal):
    gate = ProseGate(
        settings=settings,
        checklists=checklists,
        schemas=schemas,
        drafting=ScriptedDrafting(
            [drafts_guaranty_with("The guaranteed principal is $550,000.")]
        ),
        review=ScriptedReview(),
    )

    package, _ = await gate.generate_package(loan_deal, ["promissory_note", "guaranty"])

    assert all(r.accepted for r in package.documents.values())
    [issue] = package.cross_document_issues
    assert issue.fact_key == "principal_amount"
    assert issue.values == {"promissory_note": PRINCIPAL, "guaranty": "$550,000"}
    assert not package.accepted


def test_narrative_rate_conflict_ignores_default_rate(fact_builder, schemas, loan_deal):
    contexts = {
        doc: fact_builder.build(loan_deal, doc) for doc in ("promissory_note", "guaranty")
    }
    note = complete_bundle(
        schemas.get("promissory_note"),
        f"{LOAN_TEXT} After default the default interest rate of 11.250% applies.",
    )
    guaranty = complete_bundle(
        schemas.get("guaranty"), f"{LOAN_TEXT} The loan shall bear interest at 7.000%."
    )

    issues = check_cross_document(contexts, {"promissory_note": note, "guaranty": guaranty})

    [issue] = issues
    assert issue.fact_key == "interest_rate"
    assert issue.values == {"promissory_note": RATE, "guaranty": "7.000%"}


@pytest.mark.parametrize(
    ("sentence", "found"),
    [
        ("The Note matures on March 1, 2031.", ["March 1, 2031"]),
        ("The loan amount of $500,000.00 is due.", ["$500,000.00"]),
        ("Outstanding principal of $120,000 may be prepaid.", []),
        ("Principal is payable monthly.", []),
    ],
)
def test_narrative_renderings_follow_cue_words(sentence, found):
    key = "maturity_date" if "matur" in sentence else "principal_amount"

    assert narrative_renderings(sentence, NARRATIVE_RENDERINGS[key]) == found
