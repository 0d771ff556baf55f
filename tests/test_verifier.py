import pytest

from prosegate.contracts.deal import BioProgram, Fee, LoanDeal
from prosegate.contracts.prose import ProseBundle
from prosegate.verification.verifier import DeterministicVerifier

from tests.conftest import BORROWER, LOAN_TEXT, complete_bundle


@pytest.fixture
def verifier(schemas, checklists):
    return DeterministicVerifier(schemas, checklists)


def test_empty_required_field_is_critical(verifier, schemas, fact_builder, loan_deal):
    facts = fact_builder.build(loan_deal, "promissory_note")
    bundle = complete_bundle(schemas.get("promissory_note")).with_fields(
        {"defaultProvisions": ""}
    )

    result = verifier.verify(bundle, facts)

    assert not result.passed
    assert [i.field for i in result.critical_issues] == ["prose:defaultProvisions"]


@pytest.mark.parametrize("empty", ["", "   ", [], ["", " "]])
def test_every_kind_of_empty_fails_shape(verifier, schemas, fact_builder, loan_deal, empty):
    facts = fact_builder.build(loan_deal, "guaranty")
    bundle = complete_bundle(schemas.get("guaranty")).with_fields(
        {"waiverOfDefenses": empty}
    )

    result = verifier.verify(bundle, facts)

    assert [i.field for i in result.critical_issues] == ["prose:waiverOfDefenses"]


def test_missing_regulatory_references_only_warn(verifier, schemas, fact_builder):
    program = BioProgram(sponsor_name="Zeta Biotherapeutics, Inc.", drug_name="ZV-101")
    facts = fact_builder.build(program, "ind_module_1")
    text = "ZV-101 is sponsored by Zeta Biotherapeutics, Inc. under this application."
    bundle = complete_bundle(schemas.get("ind_module_1"), text)

    result = verifier.verify(bundle, facts)

    assert result.passed
    assert result.references_checked == 2
    assert result.references_found == 0
    regulatory = [i for i in result.issues if i.field.startswith("regulatory:")]
    assert [i.field for i in regulatory] == ["regulatory:21 CFR 312", "regulatory:Form 1571"]
    assert all(i.severity == "warning" for i in regulatory)


def test_references_match_case_insensitively(verifier, schemas, fact_builder):
    program = BioProgram(sponsor_name="Zeta Biotherapeutics, Inc.", drug_name="ZV-101")
    facts = fact_builder.build(program, "ind_module_1")
    text = "ZV-101 by Zeta Biotherapeutics, Inc. per 21 cfr 312.23 and FORM 1571."
    bundle = complete_bundle(schemas.get("ind_module_1"), text)

    result = verifier.verify(bundle, facts)

    assert result.references_found == 2
    assert result.issues == []
    assert result.checks_passed == result.checks_run


def test_missing_party_is_a_warning(verifier, schemas, fact_builder, loan_deal):
    facts = fact_builder.build(loan_deal, "security_agreement")
    bundle = complete_bundle(
        schemas.get("security_agreement"), "The Debtor grants a security interest."
    )

    result = verifier.verify(bundle, facts)

    borrower = [i for i in result.issues if i.field == "borrower"]
    assert borrower[0].severity == "warning"
    # The borrower is also a mandatory fact for this type
    assert [i.field for i in result.critical_issues] == ["fact:borrower"]


def test_mandatory_facts_are_case_sensitive(verifier, schemas, fact_builder, loan_deal):
    facts = fact_builder.build(loan_deal, "promissory_note")
    bundle = complete_bundle(
        schemas.get("promissory_note"), LOAN_TEXT.replace(BORROWER, BORROWER.lower())
    )

    result = verifier.verify(bundle, facts)

    assert not any(i.field == "borrower" for i in result.issues)
    assert [i.field for i in result.critical_issues] == ["fact:borrower"]


def test_placeholder_mandatory_fact_is_not_demanded(verifier, schemas, fact_builder):
    deal = LoanDeal(borrower_name=BORROWER, principal=500_000)
    facts = fact_builder.build(deal, "promissory_note")
    bundle = complete_bundle(schemas.get("promissory_note"))

    result = verifier.verify(bundle, facts)

    assert result.passed
    rate = next(i for i in result.issues if i.field == "fact:interest_rate")
    assert rate.severity == "warning"


def test_tracked_numeric_warning(verifier, schemas, fact_builder, loan_deal):
    facts = fact_builder.build(loan_deal, "loan_agreement")
    bundle = complete_bundle(schemas.get("loan_agreement"))

    result = verifier.verify(bundle, facts)
    assert "numeric:covenant_minimum_dscr" in [i.field for i in result.warnings]

    bundle = complete_bundle(schemas.get("loan_agreement"), LOAN_TEXT + " DSCR of 1.25x.")
    result = verifier.verify(bundle, facts)
    assert "numeric:covenant_minimum_dscr" not in [i.field for i in result.issues]


def test_unsupported_type_checks_bundle_keys(verifier, fact_builder, loan_deal):
    facts = fact_builder.build(loan_deal, "term_sheet")
    bundle = ProseBundle(
        doc_type="term_sheet",
        fields={"generalProvisions": f"{BORROWER} for 60 months.", "governingLaw": ""},
    )

    result = verifier.verify(bundle, facts)

    assert [i.field for i in result.critical_issues] == ["prose:governingLaw"]
    assert "numeric:term" not in [i.field for i in result.issues]


def test_missing_fee_warns_for_non_template_type(verifier, fact_builder, loan_deal):
    deal = loan_deal.model_copy(update={"fees": [Fee(name="Origination Fee", amount=5000)]})
    facts = fact_builder.build(deal, "term_sheet")
    without = ProseBundle(
        doc_type="term_sheet",
        fields={"generalProvisions": f"{BORROWER} for 60 months.", "governingLaw": "CA law."},
    )
    with_fee = without.with_fields(
        {"generalProvisions": f"{BORROWER} for 60 months; origination fee of 5,000."}
    )

    warned = verifier.verify(without, facts)
    quiet = verifier.verify(with_fee, facts)

    [fee] = [i for i in warned.issues if i.field == "numeric:fee_origination_fee"]
    assert fee.severity == "warning"
    assert "$5,000" in fee.message
    assert warned.passed
    assert "numeric:fee_origination_fee" not in [i.field for i in quiet.issues]


def test_new_loan_types_are_drafted_against_schemas(verifier, schemas, fact_builder, loan_deal):
    facts = fact_builder.build(loan_deal, "assignment_of_leases")
    bundle = complete_bundle(
        schemas.get("assignment_of_leases"), f"{LOAN_TEXT} Recording is authorized."
    )

    result = verifier.verify(bundle, facts)

    assert result.passed
    assert result.references_checked == result.references_found == 1
