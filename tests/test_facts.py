from prosegate.contracts.deal import Fee, LoanDeal
from prosegate.facts import TEMPLATE_HANDLED_TYPES, fee_candidates

from tests.conftest import BORROWER, GUARANTOR


def test_loan_facts_are_formatted(fact_builder, loan_deal):
    facts = fact_builder.build(loan_deal, "promissory_note")

    assert facts.domain == "loan"
    assert facts.program == "commercial_cre"
    assert facts.value("borrower") == BORROWER
    assert facts.value("principal_amount") == "$500,000"
    assert facts.value("principal_words") == "five hundred thousand dollars"
    assert facts.value("interest_rate") == "6.250%"
    assert facts.value("maturity_date") == "March 1, 2031"
    assert facts.primary_parties == ("borrower",)


def test_build_is_deterministic(fact_builder, loan_deal):
    assert fact_builder.build(loan_deal, "guaranty") == fact_builder.build(
        loan_deal, "guaranty"
    )


def test_absent_fact_is_placeholder_not_omitted(fact_builder):
    deal = LoanDeal(borrower_name=BORROWER, principal=250_000)
    facts = fact_builder.build(deal, "promissory_note")

    rate = facts.get("interest_rate")
    assert rate is not None
    assert rate.placeholder
    assert rate.value == "[Interest Rate TBD]"
    assert rate.value not in facts.tokens()
    assert "$250,000" in facts.tokens()


def test_guaranty_names_guarantor_as_party(fact_builder, loan_deal):
    facts = fact_builder.build(loan_deal, "guaranty")

    assert facts.primary_parties == ("borrower", "guarantor")
    assert [f.value for f in facts.party_facts()] == [BORROWER, GUARANTOR]


def test_covenant_threshold_is_tracked(fact_builder, loan_deal):
    facts = fact_builder.build(loan_deal, "loan_agreement")

    tracked = {n.key: n for n in facts.tracked_numerics}
    dscr = tracked["covenant_minimum_dscr"]
    assert {"1.25", "1.25x", "125%", "125.0%"} <= set(dscr.candidates)
    assert "term" not in tracked


def test_term_tracked_for_non_template_types(fact_builder, loan_deal):
    facts = fact_builder.build(loan_deal, "term_sheet")

    term = next(n for n in facts.tracked_numerics if n.key == "term")
    assert "60 month" in term.candidates
    assert "5 year" in term.candidates


def test_render_lists_every_fact(fact_builder, loan_deal):
    facts = fact_builder.build(loan_deal, "promissory_note")
    rendered = facts.render()

    assert rendered.startswith("DEAL TERMS")
    assert "Program: Commercial Real Estate" in rendered
    for fact in facts.facts:
        assert f"{fact.label}: {fact.value}" in rendered


def test_bio_facts_for_adc(fact_builder, bio_program):
    facts = fact_builder.build(bio_program, "ind_module_4")

    assert facts.domain == "bio"
    assert facts.program == "adc"
    assert facts.value("dar") == "4"
    assert facts.primary_parties == ("drug_name", "sponsor")
    assert facts.render().startswith("PROGRAM DATA")
    dar = next(n for n in facts.tracked_numerics if n.key == "dar")
    assert "4" in dar.candidates


def test_dar_not_tracked_outside_relevant_types(fact_builder, bio_program):
    facts = fact_builder.build(bio_program, "informed_consent")

    assert facts.tracked_numerics == ()


def test_fees_tracked_only_outside_template_types(fact_builder, loan_deal):
    deal = loan_deal.model_copy(
        update={"fees": [Fee(name="Origination Fee", amount=5000), Fee(name="Legal Fee")]}
    )

    sheet = {n.key: n for n in fact_builder.build(deal, "term_sheet").tracked_numerics}
    note = {n.key: n for n in fact_builder.build(deal, "promissory_note").tracked_numerics}

    assert sheet["fee_origination_fee"].candidates == ("$5,000", "$5,000.00", "5,000")
    assert sheet["fee_origination_fee"].label == "Fee: Origination Fee"
    assert "fee_legal_fee" not in sheet
    assert "fee_origination_fee" not in note
    assert "promissory_note" in TEMPLATE_HANDLED_TYPES


def test_fee_candidates_keep_cents():
    assert fee_candidates(1234.5) == ("$1,234", "$1,234.50", "1,234.5")
