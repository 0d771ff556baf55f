"""Fact context builder - formats raw deal state into authoritative facts."""

import re

from prosegate.checklists.registry import normalize_program
from prosegate.contracts.deal import BioProgram, DealState, LoanDeal
from prosegate.contracts.facts import Fact, FactContext, TrackedNumeric
from prosegate.facts.formatting import (
    format_currency,
    format_currency_detailed,
    format_date,
    format_number,
    format_percent,
    format_percent_short,
    number_to_words,
    placeholder,
)

# Loan types rendered from a template around the drafted prose. Term length
# and fee amounts are only tracked for the rest, where the generic narrative
# must carry them.
TEMPLATE_HANDLED_TYPES = frozenset(
    {
        "promissory_note",
        "loan_agreement",
        "security_agreement",
        "guaranty",
        "commitment_letter",
        "environmental_indemnity",
        "assignment_of_leases",
        "subordination_agreement",
        "intercreditor_agreement",
        "corporate_resolution",
        "ucc_financing_statement",
        "snda",
        "estoppel_certificate",
        "settlement_statement",
        "borrowers_certificate",
        "compliance_certificate",
        "amortization_schedule",
        "closing_disclosure",
        "loan_estimate",
        "opinion_letter",
        "deed_of_trust",
        "sba_authorization",
        "cdc_debenture",
        "borrowing_base_agreement",
        "digital_asset_pledge",
        "custody_agreement",
        "sba_form_1919",
        "sba_form_1920",
        "sba_form_159",
        "sba_form_148",
        "sba_form_1050",
        "irs_4506c",
        "irs_w9",
        "flood_determination",
        "privacy_notice",
        "patriot_act_notice",
        "disbursement_authorization",
    }
)

# Bio types where the drug-to-antibody ratio is expected in the narrative
DAR_RELEVANT_TYPES = frozenset(
    {
        "ind_module_2",
        "ind_module_3",
        "ind_module_4",
        "investigator_brochure",
        "pre_ind_briefing",
    }
)


def _slug(name: str) -> str:
    return re.sub(r"[^a-z0-9]+", "_", name.lower()).strip("_")


def _dedupe(values: list[str]) -> tuple[str, ...]:
    return tuple(dict.fromkeys(values))


def _text_fact(key: str, label: str, value: str | None) -> Fact:
    if value is None or not value.strip():
        return Fact(key=key, label=label, value=placeholder(label), placeholder=True)
    return Fact(key=key, label=label, value=value.strip())


def _formatted_fact(key: str, label: str, value: object, formatted: str) -> Fact:
    return Fact(key=key, label=label, value=formatted, placeholder=value is None)


def threshold_candidates(threshold: float) -> tuple[str, ...]:
    """Acceptable renderings of a covenant threshold: 1.25, 1.25x, 125%, 125.0%."""
    return _dedupe(
        [
            format_number(threshold),
            f"{format_number(threshold)}x",
            f"{threshold * 100:.0f}%",
            f"{threshold * 100:.1f}%",
            f"{threshold:.2f}",
        ]
    )


def fee_candidates(amount: float) -> tuple[str, ...]:
    """$2,500 or $2,500.00, or the bare grouped number."""
    raw = f"{amount:,.3f}".rstrip("0").rstrip(".")
    return _dedupe([format_currency(amount), format_currency_detailed(amount), raw])


def term_candidates(months: int) -> tuple[str, ...]:
    years = months / 12
    values = [f"{months} month", f"{months}-month"]
    if months % 12 == 0:
        values += [f"{months // 12} year", f"{months // 12}-year"]
    values.append(f"{years:.1f} year")
    return _dedupe(values)


class FactContextBuilder:
    """
    Build an immutable FactContext per (deal, document type).

    Deterministic: identical deal state yields identical facts in the same
    order. An absent fact becomes an explicit placeholder, never an
    omission.
    """

    def build(self, deal: DealState, doc_type: str) -> FactContext:
        match deal:
            case LoanDeal():
                return self._build_loan(deal, doc_type)
            case BioProgram():
                return self._build_bio(deal, doc_type)
            case _:
                raise TypeError(f"Unsupported deal state: {type(deal).__name__}")

    def _build_loan(self, deal: LoanDeal, doc_type: str) -> FactContext:
        facts: list[Fact] = [
            _text_fact("borrower", "Borrower", deal.borrower_name),
            _text_fact("lender", "Lender", deal.lender_name),
        ]
        if deal.guarantor_name or doc_type == "guaranty":
            facts.append(_text_fact("guarantor", "Guarantor", deal.guarantor_name))

        facts += [
            _text_fact("state", "Governing State", deal.state),
            _text_fact("property_address", "Property Address", deal.property_address),
            _text_fact("loan_purpose", "Loan Purpose", deal.loan_purpose),
            _formatted_fact(
                "principal_amount",
                "Principal Amount",
                deal.principal,
                format_currency(deal.principal, "Principal Amount"),
            ),
            _formatted_fact(
                "principal_words",
                "Principal Amount in Words",
                deal.principal,
                f"{number_to_words(deal.principal)} dollars"
                if deal.principal is not None
                else placeholder("Principal Amount in Words"),
            ),
            _formatted_fact(
                "interest_rate",
                "Interest Rate",
                deal.interest_rate,
                format_percent(deal.interest_rate, "Interest Rate"),
            ),
            _formatted_fact(
                "term",
                "Term",
                deal.term_months,
                f"{deal.term_months} months"
                if deal.term_months is not None
                else placeholder("Term"),
            ),
            _formatted_fact(
                "amortization",
                "Amortization",
                deal.amortization_months,
                f"{deal.amortization_months} months"
                if deal.amortization_months is not None
                else placeholder("Amortization"),
            ),
            _formatted_fact(
                "monthly_payment",
                "Monthly Payment",
                deal.monthly_payment,
                format_currency_detailed(deal.monthly_payment, "Monthly Payment"),
            ),
            _formatted_fact(
                "ltv",
                "Loan-to-Value",
                deal.ltv,
                f"{deal.ltv * 100:.1f}%" if deal.ltv is not None else placeholder("Loan-to-Value"),
            ),
        ]

        if deal.late_fee_percent is not None:
            grace = deal.late_fee_grace_days
            late_fee = format_percent_short(deal.late_fee_percent)
            if grace is not None:
                late_fee += f" after a {grace}-day grace period"
            facts.append(Fact(key="late_fee", label="Late Fee", value=late_fee))
        else:
            facts.append(_text_fact("late_fee", "Late Fee", None))

        facts += [
            _formatted_fact(
                "maturity_date",
                "Maturity Date",
                deal.maturity_date,
                format_date(deal.maturity_date, "Maturity Date"),
            ),
            _formatted_fact(
                "first_payment_date",
                "First Payment Date",
                deal.first_payment_date,
                format_date(deal.first_payment_date, "First Payment Date"),
            ),
            _formatted_fact(
                "document_date",
                "Document Date",
                deal.document_date,
                format_date(deal.document_date, "Document Date"),
            ),
        ]

        if deal.collateral_types:
            facts.append(
                Fact(
                    key="collateral_types",
                    label="Collateral Types",
                    value=", ".join(deal.collateral_types),
                )
            )

        for fee in deal.fees:
            label = f"Fee: {fee.name}"
            facts.append(
                _formatted_fact(
                    f"fee_{_slug(fee.name)}", label, fee.amount, format_currency(fee.amount, label)
                )
            )

        tracked: list[TrackedNumeric] = []
        for covenant in deal.covenants:
            key = f"covenant_{_slug(covenant.name)}"
            description = covenant.description or covenant.name
            if covenant.threshold is not None:
                description = f"{description} (threshold: {format_number(covenant.threshold)})"
                tracked.append(
                    TrackedNumeric(
                        key=key,
                        label=f"{covenant.name} threshold",
                        candidates=threshold_candidates(covenant.threshold),
                    )
                )
            facts.append(Fact(key=key, label=f"Covenant: {covenant.name}", value=description))

        if doc_type not in TEMPLATE_HANDLED_TYPES:
            if deal.term_months is not None:
                tracked.append(
                    TrackedNumeric(
                        key="term",
                        label="Loan term",
                        candidates=term_candidates(deal.term_months),
                    )
                )
            tracked += [
                TrackedNumeric(
                    key=f"fee_{_slug(fee.name)}",
                    label=f"Fee: {fee.name}",
                    candidates=fee_candidates(fee.amount),
                )
                for fee in deal.fees
                if fee.amount is not None
            ]

        parties = ("borrower", "guarantor") if doc_type == "guaranty" else ("borrower",)
        program_label = deal.program_name or deal.program_id
        if program_label and deal.program_category:
            program_label = f"{program_label} ({deal.program_category})"

        return FactContext(
            doc_type=doc_type,
            domain="loan",
            program=normalize_program("loan", deal.program_id),
            program_label=program_label,
            facts=tuple(facts),
            primary_parties=parties,
            tracked_numerics=tuple(tracked),
        )

    def _build_bio(self, program: BioProgram, doc_type: str) -> FactContext:
        drug_class = normalize_program("bio", program.drug_class)
        is_adc = drug_class == "adc"

        facts: list[Fact] = [
            _text_fact("drug_name", "Drug Name", program.drug_name),
            _text_fact("sponsor", "Sponsor", program.sponsor_name),
            _text_fact("drug_class", "Drug Class", program.drug_class),
            _text_fact("target", "Target", program.target),
            _text_fact("mechanism", "Mechanism of Action", program.mechanism),
            _text_fact("indication", "Indication", program.indication),
            _text_fact("phase", "Phase", program.phase),
            _text_fact("ind_number", "IND Number", program.ind_number),
            _text_fact("regulatory_pathway", "Regulatory Pathway", program.regulatory_pathway),
        ]
        if is_adc:
            facts += [
                _text_fact("antibody_type", "Antibody", program.antibody_type),
                _text_fact("linker_type", "Linker", program.linker_type),
                _text_fact("payload_type", "Payload", program.payload_type),
                _formatted_fact(
                    "dar",
                    "Drug-to-Antibody Ratio (DAR)",
                    program.dar,
                    format_number(program.dar)
                    if program.dar is not None
                    else placeholder("Drug-to-Antibody Ratio (DAR)"),
                ),
            ]
        facts += [
            _text_fact("noael", "NOAEL", program.noael),
            _text_fact("hed", "Human Equivalent Dose (HED)", program.hed),
            _text_fact("starting_dose", "Proposed Starting Dose", program.starting_dose),
            _text_fact("safety_margin", "Safety Margin", program.safety_margin),
        ]

        tracked: list[TrackedNumeric] = []
        if is_adc and program.dar is not None and doc_type in DAR_RELEVANT_TYPES:
            tracked.append(
                TrackedNumeric(
                    key="dar",
                    label="Drug-to-antibody ratio",
                    candidates=("DAR", format_number(program.dar)),
                )
            )

        return FactContext(
            doc_type=doc_type,
            domain="bio",
            program=drug_class,
            program_label=program.program_name or program.drug_class,
            facts=tuple(facts),
            primary_parties=("drug_name", "sponsor"),
            tracked_numerics=tuple(tracked),
        )


__all__ = [
    "TEMPLATE_HANDLED_TYPES",
    "DAR_RELEVANT_TYPES",
    "FactContextBuilder",
    "threshold_candidates",
    "fee_candidates",
    "term_candidates",
]
