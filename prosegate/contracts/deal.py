"""Raw deal state - the upstream records a Fact Context is built from."""

import datetime

from pydantic import BaseModel, Field


class Fee(BaseModel):
    """A fee charged at or before closing."""

    name: str = Field(description="Fee name (e.g. 'Origination Fee')")
    amount: float | None = Field(default=None, description="Fee amount in dollars")
    description: str = Field(default="", description="What the fee covers")


class Covenant(BaseModel):
    """A borrower covenant, optionally with a numeric threshold."""

    name: str = Field(description="Covenant name (e.g. 'Minimum DSCR')")
    description: str = Field(default="", description="Covenant wording")
    threshold: float | None = Field(
        default=None, description="Numeric threshold (e.g. 1.25 for a 1.25x DSCR)"
    )
    frequency: str | None = Field(default=None, description="Testing frequency")


class LoanDeal(BaseModel):
    """
    Commercial loan deal state.

    Rates and ratios are decimals (0.0625 for 6.25%). Any numeric or
    date attribute may be absent; the fact builder emits a placeholder.
    """

    borrower_name: str = Field(description="Borrower legal name")
    lender_name: str | None = Field(default=None, description="Lender legal name")
    guarantor_name: str | None = Field(default=None, description="Guarantor name")

    program_id: str | None = Field(
        default=None, description="Loan program identifier (e.g. 'sba_7a')"
    )
    program_name: str | None = Field(default=None, description="Loan program name")
    program_category: str | None = Field(default=None, description="Program category")

    state: str | None = Field(default=None, description="Two-letter state code")
    property_address: str | None = Field(default=None)
    loan_purpose: str | None = Field(default=None)

    principal: float | None = Field(default=None, description="Approved amount")
    interest_rate: float | None = Field(default=None, description="Annual rate, decimal")
    term_months: int | None = Field(default=None)
    amortization_months: int | None = Field(default=None)
    monthly_payment: float | None = Field(default=None)
    ltv: float | None = Field(default=None, description="Loan-to-value, decimal")
    late_fee_percent: float | None = Field(default=None, description="Decimal")
    late_fee_grace_days: int | None = Field(default=None)

    maturity_date: datetime.date | None = Field(default=None)
    first_payment_date: datetime.date | None = Field(default=None)
    document_date: datetime.date | None = Field(default=None)

    collateral_types: list[str] = Field(default_factory=list)
    fees: list[Fee] = Field(default_factory=list)
    covenants: list[Covenant] = Field(default_factory=list)


class BioProgram(BaseModel):
    """Drug development program state for IND-related documents."""

    sponsor_name: str = Field(description="Sponsor legal name")
    drug_name: str = Field(description="Drug name or code (e.g. 'ZV-101')")
    program_name: str | None = Field(default=None)
    drug_class: str | None = Field(
        default=None, description="Free-form drug class (e.g. 'ADC', 'Small Molecule')"
    )
    target: str | None = Field(default=None)
    mechanism: str | None = Field(default=None, description="Mechanism of action")
    indication: str | None = Field(default=None)
    phase: str | None = Field(default=None)
    ind_number: str | None = Field(default=None)
    regulatory_pathway: str | None = Field(default=None)

    dar: float | None = Field(default=None, description="Drug-to-antibody ratio")
    noael: str | None = Field(default=None, description="NOAEL with units")
    hed: str | None = Field(default=None, description="Human equivalent dose")
    starting_dose: str | None = Field(default=None)
    safety_margin: str | None = Field(default=None)

    antibody_type: str | None = Field(default=None)
    linker_type: str | None = Field(default=None)
    payload_type: str | None = Field(default=None)


DealState = LoanDeal | BioProgram


__all__ = ["Fee", "Covenant", "LoanDeal", "BioProgram", "DealState"]
