"""Fact formatting and fact context construction."""

from prosegate.facts.formatting import (
    placeholder,
    is_placeholder,
    format_currency,
    format_currency_detailed,
    format_percent,
    format_percent_short,
    format_date,
    format_number,
    number_to_words,
)
from prosegate.facts.builder import (
    TEMPLATE_HANDLED_TYPES,
    DAR_RELEVANT_TYPES,
    FactContextBuilder,
    threshold_candidates,
    fee_candidates,
    term_candidates,
)

__all__ = [
    "placeholder",
    "is_placeholder",
    "format_currency",
    "format_currency_detailed",
    "format_percent",
    "format_percent_short",
    "format_date",
    "format_number",
    "number_to_words",
    "TEMPLATE_HANDLED_TYPES",
    "DAR_RELEVANT_TYPES",
    "FactContextBuilder",
    "threshold_candidates",
    "fee_candidates",
    "term_candidates",
]
