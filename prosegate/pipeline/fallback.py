"""Generic fallback prose used when drafting fails or a type is unsupported."""

from prosegate.contracts.facts import FactContext
from prosegate.contracts.prose import ProseBundle, ProseSchema, ProseValue


def _known(facts: FactContext, key: str, default: str) -> str:
    fact = facts.get(key)
    if fact is None or fact.placeholder:
        return default
    return fact.value


def _governing_law(facts: FactContext) -> str:
    state = _known(facts, "state", "")
    where = f"the State of {state}" if state else "the applicable state"
    return (
        f"This agreement shall be governed by and construed in accordance with the "
        f"laws of {where}, without regard to its conflicts of law principles."
    )


def _regulatory_statement(facts: FactContext) -> str:
    return (
        f"This {_title(facts)} is submitted by {facts.value('sponsor')} in accordance "
        f"with 21 CFR Part 312 and the applicable FDA and ICH guidance."
    )


def _title(facts: FactContext) -> str:
    return facts.doc_type.replace("_", " ")


def _opening(facts: FactContext, schema: ProseSchema | None) -> str:
    if facts.domain == "loan":
        dated = _known(facts, "document_date", "the date set forth below")
        lender = _known(facts, "lender", "the Lender")
        sentence = (
            f"This {_title(facts)} is entered into as of {dated} by and between "
            f"{lender} and {facts.value('borrower')} (\"Borrower\") in connection "
            f"with a loan in the principal amount of {facts.value('principal_amount')}."
        )
    else:
        sentence = (
            f"This {_title(facts)} concerns {facts.value('drug_name')}, developed by "
            f"{facts.value('sponsor')}."
        )

    extra = []
    if schema is not None:
        for key in schema.mandatory_facts:
            fact = facts.get(key)
            if fact is not None and not fact.placeholder and fact.value not in sentence:
                extra.append(f"{fact.label}: {fact.value}.")
    return " ".join([sentence, *extra])


def _is_governing_law_key(key: str) -> bool:
    return "governinglaw" in key.lower()


def build_fallback_bundle(facts: FactContext, schema: ProseSchema | None) -> ProseBundle:
    """
    Minimal generic bundle naming the primary party and principal amount.

    For a supported type every schema key is filled so the key set matches
    the drafted shape; an unsupported type gets the generic two-field shape.
    """
    opening = _opening(facts, schema)

    if schema is None:
        closing = (
            _governing_law(facts) if facts.domain == "loan" else _regulatory_statement(facts)
        )
        second_key = "governingLaw" if facts.domain == "loan" else "regulatoryStatement"
        return ProseBundle(
            doc_type=facts.doc_type,
            fields={"generalProvisions": opening, second_key: closing},
        )

    fields: dict[str, ProseValue] = {}
    for i, field in enumerate(schema.fields):
        if i == 0:
            text = opening
        elif _is_governing_law_key(field.key):
            text = _governing_law(facts)
        else:
            text = (
                f"The {field.key} provisions of this {_title(facts)} are to be "
                f"completed in accordance with the governing requirements."
            )
        fields[field.key] = [text] if field.kind == "list" else text
    return ProseBundle(doc_type=facts.doc_type, fields=fields)


__all__ = ["build_fallback_bundle"]
