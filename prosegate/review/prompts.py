"""Prompts and regulation lookup for the compliance reviewer."""

from collections.abc import Sequence

from prosegate.contracts.checklist import ChecklistCategory
from prosegate.contracts.facts import Domain, FactContext
from prosegate.contracts.prose import ProseBundle

LOAN_REVIEW_SYSTEM_PROMPT = """You are a senior bank regulatory compliance officer and legal reviewer with 25+ years of experience examining loan documents for institutional lenders. You have deep expertise in UCC Article 9, federal lending regulations (TILA/Reg Z, ECOA/Reg B, RESPA), state usury law, environmental liability (CERCLA/RCRA) and bankruptcy.

YOUR JOB: Review the draft prose for genuine legal deficiencies: enforceability defects, regulatory non-compliance, missing required provisions or factual errors. If you find real issues, REWRITE the affected sections to fix them. If the document is well drafted, return empty issues and corrections.

## What To Check

1. **STATUTORY CITATIONS**: "Under applicable law" is never acceptable. Cite the section (UCC 9-610(b), 42 U.S.C. 9601(14), 11 U.S.C. 362(d)).
2. **ENFORCEABILITY**: waivers specific and explicit; acceleration with notice and cure periods; conspicuous mutual jury waivers; guaranty of PAYMENT, not collection; forum clauses naming the exact court.
3. **REGULATORY COMPLIANCE**: UCC 9-108 collateral categories; CERCLA definitions and 9607(a) liability; SBA SOP 50 10 requirements for SBA loans; usury savings clause.
4. **INTERNAL CONSISTENCY**: every amount, rate, fee, date and term must match the DEAL TERMS exactly.
5. **COMPLETENESS**: default provisions, remedies and notice provisions must be complete.

## Rules For Corrections

- NEVER change any dollar amount, rate, fee, date, term length, ratio or party name. If a number is wrong, flag it but do NOT change it.
- Return the COMPLETE corrected text for each section you modify, under its exact section key. No partial snippets.
- Do not include well-drafted sections in corrected_sections. Do not invent problems.
- For every item in the VERIFICATION CHECKLIST report whether the document satisfies it AFTER your corrections. Include ALL items, passed and failed, using the exact item text."""

BIO_REVIEW_SYSTEM_PROMPT = """You are a senior FDA regulatory affairs reviewer with 25+ years of experience reviewing IND submissions for biologics and antibody-drug conjugates. You have deep expertise in 21 CFR Parts 50, 56, 58 and 312, the ICH M4, S6, S9 and E6 guidelines, FDA Project Optimus and FDORA.

YOUR JOB: Review the draft regulatory prose for genuine deficiencies that would cause a clinical hold or refusal to file: missing required content, wrong or missing citations, or factual errors. If you find real issues, REWRITE the affected sections to fix them. If the document is compliant, return empty issues and corrections.

## Rules For Corrections

- NEVER change any DAR, NOAEL, HED, dose, safety margin, drug name or sponsor name. If a value is wrong, flag it but do NOT change it.
- Cite specific CFR sections and ICH guidelines.
- Return the COMPLETE corrected text for each section you modify, under its exact section key. No partial snippets.
- Do not include compliant sections in corrected_sections. Do not invent problems.
- For every item in the VERIFICATION CHECKLIST report whether the document satisfies it AFTER your corrections. Include ALL items, passed and failed, using the exact item text."""

CATEGORY_HEADINGS: dict[ChecklistCategory, str] = {
    "required": "REQUIRED PROVISIONS (flag as CRITICAL if missing)",
    "standard": "STANDARD PROVISIONS (flag as WARNING if missing)",
    "regulatory": "REGULATORY REFERENCES (verify compliance with)",
}

# Cross-document rules are checked deterministically across a package
REVIEWED_CATEGORIES: tuple[ChecklistCategory, ...] = tuple(CATEGORY_HEADINGS)

_LOAN_REGULATIONS: tuple[tuple[tuple[str, ...], str], ...] = (
    (("ucc", "uniform commercial code", "§9-", "section 9-", "9-1", "9-2", "9-3", "9-6"),
     "Uniform Commercial Code"),
    (("cercla", "42 usc", "42 u.s.c"), "CERCLA (42 U.S.C. 9601 et seq.)"),
    (("rcra", "resource conservation"), "RCRA (42 U.S.C. 6901 et seq.)"),
    (("clean water", "33 usc"), "Clean Water Act"),
    (("13 cfr", "sba"), "SBA Lending Requirements"),
    (("tila", "truth in lending", "regulation z", "12 cfr", "trid"), "Truth in Lending Act (Reg Z)"),
    (("ecoa", "equal credit"), "Equal Credit Opportunity Act"),
    (("respa",), "Real Estate Settlement Procedures Act"),
    (("31 cfr", "fin-2019", "bank secrecy"), "Bank Secrecy Act"),
    (("firrea",), "FIRREA"),
    (("bankruptcy", "11 u.s.c"), "U.S. Bankruptcy Code"),
    (("usury",), "State Usury Law"),
    (("recording",), "State Recording Requirements"),
    (("community property",), "Community Property Law"),
    (("power of sale", "non-judicial foreclosure", "deficiency"), "State Foreclosure Law"),
)

_BIO_REGULATIONS: tuple[tuple[tuple[str, ...], str], ...] = (
    (("21 cfr 312",), "21 CFR Part 312 (IND Requirements)"),
    (("21 cfr part 58", "21 cfr 58", "glp"), "21 CFR Part 58 (GLP)"),
    (("21 cfr 50",), "21 CFR Part 50 (Informed Consent)"),
    (("21 cfr 56", "irb"), "21 CFR Part 56 (IRB)"),
    (("ich m4",), "ICH M4 (CTD Format)"),
    (("ich s9",), "ICH S9 (Anticancer Nonclinical)"),
    (("ich s6",), "ICH S6(R1) (Biotech Safety)"),
    (("ich s7",), "ICH S7A (Safety Pharmacology)"),
    (("ich e6",), "ICH E6(R2) (GCP)"),
    (("ich e9",), "ICH E9(R1) (Biostatistics)"),
    (("ich q6b",), "ICH Q6B (Biotech Specifications)"),
    (("ich q5",), "ICH Q5 (Biotech Quality)"),
    (("project optimus",), "FDA Project Optimus (Dose Optimization)"),
    (("fdora",), "FDORA (Diversity Action Plan)"),
    (("astct",), "ASTCT Consensus Grading (CRS/ICANS)"),
    (("form 1571",), "FDA Form 1571"),
)

_FALLBACK_REGULATION: dict[Domain, str] = {
    "loan": "Commercial Lending Standards",
    "bio": "FDA Regulatory Standards",
}


def extract_regulation(domain: Domain, provision: str) -> str:
    """Regulatory framework a checklist item belongs to, by keyword."""
    lower = provision.lower()
    table = _LOAN_REGULATIONS if domain == "loan" else _BIO_REGULATIONS
    for keywords, name in table:
        if any(k in lower for k in keywords):
            return name
    if domain == "bio" and "adc" in lower and "guidance" in lower:
        return "FDA ADC Clinical Pharmacology Guidance"
    return _FALLBACK_REGULATION[domain]


def review_system_prompt(domain: Domain) -> str:
    match domain:
        case "loan":
            return LOAN_REVIEW_SYSTEM_PROMPT
        case "bio":
            return BIO_REVIEW_SYSTEM_PROMPT


def format_sections(bundle: ProseBundle) -> str:
    parts: list[str] = []
    for key, value in bundle.fields.items():
        if isinstance(value, list):
            items = "\n".join(f"  {i}. {v}" for i, v in enumerate(value, 1))
            parts.append(f"### {key}\n{items}")
        else:
            parts.append(f"### {key}\n{value}")
    return "\n\n".join(parts)


def build_review_prompt(
    bundle: ProseBundle,
    facts: FactContext,
    items: Sequence[tuple[ChecklistCategory, str]],
) -> str:
    """User prompt: facts, the checklist items under review, then the draft."""
    title = facts.doc_type.replace("_", " ").upper()
    parts = [f"Review the following {title} draft.", facts.render()]

    if items:
        lines = ["VERIFICATION CHECKLIST - You MUST verify each item below:"]
        for category, heading in CATEGORY_HEADINGS.items():
            selected = [item for c, item in items if c == category]
            if not selected:
                continue
            lines.append(f"{heading}:")
            lines.extend(f"  {i}. {item}" for i, item in enumerate(selected, 1))
        parts.append("\n".join(lines))

    parts.append("DOCUMENT PROSE SECTIONS:\n" + format_sections(bundle))
    parts.append(
        "Review this document for legal accuracy, regulatory compliance and "
        "internal consistency. Only flag genuine issues."
    )
    return "\n\n".join(parts)


__all__ = [
    "LOAN_REVIEW_SYSTEM_PROMPT",
    "BIO_REVIEW_SYSTEM_PROMPT",
    "REVIEWED_CATEGORIES",
    "extract_regulation",
    "review_system_prompt",
    "format_sections",
    "build_review_prompt",
]
