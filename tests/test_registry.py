import pytest

from prosegate.checklists.registry import (
    ChecklistDataError,
    ChecklistRegistry,
    normalize_program,
)
from prosegate.contracts.checklist import ChecklistEntry, ChecklistOverlay


def test_base_entry(checklists):
    entry = checklists.entry("promissory_note")

    assert "Governing law clause" in entry.required
    assert entry.regulatory == ("usury",)
    assert checklists.domain_of("promissory_note") == "loan"


def test_overlay_extends_without_removing(checklists):
    base = checklists.entry("guaranty")
    merged = checklists.entry("guaranty", "sba_7a")

    assert merged.required[: len(base.required)] == base.required
    assert len(merged.required) == len(base.required) + 1
    assert merged.required[-1].startswith("SBA unlimited personal guaranty")
    assert merged.standard == base.standard
    assert merged.template_guaranteed == base.template_guaranteed


def test_program_keys_are_normalized(checklists):
    assert checklists.entry("guaranty", "SBA 7a") == checklists.entry("guaranty", "sba_7a")

    adc = checklists.entry("ind_module_4", "Antibody-Drug Conjugate")
    assert any(item.startswith("Tissue cross-reactivity") for item in adc.required)


def test_unknown_program_resolves_to_base(checklists):
    assert checklists.entry("guaranty", "no_such_program") == checklists.entry("guaranty")


def test_unknown_document_type_has_empty_entry(checklists):
    entry = checklists.entry("term_sheet")

    assert len(entry) == 0
    assert entry.items() == []
    assert not checklists.is_known("term_sheet")


def test_doc_types_by_domain(checklists):
    assert len(checklists.doc_types("loan")) == 21
    assert len(checklists.doc_types("bio")) == 10
    assert "adc" in checklists.programs("bio")


@pytest.mark.parametrize(
    "domain, raw, expected",
    [
        ("bio", "ADC", "adc"),
        ("bio", "Antibody-Drug Conjugate", "adc"),
        ("bio", "Small Molecule", "small_molecule"),
        ("loan", "SBA-504", "sba_504"),
        ("loan", "  ", None),
        ("loan", None, None),
    ],
)
def test_normalize_program(domain, raw, expected):
    assert normalize_program(domain, raw) == expected


def test_merge_is_duplicate_safe():
    base = ChecklistEntry(doc_type="x", required=("a", "b"), regulatory=("r",))
    overlay = ChecklistOverlay(required=("b", "c", "c"), regulatory=("r",))

    merged = base.merged(overlay)

    assert merged.required == ("a", "b", "c")
    assert merged.regulatory == ("r",)
    assert merged.merged(overlay) == merged


def test_overlay_for_unknown_type_is_rejected():
    with pytest.raises(ChecklistDataError):
        ChecklistRegistry(
            entries={},
            domains={},
            overlays={"loan": {"sba_7a": {"promissory_note": ChecklistOverlay()}}},
        )


def test_load_rejects_bad_data(tmp_path):
    with pytest.raises(ChecklistDataError):
        ChecklistRegistry.load(tmp_path)

    (tmp_path / "bad.yaml").write_text("domain: loan\ndocuments: [unclosed\n")
    with pytest.raises(ChecklistDataError):
        ChecklistRegistry.load(tmp_path)


def test_load_custom_directory(tmp_path):
    (tmp_path / "custom.yaml").write_text(
        "domain: loan\n"
        "documents:\n"
        "  promissory_note:\n"
        "    required: [\"Default provisions\"]\n"
        "overlays:\n"
        "  bridge:\n"
        "    promissory_note:\n"
        "      required: [\"Extension option\"]\n"
    )

    registry = ChecklistRegistry.load(tmp_path)

    assert registry.entry("promissory_note", "bridge").required == (
        "Default provisions",
        "Extension option",
    )


def test_overlays_reach_supporting_documents(checklists):
    leases = checklists.entry("assignment_of_leases", "commercial_cre")
    ucc = checklists.entry("ucc_financing_statement", "equipment_financing")

    assert leases.required[-1].startswith("Cash management/lockbox provisions")
    assert ucc.required[-1].startswith("Equipment-specific UCC filing")
    assert checklists.entry("ucc_financing_statement").regulatory == (
        "9-108", "9-503", "9-509", "9-515",
    )


def test_certificate_items_are_template_guaranteed(checklists):
    estoppel = checklists.entry("estoppel_certificate")

    assert estoppel.regulatory == ()
    assert set(estoppel.required) <= set(estoppel.template_guaranteed)
    assert "Reliance limitation" not in " ".join(estoppel.template_guaranteed)
