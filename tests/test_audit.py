import json

import pytest

from prosegate.audit import AuditStorage, PipelinePackageBuilder, compute_package_hash
from prosegate.contracts.pipeline import PipelineResult, PipelineState

from tests.conftest import complete_bundle


@pytest.fixture
def result(schemas):
    return PipelineResult(
        doc_type="promissory_note",
        domain="loan",
        state=PipelineState.ACCEPTED,
        bundle=complete_bundle(schemas.get("promissory_note")),
        attempts=1,
        trace=[PipelineState.DRAFTING, PipelineState.VERIFYING, PipelineState.ACCEPTED],
    )


@pytest.fixture
def package(loan_deal, result):
    builder = PipelinePackageBuilder(
        tool_version="0.1.0", model_id="draft-model", provider="anthropic"
    )
    return builder.build(loan_deal, result)


@pytest.fixture
def storage(tmp_path):
    return AuditStorage(tmp_path)


def test_builder_records_run(package):
    assert package.mode == "single"
    assert package.accepted
    assert package.review_model_id == "draft-model"
    assert package.content_hash is None


def test_hash_ignores_content_hash(package):
    before = compute_package_hash(package)
    package.content_hash = "something"

    assert compute_package_hash(package) == before


def test_save_and_verify(storage, package):
    path = storage.save(package)

    assert path.exists()
    assert storage.verify(package.package_id) == (True, "Package integrity verified")
    loaded = storage.load(package.package_id)
    assert loaded.content_hash == package.content_hash


def test_tampering_is_detected(storage, package):
    path = storage.save(package)
    data = json.loads(path.read_text())
    data["accepted"] = False
    path.write_text(json.dumps(data))

    assert storage.verify(package.package_id) == (
        False,
        "Hash mismatch - package may have been modified",
    )


def test_missing_hash_file(storage, package):
    storage.save(package)
    (storage.storage_path / f"{package.package_id}.sha256").unlink()

    assert storage.verify(package.package_id) == (False, "Hash file missing")


def test_unknown_package(storage):
    assert storage.load("nope") is None
    assert storage.verify("nope") == (False, "Package nope not found")


def test_list_delete_and_statistics(storage, loan_deal, result):
    builder = PipelinePackageBuilder()
    first = builder.build(loan_deal, result)
    second = builder.build(loan_deal, result)
    storage.save(first)
    storage.save(second)

    assert storage.list_packages() == sorted([first.package_id, second.package_id])
    stats = storage.get_statistics()
    assert stats["total_packages"] == 2
    assert stats["total_size_bytes"] > 0

    assert storage.delete(first.package_id)
    assert not storage.delete(first.package_id)
    assert storage.list_packages() == [second.package_id]
