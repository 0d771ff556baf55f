import asyncio

import pytest
from kungfu import Ok

from prosegate.contracts.pipeline import CorrectionDirective, PipelineState
from prosegate.contracts.review import ReviewResponse
from prosegate.drafting.prompts import FEEDBACK_HEADER
from prosegate.pipeline.controller import CHECKLIST_FIELD_PREFIX

from tests.conftest import (
    BORROWER,
    LOAN_TEXT,
    PRINCIPAL,
    ScriptedDrafting,
    ScriptedReview,
    complete_bundle,
    drafting_error,
    drafts_complete,
)

S = PipelineState

DEFAULT_PROVISIONS = "Default provisions (what constitutes an event of default)"


def drafts_without(key: str):
    def step(contract):
        return Ok(complete_bundle(contract.prose_schema).with_fields({key: ""}))

    return step


def review_answer(**payload) -> Ok:
    return Ok(ReviewResponse.model_validate(payload))


async def test_verification_failure_retries_with_feedback(make_controller, fact_builder, loan_deal):
    drafting = ScriptedDrafting([drafts_without("defaultProvisions"), drafts_complete()])
    controller = make_controller(drafting)

    result = await controller.run(fact_builder.build(loan_deal, "promissory_note"))

    assert result.state == S.ACCEPTED
    assert result.attempts == 2
    assert result.trace == [
        S.DRAFTING, S.VERIFYING, S.RETRY,
        S.DRAFTING, S.VERIFYING, S.REVIEWING, S.MERGING, S.ACCEPTED,
    ]
    assert [d.field for d in result.directives] == ["defaultProvisions"]

    first, second = drafting.contracts
    assert first.directives == ()
    assert [d.field for d in second.directives] == ["defaultProvisions"]
    assert FEEDBACK_HEADER in second.user_prompt
    assert FEEDBACK_HEADER not in first.user_prompt


async def test_merged_correction_resolves_review_critical(make_controller, fact_builder, loan_deal):
    facts = fact_builder.build(loan_deal, "guaranty")
    corrected = LOAN_TEXT + " The guaranty extends to all enforcement costs."
    review = ScriptedReview(
        [
            review_answer(
                issues_found=[
                    {"severity": "critical", "section": "guarantyScope",
                     "description": "Scope omits enforcement costs"}
                ],
                corrected_sections={"guarantyScope": corrected},
            )
        ]
    )
    controller = make_controller(ScriptedDrafting([drafts_complete()]), review)

    result = await controller.run(facts)

    assert result.accepted
    assert result.attempts == 1
    assert result.review_status == "completed"
    assert result.bundle.get("guarantyScope") == corrected
    assert result.bundle.get("waiverOfDefenses") == LOAN_TEXT
    [finding] = [i for i in result.issues if i.source == "review"]
    assert finding.resolved
    assert result.open_issues == []


async def test_review_critical_without_correction_rejects(make_controller, fact_builder, loan_deal):
    review = ScriptedReview(
        [
            review_answer(
                issues_found=[
                    {"severity": "critical", "section": "defaultProvisions",
                     "description": "No cure period"}
                ]
            )
        ]
    )
    drafting = ScriptedDrafting([drafts_complete()])
    controller = make_controller(drafting, review)

    result = await controller.run(fact_builder.build(loan_deal, "promissory_note"))

    assert result.state == S.REJECTED
    assert result.attempts == 1
    assert len(drafting.contracts) == 1
    assert result.trace[-1] == S.REJECTED
    assert result.directives == [
        CorrectionDirective(field="defaultProvisions", reason="No cure period")
    ]


async def test_failed_required_verdict_rejects_even_after_merge(make_controller, fact_builder, loan_deal):
    corrected = LOAN_TEXT + " Default occurs on any missed payment."
    review = ScriptedReview(
        [
            review_answer(
                corrected_sections={"defaultProvisions": corrected},
                checklist_results=[
                    {"provision": DEFAULT_PROVISIONS, "passed": False,
                     "note": "No cure period"}
                ],
            )
        ]
    )
    drafting = ScriptedDrafting([drafts_complete()])
    controller = make_controller(drafting, review)

    result = await controller.run(fact_builder.build(loan_deal, "promissory_note"))

    assert result.state == S.REJECTED
    assert result.attempts == 1
    assert len(drafting.contracts) == 1
    assert result.bundle.get("defaultProvisions") == corrected
    [issue] = result.open_issues
    assert issue.source == "review"
    assert issue.field == f"{CHECKLIST_FIELD_PREFIX}{DEFAULT_PROVISIONS}"
    assert "No cure period" in issue.message


async def test_missing_required_verdicts_reject(make_controller, fact_builder, loan_deal):
    review = ScriptedReview(approve_unlisted=False)
    controller = make_controller(ScriptedDrafting([drafts_complete()]), review)

    result = await controller.run(fact_builder.build(loan_deal, "promissory_note"))

    assert result.state == S.REJECTED
    required = [v.provision for v in result.verdicts if v.category == "required"]
    assert [i.field for i in result.open_issues] == [
        f"{CHECKLIST_FIELD_PREFIX}{p}" for p in required
    ]
    # Standard and regulatory items only warn
    warned = [i for i in result.issues if i.severity == "warning" and i.source == "review"]
    assert len(warned) == len(result.verdicts) - len(required)


async def test_failed_standard_verdict_only_warns(make_controller, fact_builder, loan_deal):
    usury = "Usury savings clause (rate shall not exceed maximum permitted by law)"
    review = ScriptedReview(
        [review_answer(checklist_results=[{"provision": usury, "passed": False}])]
    )
    controller = make_controller(ScriptedDrafting([drafts_complete()]), review)

    result = await controller.run(fact_builder.build(loan_deal, "promissory_note"))

    assert result.accepted
    [issue] = [i for i in result.issues if i.field.startswith(CHECKLIST_FIELD_PREFIX)]
    assert issue.severity == "warning"


async def test_review_warning_does_not_block(make_controller, fact_builder, loan_deal):
    review = ScriptedReview(
        [
            review_answer(
                issues_found=[
                    {"severity": "warning", "section": "defaultProvisions",
                     "description": "Consider a longer cure period"}
                ]
            )
        ]
    )
    controller = make_controller(ScriptedDrafting([drafts_complete()]), review)

    result = await controller.run(fact_builder.build(loan_deal, "promissory_note"))

    assert result.accepted


async def test_discarded_correction_rejects(make_controller, fact_builder, loan_deal):
    review = ScriptedReview(
        [
            review_answer(
                issues_found=[
                    {"severity": "critical", "section": "defaultProvisions",
                     "description": "Default triggers incomplete"}
                ],
                corrected_sections={"defaultProvisions": "The Borrower defaults on nonpayment."},
            )
        ]
    )
    controller = make_controller(ScriptedDrafting([drafts_complete()]), review)

    result = await controller.run(fact_builder.build(loan_deal, "promissory_note"))

    assert result.state == S.REJECTED
    assert result.bundle.get("defaultProvisions") == LOAN_TEXT
    merge = [i for i in result.issues if i.source == "merge"]
    assert [(i.field, i.severity) for i in merge] == [("defaultProvisions", "critical")]
    assert not any(i.resolved for i in result.issues)


async def test_drafting_failures_fall_back_on_final_attempt(make_controller, fact_builder, loan_deal):
    drafting = ScriptedDrafting([drafting_error()])
    review = ScriptedReview()
    controller = make_controller(drafting, review)

    result = await controller.run(fact_builder.build(loan_deal, "promissory_note"))

    assert result.accepted
    assert result.used_fallback
    assert result.attempts == 3
    assert len(drafting.contracts) == 3
    assert result.trace == [
        S.DRAFTING, S.RETRY, S.DRAFTING, S.RETRY,
        S.DRAFTING, S.VERIFYING, S.REVIEWING, S.MERGING, S.ACCEPTED,
    ]
    text = result.bundle.text()
    assert BORROWER in text
    assert PRINCIPAL in text
    drafting_issues = [(i.attempt, i.severity) for i in result.issues if i.source == "drafting"]
    assert drafting_issues == [(1, "critical"), (2, "critical"), (3, "warning")]
    assert len(review.requests) == 1


async def test_review_system_error_rejects(make_controller, fact_builder, loan_deal):
    review = ScriptedReview([drafting_error("review service down")])
    controller = make_controller(ScriptedDrafting([drafts_complete()]), review)

    result = await controller.run(fact_builder.build(loan_deal, "promissory_note"))

    assert result.state == S.REJECTED
    assert result.review_status == "system_error"
    assert result.verdicts == []
    assert result.trace == [S.DRAFTING, S.VERIFYING, S.REVIEWING, S.REJECTED]
    [system] = result.open_issues
    assert system.field == "system"


async def test_persistent_shape_failure_stops_at_budget(make_controller, fact_builder, loan_deal):
    drafting = ScriptedDrafting([drafts_without("defaultProvisions")])
    review = ScriptedReview()
    controller = make_controller(drafting, review)

    result = await controller.run(fact_builder.build(loan_deal, "promissory_note"))

    assert result.state == S.REJECTED
    assert result.attempts == 3
    assert len(drafting.contracts) == 3
    assert review.requests == []
    assert result.trace.count(S.DRAFTING) == 3
    assert result.trace[-1] == S.REJECTED
    # The same directive is carried forward once
    assert result.directives == [result.directives[0]]


async def test_single_attempt_budget(make_controller, fact_builder, loan_deal):
    drafting = ScriptedDrafting([drafts_without("defaultProvisions"), drafts_complete()])
    controller = make_controller(drafting, max_attempts=1)

    result = await controller.run(fact_builder.build(loan_deal, "promissory_note"))

    assert result.state == S.REJECTED
    assert result.trace == [S.DRAFTING, S.VERIFYING, S.REJECTED]


def test_attempt_budget_must_be_positive(make_controller):
    with pytest.raises(ValueError):
        make_controller(ScriptedDrafting([drafts_complete()]), max_attempts=0)


async def test_unsupported_type_uses_fallback_without_drafting(make_controller, fact_builder, loan_deal):
    drafting = ScriptedDrafting([drafts_complete()])
    review = ScriptedReview()
    controller = make_controller(drafting, review)

    result = await controller.run(fact_builder.build(loan_deal, "term_sheet"))

    assert result.accepted
    assert result.used_fallback
    assert result.review_status == "not_run"
    assert result.trace == [S.DRAFTING, S.VERIFYING, S.ACCEPTED]
    assert drafting.contracts == []
    assert review.requests == []
    assert result.bundle.keys == ["generalProvisions", "governingLaw"]


class BlockingDrafting:
    def __init__(self):
        self.started = asyncio.Event()
        self.release = asyncio.Event()
        self.finished = False

    async def draft(self, contract):
        self.started.set()
        await self.release.wait()
        self.finished = True
        return Ok(complete_bundle(contract.prose_schema))


async def test_cancellation_propagates(make_controller, fact_builder, loan_deal):
    drafting = BlockingDrafting()
    controller = make_controller(drafting)
    task = asyncio.create_task(controller.run(fact_builder.build(loan_deal, "promissory_note")))

    await drafting.started.wait()
    task.cancel()
    with pytest.raises(asyncio.CancelledError):
        await task

    # The in-flight call is shielded and still completes
    drafting.release.set()
    for _ in range(5):
        await asyncio.sleep(0)
    assert drafting.finished


async def test_drafting_error_is_reported_and_retried(make_controller, fact_builder, loan_deal):
    drafting = ScriptedDrafting([drafting_error("quota exceeded"), drafts_complete()])
    controller = make_controller(drafting)

    result = await controller.run(fact_builder.build(loan_deal, "promissory_note"))

    assert result.accepted
    assert result.attempts == 2
    [issue] = [i for i in result.issues if i.source == "drafting"]
    assert "quota exceeded" in issue.message
    assert not result.used_fallback
