"""Shared fixtures and scripted collaborators. No network is used in tests."""

import datetime
from collections.abc import Callable, Sequence
from typing import Any

import pytest
from kungfu import Error, Ok, Result
from pydantic import BaseModel

from prosegate.checklists.registry import ChecklistRegistry
from prosegate.contracts.deal import BioProgram, Covenant, LoanDeal
from prosegate.contracts.prose import ProseBundle, ProseSchema
from prosegate.contracts.review import ChecklistResultPayload, ReviewResponse
from prosegate.drafting.builder import ContractBuilder, DraftingContract
from prosegate.drafting.schemas import ProseSchemaRegistry
from prosegate.facts.builder import FactContextBuilder
from prosegate.llm.call import LLMError
from prosegate.pipeline.controller import PipelineController
from prosegate.providers.base import ABCAIProvider, Prompt
from prosegate.review.reviewer import ComplianceReviewer, ReviewRequest
from prosegate.verification.verifier import DeterministicVerifier

BORROWER = "Acme Holdings LLC"
GUARANTOR = "Jane Q. Doe"
PRINCIPAL = "$500,000"
RATE = "6.250%"
ADDRESS = "100 Main Street, Sacramento, CA 95814"

# Narrative carrying every mandatory loan fact used by the fixtures
LOAN_TEXT = (
    f"{BORROWER} promises to pay {PRINCIPAL} with interest at {RATE} per annum, "
    f"guaranteed by {GUARANTOR}, secured by the property at {ADDRESS}, "
    "subject to applicable usury limits."
)


@pytest.fixture(scope="session")
def checklists() -> ChecklistRegistry:
    return ChecklistRegistry.load()


@pytest.fixture(scope="session")
def schemas() -> ProseSchemaRegistry:
    return ProseSchemaRegistry.load()


@pytest.fixture
def loan_deal() -> LoanDeal:
    return LoanDeal(
        borrower_name=BORROWER,
        lender_name="First Community Bank",
        guarantor_name=GUARANTOR,
        program_id="commercial_cre",
        program_name="Commercial Real Estate",
        state="CA",
        property_address=ADDRESS,
        principal=500_000,
        interest_rate=0.0625,
        term_months=60,
        amortization_months=300,
        maturity_date=datetime.date(2031, 3, 1),
        document_date=datetime.date(2026, 3, 1),
        covenants=[Covenant(name="Minimum DSCR", threshold=1.25)],
    )


@pytest.fixture
def bio_program() -> BioProgram:
    return BioProgram(
        sponsor_name="Zeta Biotherapeutics, Inc.",
        drug_name="ZV-101",
        drug_class="Antibody-Drug Conjugate",
        indication="HER2-positive breast cancer",
        dar=4.0,
    )


@pytest.fixture
def fact_builder() -> FactContextBuilder:
    return FactContextBuilder()


def complete_bundle(schema: ProseSchema, text: str = LOAN_TEXT) -> ProseBundle:
    """A bundle with every schema key filled with ``text``."""
    fields: dict[str, Any] = {
        f.key: [text] if f.kind == "list" else text for f in schema.fields
    }
    return ProseBundle(doc_type=schema.doc_type, fields=fields)


class FakeProvider(ABCAIProvider[str]):
    """Provider returning scripted results in order."""

    def __init__(self, results: Sequence[Result[Any, str]], model: str = "fake-model"):
        self.results = list(results)
        self.model = model
        self.prompts: list[Prompt] = []

    async def interpret[S: BaseModel](self, prompt: Prompt, schema: type[S]) -> Result[S, str]:
        self.prompts.append(prompt)
        result = self.results.pop(0)
        match result:
            case Ok(value) if isinstance(value, dict):
                return Ok(schema.model_validate(value))
            case _:
                return result


class ScriptedDrafting:
    """Drafting collaborator answering from a script.

    Each step is either a Result or a callable taking the contract.
    The last step repeats once the script is exhausted.
    """

    def __init__(
        self,
        steps: Sequence[
            Result[ProseBundle, LLMError]
            | Callable[[DraftingContract], Result[ProseBundle, LLMError]]
        ],
    ):
        self.steps = list(steps)
        self.contracts: list[DraftingContract] = []

    async def draft(self, contract: DraftingContract) -> Result[ProseBundle, LLMError]:
        self.contracts.append(contract)
        step = self.steps[min(len(self.contracts), len(self.steps)) - 1]
        if isinstance(step, (Ok, Error)):
            return step
        return step(contract)


def drafts_complete(text: str = LOAN_TEXT) -> Callable[[DraftingContract], Result]:
    def step(contract: DraftingContract) -> Result[ProseBundle, LLMError]:
        return Ok(complete_bundle(contract.prose_schema, text))

    return step


def drafting_error(message: str = "drafting service unavailable") -> Result:
    return Error(LLMError(message=message, retryable=False))


class ScriptedReview:
    """Review collaborator answering from a script; the last answer repeats.

    With ``approve_unlisted`` every requested checklist item the scripted
    answer does not mention is reported as passed.
    """

    def __init__(
        self,
        answers: Sequence[Result[ReviewResponse, LLMError]] | None = None,
        approve_unlisted: bool = True,
    ):
        self.answers = list(answers or [Ok(ReviewResponse())])
        self.approve_unlisted = approve_unlisted
        self.requests: list[ReviewRequest] = []

    async def review(self, request: ReviewRequest) -> Result[ReviewResponse, LLMError]:
        self.requests.append(request)
        answer = self.answers[min(len(self.requests), len(self.answers)) - 1]
        match answer:
            case Ok(response) if self.approve_unlisted:
                return Ok(with_passing_verdicts(response, request))
            case _:
                return answer


def with_passing_verdicts(response: ReviewResponse, request: ReviewRequest) -> ReviewResponse:
    listed = {r.provision for r in response.checklist_results}
    passing = [
        ChecklistResultPayload(provision=item, category=category, passed=True)
        for category, item in request.items
        if item not in listed
    ]
    return response.model_copy(
        update={"checklist_results": [*response.checklist_results, *passing]}
    )


@pytest.fixture
def make_controller(checklists, schemas):
    def build(
        drafting: ScriptedDrafting,
        review: ScriptedReview | None = None,
        max_attempts: int = 3,
    ) -> PipelineController:
        return PipelineController(
            contracts=ContractBuilder(schemas, checklists),
            drafting=drafting,
            verifier=DeterministicVerifier(schemas, checklists),
            reviewer=ComplianceReviewer(review or ScriptedReview()),
            checklists=checklists,
            schemas=schemas,
            max_attempts=max_attempts,
        )

    return build
