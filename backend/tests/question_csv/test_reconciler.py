"""Tests for reconciling imported rows with the department catalog."""

from unittest.mock import AsyncMock

import pytest

from store_audit.schemas.question_csv import ImportProgress, ParsedQuestion
from store_audit.services.question_csv.reconciler import ImportReconciler, import_questions
from tests.helpers.factories import FakeStore


def row(department: str, text: str, **kwargs) -> ParsedQuestion:
    return ParsedQuestion(
        department_name=department,
        risk_category=kwargs.pop("risk_category", "Safety"),
        text=text,
        criteria=kwargs.pop("criteria", ""),
        answer_type=kwargs.pop("answer_type", "yes_no"),
        points_yes=kwargs.pop("points_yes", 5),
        points_partial=kwargs.pop("points_partial", 0),
        points_no=kwargs.pop("points_no", 0),
    )


@pytest.mark.asyncio
async def test_existing_department_matched_case_insensitively(store, departments):
    outcome = await import_questions(
        [row("  bakery ", "Q1"), row("DELI", "Q2")],
        departments,
        store.create_department,
        store.create_question,
    )

    assert outcome.imported == 2
    assert outcome.failed == 0
    assert store.department_calls == []
    assert [q.department_id for q in store.questions] == ["dept-bakery", "dept-deli"]


@pytest.mark.asyncio
async def test_new_department_created_once_per_run(store, departments):
    outcome = await import_questions(
        [row("Produce", "Q1"), row("produce", "Q2"), row(" PRODUCE", "Q3")],
        departments,
        store.create_department,
        store.create_question,
    )

    assert outcome.imported == 3
    assert store.department_calls == [("Produce", "Building2")]
    assert {q.department_id for q in store.questions} == {"new-1"}


@pytest.mark.asyncio
async def test_question_fields_passed_through(store, departments):
    await import_questions(
        [
            row(
                "Bakery",
                "Are proofers clean?",
                risk_category="Hygiene",
                criteria="Wipe down daily",
                answer_type="yes_no_partial",
                points_yes=8,
                points_partial=4,
                points_no=1,
            )
        ],
        departments,
        store.create_department,
        store.create_question,
    )

    created = store.questions[0]
    assert created.model_dump() == {
        "department_id": "dept-bakery",
        "risk_category": "Hygiene",
        "text": "Are proofers clean?",
        "criteria": "Wipe down daily",
        "answer_type": "yes_no_partial",
        "points_yes": 8,
        "points_partial": 4,
        "points_no": 1,
    }


@pytest.mark.asyncio
async def test_rows_processed_sequentially_in_order(store, departments):
    await import_questions(
        [row("Produce", "Q1"), row("Bakery", "Q2"), row("Produce", "Q3")],
        departments,
        store.create_department,
        store.create_question,
    )

    assert store.events == [
        "department:Produce",
        "question:Q1",
        "question:Q2",
        "question:Q3",
    ]


@pytest.mark.asyncio
async def test_failed_question_counted_and_batch_continues(departments):
    store = FakeStore(fail_questions={"Q2"})
    progress: list[ImportProgress] = []

    outcome = await import_questions(
        [row("Bakery", "Q1"), row("Bakery", "Q2"), row("Bakery", "Q3")],
        departments,
        store.create_department,
        store.create_question,
        progress.append,
    )

    assert (outcome.imported, outcome.failed, outcome.total) == (2, 1, 3)
    assert [q.text for q in store.questions] == ["Q1", "Q3"]
    assert [(p.completed, p.total) for p in progress] == [(1, 3), (2, 3), (3, 3)]


@pytest.mark.asyncio
async def test_failed_department_creation_fails_row_and_is_retried_later(departments):
    store = FakeStore(fail_departments={"Produce"})

    outcome = await import_questions(
        [row("Produce", "Q1"), row("Produce", "Q2"), row("Bakery", "Q3")],
        departments,
        store.create_department,
        store.create_question,
    )

    assert (outcome.imported, outcome.failed) == (1, 2)
    # Nothing was recorded for Produce, so the second row tries again
    assert store.department_calls == [("Produce", "Building2"), ("Produce", "Building2")]


@pytest.mark.asyncio
async def test_progress_called_once_per_row_even_when_all_fail(departments):
    create_question = AsyncMock(side_effect=RuntimeError("store unavailable"))
    on_progress = AsyncMock()

    outcome = await import_questions(
        [row("Bakery", "Q1"), row("Deli", "Q2")],
        departments,
        AsyncMock(return_value="unused"),
        create_question,
        on_progress,
    )

    assert outcome.imported == 0
    assert outcome.failed == 2
    assert on_progress.await_count == 2
    assert on_progress.await_args_list[-1].args[0] == ImportProgress(completed=2, total=2)


@pytest.mark.asyncio
async def test_department_list_not_mutated(store, departments):
    before = [d.model_copy(deep=True) for d in departments]

    await import_questions(
        [row("Produce", "Q1"), row("Bakery", "Q2")],
        departments,
        store.create_department,
        store.create_question,
    )

    assert departments == before


@pytest.mark.asyncio
async def test_custom_department_icon(store):
    reconciler = ImportReconciler(store.create_department, store.create_question, department_icon="Fish")
    await reconciler.reconcile([row("Seafood", "Q1")], [])
    assert store.department_calls == [("Seafood", "Fish")]


@pytest.mark.asyncio
async def test_empty_batch(store, departments):
    progress: list[ImportProgress] = []
    outcome = await import_questions([], departments, store.create_department, store.create_question, progress.append)
    assert (outcome.imported, outcome.failed, outcome.total) == (0, 0, 0)
    assert progress == []


@pytest.mark.asyncio
async def test_failing_progress_callback_does_not_stop_import(store, departments):
    on_progress = AsyncMock(side_effect=RuntimeError("listener gone"))

    outcome = await import_questions(
        [row("Bakery", "Q1"), row("Produce", "Q2")],
        departments,
        store.create_department,
        store.create_question,
        on_progress,
    )

    assert (outcome.imported, outcome.failed) == (2, 0)
    assert [q.text for q in store.questions] == ["Q1", "Q2"]
    assert on_progress.await_count == 2
