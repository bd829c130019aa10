"""Reconcile parsed import rows with the live department catalog."""

import inspect
import logging
from collections.abc import Awaitable, Callable, Iterable, Sequence
from typing import Any

from store_audit.core.config import settings
from store_audit.schemas.audit import Department
from store_audit.schemas.question_csv import (
    ImportOutcome,
    ImportProgress,
    NewQuestion,
    ParsedQuestion,
)

logger = logging.getLogger(__name__)

CreateDepartment = Callable[[str, str], Awaitable[str]]
CreateQuestion = Callable[[NewQuestion], Awaitable[Any]]
ProgressCallback = Callable[[ImportProgress], Any]


def department_key(name: str) -> str:
    """Matching key for department names (case-insensitive, trimmed)."""
    return name.lower().strip()


class ImportReconciler:
    """Create imported questions, matching or creating their departments.

    Rows are processed one at a time, so a department named by several rows
    is created once per run. The caller's department list is only read; new
    departments are reported through ``create_department``.
    """

    def __init__(
        self,
        create_department: CreateDepartment,
        create_question: CreateQuestion,
        department_icon: str | None = None,
    ):
        """
        Initialize reconciler.

        Args:
            create_department: Async store call, (name, icon_key) -> department id
            create_question: Async store call taking the new question fields
            department_icon: Icon key for departments created by the import
        """
        self.create_department = create_department
        self.create_question = create_question
        self.department_icon = department_icon or settings.IMPORT_DEFAULT_DEPARTMENT_ICON

    async def reconcile(
        self,
        rows: Sequence[ParsedQuestion],
        existing_departments: Iterable[Department],
        on_progress: ProgressCallback | None = None,
    ) -> ImportOutcome:
        """
        Import rows in order.

        A failing store call fails that row only. ``on_progress`` is called once
        per row, after the row is processed, whether it succeeded or not. A
        callback that raises is logged and does not stop the import.

        Returns:
            Imported and failed counts
        """
        lookup = {department_key(d.name): d.id for d in existing_departments}
        created: dict[str, str] = {}
        outcome = ImportOutcome(total=len(rows))

        for i, row in enumerate(rows):
            try:
                department_id = await self._resolve_department(row.department_name, lookup, created)
                await self.create_question(
                    NewQuestion(
                        department_id=department_id,
                        risk_category=row.risk_category,
                        text=row.text,
                        criteria=row.criteria,
                        answer_type=row.answer_type,
                        points_yes=row.points_yes,
                        points_partial=row.points_partial,
                        points_no=row.points_no,
                    )
                )
                outcome.imported += 1
            except Exception:
                outcome.failed += 1
                logger.warning(
                    "question_import_row_failed",
                    extra={"row_index": i, "department": row.department_name},
                    exc_info=True,
                )

            if on_progress is not None:
                await self._report_progress(on_progress, ImportProgress(completed=i + 1, total=len(rows)))

        logger.info(
            "questions_imported",
            extra={
                "count": outcome.imported,
                "failed": outcome.failed,
                "departments_created": len(created),
            },
        )
        return outcome

    async def _report_progress(self, on_progress: ProgressCallback, progress: ImportProgress) -> None:
        try:
            result = on_progress(progress)
            if inspect.isawaitable(result):
                await result
        except Exception:
            logger.warning(
                "import_progress_callback_failed",
                extra={"completed": progress.completed, "total": progress.total},
                exc_info=True,
            )

    async def _resolve_department(
        self,
        name: str,
        lookup: dict[str, str],
        created: dict[str, str],
    ) -> str:
        key = department_key(name)
        department_id = lookup.get(key) or created.get(key)
        if not department_id:
            department_id = await self.create_department(name, self.department_icon)
            created[key] = department_id
            logger.info("department_created", extra={"department": name})
        return department_id


async def import_questions(
    rows: Sequence[ParsedQuestion],
    existing_departments: Iterable[Department],
    create_department: CreateDepartment,
    create_question: CreateQuestion,
    on_progress: ProgressCallback | None = None,
) -> ImportOutcome:
    """Reconcile parsed rows against the catalog (see ImportReconciler)."""
    reconciler = ImportReconciler(create_department, create_question)
    return await reconciler.reconcile(rows, existing_departments, on_progress)
