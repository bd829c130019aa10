"""Question import workflow: load a file, review it, then import it."""

import inspect
import logging
from collections.abc import Iterable
from enum import Enum

from store_audit.core.config import settings
from store_audit.core.errors import ImportStateError
from store_audit.schemas.audit import Department
from store_audit.schemas.question_csv import (
    ImportOutcome,
    ImportProgress,
    ImportSummary,
    ParsedQuestion,
    ParseResult,
)
from store_audit.services.question_csv.parser import QuestionCsvParser
from store_audit.services.question_csv.reconciler import (
    CreateDepartment,
    CreateQuestion,
    ImportReconciler,
    ProgressCallback,
)

logger = logging.getLogger(__name__)


class ImportStep(str, Enum):
    """Import workflow step."""

    IDLE = "idle"
    PARSED = "parsed"
    IMPORTING = "importing"
    DONE = "done"


def apply_batch_cap(result: ParseResult, max_questions: int) -> ParseResult:
    """Drop questions beyond the cap, recording a warning when any are dropped."""
    if len(result.questions) > max_questions:
        result.warnings.append(
            f"CSV contains {len(result.questions)} questions. "
            f"Only the first {max_questions} will be imported."
        )
        result.questions = result.questions[:max_questions]
    return result


def summarize(outcome: ImportOutcome) -> ImportSummary:
    """Build the user-facing summary for an import run."""
    if outcome.failed > 0:
        message = (
            f"Imported {outcome.imported} of {outcome.total} questions. "
            f"{outcome.failed} failed."
        )
    else:
        message = f"Imported {outcome.imported} questions."
    return ImportSummary(outcome=outcome, message=message, success=outcome.failed == 0)


class QuestionImportSession:
    """State of one question import, from file selection to completion.

    The parse result lives only as long as the session; ``reset`` discards it.
    """

    def __init__(
        self,
        parser: QuestionCsvParser | None = None,
        max_questions: int | None = None,
    ):
        self.parser = parser or QuestionCsvParser()
        self.max_questions = max_questions or settings.IMPORT_MAX_QUESTIONS
        self.step = ImportStep.IDLE
        self.result: ParseResult | None = None
        self.progress: ImportProgress | None = None
        self.summary: ImportSummary | None = None

    def load_text(self, csv_text: str) -> ParseResult:
        """Parse file text and move to review."""
        return self._loaded(self.parser.parse(csv_text))

    def load_bytes(self, content: bytes, encoding: str | None = None) -> ParseResult:
        """Decode and parse file content and move to review."""
        return self._loaded(self.parser.parse_bytes(content, encoding))

    def _loaded(self, result: ParseResult) -> ParseResult:
        self.result = apply_batch_cap(result, self.max_questions)
        self.progress = None
        self.summary = None
        self.step = ImportStep.PARSED
        return self.result

    @property
    def questions(self) -> list[ParsedQuestion]:
        return self.result.questions if self.result else []

    @property
    def can_import(self) -> bool:
        """Import is allowed only for an error-free, non-empty parse."""
        return (
            self.step == ImportStep.PARSED
            and self.result is not None
            and len(self.result.questions) > 0
            and not self.result.errors
        )

    def grouped(self) -> dict[str, list[ParsedQuestion]]:
        """Questions grouped by department name, in first-seen order."""
        groups: dict[str, list[ParsedQuestion]] = {}
        for question in self.questions:
            groups.setdefault(question.department_name, []).append(question)
        return groups

    async def run(
        self,
        existing_departments: Iterable[Department],
        create_department: CreateDepartment,
        create_question: CreateQuestion,
        on_progress: ProgressCallback | None = None,
    ) -> ImportSummary:
        """
        Import the reviewed questions.

        Raises:
            ImportStateError: If nothing importable has been loaded
        """
        if not self.can_import:
            raise ImportStateError(
                f"Cannot import from step '{self.step.value}'",
                details={
                    "questions": len(self.questions),
                    "errors": len(self.result.errors) if self.result else 0,
                },
            )

        questions = self.questions
        self.step = ImportStep.IMPORTING
        self.progress = ImportProgress(completed=0, total=len(questions))

        async def track(progress: ImportProgress) -> None:
            self.progress = progress
            if on_progress is not None:
                result = on_progress(progress)
                if inspect.isawaitable(result):
                    await result

        reconciler = ImportReconciler(create_department, create_question)
        outcome = await reconciler.reconcile(questions, existing_departments, track)

        self.summary = summarize(outcome)
        self.step = ImportStep.DONE
        if self.summary.success:
            logger.info("question_import_completed", extra={"imported": outcome.imported})
        else:
            logger.warning(
                "question_import_partial",
                extra={"imported": outcome.imported, "failed": outcome.failed},
            )
        return self.summary

    def reset(self) -> None:
        """Discard the loaded file and return to idle."""
        self.step = ImportStep.IDLE
        self.result = None
        self.progress = None
        self.summary = None
