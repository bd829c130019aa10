"""Question CSV parser: validation and normalization of import rows."""

import asyncio
import logging
import re
from os import PathLike
from pathlib import Path

from store_audit.core.config import settings
from store_audit.schemas.question_csv import ImportAnswerType, ParsedQuestion, ParseResult
from store_audit.services.question_csv.tokenizer import split_fields, split_rows

logger = logging.getLogger(__name__)

EXPECTED_HEADERS = [
    "department",
    "risk category",
    "question",
    "criteria",
    "answer type",
    "points yes",
    "points partial",
    "points no",
]

DEFAULT_RISK_CATEGORY = "General"
VALID_ANSWER_TYPES: tuple[ImportAnswerType, ...] = ("yes_no", "yes_no_partial")

EMPTY_FILE_ERROR = "CSV file is empty."
HEADERS_ONLY_WARNING = "CSV contains only headers, no data rows."
READ_FAILED_ERROR = "Failed to read file."
BOM = "\ufeff"

_ANSWER_TYPE_SEPARATORS = re.compile(r"[\s/]+")
_LEADING_INT = re.compile(r"[+-]?[0-9]+")


def trim(value: str) -> str:
    """Strip surrounding whitespace and byte-order marks."""
    return value.strip().strip(BOM).strip()


def normalize_answer_type(value: str) -> ImportAnswerType | None:
    """Map spellings such as ``Yes/No`` or ``yes no partial`` to an answer type."""
    key = _ANSWER_TYPE_SEPARATORS.sub("_", value.lower().strip())
    if key in VALID_ANSWER_TYPES:
        return key  # type: ignore[return-value]
    return None


def parse_points(raw: str, default: int) -> int | None:
    """
    Parse a points cell.

    A blank cell takes the default. Otherwise the leading integer is used
    (``"5 pts"`` reads as 5); anything without one, or a negative value, is
    invalid.

    Returns:
        Points value, or None if invalid
    """
    if not raw:
        return default
    match = _LEADING_INT.match(raw)
    if not match:
        return None
    try:
        value = int(match.group())
    except ValueError:
        # more digits than int() will convert
        return None
    if value < 0:
        return None
    return value


class QuestionCsvParser:
    """Parse question CSV text into validated import rows."""

    def __init__(
        self,
        default_points_yes: int | None = None,
        default_points_partial: int | None = None,
        default_points_no: int | None = None,
    ):
        self.default_points_yes = (
            settings.DEFAULT_POINTS_YES if default_points_yes is None else default_points_yes
        )
        self.default_points_partial = (
            settings.DEFAULT_POINTS_PARTIAL
            if default_points_partial is None
            else default_points_partial
        )
        self.default_points_no = (
            settings.DEFAULT_POINTS_NO if default_points_no is None else default_points_no
        )

    def parse(self, csv_text: str) -> ParseResult:
        """
        Parse question CSV text.

        Row numbers in messages count the header as row 1.

        Args:
            csv_text: Raw file text

        Returns:
            ParseResult with questions, errors, and warnings
        """
        result = ParseResult()

        rows = split_rows(trim(csv_text))
        if not rows:
            result.errors.append(EMPTY_FILE_ERROR)
            return result

        header_fields = [trim(h.lower()) for h in split_fields(rows[0])]
        missing = [h for h in EXPECTED_HEADERS if h not in header_fields]
        if missing:
            result.errors.append(f"Missing required columns: {', '.join(missing)}")
            return result

        col_index = {h: header_fields.index(h) for h in EXPECTED_HEADERS}

        if len(rows) == 1:
            result.warnings.append(HEADERS_ONLY_WARNING)
            return result

        seen: set[str] = set()

        for i, row in enumerate(rows[1:], start=1):
            if not trim(row):
                continue

            row_num = i + 1
            question, error = self._parse_row(split_fields(row), col_index, row_num)
            if error is not None:
                result.errors.append(error)
                continue

            dupe_key = f"{question.department_name.lower()}::{question.text.lower()}"
            if dupe_key in seen:
                result.warnings.append(
                    f'Row {row_num}: Duplicate question "{question.text}" '
                    f'in "{question.department_name}".'
                )
            seen.add(dupe_key)
            result.questions.append(question)

        logger.info(
            "question_csv_parsed",
            extra={
                "questions": len(result.questions),
                "errors": len(result.errors),
                "warnings": len(result.warnings),
            },
        )
        return result

    def parse_bytes(self, content: bytes, encoding: str | None = None) -> ParseResult:
        """
        Decode file content and parse it.

        A leading byte-order mark is ignored. Content that cannot be decoded is
        reported as a structural error.
        """
        encoding = encoding or settings.IMPORT_FILE_ENCODING
        try:
            text = content.decode(encoding)
        except (UnicodeDecodeError, LookupError) as e:
            logger.warning("question_csv_decode_failed", extra={"encoding": encoding, "error": str(e)})
            return ParseResult(errors=[READ_FAILED_ERROR])
        return self.parse(text.lstrip(BOM))

    def _parse_row(
        self,
        fields: list[str],
        col_index: dict[str, int],
        row_num: int,
    ) -> tuple[ParsedQuestion | None, str | None]:
        """Validate one data row. Returns (question, None) or (None, error)."""

        def cell(header: str) -> str:
            idx = col_index[header]
            return trim(fields[idx]) if idx < len(fields) else ""

        dept_name = cell("department")
        risk_category = cell("risk category")
        text = cell("question")
        criteria = cell("criteria")
        answer_type_raw = cell("answer type")

        if not dept_name:
            return None, f"Row {row_num}: Missing department name."
        if not text:
            return None, f"Row {row_num}: Missing question text."

        answer_type = normalize_answer_type(answer_type_raw or "yes_no")
        if answer_type is None:
            return None, (
                f'Row {row_num}: Invalid answer type "{answer_type_raw}". '
                "Use yes_no or yes_no_partial."
            )

        points: dict[str, int] = {}
        for header, label, default in (
            ("points yes", "Points Yes", self.default_points_yes),
            ("points partial", "Points Partial", self.default_points_partial),
            ("points no", "Points No", self.default_points_no),
        ):
            raw = cell(header)
            value = parse_points(raw, default)
            if value is None:
                return None, f'Row {row_num}: {label} must be a non-negative integer (got "{raw}").'
            points[header] = value

        return (
            ParsedQuestion(
                department_name=dept_name,
                risk_category=risk_category or DEFAULT_RISK_CATEGORY,
                text=text,
                criteria=criteria,
                answer_type=answer_type,
                points_yes=points["points yes"],
                points_partial=points["points partial"] if answer_type == "yes_no_partial" else 0,
                points_no=points["points no"],
            ),
            None,
        )


def parse_questions_csv(csv_text: str) -> ParseResult:
    """Parse question CSV text with the configured defaults."""
    return QuestionCsvParser().parse(csv_text)


def parse_questions_file(content: bytes, encoding: str | None = None) -> ParseResult:
    """Decode and parse an uploaded question CSV file."""
    return QuestionCsvParser().parse_bytes(content, encoding)


async def read_questions_file(path: str | PathLike[str], encoding: str | None = None) -> ParseResult:
    """Read a question CSV file from disk without blocking the event loop."""
    try:
        content = await asyncio.to_thread(Path(path).read_bytes)
    except OSError as e:
        logger.warning("question_csv_read_failed", extra={"path": str(path), "error": str(e)})
        return ParseResult(errors=[READ_FAILED_ERROR])
    return parse_questions_file(content, encoding)
