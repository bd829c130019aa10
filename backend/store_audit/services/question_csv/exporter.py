"""CSV exports for the question catalog and recorded audits."""

import logging
import re
from collections.abc import Iterable, Sequence
from datetime import datetime
from enum import Enum

from store_audit.schemas.audit import AuditAnswer, AuditSession, Department
from store_audit.services.question_csv.download import CsvDownload

logger = logging.getLogger(__name__)

Cell = str | int | float | bool
ExportRow = list[Cell]

QUESTIONS_HEADER: ExportRow = [
    "Department",
    "Risk Category",
    "Question",
    "Criteria",
    "Answer Type",
    "Points Yes",
    "Points Partial",
    "Points No",
]
SESSIONS_HEADER: ExportRow = [
    "Date",
    "Department",
    "Auditor",
    "Score %",
    "Points Earned",
    "Max Points",
    "Questions Answered",
]
SINGLE_AUDIT_HEADER: ExportRow = [
    "Category",
    "Question",
    "Answer",
    "Points Earned",
    "Points Possible",
]

QUESTIONS_FILENAME = "questions-export.csv"
SESSIONS_FILENAME = "audit-history.csv"
TEMPLATE_FILENAME = "questions-template.csv"

SKIPPED = "skipped"
UNKNOWN_CATEGORY = "Unknown"
UNKNOWN_QUESTION = "Unknown question"

_NEEDS_QUOTING = (",", '"', "\n", "\r")
_WHITESPACE_RUN = re.compile(r"\s+")


class AuditRowSource(str, Enum):
    """Where single-audit rows come from."""

    SNAPSHOT = "snapshot"  # question fields stored on the answers
    LIVE = "live"  # current department questions joined to answers
    MINIMAL = "minimal"  # answers only, keyed by question id


def format_cell(value: Cell) -> str:
    """Render a cell value as text (``true``/``false``, integral floats without ``.0``)."""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def escape_csv(value: Cell) -> str:
    """Quote a cell if it contains a comma, quote, or line break."""
    text = format_cell(value)
    if any(ch in text for ch in _NEEDS_QUOTING):
        return '"' + text.replace('"', '""') + '"'
    return text


def rows_to_csv(rows: Iterable[Sequence[Cell]]) -> str:
    """Serialize rows to CSV text (``\\n`` between rows, no trailing newline)."""
    return "\n".join(",".join(escape_csv(cell) for cell in row) for row in rows)


def format_us_date(raw: str) -> str:
    """Format a stored date as MM/DD/YYYY, or return it unchanged if it does not parse."""
    try:
        parsed = datetime.fromisoformat(raw.strip())
    except (ValueError, AttributeError):
        return raw
    return parsed.strftime("%m/%d/%Y")


def slugify(name: str) -> str:
    """Lower-case a name and replace whitespace runs with single hyphens."""
    return _WHITESPACE_RUN.sub("-", name.lower())


def pad_row(row: Sequence[Cell], width: int) -> ExportRow:
    return list(row) + [""] * (width - len(row))


def _download(filename: str, rows: list[ExportRow], export_type: str) -> CsvDownload:
    download = CsvDownload(filename=filename, content=rows_to_csv(rows))
    logger.info(
        "csv_exported",
        extra={"export_type": export_type, "rows": len(rows), "download_name": filename},
    )
    return download


# ============================================================================
# Question catalog
# ============================================================================


def build_question_rows(departments: Iterable[Department]) -> list[ExportRow]:
    """One row per question, departments in order; empty departments add nothing."""
    rows: list[ExportRow] = [list(QUESTIONS_HEADER)]
    for department in departments:
        for q in department.questions:
            rows.append(
                [
                    department.name,
                    q.risk_category,
                    q.text,
                    q.criteria,
                    q.answer_type,
                    q.points_yes,
                    q.points_partial,
                    q.points_no,
                ]
            )
    return rows


def export_questions_csv(
    departments: Iterable[Department],
    filename: str = QUESTIONS_FILENAME,
) -> CsvDownload:
    """Export the question catalog in the import file layout."""
    return _download(filename, build_question_rows(departments), "questions")


def build_questions_template() -> CsvDownload:
    """Header-only question file for preparing an import."""
    return CsvDownload(filename=TEMPLATE_FILENAME, content=rows_to_csv([QUESTIONS_HEADER]))


# ============================================================================
# Audit history
# ============================================================================


def build_session_rows(
    sessions: Iterable[AuditSession],
    departments: Iterable[Department],
) -> list[ExportRow]:
    names = {d.id: d.name for d in departments}
    rows: list[ExportRow] = [list(SESSIONS_HEADER)]
    for s in sessions:
        rows.append(
            [
                format_us_date(s.date),
                names.get(s.department_id, s.department_id),
                s.auditor_name,
                s.percentage,
                s.total_points,
                s.max_points,
                len(s.answers),
            ]
        )
    return rows


def export_sessions_csv(
    sessions: Iterable[AuditSession],
    departments: Iterable[Department],
    filename: str = SESSIONS_FILENAME,
) -> CsvDownload:
    """Export a list of audits, one row per audit."""
    return _download(filename, build_session_rows(sessions, departments), "sessions")


# ============================================================================
# Single audit
# ============================================================================


def select_row_source(session: AuditSession, department: Department | None) -> AuditRowSource:
    """
    Decide where the rows of a single-audit export come from.

    Snapshots win because questions may have been edited or deleted since the
    audit was recorded. Without them the live department is used, and without
    that only the answers themselves.
    """
    if any(a.question_text for a in session.answers):
        return AuditRowSource.SNAPSHOT
    if department is not None:
        return AuditRowSource.LIVE
    return AuditRowSource.MINIMAL


def _snapshot_rows(session: AuditSession) -> list[ExportRow]:
    rows: list[ExportRow] = []
    for a in session.answers:
        possible = a.question_points_yes if a.question_points_yes is not None else a.points
        rows.append(
            [
                a.question_risk_category or UNKNOWN_CATEGORY,
                a.question_text or UNKNOWN_QUESTION,
                a.value or SKIPPED,
                a.points,
                possible,
            ]
        )
    return rows


def _live_rows(session: AuditSession, department: Department) -> list[ExportRow]:
    answers: dict[str, AuditAnswer] = {a.question_id: a for a in session.answers}
    rows: list[ExportRow] = []
    for q in department.questions:
        ans = answers.get(q.id)
        rows.append(
            [
                q.risk_category,
                q.text,
                (ans.value if ans else None) or SKIPPED,
                ans.points if ans else 0,
                q.points_yes,
            ]
        )
    return rows


def _minimal_rows(session: AuditSession) -> list[ExportRow]:
    return [["", a.question_id, a.value or SKIPPED, a.points, ""] for a in session.answers]


def build_single_audit_rows(
    session: AuditSession,
    department: Department | None = None,
) -> list[ExportRow]:
    """Header, one row per question, a blank row, then the summary block."""
    source = select_row_source(session, department)
    if source == AuditRowSource.SNAPSHOT:
        body = _snapshot_rows(session)
    elif department is not None:
        body = _live_rows(session, department)
    else:
        body = _minimal_rows(session)

    width = len(SINGLE_AUDIT_HEADER)
    department_name = department.name if department else session.department_id

    summary: list[ExportRow] = [
        [],
        ["Summary"],
        ["Department", department_name],
        ["Date", format_us_date(session.date)],
        ["Auditor", session.auditor_name],
        ["Score", f"{format_cell(session.percentage)}%"],
        [
            "Total Points",
            f"{format_cell(session.total_points)} / {format_cell(session.max_points)}",
        ],
    ]
    return (
        [list(SINGLE_AUDIT_HEADER)]
        + body
        + [pad_row(row, width) for row in summary]
    )


def single_audit_filename(session: AuditSession, department: Department | None = None) -> str:
    name = department.name if department else session.department_id
    date_part = format_us_date(session.date).replace("/", "-")
    return f"audit-{slugify(name)}-{date_part}.csv"


def export_single_audit_csv(
    session: AuditSession,
    department: Department | None = None,
) -> CsvDownload:
    """Export one audit's answers with a summary block."""
    rows = build_single_audit_rows(session, department)
    return _download(single_audit_filename(session, department), rows, "single_audit")
