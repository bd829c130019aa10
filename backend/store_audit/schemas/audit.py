"""Pydantic schemas for the audit catalog and recorded audit sessions.

These mirror the records held by the backend store. Field names are snake_case
in Python; the camelCase names used by the store and by JSON backups are
accepted as aliases.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class AnswerType(str, Enum):
    """How a question may be answered."""

    YES_NO = "yes_no"
    YES_NO_PARTIAL = "yes_no_partial"
    YES_NO_NA = "yes_no_na"


class AnswerValue(str, Enum):
    """Recorded answer value."""

    YES = "yes"
    NO = "no"
    PARTIAL = "partial"
    NA = "na"


class StoreRecord(BaseModel):
    """Base for records exchanged with the store (camelCase aliases)."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        use_enum_values=True,
        validate_default=True,
    )


class Question(StoreRecord):
    """Audit question as held in the catalog."""

    id: str
    department_id: str
    risk_category: str
    text: str
    criteria: str = ""
    answer_type: AnswerType = AnswerType.YES_NO
    points_yes: int = Field(default=5, ge=0)
    points_partial: int = Field(default=0, ge=0)
    points_no: int = Field(default=0, ge=0)


class Department(StoreRecord):
    """Department with its ordered questions."""

    id: str
    name: str
    icon: str = "Building2"
    questions: list[Question] = Field(default_factory=list)


class AuditAnswer(StoreRecord):
    """One answer in a recorded audit.

    The ``question_*`` fields are a snapshot of the question taken when the
    audit was recorded. Audits recorded before snapshots existed leave them
    unset.
    """

    question_id: str
    value: AnswerValue | None = None
    points: int | float = 0

    question_text: str | None = None
    question_criteria: str | None = None
    question_risk_category: str | None = None
    question_answer_type: AnswerType | None = None
    question_points_yes: int | float | None = None
    question_points_partial: int | float | None = None
    question_points_no: int | float | None = None


class AuditSession(StoreRecord):
    """A recorded audit of one department."""

    id: str
    company_id: str = ""
    department_id: str
    auditor_id: str = ""
    auditor_name: str
    date: str  # raw string as stored, usually ISO 8601
    answers: list[AuditAnswer] = Field(default_factory=list)
    total_points: int | float = 0
    max_points: int | float = 0
    percentage: int | float = 0
    completed: bool = False


class BackupData(StoreRecord):
    """JSON backup document exported by the application."""

    version: Literal[1] = 1
    exported_at: datetime | None = None
    company: dict[str, Any] | None = None
    users: list[dict[str, Any]] = Field(default_factory=list)
    departments: list[Department] = Field(default_factory=list)
    sessions: list[AuditSession] = Field(default_factory=list)
    invitations: list[dict[str, Any]] = Field(default_factory=list)
