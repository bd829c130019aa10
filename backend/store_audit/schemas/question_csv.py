"""Pydantic schemas for question CSV import."""

from typing import Literal

from pydantic import BaseModel, Field

# Answer types accepted in an import file (the catalog also knows yes_no_na)
ImportAnswerType = Literal["yes_no", "yes_no_partial"]


class ParsedQuestion(BaseModel):
    """A validated question row read from an import file."""

    department_name: str
    risk_category: str
    text: str
    criteria: str = ""
    answer_type: ImportAnswerType = "yes_no"
    points_yes: int = Field(..., ge=0)
    points_partial: int = Field(..., ge=0)
    points_no: int = Field(..., ge=0)


class ParseResult(BaseModel):
    """Outcome of parsing an import file.

    ``errors`` are row-scoped (the row is left out of ``questions``) or
    structural (nothing is parsed). ``warnings`` never drop a row.
    """

    questions: list[ParsedQuestion] = Field(default_factory=list)
    errors: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)


class NewQuestion(BaseModel):
    """Fields handed to the store when creating a question."""

    department_id: str
    risk_category: str
    text: str
    criteria: str
    answer_type: ImportAnswerType
    points_yes: int
    points_partial: int
    points_no: int


class ImportProgress(BaseModel):
    """Progress after a row has been processed."""

    completed: int
    total: int


class ImportOutcome(BaseModel):
    """Aggregate counts for one import run."""

    imported: int = 0
    failed: int = 0
    total: int = 0


class ImportSummary(BaseModel):
    """Import outcome with the message shown to the user."""

    outcome: ImportOutcome
    message: str
    success: bool
