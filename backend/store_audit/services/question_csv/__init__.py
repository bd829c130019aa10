"""Question CSV interchange: tokenize, parse, import, and export."""

from store_audit.services.question_csv.download import CsvDownload
from store_audit.services.question_csv.exporter import (
    AuditRowSource,
    build_questions_template,
    escape_csv,
    export_questions_csv,
    export_sessions_csv,
    export_single_audit_csv,
)
from store_audit.services.question_csv.import_session import QuestionImportSession
from store_audit.services.question_csv.parser import (
    QuestionCsvParser,
    parse_questions_csv,
    parse_questions_file,
    read_questions_file,
)
from store_audit.services.question_csv.reconciler import ImportReconciler, import_questions
from store_audit.services.question_csv.tokenizer import split_fields, split_rows

__all__ = [
    "AuditRowSource",
    "CsvDownload",
    "ImportReconciler",
    "QuestionCsvParser",
    "QuestionImportSession",
    "build_questions_template",
    "escape_csv",
    "export_questions_csv",
    "export_sessions_csv",
    "export_single_audit_csv",
    "import_questions",
    "parse_questions_csv",
    "parse_questions_file",
    "read_questions_file",
    "split_fields",
    "split_rows",
]
