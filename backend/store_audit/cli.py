"""Command-line entry point for question CSV checks and exports."""

import json
import logging
import sys
from pathlib import Path

import click
from pydantic import ValidationError

from store_audit.core.errors import BackupFormatError
from store_audit.core.logging import setup_logging
from store_audit.schemas.audit import BackupData
from store_audit.services.question_csv import (
    CsvDownload,
    QuestionImportSession,
    build_questions_template,
    export_questions_csv,
    export_sessions_csv,
    export_single_audit_csv,
)

logger = logging.getLogger(__name__)

PREVIEW_PER_DEPARTMENT = 3


def load_backup(path: Path) -> BackupData:
    """
    Load a JSON backup document.

    Raises:
        BackupFormatError: If the file cannot be read or is not a valid backup
    """
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
        return BackupData.model_validate(data)
    except (OSError, json.JSONDecodeError) as e:
        raise BackupFormatError(f"Cannot read backup {path}: {e}")
    except ValidationError as e:
        raise BackupFormatError(
            f"Invalid backup {path}",
            details=[{"loc": list(err["loc"]), "msg": err["msg"]} for err in e.errors()],
        )


def _emit(download: CsvDownload, output: Path | None) -> None:
    if output is None:
        click.echo(download.content)
        return
    target = output / download.filename if output.is_dir() else output
    download.save(target)
    click.echo(f"Wrote {target}", err=True)


def _backup_or_exit(path: Path) -> BackupData:
    try:
        return load_backup(path)
    except BackupFormatError as e:
        logger.error("backup_load_failed", extra={"code": e.code, "details": e.details})
        click.echo(e.message, err=True)
        sys.exit(1)


output_option = click.option(
    "-o",
    "--output",
    type=click.Path(path_type=Path),
    default=None,
    help="Output file or directory (default: stdout)",
)


@click.group()
@click.option("--log-level", default=None, help="Override LOG_LEVEL")
def cli(log_level: str | None):
    """Store audit question CSV tools."""
    setup_logging(log_level)


@cli.command()
@click.argument("csv_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--encoding", default=None, help="File encoding (default: IMPORT_FILE_ENCODING)")
def check(csv_file: Path, encoding: str | None):
    """
    Check a question CSV file before importing it.

    Example:
        store-audit check questions.csv
    """
    session = QuestionImportSession()
    result = session.load_bytes(csv_file.read_bytes(), encoding)
    groups = session.grouped()

    plural = "" if len(groups) == 1 else "s"
    click.echo(f"{len(result.questions)} questions in {len(groups)} department{plural}")
    for name, questions in groups.items():
        click.echo(f"  {name} ({len(questions)})")
        for q in questions[:PREVIEW_PER_DEPARTMENT]:
            click.echo(f"    - {q.text}")
        if len(questions) > PREVIEW_PER_DEPARTMENT:
            click.echo(f"    ...and {len(questions) - PREVIEW_PER_DEPARTMENT} more")

    for error in result.errors:
        click.echo(f"ERROR: {error}", err=True)
    for warning in result.warnings:
        click.echo(f"WARNING: {warning}", err=True)

    if result.errors:
        sys.exit(1)


@cli.command("export-questions")
@click.argument("backup", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@output_option
def export_questions(backup: Path, output: Path | None):
    """Export the question catalog from a backup."""
    data = _backup_or_exit(backup)
    _emit(export_questions_csv(data.departments), output)


@cli.command("export-history")
@click.argument("backup", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--completed-only/--all", default=True, help="Only include completed audits")
@output_option
def export_history(backup: Path, completed_only: bool, output: Path | None):
    """Export the audit history from a backup."""
    data = _backup_or_exit(backup)
    sessions = [s for s in data.sessions if s.completed or not completed_only]
    _emit(export_sessions_csv(sessions, data.departments), output)


@cli.command("export-audit")
@click.argument("backup", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.argument("session_id")
@output_option
def export_audit(backup: Path, session_id: str, output: Path | None):
    """Export one audit from a backup."""
    data = _backup_or_exit(backup)
    session = next((s for s in data.sessions if s.id == session_id), None)
    if session is None:
        click.echo(f"Audit session '{session_id}' not found", err=True)
        sys.exit(1)
    department = next((d for d in data.departments if d.id == session.department_id), None)
    _emit(export_single_audit_csv(session, department), output)


@cli.command()
@output_option
def template(output: Path | None):
    """Write an empty question CSV with the import headers."""
    _emit(build_questions_template(), output)


if __name__ == "__main__":
    cli()
