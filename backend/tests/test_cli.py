"""Tests for the store-audit command line."""

import json

import pytest
from click.testing import CliRunner

from store_audit.cli import cli, load_backup
from store_audit.core.errors import BackupFormatError
from tests.helpers.factories import VALID_HEADER


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture
def backup_file(tmp_path):
    """Backup document in the application's camelCase JSON layout."""
    data = {
        "version": 1,
        "exportedAt": "2024-03-06T09:00:00Z",
        "company": {"name": "Corner Market"},
        "users": [],
        "departments": [
            {
                "id": "d1",
                "name": "Fresh Produce",
                "icon": "Apple",
                "questions": [
                    {
                        "id": "q1",
                        "departmentId": "d1",
                        "riskCategory": "Safety",
                        "text": "Misting system on?",
                        "criteria": "",
                        "answerType": "yes_no",
                        "pointsYes": 5,
                        "pointsPartial": 0,
                        "pointsNo": 0,
                    }
                ],
            }
        ],
        "sessions": [
            {
                "id": "s1",
                "companyId": "c1",
                "departmentId": "d1",
                "auditorId": "u1",
                "auditorName": "Jordan Smith",
                "date": "2024-03-05T14:30:00",
                "answers": [{"questionId": "q1", "value": "yes", "points": 5}],
                "totalPoints": 5,
                "maxPoints": 5,
                "percentage": 100,
                "completed": True,
            },
            {
                "id": "s2",
                "departmentId": "d1",
                "auditorName": "Alex Lee",
                "date": "2024-03-07",
                "answers": [],
                "completed": False,
            },
        ],
        "invitations": [],
    }
    path = tmp_path / "backup.json"
    path.write_text(json.dumps(data), encoding="utf-8")
    return path


class TestCheck:
    """The check command."""

    def test_valid_file(self, runner, tmp_path):
        csv_file = tmp_path / "questions.csv"
        rows = [f"Bakery,Safety,Question {i},,yes_no,,," for i in range(1, 5)]
        csv_file.write_text("\n".join([VALID_HEADER, *rows, "Deli,Safety,Slicer clean?,,yes_no,,,"]))

        result = runner.invoke(cli, ["check", str(csv_file)])

        assert result.exit_code == 0
        assert "5 questions in 2 departments" in result.output
        assert "Bakery (4)" in result.output
        assert "- Question 3" in result.output
        assert "- Question 4" not in result.output
        assert "...and 1 more" in result.output

    def test_errors_exit_nonzero(self, runner, tmp_path):
        csv_file = tmp_path / "questions.csv"
        csv_file.write_text("Department,Question\nBakery,Oven clean?")

        result = runner.invoke(cli, ["check", str(csv_file)])

        assert result.exit_code == 1
        assert "ERROR: Missing required columns:" in result.output

    def test_warnings_do_not_fail(self, runner, tmp_path):
        csv_file = tmp_path / "questions.csv"
        csv_file.write_text(VALID_HEADER + "\nBakery,Safety,Q1,,yes_no,,,\nBakery,Safety,Q1,,yes_no,,,")

        result = runner.invoke(cli, ["check", str(csv_file)])

        assert result.exit_code == 0
        assert 'WARNING: Row 3: Duplicate question "Q1" in "Bakery".' in result.output


class TestExports:
    """Export commands reading a backup."""

    def test_export_questions_to_stdout(self, runner, backup_file):
        result = runner.invoke(cli, ["export-questions", str(backup_file)])

        assert result.exit_code == 0
        assert VALID_HEADER in result.output
        assert "Fresh Produce,Safety,Misting system on?,,yes_no,5,0,0" in result.output

    def test_export_questions_to_directory(self, runner, backup_file, tmp_path):
        out_dir = tmp_path / "exports"
        out_dir.mkdir()

        result = runner.invoke(cli, ["export-questions", str(backup_file), "-o", str(out_dir)])

        assert result.exit_code == 0
        written = out_dir / "questions-export.csv"
        assert written.read_text(encoding="utf-8").startswith(VALID_HEADER)

    def test_export_history_completed_only(self, runner, backup_file, tmp_path):
        out = tmp_path / "history.csv"

        result = runner.invoke(cli, ["export-history", str(backup_file), "-o", str(out)])

        assert result.exit_code == 0
        assert out.read_text(encoding="utf-8").split("\n") == [
            "Date,Department,Auditor,Score %,Points Earned,Max Points,Questions Answered",
            "03/05/2024,Fresh Produce,Jordan Smith,100,5,5,1",
        ]

    def test_export_history_all(self, runner, backup_file, tmp_path):
        out = tmp_path / "history.csv"
        runner.invoke(cli, ["export-history", str(backup_file), "--all", "-o", str(out)])
        assert "03/07/2024,Fresh Produce,Alex Lee,0,0,0,0" in out.read_text(encoding="utf-8")

    def test_export_audit(self, runner, backup_file, tmp_path):
        result = runner.invoke(cli, ["export-audit", str(backup_file), "s1", "-o", str(tmp_path)])

        assert result.exit_code == 0
        content = (tmp_path / "audit-fresh-produce-03-05-2024.csv").read_text(encoding="utf-8")
        assert "Safety,Misting system on?,yes,5,5" in content
        assert content.endswith("Total Points,5 / 5,,,")

    def test_export_audit_unknown_session(self, runner, backup_file):
        result = runner.invoke(cli, ["export-audit", str(backup_file), "nope"])
        assert result.exit_code == 1
        assert "Audit session 'nope' not found" in result.output

    def test_invalid_backup(self, runner, tmp_path):
        bad = tmp_path / "bad.json"
        bad.write_text(json.dumps({"version": 2}))

        result = runner.invoke(cli, ["export-questions", str(bad)])

        assert result.exit_code == 1
        assert "Invalid backup" in result.output


def test_template(runner):
    result = runner.invoke(cli, ["template"])
    assert result.exit_code == 0
    assert VALID_HEADER in result.output


def test_load_backup_unreadable_json(tmp_path):
    path = tmp_path / "backup.json"
    path.write_text("{not json")

    with pytest.raises(BackupFormatError) as exc_info:
        load_backup(path)

    assert exc_info.value.code == "BACKUP_INVALID"
