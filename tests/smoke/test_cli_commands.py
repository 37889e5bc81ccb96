"""
Smoke Tests for CLI Commands.

These tests verify that CLI commands run without errors and produce output.
They don't validate correctness deeply - just that commands work.

Usage:
    pytest tests/smoke/test_cli_commands.py -v
    pytest tests/smoke/test_cli_commands.py -v -m smoke
"""

import json

import pytest
from typer.testing import CliRunner

from src.cli.main import app

# Mark all tests in this module as smoke tests
pytestmark = pytest.mark.smoke

runner = CliRunner()


@pytest.fixture
def cli(tmp_path):
    """Invoke the CLI against a profile in a temporary directory."""

    def invoke(*args: str, input: str | None = None):
        return runner.invoke(app, ["--data-dir", str(tmp_path), *args], input=input)

    return invoke


class TestCLIHelp:
    """Test that help commands work."""

    def test_main_help(self):
        result = runner.invoke(app, ["--help"])
        assert result.exit_code == 0
        assert "attempt" in result.output
        assert "review" in result.output

    @pytest.mark.parametrize("command", ["attempt", "play", "review", "export", "import", "reset"])
    def test_command_help(self, command):
        result = runner.invoke(app, [command, "--help"])
        assert result.exit_code == 0


class TestReports:
    @pytest.mark.parametrize("command", ["summary", "skills", "path", "weak", "achievements", "due"])
    def test_reports_on_fresh_profile(self, cli, command):
        result = cli(command)
        assert result.exit_code == 0, result.output
        assert result.output.strip()

    def test_summary_shows_player(self, cli):
        result = cli("summary")
        assert "Student" in result.output
        assert "Games played" in result.output


class TestRecording:
    def test_attempt_persists(self, cli, tmp_path):
        result = cli("attempt", "alphabet", "ಅ", "--correct")
        assert result.exit_code == 0, result.output
        assert "new letter" in result.output

        saved = json.loads((tmp_path / "kannada_learning_progress.json").read_text(encoding="utf-8"))
        assert saved["skills"]["alphabet"]["totalAttempts"] == 1

    def test_unknown_category(self, cli):
        result = cli("attempt", "cooking", "x")
        assert result.exit_code == 1
        assert "Unknown category" in result.output

    def test_play_unlocks_achievement(self, cli):
        result = cli("play", "AksharaPopScene", "150", "--attempts", "10", "--correct", "9")
        assert result.exit_code == 0, result.output
        assert "First Steps" in result.output

        assert "1/16" in cli("achievements").output

    def test_master_then_summary(self, cli):
        assert "Letter Learner" in cli("master", "alphabet", "ಅ").output
        assert "already mastered" in cli("master", "alphabet", "ಅ").output

    def test_review_then_due(self, cli):
        result = cli("review", "ಅ", "4")
        assert result.exit_code == 0, result.output
        assert "next review in 4d" in result.output
        assert "Nothing due" in cli("due").output

    def test_timed_attempt_schedules_review(self, cli):
        result = cli("attempt", "alphabet", "ಅ", "--correct", "--time-ms", "1500")
        assert result.exit_code == 0, result.output
        assert "Next review in 5d" in result.output
        assert "Nothing due" in cli("due").output

    def test_review_rejects_bad_quality(self, cli):
        assert cli("review", "ಅ", "7").exit_code != 0

    def test_rename(self, cli):
        assert "Asha" in cli("rename", "<b>Asha</b>").output
        assert "Asha" in cli("summary").output


class TestProfileManagement:
    def test_export_import_round_trip(self, cli, tmp_path):
        cli("attempt", "vocabulary", "ಮನೆ", "--wrong")
        exported = tmp_path / "backup.json"
        assert cli("export", "--output", str(exported)).exit_code == 0

        cli("reset", "--force")
        result = cli("import", str(exported))
        assert result.exit_code == 0, result.output

        data = json.loads(cli("export").output)
        assert data["skills"]["vocabulary"]["totalAttempts"] == 1

    def test_import_invalid_file(self, cli, tmp_path):
        bad = tmp_path / "bad.json"
        bad.write_text("{oops", encoding="utf-8")

        result = cli("import", str(bad))
        assert result.exit_code == 1
        assert "Import failed" in result.output

    def test_reset_requires_confirmation(self, cli):
        cli("attempt", "alphabet", "ಅ")
        result = cli("reset", input="n\n")
        assert "Cancelled" in result.output
        assert json.loads(cli("export").output)["skills"]["alphabet"]["totalAttempts"] == 1

    def test_reset_force(self, cli):
        cli("attempt", "alphabet", "ಅ")
        assert cli("reset", "--force").exit_code == 0
        assert json.loads(cli("export").output)["skills"]["alphabet"]["totalAttempts"] == 0
