"""
Smoke Tests for CLI Commands.

These tests verify that CLI commands run without errors and produce output.
They don't validate correctness deeply - just that commands work.

Usage:
    pytest tests/smoke/test_cli_commands.py -v
    pytest tests/smoke/test_cli_commands.py -v -m smoke
"""

import os
import subprocess
import sys
from pathlib import Path

import pytest

# Mark all tests in this module as smoke tests
pytestmark = pytest.mark.smoke

# Project root
PROJECT_ROOT = Path(__file__).parent.parent.parent


def run_cli_command(args: list[str], db_path: Path, timeout: int = 60) -> tuple[int, str, str]:
    """
    Run a CLI command and return exit code, stdout, stderr.

    Args:
        args: Arguments after 'python -m feynman.cli.main'
        db_path: SQLite file used instead of ~/.feynman/state.db
        timeout: Maximum time to wait

    Returns:
        Tuple of (exit_code, stdout, stderr)
    """
    env = dict(os.environ)
    env["DB_PATH"] = str(db_path)
    env["COLUMNS"] = "200"
    env["PYTHONIOENCODING"] = "utf-8"
    env.pop("GEMINI_API_KEY", None)

    result = subprocess.run(
        [sys.executable, "-m", "feynman.cli.main", *args],
        cwd=PROJECT_ROOT,
        env=env,
        capture_output=True,
        text=True,
        encoding="utf-8",
        timeout=timeout,
    )

    return result.returncode, result.stdout, result.stderr


@pytest.fixture
def db_path(tmp_path):
    return tmp_path / "state.db"


class TestCLIHelp:
    """Test that help commands work."""

    def test_main_help(self, db_path):
        code, stdout, stderr = run_cli_command(["--help"], db_path)

        assert code == 0, f"Help failed: {stderr}"
        assert "feynman" in stdout.lower()
        assert "Commands" in stdout

    @pytest.mark.parametrize(
        "command",
        ["run", "bootstrap", "students", "import-roster", "export-report", "reset-password"],
    )
    def test_command_help(self, command, db_path):
        code, stdout, stderr = run_cli_command([command, "--help"], db_path)
        assert code == 0, f"{command} help failed: {stderr}"


class TestCLICommands:
    """Test commands against a throwaway database."""

    def test_bootstrap_then_idempotent(self, db_path):
        code, stdout, stderr = run_cli_command(["bootstrap"], db_path)
        assert code == 0, f"Bootstrap failed: {stderr}"
        assert "2 account(s) created" in stdout

        code, stdout, _ = run_cli_command(["bootstrap"], db_path)
        assert code == 0
        assert "0 account(s) created" in stdout
        assert db_path.exists()

    def test_import_list_and_export(self, db_path, tmp_path):
        roster = tmp_path / "roster.csv"
        roster.write_text("name,username\nAlice,alice\n,ghost\n", encoding="utf-8")

        code, stdout, stderr = run_cli_command(["import-roster", str(roster)], db_path)
        assert code == 0, f"Import failed: {stderr}"
        assert "Imported 1 student(s)" in stdout
        assert "Row 3 skipped" in stdout

        code, stdout, stderr = run_cli_command(["students", "--search", "ali"], db_path)
        assert code == 0, f"Students failed: {stderr}"
        assert "alice" in stdout

        report = tmp_path / "report.csv"
        code, stdout, stderr = run_cli_command(["export-report", str(report)], db_path)
        assert code == 0, f"Export failed: {stderr}"
        assert report.read_text(encoding="utf-8").splitlines()[1].startswith("Alice,alice,inactive,0")

    def test_reset_password_unknown_user(self, db_path):
        run_cli_command(["bootstrap"], db_path)

        code, stdout, _ = run_cli_command(["reset-password", "nobody"], db_path)

        assert code == 1
        assert "does not exist" in stdout

    def test_reset_password(self, db_path):
        run_cli_command(["bootstrap"], db_path)

        code, stdout, stderr = run_cli_command(["reset-password", "test"], db_path)

        assert code == 0, f"Reset failed: {stderr}"
        assert "reset to: test" in stdout
