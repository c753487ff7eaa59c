"""Unit tests for the command line entry point."""

from pathlib import Path
from unittest.mock import AsyncMock, patch

import pytest
from click.testing import CliRunner
from fswatch_recorder.cli import main
from fswatch_recorder.models import PersistenceError


class TestCli:
    """Test cases for the fswatch-recorder command."""

    @pytest.fixture
    def runner(self):
        return CliRunner()

    @pytest.fixture(autouse=True)
    def no_logging_config(self):
        """Keep the command from reconfiguring logging for the rest of the test run."""
        with patch("fswatch_recorder.cli.logging.config.dictConfig"):
            yield

    def test_requires_both_arguments(self, runner, tmp_path):
        """Test both positional arguments are mandatory."""
        result = runner.invoke(main, [str(tmp_path)])

        assert result.exit_code == 2
        assert "DB_PATH" in result.output

    def test_rejects_options(self, runner, tmp_path):
        """Test no options besides --help are recognized."""
        result = runner.invoke(main, ["--interval", "5", str(tmp_path), str(tmp_path / "e.db")])

        assert result.exit_code == 2

    def test_runs_recorder(self, runner, tmp_path):
        """Test arguments are handed to the recorder."""
        with patch("fswatch_recorder.cli.record", new_callable=AsyncMock) as mock_record:
            result = runner.invoke(main, [str(tmp_path), str(tmp_path / "events.db")])

        assert result.exit_code == 0
        root_dir, db_path, _config = mock_record.await_args.args
        assert root_dir == Path(tmp_path)
        assert db_path == tmp_path / "events.db"

    def test_missing_root_is_fatal(self, runner, tmp_path):
        """Test an invalid watch root aborts with status 1."""
        result = runner.invoke(main, [str(tmp_path / "missing"), str(tmp_path / "events.db")])

        assert result.exit_code == 1
        assert "Startup failed" in result.output
        assert not (tmp_path / "events.db").exists()

    def test_unusable_database_is_fatal(self, runner, tmp_path):
        """Test a database that cannot be created aborts with status 1."""
        result = runner.invoke(main, [str(tmp_path), str(tmp_path / "no" / "such" / "events.db")])

        assert result.exit_code == 1
        assert "Startup failed" in result.output

    def test_persistence_failure_exit_code(self, runner, tmp_path):
        """Test a runtime write failure exits with status 1."""
        failing = AsyncMock(side_effect=PersistenceError("disk I/O error"))
        with patch("fswatch_recorder.cli.record", failing):
            result = runner.invoke(main, [str(tmp_path), str(tmp_path / "events.db")])

        assert result.exit_code == 1
        assert "Recording stopped" in result.output
