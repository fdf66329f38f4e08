"""
Tests for the Flint CLI commands.
"""

import logging
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
import structlog
from pydantic import ValidationError
from typer.testing import CliRunner

from flint import __version__
from flint.api.cli.main import app, configure_logging
from flint.application.settings import FlintSettings
from flint.core.domain.errors import MaxIterationsExceededError
from flint.core.domain.models import ExecutionResult

runner = CliRunner()


def test_version():
    result = runner.invoke(app, ["version"])

    assert result.exit_code == 0
    assert __version__ in result.stdout


class TestToolsCommands:
    def test_list(self):
        result = runner.invoke(app, ["tools", "list"])

        assert result.exit_code == 0
        assert "read_file" in result.stdout
        assert "save_output" in result.stdout
        assert "preload_workflow" in result.stdout

    def test_inspect(self):
        result = runner.invoke(app, ["tools", "inspect", "save_output"])

        assert result.exit_code == 0
        assert '"file_path"' in result.stdout

    def test_inspect_unknown(self):
        result = runner.invoke(app, ["tools", "inspect", "delete_everything"])

        assert result.exit_code == 1
        assert "not found" in result.stdout


class TestAgentsCommands:
    def test_list(self, project):
        result = runner.invoke(app, ["--project-root", str(project), "agents", "list"])

        assert result.exit_code == 0
        assert "analyst" in result.stdout
        assert "helper" not in result.stdout

    def test_list_empty(self, tmp_path):
        result = runner.invoke(app, ["--project-root", str(tmp_path), "agents", "list"])

        assert result.exit_code == 0
        assert "No agents found" in result.stdout

    def test_init(self, project):
        result = runner.invoke(app, ["--project-root", str(project), "agents", "init", "analyst"])

        assert result.exit_code == 0
        assert "initialized" in result.stdout
        assert "Alice" in result.stdout

    def test_init_unknown_agent(self, project):
        result = runner.invoke(app, ["--project-root", str(project), "agents", "init", "nobody"])

        assert result.exit_code == 1
        assert "Agent not found: nobody" in result.stdout


class TestRunCommand:
    """Tests for `flint run`."""

    def test_prints_response(self, project):
        executor = MagicMock()
        executor.execute_message = AsyncMock(
            return_value=ExecutionResult(success=True, response="Budget approved", iterations=2)
        )

        with patch("flint.api.cli.commands.run.AgentExecutor", return_value=executor):
            result = runner.invoke(
                app, ["--project-root", str(project), "run", "analyst", "Review the budget"]
            )

        assert result.exit_code == 0
        assert "Budget approved" in result.stdout
        assert "2 iteration(s)" in result.stdout
        args = executor.execute_message.call_args
        assert args.args == ("analyst", "Review the budget")
        assert args.kwargs["bundle_root"] is None

    def test_engine_error_exits_nonzero(self, project):
        executor = MagicMock()
        executor.execute_message = AsyncMock(side_effect=MaxIterationsExceededError(50))

        with patch("flint.api.cli.commands.run.AgentExecutor", return_value=executor):
            result = runner.invoke(app, ["--project-root", str(project), "run", "analyst", "hi"])

        assert result.exit_code == 1
        assert "Maximum iterations (50) exceeded" in result.stdout

    def test_unknown_agent(self, project):
        result = runner.invoke(app, ["--project-root", str(project), "run", "nobody", "hi"])

        assert result.exit_code == 1
        assert "Agent not found: nobody" in result.stdout

    def test_history_must_be_a_list(self, project, tmp_path):
        history = tmp_path / "history.json"
        history.write_text('{"role": "user"}', encoding="utf-8")

        result = runner.invoke(
            app,
            ["--project-root", str(project), "run", "analyst", "hi", "--history", str(history)],
        )

        assert result.exit_code == 1
        assert "JSON list" in result.stdout

    def test_history_invalid_json(self, project, tmp_path):
        history = tmp_path / "history.json"
        history.write_text("[{oops", encoding="utf-8")

        result = runner.invoke(
            app,
            ["--project-root", str(project), "run", "analyst", "hi", "--history", str(history)],
        )

        assert result.exit_code == 1
        assert "Could not read history file" in result.stdout

    def test_history_directory_is_unreadable(self, project, tmp_path):
        result = runner.invoke(
            app,
            ["--project-root", str(project), "run", "analyst", "hi", "--history", str(tmp_path)],
        )

        assert result.exit_code == 1
        assert "Could not read history file" in result.stdout


class TestLogging:
    """Tests for log level selection."""

    @pytest.fixture(autouse=True)
    def reset_structlog(self):
        yield
        structlog.reset_defaults()

    def test_log_level_from_environment(self, monkeypatch):
        monkeypatch.setenv("FLINT_LOG_LEVEL", "debug")

        result = runner.invoke(app, ["version"])

        assert result.exit_code == 0
        assert structlog.get_config()["wrapper_class"] is structlog.make_filtering_bound_logger(
            logging.DEBUG
        )

    def test_default_level_is_warning(self, monkeypatch):
        monkeypatch.delenv("FLINT_LOG_LEVEL", raising=False)

        runner.invoke(app, ["version"])

        assert structlog.get_config()["wrapper_class"] is structlog.make_filtering_bound_logger(
            logging.WARNING
        )

    def test_debug_flag_overrides_log_level(self):
        assert configure_logging(True, "ERROR") == logging.DEBUG
        assert configure_logging(False, "error") == logging.ERROR

    def test_unknown_level_rejected(self):
        with pytest.raises(ValidationError, match="Unknown log level"):
            FlintSettings(log_level="LOUD")
