"""Unit tests for the main CLI application."""

import logging
from pathlib import Path

from claudepkg import __version__
from claudepkg.cli.main import app, configure_logging
from typer.testing import CliRunner

runner = CliRunner()


class TestMainApp:
    """Tests for global options."""

    def test_version(self) -> None:
        """--version prints the version and exits."""
        result = runner.invoke(app, ["--version"])

        assert result.exit_code == 0
        assert f"claudepkg version {__version__}" in result.output

    def test_help_lists_commands(self) -> None:
        """--help lists every command group."""
        result = runner.invoke(app, ["--help"])

        assert result.exit_code == 0
        for command in ("build", "config", "cache"):
            assert command in result.output

    def test_no_args_shows_help(self) -> None:
        """Running without a command prints usage."""
        result = runner.invoke(app, [])

        assert "Usage" in result.output

    def test_verbose_flag_sets_log_level(self, tmp_path: Path) -> None:
        """The global --verbose flag switches logging to DEBUG."""
        path = tmp_path / "build.toml"

        result = runner.invoke(app, ["--verbose", "config", "show", "-c", str(path)])

        assert result.exit_code == 0, result.output
        assert logging.getLogger().level == logging.DEBUG


class TestConfigureLogging:
    """Tests for configure_logging function."""

    def test_quiet_by_default(self) -> None:
        """Only errors are logged without --verbose."""
        configure_logging(verbose=False)

        assert logging.getLogger().level == logging.ERROR

    def test_verbose(self) -> None:
        """--verbose logs every command."""
        configure_logging(verbose=True)

        assert logging.getLogger().level == logging.DEBUG
