"""
Tests for CLI argument parser and exit code handling.
"""

import runpy
from pathlib import Path
from unittest.mock import patch

import pytest

from reprotokit.cli.parser import CLI, main
from reprotokit.core.exceptions import ConfigError, ProcessFailedError


class TestCLIBasics:
    """Test basic CLI functionality."""

    def test_cli_creation(self):
        """Test CLI can be created."""
        cli = CLI()
        assert cli.parser is not None

    def test_no_command_shows_help(self, capsys):
        """Test that running without command shows help."""
        result = CLI().run([])

        assert result == 1
        captured = capsys.readouterr()
        assert "usage:" in captured.out.lower()

    def test_version_flag(self, capsys):
        """Test --version flag."""
        with pytest.raises(SystemExit) as exc_info:
            CLI().run(["--version"])

        assert exc_info.value.code == 0
        assert "reprotokit" in capsys.readouterr().out

    def test_global_options(self, temp_dir):
        """Test global options precede the command."""
        args = CLI().parse_args(
            ["-v", "--config", "custom.yaml", "--project-root", str(temp_dir), "resolve"]
        )

        assert args.verbose
        assert args.config == Path("custom.yaml")
        assert args.project_root == temp_dir


class TestCompileCommand:
    """Test compile command parsing."""

    def test_defaults(self):
        """Test unset options are None so file values are kept."""
        args = CLI().parse_args(["compile"])

        assert args.command == "compile"
        assert args.targets is None
        assert args.modules is None
        assert args.paths is None
        assert args.out is None
        assert args.debug is None
        assert args.timeout is None
        assert args.executable is None
        assert args.version_constraint is None

    def test_all_options(self):
        args = CLI().parse_args(
            [
                "compile",
                "--target",
                "io.a",
                "--target",
                "io.b",
                "--module",
                "builder",
                "--path",
                "src/reproto",
                "--out",
                "gen",
                "--package-prefix",
                "com.example",
                "--debug",
                "--timeout",
                "60",
                "--executable",
                "/opt/reproto",
                "--artifact",
                "g:a:1.0",
                "--version-constraint",
                "0.3",
                "--backend",
                "github",
                "--download-url",
                "https://mirror.example.com",
            ]
        )

        assert args.targets == ["io.a", "io.b"]
        assert args.modules == ["builder"]
        assert args.paths == ["src/reproto"]
        assert args.out == "gen"
        assert args.package_prefix == "com.example"
        assert args.debug is True
        assert args.timeout == 60.0
        assert args.executable == Path("/opt/reproto")
        assert args.artifact == "g:a:1.0"
        assert args.version_constraint == "0.3"
        assert args.backend == "github"
        assert args.download_url == "https://mirror.example.com"

    def test_invalid_backend(self):
        with pytest.raises(SystemExit):
            CLI().parse_args(["compile", "--backend", "s3"])


class TestCleanupCommand:
    """Test cleanup command parsing."""

    def test_options(self, temp_dir):
        args = CLI().parse_args(["cleanup", "--dry-run", "--cache-dir", str(temp_dir)])

        assert args.dry_run
        assert args.cache_dir == temp_dir


class TestExitCodes:
    """Test mapping of errors to exit codes."""

    def run_with_error(self, error):
        with patch.object(CLI, "_dispatch_command", side_effect=error):
            return CLI().run(["resolve"])

    def test_success(self):
        with patch.object(CLI, "_dispatch_command", return_value=0):
            assert CLI().run(["resolve"]) == 0

    def test_compiler_exit_status_propagated(self):
        """Test a failing compiler's status becomes the exit code."""
        assert self.run_with_error(ProcessFailedError("reproto", 3)) == 3

    def test_signal_exit_status(self):
        """Test a compiler killed by a signal maps to 1."""
        assert self.run_with_error(ProcessFailedError("reproto", -9)) == 1

    def test_reprotokit_error(self):
        assert self.run_with_error(ConfigError("bad")) == 1

    def test_unexpected_error(self):
        assert self.run_with_error(RuntimeError("boom")) == 1

    def test_keyboard_interrupt(self):
        assert self.run_with_error(KeyboardInterrupt()) == 130

    def test_main_exits_with_code(self):
        """Test main() exits with the run() result."""
        with patch.object(CLI, "run", return_value=4):
            with pytest.raises(SystemExit) as exc_info:
                main()

        assert exc_info.value.code == 4


class TestModuleEntryPoint:
    """Test running the package with python -m."""

    def test_python_m_reprotokit(self, capsys):
        """Test python -m reprotokit dispatches to the CLI."""
        with patch("sys.argv", ["reprotokit", "--version"]):
            with pytest.raises(SystemExit) as exc_info:
                runpy.run_module("reprotokit", run_name="__main__")

        assert exc_info.value.code == 0
        assert "reprotokit" in capsys.readouterr().out
