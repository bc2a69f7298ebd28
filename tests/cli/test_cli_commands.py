"""
Tests for the compile, resolve and cleanup commands.

Commands run through CLI.run() with an explicit stand-in executable so no
release is ever downloaded.
"""

import os
import time

import pytest

from reprotokit.cli.commands.cleanup import find_cached_files
from reprotokit.cli.parser import CLI

posix_only = pytest.mark.skipif(os.name == "nt", reason="uses /bin/sh scripts")


@pytest.fixture
def project(temp_dir, isolated_home):
    """A project directory with a configuration file."""
    root = temp_dir / "project"
    root.mkdir()
    (root / "reprotokit.yaml").write_text(
        "version: 1\n"
        "output: target/generated\n"
        "paths: [src/main/reproto]\n"
        "targets: [io.demo]\n"
        f"cache_dir: {temp_dir / 'cache'}\n"
    )
    return root


def run_cli(project, *args):
    return CLI().run(["--project-root", str(project), *args])


@posix_only
class TestCompileCommand:
    """Test the compile command."""

    def test_compile_runs_executable(self, project, stub_executable):
        """Test the configured targets are passed to the compiler."""
        tool = stub_executable(
            "reproto", f'printf "%s\\n" "$@" > "{project / "invocation.txt"}"'
        )

        result = run_cli(project, "compile", "--executable", str(tool))

        assert result == 0
        arguments = (project / "invocation.txt").read_text().splitlines()
        assert arguments[:2] == ["compile", "java"]
        assert str(project.absolute() / "target" / "generated") in arguments
        assert arguments[-2:] == ["--package", "io.demo"]

    def test_command_line_targets(self, project, stub_executable):
        """Test --target replaces the configured targets."""
        tool = stub_executable(
            "reproto", f'printf "%s\\n" "$@" > "{project / "invocation.txt"}"'
        )

        run_cli(project, "compile", "--executable", str(tool), "--target", "io.cli")

        arguments = (project / "invocation.txt").read_text().splitlines()
        assert arguments[-2:] == ["--package", "io.cli"]

    def test_compiler_failure_exit_code(self, project, stub_executable):
        """Test the compiler's exit status is returned."""
        tool = stub_executable("reproto", 'echo "error: boom" >&2\nexit 3')

        assert run_cli(project, "compile", "--executable", str(tool)) == 3

    def test_skip(self, project, stub_executable):
        """Test skip: true does nothing."""
        with open(project / "reprotokit.yaml", "a") as f:
            f.write("skip: true\n")
        tool = stub_executable("reproto", f'touch "{project / "ran"}"')

        assert run_cli(project, "compile", "--executable", str(tool)) == 0
        assert not (project / "ran").exists()

    def test_invalid_config(self, project):
        """Test configuration errors map to exit code 1."""
        (project / "reprotokit.yaml").write_text("version: 2\n")

        assert run_cli(project, "compile") == 1


@posix_only
class TestResolveCommand:
    """Test the resolve command."""

    def test_prints_executable(self, project, stub_executable, capsys):
        tool = stub_executable("reproto-local", "exit 0")

        result = run_cli(project, "resolve", "--executable", str(tool))

        assert result == 0
        assert capsys.readouterr().out.strip() == str(tool)

    def test_without_config_file(self, temp_dir, isolated_home, stub_executable, capsys):
        """Test resolve needs no output or targets."""
        root = temp_dir / "empty"
        root.mkdir()
        tool = stub_executable("reproto-local", "exit 0")

        assert run_cli(root, "resolve", "--executable", str(tool)) == 0
        assert capsys.readouterr().out.strip() == str(tool)


class TestCleanupCommand:
    """Test the cleanup command."""

    @pytest.fixture
    def cache(self, temp_dir):
        root = temp_dir / "cache"
        (root / "gcs").mkdir(parents=True)
        (root / "gcs" / "version").write_text('{"version": "0.3.36", "token": null}')
        (root / "gcs" / "reproto-0.3.36-linux-x86_64.tar.gz").write_bytes(b"archive")
        (root / "github").mkdir()
        (root / "github" / "version").write_text('{"version": "0.3.36", "token": null}')
        (root / "lock").mkdir()
        return root

    def test_find_cached_files(self, cache):
        files = find_cached_files(cache)

        assert files == [
            cache / "gcs" / "reproto-0.3.36-linux-x86_64.tar.gz",
            cache / "gcs" / "version",
            cache / "github" / "version",
        ]

    def test_dry_run(self, temp_dir, cache, capsys):
        """Test --dry-run lists files without removing them."""
        result = run_cli(temp_dir, "cleanup", "--dry-run", "--cache-dir", str(cache))

        assert result == 0
        assert "Would remove:" in capsys.readouterr().out
        assert len(find_cached_files(cache)) == 3

    def test_removes_files_and_stale_locks(self, temp_dir, cache, capsys):
        stale = cache / "lock" / "archive-old.tar.gz.lock"
        stale.touch()
        old = time.time() - 48 * 3600
        os.utime(stale, (old, old))

        result = run_cli(temp_dir, "cleanup", "--cache-dir", str(cache))

        assert result == 0
        assert find_cached_files(cache) == []
        assert not stale.exists()
        assert "Removed 3 cached file(s)" in capsys.readouterr().out

    def test_nothing_to_clean(self, temp_dir, capsys):
        result = run_cli(temp_dir, "cleanup", "--cache-dir", str(temp_dir / "none"))

        assert result == 0
        assert "Nothing to clean" in capsys.readouterr().out
