"""
Compiler invocation.

ReprotoCommand builds the argument vector of a ``reproto compile`` call and
runs it, relaying the tool's output line by line to a logger:

    reproto [--debug] compile <language>
        [--path <dir>]... [--module <name>]...
        --out <dir> [--package-prefix <prefix>] [--package <target>]...
"""

import logging
import subprocess
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

from reprotokit.core.exceptions import (
    ProcessError,
    ProcessFailedError,
    ProcessTimeoutError,
)

logger = logging.getLogger(__name__)

DEFAULT_LANGUAGE = "java"
OUTPUT_PREFIX = "reproto: "


@dataclass
class ProcessResult:
    """Exit status and captured output of a finished compiler run."""

    exit_code: int
    stdout_lines: List[str] = field(default_factory=list)
    stderr_lines: List[str] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return self.exit_code == 0


@dataclass
class ReprotoCommand:
    """
    A single compiler invocation.

    Attributes:
        executable: Compiler executable (absolute path or bare name on PATH)
        out: Output directory for generated sources
        paths: Source roots, in order
        modules: Enabled compiler modules
        targets: Packages to compile
        package_prefix: Prefix for generated packages (blank means none)
        language: Output language
        debug: Pass --debug to the compiler

    Example:
        >>> command = ReprotoCommand(Path("reproto"), Path("target/generated"),
        ...                          paths=[Path("src/main/reproto")], targets=["io.demo"])
        >>> command.arguments()[:2]
        ['compile', 'java']
    """

    executable: Path
    out: Path
    paths: List[Path] = field(default_factory=list)
    modules: List[str] = field(default_factory=list)
    targets: List[str] = field(default_factory=list)
    package_prefix: Optional[str] = None
    language: str = DEFAULT_LANGUAGE
    debug: bool = False

    def arguments(self) -> List[str]:
        """Build the argument vector, excluding the executable itself."""
        result = []

        if self.debug:
            result.append("--debug")

        result.extend(["compile", self.language])

        for path in self.paths:
            result.extend(["--path", str(Path(path).absolute())])

        for module in self.modules:
            result.extend(["--module", module])

        result.extend(["--out", str(Path(self.out).absolute())])

        if self.package_prefix and self.package_prefix.strip():
            result.extend(["--package-prefix", self.package_prefix])

        for target in self.targets:
            result.extend(["--package", target])

        return result

    def command_line(self) -> List[str]:
        return [str(self.executable)] + self.arguments()

    def execute(
        self, log: Optional[logging.Logger] = None, timeout: Optional[float] = None
    ) -> ProcessResult:
        """
        Run the compiler and relay its output.

        Standard output lines are logged at info level and standard error
        lines at error level, each prefixed with 'reproto: ', after the
        process has finished.

        Args:
            log: Logger receiving the output (default: this module's logger)
            timeout: Seconds to wait before killing the process (default: no limit)

        Returns:
            ProcessResult of a successful run

        Raises:
            ProcessFailedError: If the compiler exits with a non-zero status
            ProcessTimeoutError: If the timeout expires
            ProcessError: If the executable cannot be started
        """
        log = log or logger
        command = self.command_line()

        log.info(f"Executing: {' '.join(command)}")

        timed_out = False

        try:
            with subprocess.Popen(
                command,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                text=True,
                errors="replace",
            ) as process:
                try:
                    stdout, stderr = process.communicate(timeout=timeout)
                except subprocess.TimeoutExpired:
                    process.kill()
                    stdout, stderr = process.communicate()
                    timed_out = True
        except OSError as e:
            raise ProcessError(f"{self.executable}: failed to execute: {e}") from e

        result = ProcessResult(
            exit_code=process.returncode,
            stdout_lines=stdout.splitlines(),
            stderr_lines=stderr.splitlines(),
        )

        for line in result.stdout_lines:
            log.info(f"{OUTPUT_PREFIX}{line}")

        for line in result.stderr_lines:
            log.error(f"{OUTPUT_PREFIX}{line}")

        if timed_out:
            raise ProcessTimeoutError(
                str(self.executable), timeout, result.stdout_lines, result.stderr_lines
            )

        if not result.success:
            raise ProcessFailedError(
                str(self.executable),
                result.exit_code,
                result.stdout_lines,
                result.stderr_lines,
            )

        return result


__all__ = ["ReprotoCommand", "ProcessResult", "DEFAULT_LANGUAGE"]
