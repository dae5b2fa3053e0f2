"""Thin wrapper around subprocess for running external tools.

All commands are argument vectors, never shell strings. A missing executable
is reported as exit code 127 rather than an exception so callers can treat
"not installed" and "exited non-zero" the same way.
"""

from __future__ import annotations

import subprocess
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import IO, cast

import click

from .errors import ToolFailureError, ToolUnavailableError
from .shared.logging import get_logger

logger = get_logger(__name__)

COMMAND_NOT_FOUND = 127

# Undecodable bytes from PHP or Behat are replaced, not fatal
OUTPUT_ENCODING = "utf-8"

# Seconds to wait for a managed process to exit after SIGTERM before killing it
DEFAULT_STOP_TIMEOUT = 10.0


@dataclass(frozen=True)
class ProcessResult:
    """Result of a finished external command."""

    exit_code: int
    stdout: str = ""
    stderr: str = ""

    @property
    def successful(self) -> bool:
        return self.exit_code == 0


def _echo(text: str) -> None:
    click.echo(text, nl=False)


class ProcessRunner:
    """Run external commands to completion."""

    def run(self, argv: Sequence[str], cwd: str | Path | None = None) -> ProcessResult:
        """Run a command and capture its output.

        Args:
            argv: Executable followed by its arguments.
            cwd: Working directory for the command.

        Returns:
            ProcessResult with exit code and captured output.
        """
        logger.debug("process_run", argv=list(argv), cwd=str(cwd) if cwd else None)
        try:
            result = subprocess.run(
                list(argv),
                cwd=cwd,
                capture_output=True,
                encoding=OUTPUT_ENCODING,
                errors="replace",
            )
        except FileNotFoundError:
            return ProcessResult(COMMAND_NOT_FOUND, stderr=f"{argv[0]}: command not found")
        return ProcessResult(result.returncode, result.stdout or "", result.stderr or "")

    def run_streaming(
        self,
        argv: Sequence[str],
        cwd: str | Path | None = None,
        write: Callable[[str], None] | None = None,
    ) -> ProcessResult:
        """Run a command, forwarding its output live while also capturing it.

        stderr is merged into stdout so progress and errors keep their order.
        No timeout is applied.

        Args:
            argv: Executable followed by its arguments.
            cwd: Working directory for the command.
            write: Callback receiving each output line (default: click.echo).

        Returns:
            ProcessResult with exit code and the captured combined output.
        """
        write = write or _echo
        logger.debug("process_run_streaming", argv=list(argv), cwd=str(cwd) if cwd else None)
        try:
            process = subprocess.Popen(
                list(argv),
                cwd=cwd,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                encoding=OUTPUT_ENCODING,
                errors="replace",
                bufsize=1,
            )
        except FileNotFoundError:
            message = f"{argv[0]}: command not found\n"
            write(message)
            return ProcessResult(COMMAND_NOT_FOUND, stderr=message)

        captured: list[str] = []
        stream = cast(IO[str], process.stdout)
        try:
            for line in stream:
                captured.append(line)
                write(line)
        except BaseException:
            process.kill()
            raise
        finally:
            stream.close()
            exit_code = process.wait()
        return ProcessResult(exit_code, "".join(captured))

    def run_or_fail(self, argv: Sequence[str], cwd: str | Path | None = None) -> str:
        """Run a command that must succeed.

        Returns:
            The command's standard output.

        Raises:
            ToolFailureError: If the command exits non-zero.
        """
        result = self.run(argv, cwd)
        if not result.successful:
            raise ToolFailureError(
                message=(
                    f"Command failed ({result.exit_code}): {' '.join(argv)}"
                    + (f"\n{result.stderr.strip()}" if result.stderr.strip() else "")
                ),
                command=list(argv),
                exit_code=result.exit_code,
                output=result.stdout,
            )
        return result.stdout


class ManagedProcess:
    """A long-running background process with output discarded.

    The process runs without a timeout until stop() is called.
    """

    def __init__(self, argv: Sequence[str], cwd: str | Path | None = None):
        self.argv = list(argv)
        self.cwd = cwd
        self._process: subprocess.Popen | None = None

    @property
    def pid(self) -> int | None:
        return self._process.pid if self._process else None

    @property
    def is_running(self) -> bool:
        return self._process is not None and self._process.poll() is None

    def start(self) -> None:
        """Start the process in the background.

        Raises:
            ToolUnavailableError: If the executable does not exist.
        """
        try:
            self._process = subprocess.Popen(
                self.argv,
                cwd=self.cwd,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
            )
        except FileNotFoundError as e:
            raise ToolUnavailableError(
                message=f"{self.argv[0]} is not available, can't start {' '.join(self.argv)}",
                tool=self.argv[0],
            ) from e
        logger.debug("managed_process_started", argv=self.argv, pid=self._process.pid)

    def stop(self, timeout: float = DEFAULT_STOP_TIMEOUT) -> int | None:
        """Terminate the process, killing it if it ignores SIGTERM.

        Returns:
            The exit code, or None if the process was never started.
        """
        if self._process is None:
            return None

        if self._process.poll() is None:
            self._process.terminate()
            try:
                self._process.wait(timeout=timeout)
            except subprocess.TimeoutExpired:
                logger.warning("managed_process_kill", pid=self._process.pid)
                self._process.kill()
                self._process.wait()

        logger.debug(
            "managed_process_stopped", pid=self._process.pid, exit_code=self._process.returncode
        )
        return self._process.returncode
