"""Subprocess helpers for the external build tools.

Every tool the build drives (wget, 7z, wrestool, icotool, npx, makepkg)
is started through :func:`run_command`, which logs the exact command line
and captures both output streams.
"""

import logging
import shlex
import shutil
import subprocess
import time
from dataclasses import dataclass

logger = logging.getLogger(__name__)

# Error lines quote at most this many trailing stderr lines.
ERROR_TAIL_LINES = 5


@dataclass(frozen=True, slots=True)
class CommandResult:
    """Captured outcome of one external command.

    Attributes:
        stdout: Standard output from the command.
        stderr: Standard error from the command.
        returncode: Exit code of the command.
    """

    stdout: str
    stderr: str
    returncode: int

    @property
    def success(self) -> bool:
        """Check if the command exited with status 0."""
        return self.returncode == 0

    def error_tail(self, lines: int = ERROR_TAIL_LINES) -> str:
        """Last non-empty stderr lines, joined with " | ".

        Falls back to the exit code when the command wrote nothing to
        stderr.
        """
        tail = [line.strip() for line in self.stderr.splitlines() if line.strip()][-lines:]
        return " | ".join(tail) or f"exit code {self.returncode}"


def format_command(args: list[str]) -> str:
    """Render an argument list as a copy-pasteable shell string."""
    return shlex.join(args)


def run_command(
    args: list[str],
    *,
    check: bool = False,
    timeout: float | None = None,
    cwd: str | None = None,
) -> CommandResult:
    """Run a command to completion and capture its output.

    Downloads and makepkg can take minutes, so no timeout applies unless
    the caller passes one.

    Args:
        args: Command and arguments to execute.
        check: If True, raise CalledProcessError on non-zero exit.
        timeout: Maximum time in seconds to wait for command.
        cwd: Working directory. None means the current directory.

    Returns:
        CommandResult with stdout, stderr, and returncode.

    Raises:
        subprocess.CalledProcessError: If check=True and command fails.
        subprocess.TimeoutExpired: If command exceeds timeout.
        FileNotFoundError: If command executable is not found.
    """
    logger.info("CMD %s%s", format_command(args), f" (in {cwd})" if cwd else "")
    started = time.monotonic()
    completed = subprocess.run(
        args,
        capture_output=True,
        text=True,
        check=check,
        timeout=timeout,
        cwd=cwd,
    )
    logger.debug("exit %d after %.1fs", completed.returncode, time.monotonic() - started)
    for stream, text in (("STDOUT", completed.stdout), ("STDERR", completed.stderr)):
        if text:
            logger.debug("%s %s", stream, text.rstrip())
    return CommandResult(
        stdout=completed.stdout,
        stderr=completed.stderr,
        returncode=completed.returncode,
    )


def command_exists(name: str) -> bool:
    """Check if a command can be found on PATH.

    Args:
        name: Command name to check.

    Returns:
        True if shutil.which finds it, False otherwise.
    """
    return shutil.which(name) is not None
