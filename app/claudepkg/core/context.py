"""Execution context: who runs each external tool, and what a failure means.

Every external tool invocation in the pipeline is declared as an
:class:`Operation`. The operation names the identity it must run as
(the real user, or the elevated root process) and the severity of a
failure. :class:`ToolRunner` is the one place where that policy is
applied, so the fatal vs warn-and-continue split can be audited here.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

from claudepkg.core.errors import PipelineError
from claudepkg.utils.formatting import print_warning
from claudepkg.utils.shell import CommandResult, format_command, run_command

logger = logging.getLogger(__name__)


class Identity(Enum):
    """Identity an operation runs as.

    Attributes:
        USER: The real, non-elevated user who invoked sudo.
        ROOT: The elevated process itself.
    """

    USER = "user"
    ROOT = "root"


class Severity(Enum):
    """What a failing operation does to the run.

    Attributes:
        FATAL: Abort the whole pipeline.
        WARN: Print a warning and continue.
    """

    FATAL = "fatal"
    WARN = "warn"


@dataclass(frozen=True, slots=True)
class PrivilegeContext:
    """The pair (elevated identity, real identity) for one run.

    Attributes:
        real_user: Login name of the user who invoked sudo.
        real_home: Home directory of that user.
        uid: Numeric uid of the real user.
        gid: Numeric primary gid of the real user.
        elevated: Whether this process runs as root.
    """

    real_user: str
    real_home: Path
    uid: int
    gid: int
    elevated: bool

    @property
    def drops_privileges(self) -> bool:
        """Check if USER operations must be delegated through sudo."""
        return self.elevated and self.real_user != "root"

    def wrap(self, argv: list[str], identity: Identity) -> list[str]:
        """Prefix argv so it runs as the requested identity.

        Args:
            argv: Command and arguments.
            identity: Identity the command must run as.

        Returns:
            The argv to hand to the shell.
        """
        if identity is Identity.USER and self.drops_privileges:
            return ["sudo", "-u", self.real_user, "-H", *argv]
        return list(argv)

    def chown_tree(self, path: Path) -> None:
        """Hand ownership of a file or directory tree to the real user.

        Called after every privileged write into a directory the real
        user later reads or extracts into.

        Args:
            path: File or directory to reassign.
        """
        if not self.drops_privileges or not path.exists():
            return
        os.lchown(path, self.uid, self.gid)
        if not path.is_dir() or path.is_symlink():
            return
        for root, dirs, files in os.walk(path):
            for name in (*dirs, *files):
                os.lchown(os.path.join(root, name), self.uid, self.gid)

    def make_dirs(self, path: Path) -> Path:
        """Create a directory with its missing parents, owned by the real user.

        Only the levels this call creates are handed over; directories
        that already existed keep their owner.

        Args:
            path: Directory to create.

        Returns:
            The directory path.
        """
        created: list[Path] = []
        current = path
        while not current.exists() and current != current.parent:
            created.append(current)
            current = current.parent
        path.mkdir(parents=True, exist_ok=True)
        if self.drops_privileges:
            for directory in reversed(created):
                os.lchown(directory, self.uid, self.gid)
        return path


@dataclass(frozen=True, slots=True)
class Operation:
    """A declared external-tool invocation.

    Attributes:
        description: Human-readable summary used in status and error lines.
        argv: Command and arguments (without any privilege prefix).
        identity: Identity the command must run as.
        severity: What a failure does to the run.
        cwd: Working directory, or None for the current directory.
        error: PipelineError subclass raised when a fatal operation fails.
    """

    description: str
    argv: list[str]
    identity: Identity = Identity.USER
    severity: Severity = Severity.FATAL
    cwd: Path | None = None
    error: type[PipelineError] = PipelineError

    def __post_init__(self) -> None:
        """Validate operation data after initialization."""
        if not self.argv:
            msg = "Operation argv cannot be empty"
            raise ValueError(msg)


@dataclass
class ToolRunner:
    """Runs operations and applies their failure policy.

    Attributes:
        privileges: Privilege context used to wrap each argv.
        warnings: Every warning emitted during the run, in order.
    """

    privileges: PrivilegeContext
    warnings: list[str] = field(default_factory=list)

    def run(self, op: Operation) -> CommandResult:
        """Execute an operation.

        Args:
            op: The operation to run.

        Returns:
            CommandResult of the command (also for failed WARN operations).

        Raises:
            PipelineError: The operation's declared error class, if a
                FATAL operation exits non-zero or cannot be started.
        """
        argv = self.privileges.wrap(op.argv, op.identity)
        logger.debug("%s as %s: %s", op.description, op.identity.value, format_command(argv))
        try:
            result = run_command(argv, cwd=str(op.cwd) if op.cwd else None)
        except OSError as e:
            result = CommandResult(stdout="", stderr=str(e), returncode=127)

        if result.success:
            return result

        detail = result.error_tail()
        if op.severity is Severity.WARN:
            self.warn(f"{op.description} failed: {detail}")
            return result
        msg = f"{op.description} failed (exit {result.returncode}): {detail}"
        raise op.error(msg)

    def warn(self, message: str) -> None:
        """Record and print a non-fatal problem.

        Args:
            message: Warning text.
        """
        logger.warning(message)
        self.warnings.append(message)
        print_warning(message)
