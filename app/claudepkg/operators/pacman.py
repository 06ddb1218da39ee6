"""Pacman package operator implementation.

Installs build dependencies using pacman.
"""

import logging
import re

from claudepkg.core.context import Identity, Operation
from claudepkg.core.errors import DependencyError
from claudepkg.operators.base import Operator
from claudepkg.utils.shell import command_exists, run_command

logger = logging.getLogger(__name__)


class PacmanOperator(Operator):
    """Operator for pacman (Arch Linux).

    The build runs as root already, so pacman is invoked directly without
    a sudo prefix.
    """

    @property
    def name(self) -> str:
        """Return pacman as the package manager name."""
        return "pacman"

    def is_available(self) -> bool:
        """Check if pacman is available."""
        return command_exists("pacman")

    def install(self, packages: list[str]) -> None:
        """Install packages using pacman -Sy --noconfirm.

        Args:
            packages: Package names to install. Empty means nothing to do.

        Raises:
            DependencyError: If pacman is missing or the transaction fails.
        """
        if not packages:
            return

        if not self.is_available():
            raise DependencyError("pacman is not available on this system")

        logger.info("Installing system dependencies: %s", ", ".join(packages))
        self._runner.run(
            Operation(
                description="Installing system dependencies",
                argv=["pacman", "-Sy", "--noconfirm", *packages],
                identity=Identity.ROOT,
                error=DependencyError,
            )
        )

    def has_package(self, name: str) -> bool:
        """Search the sync databases for an exact package name.

        No match and a failed search both mean "not offered".

        Args:
            name: Package name.

        Returns:
            True if pacman -Ss finds the package.
        """
        try:
            result = run_command(["pacman", "-Ss", f"^{re.escape(name)}$"])
        except OSError as e:
            logger.debug("pacman search for %s failed: %s", name, e)
            return False
        return result.success
