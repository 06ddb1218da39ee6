"""Build dependency resolution.

Maps the external tools the pipeline calls to the pacman packages that
provide them, and installs whatever is missing in one transaction.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from types import MappingProxyType

from claudepkg.operators.base import Operator
from claudepkg.utils.formatting import console
from claudepkg.utils.shell import command_exists

logger = logging.getLogger(__name__)

# Tool -> packages providing it. A tool may need more than one package
# (npx needs both the runtime and npm).
TOOL_PACKAGES: MappingProxyType[str, tuple[str, ...]] = MappingProxyType(
    {
        "wget": ("wget",),
        "wrestool": ("icoutils",),
        "icotool": ("icoutils",),
        "convert": ("imagemagick",),
        "npx": ("nodejs", "npm"),
        "electron": ("electron",),
    }
)

# Either binary provides 7-Zip extraction.
SEVEN_ZIP_BINARIES: tuple[str, ...] = ("7z", "p7zip")

# Preferred package first; the second is used when the repositories
# do not offer the first.
SEVEN_ZIP_PACKAGES: tuple[str, ...] = ("7zip", "p7zip")


def unique(items: Iterable[str]) -> list[str]:
    """Deduplicate while keeping first-seen order."""
    return list(dict.fromkeys(items))


def find_seven_zip(exists: Callable[[str], bool] = command_exists) -> str | None:
    """Return the first available 7-Zip binary name, or None."""
    for binary in SEVEN_ZIP_BINARIES:
        if exists(binary):
            return binary
    return None


class DependencyResolver:
    """Probes for required tools and installs the missing ones.

    Running it again with everything present performs no installation.

    Attributes:
        operator: Package operator used for repository queries and installs.
    """

    def __init__(
        self,
        operator: Operator,
        exists: Callable[[str], bool] = command_exists,
    ) -> None:
        """Initialize the resolver.

        Args:
            operator: Package operator for the host's package manager.
            exists: Command presence probe.
        """
        self.operator = operator
        self._exists = exists

    def _check(self, label: str, present: bool) -> bool:
        mark = "[success]found[/]" if present else "[error]not found[/]"
        console.print(f"  {label}: {mark}", highlight=False)
        return present

    def missing_tools(self) -> list[str]:
        """List required tools that are not on PATH.

        7-Zip is reported as "7z" when neither of its binaries exists.
        """
        missing: list[str] = []
        if not self._check("7z", find_seven_zip(self._exists) is not None):
            missing.append("7z")
        for tool in TOOL_PACKAGES:
            if not self._check(tool, self._exists(tool)):
                missing.append(tool)
        return missing

    def seven_zip_package(self) -> str:
        """Pick the 7-Zip package this host's repositories offer."""
        preferred, fallback = SEVEN_ZIP_PACKAGES
        if self.operator.has_package(preferred):
            return preferred
        return fallback

    def missing_packages(self) -> list[str]:
        """Translate missing tools into a deduplicated package list."""
        packages: list[str] = []
        for tool in self.missing_tools():
            if tool == "7z":
                packages.append(self.seven_zip_package())
            else:
                packages.extend(TOOL_PACKAGES[tool])
        return unique(packages)

    def resolve(self) -> list[str]:
        """Install every missing package in one package-manager call.

        Returns:
            The packages that were installed (empty if none were needed).

        Raises:
            DependencyError: If the package manager fails.
        """
        packages = self.missing_packages()
        if not packages:
            logger.info("All build dependencies present")
            return []
        self.operator.install(packages)
        return packages
