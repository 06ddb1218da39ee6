"""Two-step installer extraction.

The Windows installer is a 7-Zip readable container holding a NuGet
package, which in turn holds the application tree under lib/net45.
"""

import logging
from pathlib import Path

from claudepkg.core.context import Identity, Operation, ToolRunner
from claudepkg.core.errors import ExtractionError
from claudepkg.core.workspace import BuildWorkspace

logger = logging.getLogger(__name__)


def nupkg_name(version: str) -> str:
    """Get the nested package file name for an installer version."""
    return f"AnthropicClaude-{version}-full.nupkg"


class ArchiveUnpacker:
    """Extracts the installer and its nested package into the workspace.

    Both extractions overwrite existing files without prompting and run as
    the real user, so the extracted tree is theirs.
    """

    def __init__(
        self,
        runner: ToolRunner,
        workspace: BuildWorkspace,
        seven_zip: str = "7z",
    ) -> None:
        """Initialize the unpacker.

        Args:
            runner: Tool runner for the extraction commands.
            workspace: Build workspace; extraction targets are relative to it.
            seven_zip: 7-Zip executable name.
        """
        self._runner = runner
        self._workspace = workspace
        self._seven_zip = seven_zip

    def _extract(self, archive: Path, description: str) -> None:
        self._runner.run(
            Operation(
                description=description,
                argv=[self._seven_zip, "x", "-y", archive.name],
                identity=Identity.USER,
                cwd=self._workspace.root,
                error=ExtractionError,
            )
        )

    def run(self, installer: Path, version: str) -> Path:
        """Extract the installer, then the nested package.

        Args:
            installer: Installer file inside the workspace root.
            version: Installer version; names the nested package.

        Returns:
            The extracted application tree (lib/net45).

        Raises:
            ExtractionError: If 7-Zip fails or an expected file is missing.
        """
        self._extract(installer, f"Extracting {installer.name}")

        nupkg = self._workspace.root / nupkg_name(version)
        if not nupkg.is_file():
            msg = f"{nupkg.name} not found in installer; is the version {version} correct?"
            raise ExtractionError(msg)

        self._extract(nupkg, f"Extracting {nupkg.name}")

        resources = self._workspace.resources
        if not resources.is_dir():
            raise ExtractionError(f"{nupkg.name} does not contain lib/net45")
        logger.info("Application tree extracted to %s", resources)
        return resources
