"""Per-run build workspace.

The workspace is owned by one pipeline run. It is wiped and recreated at
the start of every run, so nothing in it survives into the next build.
Only the download cache (see :mod:`claudepkg.fetch`) persists.
"""

import logging
import shutil
from dataclasses import dataclass
from pathlib import Path

from claudepkg.core.context import PrivilegeContext

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class BuildWorkspace:
    """Paths inside one build workspace.

    Attributes:
        root: Workspace root directory.
    """

    root: Path

    @property
    def resources(self) -> Path:
        """Extracted application tree (lib/net45 of the nested package)."""
        return self.root / "lib" / "net45"

    @property
    def electron_app(self) -> Path:
        """Work area for unpacking and repacking app.asar."""
        return self.root / "electron-app"

    @property
    def pkg_root(self) -> Path:
        """Package root mirroring the target filesystem.

        Kept apart from makepkg's own pkg/ and src/ directories, which
        makepkg wipes before it runs package().
        """
        return self.root / "pkgroot"

    @property
    def install_dir(self) -> Path:
        """The /usr tree inside the package root."""
        return self.pkg_root / "usr"

    @property
    def icons_dir(self) -> Path:
        """share/icons inside the package root."""
        return self.install_dir / "share" / "icons"

    @property
    def pkgbuild(self) -> Path:
        """makepkg manifest path."""
        return self.root / "PKGBUILD"

    def reset(self, privileges: PrivilegeContext) -> None:
        """Delete and recreate the workspace, owned by the real user.

        Args:
            privileges: Privilege context used to hand over ownership.
        """
        if self.root.exists():
            logger.info("Removing previous workspace %s", self.root)
            shutil.rmtree(self.root)
        privileges.make_dirs(self.root)
