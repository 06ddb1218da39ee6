"""app.asar patching.

Unpacks the Electron application archive, replaces the Windows-only
claude-native module with a stub, adds the tray icons, and repacks it.
asar runs through npx inside an nvm shell so a known Node.js major
version is used regardless of the system Node. npx runs with --yes and
never asks to confirm installing asar.
"""

import logging
import shlex
import shutil
from pathlib import Path

from claudepkg.core.context import Identity, Operation, PrivilegeContext, ToolRunner
from claudepkg.core.errors import PatchError
from claudepkg.stages.native_stub import STUB_RELATIVE_PATH, render_stub

logger = logging.getLogger(__name__)

ASAR_NAME = "app.asar"
UNPACKED_NAME = "app.asar.unpacked"
CONTENTS_NAME = "app.asar.contents"
TRAY_GLOB = "Tray*"

ASAR_COMMAND: tuple[str, ...] = ("npx", "--yes", "asar")


def nvm_shell(nvm_script: Path, node_version: str, command: list[str]) -> list[str]:
    """Wrap a command so it runs under an nvm-selected Node.js.

    Args:
        nvm_script: Path to the real user's nvm.sh.
        node_version: Node.js major version to install and select.
        command: Command to run once Node.js is selected.

    Returns:
        A ``bash -c`` argv.
    """
    version = shlex.quote(node_version)
    script = (
        f". {shlex.quote(str(nvm_script))}"
        f" && nvm install {version} >/dev/null"
        f" && nvm use {version} >/dev/null"
        f" && {shlex.join(command)}"
    )
    return ["bash", "-c", script]


class ApplicationPatcher:
    """Rewrites app.asar with the stubbed native module."""

    def __init__(
        self,
        runner: ToolRunner,
        privileges: PrivilegeContext,
        work_dir: Path,
        nvm_script: Path,
        node_version: str,
    ) -> None:
        """Initialize the patcher.

        Args:
            runner: Tool runner for asar invocations.
            privileges: Privilege context for ownership hand-over.
            work_dir: Dedicated work area (electron-app in the workspace).
            nvm_script: Path to the real user's nvm.sh.
            node_version: Node.js major version for asar.
        """
        self._runner = runner
        self._privileges = privileges
        self._work_dir = work_dir
        self._nvm_script = nvm_script
        self._node_version = node_version

    @property
    def archive(self) -> Path:
        """Patched archive path after :meth:`run`."""
        return self._work_dir / ASAR_NAME

    @property
    def unpacked(self) -> Path:
        """Unpacked sidecar directory path."""
        return self._work_dir / UNPACKED_NAME

    @property
    def contents(self) -> Path:
        """Directory the archive is extracted into."""
        return self._work_dir / CONTENTS_NAME

    def _asar(self, description: str, *args: str) -> None:
        self._runner.run(
            Operation(
                description=description,
                argv=nvm_shell(self._nvm_script, self._node_version, [*ASAR_COMMAND, *args]),
                identity=Identity.USER,
                cwd=self._work_dir,
                error=PatchError,
            )
        )

    def stage(self, resources_dir: Path) -> None:
        """Copy app.asar and its sidecar into the work area.

        Args:
            resources_dir: lib/net45/resources of the extracted tree.

        Raises:
            PatchError: If app.asar is missing.
        """
        source = resources_dir / ASAR_NAME
        if not source.is_file():
            raise PatchError(f"{source} not found")
        self._work_dir.mkdir(parents=True, exist_ok=True)
        shutil.copy2(source, self.archive)
        sidecar = resources_dir / UNPACKED_NAME
        if sidecar.is_dir():
            shutil.copytree(sidecar, self.unpacked, dirs_exist_ok=True)
        else:
            logger.info("No %s next to %s", UNPACKED_NAME, ASAR_NAME)
        self._privileges.chown_tree(self._work_dir)

    def write_stub(self) -> Path:
        """Overwrite claude-native's index.js with the stub.

        Returns:
            Path of the written stub.
        """
        stub = self.contents / STUB_RELATIVE_PATH
        stub.parent.mkdir(parents=True, exist_ok=True)
        stub.write_text(render_stub(), encoding="utf-8")
        logger.info("Wrote native module stub to %s", stub)
        return stub

    def copy_tray_icons(self, resources_dir: Path) -> list[Path]:
        """Copy Tray* images into the archive's resources directory.

        Missing tray icons only warn.

        Args:
            resources_dir: lib/net45/resources of the extracted tree.

        Returns:
            Copied files.
        """
        target_dir = self.contents / "resources"
        target_dir.mkdir(parents=True, exist_ok=True)
        copied: list[Path] = []
        for source in sorted(resources_dir.glob(TRAY_GLOB)):
            if not source.is_file():
                continue
            try:
                copied.append(Path(shutil.copy2(source, target_dir / source.name)))
            except OSError as e:
                self._runner.warn(f"Could not copy tray icon {source.name}: {e}")
        if not copied:
            self._runner.warn(f"No tray icons found in {resources_dir}")
        return copied

    def run(self, resources_dir: Path) -> Path:
        """Unpack, patch and repack app.asar.

        Args:
            resources_dir: lib/net45/resources of the extracted tree.

        Returns:
            Path to the repacked app.asar.

        Raises:
            PatchError: If app.asar is missing or asar fails.
        """
        self.stage(resources_dir)
        self._asar(f"Unpacking {ASAR_NAME}", "extract", ASAR_NAME, CONTENTS_NAME)
        self._privileges.chown_tree(self.contents)

        self.write_stub()
        self.copy_tray_icons(resources_dir)
        self._privileges.chown_tree(self.contents)

        self._asar(f"Repacking {ASAR_NAME}", "pack", CONTENTS_NAME, ASAR_NAME)
        return self.archive
