"""Package root staging and makepkg invocation."""

import logging
import os
import shutil
from pathlib import Path

from claudepkg.core.config import BuildConfig
from claudepkg.core.context import Identity, Operation, PrivilegeContext, ToolRunner
from claudepkg.core.errors import PackageBuildError
from claudepkg.core.workspace import BuildWorkspace
from claudepkg.stages.patcher import ASAR_NAME, UNPACKED_NAME

logger = logging.getLogger(__name__)

LAUNCHER_MODE = 0o755

RUNTIME_DEPENDS: tuple[str, ...] = ("nodejs", "npm", "electron")


def render_desktop_entry(app_name: str) -> str:
    """Render the freedesktop entry registering the claude:// handler."""
    return (
        "[Desktop Entry]\n"
        "Name=Claude\n"
        f"Exec={app_name} %u\n"
        f"Icon={app_name}\n"
        "Type=Application\n"
        "Terminal=false\n"
        "Categories=Office;Utility;\n"
        "MimeType=x-scheme-handler/claude;\n"
    )


def render_launcher(app_name: str) -> str:
    """Render the launcher script, forwarding all arguments to electron."""
    return f'#!/bin/bash\nelectron /usr/lib/{app_name}/{ASAR_NAME} "$@"\n'


def render_pkgbuild(config: BuildConfig, pkg_root: Path) -> str:
    """Render the makepkg manifest.

    Args:
        config: Build configuration (name, version, release, arch).
        pkg_root: Staged package root copied into $pkgdir.

    Returns:
        PKGBUILD text.
    """
    depends = " ".join(f"'{d}'" for d in RUNTIME_DEPENDS)
    return (
        "# Maintainer: Claude Desktop Linux Maintainers\n"
        f"pkgname={config.package_name}\n"
        f"pkgver={config.version}\n"
        f"pkgrel={config.release}\n"
        'pkgdesc="Claude Desktop for Linux"\n'
        f"arch=('{config.arch}')\n"
        'url="https://www.anthropic.com"\n'
        "license=('custom')\n"
        f"depends=({depends})\n"
        "source=()\n"
        "sha256sums=()\n"
        "\n"
        "package() {\n"
        f'    cp -r "{pkg_root}"/* "$pkgdir/"\n'
        "}\n"
    )


class PackageAssembler:
    """Stages the package root and builds the Arch package."""

    def __init__(
        self,
        runner: ToolRunner,
        privileges: PrivilegeContext,
        workspace: BuildWorkspace,
        config: BuildConfig,
    ) -> None:
        """Initialize the assembler.

        Args:
            runner: Tool runner for makepkg.
            privileges: Privilege context for ownership hand-over.
            workspace: Build workspace holding the package root.
            config: Build configuration.
        """
        self._runner = runner
        self._privileges = privileges
        self._workspace = workspace
        self._config = config

    @property
    def lib_dir(self) -> Path:
        """Application library directory inside the package root."""
        return self._workspace.install_dir / "lib" / self._config.app_name

    def create_layout(self) -> None:
        """Create bin, lib, applications and icons directories."""
        install_dir = self._workspace.install_dir
        for directory in (
            install_dir / "bin",
            self.lib_dir,
            install_dir / "share" / "applications",
            self._workspace.icons_dir,
        ):
            directory.mkdir(parents=True, exist_ok=True)

    def stage(self, archive: Path, unpacked: Path) -> None:
        """Copy the patched application and write the static files.

        Args:
            archive: Patched app.asar.
            unpacked: app.asar.unpacked sidecar directory.
        """
        self.create_layout()
        shutil.copy2(archive, self.lib_dir / ASAR_NAME)
        if unpacked.is_dir():
            shutil.copytree(unpacked, self.lib_dir / UNPACKED_NAME, dirs_exist_ok=True)

        app_name = self._config.app_name
        install_dir = self._workspace.install_dir
        desktop = install_dir / "share" / "applications" / f"{app_name}.desktop"
        desktop.write_text(render_desktop_entry(app_name), encoding="utf-8")

        launcher = install_dir / "bin" / app_name
        launcher.write_text(render_launcher(app_name), encoding="utf-8")
        os.chmod(launcher, LAUNCHER_MODE)

        self._workspace.pkgbuild.write_text(
            render_pkgbuild(self._config, self._workspace.pkg_root),
            encoding="utf-8",
        )
        self._privileges.chown_tree(self._workspace.pkg_root)
        self._privileges.chown_tree(self._workspace.pkgbuild)

    def build(self, output_dir: Path) -> Path:
        """Run makepkg and move the artifact to output_dir.

        makepkg refuses to run as root, so it runs as the real user.

        Args:
            output_dir: Directory receiving the finished package.

        Returns:
            Path of the package file in output_dir.

        Raises:
            PackageBuildError: If makepkg fails or the artifact is missing.
        """
        self._runner.run(
            Operation(
                description=f"Building package as {self._privileges.real_user}",
                argv=["makepkg", "-f"],
                identity=Identity.USER,
                cwd=self._workspace.root,
                error=PackageBuildError,
            )
        )

        built = self._workspace.root / self._config.artifact_name
        if not built.is_file():
            raise PackageBuildError(f"Package file not found at expected location: {built}")

        self._privileges.make_dirs(output_dir)
        destination = output_dir / built.name
        if destination.resolve() != built.resolve():
            shutil.move(built, destination)
            self._privileges.chown_tree(destination)
        logger.info("Package written to %s", destination)
        return destination
