"""Build configuration and settings.

This module provides the configuration model and I/O functions for a
package build: where to download the installer from, which version it
is, and how the resulting package is named.

Configuration is stored in ~/.config/claudepkg/build.toml of the real
user. A missing file means "use the defaults".
"""

import os
import tomllib
from pathlib import Path
from tempfile import NamedTemporaryFile
from typing import Annotated

import tomli_w
from pydantic import BaseModel, ConfigDict, Field, ValidationError

# Update these when a new version of Claude Desktop is released
DEFAULT_DOWNLOAD_URL = (
    "https://storage.googleapis.com/osprey-downloads-c02f6a0d-347c-492b-a752-3e0651722e97"
    "/nest-win-x64/Claude-Setup-x64.exe"
)
DEFAULT_VERSION = "0.7.7"


class BuildConfig(BaseModel):
    """Configuration for one package build.

    Attributes:
        download_url: URL of the vendor Windows installer.
        version: Version string of that installer.
        sha256: Expected SHA-256 of the installer. None trusts the cache by name.
        package_name: Name of the produced Arch package.
        app_name: Name of the launcher, desktop entry and icon.
        release: pkgrel of the produced package.
        arch: Target architecture.
        node_version: Node.js major version nvm selects for asar.
    """

    model_config = ConfigDict(extra="forbid")

    download_url: Annotated[
        str,
        Field(min_length=1, description="Installer download URL"),
    ] = DEFAULT_DOWNLOAD_URL
    version: Annotated[
        str,
        Field(pattern=r"^[0-9A-Za-z._+]+$", description="Installer version"),
    ] = DEFAULT_VERSION
    sha256: Annotated[
        str | None,
        Field(pattern=r"^[0-9a-fA-F]{64}$", description="Expected installer SHA-256"),
    ] = None
    package_name: Annotated[
        str,
        Field(pattern=r"^[a-z0-9@._+-]+$", description="Arch package name"),
    ] = "claude-desktop-bin"
    app_name: Annotated[
        str,
        Field(pattern=r"^[a-z0-9._-]+$", description="Launcher and icon name"),
    ] = "claude-desktop"
    release: Annotated[
        int,
        Field(ge=1, description="Package release number"),
    ] = 1
    arch: Annotated[
        str,
        Field(min_length=1, description="Target architecture"),
    ] = "x86_64"
    node_version: Annotated[
        str,
        Field(pattern=r"^[0-9]+$", description="Node.js major version for asar"),
    ] = "18"

    @property
    def artifact_name(self) -> str:
        """Get the file name makepkg produces for this build."""
        return f"{self.package_name}-{self.version}-{self.release}-{self.arch}.pkg.tar.zst"


class BuildConfigError(Exception):
    """Base exception for build configuration errors."""


class BuildConfigParseError(BuildConfigError):
    """Raised when the build config file cannot be parsed."""


def load_build_config(path: Path) -> BuildConfig:
    """Load build configuration from a TOML file.

    Args:
        path: Path to the config file. A missing file yields the defaults.

    Returns:
        Validated BuildConfig object.

    Raises:
        BuildConfigParseError: If the TOML syntax is invalid.
        BuildConfigError: If the file cannot be read or the content doesn't
            match the schema.
    """
    if not path.exists():
        return BuildConfig()

    try:
        with open(path, "rb") as f:
            data = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise BuildConfigParseError(f"Invalid TOML syntax in {path}: {e}") from e
    except OSError as e:
        raise BuildConfigError(f"Failed to read build config: {e}") from e

    try:
        return BuildConfig.model_validate(data)
    except ValidationError as e:
        raise BuildConfigError(f"Invalid build config content in {path}: {e}") from e


def save_build_config(config: BuildConfig, path: Path) -> Path:
    """Save build configuration to a TOML file.

    The file is written atomically by first writing to a temporary file
    and then using os.replace() for atomic rename.

    Args:
        config: The BuildConfig object to save.
        path: Destination path.

    Returns:
        Path where the config was saved.

    Raises:
        BuildConfigError: If the file cannot be written.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    data = config.model_dump(exclude_none=True)

    tmp_path: Path | None = None
    try:
        with NamedTemporaryFile(
            mode="wb",
            dir=path.parent,
            delete=False,
            suffix=".tmp",
        ) as f:
            tmp_path = Path(f.name)
            tomli_w.dump(data, f)
        os.replace(str(tmp_path), str(path))
    except OSError as e:
        if tmp_path is not None and tmp_path.exists():
            tmp_path.unlink()
        raise BuildConfigError(f"Failed to write build config: {e}") from e

    return path
