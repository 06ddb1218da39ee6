"""Installer download cache.

Keeps fetched installers in a per-user cache directory, keyed by version
and file name, so repeated builds of the same version transfer nothing.
Downloads land in a ``.part`` file first and are only renamed into place
after wget reports success, so a failed transfer never corrupts the cache.
"""

from __future__ import annotations

import hashlib
import logging
import shutil
from dataclasses import dataclass
from pathlib import Path
from urllib.parse import urlparse

from claudepkg.core.context import Identity, Operation, PrivilegeContext, ToolRunner
from claudepkg.core.errors import TransferError

logger = logging.getLogger(__name__)

_CHUNK_SIZE = 1024 * 1024


@dataclass(frozen=True, slots=True)
class FetchResult:
    """Outcome of ensuring an installer is cached.

    Attributes:
        path: Cached installer path.
        downloaded: True if this call performed a network transfer.
        sha256: Hex digest of the cached file.
    """

    path: Path
    downloaded: bool
    sha256: str


def file_sha256(path: Path) -> str:
    """Hash a file without loading it into memory at once."""
    digest = hashlib.sha256()
    with open(path, "rb") as f:
        while chunk := f.read(_CHUNK_SIZE):
            digest.update(chunk)
    return digest.hexdigest()


def installer_filename(url: str) -> str:
    """Derive the cached file name from the download URL.

    Args:
        url: Installer URL.

    Returns:
        Last path segment of the URL, or "installer.exe" if it has none.
    """
    name = Path(urlparse(url).path).name
    return name or "installer.exe"


class FetchCache:
    """Persistent cache of downloaded installers.

    Attributes:
        cache_dir: Root of the download cache.
    """

    def __init__(
        self,
        cache_dir: Path,
        runner: ToolRunner,
        privileges: PrivilegeContext,
    ) -> None:
        """Initialize the cache.

        Args:
            cache_dir: Root of the download cache.
            runner: Tool runner used for downloads.
            privileges: Privilege context for ownership hand-over.
        """
        self.cache_dir = cache_dir
        self._runner = runner
        self._privileges = privileges

    def cache_path_for(self, url: str, version: str) -> Path:
        """Get the cache location of an installer.

        Args:
            url: Installer URL.
            version: Installer version string.

        Returns:
            Path to <cache_dir>/<version>/<file name>.
        """
        return self.cache_dir / version / installer_filename(url)

    def _download(self, url: str, target: Path) -> None:
        self._privileges.make_dirs(target.parent)
        part = target.with_name(target.name + ".part")
        part.unlink(missing_ok=True)
        try:
            self._runner.run(
                Operation(
                    description=f"Downloading {url}",
                    argv=["wget", "-O", str(part), url],
                    identity=Identity.USER,
                    error=TransferError,
                )
            )
        except TransferError:
            part.unlink(missing_ok=True)
            raise
        part.replace(target)

    def ensure(
        self,
        url: str,
        version: str,
        *,
        force: bool = False,
        sha256: str | None = None,
    ) -> FetchResult:
        """Make sure the installer for this version is cached.

        Args:
            url: Installer URL.
            version: Installer version string.
            force: Download even if a cached copy exists.
            sha256: Expected digest. If given, a mismatching cache hit is
                re-downloaded and a mismatching download is fatal.

        Returns:
            FetchResult describing the cached file.

        Raises:
            TransferError: If the download fails or its digest is wrong.
        """
        target = self.cache_path_for(url, version)
        expected = sha256.lower() if sha256 else None

        if not force and target.is_file():
            actual = file_sha256(target)
            if expected is None or actual == expected:
                logger.info("Using cached installer %s", target)
                return FetchResult(path=target, downloaded=False, sha256=actual)
            self._runner.warn(
                f"Cached installer {target.name} does not match the expected "
                "SHA-256; downloading again"
            )

        self._download(url, target)
        actual = file_sha256(target)
        if expected is not None and actual != expected:
            target.unlink(missing_ok=True)
            msg = f"Downloaded installer hash mismatch: expected {expected}, got {actual}"
            raise TransferError(msg)
        logger.info("Downloaded %s (sha256 %s)", target, actual)
        return FetchResult(path=target, downloaded=True, sha256=actual)

    def copy_to(self, result: FetchResult, directory: Path) -> Path:
        """Copy a cached installer into the build workspace.

        Args:
            result: Result of :meth:`ensure`.
            directory: Destination directory.

        Returns:
            Path of the copy.
        """
        destination = directory / result.path.name
        shutil.copy2(result.path, destination)
        self._privileges.chown_tree(destination)
        return destination

    def entries(self) -> list[Path]:
        """List cached installer files, sorted by path."""
        if not self.cache_dir.is_dir():
            return []
        return sorted(
            p for p in self.cache_dir.glob("*/*") if p.is_file() and not p.name.endswith(".part")
        )

    def clear(self) -> int:
        """Delete the whole cache.

        Returns:
            Number of cached installers removed.
        """
        count = len(self.entries())
        if self.cache_dir.exists():
            shutil.rmtree(self.cache_dir)
        return count
