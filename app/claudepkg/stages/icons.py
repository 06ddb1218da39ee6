"""Icon extraction and hicolor theme installation.

The application icon lives as an icon group resource inside claude.exe.
wrestool pulls out the .ico, icotool splits it into one PNG per embedded
image, and each wanted size is installed into the hicolor theme layout.
"""

from __future__ import annotations

import logging
import os
import shutil
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType

from claudepkg.core.context import Identity, Operation, ToolRunner
from claudepkg.core.errors import ExtractionError
from PIL import Image, UnidentifiedImageError

logger = logging.getLogger(__name__)

ICON_SIZES: tuple[int, ...] = (16, 24, 32, 48, 64, 256)

# icotool output names for the current vendor build. The index in each
# name is the image's position inside claude.ico and may shift between
# releases; resolve_icon() falls back to reading real PNG dimensions.
ICON_FILES: MappingProxyType[int, str] = MappingProxyType(
    {
        16: "claude_13_16x16x32.png",
        24: "claude_11_24x24x32.png",
        32: "claude_10_32x32x32.png",
        48: "claude_8_48x48x32.png",
        64: "claude_7_64x64x32.png",
        256: "claude_6_256x256x32.png",
    }
)

# RT_GROUP_ICON
ICON_RESOURCE_TYPE = "14"

ICON_MODE = 0o644


@dataclass
class IconSet:
    """Icons installed by one run.

    Attributes:
        entries: (size, installed path) pairs, in ascending size order.
        missing: Sizes for which no source image was found.
    """

    entries: list[tuple[int, Path]] = field(default_factory=list)
    missing: list[int] = field(default_factory=list)

    @property
    def complete(self) -> bool:
        """Check if every size was installed."""
        return not self.missing


def png_dimensions(path: Path) -> tuple[int, int] | None:
    """Read the pixel size of a PNG image.

    Args:
        path: Image file.

    Returns:
        (width, height), or None if the file is not a readable PNG.
    """
    try:
        with Image.open(path) as img:
            if img.format != "PNG":
                return None
            return img.size
    except (OSError, UnidentifiedImageError):
        return None


def resolve_icon(source_dir: Path, size: int) -> Path | None:
    """Find the decomposed image for one size.

    The known file name wins. Otherwise any PNG in source_dir whose pixel
    dimensions are size x size is used, preferring the largest file
    (the highest colour depth).

    Args:
        source_dir: Directory icotool wrote into.
        size: Wanted edge length in pixels.

    Returns:
        Path to the image, or None if there is none.
    """
    known = ICON_FILES.get(size)
    if known is not None and (source_dir / known).is_file():
        return source_dir / known

    matches = [p for p in source_dir.glob("*.png") if png_dimensions(p) == (size, size)]
    if not matches:
        return None
    chosen = max(matches, key=lambda p: p.stat().st_size)
    logger.info("Using %s for %dx%d (found by dimensions)", chosen.name, size, size)
    return chosen


class IconPipeline:
    """Extracts the application icon and installs it at every theme size."""

    def __init__(self, runner: ToolRunner, work_dir: Path, app_name: str) -> None:
        """Initialize the icon pipeline.

        Args:
            runner: Tool runner for wrestool and icotool.
            work_dir: Directory receiving the .ico and the split PNGs.
            app_name: Icon name inside the theme.
        """
        self._runner = runner
        self._work_dir = work_dir
        self._app_name = app_name

    def extract(self, executable: Path) -> None:
        """Extract the icon group from the executable and split it.

        Args:
            executable: claude.exe from the extracted application tree.

        Raises:
            ExtractionError: If either tool fails.
        """
        ico = self._work_dir / "claude.ico"
        self._runner.run(
            Operation(
                description="Extracting icon resource",
                argv=[
                    "wrestool",
                    "-x",
                    "-t",
                    ICON_RESOURCE_TYPE,
                    str(executable),
                    "-o",
                    str(ico),
                ],
                identity=Identity.USER,
                cwd=self._work_dir,
                error=ExtractionError,
            )
        )
        self._runner.run(
            Operation(
                description="Splitting icon into images",
                argv=["icotool", "-x", ico.name],
                identity=Identity.USER,
                cwd=self._work_dir,
                error=ExtractionError,
            )
        )

    def install(self, icons_root: Path) -> IconSet:
        """Install every size into ``<icons_root>/hicolor``.

        A missing image or a failed copy only warns.

        Args:
            icons_root: share/icons directory of the package root.

        Returns:
            IconSet of installed and missing sizes.
        """
        icon_set = IconSet()
        for size in ICON_SIZES:
            dimension = f"{size}x{size}"
            target_dir = icons_root / "hicolor" / dimension / "apps"
            source = resolve_icon(self._work_dir, size)
            if source is None:
                self._runner.warn(f"Missing {dimension} icon")
                icon_set.missing.append(size)
                continue

            target = target_dir / f"{self._app_name}.png"
            try:
                target_dir.mkdir(parents=True, exist_ok=True)
                shutil.copyfile(source, target)
                os.chmod(target, ICON_MODE)
            except OSError as e:
                self._runner.warn(f"Could not install {dimension} icon: {e}")
                icon_set.missing.append(size)
                continue

            logger.info("Installed %s icon", dimension)
            icon_set.entries.append((size, target))
        return icon_set

    def run(self, resources: Path, icons_root: Path) -> IconSet:
        """Extract icons from the application tree and install them.

        Args:
            resources: Extracted lib/net45 directory.
            icons_root: share/icons directory of the package root.

        Returns:
            IconSet of installed and missing sizes.

        Raises:
            ExtractionError: If the executable is missing or a tool fails.
        """
        executable = resources / "claude.exe"
        if not executable.is_file():
            raise ExtractionError(f"{executable} not found")
        self.extract(executable)
        return self.install(icons_root)
