"""Pipeline stages that transform the installer into a package."""

from claudepkg.stages.assemble import PackageAssembler
from claudepkg.stages.icons import IconPipeline, IconSet
from claudepkg.stages.patcher import ApplicationPatcher
from claudepkg.stages.unpack import ArchiveUnpacker

__all__ = [
    "ApplicationPatcher",
    "ArchiveUnpacker",
    "IconPipeline",
    "IconSet",
    "PackageAssembler",
]
