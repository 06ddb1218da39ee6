"""Build pipeline orchestration.

Runs the stages strictly in order:
environment -> dependencies -> fetch -> extract -> icons -> patch -> package.
Each stage prints a start line and a success or failure line. The first
PipelineError aborts the run, and an OSError counts as a failure of the
stage that hit it. There is no partial-result reuse between runs except
the download cache.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from types import MappingProxyType

from claudepkg.core.config import BuildConfig
from claudepkg.core.context import ToolRunner
from claudepkg.core.environment import HostEnvironment, probe_environment
from claudepkg.core.errors import (
    DependencyError,
    ExtractionError,
    HostEnvironmentError,
    PackageBuildError,
    PatchError,
    PipelineError,
    TransferError,
)
from claudepkg.core.paths import get_download_cache_dir
from claudepkg.core.workspace import BuildWorkspace
from claudepkg.deps import DependencyResolver, find_seven_zip
from claudepkg.fetch import FetchCache, FetchResult
from claudepkg.operators.base import Operator
from claudepkg.operators.pacman import PacmanOperator
from claudepkg.stages.assemble import PackageAssembler
from claudepkg.stages.icons import IconPipeline, IconSet
from claudepkg.stages.patcher import ApplicationPatcher
from claudepkg.stages.unpack import ArchiveUnpacker
from claudepkg.utils.formatting import print_stage
from claudepkg.utils.shell import command_exists

logger = logging.getLogger(__name__)


class StageStatus(Enum):
    """Outcome of one stage."""

    OK = "ok"
    FAILED = "failed"
    NOT_RUN = "not run"


@dataclass(frozen=True, slots=True)
class StageOutcome:
    """Result of one stage for the summary table.

    Attributes:
        name: Stage label.
        status: What happened.
        detail: Short description of the result or the failure.
    """

    name: str
    status: StageStatus
    detail: str = ""


@dataclass
class BuildReport:
    """Everything a finished (or aborted) run produced.

    Attributes:
        outcomes: One entry per stage, in pipeline order.
        warnings: Non-fatal problems, in order.
        artifact: Path of the built package, if the run succeeded.
        error: The fatal error that stopped the run, if any.
    """

    outcomes: list[StageOutcome] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    artifact: Path | None = None
    error: PipelineError | None = None

    @property
    def success(self) -> bool:
        """Check if the run produced a package."""
        return self.error is None and self.artifact is not None


STAGE_NAMES: tuple[str, ...] = (
    "environment",
    "dependencies",
    "fetch",
    "extract",
    "icons",
    "patch",
    "package",
)

# Error class used when a stage fails on the local filesystem.
STAGE_ERRORS: MappingProxyType[str, type[PipelineError]] = MappingProxyType(
    {
        "environment": HostEnvironmentError,
        "dependencies": DependencyError,
        "fetch": TransferError,
        "extract": ExtractionError,
        "icons": ExtractionError,
        "patch": PatchError,
        "package": PackageBuildError,
    }
)


class BuildPipeline:
    """One build run over an explicit workspace.

    Attributes:
        config: Build configuration.
        workspace: Workspace owned by this run.
        output_dir: Where the finished package is placed.
        force_download: Ignore cached installers.
    """

    def __init__(
        self,
        config: BuildConfig,
        workspace: BuildWorkspace,
        output_dir: Path,
        *,
        force_download: bool = False,
        cache_dir: Path | None = None,
        probe: Callable[[], HostEnvironment] = probe_environment,
        operator_factory: Callable[[ToolRunner], Operator] = PacmanOperator,
        exists: Callable[[str], bool] | None = None,
    ) -> None:
        """Initialize the pipeline.

        Args:
            config: Build configuration.
            workspace: Workspace owned by this run.
            output_dir: Where the finished package is placed.
            force_download: Ignore cached installers.
            cache_dir: Download cache root. Defaults to the real user's cache.
            probe: Environment prober.
            operator_factory: Builds the package operator from a runner.
            exists: Command presence probe.
        """
        self.config = config
        self.workspace = workspace
        self.output_dir = output_dir
        self.force_download = force_download
        self._cache_dir = cache_dir
        self._probe = probe
        self._operator_factory = operator_factory
        self._exists = exists or command_exists

        self._host: HostEnvironment | None = None
        self._runner: ToolRunner | None = None
        self._fetched: FetchResult | None = None
        self._installer: Path | None = None
        self._resources: Path | None = None
        self._icons: IconSet | None = None
        self._patcher: ApplicationPatcher | None = None
        self._artifact: Path | None = None

    @property
    def host(self) -> HostEnvironment:
        """Probed host environment (available after the first stage)."""
        if self._host is None:
            raise RuntimeError("Environment has not been probed yet")
        return self._host

    @property
    def runner(self) -> ToolRunner:
        """Tool runner bound to the probed privilege context."""
        if self._runner is None:
            raise RuntimeError("Environment has not been probed yet")
        return self._runner

    # -- stages ---------------------------------------------------------------

    def _environment(self) -> str:
        self._host = self._probe()
        self._runner = ToolRunner(self._host.privileges)
        self.workspace.reset(self._host.privileges)
        return f"{self._host.distribution}, building for {self._host.privileges.real_user}"

    def _dependencies(self) -> str:
        resolver = DependencyResolver(self._operator_factory(self.runner), exists=self._exists)
        installed = resolver.resolve()
        if installed:
            return f"installed {', '.join(installed)}"
        return "all present"

    def _fetch(self) -> str:
        cache_dir = self._cache_dir or get_download_cache_dir(self.host.privileges.real_home)
        cache = FetchCache(cache_dir, self.runner, self.host.privileges)
        self._fetched = cache.ensure(
            self.config.download_url,
            self.config.version,
            force=self.force_download,
            sha256=self.config.sha256,
        )

        self._installer = cache.copy_to(self._fetched, self.workspace.root)
        state = "downloaded" if self._fetched.downloaded else "cached"
        return f"{state} {self._fetched.path.name} (sha256 {self._fetched.sha256[:12]})"

    def _extract(self) -> str:
        assert self._installer is not None
        seven_zip = find_seven_zip(self._exists) or "7z"
        unpacker = ArchiveUnpacker(self.runner, self.workspace, seven_zip=seven_zip)
        self._resources = unpacker.run(self._installer, self.config.version)
        return str(self._resources.relative_to(self.workspace.root))

    def _icon_stage(self) -> str:
        assert self._resources is not None
        pipeline = IconPipeline(self.runner, self.workspace.root, self.config.app_name)
        self._icons = pipeline.run(self._resources, self.workspace.icons_dir)
        total = len(self._icons.entries) + len(self._icons.missing)
        return f"{len(self._icons.entries)} of {total} sizes"

    def _patch(self) -> str:
        assert self._resources is not None
        self._patcher = ApplicationPatcher(
            self.runner,
            self.host.privileges,
            self.workspace.electron_app,
            self.host.nvm_script,
            self.config.node_version,
        )
        archive = self._patcher.run(self._resources / "resources")
        return f"repacked {archive.name}"

    def _package(self) -> str:
        assert self._patcher is not None
        assembler = PackageAssembler(
            self.runner,
            self.host.privileges,
            self.workspace,
            self.config,
        )
        assembler.stage(self._patcher.archive, self._patcher.unpacked)
        self._artifact = assembler.build(self.output_dir)
        return self._artifact.name

    # -- driver ---------------------------------------------------------------

    def _stages(self) -> list[tuple[str, Callable[[], str]]]:
        handlers: dict[str, Callable[[], str]] = {
            "environment": self._environment,
            "dependencies": self._dependencies,
            "fetch": self._fetch,
            "extract": self._extract,
            "icons": self._icon_stage,
            "patch": self._patch,
            "package": self._package,
        }
        return [(name, handlers[name]) for name in STAGE_NAMES]

    @staticmethod
    def _attempt(name: str, handler: Callable[[], str]) -> str:
        try:
            return handler()
        except OSError as e:
            raise STAGE_ERRORS[name](str(e)) from e

    def run(self) -> BuildReport:
        """Run every stage in order.

        Returns:
            BuildReport. On a fatal error, ``report.error`` is set and the
            remaining stages are marked as not run.
        """
        report = BuildReport()
        stages = self._stages()

        for index, (name, handler) in enumerate(stages):
            print_stage(name, "start")
            try:
                detail = self._attempt(name, handler)
            except PipelineError as e:
                logger.info("Stage %s failed: %s", name, e)
                print_stage(name, "failed", str(e))
                report.outcomes.append(StageOutcome(name, StageStatus.FAILED, str(e)))
                report.outcomes.extend(
                    StageOutcome(rest, StageStatus.NOT_RUN) for rest, _ in stages[index + 1 :]
                )
                report.error = e
                break
            print_stage(name, "ok", detail)
            report.outcomes.append(StageOutcome(name, StageStatus.OK, detail))

        if self._runner is not None:
            report.warnings = list(self._runner.warnings)
        report.artifact = self._artifact if report.error is None else None
        return report
