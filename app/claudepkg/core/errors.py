"""Error taxonomy for the build pipeline.

Every fatal condition raises a PipelineError subclass. The first one
aborts the whole run; the CLI turns it into exit code 1. Best-effort
failures (missing icons, missing tray images) are warnings instead and
never appear here.
"""


class PipelineError(Exception):
    """Base exception for fatal build failures.

    Attributes:
        stage: Label of the stage category that failed.
    """

    stage = "pipeline"


class HostEnvironmentError(PipelineError):
    """Unsupported host, missing privilege, or missing nvm."""

    stage = "environment"


class DependencyError(PipelineError):
    """The system package manager failed to install dependencies."""

    stage = "dependencies"


class TransferError(PipelineError):
    """Downloading the installer failed or produced the wrong content."""

    stage = "fetch"


class ExtractionError(PipelineError):
    """An archive or icon extraction tool failed."""

    stage = "extract"


class PatchError(PipelineError):
    """Unpacking, patching, or repacking app.asar failed."""

    stage = "patch"


class PackageBuildError(PipelineError):
    """makepkg failed or did not produce the expected artifact."""

    stage = "package"
