"""Build command implementation.

Runs the full pipeline: probe the host, install missing tools, fetch the
installer (cached), extract, install icons, patch app.asar, and build
the package with makepkg.
"""

from pathlib import Path
from typing import Annotated

import typer

from claudepkg.cli.display import create_stages_table, print_warnings_summary
from claudepkg.core.config import BuildConfig, BuildConfigError, load_build_config
from claudepkg.core.environment import current_privileges, probe_environment
from claudepkg.core.paths import get_build_config_path, get_default_workspace
from claudepkg.core.workspace import BuildWorkspace
from claudepkg.pipeline import BuildPipeline
from claudepkg.utils.formatting import console, print_error, print_info, print_success

app = typer.Typer(
    help="Build the Claude Desktop package.",
    invoke_without_command=True,
)


def _load_config(config_path: Path | None) -> BuildConfig:
    """Load the build config from an explicit path or the real user's default.

    Raises:
        typer.Exit: If the config file is invalid.
    """
    path = config_path or get_build_config_path(current_privileges().real_home)
    try:
        return load_build_config(path)
    except BuildConfigError as e:
        print_error(str(e))
        raise typer.Exit(code=1) from e


@app.callback(invoke_without_command=True)
def build(
    force_download: Annotated[
        bool,
        typer.Option(
            "--force-download",
            "-f",
            help="Download the installer even if a cached copy exists.",
        ),
    ] = False,
    config_path: Annotated[
        Path | None,
        typer.Option(
            "--config",
            "-c",
            help="Build config file (default: ~/.config/claudepkg/build.toml).",
        ),
    ] = None,
    workdir: Annotated[
        Path | None,
        typer.Option(
            "--workdir",
            "-w",
            help="Scratch workspace, wiped on every run (default: ./build).",
        ),
    ] = None,
    output_dir: Annotated[
        Path | None,
        typer.Option(
            "--output-dir",
            "-o",
            help="Where to place the finished package (default: current directory).",
        ),
    ] = None,
) -> None:
    """Build a pacman package from the Windows installer.

    Must run with sudo: missing tools are installed with pacman. Downloads,
    extraction, patching and makepkg run as the invoking user.
    """
    config = _load_config(config_path)
    workspace = BuildWorkspace((workdir or get_default_workspace()).resolve())
    destination = (output_dir or Path.cwd()).resolve()

    print_info(f"Building {config.package_name} {config.version}")

    pipeline = BuildPipeline(
        config,
        workspace,
        destination,
        force_download=force_download,
        probe=probe_environment,
    )
    report = pipeline.run()

    console.print()
    console.print(create_stages_table(report))
    print_warnings_summary(report)

    if report.error is not None or report.artifact is None:
        print_error(f"{report.error or 'Build did not produce a package'}")
        raise typer.Exit(code=1)

    print_success(f"Package built successfully at: {report.artifact}")
    print_info(f"Install it with: sudo pacman -U {report.artifact}")
