"""Build configuration commands.

Shows or initializes the TOML file holding the installer URL, version,
optional checksum and package naming.
"""

from pathlib import Path
from typing import Annotated

import typer
from pydantic import ValidationError
from rich.table import Table

from claudepkg.core.config import (
    BuildConfig,
    BuildConfigError,
    load_build_config,
    save_build_config,
)
from claudepkg.core.environment import current_privileges
from claudepkg.core.paths import get_build_config_path
from claudepkg.utils.formatting import console, print_error, print_info, print_success

app = typer.Typer(
    help="Show or create the build configuration.",
    no_args_is_help=True,
)


def _config_path(path: Path | None) -> Path:
    return path or get_build_config_path(current_privileges().real_home)


@app.command()
def show(
    path: Annotated[
        Path | None,
        typer.Option("--config", "-c", help="Config file to read."),
    ] = None,
) -> None:
    """Show the effective build configuration."""
    config_path = _config_path(path)
    try:
        config = load_build_config(config_path)
    except BuildConfigError as e:
        print_error(str(e))
        raise typer.Exit(code=1) from e

    source = str(config_path) if config_path.exists() else f"{config_path} (not found, defaults)"
    table = Table(
        title="Build Configuration",
        caption=source,
        show_header=True,
        header_style="bold_header",
        border_style="border",
    )
    table.add_column("Key", no_wrap=True)
    table.add_column("Value")
    for key, value in config.model_dump().items():
        table.add_row(key, "[muted]-[/muted]" if value is None else str(value))
    table.add_row("artifact", f"[info]{config.artifact_name}[/info]")
    console.print(table)


@app.command()
def init(
    path: Annotated[
        Path | None,
        typer.Option("--config", "-c", help="Config file to write."),
    ] = None,
    installer_version: Annotated[
        str | None,
        typer.Option("--installer-version", help="Installer version string."),
    ] = None,
    url: Annotated[
        str | None,
        typer.Option("--url", help="Installer download URL."),
    ] = None,
    sha256: Annotated[
        str | None,
        typer.Option("--sha256", help="Expected installer SHA-256."),
    ] = None,
    force: Annotated[
        bool,
        typer.Option("--force", help="Overwrite an existing config file."),
    ] = False,
) -> None:
    """Write a build config with defaults and the given overrides."""
    config_path = _config_path(path)
    if config_path.exists() and not force:
        print_error(f"Config already exists: {config_path}")
        print_info("Use --force to overwrite it.")
        raise typer.Exit(code=1)

    overrides: dict[str, str] = {}
    if installer_version is not None:
        overrides["version"] = installer_version
    if url is not None:
        overrides["download_url"] = url
    if sha256 is not None:
        overrides["sha256"] = sha256

    try:
        config = BuildConfig(**overrides)
    except ValidationError as e:
        print_error(f"Invalid value: {e}")
        raise typer.Exit(code=1) from e

    privileges = current_privileges()
    try:
        privileges.make_dirs(config_path.parent)
        saved = save_build_config(config, config_path)
    except (BuildConfigError, OSError) as e:
        print_error(str(e))
        raise typer.Exit(code=1) from e

    privileges.chown_tree(saved)
    print_success(f"Config written: {saved}")
