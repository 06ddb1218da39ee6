"""Main CLI application entry point.

Defines the Typer application and global options.
"""

import logging
from typing import Annotated

import typer
from rich.logging import RichHandler

from claudepkg import __version__
from claudepkg.cli.commands import build, cache, config
from claudepkg.utils.formatting import err_console

# Create main Typer app
app = typer.Typer(
    name="claudepkg",
    help="Build an Arch Linux package of Claude Desktop from the Windows installer.",
    no_args_is_help=True,
    rich_markup_mode="rich",
    context_settings={"help_option_names": ["-h", "--help"]},
)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"claudepkg version {__version__}")
        raise typer.Exit()


def configure_logging(verbose: bool) -> None:
    """Route log records through Rich on stderr.

    Stage status lines are printed directly, so logging stays quiet
    unless --verbose is given.

    Args:
        verbose: Show every command and its output.
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.ERROR,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=err_console, show_path=False, markup=False)],
        force=True,
    )


@app.callback()
def main(
    version: Annotated[
        bool | None,
        typer.Option(
            "--version",
            "-V",
            callback=version_callback,
            is_eager=True,
            help="Show version and exit.",
        ),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option(
            "--verbose",
            "-v",
            help="Log every external command and its output.",
        ),
    ] = False,
) -> None:
    """claudepkg - package Claude Desktop for Arch Linux.

    Downloads the Windows installer, extracts and patches the Electron
    application, and builds a pacman package with makepkg.
    """
    configure_logging(verbose)


# Register commands
app.add_typer(build.app, name="build")
app.add_typer(config.app, name="config")
app.add_typer(cache.app, name="cache")


if __name__ == "__main__":
    app()
