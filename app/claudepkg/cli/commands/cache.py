"""Download cache commands."""

from typing import Annotated

import typer
from rich.table import Table

from claudepkg.core.context import ToolRunner
from claudepkg.core.environment import current_privileges
from claudepkg.core.paths import get_download_cache_dir
from claudepkg.fetch import FetchCache
from claudepkg.utils.formatting import console, print_info, print_success

app = typer.Typer(
    help="Inspect or clear the installer download cache.",
    no_args_is_help=True,
)


def _cache() -> FetchCache:
    privileges = current_privileges()
    return FetchCache(
        get_download_cache_dir(privileges.real_home),
        ToolRunner(privileges),
        privileges,
    )


def _format_size(size_bytes: int) -> str:
    size = float(size_bytes)
    for unit in ("B", "KB", "MB"):
        if size < 1024:
            return f"{size:.0f} B" if unit == "B" else f"{size:.1f} {unit}"
        size /= 1024
    return f"{size:.1f} GB"


@app.command()
def show() -> None:
    """List cached installers."""
    cache = _cache()
    entries = cache.entries()
    if not entries:
        print_info(f"Cache is empty ({cache.cache_dir})")
        return

    table = Table(
        title="Cached Installers",
        caption=str(cache.cache_dir),
        show_header=True,
        header_style="bold_header",
        border_style="border",
    )
    table.add_column("Version", no_wrap=True)
    table.add_column("File")
    table.add_column("Size", style="info", justify="right")
    for entry in entries:
        table.add_row(entry.parent.name, entry.name, _format_size(entry.stat().st_size))
    console.print(table)


@app.command()
def clear(
    yes: Annotated[
        bool,
        typer.Option("--yes", "-y", help="Skip confirmation prompt."),
    ] = False,
) -> None:
    """Delete every cached installer."""
    cache = _cache()
    if not cache.entries():
        print_info("Cache is already empty.")
        return

    if not yes:
        typer.confirm(f"Delete everything in {cache.cache_dir}?", abort=True)

    removed = cache.clear()
    print_success(f"Removed {removed} cached installer(s).")
