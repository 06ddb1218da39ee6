"""Shared Rich display functions for build reports.

Provides the summary table printed after every build run, successful or
not.
"""

from rich.markup import escape
from rich.table import Table

from claudepkg.pipeline import BuildReport, StageStatus
from claudepkg.utils.formatting import console


def create_stages_table(report: BuildReport) -> Table:
    """Create a Rich table displaying each stage's outcome.

    Args:
        report: Report of a finished or aborted run.

    Returns:
        Rich Table with Status, Stage and Detail columns.
    """
    table = Table(
        title="Build Summary",
        show_header=True,
        header_style="bold_header",
        border_style="border",
    )
    table.add_column("Status", width=8, justify="center")
    table.add_column("Stage", no_wrap=True)
    table.add_column("Detail")

    for outcome in report.outcomes:
        if outcome.status is StageStatus.OK:
            status = "[success]OK[/success]"
        elif outcome.status is StageStatus.FAILED:
            status = "[error]FAIL[/error]"
        else:
            status = "[muted]-[/muted]"
        table.add_row(status, outcome.name, f"[muted]{escape(outcome.detail)}[/muted]")

    return table


def print_warnings_summary(report: BuildReport) -> None:
    """Print the non-fatal problems collected during the run.

    Produces no output when there were none.

    Args:
        report: Report of a finished or aborted run.
    """
    if not report.warnings:
        return
    console.print(f"\n[warning]{len(report.warnings)} warning(s):[/warning]")
    for warning in report.warnings:
        console.print(f"  [muted]- {escape(warning)}[/muted]", highlight=False)
