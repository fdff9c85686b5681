from __future__ import annotations

from typing import Annotated

import typer

from minibank_console.cli.commands._shared import (
    apply_local_format_options,
    get_backend,
    output_result,
    run_async,
)
from minibank_console.cli.output import OutputFormat  # noqa: TC001
from minibank_console.core.report import ReportViewer

NO_DATA = "No data found"


async def _refresh(viewer: ReportViewer) -> None:
    async with viewer.backend:
        await viewer.refresh()


def report_command(
    ctx: typer.Context,
    format: Annotated[
        OutputFormat | None,
        typer.Option("--format", "-f", help="Output format: table|json|csv"),
    ] = None,
    table: Annotated[
        bool,
        typer.Option("--table", help="Shorthand for --format table"),
    ] = False,
) -> None:
    """
    Show every user with their wallet balances.

    Read-only join of users and wallets served by the backend's
    user-wallets report.
    """
    apply_local_format_options(ctx, format=format, table=table)

    viewer = ReportViewer(get_backend(ctx))
    run_async(_refresh(viewer))

    if viewer.last_error is not None:
        typer.echo(f"Error: {viewer.error_message}", err=True)
        raise typer.Exit(viewer.last_error.exit_code)

    output_result(ctx, viewer.result, empty_message=NO_DATA, summary=False)
