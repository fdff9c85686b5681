from __future__ import annotations

import asyncio
import sys
from typing import TYPE_CHECKING, Annotated

import typer

from minibank_console.cli.commands._shared import (
    formatter_for,
    get_backend,
    output_result,
    run_async,
)
from minibank_console.cli.output import write_output
from minibank_console.core.console import QueryConsole
from minibank_console.core.exceptions import InputError
from minibank_console.core.exit_codes import ExitCode
from minibank_console.core.query_source import resolve_query_source

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from minibank_console.formatters.base import Formatter

SHELL_PROMPT = "minibank> "
_EXIT_COMMANDS = {"\\q", "exit", "quit"}
SHELL_HELP = """\
Enter a query and press Enter to run it.
  \\q, exit, quit   leave the shell
  \\help           show this message"""


async def _run_once(console: QueryConsole) -> None:
    async with console.backend:
        await console.run()


def query_command(
    ctx: typer.Context,
    file: Annotated[
        str | None,
        typer.Argument(help="Query file to execute"),
    ] = None,
    execute: Annotated[
        str | None,
        typer.Option("--execute", "-e", help="Execute inline query"),
    ] = None,
) -> None:
    """Execute a query from file, inline (-e), or stdin."""
    try:
        is_tty = sys.stdin.isatty()
    except (ValueError, AttributeError):
        is_tty = False
    if execute is None and file is None and is_tty:
        typer.echo(ctx.get_help())
        raise typer.Exit()

    try:
        text = resolve_query_source(inline=execute, file_path=file)
    except InputError as exc:
        typer.echo(str(exc), err=True)
        raise typer.Exit(ExitCode.INPUT_ERROR) from exc

    console = QueryConsole(get_backend(ctx), text)
    run_async(_run_once(console))

    if console.last_error is not None:
        typer.echo(f"Error: {console.error_message}", err=True)
        raise typer.Exit(console.last_error.exit_code)

    output_result(ctx, console.result)


async def shell_loop(
    console: QueryConsole,
    formatter: Formatter,
    read_line: Callable[[str], Awaitable[str]],
) -> int:
    """Prompt, run, render until the operator quits. Returns queries run.

    Failed queries print their error and the loop carries on.
    """
    runs = 0
    while True:
        try:
            line = (await read_line(SHELL_PROMPT)).strip()
        except (EOFError, KeyboardInterrupt):
            typer.echo("")
            return runs

        if not line:
            continue
        if line in _EXIT_COMMANDS:
            return runs
        if line == "\\help":
            typer.echo(SHELL_HELP)
            continue

        console.set_query_text(line)
        await console.run()
        runs += 1
        if console.error_message is not None:
            typer.echo(f"Error: {console.error_message}", err=True)
        else:
            write_output(formatter, console.result)


async def _read_stdin(prompt: str) -> str:
    return await asyncio.to_thread(input, prompt)


def shell_command(ctx: typer.Context) -> None:
    """Interactive query console; errors are shown and the session continues."""
    formatter = formatter_for(ctx)
    console = QueryConsole(get_backend(ctx))

    async def session() -> int:
        async with console.backend:
            return await shell_loop(console, formatter, _read_stdin)

    run_async(session())
