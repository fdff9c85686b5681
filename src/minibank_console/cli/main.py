"""MiniBank Console main entry point and command registration."""

from __future__ import annotations

import atexit
from pathlib import Path  # noqa: TC003
from typing import Annotated

import sentry_sdk
import typer

from minibank_console.__about__ import __version__
from minibank_console.cli.commands._shared import get_config
from minibank_console.cli.commands.config import config_app
from minibank_console.cli.commands.query import query_command, shell_command
from minibank_console.cli.commands.report import report_command
from minibank_console.cli.commands.resources import (
    transactions_app,
    users_app,
    wallets_app,
)
from minibank_console.cli.output import OutputFormat  # noqa: TC001
from minibank_console.core.exceptions import ConsoleError
from minibank_console.core.logging import setup_logging
from minibank_console.core.monitoring import setup_sentry


class SentryTestError(RuntimeError):
    """Test exception for validating Sentry integration."""


app = typer.Typer(
    help="MiniBank Console - query and manage a MiniBank backend",
    no_args_is_help=True,
)

app.add_typer(config_app, name="config")
app.add_typer(users_app, name="users")
app.add_typer(wallets_app, name="wallets")
app.add_typer(transactions_app, name="transactions")
app.command("query")(query_command)
app.command("shell")(shell_command)
app.command("report")(report_command)


def version_callback(value: bool) -> None:
    if value:
        typer.echo(f"minibank-console {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    ctx: typer.Context,
    version: Annotated[
        bool,
        typer.Option(
            "--version",
            "-V",
            help="Show version and exit",
            callback=version_callback,
            is_eager=True,
        ),
    ] = False,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", help="Enable verbose logging"),
    ] = False,
    json_logs: Annotated[
        bool,
        typer.Option("--json-logs", help="Write logs to stderr as JSON lines"),
    ] = False,
    profile: Annotated[
        str | None,
        typer.Option("--profile", "-P", help="Named backend profile"),
    ] = None,
    api_url: Annotated[
        str | None,
        typer.Option("--api-url", help="Backend base URL"),
    ] = None,
    timeout: Annotated[
        float | None,
        typer.Option("--timeout", "-t", help="Per-request timeout in seconds"),
    ] = None,
    config_file: Annotated[
        Path | None,
        typer.Option("--config", help="Path to config file"),
    ] = None,
    format: Annotated[
        OutputFormat | None,
        typer.Option("--format", "-f", help="Output format: table|json|csv"),
    ] = None,
    table: Annotated[
        bool,
        typer.Option("--table", help="Shorthand for --format table"),
    ] = False,
    compact: Annotated[
        bool,
        typer.Option("--compact", help="Compact JSON output (no indentation)"),
    ] = False,
    width: Annotated[
        int,
        typer.Option("--width", help="Column width for table format"),
    ] = 40,
    no_header: Annotated[
        bool,
        typer.Option("--no-header", help="Suppress header row in CSV output"),
    ] = False,
) -> None:
    """MiniBank Console - query and manage a MiniBank backend."""
    setup_logging(verbose, json_logs=json_logs)

    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["profile"] = profile
    ctx.obj["api_url"] = api_url
    ctx.obj["timeout"] = timeout
    ctx.obj["config_file"] = config_file

    # Format options (global)
    fmt = "table" if table else (format.value if format else None)
    ctx.obj["format"] = fmt
    ctx.obj["compact"] = compact
    ctx.obj["width"] = width
    ctx.obj["no_header"] = no_header

    resolved = get_config(ctx)
    if setup_sentry(resolved.sentry_dsn, resolved.environment):
        transaction = sentry_sdk.start_transaction(
            op="cli", name=ctx.invoked_subcommand or "minibank"
        )
        transaction.__enter__()

        def cleanup() -> None:
            transaction.__exit__(None, None, None)
            sentry_sdk.flush(timeout=2)

        atexit.register(cleanup)


def run() -> None:
    """Entry point with global error handling."""
    try:
        app()
    except ConsoleError as e:
        sentry_sdk.capture_exception(e)
        typer.echo(f"Error: {e.message}", err=True)
        raise SystemExit(e.exit_code) from None
    except SystemExit:
        raise
    except KeyboardInterrupt:
        raise SystemExit(130) from None
    except Exception as e:
        sentry_sdk.capture_exception(e)
        typer.echo(f"Error: {e}", err=True)
        raise SystemExit(1) from None


@app.command("test-sentry")
def test_sentry() -> None:
    """Send test events to Sentry for validation."""
    if not sentry_sdk.is_initialized():
        typer.echo("Sentry is not configured. Set sentry_dsn in the config or SENTRY_DSN.")
        return

    typer.echo("Sending test error to Sentry...")
    try:
        raise SentryTestError("minibank-console Sentry test error")
    except Exception as e:
        sentry_sdk.capture_exception(e)

    typer.echo("Sending test performance span to Sentry...")
    with sentry_sdk.start_transaction(op="test", name="test_sentry") as txn:
        with sentry_sdk.start_span(op="test.child", description="Child span"):
            pass
        txn.set_status("ok")

    sentry_sdk.flush(timeout=5)
    typer.echo("Test events sent.")
