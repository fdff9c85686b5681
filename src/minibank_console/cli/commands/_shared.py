"""Shared CLI plumbing for command modules.

Config and backend creation, format-option handling, and output helpers.
"""

from __future__ import annotations

import asyncio
import json
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, Any, TypeVar

import typer

from minibank_console.cli.output import get_formatter, write_output
from minibank_console.core.client import BackendClient
from minibank_console.core.config import load_config, resolve_config
from minibank_console.core.screen import ResourceScreen

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Coroutine

    import httpx

    from minibank_console.cli.output import OutputFormat
    from minibank_console.core.config import ResolvedConfig
    from minibank_console.core.models import QueryResult
    from minibank_console.core.records import R, ResourceKind
    from minibank_console.formatters.base import Formatter

T = TypeVar("T")


def get_config(ctx: typer.Context) -> ResolvedConfig:
    obj = ctx.ensure_object(dict)
    cached = obj.get("resolved_config")
    if cached is not None:
        return cached

    config = load_config(obj.get("config_file"))
    resolved = resolve_config(
        config,
        profile_name=obj.get("profile"),
        api_url=obj.get("api_url"),
        timeout=obj.get("timeout"),
    )
    obj["resolved_config"] = resolved
    return resolved


def get_backend(ctx: typer.Context) -> BackendClient:
    obj = ctx.ensure_object(dict)
    transport: httpx.AsyncBaseTransport | None = obj.get("transport")
    return BackendClient(get_config(ctx), transport=transport)


@asynccontextmanager
async def open_screen(
    ctx: typer.Context, kind: ResourceKind[R]
) -> AsyncIterator[ResourceScreen[R]]:
    screen = ResourceScreen(get_backend(ctx), kind)
    try:
        yield screen
    finally:
        await screen.close()


def run_async(coro: Coroutine[Any, Any, T]) -> T:
    return asyncio.run(coro)


def format_options(ctx: typer.Context) -> dict[str, Any]:
    obj = ctx.ensure_object(dict)
    resolved = get_config(ctx)
    default_format = (
        resolved.default_format
        if resolved.sources.get("default_format", "default") != "default"
        else None
    )
    return {
        "format_flag": obj.get("format"),
        "default_format": default_format,
        "compact": obj.get("compact", False),
        "width": obj.get("width", 40),
        "no_header": obj.get("no_header", False),
    }


def formatter_for(ctx: typer.Context, **overrides: Any) -> Formatter:
    opts = format_options(ctx)
    opts.update(overrides)
    return get_formatter(**opts)


def output_result(ctx: typer.Context, result: QueryResult | None, **overrides: Any) -> None:
    write_output(formatter_for(ctx, **overrides), result)


def echo_draft(draft: Any) -> None:
    """Show a kept draft on stderr so the operator can retry with it."""
    body = json.dumps(draft.model_dump(mode="json", by_alias=True))
    typer.echo(f"Draft kept: {body}", err=True)


def apply_local_format_options(
    ctx: typer.Context,
    *,
    format: OutputFormat | None = None,
    table: bool = False,
    compact: bool = False,
    width: int | None = None,
    no_header: bool = False,
) -> None:
    if format is not None or table or compact or width is not None or no_header:
        obj = ctx.ensure_object(dict)
        if format is not None:
            obj["format"] = format.value
        if table:
            obj["format"] = "table"
        if compact:
            obj["compact"] = compact
        if width is not None:
            obj["width"] = width
        if no_header:
            obj["no_header"] = no_header
