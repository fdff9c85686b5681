"""Output format selection and TTY auto-detection."""

from __future__ import annotations

import sys
from enum import StrEnum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable

    from minibank_console.core.models import QueryResult
    from minibank_console.formatters.base import Formatter


class OutputFormat(StrEnum):
    TABLE = "table"
    JSON = "json"
    CSV = "csv"


def detect_tty() -> bool:
    return sys.stdout.isatty()


def resolve_format(format_flag: str | None, default: str | None = None) -> str:
    """Determine the output format.

    Explicit --format wins, then a configured default.
    Otherwise: table for TTY, csv for pipes.
    """
    if format_flag is not None:
        return format_flag
    if default is not None:
        return default
    return "table" if detect_tty() else "csv"


def get_formatter(
    format_flag: str | None = None,
    *,
    default_format: str | None = None,
    compact: bool = False,
    width: int = 40,
    no_header: bool = False,
    empty_message: str | None = None,
    summary: bool = True,
) -> Formatter:
    """Build and return the appropriate formatter instance."""
    # Import here to trigger registry population from formatter modules.
    import minibank_console.formatters.csv  # noqa: F401
    import minibank_console.formatters.json  # noqa: F401
    import minibank_console.formatters.table  # noqa: F401
    from minibank_console.formatters.base import registry

    fmt_name = resolve_format(format_flag, default_format)

    kwargs: dict[str, object] = {}
    if fmt_name == "table":
        kwargs["width"] = width
        kwargs["summary"] = summary
        if empty_message is not None:
            kwargs["empty_message"] = empty_message
    elif fmt_name == "json":
        kwargs["compact"] = compact
    elif fmt_name == "csv":
        kwargs["no_header"] = no_header

    return registry.get(fmt_name, **kwargs)


def write_lines(lines: Iterable[str]) -> None:
    for line in lines:
        sys.stdout.write(line + "\n")


def write_output(formatter: Formatter, result: QueryResult | None) -> None:
    """Write formatted output to stdout."""
    write_lines(formatter.format(result))
