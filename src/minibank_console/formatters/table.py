"""Rich table formatter for QueryResult output.

Three cases: no result renders nothing, an empty result renders the
header with a placeholder spanning every column, anything else renders
one line per row. Both tables end with an "N rows found" summary.
"""

from __future__ import annotations

import shutil
from io import StringIO
from typing import TYPE_CHECKING

from rich.console import Console
from rich.table import Table

from minibank_console.formatters.base import layout_rows, registry

if TYPE_CHECKING:
    from collections.abc import Iterator

    from minibank_console.core.models import QueryResult

NO_ROWS = "No rows returned"


def _truncate(value: str, width: int) -> str:
    if len(value) <= width:
        return value
    return value[: width - 1] + "…"


class TableFormatter:
    def __init__(
        self,
        width: int = 40,
        empty_message: str = NO_ROWS,
        summary: bool = True,
    ) -> None:
        self.width = width
        self.empty_message = empty_message
        self.summary = summary

    def format(self, result: QueryResult | None) -> Iterator[str]:
        if result is None:
            return

        rows = layout_rows(result)
        # The caption is centred under the header across the full table width.
        table = Table(
            show_edge=True,
            pad_edge=True,
            caption=self.empty_message if not rows else None,
        )
        for col in result.columns:
            table.add_column(col, no_wrap=True)

        for row in rows:
            table.add_row(*(_truncate(v, self.width) for v in row))

        buf = StringIO()
        term_width = shutil.get_terminal_size((120, 24)).columns
        console = Console(file=buf, force_terminal=False, width=term_width)
        console.print(table)
        yield buf.getvalue().rstrip("\n")

        if self.summary:
            yield f"{result.row_count} rows found"


registry.register("table", TableFormatter)
