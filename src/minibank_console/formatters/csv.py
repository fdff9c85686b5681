"""CSV formatter for QueryResult output (RFC 4180 compliant)."""

from __future__ import annotations

import csv
from io import StringIO
from typing import TYPE_CHECKING

from minibank_console.formatters.base import layout_rows, registry

if TYPE_CHECKING:
    from collections.abc import Iterator

    from minibank_console.core.models import QueryResult


def _write_row(values: list[str]) -> str:
    buf = StringIO()
    writer = csv.writer(buf)
    writer.writerow(values)
    return buf.getvalue().rstrip("\r\n")


class CSVFormatter:
    def __init__(self, no_header: bool = False) -> None:
        self.no_header = no_header

    def format(self, result: QueryResult | None) -> Iterator[str]:
        if result is None:
            return

        if not self.no_header:
            yield _write_row(list(result.columns))

        for row in layout_rows(result):
            yield _write_row(row)


registry.register("csv", CSVFormatter)
