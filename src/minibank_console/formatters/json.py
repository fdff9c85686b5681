"""JSON formatter for QueryResult output."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING

from minibank_console.formatters.base import registry

if TYPE_CHECKING:
    from collections.abc import Iterator

    from minibank_console.core.models import QueryResult


class JSONFormatter:
    def __init__(self, compact: bool = False) -> None:
        self.compact = compact

    def format(self, result: QueryResult | None) -> Iterator[str]:
        if result is None:
            return

        rows_as_dicts = [
            {
                col: result.cell(i, j).to_python()
                for j, col in enumerate(result.columns)
            }
            for i in range(result.row_count)
        ]

        if self.compact:
            yield json.dumps(rows_as_dicts, default=str)
        else:
            yield json.dumps(rows_as_dicts, indent=2, default=str)


registry.register("json", JSONFormatter)
