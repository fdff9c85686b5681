"""Formatter protocol, registry and the shared row layout.

Every formatter accepts ``None`` for "no result yet" and renders it as
no output at all, which keeps it distinct from an empty result.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Iterator

    from minibank_console.core.models import QueryResult


@runtime_checkable
class Formatter(Protocol):
    """Protocol for output formatters.

    Each formatter transforms a QueryResult into lines of formatted text.
    """

    def format(self, result: QueryResult | None) -> Iterator[str]:
        """Transform a QueryResult into formatted output lines."""
        ...


def layout_rows(result: QueryResult) -> list[list[str]]:
    """Display text for every row, one entry per column.

    The column list is authoritative: short rows are padded with blanks
    and cells past the last column are dropped.
    """
    width = len(result.columns)
    return [
        [result.cell(i, j).display() for j in range(width)]
        for i in range(result.row_count)
    ]


class FormatterRegistry:
    """Registry for looking up formatters by name."""

    def __init__(self) -> None:
        self._formatters: dict[str, type[Formatter]] = {}

    def register(self, name: str, formatter_class: type[Formatter]) -> None:
        self._formatters[name] = formatter_class

    def get(self, name: str, **kwargs: object) -> Formatter:
        """Return a formatter instance by name.

        Raises KeyError if the format name is not registered.
        """
        if name not in self._formatters:
            available = ", ".join(sorted(self._formatters))
            msg = f"Unknown format {name!r}. Available: {available}"
            raise KeyError(msg)
        return self._formatters[name](**kwargs)

    @property
    def available(self) -> list[str]:
        return sorted(self._formatters)


# Global registry instance populated by formatter modules.
registry = FormatterRegistry()
