"""Output formatters for MiniBank Console."""

from minibank_console.formatters.base import Formatter, FormatterRegistry, layout_rows, registry
from minibank_console.formatters.csv import CSVFormatter
from minibank_console.formatters.json import JSONFormatter
from minibank_console.formatters.table import TableFormatter
