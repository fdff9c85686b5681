"""Query source resolution for MiniBank Console.

Resolves the query text from one of three sources:
1. Inline (-e flag)  - highest priority
2. File path         - middle priority
3. stdin             - lowest priority
"""

from __future__ import annotations

import sys
from pathlib import Path

from minibank_console.core.exceptions import InputError


def resolve_query_source(
    inline: str | None,
    file_path: str | None,
) -> str:
    """Resolve query text from inline, file, or stdin.

    Precedence: inline > file > stdin.
    Raises InputError when no source is available or the text is blank.
    """
    if inline is not None:
        text = inline
    elif file_path is not None:
        p = Path(file_path)
        if not p.is_file():
            msg = (
                f"Query file not found: {file_path}\n"
                "Use -e for inline queries or pipe the query via stdin."
            )
            raise InputError(msg)
        text = p.read_text()
    elif not sys.stdin.isatty():
        text = sys.stdin.read()
    else:
        msg = "No query provided. Use -e, a file path, or pipe to stdin."
        raise InputError(msg)

    if not text.strip():
        raise InputError("Query text is empty.")
    return text
