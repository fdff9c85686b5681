"""MiniBank Console - query and CRUD console for the MiniBank backend."""

from minibank_console.__about__ import __version__

__all__ = ["__version__"]
