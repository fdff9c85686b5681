"""Exception hierarchy for MiniBank Console.

All exceptions carry an exit_code for CLI return value mapping.
Backend failures come in two kinds: ReportedError (the backend answered
with an ``error`` field) and TransportError (bad status, unreadable body,
network failure). Both expose a single human-readable ``message``.
"""

from __future__ import annotations

from minibank_console.core.exit_codes import ExitCode


class ConsoleError(Exception):
    """Base exception for all MiniBank Console errors."""

    exit_code: int = ExitCode.GENERAL_ERROR

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class BackendError(ConsoleError):
    """Any failure talking to the backend."""

    exit_code: int = ExitCode.BACKEND_ERROR


class ReportedError(BackendError):
    """Application-level error reported in the response body."""


class TransportError(BackendError):
    """Non-2xx status without a usable body, or a network failure."""

    exit_code: int = ExitCode.NETWORK_ERROR

    def __init__(self, message: str, status_code: int | None = None) -> None:
        self.status_code = status_code
        super().__init__(message)


class TimeoutError(TransportError):
    """Request exceeded the configured timeout."""

    exit_code: int = ExitCode.TIMEOUT


class DecodeError(BackendError):
    """A wire row could not be projected onto a record."""


class FetchError(BackendError):
    """Listing a resource failed; wraps the underlying backend error."""

    def __init__(self, message: str, cause: BackendError | None = None) -> None:
        super().__init__(message)
        self.cause = cause
        if cause is not None:
            self.exit_code = cause.exit_code


class InputError(ConsoleError):
    """File not found, invalid parameters, unsupported operation."""

    exit_code: int = ExitCode.INPUT_ERROR


class FormStateError(InputError):
    """Action not valid in the current form state."""


class ConfigError(ConsoleError):
    """Malformed config, missing profile."""

    exit_code: int = ExitCode.CONFIG_ERROR
