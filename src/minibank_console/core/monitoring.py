"""Sentry integration for error tracking and performance monitoring.

Sentry is initialized in main() after logging setup, and only when a
DSN is configured (``sentry_dsn`` in the config file or SENTRY_DSN).
"""

from __future__ import annotations

import sentry_sdk

from minibank_console.__about__ import __version__


def setup_sentry(dsn: str | None, environment: str = "local") -> bool:
    """Initialize Sentry. Returns False when no DSN is configured."""
    if not dsn:
        return False
    sentry_sdk.init(
        dsn=dsn,
        traces_sample_rate=0.03,
        environment=environment,
        release=f"minibank-console@{__version__}",
        attach_stacktrace=True,
        send_default_pii=False,
    )
    return True
