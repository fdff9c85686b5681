"""Read-only user-wallets report.

Failures are logged and surfaced the same way the query console does
it: the previous table is cleared and ``error_message`` is set.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

from minibank_console.core.exceptions import BackendError
from minibank_console.core.models import QueryResult

if TYPE_CHECKING:
    from minibank_console.core.client import BackendClient

REPORT_PATH = "/api/reports/user-wallets"
REPORT_COLUMNS = ["User ID", "Name", "Balance"]


class ReportViewer:
    def __init__(self, backend: BackendClient) -> None:
        self.backend = backend
        self.result: QueryResult | None = None
        self.error_message: str | None = None
        self.last_error: BackendError | None = None
        self.loading = False

    async def refresh(self) -> QueryResult | None:
        self.loading = True
        try:
            rows = await self.backend.fetch_rows(REPORT_PATH)
        except BackendError as e:
            structlog.get_logger().error("report fetch failed", error=e.message)
            self.result = None
            self.error_message = e.message
            self.last_error = e
            return None
        finally:
            self.loading = False

        self.result = QueryResult(columns=list(REPORT_COLUMNS), rows=rows)
        self.error_message = None
        self.last_error = None
        return self.result
