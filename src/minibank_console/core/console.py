"""Free-form query console state."""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

from minibank_console.core.exceptions import BackendError

if TYPE_CHECKING:
    from minibank_console.core.client import BackendClient
    from minibank_console.core.models import QueryResult


class QueryConsole:
    """Holds the query text and the outcome of the latest run.

    ``result`` is None until a run succeeds and again after any failed
    run, so a stale table never sits next to an error message. Runs may
    overlap; only the most recently started one is allowed to update
    the state.
    """

    def __init__(self, backend: BackendClient, query_text: str = "") -> None:
        self.backend = backend
        self.query_text = query_text
        self.result: QueryResult | None = None
        self.error_message: str | None = None
        self.last_error: BackendError | None = None
        self._issued = 0
        self._pending = 0

    @property
    def in_flight(self) -> bool:
        return self._pending > 0

    def set_query_text(self, text: str) -> None:
        self.query_text = text

    async def run(self) -> QueryResult | None:
        self._issued += 1
        seq = self._issued
        self._pending += 1
        log = structlog.get_logger().bind(seq=seq)
        query = self.query_text
        log.debug("running query", query=" ".join(query.split())[:100])

        try:
            result = await self.backend.run_query(query)
        except BackendError as e:
            if seq == self._issued:
                self.result = None
                self.error_message = e.message
                self.last_error = e
            log.warning("query failed", error=e.message)
            return None
        finally:
            self._pending -= 1

        if seq != self._issued:
            log.debug("discarding superseded query result", latest=self._issued)
            return self.result

        self.result = result
        self.error_message = None
        self.last_error = None
        log.debug("query complete", row_count=result.row_count)
        return result
