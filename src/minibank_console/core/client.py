"""HTTP client for the MiniBank backend.

Wraps an httpx.AsyncClient with per-request timeouts, the backend's
error-body convention, and cancellation of in-flight requests when the
owning screen is torn down.

Success and failure are told apart by the ``error`` field of the JSON
body, not by the status code. A non-2xx status without such a body, a
body that is not a JSON object, or a network failure is a transport
error.
"""

from __future__ import annotations

import asyncio
import time
from typing import TYPE_CHECKING, Any

import httpx
import sentry_sdk
import structlog
from pydantic import ValidationError

from minibank_console.core.exceptions import ReportedError, TimeoutError, TransportError
from minibank_console.core.models import QueryResult, validation_summary

if TYPE_CHECKING:
    from minibank_console.core.config import ResolvedConfig

QUERY_PATH = "/api/query"


def _parse_body(response: httpx.Response) -> dict[str, Any] | None:
    try:
        payload = response.json()
    except ValueError:
        return None
    return payload if isinstance(payload, dict) else None


class BackendClient:
    """Asynchronous client for the backend's JSON API."""

    def __init__(
        self,
        config: ResolvedConfig,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.config = config
        self._transport = transport
        self._http: httpx.AsyncClient | None = None
        self._inflight: set[asyncio.Task[dict[str, Any]]] = set()
        self._closed = False

    async def __aenter__(self) -> BackendClient:
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.aclose()

    @property
    def inflight(self) -> int:
        return len(self._inflight)

    def _client(self) -> httpx.AsyncClient:
        if self._http is None:
            self._http = httpx.AsyncClient(
                base_url=self.config.api_url,
                timeout=self.config.timeout,
                transport=self._transport,
                headers={"Accept": "application/json"},
            )
        return self._http

    async def request(
        self,
        method: str,
        path: str,
        *,
        json: dict[str, Any] | None = None,
        params: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """Issue one request and return the decoded success body.

        Raises ReportedError when the body carries an ``error`` field and
        TransportError for everything that prevents reading a body.
        """
        if self._closed:
            raise TransportError("Backend client is closed")

        task = asyncio.ensure_future(
            self._send(method, path, json=json, params=params)
        )
        self._inflight.add(task)
        task.add_done_callback(self._inflight.discard)
        return await task

    async def _send(
        self,
        method: str,
        path: str,
        *,
        json: dict[str, Any] | None,
        params: dict[str, Any] | None,
    ) -> dict[str, Any]:
        log = structlog.get_logger()
        description = f"{method} {path}"
        log.debug("backend request", method=method, path=path, params=params)

        with sentry_sdk.start_span(op="http.client", description=description) as span:
            start_time = time.monotonic()
            try:
                response = await self._client().request(
                    method, path, json=json, params=params
                )
            except httpx.TimeoutException as e:
                span.set_status("deadline_exceeded")
                log.warning("backend timeout", method=method, path=path)
                msg = f"Request timed out after {self.config.timeout}s: {description}"
                raise TimeoutError(msg) from e
            except httpx.HTTPError as e:
                span.set_status("unavailable")
                log.warning("backend unreachable", method=method, path=path, error=str(e))
                msg = f"Cannot reach backend at {self.config.api_url}: {e}"
                raise TransportError(msg) from e

            duration_ms = (time.monotonic() - start_time) * 1000
            span.set_data("status_code", response.status_code)
            span.set_data("duration_ms", duration_ms)
            log.debug(
                "backend response",
                method=method,
                path=path,
                status=response.status_code,
                duration_ms=f"{duration_ms:.1f}",
            )

            payload = _parse_body(response)
            if payload is not None and payload.get("error"):
                span.set_status("failed_precondition")
                log.info("backend reported error", path=path, error=payload["error"])
                raise ReportedError(str(payload["error"]))

            if response.is_error:
                span.set_status("internal_error")
                reason = response.reason_phrase or "error"
                msg = f"Request failed: HTTP {response.status_code} {reason} ({description})"
                raise TransportError(msg, status_code=response.status_code)

            if payload is None:
                span.set_status("internal_error")
                msg = f"Unreadable response body from {description} (HTTP {response.status_code})"
                raise TransportError(msg, status_code=response.status_code)

            return payload

    async def run_query(self, query: str) -> QueryResult:
        """Execute free-form query text and return its result table."""
        payload = await self.request("POST", QUERY_PATH, json={"query": query})
        try:
            return QueryResult.from_wire(payload)
        except ValidationError as e:
            problem = validation_summary(e)
            msg = f"Unreadable response body from POST {QUERY_PATH}: {problem}"
            raise TransportError(msg) from e

    async def fetch_rows(self, path: str) -> list[list[Any]]:
        """GET a row-array endpoint; a missing ``rows`` field means no rows."""
        payload = await self.request("GET", path)
        rows = payload.get("rows")
        if rows is None:
            return []
        if not isinstance(rows, list) or not all(isinstance(r, list) for r in rows):
            msg = f"Unreadable response body from GET {path}: rows is not a list of rows"
            raise TransportError(msg)
        return rows

    async def aclose(self) -> None:
        """Cancel in-flight requests and release the connection pool."""
        self._closed = True
        pending = [t for t in self._inflight if not t.done()]
        for task in pending:
            task.cancel()
        if pending:
            structlog.get_logger().debug("cancelled in-flight requests", count=len(pending))
            await asyncio.gather(*pending, return_exceptions=True)
        if self._http is not None:
            await self._http.aclose()
            self._http = None
