"""Generic list/create/update/delete client for one resource kind.

The server's post-mutation list is the only source of truth: every
successful mutation is followed by a full refetch, never a local merge.
Each list() call takes a sequence number, and a response older than the
last one applied is dropped so a slow fetch cannot overwrite a newer one.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING, Generic

import structlog

from minibank_console.core.exceptions import (
    BackendError,
    DecodeError,
    FetchError,
    InputError,
)
from minibank_console.core.records import R, ResourceKind

if TYPE_CHECKING:
    from minibank_console.core.client import BackendClient

ConfirmGate = Callable[[int], bool]


class ResourceClient(Generic[R]):
    """CRUD operations for one resource kind against the backend."""

    def __init__(self, backend: BackendClient, kind: ResourceKind[R]) -> None:
        self.backend = backend
        self.kind = kind
        self.records: list[R] | None = None
        self._issued = 0
        self._applied = 0

    @property
    def loaded(self) -> bool:
        return self.records is not None

    def _require(self, operation: str) -> None:
        if not self.kind.supports(operation):
            msg = f"{self.kind.name} does not support {operation}"
            raise InputError(msg)

    async def list(self) -> list[R]:
        """Fetch and decode every record of this kind, in server order.

        A row whose identity cannot be read is logged and left out.
        """
        self._issued += 1
        seq = self._issued
        log = structlog.get_logger().bind(resource=self.kind.name, seq=seq)

        try:
            rows = await self.backend.fetch_rows(self.kind.path)
        except BackendError as e:
            log.warning("list failed", error=e.message)
            raise FetchError(e.message, cause=e) from e

        records: list[R] = []
        for row in rows:
            try:
                records.append(self.kind.decode(row))
            except DecodeError as e:
                log.warning("skipping undecodable row", error=e.message)

        if seq < self._applied:
            log.debug("discarding stale list", applied=self._applied)
            return list(self.records or [])

        self._applied = seq
        self.records = records
        log.debug("list applied", count=len(records))
        return records

    async def create(self, record: R) -> list[R]:
        """POST the record, then refetch the list."""
        self._require("create")
        await self.backend.request("POST", self.kind.path, json=self.kind.encode(record))
        structlog.get_logger().info(
            "record created", resource=self.kind.name, id=record.id
        )
        return await self.list()

    async def update(self, record: R) -> list[R]:
        """PUT the record under its existing identity, then refetch."""
        self._require("update")
        await self.backend.request("PUT", self.kind.path, json=self.kind.encode(record))
        structlog.get_logger().info(
            "record updated", resource=self.kind.name, id=record.id
        )
        return await self.list()

    async def delete(self, record_id: int, confirm: ConfirmGate) -> list[R] | None:
        """Delete by identity once ``confirm`` says yes, then refetch.

        Returns None, without touching the network, when the gate declines.
        """
        self._require("delete")
        if not confirm(record_id):
            structlog.get_logger().debug(
                "delete declined", resource=self.kind.name, id=record_id
            )
            return None

        await self.backend.request(
            "DELETE", self.kind.path, params={self.kind.identity_field: record_id}
        )
        structlog.get_logger().info(
            "record deleted", resource=self.kind.name, id=record_id
        )
        return await self.list()

    def find(self, record_id: int) -> R | None:
        for record in self.records or []:
            if record.id == record_id:
                return record
        return None
