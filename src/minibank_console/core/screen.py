"""One resource screen: list, form and rendering bound to a resource kind.

A screen owns its ResourceClient and FormStateMachine exclusively and
never outlives one command or shell session; records are refetched on
mount rather than carried over from an earlier screen.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Generic

from minibank_console.core.exceptions import InputError
from minibank_console.core.form import FormStateMachine
from minibank_console.core.logging import bind_screen
from minibank_console.core.records import R
from minibank_console.core.resources import ResourceClient

if TYPE_CHECKING:
    from collections.abc import Iterator

    from minibank_console.core.client import BackendClient
    from minibank_console.core.records import ResourceKind
    from minibank_console.core.resources import ConfirmGate
    from minibank_console.formatters.base import Formatter

LOADING = "Loading..."


class ResourceScreen(Generic[R]):
    def __init__(self, backend: BackendClient, kind: ResourceKind[R]) -> None:
        self.backend = backend
        self.kind = kind
        self.client: ResourceClient[R] = ResourceClient(backend, kind)
        self.form: FormStateMachine[R] = FormStateMachine(kind)
        bind_screen(kind.name)

    @property
    def records(self) -> list[R] | None:
        return self.client.records

    @property
    def empty_message(self) -> str:
        return f"No {self.kind.name} found"

    async def mount(self) -> list[R]:
        return await self.client.list()

    async def close(self) -> None:
        self.form.cancel()
        await self.backend.aclose()

    def open_create(self) -> R:
        return self.form.open_create()

    def open_edit(self, record_id: int) -> R:
        record = self.client.find(record_id)
        if record is None:
            raise InputError(f"No {self.kind.name} record with id {record_id}")
        return self.form.open_edit(record)

    def set_field(self, name: str, value: Any) -> R:
        return self.form.set_field(name, value)

    def cancel(self) -> None:
        self.form.cancel()

    async def submit(self) -> list[R]:
        return await self.form.submit(self.client)

    async def delete(self, record_id: int, confirm: ConfirmGate) -> list[R] | None:
        return await self.client.delete(record_id, confirm)

    def render(self, formatter: Formatter) -> Iterator[str]:
        """Loading line before the first list arrives, the table afterwards."""
        if self.records is None:
            yield LOADING
            return
        yield from formatter.format(self.kind.to_result(self.records))
