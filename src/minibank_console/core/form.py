"""Create/edit lifecycle shared by every resource screen.

States are ``Closed`` and ``Open(mode, draft)``. Opening for create
allocates a fresh identity; opening for edit copies an existing record
and locks its identity for as long as the form stays open. A failed
submit leaves the form open with the draft untouched.
"""

from __future__ import annotations

from enum import StrEnum
from typing import TYPE_CHECKING, Any, Generic

import structlog
from pydantic import BaseModel, ConfigDict, ValidationError

from minibank_console.core.exceptions import ConsoleError, FetchError, FormStateError
from minibank_console.core.records import R

if TYPE_CHECKING:
    from minibank_console.core.records import ResourceKind
    from minibank_console.core.resources import ResourceClient


class FormMode(StrEnum):
    CREATE = "create"
    EDIT = "edit"


class OpenForm(BaseModel):
    """Snapshot of an open form."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    mode: FormMode
    draft: Any

    @property
    def locked_fields(self) -> frozenset[str]:
        return frozenset({"id"}) if self.mode is FormMode.EDIT else frozenset()


class FormStateMachine(Generic[R]):
    def __init__(self, kind: ResourceKind[R]) -> None:
        self.kind = kind
        self._state: OpenForm | None = None

    @property
    def state(self) -> OpenForm | None:
        """None while Closed."""
        return self._state

    @property
    def is_open(self) -> bool:
        return self._state is not None

    @property
    def draft(self) -> R:
        return self._require_open().draft

    @property
    def mode(self) -> FormMode:
        return self._require_open().mode

    def _require_open(self) -> OpenForm:
        if self._state is None:
            raise FormStateError(f"No {self.kind.name} form is open")
        return self._state

    def _require_closed(self) -> None:
        if self._state is not None:
            msg = f"A {self.kind.name} form is already open ({self._state.mode})"
            raise FormStateError(msg)

    def open_create(self) -> R:
        self._require_closed()
        draft = self.kind.defaults()
        self._state = OpenForm(mode=FormMode.CREATE, draft=draft)
        return draft

    def open_edit(self, record: R) -> R:
        self._require_closed()
        draft = record.model_copy()
        self._state = OpenForm(mode=FormMode.EDIT, draft=draft)
        return draft

    def set_field(self, name: str, value: Any) -> R:
        """Replace one draft field; the value is coerced to the field's type."""
        state = self._require_open()
        if name in self.kind.wire_fields:
            name = self.kind.field_names[self.kind.wire_fields.index(name)]
        if name not in self.kind.field_names:
            available = ", ".join(self.kind.field_names)
            raise FormStateError(f"Unknown {self.kind.name} field {name!r}. Fields: {available}")
        if name in state.locked_fields:
            raise FormStateError(f"Field {name!r} cannot be changed while editing")

        data = state.draft.model_dump()
        data[name] = value
        try:
            draft = self.kind.validate_input(data, name)
        except ValidationError as e:
            err = e.errors()[0]
            msg = f"Invalid value {value!r} for {name}: {err.get('msg', 'invalid value')}"
            raise FormStateError(msg) from e

        self._state = OpenForm(mode=state.mode, draft=draft)
        return draft

    def cancel(self) -> None:
        self._state = None

    async def submit(self, client: ResourceClient[R]) -> list[R]:
        """Send the draft as a create or update, closing the form on success.

        A rejected mutation re-raises with the form still open. When the
        mutation went through but the refetch after it failed, the form is
        closed anyway so a retry cannot duplicate the change.
        """
        state = self._require_open()
        op = client.create if state.mode is FormMode.CREATE else client.update
        log = structlog.get_logger().bind(resource=self.kind.name, mode=str(state.mode))

        try:
            records = await op(state.draft)
        except FetchError:
            self._state = None
            raise
        except ConsoleError:
            log.info("submit failed, draft kept", id=state.draft.id)
            raise

        self._state = None
        return records
