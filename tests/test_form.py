"""Tests for the create/edit form lifecycle."""

import asyncio

import httpx
import pytest

from minibank_console.core.client import BackendClient
from minibank_console.core.exceptions import FetchError, FormStateError, ReportedError
from minibank_console.core.form import FormMode, FormStateMachine
from minibank_console.core.records import TRANSACTIONS, USERS, WALLETS, TransactionKind, Wallet
from minibank_console.core.resources import ResourceClient


@pytest.fixture
def wallets(resolved_config, backend):
    return ResourceClient(BackendClient(resolved_config, transport=backend.transport()), WALLETS)


@pytest.mark.unit
class TestTransitions:
    def test_starts_closed(self):
        form = FormStateMachine(USERS)
        assert form.state is None
        assert not form.is_open

    def test_open_create_allocates_identity(self):
        form = FormStateMachine(WALLETS)
        draft = form.open_create()
        assert form.mode is FormMode.CREATE
        assert draft.id > 0
        assert draft.balance == "0.00"

    def test_open_edit_copies_record(self):
        form = FormStateMachine(WALLETS)
        record = Wallet(id=7, owner_id=1, balance="50.00")
        draft = form.open_edit(record)
        assert form.mode is FormMode.EDIT
        assert draft == record

    def test_cannot_open_twice(self):
        form = FormStateMachine(USERS)
        form.open_create()
        with pytest.raises(FormStateError, match="already open"):
            form.open_create()

    def test_cancel_discards_draft(self):
        form = FormStateMachine(USERS)
        form.open_create()
        form.set_field("name", "Eve")
        form.cancel()
        assert form.state is None

    def test_cancel_when_closed_is_noop(self):
        form = FormStateMachine(USERS)
        form.cancel()
        assert not form.is_open

    def test_draft_requires_open_form(self):
        form = FormStateMachine(USERS)
        with pytest.raises(FormStateError, match="No users form is open"):
            _ = form.draft


@pytest.mark.unit
class TestSetField:
    def test_replaces_one_field(self):
        form = FormStateMachine(USERS)
        form.open_create()
        draft = form.set_field("email", "eve@example.com")
        assert draft.email == "eve@example.com"
        assert form.draft.email == "eve@example.com"

    def test_accepts_wire_name(self):
        form = FormStateMachine(WALLETS)
        form.open_create()
        assert form.set_field("user_id", "3").owner_id == 3

    def test_enum_value(self):
        form = FormStateMachine(TRANSACTIONS)
        form.open_create()
        assert form.set_field("type", "TRANSFER").kind is TransactionKind.TRANSFER

    def test_identity_editable_on_create(self):
        form = FormStateMachine(USERS)
        form.open_create()
        assert form.set_field("id", 42).id == 42

    def test_identity_locked_on_edit(self):
        form = FormStateMachine(WALLETS)
        form.open_edit(Wallet(id=7, owner_id=1, balance="50.00"))
        with pytest.raises(FormStateError, match="cannot be changed"):
            form.set_field("id", 8)
        assert form.draft.id == 7

    def test_unknown_field(self):
        form = FormStateMachine(USERS)
        form.open_create()
        with pytest.raises(FormStateError, match="Unknown users field 'phone'"):
            form.set_field("phone", "555")

    def test_invalid_value_keeps_draft(self):
        form = FormStateMachine(WALLETS)
        form.open_create()
        form.set_field("balance", "10.00")
        with pytest.raises(FormStateError, match="Invalid value"):
            form.set_field("balance", "ten")
        assert form.draft.balance == "10.00"


@pytest.mark.unit
class TestSubmit:
    def test_create_success_closes(self, wallets, backend):
        form = FormStateMachine(WALLETS)
        form.open_create()
        form.set_field("id", 7)
        form.set_field("owner_id", 1)
        records = asyncio.run(form.submit(wallets))
        assert not form.is_open
        assert [r.id for r in records] == [7]

    def test_edit_success_sends_update(self, wallets, backend):
        backend.seed("wallets", [7, 1, "50.00"])
        asyncio.run(wallets.list())
        form = FormStateMachine(WALLETS)
        form.open_edit(wallets.find(7))
        form.set_field("balance", "60.00")
        records = asyncio.run(form.submit(wallets))
        assert records[0].balance == "60.00"
        assert len(backend.calls("PUT")) == 1
        assert not form.is_open

    def test_rejected_submit_keeps_draft(self, wallets, backend):
        backend.seed("wallets", [7, 1, "50.00"])
        asyncio.run(wallets.list())
        form = FormStateMachine(WALLETS)
        form.open_create()
        form.set_field("id", 7)
        form.set_field("owner_id", 2)
        with pytest.raises(ReportedError, match="duplicate primary key 7"):
            asyncio.run(form.submit(wallets))
        assert form.is_open
        assert form.mode is FormMode.CREATE
        assert form.draft == Wallet(id=7, owner_id=2, balance="0.00")
        assert len(wallets.records) == 1

    def test_refetch_failure_closes(self, wallets, backend):
        backend.overrides[("GET", "/api/wallets")] = httpx.Response(500, text="oops")
        form = FormStateMachine(WALLETS)
        form.open_create()
        with pytest.raises(FetchError):
            asyncio.run(form.submit(wallets))
        assert not form.is_open

    def test_submit_when_closed(self, wallets):
        form = FormStateMachine(WALLETS)
        with pytest.raises(FormStateError):
            asyncio.run(form.submit(wallets))
