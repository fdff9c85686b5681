"""Tests for the generic resource client."""

import asyncio

import httpx
import pytest

from minibank_console.core.client import BackendClient
from minibank_console.core.exceptions import FetchError, InputError, ReportedError
from minibank_console.core.records import (
    TRANSACTIONS,
    USERS,
    WALLETS,
    AccountHolder,
    TransactionKind,
    Wallet,
)
from minibank_console.core.resources import ResourceClient


def make_resource(resolved_config, backend, kind):
    client = BackendClient(resolved_config, transport=backend.transport())
    return ResourceClient(client, kind)


@pytest.mark.unit
class TestList:
    def test_not_loaded_until_listed(self, resolved_config, backend):
        resource = make_resource(resolved_config, backend, USERS)
        assert resource.records is None
        assert not resource.loaded

    def test_preserves_server_order(self, resolved_config, backend):
        backend.seed("users", [3, "Carol", "c@x"], [1, "Alice", "a@x"], [2, "Bob", "b@x"])
        resource = make_resource(resolved_config, backend, USERS)
        records = asyncio.run(resource.list())
        assert [r.id for r in records] == [3, 1, 2]
        assert resource.loaded

    def test_empty_list_is_loaded(self, resolved_config, backend):
        resource = make_resource(resolved_config, backend, WALLETS)
        assert asyncio.run(resource.list()) == []
        assert resource.records == []

    def test_mixed_case_types_still_list(self, resolved_config, backend):
        backend.seed("transactions", [1, 1, "5.00", "DEPOSIT"], [2, 1, "3.00", "deposit"])
        resource = make_resource(resolved_config, backend, TRANSACTIONS)
        records = asyncio.run(resource.list())
        assert [r.kind for r in records] == [TransactionKind.DEPOSIT] * 2

    def test_uncoercible_cell_is_kept(self, resolved_config, backend):
        backend.seed("wallets", [7, "nobody", "1.00"])
        resource = make_resource(resolved_config, backend, WALLETS)
        records = asyncio.run(resource.list())
        assert records == [Wallet(id=7, owner_id="nobody", balance="1.00")]

    def test_row_without_identity_is_skipped(self, resolved_config, backend):
        backend.seed("users", ["x", "Ghost", "g@x"], [2, "Bob", "b@x"])
        resource = make_resource(resolved_config, backend, USERS)
        records = asyncio.run(resource.list())
        assert [r.id for r in records] == [2]

    def test_malformed_rows_is_fetch_error(self, resolved_config, backend):
        backend.overrides[("GET", "/api/users")] = httpx.Response(200, json={"rows": [5]})
        resource = make_resource(resolved_config, backend, USERS)
        with pytest.raises(FetchError, match="Unreadable response body"):
            asyncio.run(resource.list())
        assert resource.records is None


    def test_transport_failure_is_fetch_error(self, resolved_config, backend):
        backend.overrides[("GET", "/api/users")] = httpx.Response(502, text="bad gateway")
        resource = make_resource(resolved_config, backend, USERS)
        with pytest.raises(FetchError) as exc_info:
            asyncio.run(resource.list())
        assert exc_info.value.cause.status_code == 502

    def test_stale_response_is_discarded(self, resolved_config):
        first_started = asyncio.Event()
        release_first = asyncio.Event()
        calls = []

        async def handler(request):
            calls.append(request)
            if len(calls) == 1:
                first_started.set()
                await release_first.wait()
                return httpx.Response(200, json={"rows": [[1, "Old", "old@x"]]})
            return httpx.Response(200, json={"rows": [[2, "New", "new@x"]]})

        async def go():
            backend = BackendClient(resolved_config, transport=httpx.MockTransport(handler))
            resource = ResourceClient(backend, USERS)
            slow = asyncio.ensure_future(resource.list())
            await first_started.wait()
            await resource.list()
            release_first.set()
            stale = await slow
            await backend.aclose()
            return resource, stale

        resource, stale = asyncio.run(go())
        assert [r.name for r in resource.records] == ["New"]
        assert [r.name for r in stale] == ["New"]


@pytest.mark.unit
class TestMutations:
    def test_create_then_refetch(self, resolved_config, backend):
        resource = make_resource(resolved_config, backend, USERS)
        user = AccountHolder(id=5, name="Eve", email="eve@example.com")
        records = asyncio.run(resource.create(user))
        assert records == [user]
        assert [r.method for r in backend.requests] == ["POST", "GET"]

    def test_duplicate_create_is_reported_and_keeps_list(self, resolved_config, backend):
        backend.seed("wallets", [7, 1, "50.00"])
        resource = make_resource(resolved_config, backend, WALLETS)

        async def go():
            await resource.list()
            await resource.create(Wallet(id=7, owner_id=2, balance="1.00"))

        with pytest.raises(ReportedError, match="duplicate primary key 7"):
            asyncio.run(go())
        assert len(resource.records) == 1
        assert resource.records[0].owner_id == 1

    def test_update_sends_put(self, resolved_config, backend):
        backend.seed("wallets", [7, 1, "50.00"])
        resource = make_resource(resolved_config, backend, WALLETS)
        records = asyncio.run(resource.update(Wallet(id=7, owner_id=1, balance="75.00")))
        assert records[0].balance == "75.00"
        assert backend.calls("PUT")[0].url.path == "/api/wallets"

    def test_delete_confirmed(self, resolved_config, backend):
        backend.seed("users", [1, "Alice", "a@x"], [2, "Bob", "b@x"])
        resource = make_resource(resolved_config, backend, USERS)
        records = asyncio.run(resource.delete(1, lambda rid: True))
        assert [r.id for r in records] == [2]
        assert backend.calls("DELETE")[0].url.params["id"] == "1"

    def test_delete_declined_makes_no_request(self, resolved_config, backend):
        backend.seed("users", [1, "Alice", "a@x"])
        resource = make_resource(resolved_config, backend, USERS)
        asked = []

        def decline(rid):
            asked.append(rid)
            return False

        assert asyncio.run(resource.delete(1, decline)) is None
        assert asked == [1]
        assert backend.requests == []
        assert 1 in backend.rows["users"]

    def test_refetch_failure_after_mutation(self, resolved_config, backend):
        backend.overrides[("GET", "/api/users")] = httpx.Response(503, text="unavailable")
        resource = make_resource(resolved_config, backend, USERS)
        with pytest.raises(FetchError):
            asyncio.run(resource.create(AccountHolder(id=9, name="Zed")))
        assert 9 in backend.rows["users"]

    @pytest.mark.parametrize("operation", ["update", "delete"])
    def test_transactions_are_append_only(self, resolved_config, backend, operation):
        resource = make_resource(resolved_config, backend, TRANSACTIONS)

        async def go():
            if operation == "update":
                await resource.update(TRANSACTIONS.defaults())
            else:
                await resource.delete(1, lambda rid: True)

        with pytest.raises(InputError, match=f"transactions does not support {operation}"):
            asyncio.run(go())
        assert backend.requests == []

    def test_find(self, resolved_config, backend):
        backend.seed("users", [1, "Alice", "a@x"])
        resource = make_resource(resolved_config, backend, USERS)
        asyncio.run(resource.list())
        assert resource.find(1).name == "Alice"
        assert resource.find(99) is None
