"""users / wallets / transactions command groups.

Every command runs one screen: it mounts (fetches the full list),
drives the form through create or edit, and prints the refetched list.
A rejected create/update prints the kept draft before the error.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Annotated, Any

import typer

from minibank_console.cli.commands._shared import (
    apply_local_format_options,
    echo_draft,
    formatter_for,
    open_screen,
    run_async,
)
from minibank_console.cli.output import OutputFormat, write_lines  # noqa: TC001
from minibank_console.core.exceptions import ConsoleError, FetchError
from minibank_console.core.records import (
    TRANSACTIONS,
    USERS,
    WALLETS,
    ResourceKind,
    TransactionKind,
)

if TYPE_CHECKING:
    from minibank_console.core.screen import ResourceScreen

users_app = typer.Typer(help="Manage account holders", no_args_is_help=True)
wallets_app = typer.Typer(help="Manage user wallets", no_args_is_help=True)
transactions_app = typer.Typer(help="Transaction history", no_args_is_help=True)


def _show(ctx: typer.Context, screen: ResourceScreen[Any]) -> None:
    formatter = formatter_for(ctx, empty_message=screen.empty_message, summary=False)
    write_lines(screen.render(formatter))


async def _submit(screen: ResourceScreen[Any]) -> None:
    try:
        await screen.submit()
    except FetchError:
        raise
    except ConsoleError:
        if screen.form.is_open:
            echo_draft(screen.form.draft)
        raise


def list_records(ctx: typer.Context, kind: ResourceKind[Any]) -> None:
    async def go() -> None:
        async with open_screen(ctx, kind) as screen:
            await screen.mount()
            _show(ctx, screen)

    run_async(go())


def create_record(
    ctx: typer.Context,
    kind: ResourceKind[Any],
    record_id: int | None,
    fields: dict[str, Any],
) -> None:
    async def go() -> None:
        async with open_screen(ctx, kind) as screen:
            await screen.mount()
            screen.open_create()
            if record_id is not None:
                screen.set_field("id", record_id)
            for name, value in fields.items():
                if value is not None:
                    screen.set_field(name, value)
            await _submit(screen)
            _show(ctx, screen)

    run_async(go())


def update_record(
    ctx: typer.Context,
    kind: ResourceKind[Any],
    record_id: int,
    fields: dict[str, Any],
) -> None:
    changes = {name: value for name, value in fields.items() if value is not None}
    if not changes:
        raise typer.BadParameter("Nothing to update; pass at least one field option.")

    async def go() -> None:
        async with open_screen(ctx, kind) as screen:
            await screen.mount()
            screen.open_edit(record_id)
            for name, value in changes.items():
                screen.set_field(name, value)
            await _submit(screen)
            _show(ctx, screen)

    run_async(go())


def delete_record(
    ctx: typer.Context,
    kind: ResourceKind[Any],
    record_id: int,
    yes: bool,
) -> None:
    # Asked before the event loop starts.
    confirmed = yes or typer.confirm(
        f"Delete {kind.name} record {record_id}?", default=False
    )

    async def go() -> bool:
        async with open_screen(ctx, kind) as screen:
            if await screen.delete(record_id, lambda rid: confirmed) is None:
                return False
            _show(ctx, screen)
            return True

    if not run_async(go()):
        typer.echo("Delete cancelled.", err=True)


# -- options shared by every group --

RecordId = Annotated[int, typer.Argument(help="Record id")]
NewId = Annotated[
    int | None,
    typer.Option("--id", help="Identity for the new record (default: random)"),
]
Yes = Annotated[bool, typer.Option("--yes", "-y", help="Skip the confirmation prompt")]
Format = Annotated[
    OutputFormat | None,
    typer.Option("--format", "-f", help="Output format: table|json|csv"),
]


# -- users --


@users_app.command("list")
def users_list(ctx: typer.Context, format: Format = None) -> None:
    """List account holders."""
    apply_local_format_options(ctx, format=format)
    list_records(ctx, USERS)


@users_app.command("create")
def users_create(
    ctx: typer.Context,
    record_id: NewId = None,
    name: Annotated[str | None, typer.Option("--name", help="Full name")] = None,
    email: Annotated[str | None, typer.Option("--email", help="Email address")] = None,
) -> None:
    """Create an account holder."""
    create_record(ctx, USERS, record_id, {"name": name, "email": email})


@users_app.command("update")
def users_update(
    ctx: typer.Context,
    record_id: RecordId,
    name: Annotated[str | None, typer.Option("--name", help="Full name")] = None,
    email: Annotated[str | None, typer.Option("--email", help="Email address")] = None,
) -> None:
    """Edit an account holder. The id cannot be changed."""
    update_record(ctx, USERS, record_id, {"name": name, "email": email})


@users_app.command("delete")
def users_delete(ctx: typer.Context, record_id: RecordId, yes: Yes = False) -> None:
    """Delete an account holder after confirmation."""
    delete_record(ctx, USERS, record_id, yes)


# -- wallets --


@wallets_app.command("list")
def wallets_list(ctx: typer.Context, format: Format = None) -> None:
    """List wallets."""
    apply_local_format_options(ctx, format=format)
    list_records(ctx, WALLETS)


@wallets_app.command("create")
def wallets_create(
    ctx: typer.Context,
    record_id: NewId = None,
    user_id: Annotated[int | None, typer.Option("--user-id", help="Owner's user id")] = None,
    balance: Annotated[
        str | None, typer.Option("--balance", help="Opening balance, e.g. 50.00")
    ] = None,
) -> None:
    """Create a wallet."""
    create_record(ctx, WALLETS, record_id, {"owner_id": user_id, "balance": balance})


@wallets_app.command("update")
def wallets_update(
    ctx: typer.Context,
    record_id: RecordId,
    user_id: Annotated[int | None, typer.Option("--user-id", help="Owner's user id")] = None,
    balance: Annotated[str | None, typer.Option("--balance", help="New balance")] = None,
) -> None:
    """Edit a wallet. The id cannot be changed."""
    update_record(ctx, WALLETS, record_id, {"owner_id": user_id, "balance": balance})


@wallets_app.command("delete")
def wallets_delete(ctx: typer.Context, record_id: RecordId, yes: Yes = False) -> None:
    """Delete a wallet after confirmation."""
    delete_record(ctx, WALLETS, record_id, yes)


# -- transactions (list and create only) --


@transactions_app.command("list")
def transactions_list(ctx: typer.Context, format: Format = None) -> None:
    """List transactions."""
    apply_local_format_options(ctx, format=format)
    list_records(ctx, TRANSACTIONS)


@transactions_app.command("create")
def transactions_create(
    ctx: typer.Context,
    record_id: NewId = None,
    wallet_id: Annotated[int | None, typer.Option("--wallet-id", help="Wallet id")] = None,
    amount: Annotated[str | None, typer.Option("--amount", help="Amount, e.g. 25.00")] = None,
    kind: Annotated[
        TransactionKind | None,
        typer.Option("--type", case_sensitive=False, help="DEPOSIT|WITHDRAWAL|TRANSFER"),
    ] = None,
) -> None:
    """Record a transaction."""
    create_record(
        ctx,
        TRANSACTIONS,
        record_id,
        {"wallet_id": wallet_id, "amount": amount, "kind": kind},
    )
