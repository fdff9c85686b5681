"""Resource records and their wire projections.

Each resource kind travels as a positional row (``[id, name, email]``
for users and so on). Decoding maps row positions onto named fields in a
fixed order; there is no name-based lookup. Field types are coerced the
way pydantic's lax mode does it ("7" -> 7, 1000 -> "1000"). A cell that
cannot be coerced is kept as the raw value the backend sent, and a NULL
cell stays None. Only the identity must be a real integer.

Values typed in by the operator go through the same models with the
edited field listed in the ``strict_fields`` validation context; those
fields must coerce cleanly.
"""

from __future__ import annotations

import secrets
from collections.abc import Mapping
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from enum import StrEnum
from typing import Any, Generic, TypeVar

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    ValidationInfo,
    field_validator,
)

from minibank_console.core.exceptions import DecodeError
from minibank_console.core.models import (
    QueryResult,
    cell_from_wire,
    validation_summary,
)

# Backend identities are INT columns; stay within the signed 32-bit range.
_MAX_IDENTITY = 2**31 - 1


class TransactionKind(StrEnum):
    DEPOSIT = "DEPOSIT"
    WITHDRAWAL = "WITHDRAWAL"
    TRANSFER = "TRANSFER"


class _Record(BaseModel):
    model_config = ConfigDict(
        frozen=True,
        populate_by_name=True,
        coerce_numbers_to_str=True,
    )


def _strict(info: ValidationInfo) -> bool:
    strict_fields = (info.context or {}).get("strict_fields") or ()
    return info.field_name in strict_fields


def _integer(v: int | str | None, info: ValidationInfo) -> int | str | None:
    if isinstance(v, str) and _strict(info):
        msg = f"'{v}' is not an integer"
        raise ValueError(msg)
    return v


def _decimal_text(v: str | None, info: ValidationInfo) -> str | None:
    if v is None:
        return v
    try:
        Decimal(v)
    except InvalidOperation:
        if _strict(info):
            msg = f"'{v}' is not a decimal amount"
            raise ValueError(msg) from None
    return v


class AccountHolder(_Record):
    id: int
    name: str | None = None
    email: str | None = None


class Wallet(_Record):
    id: int
    owner_id: int | str | None = Field(
        default=None, alias="user_id", union_mode="left_to_right"
    )
    balance: str | None = None

    @field_validator("owner_id")
    @classmethod
    def check_owner_id(cls, v: int | str | None, info: ValidationInfo) -> int | str | None:
        return _integer(v, info)

    @field_validator("balance")
    @classmethod
    def check_balance(cls, v: str | None, info: ValidationInfo) -> str | None:
        return _decimal_text(v, info)


class Transaction(_Record):
    id: int
    wallet_id: int | str | None = Field(default=None, union_mode="left_to_right")
    amount: str | None = None
    kind: TransactionKind | str | None = Field(
        default=None, alias="type", union_mode="left_to_right"
    )

    @field_validator("wallet_id")
    @classmethod
    def check_wallet_id(cls, v: int | str | None, info: ValidationInfo) -> int | str | None:
        return _integer(v, info)

    @field_validator("amount")
    @classmethod
    def check_amount(cls, v: str | None, info: ValidationInfo) -> str | None:
        return _decimal_text(v, info)

    @field_validator("kind", mode="before")
    @classmethod
    def normalize_kind(cls, v: Any) -> Any:
        # The type column is free text on the backend: 'deposit' is DEPOSIT.
        if isinstance(v, str) and v.strip().upper() in TransactionKind.__members__:
            return v.strip().upper()
        return v

    @field_validator("kind")
    @classmethod
    def check_kind(cls, v: TransactionKind | str | None, info: ValidationInfo) -> Any:
        if v is not None and not isinstance(v, TransactionKind) and _strict(info):
            choices = "|".join(TransactionKind)
            msg = f"'{v}' is not a transaction type ({choices})"
            raise ValueError(msg)
        return v


R = TypeVar("R", AccountHolder, Wallet, Transaction)


def allocate_identity() -> int:
    """Pick a random positive identity for a record about to be created."""
    return secrets.randbelow(_MAX_IDENTITY) + 1


@dataclass(frozen=True)
class ResourceKind(Generic[R]):
    """Descriptor binding a record type to its endpoint and row layout.

    ``wire_fields`` lists the JSON names in row order; ``headers`` are the
    display names for the same positions. ``draft_defaults`` seeds a new
    draft and is never applied to decoded rows.
    """

    name: str
    path: str
    model: type[R]
    wire_fields: tuple[str, ...]
    headers: tuple[str, ...]
    operations: frozenset[str] = field(
        default=frozenset({"list", "create", "update", "delete"})
    )
    draft_defaults: Mapping[str, Any] = field(default_factory=dict)

    @property
    def identity_field(self) -> str:
        return "id"

    @property
    def field_names(self) -> tuple[str, ...]:
        """Python field names in row order."""
        return tuple(self.model.model_fields)

    def supports(self, operation: str) -> bool:
        return operation in self.operations

    def decode(self, row: list[Any]) -> R:
        """Project a positional wire row onto the record's fields.

        Raises DecodeError only when the identity cell is missing or is
        not an integer.
        """
        values: dict[str, Any] = {}
        for position, wire_name in enumerate(self.wire_fields):
            cell = cell_from_wire(row[position] if position < len(row) else None)
            values[wire_name] = cell.to_python()
        try:
            return self.model.model_validate(values)
        except ValidationError as e:
            msg = f"Cannot decode {self.name} row {list(row)!r}: {validation_summary(e)}"
            raise DecodeError(msg) from e

    def validate_input(self, data: dict[str, Any], edited: str) -> R:
        """Build a record from form data, holding ``edited`` to its declared type."""
        return self.model.model_validate(data, context={"strict_fields": {edited}})

    def encode(self, record: R) -> dict[str, Any]:
        """Wire body for create/update requests."""
        return record.model_dump(mode="json", by_alias=True)

    def defaults(self) -> R:
        """Draft with a freshly allocated identity and this kind's starting values."""
        return self.model(id=allocate_identity(), **self.draft_defaults)

    def to_result(self, records: list[R]) -> QueryResult:
        """Lay records back out as a table using the display headers."""
        rows = [list(self.encode(r).values()) for r in records]
        return QueryResult(columns=list(self.headers), rows=rows)


USERS: ResourceKind[AccountHolder] = ResourceKind(
    name="users",
    path="/api/users",
    model=AccountHolder,
    wire_fields=("id", "name", "email"),
    headers=("ID", "Name", "Email"),
    draft_defaults={"name": "", "email": ""},
)

WALLETS: ResourceKind[Wallet] = ResourceKind(
    name="wallets",
    path="/api/wallets",
    model=Wallet,
    wire_fields=("id", "user_id", "balance"),
    headers=("ID", "User ID", "Balance"),
    draft_defaults={"owner_id": 0, "balance": "0.00"},
)

TRANSACTIONS: ResourceKind[Transaction] = ResourceKind(
    name="transactions",
    path="/api/transactions",
    model=Transaction,
    wire_fields=("id", "wallet_id", "amount", "type"),
    headers=("ID", "Wallet ID", "Amount", "Type"),
    operations=frozenset({"list", "create"}),
    draft_defaults={
        "wallet_id": 0,
        "amount": "0.00",
        "kind": TransactionKind.DEPOSIT,
    },
)

RESOURCE_KINDS: dict[str, ResourceKind[Any]] = {
    kind.name: kind for kind in (USERS, WALLETS, TRANSACTIONS)
}
