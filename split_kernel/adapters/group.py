"""
Group adapter -- shared-group records to Transactions.

Responsibility:
    Maps the records a shared group keeps (one list mixing expenses,
    settlements and reminders) onto the kernel's Transaction shape, and
    builds the group's Ledger.

Record shape (keys as stored by the hosting app)::

    {
        "id": "e1",
        "title": "Groceries",
        "amount": "120.00",
        "paid_by": "alice",
        "shared_with": ["alice", "bob"],
        "split": {"alice": "60.00", "bob": "60.00"},
        "type": "expense" | "settlement" | "reminder",
        "date": "2024-03-01T18:30:00Z",
    }

Mapping rules:
    - expense: ``split`` gives the shares. When it is absent, the amount is
      divided equally over ``shared_with``.
    - settlement: ``shared_with`` names the receiver and must hold exactly
      one id. Multi-receiver settlements are not supported.
    - reminder: ``paid_by`` is the creditor sending it, ``shared_with[0]``
      the member reminded.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any

from split_kernel.adapters._common import (
    MemberResolver,
    parse_amount,
    parse_timestamp,
    require,
)
from split_kernel.config import KernelConfig
from split_kernel.domain.ledger import DEFAULT_CURRENCY, Ledger, MemberPolicy
from split_kernel.domain.splits import split_equal
from split_kernel.domain.transactions import Member, Transaction, TransactionKind
from split_kernel.domain.values import DEFAULT_DECIMAL_PLACES
from split_kernel.exceptions import UnsupportedRecordError


def group_record_to_transaction(
    record: Mapping[str, Any],
    resolve: MemberResolver,
    decimal_places: int = DEFAULT_DECIMAL_PLACES,
) -> Transaction:
    record_id = str(require(record, "id"))
    try:
        kind = TransactionKind(record.get("type", TransactionKind.EXPENSE.value))
    except ValueError:
        raise UnsupportedRecordError(record_id, f"unknown type {record.get('type')!r}") from None

    payer_id = resolve(record_id, record.get("paid_by"))
    amount = parse_amount(record_id, record.get("amount"), decimal_places)
    timestamp = parse_timestamp(record_id, record.get("date"))
    description = str(record.get("title") or "")
    shared_with = [resolve(record_id, m) for m in record.get("shared_with") or []]

    if kind is TransactionKind.EXPENSE:
        split = record.get("split") or {}
        if split:
            shares = {
                resolve(record_id, member_id): parse_amount(record_id, value, decimal_places)
                for member_id, value in split.items()
            }
        elif shared_with:
            shares = split_equal(amount, shared_with)
        else:
            raise UnsupportedRecordError(record_id, "expense has neither split nor shared_with")
        return Transaction.expense(record_id, payer_id, amount, shares, timestamp, description)

    if len(shared_with) != 1:
        raise UnsupportedRecordError(
            record_id, f"{kind.value} must name exactly one counterparty, got {len(shared_with)}"
        )
    if kind is TransactionKind.SETTLEMENT:
        return Transaction.settlement(record_id, payer_id, shared_with[0], amount, timestamp, description)
    return Transaction.reminder(record_id, payer_id, shared_with[0], timestamp, amount, description)


def group_ledger(
    group: Mapping[str, Any],
    *,
    local_member_id: str | None = None,
    alias: str = "me",
    member_policy: MemberPolicy = MemberPolicy.STRICT,
    decimal_places: int = DEFAULT_DECIMAL_PLACES,
    currency: str = DEFAULT_CURRENCY,
) -> Ledger:
    """
    Build the Ledger of one group::

        {"id": "g1", "currency": "EUR",
         "members": [{"id": "alice", "name": "Alice"}, ...],
         "expenses": [<record>, ...]}

    Records are appended oldest first (stable on equal dates), whatever
    order the group stores them in.
    """
    resolve = MemberResolver(local_member_id, alias)
    scope_id = str(require(group, "id"))
    members = _members(group.get("members") or [], resolve, scope_id)
    transactions = sorted(
        (group_record_to_transaction(r, resolve, decimal_places) for r in group.get("expenses") or []),
        key=lambda tx: tx.timestamp,
    )
    return Ledger.replay(
        scope_id,
        transactions,
        members,
        member_policy=member_policy,
        currency=str(group.get("currency") or currency),
    )


def group_ledger_from_config(
    group: Mapping[str, Any],
    config: KernelConfig,
    *,
    local_member_id: str | None = None,
) -> Ledger:
    """``group_ledger`` with alias, member policy, decimal places and fallback currency from ``config``."""
    return group_ledger(
        group,
        local_member_id=local_member_id,
        alias=config.local_member_alias,
        member_policy=config.member_policy,
        decimal_places=config.decimal_places,
        currency=config.currency,
    )


def _members(records: Iterable[Mapping[str, Any]], resolve: MemberResolver, scope_id: str) -> list[Member]:
    return [
        Member(resolve(scope_id, str(require(m, "id"))), str(m.get("name") or ""))
        for m in records
    ]
