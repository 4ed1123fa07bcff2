"""
Event adapter -- event expense records to Transactions.

Events keep a flat list of expenses tagged by ``category``. Ordinary
expenses are shared equally by every event member; ``Settlement`` and
``Reminder`` rows are transfers and nudges between two members.

Record shape::

    {
        "id": "x1",
        "name": "Venue deposit",
        "amount": "500.00",
        "category": "Venue" | "Settlement" | "Reminder",
        "date": "2024-05-02",
        "paid_by": "alice",        # defaults to the current user
        "receiver_id": "bob",      # Settlement rows
        "target_id": "carol",      # Reminder rows
    }

The receiver of a settlement has its own field. Vendor references stay
vendor references and are never read as member ids.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
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
from split_kernel.domain.transactions import Member, Transaction
from split_kernel.domain.values import DEFAULT_DECIMAL_PLACES
from split_kernel.exceptions import UnsupportedRecordError

SETTLEMENT_CATEGORY = "Settlement"
REMINDER_CATEGORY = "Reminder"


def event_record_to_transaction(
    record: Mapping[str, Any],
    member_ids: Sequence[str],
    resolve: MemberResolver,
    decimal_places: int = DEFAULT_DECIMAL_PLACES,
) -> Transaction:
    record_id = str(require(record, "id"))
    category = record.get("category") or ""
    payer_id = resolve(record_id, record.get("paid_by") or resolve.alias)
    amount = parse_amount(record_id, record.get("amount", 0), decimal_places)
    timestamp = parse_timestamp(record_id, record.get("date"))
    description = str(record.get("name") or "")

    if category == SETTLEMENT_CATEGORY:
        receiver_id = resolve(record_id, record.get("receiver_id"))
        return Transaction.settlement(record_id, payer_id, receiver_id, amount, timestamp, description)
    if category == REMINDER_CATEGORY:
        target_id = resolve(record_id, record.get("target_id"))
        return Transaction.reminder(record_id, payer_id, target_id, timestamp, amount, description)

    if not member_ids:
        raise UnsupportedRecordError(record_id, "event has no members to share the expense")
    return Transaction.expense(
        record_id, payer_id, amount, split_equal(amount, member_ids), timestamp, description
    )


def event_ledger(
    event: Mapping[str, Any],
    *,
    local_member_id: str | None = None,
    alias: str = "me",
    member_policy: MemberPolicy = MemberPolicy.STRICT,
    decimal_places: int = DEFAULT_DECIMAL_PLACES,
    currency: str = DEFAULT_CURRENCY,
) -> Ledger:
    """Build the Ledger of one event, oldest record first."""
    resolve = MemberResolver(local_member_id, alias)
    scope_id = str(require(event, "id"))
    members = [
        Member(resolve(scope_id, str(require(m, "id"))), str(m.get("name") or ""))
        for m in event.get("members") or []
    ]
    member_ids = [m.id for m in members]
    transactions = sorted(
        (
            event_record_to_transaction(r, member_ids, resolve, decimal_places)
            for r in event.get("expenses") or []
        ),
        key=lambda tx: tx.timestamp,
    )
    return Ledger.replay(
        scope_id,
        transactions,
        members,
        member_policy=member_policy,
        currency=str(event.get("currency") or currency),
    )


def event_ledger_from_config(
    event: Mapping[str, Any],
    config: KernelConfig,
    *,
    local_member_id: str | None = None,
) -> Ledger:
    """``event_ledger`` with alias, member policy, decimal places and fallback currency from ``config``."""
    return event_ledger(
        event,
        local_member_id=local_member_id,
        alias=config.local_member_alias,
        member_policy=config.member_policy,
        decimal_places=config.decimal_places,
        currency=config.currency,
    )
