"""
History -- read-only views over a Ledger for two members.

Responsibility:
    ``find_between`` explains a suggested transfer by listing the expenses
    the two members share. ``pair_status`` reconstructs whether a transfer
    is pending, reminded or settled by scanning the ledger.

Architecture position:
    Kernel > Domain -- pure functions, zero I/O.

Design:
    Status is never stored on an instruction. It is derived on demand in
    one O(T) pass, so it cannot drift out of sync with the ledger.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum

from split_kernel.domain.balances import compute_balances
from split_kernel.domain.ledger import Ledger
from split_kernel.domain.planner import plan_settlements
from split_kernel.domain.transactions import Transaction, TransactionKind
from split_kernel.domain.values import Money


def find_between(
    ledger: Ledger,
    member_a: str,
    member_b: str,
    limit: int | None = None,
) -> tuple[Transaction, ...]:
    """
    Expenses where one of the pair paid and the other holds a non-zero share.

    Ledger order is preserved. With ``limit`` only the most recent ``limit``
    matches are returned. Settlements and reminders are never included.
    """
    if member_a == member_b:
        return ()
    matches = tuple(
        tx for tx in ledger.all() if _is_mutual_expense(tx, member_a, member_b)
    )
    if limit is not None:
        matches = matches[-limit:] if limit > 0 else ()
    return matches


def _is_mutual_expense(tx: Transaction, member_a: str, member_b: str) -> bool:
    if tx.kind is not TransactionKind.EXPENSE:
        return False
    if tx.payer_id == member_a:
        other = member_b
    elif tx.payer_id == member_b:
        other = member_a
    else:
        return False
    share = tx.shares.get(other)
    return share is not None and not share.is_zero


@dataclass(frozen=True, slots=True)
class MutualEntry:
    """One shared expense seen from the pair: ``owed_by`` owes ``owed_to`` ``amount``."""

    transaction: Transaction
    owed_by: str
    owed_to: str
    amount: Money


def describe_between(
    ledger: Ledger,
    member_a: str,
    member_b: str,
    limit: int | None = None,
) -> tuple[MutualEntry, ...]:
    """find_between() with the direction and size of each share spelled out."""
    entries = []
    for tx in find_between(ledger, member_a, member_b, limit):
        owed_by = member_b if tx.payer_id == member_a else member_a
        entries.append(MutualEntry(tx, owed_by, tx.payer_id, tx.shares[owed_by]))
    return tuple(entries)


class PairState(str, Enum):
    PENDING = "pending"
    REMINDED = "reminded"
    SETTLED = "settled"


@dataclass(frozen=True, slots=True)
class PairStatus:
    """Reconstructed status of the transfer ``from_id`` -> ``to_id``."""

    from_id: str
    to_id: str
    state: PairState
    outstanding: Money
    paid_so_far: Money
    last_reminded_at: datetime | None = None


def pair_status(ledger: Ledger, from_id: str, to_id: str) -> PairStatus:
    """
    Status of the suggested transfer from ``from_id`` to ``to_id``.

    - SETTLED: the current plan has no instruction for the pair.
    - REMINDED: ``to_id`` reminded ``from_id`` after the last payment
      ``from_id`` made to ``to_id``.
    - PENDING: otherwise.

    ``paid_so_far`` totals every settlement ``from_id`` has made to
    ``to_id``; ``outstanding`` is the amount the current plan asks for.
    """
    plan = plan_settlements(compute_balances(ledger))
    outstanding = sum(
        (i.amount for i in plan if i.from_id == from_id and i.to_id == to_id),
        Money.zero(),
    )

    paid = Money.zero()
    reminded_at: datetime | None = None
    for tx in ledger.all():
        if (
            tx.kind is TransactionKind.SETTLEMENT
            and tx.payer_id == from_id
            and tx.receiver_id == to_id
        ):
            paid += tx.amount
            reminded_at = None
        elif (
            tx.kind is TransactionKind.REMINDER
            and tx.payer_id == to_id
            and tx.target_id == from_id
        ):
            reminded_at = tx.timestamp

    if outstanding.is_zero:
        state = PairState.SETTLED
    elif reminded_at is not None:
        state = PairState.REMINDED
    else:
        state = PairState.PENDING

    return PairStatus(
        from_id=from_id,
        to_id=to_id,
        state=state,
        outstanding=outstanding,
        paid_so_far=paid,
        last_reminded_at=reminded_at,
    )
