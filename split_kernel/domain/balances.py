"""
Balances -- fold a Ledger into net positions.

Responsibility:
    Derives each member's signed net balance from the full transaction
    history. Balances are never stored; every call recomputes from the
    ledger snapshot it is given.

Architecture position:
    Kernel > Domain -- pure function, zero I/O, safe from any thread.

Invariants enforced:
    - CONSERVATION: every credit has a matching debit, so the result sums
      to exactly zero. The sum is re-checked before returning.

Sign convention:
    positive -> the member is owed money (creditor)
    negative -> the member owes money (debtor)
"""

from __future__ import annotations

from split_kernel.domain.ledger import Ledger
from split_kernel.domain.transactions import Transaction, TransactionKind
from split_kernel.domain.values import Money
from split_kernel.exceptions import ConservationViolationError


def compute_balances(ledger: Ledger) -> dict[str, Money]:
    """
    Net balance per member id.

    Every registered member appears (at zero if untouched), followed by any
    other id the transactions mention, in discovery order. Reminders add
    their members but never move money.

    Raises:
        ConservationViolationError: If the balances do not sum to zero.
    """
    totals: dict[str, int] = dict.fromkeys(ledger.member_ids(), 0)

    for tx in ledger.all():
        for member_id in tx.member_ids():
            totals.setdefault(member_id, 0)
        for member_id, delta in _balance_effects(tx):
            totals[member_id] += delta

    residual = sum(totals.values())
    if residual != 0:
        raise ConservationViolationError(residual, sorted(totals))

    return {member_id: Money(units) for member_id, units in totals.items()}


def _balance_effects(tx: Transaction) -> list[tuple[str, int]]:
    if tx.kind is TransactionKind.EXPENSE:
        # A payer who is also a participant gets both effects; their own
        # share cancels out.
        effects = [(tx.payer_id, tx.amount.minor_units)]
        effects.extend((member_id, -share.minor_units) for member_id, share in tx.shares.items())
        return effects
    if tx.kind is TransactionKind.SETTLEMENT:
        return [
            (tx.payer_id, tx.amount.minor_units),
            (tx.receiver_id, -tx.amount.minor_units),
        ]
    return []


def total_outstanding(balances: dict[str, Money]) -> Money:
    """Sum of all debts still open, i.e. the total of the negative balances."""
    return sum((-b for b in balances.values() if b.is_negative), Money.zero())
