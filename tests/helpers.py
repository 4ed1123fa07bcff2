"""Builders shared by the test modules. Amounts are in minor units."""

from datetime import datetime, timezone

from split_kernel.domain.splits import split_equal
from split_kernel.domain.transactions import Member, Transaction
from split_kernel.domain.values import Money

ALICE = Member("alice", "Alice")
BOB = Member("bob", "Bob")
CAROL = Member("carol", "Carol")

T0 = datetime(2024, 3, 1, 12, 0, 0, tzinfo=timezone.utc)


class SequentialIds:
    """Id factory producing tx-1, tx-2, ... so assertions can name transactions."""

    def __init__(self, prefix: str = "tx"):
        self.prefix = prefix
        self.count = 0

    def __call__(self) -> str:
        self.count += 1
        return f"{self.prefix}-{self.count}"


def expense(
    tx_id: str,
    payer_id: str,
    amount: int,
    participants=None,
    shares: dict[str, int] | None = None,
    *,
    at: datetime = T0,
    description: str = "",
) -> Transaction:
    """
    Build an expense.

    Either ``shares`` (explicit minor units per member) or ``participants``
    (equal split) must be given.
    """
    if shares is not None:
        split = {m: Money(v) for m, v in shares.items()}
    else:
        split = split_equal(Money(amount), participants)
    return Transaction.expense(tx_id, payer_id, Money(amount), split, at, description)


def settlement(tx_id: str, payer_id: str, receiver_id: str, amount: int, *, at: datetime = T0) -> Transaction:
    return Transaction.settlement(tx_id, payer_id, receiver_id, Money(amount), at)


def reminder(tx_id: str, payer_id: str, target_id: str, *, at: datetime = T0) -> Transaction:
    return Transaction.reminder(tx_id, payer_id, target_id, at)


def units(balances: dict[str, Money]) -> dict[str, int]:
    """Balances as plain ints for compact assertions."""
    return {member_id: b.minor_units for member_id, b in balances.items()}


def instructions(plan) -> list[tuple[str, str, int]]:
    return [(i.from_id, i.to_id, i.amount.minor_units) for i in plan]
