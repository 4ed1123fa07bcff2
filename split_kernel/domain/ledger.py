"""
Ledger -- append-only transaction history of one scope.

Responsibility:
    Holds the ordered transactions of one group or event and validates each
    transaction before accepting it. Holds no balances: those are derived
    on demand by compute_balances().

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.

Invariants enforced:
    - APPEND_ONLY: a Ledger is an immutable value. ``append`` returns a new
      Ledger; the receiver is never modified, so a rejected append cannot
      leave a partial mutation behind and readers holding an older snapshot
      are unaffected.
    - SHARE_SUM, NON_NEGATIVE_AMOUNT, DISTINCT_COUNTERPARTY: checked by
      validate_transaction() before insertion.

Failure modes:
    - NegativeAmountError, MemberReferenceError, EmptySharesError,
      ShareSumMismatchError, SelfTransferError, DuplicateTransactionError
      from append(). Nothing is coerced or normalized.

Member policy:
    STRICT rejects a transaction that mentions an id outside the scope's
    member list. AUTO_REGISTER accepts it and adds the id as a member of the
    returned ledger. The policy is fixed per ledger, never decided per call.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from enum import Enum

from split_kernel.domain.transactions import Member, Transaction, TransactionKind
from split_kernel.domain.values import Money
from split_kernel.exceptions import (
    DuplicateTransactionError,
    EmptySharesError,
    MemberReferenceError,
    NegativeAmountError,
    SelfTransferError,
    ShareSumMismatchError,
)

DEFAULT_CURRENCY = "USD"


class MemberPolicy(str, Enum):
    STRICT = "strict"
    AUTO_REGISTER = "auto_register"


class Ledger:
    """
    Ordered, append-only sequence of Transactions for one scope.

    Contract:
        ``append(tx)`` validates ``tx`` and returns a new Ledger that ends
        with it. ``all()`` returns the transactions in insertion order.

    Guarantees:
        - Every contained transaction passed validate_transaction() against
          the ledger it was appended to.
        - Transaction ids are unique within the ledger.

    Non-goals:
        - Does NOT compute balances (see balances.compute_balances)
        - Does NOT persist itself (see split_kernel.db.repository)
    """

    __slots__ = (
        "_scope_id",
        "_members",
        "_member_policy",
        "_currency",
        "_transactions",
        "_transaction_ids",
    )

    def __init__(
        self,
        scope_id: str,
        members: Iterable[Member] = (),
        *,
        member_policy: MemberPolicy = MemberPolicy.STRICT,
        currency: str = DEFAULT_CURRENCY,
    ):
        registered: dict[str, Member] = {}
        for member in members:
            if member.id in registered:
                raise ValueError(f"Duplicate member id in scope {scope_id}: {member.id}")
            registered[member.id] = member

        self._scope_id = scope_id
        self._members = registered
        self._member_policy = MemberPolicy(member_policy)
        self._currency = currency
        self._transactions: tuple[Transaction, ...] = ()
        self._transaction_ids: frozenset[str] = frozenset()

    @classmethod
    def replay(
        cls,
        scope_id: str,
        transactions: Iterable[Transaction],
        members: Iterable[Member] = (),
        *,
        member_policy: MemberPolicy = MemberPolicy.STRICT,
        currency: str = DEFAULT_CURRENCY,
    ) -> Ledger:
        """Rebuild a ledger by appending ``transactions`` in order."""
        ledger = cls(scope_id, members, member_policy=member_policy, currency=currency)
        for tx in transactions:
            ledger = ledger.append(tx)
        return ledger

    @property
    def scope_id(self) -> str:
        return self._scope_id

    @property
    def member_policy(self) -> MemberPolicy:
        return self._member_policy

    @property
    def currency(self) -> str:
        return self._currency

    @property
    def members(self) -> tuple[Member, ...]:
        return tuple(self._members.values())

    def member_ids(self) -> tuple[str, ...]:
        return tuple(self._members)

    def has_member(self, member_id: str) -> bool:
        return member_id in self._members

    def member(self, member_id: str) -> Member | None:
        return self._members.get(member_id)

    def all(self) -> tuple[Transaction, ...]:
        """Read-only view of the transactions in insertion order."""
        return self._transactions

    def has_transaction(self, transaction_id: str) -> bool:
        return transaction_id in self._transaction_ids

    def get(self, transaction_id: str) -> Transaction | None:
        if transaction_id not in self._transaction_ids:
            return None
        return next(tx for tx in self._transactions if tx.id == transaction_id)

    def append(self, transaction: Transaction) -> Ledger:
        """
        Validate ``transaction`` and return a new ledger ending with it.

        Raises:
            InvalidTransactionError subclass or DuplicateTransactionError.
            The receiver is unchanged in every case.
        """
        new_members = validate_transaction(self, transaction)
        return self._derive(
            members={**self._members, **{m.id: m for m in new_members}},
            transactions=self._transactions + (transaction,),
            transaction_ids=self._transaction_ids | {transaction.id},
        )

    def with_member(self, member: Member) -> Ledger:
        """Return a ledger with ``member`` registered (or renamed)."""
        return self._derive(
            members={**self._members, member.id: member},
            transactions=self._transactions,
            transaction_ids=self._transaction_ids,
        )

    def _derive(
        self,
        *,
        members: dict[str, Member],
        transactions: tuple[Transaction, ...],
        transaction_ids: frozenset[str],
    ) -> Ledger:
        derived = object.__new__(Ledger)
        derived._scope_id = self._scope_id
        derived._members = members
        derived._member_policy = self._member_policy
        derived._currency = self._currency
        derived._transactions = transactions
        derived._transaction_ids = transaction_ids
        return derived

    def __len__(self) -> int:
        return len(self._transactions)

    def __iter__(self) -> Iterator[Transaction]:
        return iter(self._transactions)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Ledger):
            return NotImplemented
        return (
            self._scope_id == other._scope_id
            and self._members == other._members
            and self._transactions == other._transactions
        )

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return (
            f"Ledger(scope_id={self._scope_id!r}, members={len(self._members)}, "
            f"transactions={len(self._transactions)})"
        )


def validate_transaction(ledger: Ledger, tx: Transaction) -> tuple[Member, ...]:
    """
    Check ``tx`` against ``ledger`` without modifying anything.

    Postconditions:
        - Returns the members that must be registered to accept ``tx``
          (always empty under MemberPolicy.STRICT).

    Raises:
        NegativeAmountError, MemberReferenceError, EmptySharesError,
        ShareSumMismatchError, SelfTransferError, DuplicateTransactionError.
    """
    if tx.amount.is_negative:
        raise NegativeAmountError(tx.id, "amount", tx.amount.minor_units)
    for member_id, share in tx.shares.items():
        if share.is_negative:
            raise NegativeAmountError(tx.id, f"share[{member_id}]", share.minor_units)

    if tx.kind is not TransactionKind.EXPENSE and not tx.counterparty_id:
        raise MemberReferenceError(tx.id, "", ledger.scope_id)

    unknown = [m for m in tx.member_ids() if not ledger.has_member(m)]
    if unknown and ledger.member_policy is MemberPolicy.STRICT:
        raise MemberReferenceError(tx.id, unknown[0], ledger.scope_id)

    if tx.kind is TransactionKind.EXPENSE:
        if not tx.shares:
            raise EmptySharesError(tx.id)
        share_total = sum(tx.shares.values(), Money.zero())
        if share_total != tx.amount:
            raise ShareSumMismatchError(
                tx.id, tx.amount.minor_units, share_total.minor_units
            )
    elif tx.counterparty_id == tx.payer_id:
        raise SelfTransferError(tx.id, tx.payer_id)

    if ledger.has_transaction(tx.id):
        raise DuplicateTransactionError(tx.id, ledger.scope_id)

    return tuple(Member(member_id) for member_id in unknown)
