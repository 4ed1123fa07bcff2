"""
Transactions -- the generic record shape every scope is reduced to.

Responsibility:
    Declares Member, TransactionKind and Transaction. Group screens and
    event screens map their own records onto this shape at the boundary
    (split_kernel.adapters); the balance and planning algorithms only ever
    see Transactions.

Architecture position:
    Kernel > Domain -- pure data, zero I/O.

Invariants enforced:
    None at construction. Kind-specific rules (share sum, distinct
    counterparty, non-negative amounts, known members) are checked by
    Ledger.append so that rejection is atomic with insertion.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from types import MappingProxyType

from split_kernel.domain.values import Money


@dataclass(frozen=True, slots=True)
class Member:
    """Identity of a person within one scope. Ids are not shared across scopes."""

    id: str
    display_name: str = ""

    def __post_init__(self) -> None:
        if not self.id:
            raise ValueError("Member id must be non-empty")
        if not self.display_name:
            object.__setattr__(self, "display_name", self.id)


class TransactionKind(str, Enum):
    EXPENSE = "expense"
    SETTLEMENT = "settlement"
    REMINDER = "reminder"


@dataclass(frozen=True, slots=True)
class Transaction:
    """
    One immutable ledger entry.

    Contract:
        - expense: ``payer_id`` paid ``amount``; ``shares`` maps each
          participant to what they owe for it (the payer may be one of them).
        - settlement: ``payer_id`` paid ``amount`` to ``receiver_id``.
        - reminder: ``payer_id`` reminded ``target_id``; ``amount`` is
          informational and never affects balances.

    Use the ``expense`` / ``settlement`` / ``reminder`` factories rather than
    the constructor.
    """

    id: str
    kind: TransactionKind
    payer_id: str
    amount: Money
    timestamp: datetime
    shares: Mapping[str, Money] = field(default_factory=dict, hash=False)
    receiver_id: str | None = None
    target_id: str | None = None
    description: str = ""

    def __post_init__(self) -> None:
        if not isinstance(self.amount, Money):
            raise TypeError(f"amount must be Money, got {type(self.amount).__name__}")
        if not isinstance(self.kind, TransactionKind):
            object.__setattr__(self, "kind", TransactionKind(self.kind))
        # Freeze a private copy so later edits to the caller's dict cannot leak in.
        if not isinstance(self.shares, MappingProxyType):
            object.__setattr__(self, "shares", MappingProxyType(dict(self.shares)))

    @classmethod
    def expense(
        cls,
        id: str,
        payer_id: str,
        amount: Money,
        shares: Mapping[str, Money],
        timestamp: datetime,
        description: str = "",
    ) -> Transaction:
        return cls(
            id=id,
            kind=TransactionKind.EXPENSE,
            payer_id=payer_id,
            amount=amount,
            timestamp=timestamp,
            shares=shares,
            description=description,
        )

    @classmethod
    def settlement(
        cls,
        id: str,
        payer_id: str,
        receiver_id: str,
        amount: Money,
        timestamp: datetime,
        description: str = "",
    ) -> Transaction:
        return cls(
            id=id,
            kind=TransactionKind.SETTLEMENT,
            payer_id=payer_id,
            amount=amount,
            timestamp=timestamp,
            receiver_id=receiver_id,
            description=description,
        )

    @classmethod
    def reminder(
        cls,
        id: str,
        payer_id: str,
        target_id: str,
        timestamp: datetime,
        amount: Money | None = None,
        description: str = "",
    ) -> Transaction:
        return cls(
            id=id,
            kind=TransactionKind.REMINDER,
            payer_id=payer_id,
            amount=amount if amount is not None else Money.zero(),
            timestamp=timestamp,
            target_id=target_id,
            description=description,
        )

    @property
    def counterparty_id(self) -> str | None:
        """Receiver of a settlement or target of a reminder."""
        if self.kind is TransactionKind.SETTLEMENT:
            return self.receiver_id
        if self.kind is TransactionKind.REMINDER:
            return self.target_id
        return None

    def member_ids(self) -> tuple[str, ...]:
        """Every member id this transaction mentions, payer first, no repeats."""
        ids = [self.payer_id]
        if self.kind is TransactionKind.EXPENSE:
            ids.extend(self.shares)
        elif self.counterparty_id is not None:
            ids.append(self.counterparty_id)
        return tuple(dict.fromkeys(ids))
