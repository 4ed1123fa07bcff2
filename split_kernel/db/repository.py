"""
LedgerRepository -- persist and reload a scope's transaction list.

Responsibility:
    Stores each appended transaction (with its shares) and the scope's
    members, and rebuilds a Ledger from them. Validation always goes
    through Ledger.append first; nothing reaches the session that the
    domain would reject.

Architecture position:
    Kernel > DB -- the storage collaborator. Uses the caller's Session and
    only ever calls ``session.flush()``; the caller owns commit/rollback
    (e.g. via split_kernel.db.engine.session_scope).

Concurrency:
    Each transaction row takes the next ``sequence`` slot of its scope.
    The (scope_id, sequence) unique constraint makes two writers that
    appended to the same snapshot collide; the loser gets
    StaleLedgerError and should reload and retry.

Failure modes:
    - Ledger validation errors (nothing is written).
    - StaleLedgerError when the stored scope moved on.
    - ScopeNotFoundError from load() when the scope has no rows at all.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import timezone

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from split_kernel.db.models import ScopeMemberRecord, ShareRecord, TransactionRecord
from split_kernel.domain.ledger import DEFAULT_CURRENCY, Ledger, MemberPolicy
from split_kernel.domain.transactions import Member, Transaction, TransactionKind
from split_kernel.domain.values import Money
from split_kernel.exceptions import ScopeNotFoundError, StaleLedgerError
from split_kernel.logging_config import get_logger

logger = get_logger("db.repository")


class LedgerRepository:
    """
    Reads and writes one scope at a time.

    Guarantees:
        - Transactions are written in ledger order with contiguous sequence
          numbers starting at 0.
        - load() replays rows through Ledger.append, so a loaded ledger
          satisfies every domain invariant.
    """

    def __init__(self, session: Session):
        self.session = session

    # -- writes -------------------------------------------------------------

    def create_scope(self, ledger: Ledger) -> Ledger:
        """Persist a ledger that has never been stored: members and history."""
        self._insert_members(ledger.scope_id, ledger.members, start=0)
        for sequence, tx in enumerate(ledger.all()):
            self.session.add(_to_record(ledger.scope_id, sequence, tx))
        self._flush(ledger.scope_id, 0)
        logger.info(
            "scope_persisted",
            extra={
                "scope_id": ledger.scope_id,
                "member_count": len(ledger.members),
                "transaction_count": len(ledger),
            },
        )
        return ledger

    def append(self, ledger: Ledger, transaction: Transaction) -> Ledger:
        """
        Validate ``transaction`` against ``ledger``, store it, and return the
        extended ledger.

        ``ledger`` must be the latest stored state of its scope.
        """
        updated = ledger.append(transaction)
        new_members = [m for m in updated.members if not ledger.has_member(m.id)]
        if new_members:
            self._insert_members(ledger.scope_id, new_members, start=len(ledger.members))

        sequence = len(ledger)
        self.session.add(_to_record(ledger.scope_id, sequence, transaction))
        self._flush(ledger.scope_id, sequence)
        logger.info(
            "transaction_persisted",
            extra={
                "scope_id": ledger.scope_id,
                "transaction_id": transaction.id,
                "kind": transaction.kind.value,
                "sequence": sequence,
            },
        )
        return updated

    def save_member(self, scope_id: str, member: Member) -> None:
        """Register a member, or update the display name of an existing one."""
        record = self.session.scalars(
            select(ScopeMemberRecord).where(
                ScopeMemberRecord.scope_id == scope_id,
                ScopeMemberRecord.member_id == member.id,
            )
        ).one_or_none()
        if record is None:
            position = self.session.scalar(
                select(func.count()).select_from(ScopeMemberRecord).where(
                    ScopeMemberRecord.scope_id == scope_id
                )
            )
            self._insert_members(scope_id, [member], start=position or 0)
        else:
            record.display_name = member.display_name
        self.session.flush()

    # -- reads --------------------------------------------------------------

    def load(
        self,
        scope_id: str,
        *,
        member_policy: MemberPolicy = MemberPolicy.STRICT,
        currency: str = DEFAULT_CURRENCY,
    ) -> Ledger:
        members = [
            Member(r.member_id, r.display_name)
            for r in self.session.scalars(
                select(ScopeMemberRecord)
                .where(ScopeMemberRecord.scope_id == scope_id)
                .order_by(ScopeMemberRecord.position)
            )
        ]
        records = list(
            self.session.scalars(
                select(TransactionRecord)
                .where(TransactionRecord.scope_id == scope_id)
                .order_by(TransactionRecord.sequence)
            )
        )
        if not members and not records:
            raise ScopeNotFoundError(scope_id)

        # Members discovered by auto-registration were stored too, so STRICT
        # replay succeeds for ledgers that were written under either policy.
        return Ledger.replay(
            scope_id,
            (_from_record(r) for r in records),
            members,
            member_policy=member_policy,
            currency=currency,
        )

    def transaction_count(self, scope_id: str) -> int:
        return self.session.scalar(
            select(func.count()).select_from(TransactionRecord).where(
                TransactionRecord.scope_id == scope_id
            )
        ) or 0

    # -- helpers ------------------------------------------------------------

    def _insert_members(self, scope_id: str, members: Iterable[Member], start: int) -> None:
        for offset, member in enumerate(members):
            self.session.add(
                ScopeMemberRecord(
                    scope_id=scope_id,
                    member_id=member.id,
                    display_name=member.display_name,
                    position=start + offset,
                )
            )

    def _flush(self, scope_id: str, sequence: int) -> None:
        try:
            self.session.flush()
        except IntegrityError as e:
            logger.warning(
                "stale_ledger_detected",
                extra={"scope_id": scope_id, "sequence": sequence},
            )
            raise StaleLedgerError(scope_id, sequence) from e


def _to_record(scope_id: str, sequence: int, tx: Transaction) -> TransactionRecord:
    record = TransactionRecord(
        scope_id=scope_id,
        transaction_id=tx.id,
        sequence=sequence,
        kind=tx.kind.value,
        payer_id=tx.payer_id,
        counterparty_id=tx.counterparty_id,
        amount_minor=tx.amount.minor_units,
        occurred_at=tx.timestamp.astimezone(timezone.utc),
        description=tx.description,
    )
    record.shares = [
        ShareRecord(member_id=member_id, amount_minor=share.minor_units, position=position)
        for position, (member_id, share) in enumerate(tx.shares.items())
    ]
    return record


def _from_record(record: TransactionRecord) -> Transaction:
    occurred_at = record.occurred_at
    if occurred_at.tzinfo is None:
        # SQLite drops the offset; everything is stored in UTC.
        occurred_at = occurred_at.replace(tzinfo=timezone.utc)

    kind = TransactionKind(record.kind)
    common = dict(
        id=record.transaction_id,
        payer_id=record.payer_id,
        amount=Money(record.amount_minor),
        timestamp=occurred_at,
        description=record.description,
    )
    if kind is TransactionKind.EXPENSE:
        shares = {s.member_id: Money(s.amount_minor) for s in record.shares}
        return Transaction(kind=kind, shares=shares, **common)
    if kind is TransactionKind.SETTLEMENT:
        return Transaction(kind=kind, receiver_id=record.counterparty_id, **common)
    return Transaction(kind=kind, target_id=record.counterparty_id, **common)
