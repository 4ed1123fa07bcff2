"""
Module: split_kernel.db.models
Responsibility: ORM tables for a scope's members and its transaction list,
    the unit the storage collaborator persists and loads.

Tables:
    scope_members        one row per member of a scope, in registration order
    scope_transactions   one row per ledger transaction, ordered by sequence
    transaction_shares   expense shares, one row per participant

Invariants enforced:
    - (scope_id, sequence) and (scope_id, transaction_id) are unique, so two
      writers racing on the same scope cannot both commit the same slot.
    - amount_minor >= 0 (check constraint).
    - Rows are insert-only; see split_kernel.db.immutability.
"""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from sqlalchemy import (
    CheckConstraint,
    ForeignKey,
    Index,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from split_kernel.db.base import Base, UUIDString


class ScopeMemberRecord(Base):
    __tablename__ = "scope_members"

    __table_args__ = (
        UniqueConstraint("scope_id", "member_id", name="uq_scope_member"),
        Index("idx_scope_member_position", "scope_id", "position"),
    )

    scope_id: Mapped[str] = mapped_column(String(64), nullable=False)
    member_id: Mapped[str] = mapped_column(String(64), nullable=False)
    display_name: Mapped[str] = mapped_column(String(255), nullable=False)
    position: Mapped[int] = mapped_column(nullable=False)


class TransactionRecord(Base):
    __tablename__ = "scope_transactions"

    __table_args__ = (
        UniqueConstraint("scope_id", "sequence", name="uq_scope_sequence"),
        UniqueConstraint("scope_id", "transaction_id", name="uq_scope_transaction"),
        CheckConstraint("amount_minor >= 0", name="ck_amount_non_negative"),
        Index("idx_transaction_scope", "scope_id"),
    )

    scope_id: Mapped[str] = mapped_column(String(64), nullable=False)
    transaction_id: Mapped[str] = mapped_column(String(64), nullable=False)
    sequence: Mapped[int] = mapped_column(nullable=False)

    # expense | settlement | reminder
    kind: Mapped[str] = mapped_column(String(16), nullable=False)
    payer_id: Mapped[str] = mapped_column(String(64), nullable=False)
    # Settlement receiver or reminder target
    counterparty_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    amount_minor: Mapped[int] = mapped_column(nullable=False)
    occurred_at: Mapped[datetime] = mapped_column(nullable=False)
    description: Mapped[str] = mapped_column(String(255), nullable=False, default="")

    shares: Mapped[list[ShareRecord]] = relationship(
        back_populates="transaction",
        order_by="ShareRecord.position",
        cascade="save-update, merge",
        lazy="selectin",
    )


class ShareRecord(Base):
    __tablename__ = "transaction_shares"

    __table_args__ = (
        UniqueConstraint("transaction_pk", "member_id", name="uq_share_member"),
        CheckConstraint("amount_minor >= 0", name="ck_share_non_negative"),
    )

    transaction_pk: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("scope_transactions.id"),
        nullable=False,
    )
    member_id: Mapped[str] = mapped_column(String(64), nullable=False)
    amount_minor: Mapped[int] = mapped_column(nullable=False)
    position: Mapped[int] = mapped_column(nullable=False)

    transaction: Mapped[TransactionRecord] = relationship(back_populates="shares")
