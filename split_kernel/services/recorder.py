"""
SettlementRecorder -- turn user actions into ledger transactions.

Responsibility:
    Records a confirmed settlement (full or partial) or a reminder as a new
    transaction and returns the resulting ledger. Callers then recompute
    balances and the plan from the whole ledger; nothing is patched
    incrementally.

Architecture position:
    Kernel > Services -- imperative shell around the pure Ledger. Owns the
    two impure inputs a transaction needs: a timestamp (Clock) and an id.

Invariants enforced:
    APPEND_ONLY -- every operation returns a new Ledger; the one passed in
    is left untouched.

Failure modes:
    - Any InvalidTransactionError raised by Ledger.append propagates after
      being logged as ``transaction_rejected``.

Policy:
    A settlement may be smaller than, equal to, or larger than the
    suggested amount. Overpayment is accepted and shows up as a reversed
    balance between the pair on the next recomputation.
"""

from __future__ import annotations

from collections.abc import Callable
from uuid import uuid4

from split_kernel.domain.clock import Clock, SystemClock
from split_kernel.domain.ledger import Ledger
from split_kernel.domain.planner import SettlementInstruction
from split_kernel.domain.transactions import Transaction
from split_kernel.domain.values import Money
from split_kernel.exceptions import LedgerError
from split_kernel.logging_config import get_logger

logger = get_logger("services.recorder")


def _new_id() -> str:
    return str(uuid4())


class SettlementRecorder:
    """
    Records settlements and reminders.

    Contract:
        ``record_full_settlement`` and ``record_partial_settlement`` append
        the same kind of transaction; "partial" only describes how the user
        got there. ``record_reminder`` appends a reminder from the creditor
        ``to_id`` to the debtor ``from_id`` with no monetary effect.
    """

    def __init__(
        self,
        clock: Clock | None = None,
        id_factory: Callable[[], str] | None = None,
    ):
        self._clock = clock or SystemClock()
        self._id_factory = id_factory or _new_id

    def record_full_settlement(
        self,
        ledger: Ledger,
        from_id: str,
        to_id: str,
        amount: Money,
    ) -> Ledger:
        return self._record_settlement(ledger, from_id, to_id, amount, partial=False)

    def record_partial_settlement(
        self,
        ledger: Ledger,
        from_id: str,
        to_id: str,
        amount: Money,
    ) -> Ledger:
        return self._record_settlement(ledger, from_id, to_id, amount, partial=True)

    def settle_instruction(self, ledger: Ledger, instruction: SettlementInstruction) -> Ledger:
        """Pay a planned instruction in full."""
        return self.record_full_settlement(
            ledger, instruction.from_id, instruction.to_id, instruction.amount
        )

    def record_reminder(
        self,
        ledger: Ledger,
        from_id: str,
        to_id: str,
        amount: Money | None = None,
    ) -> Ledger:
        """
        Record that ``to_id`` reminded ``from_id`` about the transfer
        ``from_id -> to_id``. ``amount`` is shown to the debtor only.
        """
        target = ledger.member(from_id)
        tx = Transaction.reminder(
            id=self._id_factory(),
            payer_id=to_id,
            target_id=from_id,
            timestamp=self._clock.now(),
            amount=amount,
            description=f"Reminder to {target.display_name if target else from_id}",
        )
        updated = self._append(ledger, tx)
        logger.info(
            "reminder_recorded",
            extra={
                "scope_id": ledger.scope_id,
                "transaction_id": tx.id,
                "from_id": from_id,
                "to_id": to_id,
                "amount": tx.amount.minor_units,
            },
        )
        return updated

    def _record_settlement(
        self,
        ledger: Ledger,
        from_id: str,
        to_id: str,
        amount: Money,
        *,
        partial: bool,
    ) -> Ledger:
        receiver = ledger.member(to_id)
        tx = Transaction.settlement(
            id=self._id_factory(),
            payer_id=from_id,
            receiver_id=to_id,
            amount=amount,
            timestamp=self._clock.now(),
            description=f"Settlement to {receiver.display_name if receiver else to_id}",
        )
        updated = self._append(ledger, tx)
        logger.info(
            "settlement_recorded",
            extra={
                "scope_id": ledger.scope_id,
                "transaction_id": tx.id,
                "from_id": from_id,
                "to_id": to_id,
                "amount": amount.minor_units,
                "partial": partial,
            },
        )
        return updated

    def _append(self, ledger: Ledger, tx: Transaction) -> Ledger:
        try:
            return ledger.append(tx)
        except LedgerError as e:
            logger.warning(
                "transaction_rejected",
                extra={
                    "scope_id": ledger.scope_id,
                    "transaction_id": tx.id,
                    "kind": tx.kind.value,
                    "error_code": e.code,
                },
            )
            raise
