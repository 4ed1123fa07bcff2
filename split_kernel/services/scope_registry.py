"""
ScopeRegistry -- current ledger per group/event with serialized appends.

Responsibility:
    Holds the latest Ledger of every open scope. Appends to one scope are
    serialized by that scope's lock so concurrent actors cannot lose each
    other's transactions. Reads return the latest immutable snapshot
    without taking any lock.

Architecture position:
    Kernel > Services -- the only shared mutable state in the kernel.

Invariants enforced:
    - APPEND_ONLY: an update must extend the current transaction history;
      anything else raises ImmutabilityViolationError and is discarded.
    - Scopes are independent: there is no cross-scope lock and no
      cross-scope netting.

Failure modes:
    - ScopeNotFoundError / ScopeAlreadyExistsError.
    - Ledger validation errors propagate; the stored snapshot is unchanged.
"""

from __future__ import annotations

import threading
from collections.abc import Callable, Iterable
from dataclasses import dataclass

from split_kernel.config import KernelConfig
from split_kernel.domain.balances import compute_balances
from split_kernel.domain.history import MutualEntry, describe_between
from split_kernel.domain.ledger import DEFAULT_CURRENCY, Ledger, MemberPolicy
from split_kernel.domain.planner import SettlementPlan, plan_settlements
from split_kernel.domain.transactions import Member, Transaction
from split_kernel.domain.values import Money
from split_kernel.exceptions import (
    ImmutabilityViolationError,
    ScopeAlreadyExistsError,
    ScopeNotFoundError,
)
from split_kernel.logging_config import LogContext, get_logger

logger = get_logger("services.scope_registry")


@dataclass(frozen=True)
class ScopeSummary:
    """Balances and plan derived from one ledger snapshot."""

    ledger: Ledger
    balances: dict[str, Money]
    plan: SettlementPlan


def summarize(ledger: Ledger) -> ScopeSummary:
    """Recompute balances and the settlement plan from scratch."""
    balances = compute_balances(ledger)
    plan = plan_settlements(balances)
    logger.debug(
        "plan_computed",
        extra={
            "scope_id": ledger.scope_id,
            "transaction_count": len(ledger),
            "instruction_count": len(plan),
            "plan": plan,
        },
    )
    return ScopeSummary(ledger=ledger, balances=balances, plan=plan)


class ScopeRegistry:
    """
    In-process home of every open scope's ledger.

    Contract:
        ``append`` and ``apply`` hold the scope's lock for the whole
        read-validate-swap cycle. ``snapshot`` and ``summary`` never block.
    """

    def __init__(
        self,
        *,
        member_policy: MemberPolicy = MemberPolicy.STRICT,
        currency: str = DEFAULT_CURRENCY,
        history_limit: int | None = 5,
    ):
        self._member_policy = member_policy
        self._currency = currency
        self._history_limit = history_limit
        self._ledgers: dict[str, Ledger] = {}
        self._locks: dict[str, threading.RLock] = {}
        self._registry_lock = threading.Lock()

    @classmethod
    def from_config(cls, config: KernelConfig) -> ScopeRegistry:
        return cls(
            member_policy=config.member_policy,
            currency=config.currency,
            history_limit=config.history_limit,
        )

    def open_scope(
        self,
        scope_id: str,
        members: Iterable[Member] = (),
        *,
        member_policy: MemberPolicy | None = None,
        currency: str | None = None,
    ) -> Ledger:
        ledger = Ledger(
            scope_id,
            members,
            member_policy=member_policy or self._member_policy,
            currency=currency or self._currency,
        )
        return self.adopt(ledger)

    def adopt(self, ledger: Ledger) -> Ledger:
        """Register an existing ledger, e.g. one loaded from storage."""
        with self._registry_lock:
            if ledger.scope_id in self._ledgers:
                raise ScopeAlreadyExistsError(ledger.scope_id)
            self._locks[ledger.scope_id] = threading.RLock()
            self._ledgers[ledger.scope_id] = ledger
        logger.info(
            "scope_opened",
            extra={
                "scope_id": ledger.scope_id,
                "member_count": len(ledger.members),
                "transaction_count": len(ledger),
            },
        )
        return ledger

    def close_scope(self, scope_id: str) -> Ledger:
        """
        Forget a scope and return its final ledger.

        Waits for an in-flight ``apply`` on the scope to finish, so its result
        is either included in the returned ledger or rejected.
        """
        lock = self._lock_for(scope_id)
        with lock, self._registry_lock:
            self._require_open(scope_id, lock)
            self._locks.pop(scope_id)
            ledger = self._ledgers.pop(scope_id)
        logger.info(
            "scope_closed",
            extra={"scope_id": scope_id, "transaction_count": len(ledger)},
        )
        return ledger

    def scope_ids(self) -> tuple[str, ...]:
        return tuple(self._ledgers)

    def snapshot(self, scope_id: str) -> Ledger:
        try:
            return self._ledgers[scope_id]
        except KeyError:
            raise ScopeNotFoundError(scope_id) from None

    def summary(self, scope_id: str) -> ScopeSummary:
        return summarize(self.snapshot(scope_id))

    def mutual_history(self, scope_id: str, member_a: str, member_b: str) -> tuple[MutualEntry, ...]:
        """Shared expenses of a pair, limited to the most recent ``history_limit``."""
        return describe_between(self.snapshot(scope_id), member_a, member_b, self._history_limit)

    def append(self, scope_id: str, transaction: Transaction) -> Ledger:
        return self.apply(scope_id, lambda ledger: ledger.append(transaction))

    def add_member(self, scope_id: str, member: Member) -> Ledger:
        return self.apply(scope_id, lambda ledger: ledger.with_member(member))

    def apply(self, scope_id: str, update: Callable[[Ledger], Ledger]) -> Ledger:
        """
        Run ``update`` against the current ledger under the scope's lock and
        store its result.

        ``update`` is typically a bound SettlementRecorder method, e.g.
        ``lambda l: recorder.record_partial_settlement(l, "b", "a", amount)``.
        """
        lock = self._lock_for(scope_id)
        with lock, LogContext.bind(scope_id=scope_id):
            self._require_open(scope_id, lock)
            current = self._ledgers[scope_id]
            updated = update(current)
            # ``update`` may have closed the scope; never resurrect it.
            self._require_open(scope_id, lock)
            _require_extension(current, updated)
            self._ledgers[scope_id] = updated
            added = len(updated) - len(current)
            if added:
                logger.info(
                    "transaction_appended",
                    extra={
                        "transaction_ids": [tx.id for tx in updated.all()[len(current):]],
                        "transaction_count": len(updated),
                    },
                )
            return updated

    def _lock_for(self, scope_id: str) -> threading.RLock:
        try:
            return self._locks[scope_id]
        except KeyError:
            raise ScopeNotFoundError(scope_id) from None

    def _require_open(self, scope_id: str, lock: threading.RLock) -> None:
        """The scope is still open under the lock the caller holds."""
        if self._locks.get(scope_id) is not lock:
            raise ScopeNotFoundError(scope_id)


def _require_extension(current: Ledger, updated: Ledger) -> None:
    if updated.scope_id != current.scope_id:
        raise ImmutabilityViolationError(
            "Ledger", current.scope_id, f"update returned ledger of scope {updated.scope_id}"
        )
    history = current.all()
    if updated.all()[: len(history)] != history:
        raise ImmutabilityViolationError(
            "Ledger", current.scope_id, "update rewrote existing transactions"
        )
