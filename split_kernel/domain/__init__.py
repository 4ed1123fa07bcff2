"""
Pure domain layer.

Ledger, balances, settlement planning and history views with NO
dependencies on:
- ORM (SQLAlchemy)
- Database
- Configuration files
- I/O

All domain objects are immutable and deterministic.
"""

from split_kernel.domain.balances import compute_balances, total_outstanding
from split_kernel.domain.clock import Clock, DeterministicClock, SystemClock
from split_kernel.domain.history import (
    MutualEntry,
    PairState,
    PairStatus,
    describe_between,
    find_between,
    pair_status,
)
from split_kernel.domain.ledger import Ledger, MemberPolicy, validate_transaction
from split_kernel.domain.planner import (
    SettlementInstruction,
    SettlementPlan,
    apply_plan,
    is_settled,
    plan_settlements,
)
from split_kernel.domain.splits import (
    split_by_percent,
    split_by_weights,
    split_equal,
    split_exact,
)
from split_kernel.domain.transactions import Member, Transaction, TransactionKind
from split_kernel.domain.values import Money

__all__ = [
    "Clock",
    "DeterministicClock",
    "Ledger",
    "Member",
    "MemberPolicy",
    "Money",
    "MutualEntry",
    "PairState",
    "PairStatus",
    "SettlementInstruction",
    "SettlementPlan",
    "SystemClock",
    "Transaction",
    "TransactionKind",
    "apply_plan",
    "compute_balances",
    "describe_between",
    "find_between",
    "is_settled",
    "pair_status",
    "plan_settlements",
    "split_by_percent",
    "split_by_weights",
    "split_equal",
    "split_exact",
    "total_outstanding",
    "validate_transaction",
]
