"""
Kernel Invariants Contract.

These invariants are structural law for every scope. No configuration
value (member policy, currency, history limit) may override them.

This module exists solely to declare these invariants explicitly. The
enforcement is distributed across Ledger.append, compute_balances,
plan_settlements and the db immutability listeners.
"""

from enum import Enum, unique


@unique
class KernelInvariant(str, Enum):
    """Non-configurable invariants enforced by the kernel."""

    CONSERVATION = "conservation"
    """Net balances of a scope always sum to exactly zero. Checked by
    compute_balances and again by plan_settlements."""

    APPEND_ONLY = "append_only"
    """A recorded transaction is never changed or removed. Ledger is an
    immutable value; persisted rows are guarded by ORM listeners
    (split_kernel.db.immutability)."""

    SHARE_SUM = "share_sum"
    """Expense shares add up to the expense amount exactly. Enforced by
    Ledger.append; never auto-normalized."""

    NON_NEGATIVE_AMOUNT = "non_negative_amount"
    """Amounts and shares are >= 0. Direction is carried by which field
    holds the member id, never by sign."""

    DISTINCT_COUNTERPARTY = "distinct_counterparty"
    """A settlement's receiver and a reminder's target differ from the
    payer."""

    DETERMINISTIC_PLAN = "deterministic_plan"
    """The same balances always produce the same instructions in the same
    order. Ties are broken by member id."""

    INSTRUCTION_BOUND = "instruction_bound"
    """A plan has at most debtors + creditors - 1 instructions."""


ALL_KERNEL_INVARIANTS: frozenset[KernelInvariant] = frozenset(KernelInvariant)

# The pure domain package may not import from these packages.
# Enforced by tests/architecture/test_domain_boundary.py.
FORBIDDEN_DOMAIN_IMPORTS: tuple[str, ...] = (
    "split_kernel.services",
    "split_kernel.adapters",
    "split_kernel.db",
    "split_kernel.config",
    "sqlalchemy",
    "yaml",
)
