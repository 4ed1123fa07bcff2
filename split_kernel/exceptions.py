"""
Typed Exception Hierarchy for the Split Kernel.

===============================================================================
WHY TYPED EXCEPTIONS
===============================================================================

Callers (group screens, event screens, a storage collaborator) need to tell
a rejected transaction apart from a programming error without parsing
message strings. Every error therefore:
  1. Has its own class (catch by type, not message)
  2. Carries a CODE class attribute (machine-readable, API-safe)
  3. Stores its context as attributes (member ids, amounts in minor units)

Example - WRONG way to handle errors:
    try:
        ledger = ledger.append(tx)
    except Exception as e:
        if "does not sum" in str(e):  # FRAGILE - message might change
            show_split_editor()

Example - RIGHT way:
    try:
        ledger = ledger.append(tx)
    except ShareSumMismatchError as e:
        show_split_editor(expected=e.amount, actual=e.share_total)

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

    SplitKernelError (base)
    |
    +-- LedgerError
    |   +-- InvalidTransactionError
    |   |   +-- MemberReferenceError
    |   |   +-- ShareSumMismatchError
    |   |   +-- SelfTransferError
    |   |   +-- NegativeAmountError
    |   |   +-- EmptySharesError
    |   +-- DuplicateTransactionError
    |
    +-- PlanningError
    |   +-- ConservationViolationError
    |
    +-- ScopeError
    |   +-- ScopeNotFoundError
    |   +-- ScopeAlreadyExistsError
    |
    +-- BoundaryError
    |   +-- UnsupportedRecordError
    |
    +-- ImmutabilityError
    |   +-- ImmutabilityViolationError
    |
    +-- ConcurrencyError
    |   +-- StaleLedgerError
    |
    +-- ConfigurationError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category     | Code                    | When Raised
-------------|-------------------------|--------------------------------------------
Ledger       | MEMBER_REFERENCE        | Unknown member id under the STRICT policy
             | SHARE_SUM_MISMATCH      | Expense shares do not add up to the amount
             | SELF_TRANSFER           | Settlement/reminder aimed at the payer
             | NEGATIVE_AMOUNT         | Amount or share below zero
             | EMPTY_SHARES            | Expense with no participants
             | DUPLICATE_TRANSACTION   | Transaction id already in the ledger
-------------|-------------------------|--------------------------------------------
Planning     | CONSERVATION_VIOLATION  | Balances do not sum to zero
-------------|-------------------------|--------------------------------------------
Scope        | SCOPE_NOT_FOUND         | No ledger registered for the scope id
             | SCOPE_ALREADY_EXISTS    | Scope id opened twice
-------------|-------------------------|--------------------------------------------
Boundary     | UNSUPPORTED_RECORD      | Group/event record cannot be mapped
-------------|-------------------------|--------------------------------------------
Immutability | IMMUTABILITY_VIOLATION  | UPDATE/DELETE of a persisted transaction
-------------|-------------------------|--------------------------------------------
Concurrency  | STALE_LEDGER            | Scope grew since the ledger was loaded
-------------|-------------------------|--------------------------------------------
Config       | INVALID_CONFIGURATION   | Bad YAML value or environment override

===============================================================================
DESIGN DECISIONS
===============================================================================

1. Overpayment is NOT an error. Paying more than the suggested amount is a
   generous early payment; it flips the sign of the pair on recomputation.

2. All InvalidTransactionError subclasses are raised by Ledger.append before
   anything is accepted. None of them is ever discovered later during
   balance computation.

3. ConservationViolationError signals a defect upstream of the planner. A
   ledger that passed validation cannot produce it.

===============================================================================
"""


class SplitKernelError(Exception):
    """
    Base exception for all split kernel errors.

    All subclasses must have a `code` class attribute for machine-readable
    error identification.
    """

    code: str = "SPLIT_KERNEL_ERROR"


# Ledger-related exceptions


class LedgerError(SplitKernelError):
    """Base exception for ledger errors."""

    code: str = "LEDGER_ERROR"


class InvalidTransactionError(LedgerError):
    """A transaction failed validation at append time."""

    code: str = "INVALID_TRANSACTION"


class MemberReferenceError(InvalidTransactionError):
    """Transaction references a member that is not part of the scope."""

    code: str = "MEMBER_REFERENCE"

    def __init__(self, transaction_id: str, member_id: str, scope_id: str):
        self.transaction_id = transaction_id
        self.member_id = member_id
        self.scope_id = scope_id
        super().__init__(
            f"Transaction {transaction_id} references unknown member "
            f"{member_id!r} in scope {scope_id}"
        )


class ShareSumMismatchError(InvalidTransactionError):
    """Expense shares do not add up to the expense amount."""

    code: str = "SHARE_SUM_MISMATCH"

    def __init__(self, transaction_id: str, amount: int, share_total: int):
        self.transaction_id = transaction_id
        self.amount = amount
        self.share_total = share_total
        super().__init__(
            f"Shares of {transaction_id} sum to {share_total}, "
            f"expected {amount} (minor units)"
        )


class SelfTransferError(InvalidTransactionError):
    """Settlement or reminder whose counterparty is the payer."""

    code: str = "SELF_TRANSFER"

    def __init__(self, transaction_id: str, member_id: str):
        self.transaction_id = transaction_id
        self.member_id = member_id
        super().__init__(
            f"Transaction {transaction_id} moves money from {member_id} to itself"
        )


class NegativeAmountError(InvalidTransactionError):
    """An amount or a share is below zero."""

    code: str = "NEGATIVE_AMOUNT"

    def __init__(self, transaction_id: str, field: str, amount: int):
        self.transaction_id = transaction_id
        self.field = field
        self.amount = amount
        super().__init__(
            f"Transaction {transaction_id} has negative {field}: {amount}"
        )


class EmptySharesError(InvalidTransactionError):
    """Expense has no participants."""

    code: str = "EMPTY_SHARES"

    def __init__(self, transaction_id: str):
        self.transaction_id = transaction_id
        super().__init__(f"Expense {transaction_id} has no participants")


class DuplicateTransactionError(LedgerError):
    """Transaction id already present in the ledger."""

    code: str = "DUPLICATE_TRANSACTION"

    def __init__(self, transaction_id: str, scope_id: str):
        self.transaction_id = transaction_id
        self.scope_id = scope_id
        super().__init__(
            f"Transaction {transaction_id} already recorded in scope {scope_id}"
        )


# Planning-related exceptions


class PlanningError(SplitKernelError):
    """Base exception for settlement planning errors."""

    code: str = "PLANNING_ERROR"


class ConservationViolationError(PlanningError):
    """
    Net balances do not sum to zero.

    Raised by the balance calculator and the planner. A validated ledger
    cannot produce this; seeing it means an upstream defect.
    """

    code: str = "CONSERVATION_VIOLATION"

    def __init__(self, residual: int, member_ids: list[str] | None = None):
        self.residual = residual
        self.member_ids = member_ids or []
        super().__init__(
            f"Balances are not conserved: residual {residual} minor units"
            + (f" across {', '.join(self.member_ids)}" if self.member_ids else "")
        )


# Scope-related exceptions


class ScopeError(SplitKernelError):
    """Base exception for scope registry errors."""

    code: str = "SCOPE_ERROR"


class ScopeNotFoundError(ScopeError):
    """No ledger is registered for the scope id."""

    code: str = "SCOPE_NOT_FOUND"

    def __init__(self, scope_id: str):
        self.scope_id = scope_id
        super().__init__(f"Scope not found: {scope_id}")


class ScopeAlreadyExistsError(ScopeError):
    """A ledger is already registered for the scope id."""

    code: str = "SCOPE_ALREADY_EXISTS"

    def __init__(self, scope_id: str):
        self.scope_id = scope_id
        super().__init__(f"Scope already exists: {scope_id}")


# Boundary-related exceptions


class BoundaryError(SplitKernelError):
    """Base exception for group/event record mapping errors."""

    code: str = "BOUNDARY_ERROR"


class UnsupportedRecordError(BoundaryError):
    """A group or event record cannot be mapped onto a Transaction."""

    code: str = "UNSUPPORTED_RECORD"

    def __init__(self, record_id: str, reason: str):
        self.record_id = record_id
        self.reason = reason
        super().__init__(f"Cannot map record {record_id}: {reason}")


# Immutability-related exceptions


class ImmutabilityError(SplitKernelError):
    """Base exception for immutability violations."""

    code: str = "IMMUTABILITY_ERROR"


class ImmutabilityViolationError(ImmutabilityError):
    """
    Attempted to modify or delete a persisted transaction.

    Corrections are appended as offsetting transactions.
    """

    code: str = "IMMUTABILITY_VIOLATION"

    def __init__(self, entity_type: str, entity_id: str, reason: str):
        self.entity_type = entity_type
        self.entity_id = entity_id
        self.reason = reason
        super().__init__(
            f"Immutability violation on {entity_type} {entity_id}: {reason}"
        )


# Concurrency-related exceptions


class ConcurrencyError(SplitKernelError):
    """Base exception for concurrent modification errors."""

    code: str = "CONCURRENCY_ERROR"


class StaleLedgerError(ConcurrencyError):
    """
    Another writer appended to the scope after this ledger snapshot was
    loaded. Reload the ledger and retry.
    """

    code: str = "STALE_LEDGER"

    def __init__(self, scope_id: str, sequence: int):
        self.scope_id = scope_id
        self.sequence = sequence
        super().__init__(
            f"Scope {scope_id} already has a transaction at position {sequence}"
        )


# Configuration


class ConfigurationError(SplitKernelError):
    """Configuration value is missing or invalid."""

    code: str = "INVALID_CONFIGURATION"

    def __init__(self, key: str, reason: str):
        self.key = key
        self.reason = reason
        super().__init__(f"Invalid configuration for {key}: {reason}")
