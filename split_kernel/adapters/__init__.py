"""
Boundary adapters.

Each calling context (shared groups, events) maps its own records onto the
generic Transaction shape here, before anything reaches the domain.
"""

from split_kernel.adapters._common import MemberResolver
from split_kernel.adapters.event import (
    event_ledger,
    event_ledger_from_config,
    event_record_to_transaction,
)
from split_kernel.adapters.group import (
    group_ledger,
    group_ledger_from_config,
    group_record_to_transaction,
)

__all__ = [
    "MemberResolver",
    "event_ledger",
    "event_ledger_from_config",
    "event_record_to_transaction",
    "group_ledger",
    "group_ledger_from_config",
    "group_record_to_transaction",
]
