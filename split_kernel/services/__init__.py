"""
Imperative shell around the pure domain.

SettlementRecorder turns user actions into transactions; ScopeRegistry owns
the current ledger of each scope and serializes appends per scope.
"""

from split_kernel.services.recorder import SettlementRecorder
from split_kernel.services.scope_registry import ScopeRegistry, ScopeSummary, summarize

__all__ = [
    "ScopeRegistry",
    "ScopeSummary",
    "SettlementRecorder",
    "summarize",
]
