"""
Split Kernel

Balance netting and settlement planning for shared budgets:
- Append-only, validating ledger per group or event
- Exact integer money (minor units)
- Net balances derived on demand, conserved to the minor unit
- Greedy min-cash-flow settlement plans, deterministic order
- Settlement / reminder recording and reconstructed pair status
"""

__version__ = "0.1.0"
