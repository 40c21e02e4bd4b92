"""
Ledger Kernel - taxed fungible unit ledger.

A single-process accounting core with:
- Basis-point tax splitting with truncation dust credited to the recipient
- Reflection accounting over the circulating (non-excluded) supply
- Deterministic, modulo-based transfer triggers with a bounded pool payout
- Atomic commit-or-rollback per top-level operation
- Hash-chained notification journal
"""

__version__ = "0.1.0"
