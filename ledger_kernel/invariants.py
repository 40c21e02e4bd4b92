"""
Ledger Invariants Contract.

These invariants are structural law. No configuration set, owner setter,
or trigger mode may override them.

This module exists solely to declare these invariants explicitly. The
enforcement is distributed across TaxedLedger, FungibleLedger,
ReflectionAccounting and TriggerEngine.
"""

from enum import Enum, unique


@unique
class LedgerInvariant(str, Enum):
    """Non-configurable invariants enforced by the ledger kernel."""

    SUPPLY_CONSERVATION = "supply_conservation"
    """The sum of every known account's balance equals the total supply.
    Exact on plain ledgers; on reflection ledgers floor truncation may
    leave at most one unit per reflection-included holder unattributed."""

    FIXED_SUPPLY = "fixed_supply"
    """Supply is minted exactly once, at genesis. Enforced by
    FungibleLedger.mint."""

    TRUNCATED_SPLIT = "truncated_split"
    """Each tax component is floor(amount * bps / 10000) computed from the
    gross amount; residual dust goes to the recipient."""

    ATOMIC_OPERATION = "atomic_operation"
    """Every top-level call fully commits or is rolled back as one unit.
    Enforced by TaxedLedger's operation scope."""

    SETTLEMENT_ISOLATION = "settlement_isolation"
    """Only the holder of a live SettlementGrant may call the raw movement
    primitive, and settlement scopes never nest."""

    BOUNDED_PAYOUT = "bounded_payout"
    """A trigger payout never exceeds the bps share, the configured cap,
    or the pool balance."""

    DETERMINISTIC_TRIGGER = "deterministic_trigger"
    """Trigger decisions and identifiers depend only on mode, amount,
    recipient, payout, thresholds and the injected clock."""


# All invariants as a frozenset for programmatic checks.
ALL_LEDGER_INVARIANTS: frozenset[LedgerInvariant] = frozenset(LedgerInvariant)

# The kernel package may not import from these packages.
# This is enforced by tests/architecture/test_kernel_boundary.py.
FORBIDDEN_KERNEL_IMPORTS: tuple[str, ...] = (
    "ledger_config",
)
