"""
Values -- Immutable domain value objects and ledger constants.

Responsibility:
    Defines the address sentinels, rate divisors and caps, the tax
    component and trigger parameter value objects, and the trigger mode
    enumeration shared by every other kernel module.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.

Invariants enforced:
    - Rates are integer basis points; amounts are non-negative ints.
    - Trigger modes carry stable wire codes 0..3.

Failure modes:
    - ValueError from ``TriggerMode.from_code`` on an unknown code.
    - ValueError from ``to_units`` on negative token amounts or decimals.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime
from enum import Enum

ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"
DEAD_ADDRESS = "0x000000000000000000000000000000000000dEaD"

# Internal sink for reflection-tax shares. Never reported as a holder.
REFLECTION_POOL_ACCOUNT = "reflection-pool"

BPS_DIVISOR = 10_000
MAX_TOTAL_TAX_BPS = 1_000
MAX_LUCKY_PAYOUT_BPS = 2_000

# Upper bound for the reflected-unit space.
MAX_REFLECTED = 2**256 - 1


def to_units(tokens: int, decimals: int) -> int:
    """Convert a whole-token amount to base units."""
    if tokens < 0 or decimals < 0:
        raise ValueError(f"Cannot convert {tokens} tokens at {decimals} decimals")
    return tokens * 10**decimals


class DestinationKind(str, Enum):
    """Where a tax component's share is credited."""

    WALLET = "wallet"  # Owner-configurable external address
    UNSPENDABLE = "unspendable"  # DEAD_ADDRESS; burned in effect
    SELF_POOL = "self_pool"  # Ledger's own pool address
    REFLECTION_POOL = "reflection_pool"  # Dissolved into the reflection rate


class TriggerMode(str, Enum):
    """Transfer trigger behaviours."""

    OFF = "off"
    CONFETTI = "confetti"
    REVERSE_DAY = "reverse_day"
    LUCKY_DROP = "lucky_drop"

    @property
    def code(self) -> int:
        return _MODE_CODES[self]

    @classmethod
    def from_code(cls, code: int) -> TriggerMode:
        for mode, mode_code in _MODE_CODES.items():
            if mode_code == code:
                return mode
        raise ValueError(f"Unknown trigger mode code: {code}")


_MODE_CODES: dict[TriggerMode, int] = {
    TriggerMode.OFF: 0,
    TriggerMode.CONFETTI: 1,
    TriggerMode.REVERSE_DAY: 2,
    TriggerMode.LUCKY_DROP: 3,
}


@dataclass(frozen=True, slots=True)
class TaxComponent:
    """
    One named share of a taxed transfer.

    ``destination`` is only meaningful for WALLET components; the other
    kinds resolve their destination from the ledger itself.
    """

    name: str
    rate_bps: int
    kind: DestinationKind
    destination: str | None = None

    def with_rate(self, rate_bps: int) -> TaxComponent:
        return replace(self, rate_bps=rate_bps)

    def with_destination(self, destination: str) -> TaxComponent:
        return replace(self, destination=destination)


@dataclass(frozen=True, slots=True)
class TriggerParameters:
    """Thresholds for every trigger mode."""

    confetti_modulo: int = 69
    reverse_day_modulo: int = 420
    lucky_drop_modulo: int = 6969
    lucky_payout_bps: int = 100
    lucky_max_payout: int = 1_000 * 10**18
    lucky_requires_window: bool = True


@dataclass(frozen=True, slots=True)
class ScheduledWindow:
    """A time range during which ``mode`` overrides the configured mode."""

    mode: TriggerMode
    start: datetime
    end: datetime
    active: bool = True

    def covers(self, now: datetime) -> bool:
        return self.active and self.start <= now <= self.end

    def deactivated(self) -> ScheduledWindow:
        return replace(self, active=False)


@dataclass(frozen=True, slots=True)
class Movement:
    """A single raw debit/credit pair on the direct ledger."""

    sender: str
    recipient: str
    amount: int
