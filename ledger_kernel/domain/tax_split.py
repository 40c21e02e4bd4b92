"""
Tax split -- basis-point truncation of a gross transfer amount.

Pure functions with no I/O. Rates are supplied as parameters.

Usage:
    from ledger_kernel.domain.tax_split import compute_split

    split = compute_split(1000, components)
    split.parts   # ((treasury, 8), (burn, 4), (pool, 3))
    split.net     # 985

Every component is computed from the gross amount, never from a running
remainder, so the order of components does not change their amounts.
Truncation dust stays with the recipient.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

from ledger_kernel.domain.values import BPS_DIVISOR, MAX_TOTAL_TAX_BPS, TaxComponent
from ledger_kernel.exceptions import ParameterRejectedError, RateCapExceededError


@dataclass(frozen=True)
class SplitResult:
    """Component shares in declared order plus the net amount."""

    amount: int
    parts: tuple[tuple[TaxComponent, int], ...]
    net: int

    @property
    def tax_total(self) -> int:
        return sum(part for _, part in self.parts)

    def amounts_by_name(self) -> dict[str, int]:
        return {component.name: part for component, part in self.parts}


def component_amount(amount: int, rate_bps: int) -> int:
    return amount * rate_bps // BPS_DIVISOR


def total_rate_bps(components: Sequence[TaxComponent]) -> int:
    return sum(c.rate_bps for c in components)


def compute_split(amount: int, components: Sequence[TaxComponent]) -> SplitResult:
    """
    Split ``amount`` across ``components``.

    Postconditions:
        - ``net + sum(parts) == amount``.
        - Each part is ``floor(amount * rate_bps / 10000)``.
    """
    parts = tuple((c, component_amount(amount, c.rate_bps)) for c in components)
    net = amount - sum(part for _, part in parts)
    return SplitResult(amount=amount, parts=parts, net=net)


def check_rates(components: Sequence[TaxComponent], cap_bps: int = MAX_TOTAL_TAX_BPS) -> None:
    """Reject negative component rates and totals above ``cap_bps``."""
    for c in components:
        if c.rate_bps < 0:
            raise ParameterRejectedError(f"{c.name}.rate_bps", c.rate_bps, "must be >= 0")
    total = total_rate_bps(components)
    if total > cap_bps:
        raise RateCapExceededError(total, cap_bps)
