"""
LedgerConfigSet schema.

Defines the human-authored, reviewable source artifact for a ledger's
configuration. YAML sets are parsed into these types by the loader,
checked by the validator, and turned into a live TaxedLedger by the
bridges.

Amounts here are already in base units; the YAML carries whole tokens and
the loader converts them using ``token.decimals``.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, unique


@unique
class ConfigStatus(str, Enum):
    """Lifecycle status for a configuration set."""

    DRAFT = "draft"
    PUBLISHED = "published"
    SUPERSEDED = "superseded"


@dataclass(frozen=True)
class TokenDef:
    decimals: int
    total_supply: int  # base units


@dataclass(frozen=True)
class TaxComponentDef:
    """
    One tax component.

    ``wallet_role`` names the wallet address (bound at build time) for
    ``kind: wallet`` components; other kinds leave it unset.
    """

    name: str
    rate_bps: int
    kind: str
    wallet_role: str | None = None


@dataclass(frozen=True)
class ReflectionDef:
    enabled: bool = False
    desync_policy: str = "absorb"


@dataclass(frozen=True)
class TriggerDef:
    mode: str = "off"
    confetti_modulo: int = 69
    reverse_day_modulo: int = 420
    lucky_drop_modulo: int = 6969
    lucky_payout_bps: int = 100
    lucky_max_payout: int = 0  # base units
    lucky_requires_window: bool = True


@dataclass(frozen=True)
class LedgerConfigSet:
    """Root configuration artifact for one ledger."""

    config_id: str
    version: int
    status: ConfigStatus
    token: TokenDef
    tax_components: tuple[TaxComponentDef, ...]
    max_total_tax_bps: int
    reflection: ReflectionDef
    trigger: TriggerDef
    description: str = ""
    checksum: str = ""

    @property
    def wallet_roles(self) -> tuple[str, ...]:
        return tuple(
            c.wallet_role
            for c in self.tax_components
            if c.kind == "wallet" and c.wallet_role
        )

    @property
    def total_tax_rate_bps(self) -> int:
        return sum(c.rate_bps for c in self.tax_components)
