"""
Bridges: LedgerConfigSet -> kernel-compatible ledger.

The kernel never imports ledger_config. These functions translate a
validated configuration set into the kernel's value objects and wire up
a ready ``TaxedLedger``.
"""

from __future__ import annotations

from typing import Mapping, Sequence

from ledger_config.schema import LedgerConfigSet, TriggerDef
from ledger_config.validator import ConfigValidationError
from ledger_kernel.domain.authority import OwnerCapability, SingleKeyOwner
from ledger_kernel.domain.clock import Clock
from ledger_kernel.domain.notifications import NotificationSink
from ledger_kernel.domain.values import (
    DestinationKind,
    TaxComponent,
    TriggerMode,
    TriggerParameters,
)
from ledger_kernel.services.reflection_service import ReflectionDesyncPolicy
from ledger_kernel.services.taxed_ledger import TaxedLedger


def to_trigger_parameters(trigger: TriggerDef) -> TriggerParameters:
    return TriggerParameters(
        confetti_modulo=trigger.confetti_modulo,
        reverse_day_modulo=trigger.reverse_day_modulo,
        lucky_drop_modulo=trigger.lucky_drop_modulo,
        lucky_payout_bps=trigger.lucky_payout_bps,
        lucky_max_payout=trigger.lucky_max_payout,
        lucky_requires_window=trigger.lucky_requires_window,
    )


def to_tax_components(
    config: LedgerConfigSet, wallets: Mapping[str, str]
) -> tuple[TaxComponent, ...]:
    """
    Resolve each component's kind and, for wallet components, bind the
    address registered under its ``wallet_role``.

    Raises:
        ConfigValidationError: If a wallet role has no bound address.
    """
    missing = [role for role in config.wallet_roles if role not in wallets]
    if missing:
        raise ConfigValidationError(
            config.config_id, [f"No wallet address bound for role '{r}'" for r in missing]
        )
    return tuple(
        TaxComponent(
            name=c.name,
            rate_bps=c.rate_bps,
            kind=DestinationKind(c.kind),
            destination=wallets[c.wallet_role] if c.kind == DestinationKind.WALLET.value else None,
        )
        for c in config.tax_components
    )


def build_ledger(
    config: LedgerConfigSet,
    owner: OwnerCapability | str,
    wallets: Mapping[str, str],
    pool_address: str,
    clock: Clock | None = None,
    sinks: Sequence[NotificationSink] = (),
    ledger_id: str | None = None,
) -> TaxedLedger:
    """Build a TaxedLedger from a validated configuration set."""
    capability = SingleKeyOwner(owner) if isinstance(owner, str) else owner
    return TaxedLedger(
        owner=capability,
        total_supply=config.token.total_supply,
        components=to_tax_components(config, wallets),
        pool_address=pool_address,
        clock=clock,
        reflection=config.reflection.enabled,
        desync_policy=ReflectionDesyncPolicy(config.reflection.desync_policy),
        trigger_parameters=to_trigger_parameters(config.trigger),
        trigger_mode=TriggerMode(config.trigger.mode),
        max_total_tax_bps=config.max_total_tax_bps,
        sinks=sinks,
        ledger_id=ledger_id or config.config_id,
    )
