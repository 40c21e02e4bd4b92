"""
Configuration Validator (``ledger_config.validator``).

Responsibility
--------------
Validates a ``LedgerConfigSet`` before any ledger is built from it, using
the same limits the kernel enforces at runtime so a valid set can never
produce a ledger that rejects its own genesis configuration.

Invariants enforced
-------------------
* Total tax rate within ``max_total_tax_bps``, itself within the kernel cap.
* Component names unique; kinds known; wallet components name a role.
* Reflection components only on reflection-enabled sets.
* Trigger moduli > 1, payout bps within cap, positive payout cap.
* Positive supply, non-negative decimals.

Failure modes
-------------
* Validation errors  -> the set MUST NOT be used to build a ledger.
* Validation warnings  -> the set may be used but should be reviewed.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from ledger_config.schema import ConfigStatus, LedgerConfigSet
from ledger_kernel.domain.values import (
    MAX_LUCKY_PAYOUT_BPS,
    MAX_TOTAL_TAX_BPS,
    DestinationKind,
    TriggerMode,
)
from ledger_kernel.services.reflection_service import ReflectionDesyncPolicy


class ConfigValidationError(ValueError):
    """A configuration set failed validation."""

    code: str = "CONFIG_VALIDATION_FAILED"

    def __init__(self, config_id: str, errors: list[str]):
        self.config_id = config_id
        self.errors = list(errors)
        super().__init__(
            f"Configuration '{config_id}' failed validation:\n"
            + "\n".join(f"  - {e}" for e in errors)
        )


@dataclass
class ConfigValidationResult:
    """
    Result of configuration validation.

    ``is_valid`` is True only when ``errors`` is empty.
    """

    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return len(self.errors) == 0

    def add_error(self, msg: str) -> None:
        self.errors.append(msg)

    def add_warning(self, msg: str) -> None:
        self.warnings.append(msg)


def validate_configuration(config: LedgerConfigSet) -> ConfigValidationResult:
    result = ConfigValidationResult()

    _validate_token(config, result)
    _validate_tax_components(config, result)
    _validate_reflection(config, result)
    _validate_trigger(config, result)
    _validate_status(config, result)

    return result


def _validate_token(config: LedgerConfigSet, result: ConfigValidationResult) -> None:
    if config.token.decimals < 0:
        result.add_error(f"token.decimals must be >= 0, got {config.token.decimals}")
    if config.token.total_supply <= 0:
        result.add_error("token.total_supply_tokens must be positive")


def _validate_tax_components(config: LedgerConfigSet, result: ConfigValidationResult) -> None:
    kinds = {k.value for k in DestinationKind}
    seen: set[str] = set()
    for component in config.tax_components:
        if component.name in seen:
            result.add_error(f"Duplicate tax component: {component.name}")
        seen.add(component.name)
        if component.rate_bps < 0:
            result.add_error(f"Tax component '{component.name}' has negative rate")
        if component.kind not in kinds:
            result.add_error(
                f"Tax component '{component.name}' has unknown kind '{component.kind}'"
            )
        elif component.kind == DestinationKind.WALLET.value and not component.wallet_role:
            result.add_error(f"Wallet component '{component.name}' must declare wallet_role")
        elif component.kind != DestinationKind.WALLET.value and component.wallet_role:
            result.add_warning(
                f"Component '{component.name}' ignores wallet_role for kind '{component.kind}'"
            )

    if config.max_total_tax_bps > MAX_TOTAL_TAX_BPS:
        result.add_error(
            f"max_total_tax_bps {config.max_total_tax_bps} exceeds kernel cap {MAX_TOTAL_TAX_BPS}"
        )
    if config.total_tax_rate_bps > config.max_total_tax_bps:
        result.add_error(
            f"Total tax rate {config.total_tax_rate_bps} bps exceeds max "
            f"{config.max_total_tax_bps} bps"
        )
    if config.total_tax_rate_bps == 0:
        result.add_warning("Total tax rate is 0; transfers will never be split")


def _validate_reflection(config: LedgerConfigSet, result: ConfigValidationResult) -> None:
    policies = {p.value for p in ReflectionDesyncPolicy}
    if config.reflection.desync_policy not in policies:
        result.add_error(f"Unknown reflection desync_policy '{config.reflection.desync_policy}'")
    has_reflection_share = any(
        c.kind == DestinationKind.REFLECTION_POOL.value for c in config.tax_components
    )
    if has_reflection_share and not config.reflection.enabled:
        result.add_error("reflection_pool component requires reflection.enabled")
    if config.reflection.enabled and not has_reflection_share:
        result.add_warning("Reflection enabled but no reflection_pool component is configured")


def _validate_trigger(config: LedgerConfigSet, result: ConfigValidationResult) -> None:
    trigger = config.trigger
    if trigger.mode not in {m.value for m in TriggerMode}:
        result.add_error(f"Unknown trigger mode '{trigger.mode}'")
    for name in ("confetti_modulo", "reverse_day_modulo", "lucky_drop_modulo"):
        value = getattr(trigger, name)
        if value <= 1:
            result.add_error(f"trigger.{name} must be greater than 1, got {value}")
    if not 0 <= trigger.lucky_payout_bps <= MAX_LUCKY_PAYOUT_BPS:
        result.add_error(
            f"trigger.lucky_payout_bps {trigger.lucky_payout_bps} outside 0..{MAX_LUCKY_PAYOUT_BPS}"
        )
    if trigger.lucky_max_payout <= 0:
        result.add_error("trigger.lucky_max_payout_tokens must be positive")


def _validate_status(config: LedgerConfigSet, result: ConfigValidationResult) -> None:
    if config.status == ConfigStatus.SUPERSEDED:
        result.add_error(f"Configuration '{config.config_id}' is superseded")
    elif config.status == ConfigStatus.DRAFT:
        result.add_warning(f"Configuration '{config.config_id}' is still a draft")
