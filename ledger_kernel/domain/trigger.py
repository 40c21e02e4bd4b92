"""
Trigger decisions -- pure evaluation of a post-settlement transfer.

Responsibility:
    Given the effective mode, the transfer's (sender, recipient, amount),
    the trigger thresholds, whether the scheduled window is active and the
    pool balance, decide whether anything fires and how large a payout is.

Architecture position:
    Kernel > Domain -- pure functional core. TriggerEngine owns the state;
    TaxedLedger applies the resulting payout and notifications.

Invariants enforced:
    - At most one decision per transfer.
    - payout <= min(floor(amount * bps / 10000), max_payout, pool_balance).
    - The trigger id is a function of (mode, amount, recipient, payout) only.
"""

from __future__ import annotations

from dataclasses import dataclass

from ledger_kernel.domain.values import (
    BPS_DIVISOR,
    MAX_LUCKY_PAYOUT_BPS,
    TriggerMode,
    TriggerParameters,
)
from ledger_kernel.exceptions import ParameterRejectedError
from ledger_kernel.utils.hashing import trigger_id


@dataclass(frozen=True)
class TriggerDecision:
    """A trigger that fired. ``payout`` is 0 for informational modes."""

    mode: TriggerMode
    reported_sender: str
    reported_recipient: str
    amount: int
    payout: int
    trigger_id: str

    def to_payload(self) -> dict:
        return {
            "mode": self.mode.value,
            "from": self.reported_sender,
            "to": self.reported_recipient,
            "amount": self.amount,
            "payout": self.payout,
            "trigger_id": self.trigger_id,
        }


def check_parameters(params: TriggerParameters) -> None:
    """Raise ParameterRejectedError for out-of-range thresholds."""
    for name in ("confetti_modulo", "reverse_day_modulo", "lucky_drop_modulo"):
        value = getattr(params, name)
        if value <= 1:
            raise ParameterRejectedError(name, value, "modulo must be greater than 1")
    if not 0 <= params.lucky_payout_bps <= MAX_LUCKY_PAYOUT_BPS:
        raise ParameterRejectedError(
            "lucky_payout_bps",
            params.lucky_payout_bps,
            f"lucky payout exceeds max {MAX_LUCKY_PAYOUT_BPS} bps",
        )
    if params.lucky_max_payout <= 0:
        raise ParameterRejectedError(
            "lucky_max_payout", params.lucky_max_payout, "payout cap must be positive"
        )


def lucky_payout(amount: int, params: TriggerParameters, pool_balance: int) -> int:
    return min(
        amount * params.lucky_payout_bps // BPS_DIVISOR,
        params.lucky_max_payout,
        pool_balance,
    )


def decide(
    mode: TriggerMode,
    sender: str,
    recipient: str,
    amount: int,
    params: TriggerParameters,
    window_active: bool,
    pool_balance: int,
) -> TriggerDecision | None:
    """Evaluate ``mode`` for one settled transfer."""
    if mode == TriggerMode.OFF:
        return None

    if mode == TriggerMode.CONFETTI:
        if amount % params.confetti_modulo != 0:
            return None
        return _fired(mode, sender, recipient, recipient, amount, 0)

    if mode == TriggerMode.REVERSE_DAY:
        if amount % params.reverse_day_modulo != 0:
            return None
        # Roles are reported swapped; balances are untouched.
        return _fired(mode, recipient, sender, recipient, amount, 0)

    if params.lucky_requires_window and not window_active:
        return None
    if amount % params.lucky_drop_modulo != 0:
        return None
    if pool_balance == 0:
        return None
    payout = lucky_payout(amount, params, pool_balance)
    if payout == 0:
        return None
    return _fired(mode, sender, recipient, recipient, amount, payout)


def _fired(
    mode: TriggerMode,
    reported_sender: str,
    reported_recipient: str,
    recipient: str,
    amount: int,
    payout: int,
) -> TriggerDecision:
    return TriggerDecision(
        mode=mode,
        reported_sender=reported_sender,
        reported_recipient=reported_recipient,
        amount=amount,
        payout=payout,
        trigger_id=trigger_id(mode.value, amount, recipient, payout),
    )
