"""
ReflectionAccounting -- reflected-unit ledger and circulating-supply rate.

Responsibility:
    Keeps a parallel ledger of reflected units for reflection-included
    holders. A holder's balance is ``r_owned // current_rate()``.
    Dissolving a reflection-tax share out of ``r_total`` lowers the rate
    and so raises every included holder's balance in O(1).

Architecture position:
    Kernel > Services -- composed by TaxedLedger next to FungibleLedger.
    Every write to the direct ledger goes through a SettlementGrant held
    by the caller.

Invariants enforced:
    - The rate is computed over circulating supply: reflection-excluded
      accounts are removed from both numerator and denominator on every
      call, so excluding a holder never moves other holders' balances by
      more than floor dust.
    - Bookkeeping for each movement uses the rate read before it.
    - Exclusion and re-inclusion leave the transitioning holder's balance
      exactly unchanged.
    - Excluded holders keep a frozen reflected-unit snapshot. Value that
      crosses the exclusion boundary retires (included -> excluded) or
      issues (excluded -> included) the matching reflected units, keeping
      the rate stable across the crossing.

Failure modes:
    - ReflectionDesyncError when a sender's reflected units cannot cover a
      debit and the policy is RAISE. With ABSORB the deficit is taken out
      of ``r_total`` and a warning is logged.

Scalability:
    ``current_rate()`` is linear in the number of reflection-excluded
    accounts. Keep that set small, or maintain running circulating totals
    if it must grow.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from ledger_kernel.domain.values import MAX_REFLECTED, REFLECTION_POOL_ACCOUNT
from ledger_kernel.exceptions import ReflectionDesyncError
from ledger_kernel.logging_config import get_logger
from ledger_kernel.services.exclusion_registry import ExclusionRegistry
from ledger_kernel.services.fungible_ledger import FungibleLedger, SettlementGrant

logger = get_logger("services.reflection")


class ReflectionDesyncPolicy(str, Enum):
    """What to do when a sender's reflected units fall short of a debit."""

    ABSORB = "absorb"  # Zero the sender, take the deficit out of r_total, warn
    RAISE = "raise"  # Fail the operation; it rolls back


@dataclass(frozen=True)
class ReflectionSnapshot:
    r_owned: dict[str, int]
    r_total: int


class ReflectionAccounting:
    """Reflected-unit bookkeeping for a reflection-bearing ledger."""

    def __init__(
        self,
        direct: FungibleLedger,
        registry: ExclusionRegistry,
        desync_policy: ReflectionDesyncPolicy = ReflectionDesyncPolicy.ABSORB,
    ):
        self._direct = direct
        self._registry = registry
        self._desync_policy = desync_policy
        self._r_owned: dict[str, int] = {}
        self._r_total = 0

    @property
    def r_total(self) -> int:
        return self._r_total

    @property
    def desync_policy(self) -> ReflectionDesyncPolicy:
        return self._desync_policy

    def reflected_units(self, account: str) -> int:
        return self._r_owned.get(account, 0)

    def genesis(self, owner: str, total_supply: int) -> None:
        """Seed the reflected space for a freshly minted supply."""
        self._r_total = MAX_REFLECTED - (MAX_REFLECTED % total_supply)
        self._r_owned[owner] = self._r_total

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def current_rate(self) -> int:
        """
        Reflected units per direct unit over the circulating supply.

        Falls back to the unadjusted ``r_total // total_supply`` when an
        excluded holder's stake would underflow the running totals, when
        nothing circulates, or when the circulating reflected supply has
        collapsed below one unit's worth. Returns 0 only before genesis.
        """
        total = self._direct.total_supply
        if total == 0:
            return 0
        unadjusted = self._r_total // total

        r_supply = self._r_total
        t_supply = total
        for account in self._registry.reflection_excluded:
            r_held = self._r_owned.get(account, 0)
            t_held = self._direct.balance(account)
            if r_held > r_supply or t_held > t_supply:
                return self._fallback(unadjusted, "underflow")
            r_supply -= r_held
            t_supply -= t_held

        if t_supply == 0:
            return self._fallback(unadjusted, "no_circulating_supply")
        if r_supply < unadjusted:
            return self._fallback(unadjusted, "dust_collapse")
        return r_supply // t_supply

    def balance_of(self, account: str) -> int:
        if self._registry.is_reflection_excluded(account):
            return self._direct.balance(account)
        rate = self.current_rate()
        if rate == 0:
            return 0
        return self._r_owned.get(account, 0) // rate

    # ------------------------------------------------------------------
    # Settlement bookkeeping
    # ------------------------------------------------------------------

    def prepare(self, grant: SettlementGrant, *accounts: str) -> int:
        """
        Mark included parties' direct entries to their derived balances.

        Returns the pre-movement rate the caller must pass to
        ``apply_movement``.
        """
        rate = self.current_rate()
        if rate == 0:
            return rate
        for account in accounts:
            if not self._registry.is_reflection_excluded(account):
                self._direct.mark(grant, account, self._r_owned.get(account, 0) // rate)
        return rate

    def apply_movement(self, sender: str, recipient: str, amount: int, rate: int) -> None:
        r_amount = amount * rate
        sender_included = not self._registry.is_reflection_excluded(sender)
        recipient_included = not self._registry.is_reflection_excluded(recipient)

        if sender_included:
            stored = self._r_owned.get(sender, 0)
            if stored < r_amount:
                self._absorb_desync(sender, stored, r_amount)
            else:
                self._r_owned[sender] = stored - r_amount
        if recipient_included:
            self._r_owned[recipient] = self._r_owned.get(recipient, 0) + r_amount

        if sender_included and not recipient_included:
            self._r_total -= r_amount
        elif recipient_included and not sender_included:
            self._r_total += r_amount

    def dissolve(self, grant: SettlementGrant) -> int:
        """
        Remove everything parked in the reflection pool from ``r_total``.

        Returns the reflected units dissolved.
        """
        r_share = self._r_owned.pop(REFLECTION_POOL_ACCOUNT, 0)
        self._r_total -= r_share
        self._direct.mark(grant, REFLECTION_POOL_ACCOUNT, 0)
        return r_share

    # ------------------------------------------------------------------
    # Exclusion transitions
    # ------------------------------------------------------------------

    def exclude(self, grant: SettlementGrant, account: str) -> None:
        """Freeze ``account`` at its derived balance and leave the rate loop."""
        rate = self.current_rate()
        derived = 0 if rate == 0 else self._r_owned.get(account, 0) // rate
        self._direct.mark(grant, account, derived)
        self._r_owned[account] = derived * rate
        self._registry.add_reflection_excluded(account)

    def include(self, account: str) -> None:
        """
        Re-price ``account``'s frozen snapshot at the circulating rate and
        rejoin the rate loop.

        The rate is read while the account is still excluded. ``r_total``
        absorbs the difference between the stale snapshot and the
        re-priced one, so the circulating rate is exactly the same after
        the account rejoins.
        """
        rate = self.current_rate()
        repriced = self._direct.balance(account) * rate
        stale = self._r_owned.get(account, 0)
        self._r_owned[account] = repriced
        self._r_total += repriced - stale
        self._registry.remove_reflection_excluded(account)

    def snapshot(self) -> ReflectionSnapshot:
        return ReflectionSnapshot(dict(self._r_owned), self._r_total)

    def restore(self, snapshot: ReflectionSnapshot) -> None:
        self._r_owned = dict(snapshot.r_owned)
        self._r_total = snapshot.r_total

    def _absorb_desync(self, account: str, stored: int, required: int) -> None:
        if self._desync_policy == ReflectionDesyncPolicy.RAISE:
            raise ReflectionDesyncError(account, stored, required)
        deficit = required - stored
        self._r_owned[account] = 0
        self._r_total -= deficit
        logger.warning(
            "reflection_desync_absorbed",
            extra={"account": account, "stored": stored, "required": required, "deficit": deficit},
        )

    def _fallback(self, unadjusted: int, reason: str) -> int:
        logger.debug("reflection_rate_fallback", extra={"reason": reason, "rate": unadjusted})
        return unadjusted
