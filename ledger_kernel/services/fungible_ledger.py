"""
FungibleLedger -- direct balances and the raw movement primitive.

Responsibility:
    Holds the per-account direct balances and the fixed total supply.
    Exposes a one-time genesis ``mint`` and a raw ``move`` that only a
    live ``SettlementGrant`` can invoke.

Architecture position:
    Kernel > Services -- composed by TaxedLedger. Knows nothing about
    taxes, reflections or triggers.

Invariants enforced:
    - Supply is minted exactly once.
    - Settlement scopes never nest; a grant is only honoured while the
      scope that issued it is open.
    - A movement never drives a balance negative.

Failure modes:
    - SupplyAlreadyMintedError on a second mint.
    - SettlementReentryError when opening a scope inside an open scope.
    - StaleSettlementGrantError when a grant outlives its scope.
    - InsufficientBalanceError when the sender cannot cover a movement.
"""

from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass
from typing import Iterator

from ledger_kernel.domain.values import ZERO_ADDRESS, Movement
from ledger_kernel.exceptions import (
    InsufficientBalanceError,
    SettlementReentryError,
    StaleSettlementGrantError,
    SupplyAlreadyMintedError,
)
from ledger_kernel.logging_config import get_logger

logger = get_logger("services.fungible_ledger")


class SettlementGrant:
    """
    Capability token for the raw movement primitive.

    Instances are only created by ``FungibleLedger.open_settlement``.
    """

    __slots__ = ("grant_id",)

    def __init__(self, grant_id: int):
        self.grant_id = grant_id

    def __repr__(self) -> str:
        return f"SettlementGrant({self.grant_id})"


@dataclass(frozen=True)
class LedgerSnapshot:
    balances: dict[str, int]
    total_supply: int
    minted: bool


class FungibleLedger:
    """Direct-balance ledger with a grant-gated movement primitive."""

    def __init__(self) -> None:
        self._balances: dict[str, int] = {}
        self._total_supply = 0
        self._minted = False
        self._live_grant: SettlementGrant | None = None
        self._grants_issued = 0

    @property
    def total_supply(self) -> int:
        return self._total_supply

    @property
    def in_settlement(self) -> bool:
        return self._live_grant is not None

    def balance(self, account: str) -> int:
        return self._balances.get(account, 0)

    def accounts(self) -> tuple[str, ...]:
        """Every account the ledger has ever touched, in first-touch order."""
        return tuple(self._balances)

    def mint(self, recipient: str, amount: int) -> Movement:
        if self._minted:
            raise SupplyAlreadyMintedError(self._total_supply)
        self._minted = True
        self._total_supply = amount
        self._balances[recipient] = self.balance(recipient) + amount
        logger.info("supply_minted", extra={"recipient": recipient, "amount": amount})
        return Movement(sender=ZERO_ADDRESS, recipient=recipient, amount=amount)

    @contextmanager
    def open_settlement(self) -> Iterator[SettlementGrant]:
        """Open the single settlement scope and yield its grant."""
        if self._live_grant is not None:
            raise SettlementReentryError("settlement")
        self._grants_issued += 1
        grant = SettlementGrant(self._grants_issued)
        self._live_grant = grant
        try:
            yield grant
        finally:
            self._live_grant = None

    def move(self, grant: SettlementGrant, sender: str, recipient: str, amount: int) -> Movement:
        """Debit ``sender`` and credit ``recipient``. Zero amounts are recorded no-ops."""
        self._check_grant(grant)
        available = self.balance(sender)
        if available < amount:
            raise InsufficientBalanceError(sender, available, amount)
        self._balances[sender] = available - amount
        self._balances[recipient] = self.balance(recipient) + amount
        return Movement(sender=sender, recipient=recipient, amount=amount)

    def mark(self, grant: SettlementGrant, account: str, balance: int) -> None:
        """Overwrite ``account``'s direct entry with a derived balance."""
        self._check_grant(grant)
        self._balances[account] = balance

    def snapshot(self) -> LedgerSnapshot:
        return LedgerSnapshot(dict(self._balances), self._total_supply, self._minted)

    def restore(self, snapshot: LedgerSnapshot) -> None:
        self._balances = dict(snapshot.balances)
        self._total_supply = snapshot.total_supply
        self._minted = snapshot.minted

    def _check_grant(self, grant: SettlementGrant) -> None:
        if grant is not self._live_grant:
            raise StaleSettlementGrantError(getattr(grant, "grant_id", -1))
