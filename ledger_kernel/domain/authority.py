"""
Owner capability -- who may change ledger configuration.

Responsibility:
    Answers "is this caller the current owner?" and performs ownership
    transfer. The ledger depends only on the ``OwnerCapability`` interface,
    so the backend (single key, multi-party controller, delay-gated
    controller) is swappable without touching transfer logic.

Architecture position:
    Kernel > Domain -- pure.

Failure modes:
    - UnauthorizedCallerError from ``transfer`` when the caller is not
      the current owner.
    - ZeroAddressRejectedError when the new owner is the zero address.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from ledger_kernel.domain.values import ZERO_ADDRESS
from ledger_kernel.exceptions import UnauthorizedCallerError, ZeroAddressRejectedError


class OwnerCapability(ABC):
    """Authorization backend for owner-gated operations."""

    @property
    @abstractmethod
    def owner(self) -> str:
        """Address of the current owner."""
        ...

    @abstractmethod
    def authorize(self, caller: str) -> bool:
        """Return True iff ``caller`` may perform owner-gated operations."""
        ...

    @abstractmethod
    def transfer(self, caller: str, new_owner: str) -> None:
        """Hand ownership to ``new_owner``. Restricted to the current owner."""
        ...


class SingleKeyOwner(OwnerCapability):
    """Ownership held by exactly one address."""

    def __init__(self, owner: str):
        if owner == ZERO_ADDRESS:
            raise ZeroAddressRejectedError("owner")
        self._owner = owner

    @property
    def owner(self) -> str:
        return self._owner

    def authorize(self, caller: str) -> bool:
        return caller == self._owner

    def transfer(self, caller: str, new_owner: str) -> None:
        if not self.authorize(caller):
            raise UnauthorizedCallerError(caller, "transfer_ownership")
        if new_owner == ZERO_ADDRESS:
            raise ZeroAddressRejectedError("new_owner")
        self._owner = new_owner
