"""Unit tests for the owner capability."""

import pytest

from ledger_kernel.domain.authority import OwnerCapability, SingleKeyOwner
from ledger_kernel.domain.values import ZERO_ADDRESS
from ledger_kernel.exceptions import UnauthorizedCallerError, ZeroAddressRejectedError
from ledger_kernel.services.taxed_ledger import TaxedLedger

from tests.conftest import ALICE, MALLORY, OWNER, POOL, pooled_components


class TestSingleKeyOwner:
    def test_authorizes_only_owner(self):
        cap = SingleKeyOwner(OWNER)
        assert cap.authorize(OWNER)
        assert not cap.authorize(MALLORY)

    def test_zero_owner_rejected(self):
        with pytest.raises(ZeroAddressRejectedError):
            SingleKeyOwner(ZERO_ADDRESS)

    def test_transfer_moves_authority(self):
        cap = SingleKeyOwner(OWNER)
        cap.transfer(OWNER, ALICE)
        assert cap.owner == ALICE
        assert not cap.authorize(OWNER)

    def test_transfer_by_non_owner_rejected(self):
        cap = SingleKeyOwner(OWNER)
        with pytest.raises(UnauthorizedCallerError) as exc_info:
            cap.transfer(MALLORY, MALLORY)
        assert exc_info.value.caller == MALLORY
        assert cap.owner == OWNER

    def test_transfer_to_zero_rejected(self):
        cap = SingleKeyOwner(OWNER)
        with pytest.raises(ZeroAddressRejectedError):
            cap.transfer(OWNER, ZERO_ADDRESS)
        assert cap.owner == OWNER


class _CommitteeOwner(OwnerCapability):
    """Any member may act; ownership is the first member."""

    def __init__(self, members):
        self._members = list(members)

    @property
    def owner(self):
        return self._members[0]

    def authorize(self, caller):
        return caller in self._members

    def transfer(self, caller, new_owner):
        self._members = [new_owner]


class TestSwappableBackend:
    def test_ledger_uses_injected_capability(self):
        ledger = TaxedLedger(
            owner=_CommitteeOwner([OWNER, ALICE]),
            total_supply=1_000,
            components=pooled_components(),
            pool_address=POOL,
        )
        ledger.set_tax_rates(ALICE, {"burn": 10})
        assert ledger.component("burn").rate_bps == 10
        with pytest.raises(UnauthorizedCallerError):
            ledger.set_tax_rates(MALLORY, {"burn": 20})
