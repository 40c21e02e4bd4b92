"""Unit tests for domain values and notifications."""

from datetime import timedelta

import pytest

from ledger_kernel.domain.notifications import ListSink, Notification, NotificationKind
from ledger_kernel.domain.values import (
    DestinationKind,
    ScheduledWindow,
    TaxComponent,
    TriggerMode,
    to_units,
)

from tests.conftest import FIXED_NOW, TREASURY


class TestTriggerModeCodes:
    @pytest.mark.parametrize(
        "mode,code",
        [
            (TriggerMode.OFF, 0),
            (TriggerMode.CONFETTI, 1),
            (TriggerMode.REVERSE_DAY, 2),
            (TriggerMode.LUCKY_DROP, 3),
        ],
    )
    def test_code_round_trip(self, mode, code):
        assert mode.code == code
        assert TriggerMode.from_code(code) is mode

    def test_unknown_code(self):
        with pytest.raises(ValueError):
            TriggerMode.from_code(4)


class TestToUnits:
    def test_decimals(self):
        assert to_units(69_420, 18) == 69_420 * 10**18

    def test_negative_rejected(self):
        with pytest.raises(ValueError):
            to_units(-1, 18)


class TestTaxComponent:
    def test_with_rate_returns_copy(self):
        original = TaxComponent("treasury", 80, DestinationKind.WALLET, TREASURY)
        updated = original.with_rate(90)
        assert original.rate_bps == 80
        assert updated.rate_bps == 90
        assert updated.destination == TREASURY


class TestScheduledWindow:
    def test_bounds_inclusive(self):
        window = ScheduledWindow(
            TriggerMode.CONFETTI, FIXED_NOW, FIXED_NOW + timedelta(hours=1)
        )
        assert window.covers(FIXED_NOW)
        assert window.covers(FIXED_NOW + timedelta(hours=1))
        assert not window.covers(FIXED_NOW + timedelta(hours=1, seconds=1))
        assert not window.covers(FIXED_NOW - timedelta(seconds=1))

    def test_deactivated_never_covers(self):
        window = ScheduledWindow(
            TriggerMode.CONFETTI, FIXED_NOW, FIXED_NOW + timedelta(hours=1)
        ).deactivated()
        assert not window.active
        assert not window.covers(FIXED_NOW)


class TestNotification:
    def test_payload_is_read_only(self):
        payload = {"amount": 1}
        notification = Notification(1, NotificationKind.MOVEMENT, payload)
        payload["amount"] = 2
        assert notification.payload["amount"] == 1
        with pytest.raises(TypeError):
            notification.payload["amount"] = 3

    def test_to_dict(self):
        notification = Notification(7, NotificationKind.TRIGGER_FIRED, {"payout": 0})
        assert notification.to_dict() == {
            "seq": 7,
            "kind": "trigger_fired",
            "payload": {"payout": 0},
        }

    def test_list_sink_filters_by_kind(self):
        sink = ListSink()
        sink.publish(
            [
                Notification(1, NotificationKind.MOVEMENT, {}),
                Notification(2, NotificationKind.TAX_APPLIED, {}),
            ]
        )
        assert [n.seq for n in sink.of_kind(NotificationKind.TAX_APPLIED)] == [2]
