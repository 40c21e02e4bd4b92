"""
Notifications -- observable records of ledger activity.

Responsibility:
    Defines the notification kinds, the immutable ``Notification`` record
    and the ``NotificationSink`` interface that consumers implement.

Architecture position:
    Kernel > Domain -- pure. TaxedLedger buffers notifications during an
    operation and hands them to sinks only after the operation commits.

Invariants enforced:
    - ``seq`` is strictly increasing per ledger; rolled-back operations
      release their sequence numbers.
    - A sink never observes notifications from a rolled-back operation.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Mapping, Sequence


class NotificationKind(str, Enum):
    """Kinds of observable ledger activity."""

    MOVEMENT = "movement"
    TAX_APPLIED = "tax_applied"
    CONFIG_CHANGED = "config_changed"
    EXCLUSION_CHANGED = "exclusion_changed"
    TRIGGER_FIRED = "trigger_fired"
    PAYOUT_ISSUED = "payout_issued"
    OWNERSHIP_TRANSFERRED = "ownership_transferred"


@dataclass(frozen=True)
class Notification:
    """An immutable notification with a read-only payload."""

    seq: int
    kind: NotificationKind
    payload: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "payload", MappingProxyType(dict(self.payload)))

    def to_dict(self) -> dict[str, Any]:
        return {"seq": self.seq, "kind": self.kind.value, "payload": dict(self.payload)}


class NotificationSink(ABC):
    """Receives committed notification batches, in order."""

    @abstractmethod
    def publish(self, notifications: Sequence[Notification]) -> None:
        ...


class ListSink(NotificationSink):
    """In-memory sink. Useful in tests and for ad-hoc inspection."""

    def __init__(self) -> None:
        self.received: list[Notification] = []

    def publish(self, notifications: Sequence[Notification]) -> None:
        self.received.extend(notifications)

    def of_kind(self, kind: NotificationKind) -> list[Notification]:
        return [n for n in self.received if n.kind == kind]
