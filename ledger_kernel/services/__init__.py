"""Services for the ledger kernel (write side)."""

from ledger_kernel.services.exclusion_registry import ExclusionRegistry
from ledger_kernel.services.fungible_ledger import FungibleLedger, SettlementGrant
from ledger_kernel.services.notification_journal import JournalSink, NotificationJournal
from ledger_kernel.services.reflection_service import (
    ReflectionAccounting,
    ReflectionDesyncPolicy,
)
from ledger_kernel.services.taxed_ledger import TaxedLedger, TransferResult
from ledger_kernel.services.trigger_service import TriggerEngine

__all__ = [
    "ExclusionRegistry",
    "FungibleLedger",
    "JournalSink",
    "NotificationJournal",
    "ReflectionAccounting",
    "ReflectionDesyncPolicy",
    "SettlementGrant",
    "TaxedLedger",
    "TransferResult",
    "TriggerEngine",
]
