"""ORM models for the ledger kernel."""

from ledger_kernel.models.notification_record import NotificationRecord

__all__ = ["NotificationRecord"]
