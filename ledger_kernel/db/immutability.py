"""
ORM-level append-only enforcement for the notification journal.

SQLAlchemy fires mapper events before UPDATE/DELETE statements reach the
database. The listeners here reject both for NotificationRecord:

    session.flush()
         |
         v
    [before_update / before_delete] --> JournalImmutabilityError

Bulk ``update()``/``delete()`` statements bypass mapper events. Those are
caught after the fact by NotificationJournal.validate_chain().
"""

from sqlalchemy import event

from ledger_kernel.exceptions import JournalImmutabilityError
from ledger_kernel.logging_config import get_logger

logger = get_logger("db.immutability")


def _block(target, operation: str) -> None:
    logger.error(
        "immutability_violation_blocked",
        extra={
            "entity_type": "NotificationRecord",
            "entity_id": str(target.id),
            "operation": operation,
        },
    )
    raise JournalImmutabilityError(str(target.id), operation)


def _check_notification_update(mapper, connection, target):
    _block(target, "UPDATE")


def _check_notification_delete(mapper, connection, target):
    _block(target, "DELETE")


def register_immutability_listeners() -> None:
    """Register the journal's append-only listeners (idempotent)."""
    from ledger_kernel.models.notification_record import NotificationRecord

    if not event.contains(NotificationRecord, "before_update", _check_notification_update):
        event.listen(NotificationRecord, "before_update", _check_notification_update)
    if not event.contains(NotificationRecord, "before_delete", _check_notification_delete):
        event.listen(NotificationRecord, "before_delete", _check_notification_delete)


def unregister_immutability_listeners() -> None:
    """
    Remove the append-only listeners.

    WARNING: Only use this in tests that intentionally tamper with the
    journal to verify detection.
    """
    from ledger_kernel.models.notification_record import NotificationRecord

    if event.contains(NotificationRecord, "before_update", _check_notification_update):
        event.remove(NotificationRecord, "before_update", _check_notification_update)
    if event.contains(NotificationRecord, "before_delete", _check_notification_delete):
        event.remove(NotificationRecord, "before_delete", _check_notification_delete)
