"""
NotificationJournal -- durable, hash-chained record of ledger notifications.

Responsibility:
    Persists committed notification batches as append-only
    ``NotificationRecord`` rows, each chained to its predecessor by hash.
    Provides chain validation for tamper detection and history queries.

Architecture position:
    Kernel > Services -- imperative shell. ``JournalSink`` adapts the
    journal to the ledger's NotificationSink interface so a TaxedLedger
    can persist every committed operation.

Invariants enforced:
    - Chain integrity: ``hash = H(ledger_id | seq | kind | payload_hash |
      prev_hash)``; the first record of a ledger chains to "GENESIS".
    - Append-only: see ledger_kernel.db.immutability.

Failure modes:
    - JournalChainBrokenError: a recomputed payload hash or chain hash
      does not match what is stored.
    - IntegrityError: a (ledger_id, seq) pair is recorded twice.

Audit relevance:
    ``validate_chain`` recomputes every hash from stored payloads, so any
    edit made outside the ORM is detected on the next validation.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Sequence

from sqlalchemy import select
from sqlalchemy.orm import Session, sessionmaker

from ledger_kernel.db.engine import session_scope
from ledger_kernel.domain.clock import Clock, SystemClock
from ledger_kernel.domain.notifications import Notification, NotificationKind, NotificationSink
from ledger_kernel.exceptions import JournalChainBrokenError
from ledger_kernel.logging_config import get_logger
from ledger_kernel.models.notification_record import NotificationRecord
from ledger_kernel.utils.hashing import hash_notification, hash_payload

logger = get_logger("services.notification_journal")


@dataclass(frozen=True)
class JournalEntry:
    """A single persisted notification, as read back from the journal."""

    seq: int
    kind: NotificationKind
    payload: dict[str, Any]
    recorded_at: datetime
    hash: str


class NotificationJournal:
    """
    Service for appending and validating journaled notifications.

    Non-goals:
        - Does NOT call ``session.commit()`` -- caller controls boundaries.
    """

    def __init__(self, session: Session, clock: Clock | None = None):
        self._session = session
        self._clock = clock or SystemClock()

    def _get_last_hash(self, ledger_id: str) -> str | None:
        last = self._session.execute(
            select(NotificationRecord)
            .where(NotificationRecord.ledger_id == ledger_id)
            .order_by(NotificationRecord.seq.desc())
            .limit(1)
        ).scalar_one_or_none()
        return last.hash if last else None

    def record(
        self, ledger_id: str, notifications: Sequence[Notification]
    ) -> list[NotificationRecord]:
        """
        Append ``notifications`` in order and flush.

        Postconditions:
            - One row per notification, each chained to the previous row
              of the same ledger.
        """
        prev_hash = self._get_last_hash(ledger_id)
        recorded_at = self._clock.now()
        records: list[NotificationRecord] = []

        for notification in notifications:
            payload = dict(notification.payload)
            payload_hash = hash_payload(payload)
            record_hash = hash_notification(
                ledger_id=ledger_id,
                seq=notification.seq,
                kind=notification.kind.value,
                payload_hash=payload_hash,
                prev_hash=prev_hash,
            )
            record = NotificationRecord(
                ledger_id=ledger_id,
                seq=notification.seq,
                kind=notification.kind.value,
                payload=payload,
                payload_hash=payload_hash,
                prev_hash=prev_hash,
                hash=record_hash,
                recorded_at=recorded_at,
            )
            self._session.add(record)
            records.append(record)
            prev_hash = record_hash

        self._session.flush()
        logger.debug(
            "notifications_journaled",
            extra={"ledger_id": ledger_id, "count": len(records)},
        )
        return records

    def validate_chain(self, ledger_id: str) -> bool:
        """
        Recompute every hash in ``ledger_id``'s chain.

        Raises:
            JournalChainBrokenError: On the first mismatching record.
        """
        records = self._session.execute(
            select(NotificationRecord)
            .where(NotificationRecord.ledger_id == ledger_id)
            .order_by(NotificationRecord.seq)
        ).scalars().all()

        prev_hash: str | None = None
        for record in records:
            payload_hash = hash_payload(record.payload)
            expected = hash_notification(
                ledger_id=record.ledger_id,
                seq=record.seq,
                kind=record.kind,
                payload_hash=payload_hash,
                prev_hash=prev_hash,
            )
            if payload_hash != record.payload_hash or record.prev_hash != prev_hash or expected != record.hash:
                logger.critical(
                    "journal_chain_broken",
                    extra={"ledger_id": ledger_id, "seq": record.seq},
                )
                raise JournalChainBrokenError(record.seq, expected, record.hash)
            prev_hash = record.hash

        logger.info(
            "journal_chain_valid",
            extra={"ledger_id": ledger_id, "records": len(records)},
        )
        return True

    def history(
        self, ledger_id: str, kind: NotificationKind | None = None
    ) -> tuple[JournalEntry, ...]:
        stmt = select(NotificationRecord).where(NotificationRecord.ledger_id == ledger_id)
        if kind is not None:
            stmt = stmt.where(NotificationRecord.kind == kind.value)
        records = self._session.execute(stmt.order_by(NotificationRecord.seq)).scalars().all()
        return tuple(
            JournalEntry(
                seq=r.seq,
                kind=NotificationKind(r.kind),
                payload=dict(r.payload),
                recorded_at=r.recorded_at,
                hash=r.hash,
            )
            for r in records
        )


class JournalSink(NotificationSink):
    """Persists each committed batch in its own transaction."""

    def __init__(
        self,
        ledger_id: str,
        session_factory: sessionmaker[Session] | None = None,
        clock: Clock | None = None,
    ):
        self._ledger_id = ledger_id
        self._session_factory = session_factory
        self._clock = clock

    def publish(self, notifications: Sequence[Notification]) -> None:
        if not notifications:
            return
        with session_scope(self._session_factory) as session:
            NotificationJournal(session, self._clock).record(self._ledger_id, notifications)
