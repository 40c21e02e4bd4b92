"""
Module: ledger_kernel.models.notification_record
Responsibility: ORM persistence for the hash-chained notification journal.
Architecture position: Kernel > Models.  May import from db/base.py only.

Invariants enforced:
    - Records are append-only; no UPDATE or DELETE (ORM listeners in
      db/immutability.py).
    - hash = H(ledger_id | seq | kind | payload_hash | prev_hash),
      validated by NotificationJournal.
    - (ledger_id, seq) is unique; seq is the ledger's own notification
      sequence.

Audit relevance:
    The journal is the durable record of every committed ledger
    operation. The hash chain makes retroactive edits detectable.
"""

from datetime import datetime

from sqlalchemy import JSON, BigInteger, DateTime, Index, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from ledger_kernel.db.base import Base


class NotificationRecord(Base):
    """
    One committed ledger notification, chained to its predecessor.

    prev_hash is None only for the first record of a ledger.
    """

    __tablename__ = "ledger_notifications"

    __table_args__ = (
        UniqueConstraint("ledger_id", "seq", name="uq_notification_ledger_seq"),
        Index("idx_notification_kind", "kind"),
    )

    ledger_id: Mapped[str] = mapped_column(String(100), nullable=False)

    seq: Mapped[int] = mapped_column(BigInteger, nullable=False)

    kind: Mapped[str] = mapped_column(String(50), nullable=False)

    payload: Mapped[dict] = mapped_column(JSON, nullable=False)

    payload_hash: Mapped[str] = mapped_column(String(64), nullable=False)

    prev_hash: Mapped[str | None] = mapped_column(String(64), nullable=True)

    # hash = H(ledger_id + seq + kind + payload_hash + prev_hash)
    hash: Mapped[str] = mapped_column(String(64), nullable=False)

    recorded_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<NotificationRecord {self.ledger_id}#{self.seq} {self.kind}>"

    @property
    def is_genesis(self) -> bool:
        return self.prev_hash is None
