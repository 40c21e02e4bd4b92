"""
Deterministic hashing utilities.

All hashing in the ledger kernel must be deterministic and reproducible.
This module provides the canonical hashing functions used throughout.
"""

import hashlib
import json
from datetime import datetime
from enum import Enum
from typing import Any
from uuid import UUID


def _json_serializer(obj: Any) -> Any:
    if isinstance(obj, Enum):
        return obj.value
    if isinstance(obj, datetime):
        return obj.isoformat()
    if isinstance(obj, UUID):
        return str(obj)
    raise TypeError(f"Object of type {type(obj).__name__} is not JSON serializable")


def canonicalize_json(data: dict | list | Any) -> str:
    """
    Convert data to canonical JSON string.

    Keys are sorted, there is no whitespace, and special types
    (Enum, datetime, UUID) are serialized consistently. Large integers
    are emitted exactly.
    """
    return json.dumps(
        data,
        sort_keys=True,
        separators=(",", ":"),
        default=_json_serializer,
    )


def hash_payload(payload: dict) -> str:
    """Hex-encoded SHA-256 of the canonical JSON form of ``payload``."""
    canonical = canonicalize_json(payload)
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()


def hash_notification(
    ledger_id: str,
    seq: int,
    kind: str,
    payload_hash: str,
    prev_hash: str | None,
) -> str:
    """
    Compute the chain hash for a journaled notification.

    The hash includes the previous record's hash, creating a
    tamper-evident chain.
    """
    components = [
        ledger_id,
        str(seq),
        kind,
        payload_hash,
        prev_hash or "GENESIS",
    ]
    data = "|".join(components)
    return hashlib.sha256(data.encode("utf-8")).hexdigest()


def trigger_id(mode: str, amount: int, recipient: str, payout: int) -> str:
    """Deterministic identifier of a trigger firing."""
    return hash_payload(
        {
            "mode": mode,
            "amount": amount,
            "recipient": recipient,
            "payout": payout,
        }
    )


def transfer_id(ledger_id: str, seq: int, sender: str, recipient: str, amount: int) -> str:
    """Deterministic identifier of a top-level transfer."""
    return hash_payload(
        {
            "ledger_id": ledger_id,
            "seq": seq,
            "sender": sender,
            "recipient": recipient,
            "amount": amount,
        }
    )
