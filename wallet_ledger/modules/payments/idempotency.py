"""Derived idempotency keys for callers that do not supply one."""

from __future__ import annotations

import hashlib
import time
from decimal import Decimal
from typing import Optional


def fingerprint(
    kind: str,
    sender_id: str,
    recipient_id: str,
    amount: Decimal,
    currency: str,
    reference: Optional[str] = None,
    *,
    window_seconds: int,
    now: Optional[float] = None,
) -> str:
    """Hash the identifying fields of a movement into a 64 char key.

    Identical requests inside the same ``window_seconds`` bucket share a key.
    A window of ``0`` disables bucketing, so the key never expires.
    """
    bucket = 0
    if window_seconds > 0:
        bucket = int((time.time() if now is None else now) // window_seconds)
    parts = (kind, sender_id, recipient_id, f"{amount:.2f}", currency.upper(), reference or "", str(bucket))
    return hashlib.sha256("\x1f".join(parts).encode("utf-8")).hexdigest()


__all__ = ["fingerprint"]
