"""
Simulated enforcement ledger.

Stands in for an on-chain record of penalty enforcement. Each recorded
transaction gets a 0x-prefixed, 64 hex digit hash: SHA-256 over the canonical
notice payload plus a random nonce. Nothing leaves the process.
"""

from __future__ import annotations

import hashlib
import json
import secrets
import threading
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from core.models import TaxNotice, utc_now


@dataclass(frozen=True)
class LedgerTransaction:
    """A recorded (simulated) enforcement transaction."""

    transaction_hash: str
    notice_id: int
    property_id: int
    recorded_at: datetime

    def to_dict(self) -> dict:
        return {
            "transactionHash": self.transaction_hash,
            "noticeId": self.notice_id,
            "propertyId": self.property_id,
            "recordedAt": self.recorded_at.isoformat(),
        }


def compute_transaction_hash(notice: TaxNotice, nonce: str) -> str:
    """Deterministic hash of a notice payload and nonce."""
    payload = {
        "noticeId": notice.id,
        "propertyId": notice.property_id,
        "penaltyType": notice.penalty_type,
        "penaltyAmount": str(notice.penalty_amount),
        "dueDate": notice.due_date.isoformat() if notice.due_date else None,
        "nonce": nonce,
    }
    canonical = json.dumps(payload, sort_keys=True, separators=(",", ":"))
    return "0x" + hashlib.sha256(canonical.encode("utf-8")).hexdigest()


class EnforcementLedger:
    """Append-only in-process list of enforcement transactions."""

    def __init__(self):
        self._transactions: list[LedgerTransaction] = []
        self._lock = threading.Lock()

    def record(self, notice: TaxNotice) -> LedgerTransaction:
        transaction = LedgerTransaction(
            transaction_hash=compute_transaction_hash(notice, secrets.token_hex(16)),
            notice_id=notice.id,
            property_id=notice.property_id,
            recorded_at=utc_now(),
        )
        with self._lock:
            self._transactions.append(transaction)
        return transaction

    def find(self, transaction_hash: str) -> Optional[LedgerTransaction]:
        with self._lock:
            for transaction in self._transactions:
                if transaction.transaction_hash == transaction_hash:
                    return transaction
        return None

    def __len__(self) -> int:
        return len(self._transactions)
