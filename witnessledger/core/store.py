"""
witnessledger/core/store.py

Receipt Store: in-memory, partitioned, single mutation gate.

Partitions:
    _pending   receipt_id → PendingReceipt   (awaiting settlement, payload held)
    _settled   receipt_id → Receipt          (payload dropped, ledger_tx attached)
    _failed    receipt_id → PendingReceipt   (configuration failure, payload held)

Every receipt lives in exactly one partition once inserted. Ids are never
reassigned and records are never deleted.

All mutations take self._lock. snapshot_pending() copies under the same lock,
so a receipt inserted while a settlement tick runs is either in that tick's
snapshot or waits for the next one.
"""

import logging
import threading
from typing import Dict, List, Optional

from witnessledger.core.exceptions import StoreError
from witnessledger.core.models import PendingReceipt, Receipt, ReceiptStatus

logger = logging.getLogger(__name__)


class ReceiptStore:
    """Thread-safe receipt store. Single source of truth for witness and verify."""

    def __init__(self) -> None:
        self._lock:    threading.Lock              = threading.Lock()
        self._pending: Dict[str, PendingReceipt]   = {}
        self._settled: Dict[str, Receipt]          = {}
        self._failed:  Dict[str, PendingReceipt]   = {}

    # ── Mutators ──────────────────────────────────────────────

    def insert_pending(self, pending: PendingReceipt) -> Receipt:
        """
        Insert a freshly witnessed receipt and return the stored record.

        The same decision witnessed twice within one millisecond hashes
        identically; the existing record is returned unchanged.
        Raises StoreError if the id is already assigned to a different hash.
        """
        if pending.status is not ReceiptStatus.PENDING:
            raise StoreError(
                "Only pending receipts can be inserted",
                {"receipt_id": pending.receipt_id, "status": pending.status.value},
            )
        with self._lock:
            rid = pending.receipt_id
            existing = (
                self._settled.get(rid)
                or self._pending.get(rid)
                or self._failed.get(rid)
            )
            if existing is not None:
                if existing.hash != pending.hash:
                    raise StoreError(
                        "Receipt id already assigned",
                        {"receipt_id": rid},
                    )
                return existing
            self._pending[rid] = pending
            return pending

    def promote_to_settled(self, receipt_id: str, ledger_tx: str) -> bool:
        """
        Move a pending receipt to settled, dropping its payload.
        No-op returning False if the id is not currently pending.
        """
        with self._lock:
            pending = self._pending.pop(receipt_id, None)
            if pending is None:
                return False
            self._settled[receipt_id] = pending.settled(ledger_tx)
            return True

    def mark_failed(self, receipt_id: str, reason: str) -> bool:
        """
        Move a pending receipt to failed. The payload is kept for requeue.
        No-op returning False if the id is not currently pending.
        """
        with self._lock:
            pending = self._pending.pop(receipt_id, None)
            if pending is None:
                return False
            self._failed[receipt_id] = pending.failed(reason)
            return True

    def requeue_failed(self) -> int:
        """Move every failed receipt back to pending. Returns how many moved."""
        with self._lock:
            moved = 0
            for rid, failed in list(self._failed.items()):
                self._pending[rid] = failed.requeued()
                del self._failed[rid]
                moved += 1
        if moved:
            logger.info("Requeued %d failed receipts for settlement", moved)
        return moved

    # ── Readers ───────────────────────────────────────────────

    def get(self, receipt_id: str) -> Optional[Receipt]:
        """
        Look up a receipt: settled first, then pending, then failed.
        Pending and failed receipts are returned with their payload attached;
        callers handing receipts out must use public_view().
        """
        with self._lock:
            found = self._settled.get(receipt_id)
            if found is None:
                found = self._pending.get(receipt_id)
            if found is None:
                found = self._failed.get(receipt_id)
            return found

    def get_pending(self, receipt_id: str) -> Optional[PendingReceipt]:
        with self._lock:
            return self._pending.get(receipt_id)

    def snapshot_pending(self) -> List[PendingReceipt]:
        """Point-in-time copy of pending receipts, in insertion order."""
        with self._lock:
            return list(self._pending.values())

    def counts(self) -> Dict[str, int]:
        with self._lock:
            return {
                "pending": len(self._pending),
                "settled": len(self._settled),
                "failed":  len(self._failed),
            }

    @property
    def pending_count(self) -> int:
        return self.counts()["pending"]

    @property
    def settled_count(self) -> int:
        return self.counts()["settled"]

    def __len__(self) -> int:
        c = self.counts()
        return c["pending"] + c["settled"] + c["failed"]

    def __contains__(self, receipt_id: object) -> bool:
        return isinstance(receipt_id, str) and self.get(receipt_id) is not None

    def __repr__(self) -> str:
        c = self.counts()
        return (
            f"ReceiptStore(pending={c['pending']}, "
            f"settled={c['settled']}, failed={c['failed']})"
        )
