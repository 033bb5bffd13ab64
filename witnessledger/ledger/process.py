"""
Reference ledger collaborator: an owner-gated, append-only receipt store.

Contract honored here, and nothing more:
    - StoreReceipts is accepted only from the owner and only while not frozen
    - Duplicate receipt_ids are skipped, never overwritten, and reported
      with the message_id of the message that originally stored them
    - Stored receipts are never modified or deleted
    - Anyone may look up, list (bounded) and verify receipts
    - Every successful store replies with the message id, usable as ledger_tx

Optional JSONL persistence: one line per stored receipt or freeze toggle,
replayed on construction.
"""

import json
import logging
import os
import threading
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from witnessledger.core.exceptions import LedgerRejected
from witnessledger.ledger.message import LedgerAction, LedgerMessage, ReplyAction

logger = logging.getLogger(__name__)

VERSION            = "0.1.0"
DEFAULT_LIST_LIMIT = 100
MAX_LIST_LIMIT     = 1000

_STORED_FIELDS = (
    "receipt_id",
    "hash",
    "signature",
    "timestamp_ms",
    "context_hash",
    "logic_summary",
    "action",
    "agent_id",
)


class LedgerProcess:
    """
    In-process ledger honoring the collaborator contract.

    Thread-safe via internal lock.
    """

    def __init__(
        self,
        owner_public_key: str,
        process_id:       str = "witnessledger-process",
        ledger_path:      Optional[Union[str, Path]] = None,
    ) -> None:
        self.owner      = owner_public_key
        self.process_id = process_id
        self.frozen     = False

        self._lock:     threading.Lock            = threading.Lock()
        self._receipts: Dict[str, Dict[str, Any]] = {}

        self._ledger_path = Path(ledger_path) if ledger_path else None
        if self._ledger_path is not None and self._ledger_path.exists():
            self._load()

    # ── Dispatch ──────────────────────────────────────────────

    def handle(self, message: Union[LedgerMessage, Dict[str, Any]]) -> Dict[str, Any]:
        """Route one message to its handler and return the reply dict."""
        if isinstance(message, dict):
            try:
                message = LedgerMessage.from_dict(message)
            except (KeyError, TypeError, ValueError) as exc:
                return _reply(ReplyAction.ERROR, {"error": f"Malformed message: {exc}"})

        handler = {
            LedgerAction.STORE_RECEIPTS: self._handle_store,
            LedgerAction.FREEZE:         self._handle_freeze,
            LedgerAction.UNFREEZE:       self._handle_unfreeze,
            LedgerAction.GET_RECEIPT:    self._handle_get,
            LedgerAction.LIST_RECEIPTS:  self._handle_list,
            LedgerAction.VERIFY_RECEIPT: self._handle_verify,
            LedgerAction.GET_STATS:      self._handle_stats,
        }.get(message.action)

        if handler is None:
            return _reply(ReplyAction.ERROR, {"error": f"Unknown action: {message.action}"})
        return handler(message)

    # ── Owner-only handlers (state-mutating) ──────────────────

    def _handle_store(self, msg: LedgerMessage) -> Dict[str, Any]:
        if self.frozen:
            return _reply(ReplyAction.ERROR, {"error": "Process is frozen"})
        if not self._is_owner(msg):
            return _reply(ReplyAction.ERROR, {"error": "Unauthorized: owner only"})

        data = msg.parsed_data()
        if not isinstance(data, dict) or not isinstance(data.get("receipts"), list):
            return _reply(
                ReplyAction.ERROR,
                {"error": "Invalid payload: missing receipts array"},
            )

        message_id = msg.message_id
        stored:     List[str]            = []
        duplicates: List[Dict[str, Any]] = []
        rejected:   List[Dict[str, Any]] = []

        with self._lock:
            for summary in data["receipts"]:
                receipt_id = summary.get("receipt_id") if isinstance(summary, dict) else None
                problem    = _summary_problem(summary)
                if problem:
                    rejected.append({"receipt_id": receipt_id, "error": problem})
                    continue
                if receipt_id in self._receipts:
                    duplicates.append({
                        "receipt_id": receipt_id,
                        "message_id": self._receipts[receipt_id]["message_id"],
                    })
                    continue

                record = {name: summary.get(name) for name in _STORED_FIELDS}
                record["stored_at"]  = msg.timestamp_ms
                record["message_id"] = message_id
                self._append({"kind": "receipt", "record": record})
                self._receipts[receipt_id] = record
                stored.append(receipt_id)

            total = len(self._receipts)

        logger.info(
            "Ledger stored %d receipts (%d duplicates, %d rejected) in %s",
            len(stored), len(duplicates), len(rejected), message_id[:16],
        )
        return _reply(ReplyAction.RECEIPTS_STORED, {
            "message_id":   message_id,
            "stored":       stored,
            "duplicates":   duplicates,
            "rejected":     rejected,
            "stored_count": len(stored),
            "total_count":  total,
        })

    def _handle_freeze(self, msg: LedgerMessage) -> Dict[str, Any]:
        return self._set_frozen(msg, True, ReplyAction.FROZEN)

    def _handle_unfreeze(self, msg: LedgerMessage) -> Dict[str, Any]:
        return self._set_frozen(msg, False, ReplyAction.UNFROZEN)

    def _set_frozen(self, msg: LedgerMessage, frozen: bool, action: str) -> Dict[str, Any]:
        if not self._is_owner(msg):
            return _reply(ReplyAction.ERROR, {"error": "Unauthorized: owner only"})
        with self._lock:
            self._append({"kind": "freeze", "frozen": frozen})
            self.frozen = frozen
        logger.warning("Ledger %s frozen=%s", self.process_id, frozen)
        return _reply(action, {"frozen": frozen})

    # ── Public query handlers (read-only) ─────────────────────

    def _handle_get(self, msg: LedgerMessage) -> Dict[str, Any]:
        receipt_id = _receipt_id_of(msg)
        if not receipt_id:
            return _reply(ReplyAction.ERROR, {"error": "Missing Receipt-Id"})
        record = self.get_receipt(receipt_id)
        if record is None:
            return _reply(ReplyAction.NOT_FOUND, {
                "error":      "Receipt not found",
                "receipt_id": receipt_id,
            })
        return _reply(ReplyAction.RECEIPT, record)

    def _handle_list(self, msg: LedgerMessage) -> Dict[str, Any]:
        try:
            limit = int(msg.tags.get("Limit", DEFAULT_LIST_LIMIT))
        except (TypeError, ValueError):
            limit = DEFAULT_LIST_LIMIT
        return _reply(ReplyAction.RECEIPT_LIST, {
            "receipts":    self.list_receipts(limit),
            "total_count": len(self),
        })

    def _handle_verify(self, msg: LedgerMessage) -> Dict[str, Any]:
        return _reply(ReplyAction.VERIFICATION_RESULT, self.verify_receipt(_receipt_id_of(msg)))

    def _handle_stats(self, msg: LedgerMessage) -> Dict[str, Any]:
        return _reply(ReplyAction.STATS, self.stats())

    # ── Direct read API ───────────────────────────────────────

    def get_receipt(self, receipt_id: str) -> Optional[Dict[str, Any]]:
        with self._lock:
            record = self._receipts.get(receipt_id)
            return dict(record) if record else None

    def list_receipts(self, limit: int = DEFAULT_LIST_LIMIT) -> List[Dict[str, Any]]:
        """Most recently stored first. limit is clamped to [1, MAX_LIST_LIMIT]."""
        limit = max(1, min(int(limit), MAX_LIST_LIMIT))
        with self._lock:
            recent = list(self._receipts.values())[-limit:]
        return [
            {
                "receipt_id":   r["receipt_id"],
                "timestamp_ms": r["timestamp_ms"],
                "stored_at":    r["stored_at"],
            }
            for r in reversed(recent)
        ]

    def verify_receipt(self, receipt_id: Optional[str]) -> Dict[str, Any]:
        record = self.get_receipt(receipt_id) if receipt_id else None
        return {
            "receipt_id": receipt_id,
            "exists":     record is not None,
            "stored_at":  record["stored_at"] if record else None,
            "message_id": record["message_id"] if record else None,
            "process_id": self.process_id,
        }

    def stats(self) -> Dict[str, Any]:
        return {
            "receipt_count": len(self),
            "owner":         self.owner,
            "frozen":        self.frozen,
            "version":       VERSION,
            "process_id":    self.process_id,
        }

    def __len__(self) -> int:
        with self._lock:
            return len(self._receipts)

    # ── Internal ──────────────────────────────────────────────

    def _is_owner(self, msg: LedgerMessage) -> bool:
        return msg.owner == self.owner and msg.verify_signature()

    def _append(self, line: Dict[str, Any]) -> None:
        """Append one JSONL line. Caller holds the lock. No-op without a path."""
        if self._ledger_path is None:
            return
        self._ledger_path.parent.mkdir(parents=True, exist_ok=True)
        try:
            with open(self._ledger_path, "a", encoding="utf-8") as f:
                f.write(json.dumps(line, sort_keys=True) + "\n")
                f.flush()
                os.fsync(f.fileno())
        except OSError as exc:
            raise LedgerRejected(f"Failed to write ledger line: {exc}") from exc

    def _load(self) -> None:
        """Replay the JSONL file. Later duplicate ids never overwrite earlier ones."""
        with open(self._ledger_path, "r", encoding="utf-8") as f:
            for line_num, line in enumerate(f, 1):
                line = line.strip()
                if not line:
                    continue
                try:
                    entry = json.loads(line)
                except json.JSONDecodeError as exc:
                    raise LedgerRejected(
                        f"Invalid JSON at line {line_num}: {exc}",
                        {"path": str(self._ledger_path)},
                    ) from exc
                if entry.get("kind") == "freeze":
                    self.frozen = bool(entry.get("frozen"))
                elif entry.get("kind") == "receipt":
                    record = entry["record"]
                    self._receipts.setdefault(record["receipt_id"], record)


def _reply(action: str, data: Dict[str, Any]) -> Dict[str, Any]:
    return {"action": action, "data": data}


def _receipt_id_of(msg: LedgerMessage) -> Optional[str]:
    """Receipt-Id tag, then JSON data.receipt_id, then raw data."""
    receipt_id = msg.tags.get("Receipt-Id")
    if not receipt_id:
        data = msg.parsed_data()
        if isinstance(data, dict):
            receipt_id = data.get("receipt_id")
    if not receipt_id:
        receipt_id = msg.data or None
    return receipt_id


def _summary_problem(summary: Any) -> Optional[str]:
    if not isinstance(summary, dict):
        return "Receipt summary must be an object"
    for name in ("receipt_id", "hash", "signature"):
        if not isinstance(summary.get(name), str) or not summary.get(name):
            return f"Missing {name}"
    if not isinstance(summary.get("timestamp_ms"), int):
        return "Missing timestamp_ms"
    return None
