"""
Ledger Client: boundary adapter over the ledger collaborator.

submit_batch() never raises for the three expected failure modes; it turns
each into per-receipt SettlementResults:

    no ledger configured      → FAILED, retryable=False   (operator action)
    no signing credential     → FAILED, retryable=False   (operator action)
    transport / remote error  → FAILED, retryable=True    (next tick retries)

Disclosure per receipt is the audit minimum: context is hashed, logic is
truncated, action and agent_id are sent as-is.
"""

import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Union

import requests

from witnessledger.core.canonical import sha256_hex
from witnessledger.core.crypto import Ed25519KeyManager
from witnessledger.core.exceptions import (
    ConfigurationFailure,
    LedgerRejected,
    TransportFailure,
)
from witnessledger.core.models import (
    DEFAULT_LOGIC_SUMMARY_LEN,
    PendingReceipt,
    ReceiptStatus,
    SettlementResult,
)
from witnessledger.core.time import Clock, now_ms
from witnessledger.ledger.message import LedgerAction, LedgerMessage, ReplyAction
from witnessledger.ledger.process import LedgerProcess

logger = logging.getLogger(__name__)

BATCH_TYPE              = "WitnessReceiptBatch"
PROTOCOL_VERSION        = "0.1.0"
DEFAULT_TIMEOUT_SECONDS = 5.0


# ─────────────────────────────────────────────────────────────
# Transports
# ─────────────────────────────────────────────────────────────

class LedgerTransport(ABC):
    """Delivers one LedgerMessage and returns the ledger's reply dict."""

    @abstractmethod
    def send(self, message: LedgerMessage) -> Dict[str, Any]:
        """Raise TransportFailure when the ledger cannot be reached."""


class LocalLedgerTransport(LedgerTransport):
    """Calls an in-process LedgerProcess directly."""

    def __init__(self, process: LedgerProcess) -> None:
        self.process = process

    def send(self, message: LedgerMessage) -> Dict[str, Any]:
        return self.process.handle(message)

    def __repr__(self) -> str:
        return f"LocalLedgerTransport(process_id={self.process.process_id!r})"


class HttpLedgerTransport(LedgerTransport):
    """
    POSTs the message as JSON to a remote ledger endpoint.

    Every call carries a bounded timeout. Timeouts, connection errors,
    non-2xx statuses and non-JSON bodies all raise TransportFailure.
    """

    def __init__(
        self,
        url:     str,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.url     = url
        self.timeout = timeout
        self.session = session or requests.Session()

    def send(self, message: LedgerMessage) -> Dict[str, Any]:
        try:
            resp = self.session.post(
                self.url,
                json=    message.to_dict(),
                timeout= self.timeout,
            )
            resp.raise_for_status()
            reply = resp.json()
        except requests.Timeout as exc:
            raise TransportFailure(
                "Ledger call timed out",
                {"url": self.url, "timeout": self.timeout},
            ) from exc
        except requests.RequestException as exc:
            raise TransportFailure(
                f"Ledger call failed: {exc}",
                {"url": self.url},
            ) from exc
        except ValueError as exc:
            raise TransportFailure(
                "Ledger reply is not JSON",
                {"url": self.url},
            ) from exc

        if not isinstance(reply, dict):
            raise TransportFailure("Ledger reply is not an object", {"url": self.url})
        return reply

    def __repr__(self) -> str:
        return f"HttpLedgerTransport(url={self.url!r}, timeout={self.timeout})"


# ─────────────────────────────────────────────────────────────
# Credential
# ─────────────────────────────────────────────────────────────

def load_credential(path: Optional[Union[str, Path]]) -> Optional[Ed25519KeyManager]:
    """
    Load the ledger-owner key used to author StoreReceipts messages.

    Returns None (and logs) when no path is configured or the file is
    missing or unreadable. The client then reports NO_CREDENTIAL.
    """
    if not path:
        return None
    try:
        return Ed25519KeyManager.from_file(Path(path))
    except (FileNotFoundError, ValueError) as exc:
        logger.warning("Ledger credential unavailable at %s: %s", path, exc)
        return None


# ─────────────────────────────────────────────────────────────
# Client
# ─────────────────────────────────────────────────────────────

class LedgerClient:

    def __init__(
        self,
        transport:            Optional[LedgerTransport],
        credential:           Optional[Ed25519KeyManager],
        logic_summary_length: int = DEFAULT_LOGIC_SUMMARY_LEN,
        clock:                Optional[Clock] = None,
    ) -> None:
        self.transport            = transport
        self.credential           = credential
        self.logic_summary_length = logic_summary_length
        self._clock               = clock or now_ms

    # ── Batch submission ──────────────────────────────────────

    def submit_batch(self, receipts: Sequence[PendingReceipt]) -> List[SettlementResult]:
        """
        Submit receipts as one StoreReceipts message.

        Returns one SettlementResult per input receipt, in input order.
        """
        if not receipts:
            return []

        try:
            message = self.build_message(receipts)
            reply   = self._send(message)
            return self._reconcile(receipts, message, reply)

        except ConfigurationFailure as exc:
            logger.error("Settlement not possible: %s", exc)
            return _all_failed(receipts, exc.message, retryable=False)

        except TransportFailure as exc:
            logger.warning(
                "Settlement of %d receipts failed, will retry: %s",
                len(receipts), exc,
            )
            return _all_failed(receipts, str(exc), retryable=True)

    def build_message(self, receipts: Sequence[PendingReceipt]) -> LedgerMessage:
        """
        Author the signed StoreReceipts message.
        Raises ConfigurationFailure when no ledger or credential is available.
        """
        self._require_ledger()
        if self.credential is None:
            raise ConfigurationFailure(
                ConfigurationFailure.NO_CREDENTIAL,
                "No signing credential configured",
            )

        payload = {
            "type":       BATCH_TYPE,
            "count":      len(receipts),
            "receipts":   [self.summarize(r) for r in receipts],
            "settled_at": self._clock(),
        }
        return LedgerMessage.create(
            action=      LedgerAction.STORE_RECEIPTS,
            key_manager= self.credential,
            data=        payload,
            tags={
                "Protocol-Version": PROTOCOL_VERSION,
                "Receipt-Count":    str(len(receipts)),
            },
        )

    def summarize(self, receipt: PendingReceipt) -> Dict[str, Any]:
        """The per-receipt audit summary. Never includes raw context or full logic."""
        record = receipt.record
        if record is None:
            raise ValueError(f"Receipt {receipt.receipt_id} has no decision record")
        return {
            "receipt_id":    receipt.receipt_id,
            "hash":          receipt.hash,
            "signature":     receipt.signature,
            "timestamp_ms":  receipt.timestamp_ms,
            "context_hash":  sha256_hex(record.context),
            "logic_summary": record.logic[: self.logic_summary_length],
            "action":        record.action,
            "agent_id":      record.agent_id,
        }

    # ── Read-only queries ─────────────────────────────────────

    def lookup(self, receipt_id: str) -> Optional[Dict[str, Any]]:
        """
        Fetch a stored receipt from the ledger. None if not stored there.
        Raises ConfigurationFailure or TransportFailure.
        """
        self._require_ledger()
        reply = self._send(LedgerMessage.query(
            LedgerAction.GET_RECEIPT,
            tags={"Receipt-Id": receipt_id},
        ))
        action = reply.get("action")
        if action == ReplyAction.NOT_FOUND:
            return None
        if action != ReplyAction.RECEIPT:
            raise LedgerRejected(
                _reply_error(reply),
                {"receipt_id": receipt_id},
            )
        return reply.get("data")

    def stats(self) -> Dict[str, Any]:
        self._require_ledger()
        reply = self._send(LedgerMessage.query(LedgerAction.GET_STATS))
        if reply.get("action") != ReplyAction.STATS:
            raise LedgerRejected(_reply_error(reply))
        return reply.get("data") or {}

    @property
    def configured(self) -> bool:
        return self.transport is not None and self.credential is not None

    # ── Internal ──────────────────────────────────────────────

    def _require_ledger(self) -> None:
        if self.transport is None:
            raise ConfigurationFailure(
                ConfigurationFailure.NO_LEDGER,
                "No ledger configured",
            )

    def _send(self, message: LedgerMessage) -> Dict[str, Any]:
        reply = self.transport.send(message)
        if not isinstance(reply, dict):
            raise TransportFailure("Ledger reply is not an object")
        return reply

    def _reconcile(
        self,
        receipts: Sequence[PendingReceipt],
        message:  LedgerMessage,
        reply:    Dict[str, Any],
    ) -> List[SettlementResult]:
        """
        Map a StoreReceipts reply back onto receipt ids.

        stored               → SETTLED with the batch ledger_tx
        duplicates           → SETTLED with the message_id that originally stored them
        rejected             → FAILED, not retryable (the ledger will never take it)
        absent from reply    → FAILED, retryable
        """
        if reply.get("action") != ReplyAction.RECEIPTS_STORED:
            raise LedgerRejected(_reply_error(reply), {"message_id": message.message_id})

        data      = reply.get("data") or {}
        ledger_tx = data.get("message_id") or message.message_id
        accepted  = {rid: ledger_tx for rid in data.get("stored") or []}
        for item in data.get("duplicates") or []:
            if isinstance(item, dict) and item.get("receipt_id"):
                accepted[item["receipt_id"]] = item.get("message_id") or ledger_tx
            elif isinstance(item, str):
                accepted[item] = ledger_tx
        rejected  = {
            item.get("receipt_id"): item.get("error") or "Rejected by ledger"
            for item in data.get("rejected") or []
            if isinstance(item, dict)
        }

        results = []
        for receipt in receipts:
            rid = receipt.receipt_id
            if rid in accepted:
                results.append(SettlementResult(
                    receipt_id= rid,
                    status=     ReceiptStatus.SETTLED,
                    ledger_tx=  accepted[rid],
                ))
            elif rid in rejected:
                results.append(SettlementResult(
                    receipt_id= rid,
                    status=     ReceiptStatus.FAILED,
                    error=      rejected[rid],
                    retryable=  False,
                ))
            else:
                results.append(SettlementResult(
                    receipt_id= rid,
                    status=     ReceiptStatus.FAILED,
                    error=      "Not acknowledged by ledger",
                    retryable=  True,
                ))

        logger.info(
            "Batch acknowledged: %d receipts -> %s",
            sum(1 for r in receipts if r.receipt_id in accepted), ledger_tx,
        )
        return results

    def __repr__(self) -> str:
        return (
            f"LedgerClient(transport={self.transport!r}, "
            f"credential={'yes' if self.credential else 'no'})"
        )


def _all_failed(
    receipts:  Sequence[PendingReceipt],
    error:     str,
    retryable: bool,
) -> List[SettlementResult]:
    return [
        SettlementResult(
            receipt_id= r.receipt_id,
            status=     ReceiptStatus.FAILED,
            error=      error,
            retryable=  retryable,
        )
        for r in receipts
    ]


def _reply_error(reply: Dict[str, Any]) -> str:
    data = reply.get("data")
    if isinstance(data, dict) and data.get("error"):
        return str(data["error"])
    return f"Unexpected ledger reply: {reply.get('action')!r}"
