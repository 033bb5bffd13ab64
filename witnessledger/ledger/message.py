"""
witnessledger/ledger/message.py

LedgerMessage: the unit exchanged with the ledger collaborator.

Signing surface:
    {action, tags, data, owner, timestamp_ms}  →  JCS  →  Ed25519

message_id:
    SHA-256(JCS(signing surface + signature)), lowercase hex.
    It is what a settled receipt records as ledger_tx.

Read-only queries may be sent unsigned (owner and signature are None).
State-mutating actions are rejected by the ledger unless signed by its owner.
"""

import json
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from witnessledger.core.canonical import canonical_hash, canonicalize
from witnessledger.core.crypto import Ed25519KeyManager
from witnessledger.core.time import now_ms


class LedgerAction:
    """Action tag vocabulary understood by the ledger."""
    STORE_RECEIPTS = "StoreReceipts"
    FREEZE         = "Freeze"
    UNFREEZE       = "Unfreeze"
    GET_RECEIPT    = "GetReceipt"
    LIST_RECEIPTS  = "ListReceipts"
    VERIFY_RECEIPT = "VerifyReceipt"
    GET_STATS      = "GetStats"


class ReplyAction:
    """Reply action vocabulary sent back by the ledger."""
    ERROR               = "Error"
    RECEIPTS_STORED     = "ReceiptsStored"
    FROZEN              = "Frozen"
    UNFROZEN            = "Unfrozen"
    RECEIPT             = "Receipt"
    NOT_FOUND           = "NotFound"
    RECEIPT_LIST        = "ReceiptList"
    VERIFICATION_RESULT = "VerificationResult"
    STATS               = "Stats"


@dataclass
class LedgerMessage:
    action:       str
    data:         str = ""
    tags:         Dict[str, str] = field(default_factory=dict)
    owner:        Optional[str] = None
    timestamp_ms: int = 0
    signature:    Optional[str] = None

    # ── Constructors ──────────────────────────────────────────

    @classmethod
    def create(
        cls,
        action:      str,
        key_manager: Ed25519KeyManager,
        data:        Any = None,
        tags:        Optional[Dict[str, str]] = None,
        timestamp_ms: Optional[int] = None,
    ) -> "LedgerMessage":
        """Build and sign an authored message. data is JSON-encoded if not a str."""
        msg = cls(
            action=       action,
            data=         data if isinstance(data, str) else _encode(data),
            tags=         {k: str(v) for k, v in (tags or {}).items()},
            owner=        key_manager.public_key_hex,
            timestamp_ms= now_ms() if timestamp_ms is None else timestamp_ms,
        )
        msg.signature = key_manager.sign(canonicalize(msg.signing_dict()))
        return msg

    @classmethod
    def query(
        cls,
        action: str,
        tags:   Optional[Dict[str, str]] = None,
        data:   Any = None,
    ) -> "LedgerMessage":
        """Build an unsigned read-only query."""
        return cls(
            action=       action,
            data=         data if isinstance(data, str) else _encode(data),
            tags=         {k: str(v) for k, v in (tags or {}).items()},
            timestamp_ms= now_ms(),
        )

    # ── Surfaces ──────────────────────────────────────────────

    def signing_dict(self) -> Dict[str, Any]:
        return {
            "action":       self.action,
            "tags":         dict(self.tags),
            "data":         self.data,
            "owner":        self.owner,
            "timestamp_ms": self.timestamp_ms,
        }

    @property
    def message_id(self) -> str:
        d = self.signing_dict()
        d["signature"] = self.signature
        return canonical_hash(d)

    def is_signed(self) -> bool:
        return bool(self.signature) and bool(self.owner)

    def verify_signature(self) -> bool:
        """True iff signed and the signature verifies against self.owner."""
        if not self.is_signed():
            return False
        return Ed25519KeyManager.verify_detached(
            canonicalize(self.signing_dict()),
            self.signature,
            self.owner,
        )

    def parsed_data(self) -> Optional[Any]:
        """Decode data as JSON. None if empty or not JSON."""
        if not self.data:
            return None
        try:
            return json.loads(self.data)
        except (TypeError, ValueError):
            return None

    # ── Serialization ─────────────────────────────────────────

    def to_dict(self) -> Dict[str, Any]:
        d = self.signing_dict()
        d["signature"] = self.signature
        return d

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "LedgerMessage":
        return cls(
            action=       data["action"],
            data=         data.get("data") or "",
            tags=         dict(data.get("tags") or {}),
            owner=        data.get("owner"),
            timestamp_ms= int(data.get("timestamp_ms") or 0),
            signature=    data.get("signature"),
        )


def _encode(data: Any) -> str:
    if data is None:
        return ""
    return json.dumps(data, separators=(",", ":"), sort_keys=True)
