"""
witnessledger/core/models.py

Receipt Data Model

═══════════════════════════════════════════════════════════════════
PROTOCOL CONTRACTS
═══════════════════════════════════════════════════════════════════

CONTRACT 1: Hash
    hash = SHA-256(JCS({context, logic, action, agent_id|null, timestamp_ms}))
    lowercase hex, 64 characters.
    timestamp_ms is inside the hash: the same decision witnessed at two
    instants yields two different receipts.

CONTRACT 2: Receipt id
    receipt_id = "wit_" + hash[:16]
    Deterministic and human-inspectable. Not unguessable. Collision space
    is the 64-bit hash prefix.

CONTRACT 3: Signature
    signature = Ed25519(utf8(hash)), base64url, no padding.

CONTRACT 4: Disclosure
    Public receipt views NEVER carry the decision record. Only a
    PendingReceipt holds it, and only until settlement.
═══════════════════════════════════════════════════════════════════
"""

from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Dict, Mapping, Optional, Union

from witnessledger.core.canonical import canonical_hash
from witnessledger.core.exceptions import ValidationError


RECEIPT_ID_PREFIX        = "wit_"
RECEIPT_ID_HASH_CHARS    = 16
DEFAULT_LOGIC_SUMMARY_LEN = 200

_REQUIRED_FIELDS = ("context", "logic", "action")


class ReceiptStatus(Enum):
    PENDING = "pending"
    SETTLED = "settled"
    FAILED  = "failed"


class VerifyReason(Enum):
    VERIFIED          = "verified"
    NOT_FOUND         = "not_found"
    INVALID_SIGNATURE = "invalid_signature"


# ─────────────────────────────────────────────────────────────
# DecisionRecord: caller input
# ─────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class DecisionRecord:
    """What an agent knew, why it decided, and what it will do."""

    context:  str
    logic:    str
    action:   str
    agent_id: Optional[str] = None

    @classmethod
    def from_input(
        cls,
        data: Union["DecisionRecord", Mapping[str, Any]],
    ) -> "DecisionRecord":
        """
        Build a validated DecisionRecord from a record or a plain mapping.

        Raises ValidationError if context, logic or action is missing,
        not a string, or empty, or if any field holds text that cannot be
        encoded as UTF-8 (a lone surrogate). An empty agent_id is treated as absent.
        """
        if isinstance(data, DecisionRecord):
            fields = {
                "context":  data.context,
                "logic":    data.logic,
                "action":   data.action,
                "agent_id": data.agent_id,
            }
        elif isinstance(data, Mapping):
            fields = dict(data)
        else:
            raise ValidationError(
                "Decision record must be a mapping",
                {"type": type(data).__name__},
            )

        missing = [
            name for name in _REQUIRED_FIELDS
            if not isinstance(fields.get(name), str) or not fields.get(name)
        ]
        if missing:
            raise ValidationError(
                "context, logic, and action are required",
                {"missing": ",".join(missing)},
            )

        agent_id = fields.get("agent_id")
        if agent_id is not None and not isinstance(agent_id, str):
            raise ValidationError(
                "agent_id must be a string",
                {"type": type(agent_id).__name__},
            )

        for name in (*_REQUIRED_FIELDS, "agent_id"):
            if fields.get(name) is None:
                continue
            try:
                fields[name].encode("utf-8")
            except UnicodeEncodeError as exc:
                raise ValidationError(
                    f"{name} is not valid UTF-8 text",
                    {"field": name},
                ) from exc

        return cls(
            context=  fields["context"],
            logic=    fields["logic"],
            action=   fields["action"],
            agent_id= agent_id or None,
        )

    def hashing_dict(self, timestamp_ms: int) -> Dict[str, Any]:
        """The exact dict whose canonical form is hashed."""
        return {
            "context":      self.context,
            "logic":        self.logic,
            "action":       self.action,
            "agent_id":     self.agent_id,
            "timestamp_ms": timestamp_ms,
        }


def hash_decision(record: DecisionRecord, timestamp_ms: int) -> str:
    """SHA-256 hex of the canonical decision record at timestamp_ms (CONTRACT 1)."""
    return canonical_hash(record.hashing_dict(timestamp_ms))


def derive_receipt_id(hash_hex: str) -> str:
    """receipt_id for a decision hash (CONTRACT 2)."""
    return RECEIPT_ID_PREFIX + hash_hex[:RECEIPT_ID_HASH_CHARS]


# ─────────────────────────────────────────────────────────────
# Receipts
# ─────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class Receipt:
    """Public, payload-free receipt view."""

    receipt_id:   str
    hash:         str
    signature:    str
    timestamp_ms: int
    ledger_tx:    Optional[str] = None
    status:       ReceiptStatus = ReceiptStatus.PENDING

    def to_dict(self) -> Dict[str, Any]:
        return {
            "receipt_id":   self.receipt_id,
            "hash":         self.hash,
            "signature":    self.signature,
            "timestamp_ms": self.timestamp_ms,
            "ledger_tx":    self.ledger_tx,
            "status":       self.status.value,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Receipt":
        return cls(
            receipt_id=   data["receipt_id"],
            hash=         data["hash"],
            signature=    data["signature"],
            timestamp_ms= int(data["timestamp_ms"]),
            ledger_tx=    data.get("ledger_tx"),
            status=       ReceiptStatus(data.get("status", "pending")),
        )


@dataclass(frozen=True)
class PendingReceipt(Receipt):
    """
    A receipt still holding its DecisionRecord for re-submission.

    Failed receipts keep this form too (with failure_reason) so they can be
    requeued once the operator fixes configuration.
    """

    record:         Optional[DecisionRecord] = None
    failure_reason: Optional[str]            = None

    def public_view(self) -> Receipt:
        """Drop the payload. Always use this before handing a receipt out."""
        return Receipt(
            receipt_id=   self.receipt_id,
            hash=         self.hash,
            signature=    self.signature,
            timestamp_ms= self.timestamp_ms,
            ledger_tx=    None,
            status=       self.status,
        )

    def settled(self, ledger_tx: str) -> Receipt:
        return replace(
            self.public_view(),
            ledger_tx=ledger_tx,
            status=ReceiptStatus.SETTLED,
        )

    def failed(self, reason: str) -> "PendingReceipt":
        return replace(self, status=ReceiptStatus.FAILED, failure_reason=reason)

    def requeued(self) -> "PendingReceipt":
        return replace(self, status=ReceiptStatus.PENDING, failure_reason=None)


# ─────────────────────────────────────────────────────────────
# Results
# ─────────────────────────────────────────────────────────────

@dataclass
class VerificationResult:
    """
    Outcome of Verifier.verify().

    reason distinguishes an unknown id from a tampered record; callers must
    never treat the two alike.
    """
    valid:   bool
    reason:  VerifyReason
    receipt: Optional[Receipt]
    message: str

    def __bool__(self) -> bool:
        return self.valid

    def to_dict(self) -> Dict[str, Any]:
        return {
            "valid":   self.valid,
            "reason":  self.reason.value,
            "receipt": self.receipt.to_dict() if self.receipt else None,
            "message": self.message,
        }


@dataclass
class SettlementResult:
    """Per-receipt outcome of one ledger batch submission."""
    receipt_id: str
    status:     ReceiptStatus
    ledger_tx:  Optional[str] = None
    error:      Optional[str] = None
    retryable:  bool = False

    @property
    def settled(self) -> bool:
        return self.status is ReceiptStatus.SETTLED

    def to_dict(self) -> Dict[str, Any]:
        return {
            "receipt_id": self.receipt_id,
            "status":     self.status.value,
            "ledger_tx":  self.ledger_tx,
            "error":      self.error,
            "retryable":  self.retryable,
        }
