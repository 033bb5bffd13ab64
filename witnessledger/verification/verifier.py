"""
witnessledger Verifier

Read-only. Never mutates the store. Never returns a decision payload.

Outcomes, kept distinct on purpose:
    VERIFIED           signature sound; status tells pending / settled / failed
    NOT_FOUND          id unknown to every partition
    INVALID_SIGNATURE  record exists but its signature fails: tampering or a bug
"""

import logging
from typing import Any, Dict

from witnessledger.core.crypto import Ed25519KeyManager
from witnessledger.core.exceptions import InvalidSignature, ReceiptNotFound
from witnessledger.core.models import (
    PendingReceipt,
    Receipt,
    ReceiptStatus,
    VerificationResult,
    VerifyReason,
    derive_receipt_id,
)
from witnessledger.core.store import ReceiptStore

logger = logging.getLogger(__name__)

MSG_SETTLED   = "Receipt verified and settled on ledger"
MSG_PENDING   = "Receipt verified, settlement pending"
MSG_FAILED    = "Receipt verified, settlement failed"
MSG_INVALID   = "Invalid signature"
MSG_NOT_FOUND = "Receipt not found"


class Verifier:

    def __init__(self, key_manager: Ed25519KeyManager, store: ReceiptStore) -> None:
        self.key_manager = key_manager
        self.store       = store

    def verify(self, receipt_id: str) -> VerificationResult:
        """Locate a receipt (settled, then pending, then failed) and re-check its signature."""
        found = self.store.get(receipt_id) if isinstance(receipt_id, str) else None
        if found is None:
            return VerificationResult(
                valid=   False,
                reason=  VerifyReason.NOT_FOUND,
                receipt= None,
                message= MSG_NOT_FOUND,
            )

        view  = found.public_view() if isinstance(found, PendingReceipt) else found
        valid = self.key_manager.verify_hash(view.hash, view.signature)

        if not valid:
            logger.error("Signature check failed for stored receipt %s", receipt_id)
            return VerificationResult(
                valid=   False,
                reason=  VerifyReason.INVALID_SIGNATURE,
                receipt= view,
                message= MSG_INVALID,
            )

        return VerificationResult(
            valid=   True,
            reason=  VerifyReason.VERIFIED,
            receipt= view,
            message= _status_message(found),
        )

    def verify_or_raise(self, receipt_id: str) -> Receipt:
        """
        Same lookup as verify(), for callers that prefer exceptions.
        Raises ReceiptNotFound or InvalidSignature.
        """
        result = self.verify(receipt_id)
        if result.reason is VerifyReason.NOT_FOUND:
            raise ReceiptNotFound(MSG_NOT_FOUND, {"receipt_id": receipt_id})
        if result.reason is VerifyReason.INVALID_SIGNATURE:
            raise InvalidSignature(MSG_INVALID, {"receipt_id": receipt_id})
        return result.receipt


def _status_message(receipt: Receipt) -> str:
    if receipt.status is ReceiptStatus.SETTLED:
        return MSG_SETTLED
    if receipt.status is ReceiptStatus.FAILED:
        reason = getattr(receipt, "failure_reason", None)
        return f"{MSG_FAILED}: {reason}" if reason else MSG_FAILED
    return MSG_PENDING


def verify_receipt_dict(data: Dict[str, Any], public_key_hex: str) -> VerificationResult:
    """
    Offline check of an exported receipt against a published public key.

    Checks the receipt_id derives from the hash, then the signature.
    Malformed input reports INVALID_SIGNATURE with a reason in the message.
    """
    try:
        receipt = Receipt.from_dict(data)
    except (KeyError, TypeError, ValueError) as exc:
        return VerificationResult(
            valid=   False,
            reason=  VerifyReason.INVALID_SIGNATURE,
            receipt= None,
            message= f"Malformed receipt: {exc}",
        )

    if receipt.receipt_id != derive_receipt_id(receipt.hash):
        return VerificationResult(
            valid=   False,
            reason=  VerifyReason.INVALID_SIGNATURE,
            receipt= receipt,
            message= "receipt_id does not match hash",
        )

    if not Ed25519KeyManager.verify_detached(
        receipt.hash.encode("utf-8"), receipt.signature, public_key_hex
    ):
        return VerificationResult(
            valid=   False,
            reason=  VerifyReason.INVALID_SIGNATURE,
            receipt= receipt,
            message= MSG_INVALID,
        )

    return VerificationResult(
        valid=   True,
        reason=  VerifyReason.VERIFIED,
        receipt= receipt,
        message= "Signature valid",
    )
