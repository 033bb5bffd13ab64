"""
witnessledger/core/witness.py

Witnessing Engine.

witness() MUST, in this exact order:
  1. Validate the decision record    : before any hashing or signing
  2. Capture timestamp_ms            : core/time.py clock only
  3. Compute hash                    : models.hash_decision()
  4. Derive receipt_id               : models.derive_receipt_id()
  5. Sign the hash                   : Ed25519KeyManager.sign_hash()
  6. Insert into the store as pending
  7. Return the public receipt view  : never the payload

No network. No disk. No waiting on settlement.
"""

import logging
import time
from typing import Any, Mapping, Optional, Union

from witnessledger.core.crypto import Ed25519KeyManager
from witnessledger.core.models import (
    DecisionRecord,
    PendingReceipt,
    Receipt,
    ReceiptStatus,
    derive_receipt_id,
    hash_decision,
)
from witnessledger.core.store import ReceiptStore
from witnessledger.core.time import Clock, now_ms

logger = logging.getLogger(__name__)


class WitnessEngine:
    """Turns decision records into signed, pending receipts."""

    def __init__(
        self,
        key_manager: Ed25519KeyManager,
        store:       ReceiptStore,
        clock:       Optional[Clock] = None,
    ) -> None:
        self.key_manager = key_manager
        self.store       = store
        self._clock      = clock or now_ms

    def witness(
        self,
        record: Union[DecisionRecord, Mapping[str, Any]],
    ) -> Receipt:
        """
        Witness one decision and return its signed receipt immediately.

        Raises:
            ValidationError: a required field is missing or empty.
                             Nothing is stored in that case.
        """
        start = time.perf_counter()

        decision     = DecisionRecord.from_input(record)
        timestamp_ms = self._clock()
        hash_hex     = hash_decision(decision, timestamp_ms)
        receipt_id   = derive_receipt_id(hash_hex)
        signature    = self.key_manager.sign_hash(hash_hex)

        pending = PendingReceipt(
            receipt_id=   receipt_id,
            hash=         hash_hex,
            signature=    signature,
            timestamp_ms= timestamp_ms,
            ledger_tx=    None,
            status=       ReceiptStatus.PENDING,
            record=       decision,
        )
        stored = self.store.insert_pending(pending)

        elapsed_ms = (time.perf_counter() - start) * 1000
        logger.debug("Witnessed decision in %.2fms - %s", elapsed_ms, receipt_id)

        if isinstance(stored, PendingReceipt):
            return stored.public_view()
        return stored
