"""
witnessledger/__init__.py

witnessledger: Signed receipts for agent decisions, settled to an
owner-gated append-only ledger.

Witnessing returns a signed receipt immediately. Settlement to the ledger
happens in the background, in batches, with retry. Anyone holding the
public key can verify a receipt whether it is pending or settled.
"""

__version__ = "0.1.0"

from witnessledger.core.crypto import Ed25519KeyManager
from witnessledger.core.exceptions import (
    ConfigurationFailure,
    InvalidSignature,
    ReceiptNotFound,
    TransportFailure,
    ValidationError,
    WitnessLedgerError,
)
from witnessledger.core.models import (
    DecisionRecord,
    PendingReceipt,
    Receipt,
    ReceiptStatus,
    SettlementResult,
    VerificationResult,
    VerifyReason,
)
from witnessledger.core.store import ReceiptStore
from witnessledger.core.witness import WitnessEngine
from witnessledger.config import WitnessConfig, load_config
from witnessledger.ledger import LedgerClient, LedgerProcess, LocalLedgerTransport
from witnessledger.settlement import SettlementScheduler
from witnessledger.verification import Verifier
from witnessledger.service import WitnessService

__all__ = [
    # Core types
    "DecisionRecord",
    "Receipt",
    "PendingReceipt",
    "ReceiptStatus",
    "SettlementResult",
    "VerificationResult",
    "VerifyReason",
    # Components
    "Ed25519KeyManager",
    "ReceiptStore",
    "WitnessEngine",
    "SettlementScheduler",
    "LedgerClient",
    "LedgerProcess",
    "LocalLedgerTransport",
    "Verifier",
    "WitnessService",
    # Config
    "WitnessConfig",
    "load_config",
    # Errors
    "WitnessLedgerError",
    "ValidationError",
    "ReceiptNotFound",
    "InvalidSignature",
    "ConfigurationFailure",
    "TransportFailure",
]
