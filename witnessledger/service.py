"""
witnessledger/service.py

WitnessService: the single implementation every transport adapter calls.

Caller-facing operations:
    witness(record)        → Receipt            (sync, no I/O)
    verify(receipt_id)     → VerificationResult (sync, no I/O)
    info()                 → public key + store counts

Background:
    start() / stop()       → settlement scheduler lifecycle
    settle_now()           → run one settlement tick on the calling thread
"""

import logging
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Union

from witnessledger import __version__
from witnessledger.config import WitnessConfig
from witnessledger.core.crypto import Ed25519KeyManager
from witnessledger.core.models import DecisionRecord, Receipt, VerificationResult
from witnessledger.core.store import ReceiptStore
from witnessledger.core.time import Clock
from witnessledger.core.witness import WitnessEngine
from witnessledger.ledger.client import (
    HttpLedgerTransport,
    LedgerClient,
    LedgerTransport,
    load_credential,
)
from witnessledger.settlement.scheduler import SettlementScheduler, TickReport
from witnessledger.verification.verifier import Verifier

logger = logging.getLogger(__name__)

SERVICE_NAME = "witnessledger"


class WitnessService:

    def __init__(
        self,
        key_manager:      Ed25519KeyManager,
        ledger_client:    LedgerClient,
        interval_seconds: float = 10.0,
        store:            Optional[ReceiptStore] = None,
        clock:            Optional[Clock] = None,
    ) -> None:
        self.key_manager = key_manager
        self.store       = store or ReceiptStore()
        self.engine      = WitnessEngine(key_manager, self.store, clock=clock)
        self.verifier    = Verifier(key_manager, self.store)
        self.ledger      = ledger_client
        self.scheduler   = SettlementScheduler(
            self.store,
            ledger_client,
            interval_seconds=interval_seconds,
        )

    # ── Construction ──────────────────────────────────────────

    @classmethod
    def from_config(
        cls,
        config:    WitnessConfig,
        transport: Optional[LedgerTransport] = None,
        clock:     Optional[Clock] = None,
    ) -> "WitnessService":
        """
        Build a service from configuration.

        transport overrides ledger_url (e.g. a LocalLedgerTransport).
        With neither, settlement reports NO_LEDGER and receipts are marked failed.
        """
        key_manager = _load_or_create_signing_key(config.signing_key_path)

        if transport is None and config.ledger_url:
            transport = HttpLedgerTransport(
                config.ledger_url,
                timeout=config.ledger_timeout_seconds,
            )
        if transport is None:
            logger.warning("No ledger configured; receipts will not settle")

        client = LedgerClient(
            transport=            transport,
            credential=           load_credential(config.credential_path),
            logic_summary_length= config.logic_summary_length,
            clock=                clock,
        )
        return cls(
            key_manager=      key_manager,
            ledger_client=    client,
            interval_seconds= config.settlement_interval_seconds,
            clock=            clock,
        )

    # ── Caller-facing operations ──────────────────────────────

    def witness(self, record: Union[DecisionRecord, Mapping[str, Any]]) -> Receipt:
        return self.engine.witness(record)

    def verify(self, receipt_id: str) -> VerificationResult:
        return self.verifier.verify(receipt_id)

    def info(self) -> Dict[str, Any]:
        counts = self.store.counts()
        return {
            "name":                        SERVICE_NAME,
            "version":                     __version__,
            "public_key":                  self.key_manager.public_key_pem(),
            "public_key_hex":              self.key_manager.public_key_hex,
            "pending_count":               counts["pending"],
            "settled_count":               counts["settled"],
            "failed_count":                counts["failed"],
            "settlement_interval_seconds": self.scheduler.interval_seconds,
        }

    # ── Settlement ────────────────────────────────────────────

    def start(self) -> None:
        self.scheduler.start()

    def stop(self) -> None:
        self.scheduler.stop()

    def settle_now(self) -> TickReport:
        return self.scheduler.tick()

    def __enter__(self) -> "WitnessService":
        self.start()
        return self

    def __exit__(self, *exc_info) -> None:
        self.stop()


def _load_or_create_signing_key(path: Optional[str]) -> Ed25519KeyManager:
    """
    No path: ephemeral key, receipts stop verifying after a restart.
    Path exists: load it. Path missing: generate and save there.
    """
    if not path:
        logger.warning("Using an ephemeral signing key; set signing_key_path to persist it")
        return Ed25519KeyManager.generate()
    key_path = Path(path)
    if key_path.exists():
        return Ed25519KeyManager.from_file(key_path)
    key = Ed25519KeyManager.generate()
    key.save(key_path)
    logger.info("Generated signing key at %s", key_path)
    return key
