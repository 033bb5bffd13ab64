"""
Settlement scheduler: drains pending receipts to the ledger on a fixed interval.

Tick contract:
    1. If another tick is in flight → skip (never run two at once)
    2. Snapshot pending receipts      → point-in-time copy, under the store lock
    3. Empty snapshot                 → no-op, the ledger is not called
    4. Submit the snapshot as ONE batch via LedgerClient.submit_batch()
    5. Apply per-receipt results:
           settled                    → promote_to_settled(ledger_tx)
           failed, not retryable      → mark_failed(reason)
           failed, retryable          → stay pending, next tick retries
    6. Nothing raises past the tick boundary
"""

import logging
import threading
from dataclasses import dataclass, field
from typing import List, Optional

from witnessledger.core.store import ReceiptStore
from witnessledger.ledger.client import LedgerClient

logger = logging.getLogger(__name__)

DEFAULT_INTERVAL_SECONDS = 10.0


@dataclass
class TickReport:
    """What one tick did. skipped=True means another tick was in flight."""
    skipped:    bool = False
    submitted:  int = 0
    settled:    int = 0
    failed:     int = 0
    retrying:   int = 0
    ledger_txs: List[str] = field(default_factory=list)
    error:      Optional[str] = None


class SettlementScheduler:
    """
    Recurring, non-overlapping settlement on a background daemon thread.

    start() is called once at service startup; stop() only at shutdown.
    tick() may also be called directly (tests, operator "settle now").
    """

    def __init__(
        self,
        store:            ReceiptStore,
        client:           LedgerClient,
        interval_seconds: float = DEFAULT_INTERVAL_SECONDS,
    ) -> None:
        if interval_seconds <= 0:
            raise ValueError(f"interval_seconds must be positive, got {interval_seconds}")
        self.store            = store
        self.client           = client
        self.interval_seconds = interval_seconds

        self._tick_lock: threading.Lock             = threading.Lock()
        self._stop:      threading.Event            = threading.Event()
        self._thread:    Optional[threading.Thread] = None

    # ── Lifecycle ─────────────────────────────────────────────

    def start(self) -> None:
        if self.running:
            return
        self._stop.clear()
        self._thread = threading.Thread(
            target= self._run,
            name=   "witnessledger-settlement",
            daemon= True,
        )
        self._thread.start()
        logger.info("Settlement scheduler started (every %.1fs)", self.interval_seconds)

    def stop(self, timeout: Optional[float] = None) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None
        logger.info("Settlement scheduler stopped")

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def _run(self) -> None:
        while not self._stop.wait(self.interval_seconds):
            self.tick()

    # ── Tick ──────────────────────────────────────────────────

    def tick(self) -> TickReport:
        if not self._tick_lock.acquire(blocking=False):
            logger.debug("Settlement tick still in flight, skipping")
            return TickReport(skipped=True)
        try:
            return self._settle_once()
        except Exception as exc:
            logger.exception("Settlement tick failed; receipts stay pending")
            return TickReport(error=str(exc))
        finally:
            self._tick_lock.release()

    def _settle_once(self) -> TickReport:
        batch = self.store.snapshot_pending()
        if not batch:
            return TickReport()

        logger.info("Settling batch of %d receipts...", len(batch))
        results = self.client.submit_batch(batch)
        report  = TickReport(submitted=len(batch))

        for result in results:
            if result.settled:
                if self.store.promote_to_settled(result.receipt_id, result.ledger_tx):
                    report.settled += 1
                    if result.ledger_tx not in report.ledger_txs:
                        report.ledger_txs.append(result.ledger_tx)
                    logger.debug("Settled: %s -> %s", result.receipt_id, result.ledger_tx)
            elif not result.retryable:
                if self.store.mark_failed(result.receipt_id, result.error or "unknown error"):
                    report.failed += 1
                    logger.error(
                        "Settlement failed for %s: %s",
                        result.receipt_id, result.error,
                    )
            else:
                report.retrying += 1

        if report.retrying:
            report.error = next(
                (r.error for r in results if not r.settled and r.retryable),
                None,
            )
        return report
