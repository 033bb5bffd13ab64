"""
witnessledger Settlement

Reconciles the in-memory receipt store with the remote ledger:
- Pending receipts are batched and submitted on a fixed interval
- Acknowledged receipts settle together under one ledger_tx
- Transport failures leave receipts pending for the next tick
- Configuration failures mark receipts failed

Settlement never blocks witnessing or verification.
"""

from witnessledger.settlement.scheduler import SettlementScheduler, TickReport

__all__ = ["SettlementScheduler", "TickReport"]
