"""
witnessledger demo: end-to-end run against an in-process ledger.

Witnesses a few decisions, runs one settlement tick, verifies every receipt
and prints the outcome. --no-ledger shows the configuration-failure path.
"""

import json

import click

from witnessledger.core.crypto import Ed25519KeyManager
from witnessledger.ledger.client import LedgerClient, LocalLedgerTransport
from witnessledger.ledger.process import LedgerProcess
from witnessledger.service import WitnessService


@click.command(name="demo")
@click.option("--count", type=click.IntRange(1, 1000), default=3, show_default=True)
@click.option("--no-ledger", is_flag=True, default=False, help="Run without a ledger.")
def demo_command(count: int, no_ledger: bool) -> None:
    """Witness, settle and verify COUNT decisions."""
    owner = Ed25519KeyManager.generate()
    if no_ledger:
        client = LedgerClient(transport=None, credential=owner)
    else:
        process = LedgerProcess(owner_public_key=owner.public_key_hex)
        client  = LedgerClient(LocalLedgerTransport(process), credential=owner)

    service = WitnessService(Ed25519KeyManager.generate(), client)

    receipts = [
        service.witness({
            "context":  f"demo context {i}",
            "logic":    f"demo reasoning {i}",
            "action":   f"demo action {i}",
            "agent_id": "demo-agent",
        })
        for i in range(count)
    ]
    report = service.settle_now()

    click.echo(json.dumps({
        "tick": {
            "submitted":  report.submitted,
            "settled":    report.settled,
            "failed":     report.failed,
            "ledger_txs": report.ledger_txs,
        },
        "verifications": [service.verify(r.receipt_id).to_dict() for r in receipts],
        "info": {
            k: v for k, v in service.info().items() if k != "public_key"
        },
    }, indent=2))
