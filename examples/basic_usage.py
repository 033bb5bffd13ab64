"""
witnessledger: Basic Usage Example

Demonstrates:
- Witnessing decisions (receipt returned immediately)
- Verifying a pending receipt
- One settlement tick against an in-process ledger
- Verifying the settled receipts
"""

from witnessledger import (
    Ed25519KeyManager,
    LedgerClient,
    LedgerProcess,
    LocalLedgerTransport,
    WitnessService,
)


def main():
    print("=" * 60)
    print("witnessledger: Basic Usage Example")
    print("=" * 60)
    print()

    # 1. Ledger owned by an operator credential
    print("1. Starting in-process ledger...")
    owner   = Ed25519KeyManager.generate()
    ledger  = LedgerProcess(owner_public_key=owner.public_key_hex)
    client  = LedgerClient(LocalLedgerTransport(ledger), credential=owner)
    service = WitnessService(Ed25519KeyManager.generate(), client)
    print(f"  Owner:   {owner.public_key_hex[:16]}...")
    print(f"  Service: {service.key_manager.public_key_hex[:16]}...")
    print()

    # 2. Witness two decisions
    print("2. Witnessing decisions...")
    r1 = service.witness({
        "context":  "User asked to refund order #1042",
        "logic":    "Order delivered damaged, within 30-day window",
        "action":   "refund 42.00 EUR",
        "agent_id": "support-agent",
    })
    r2 = service.witness({
        "context": "User asked to cancel subscription",
        "logic":   "No outstanding balance",
        "action":  "cancel subscription sub_77",
    })
    for r in (r1, r2):
        print(f"  {r.receipt_id}  status={r.status.value}")
    print()

    # 3. Verify before settlement
    print("3. Verifying before settlement...")
    print(f"  {service.verify(r1.receipt_id).message}")
    print()

    # 4. Settle
    print("4. Running one settlement tick...")
    report = service.settle_now()
    print(f"  Submitted: {report.submitted}  Settled: {report.settled}")
    print(f"  ledger_tx: {report.ledger_txs[0][:16]}...")
    print()

    # 5. Verify after settlement
    print("5. Verifying after settlement...")
    for r in (r1, r2):
        result = service.verify(r.receipt_id)
        print(f"  {r.receipt_id}  {result.message}")
    print(f"  Unknown id: {service.verify('wit_0000000000000000').message}")
    print()

    print("=" * 60)
    print("Done. Ledger holds", len(ledger), "receipts.")
    print("=" * 60)


if __name__ == "__main__":
    main()
