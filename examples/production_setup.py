"""
witnessledger: Production Setup Example

Demonstrates:
- Persisted signing key and ledger owner credential
- YAML configuration with environment overrides
- A file-backed ledger that survives restarts
- Background settlement via the service context manager
"""

import time
from pathlib import Path

from witnessledger import (
    Ed25519KeyManager,
    LedgerProcess,
    LocalLedgerTransport,
    WitnessService,
    load_config,
)
from witnessledger.logging_setup import configure_logging


def setup_production(base: Path = Path("witnessledger-data")) -> Path:
    """Create keys and a config file under base. Returns the config path."""
    keys_dir = base / "keys"
    keys_dir.mkdir(parents=True, exist_ok=True)

    credential = keys_dir / "owner.pem"
    if not credential.exists():
        Ed25519KeyManager.generate().save(credential)
        print(f"  Saved ledger owner credential: {credential}")

    config_path = base / "witnessledger.yaml"
    config_path.write_text(
        "settlement_interval_seconds: 1.0\n"
        f"credential_path: {credential}\n"
        f"signing_key_path: {keys_dir / 'signing.pem'}\n"
        "logic_summary_length: 120\n"
        "log_level: INFO\n"
    )
    print(f"  Wrote config: {config_path}")
    return config_path


def main():
    print("=" * 60)
    print("witnessledger: Production Setup")
    print("=" * 60)
    print()

    base = Path("witnessledger-data")

    print("1. Preparing keys and configuration...")
    config = load_config(setup_production(base))
    configure_logging(config.log_level)
    print()

    print("2. Opening file-backed ledger...")
    owner  = Ed25519KeyManager.from_file(Path(config.credential_path))
    ledger = LedgerProcess(
        owner_public_key=owner.public_key_hex,
        ledger_path=base / "ledger" / "receipts.jsonl",
    )
    print(f"  Ledger already holds {len(ledger)} receipts")
    print()

    print("3. Witnessing with background settlement...")
    service = WitnessService.from_config(config, transport=LocalLedgerTransport(ledger))
    with service:
        receipt = service.witness({
            "context":  "Nightly job found 3 stale API tokens",
            "logic":    "Tokens unused for 90 days per rotation policy",
            "action":   "revoke tokens tok_1, tok_2, tok_3",
            "agent_id": "ops-agent",
        })
        print(f"  Witnessed {receipt.receipt_id}")
        time.sleep(config.settlement_interval_seconds * 2)

    result = service.verify(receipt.receipt_id)
    print(f"  {result.message} (ledger_tx={result.receipt.ledger_tx})")
    print()

    print("=" * 60)
    print("Service public key (publish for offline checks):")
    print(f"  {service.info()['public_key_hex']}")
    print("=" * 60)


if __name__ == "__main__":
    main()
