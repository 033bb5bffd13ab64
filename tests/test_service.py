"""
tests/test_service.py

WitnessService wiring: info counts, construction from configuration and
signing key persistence across restarts.
"""

from witnessledger import __version__
from witnessledger.config import WitnessConfig
from witnessledger.core.models import ReceiptStatus
from witnessledger.ledger.client import HttpLedgerTransport, LocalLedgerTransport
from witnessledger.service import WitnessService


class TestInfo:

    def test_info_counts(self, service, decision):
        service.witness(decision)
        service.witness(dict(decision, action="other"))
        service.settle_now()
        service.witness(dict(decision, action="third"))

        info = service.info()
        assert info["name"] == "witnessledger"
        assert info["version"] == __version__
        assert info["public_key_hex"] == service.key_manager.public_key_hex
        assert info["public_key"].startswith("-----BEGIN PUBLIC KEY-----")
        assert info["pending_count"] == 1
        assert info["settled_count"] == 2
        assert info["failed_count"] == 0
        assert info["settlement_interval_seconds"] == 10.0


class TestFromConfig:

    def test_with_local_transport(self, process, owner, tmp_path, clock, decision):
        credential = tmp_path / "owner.pem"
        owner.save(credential)
        config = WitnessConfig(
            credential_path=             str(credential),
            settlement_interval_seconds= 3.0,
            logic_summary_length=        5,
        )
        service = WitnessService.from_config(config, transport=LocalLedgerTransport(process), clock=clock)

        r = service.witness(decision)
        service.settle_now()
        assert service.verify(r.receipt_id).receipt.status is ReceiptStatus.SETTLED
        assert process.get_receipt(r.receipt_id)["logic_summary"] == decision["logic"][:5]
        assert service.scheduler.interval_seconds == 3.0

    def test_ledger_url_builds_http_transport(self):
        config = WitnessConfig(ledger_url="http://ledger.local/msg", ledger_timeout_seconds=1.5)
        service = WitnessService.from_config(config)
        transport = service.ledger.transport
        assert isinstance(transport, HttpLedgerTransport)
        assert transport.url == "http://ledger.local/msg"
        assert transport.timeout == 1.5

    def test_no_ledger_marks_failed(self, decision):
        service = WitnessService.from_config(WitnessConfig())
        r = service.witness(decision)
        assert service.settle_now().failed == 1
        assert service.verify(r.receipt_id).receipt.status is ReceiptStatus.FAILED

    def test_signing_key_persists_across_restarts(self, tmp_path, decision):
        config = WitnessConfig(signing_key_path=str(tmp_path / "keys" / "signing.pem"))
        first = WitnessService.from_config(config)
        receipt = first.witness(decision)

        second = WitnessService.from_config(config)
        assert second.key_manager.public_key_hex == first.key_manager.public_key_hex
        assert second.key_manager.verify_hash(receipt.hash, receipt.signature)

    def test_ephemeral_key_without_path(self):
        a = WitnessService.from_config(WitnessConfig())
        b = WitnessService.from_config(WitnessConfig())
        assert a.key_manager.public_key_hex != b.key_manager.public_key_hex


class TestLifecycle:

    def test_context_manager_starts_and_stops(self, service):
        with service as running:
            assert running is service
            assert service.scheduler.running
        assert not service.scheduler.running
