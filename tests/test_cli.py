"""
tests/test_cli.py

CLI commands through click's CliRunner.
"""

import json

import pytest
from click.testing import CliRunner

from witnessledger.cli import cli
from witnessledger.core.crypto import Ed25519KeyManager
from witnessledger.core.witness import WitnessEngine


@pytest.fixture
def runner():
    return CliRunner()


def json_tail(output: str):
    """Parse the JSON document at the end of CLI output."""
    return json.loads(output[output.index("{"):])


@pytest.fixture
def receipt_file(key, store, clock, decision, tmp_path):
    receipt = WitnessEngine(key, store, clock=clock).witness(decision)
    path = tmp_path / "receipt.json"
    path.write_text(json.dumps(receipt.to_dict()))
    return path


class TestKeys:

    def test_keygen_then_pubkey(self, runner, tmp_path):
        path = tmp_path / "signing.pem"
        result = runner.invoke(cli, ["keygen", str(path)])
        assert result.exit_code == 0
        printed = result.output.strip()
        assert printed == Ed25519KeyManager.from_file(path).public_key_hex

        result = runner.invoke(cli, ["pubkey", str(path)])
        assert result.exit_code == 0
        assert result.output.strip() == printed

    def test_keygen_refuses_overwrite(self, runner, tmp_path):
        path = tmp_path / "signing.pem"
        runner.invoke(cli, ["keygen", str(path)])
        before = path.read_bytes()
        result = runner.invoke(cli, ["keygen", str(path)])
        assert result.exit_code != 0
        assert "already exists" in result.output
        assert path.read_bytes() == before

    def test_keygen_force(self, runner, tmp_path):
        path = tmp_path / "signing.pem"
        runner.invoke(cli, ["keygen", str(path)])
        before = path.read_bytes()
        result = runner.invoke(cli, ["keygen", str(path), "--force"])
        assert result.exit_code == 0
        assert path.read_bytes() != before

    def test_pubkey_pem(self, runner, key, tmp_path):
        path = tmp_path / "k.pem"
        key.save(path)
        result = runner.invoke(cli, ["pubkey", str(path), "--pem"])
        assert result.exit_code == 0
        assert "BEGIN PUBLIC KEY" in result.output


class TestCheck:

    def test_valid(self, runner, key, receipt_file):
        result = runner.invoke(cli, ["check", str(receipt_file), "--public-key", key.public_key_hex])
        assert result.exit_code == 0
        assert result.output.startswith("VALID")

    def test_wrapped_receipt(self, runner, key, receipt_file):
        receipt_file.write_text(json.dumps({"receipt": json.loads(receipt_file.read_text())}))
        result = runner.invoke(cli, ["check", str(receipt_file), "--public-key", key.public_key_hex])
        assert result.exit_code == 0

    def test_tampered(self, runner, key, receipt_file):
        data = json.loads(receipt_file.read_text())
        data["timestamp_ms"] += 1
        data["hash"] = "0" * 64
        data["receipt_id"] = "wit_" + "0" * 16
        receipt_file.write_text(json.dumps(data))
        result = runner.invoke(cli, ["check", str(receipt_file), "--public-key", key.public_key_hex])
        assert result.exit_code == 1
        assert result.output.startswith("INVALID")

    def test_wrong_key(self, runner, receipt_file):
        other = Ed25519KeyManager.generate()
        result = runner.invoke(cli, ["check", str(receipt_file), "--public-key", other.public_key_hex])
        assert result.exit_code == 1

    def test_json_format(self, runner, key, receipt_file):
        result = runner.invoke(cli, [
            "check", str(receipt_file), "--public-key", key.public_key_hex, "--format", "json",
        ])
        assert result.exit_code == 0
        assert json_tail(result.output)["valid"] is True

    def test_missing_file(self, runner, key, tmp_path):
        result = runner.invoke(cli, ["check", str(tmp_path / "nope.json"), "--public-key", key.public_key_hex])
        assert result.exit_code == 2

    def test_not_json(self, runner, key, tmp_path):
        path = tmp_path / "bad.json"
        path.write_text("not json")
        result = runner.invoke(cli, ["check", str(path), "--public-key", key.public_key_hex])
        assert result.exit_code == 2


class TestDemo:

    def test_demo_settles(self, runner):
        result = runner.invoke(cli, ["demo", "--count", "2"])
        assert result.exit_code == 0
        out = json_tail(result.output)
        assert out["tick"]["settled"] == 2
        assert len(out["tick"]["ledger_txs"]) == 1
        assert all(v["valid"] for v in out["verifications"])
        assert all(v["receipt"]["status"] == "settled" for v in out["verifications"])
        assert "public_key" not in out["info"]

    def test_demo_without_ledger(self, runner):
        result = runner.invoke(cli, ["demo", "--count", "1", "--no-ledger"])
        assert result.exit_code == 0
        out = json_tail(result.output)
        assert out["tick"]["failed"] == 1
        assert out["verifications"][0]["receipt"]["status"] == "failed"
        assert out["info"]["failed_count"] == 1
