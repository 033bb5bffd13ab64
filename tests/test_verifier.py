"""
tests/test_verifier.py

Verifier: distinct outcomes for unknown ids and tampered records, status
messages, and offline checks of exported receipts.
"""

import dataclasses

import pytest

from witnessledger.core.crypto import Ed25519KeyManager
from witnessledger.core.exceptions import InvalidSignature, ReceiptNotFound
from witnessledger.core.models import Receipt, ReceiptStatus, VerifyReason
from witnessledger.core.witness import WitnessEngine
from witnessledger.verification.verifier import (
    MSG_INVALID,
    MSG_NOT_FOUND,
    MSG_PENDING,
    Verifier,
    verify_receipt_dict,
)


@pytest.fixture
def engine(key, store, clock):
    return WitnessEngine(key, store, clock=clock)


@pytest.fixture
def verifier(key, store):
    return Verifier(key, store)


def tamper(store, receipt_id):
    """Swap a pending receipt's signature for a foreign one, in place."""
    pending = store._pending[receipt_id]
    foreign = Ed25519KeyManager.generate().sign_hash(pending.hash)
    store._pending[receipt_id] = dataclasses.replace(pending, signature=foreign)


class TestVerify:

    def test_pending(self, engine, verifier, decision):
        r = engine.witness(decision)
        result = verifier.verify(r.receipt_id)
        assert result.valid
        assert bool(result) is True
        assert result.reason is VerifyReason.VERIFIED
        assert result.receipt == r
        assert result.message == MSG_PENDING

    def test_never_returns_payload(self, engine, verifier, decision):
        r = engine.witness(decision)
        result = verifier.verify(r.receipt_id)
        assert type(result.receipt) is Receipt
        assert "context" not in str(result.to_dict())

    def test_settled(self, engine, verifier, store, decision):
        r = engine.witness(decision)
        store.promote_to_settled(r.receipt_id, "tx-1")
        result = verifier.verify(r.receipt_id)
        assert result.valid
        assert result.receipt.status is ReceiptStatus.SETTLED
        assert result.receipt.ledger_tx == "tx-1"

    def test_not_found(self, verifier):
        result = verifier.verify("wit_0123456789abcdef")
        assert not result.valid
        assert result.reason is VerifyReason.NOT_FOUND
        assert result.receipt is None
        assert result.message == MSG_NOT_FOUND

    def test_non_string_id_is_not_found(self, verifier):
        assert verifier.verify(None).reason is VerifyReason.NOT_FOUND

    def test_tampered_is_invalid_not_missing(self, engine, verifier, store, decision):
        r = engine.witness(decision)
        tamper(store, r.receipt_id)
        result = verifier.verify(r.receipt_id)
        assert not result.valid
        assert result.reason is VerifyReason.INVALID_SIGNATURE
        assert result.message == MSG_INVALID

    def test_verify_does_not_mutate(self, engine, verifier, store, decision):
        r = engine.witness(decision)
        before = store.counts()
        verifier.verify(r.receipt_id)
        verifier.verify("wit_missing")
        assert store.counts() == before


class TestVerifyOrRaise:

    def test_returns_receipt(self, engine, verifier, decision):
        r = engine.witness(decision)
        assert verifier.verify_or_raise(r.receipt_id) == r

    def test_not_found_raises(self, verifier):
        with pytest.raises(ReceiptNotFound):
            verifier.verify_or_raise("wit_missing")

    def test_invalid_raises(self, engine, verifier, store, decision):
        r = engine.witness(decision)
        tamper(store, r.receipt_id)
        with pytest.raises(InvalidSignature):
            verifier.verify_or_raise(r.receipt_id)


class TestOfflineCheck:

    def test_valid_export(self, engine, key, decision):
        exported = engine.witness(decision).to_dict()
        result = verify_receipt_dict(exported, key.public_key_hex)
        assert result.valid
        assert result.message == "Signature valid"

    def test_wrong_public_key(self, engine, decision):
        exported = engine.witness(decision).to_dict()
        other = Ed25519KeyManager.generate()
        result = verify_receipt_dict(exported, other.public_key_hex)
        assert not result.valid
        assert result.message == MSG_INVALID

    def test_id_must_match_hash(self, engine, key, decision):
        exported = engine.witness(decision).to_dict()
        exported["receipt_id"] = "wit_ffffffffffffffff"
        result = verify_receipt_dict(exported, key.public_key_hex)
        assert not result.valid
        assert result.message == "receipt_id does not match hash"

    def test_malformed(self, key):
        result = verify_receipt_dict({"receipt_id": "wit_x"}, key.public_key_hex)
        assert not result.valid
        assert result.message.startswith("Malformed receipt")
