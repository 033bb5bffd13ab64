"""
tests/test_models.py

Receipt model contracts: hash input, receipt id derivation, record
validation and payload-free views.
"""

import hashlib
import json

import pytest

from witnessledger.core.exceptions import ValidationError
from witnessledger.core.models import (
    DecisionRecord,
    PendingReceipt,
    Receipt,
    ReceiptStatus,
    derive_receipt_id,
    hash_decision,
)


def make_record(**overrides):
    fields = {"context": "c", "logic": "l", "action": "a"}
    fields.update(overrides)
    return DecisionRecord.from_input(fields)


class TestHash:

    def test_hash_matches_canonical_json_sha256(self):
        record = make_record(agent_id="agent-1")
        expected_bytes = json.dumps(
            {
                "action":       "a",
                "agent_id":     "agent-1",
                "context":      "c",
                "logic":        "l",
                "timestamp_ms": 1000,
            },
            separators=(",", ":"),
            sort_keys=True,
        ).encode("utf-8")
        assert hash_decision(record, 1000) == hashlib.sha256(expected_bytes).hexdigest()

    def test_absent_agent_id_hashes_as_null(self):
        with_none = hash_decision(make_record(), 1000)
        with_empty = hash_decision(make_record(agent_id=""), 1000)
        assert with_none == with_empty

    def test_timestamp_changes_hash(self):
        record = make_record()
        assert hash_decision(record, 1000) != hash_decision(record, 1001)

    @pytest.mark.parametrize("field", ["context", "logic", "action", "agent_id"])
    def test_each_field_changes_hash(self, field):
        base = make_record(agent_id="x")
        changed = make_record(**{"agent_id": "x", field: "different"})
        assert hash_decision(base, 1000) != hash_decision(changed, 1000)


class TestReceiptId:

    def test_derived_from_hash_prefix(self):
        h = "0123456789abcdef" + "f" * 48
        assert derive_receipt_id(h) == "wit_0123456789abcdef"

    def test_deterministic(self):
        h = hash_decision(make_record(), 42)
        assert derive_receipt_id(h) == derive_receipt_id(h)


class TestDecisionRecordValidation:

    @pytest.mark.parametrize("missing", ["context", "logic", "action"])
    def test_missing_required_field(self, missing):
        fields = {"context": "c", "logic": "l", "action": "a"}
        del fields[missing]
        with pytest.raises(ValidationError) as exc:
            DecisionRecord.from_input(fields)
        assert missing in exc.value.details["missing"]

    @pytest.mark.parametrize("empty", ["context", "logic", "action"])
    def test_empty_required_field(self, empty):
        with pytest.raises(ValidationError):
            make_record(**{empty: ""})

    def test_non_string_required_field(self):
        with pytest.raises(ValidationError):
            make_record(context=123)

    def test_non_string_agent_id(self):
        with pytest.raises(ValidationError):
            make_record(agent_id=7)

    @pytest.mark.parametrize("field", ["context", "logic", "action", "agent_id"])
    def test_lone_surrogate_rejected(self, field):
        with pytest.raises(ValidationError) as exc:
            make_record(**{field: "ok \ud800"})
        assert exc.value.details["field"] == field

    def test_not_a_mapping(self):
        with pytest.raises(ValidationError):
            DecisionRecord.from_input(["c", "l", "a"])

    def test_record_is_immutable(self):
        record = make_record()
        with pytest.raises(AttributeError):
            record.context = "changed"


class TestViews:

    def _pending(self):
        record = make_record()
        h = hash_decision(record, 5)
        return PendingReceipt(
            receipt_id=   derive_receipt_id(h),
            hash=         h,
            signature=    "sig",
            timestamp_ms= 5,
            record=       record,
        )

    def test_public_view_drops_payload(self):
        view = self._pending().public_view()
        assert type(view) is Receipt
        assert not hasattr(view, "record")

    def test_to_dict_never_contains_payload(self):
        d = self._pending().to_dict()
        assert set(d) == {"receipt_id", "hash", "signature", "timestamp_ms", "ledger_tx", "status"}

    def test_settled_view(self):
        settled = self._pending().settled("tx-1")
        assert settled.status is ReceiptStatus.SETTLED
        assert settled.ledger_tx == "tx-1"
        assert type(settled) is Receipt

    def test_failed_then_requeued(self):
        failed = self._pending().failed("No ledger configured")
        assert failed.status is ReceiptStatus.FAILED
        assert failed.failure_reason == "No ledger configured"
        assert failed.record is not None
        requeued = failed.requeued()
        assert requeued.status is ReceiptStatus.PENDING
        assert requeued.failure_reason is None

    def test_receipt_round_trips_through_dict(self):
        view = self._pending().public_view()
        assert Receipt.from_dict(view.to_dict()) == view
