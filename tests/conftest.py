"""
Shared fixtures for the witnessledger test suite.
"""

import itertools

import pytest

from witnessledger.core.crypto import Ed25519KeyManager
from witnessledger.core.store import ReceiptStore
from witnessledger.ledger.client import LedgerClient, LocalLedgerTransport
from witnessledger.ledger.process import LedgerProcess
from witnessledger.service import WitnessService


class StepClock:
    """Deterministic millisecond clock: start, start+step, start+2*step, ..."""

    def __init__(self, start: int = 1_700_000_000_000, step: int = 1) -> None:
        self._counter = itertools.count(start, step)

    def __call__(self) -> int:
        return next(self._counter)


@pytest.fixture
def key():
    """A fresh receipt-signing key for each test."""
    return Ed25519KeyManager.generate()


@pytest.fixture
def owner():
    """The ledger owner credential."""
    return Ed25519KeyManager.generate()


@pytest.fixture
def clock():
    return StepClock()


@pytest.fixture
def store():
    return ReceiptStore()


@pytest.fixture
def process(owner):
    return LedgerProcess(owner_public_key=owner.public_key_hex)


@pytest.fixture
def client(process, owner):
    return LedgerClient(LocalLedgerTransport(process), credential=owner)


@pytest.fixture
def service(key, client, clock):
    return WitnessService(key, client, clock=clock)


DECISION = {
    "context":  "user asked to transfer 10 USDC",
    "logic":    "balance sufficient, recipient allow-listed",
    "action":   "transfer 10 USDC to 0xabc",
    "agent_id": "agent-007",
}


@pytest.fixture
def decision():
    return dict(DECISION)
