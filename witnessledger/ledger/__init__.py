"""
witnessledger Ledger - the ledger collaborator boundary.

LedgerClient talks to the owner-gated append-only store; LedgerProcess is
the in-process reference implementation of that store's contract.
"""

from witnessledger.ledger.client import (
    HttpLedgerTransport,
    LedgerClient,
    LedgerTransport,
    LocalLedgerTransport,
    load_credential,
)
from witnessledger.ledger.message import LedgerAction, LedgerMessage, ReplyAction
from witnessledger.ledger.process import LedgerProcess

__all__ = [
    "HttpLedgerTransport",
    "LedgerAction",
    "LedgerClient",
    "LedgerMessage",
    "LedgerProcess",
    "LedgerTransport",
    "LocalLedgerTransport",
    "ReplyAction",
    "load_credential",
]
