"""
witnessledger Exception Hierarchy

All exceptions inherit from WitnessLedgerError for easy catching.
"""


class WitnessLedgerError(Exception):
    """Base exception for all witnessledger errors"""

    def __init__(self, message: str, details: dict = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self):
        if self.details:
            details_str = ", ".join(f"{k}={v}" for k, v in self.details.items())
            return f"{self.message} ({details_str})"
        return self.message


class ValidationError(WitnessLedgerError):
    """Raised when a decision record or config fails validation"""
    pass


class StoreError(WitnessLedgerError):
    """Raised when a receipt store invariant would be violated"""
    pass


class ReceiptNotFound(WitnessLedgerError):
    """Raised when a receipt id is unknown to every store partition"""
    pass


class InvalidSignature(WitnessLedgerError):
    """Raised when a stored receipt's signature does not verify (tampering or bug)"""
    pass


class ConfigurationFailure(WitnessLedgerError):
    """
    Raised when settlement cannot proceed without operator action.

    kind is one of NO_LEDGER or NO_CREDENTIAL. Never retried automatically.
    """

    NO_LEDGER     = "no_ledger"
    NO_CREDENTIAL = "no_credential"

    def __init__(self, kind: str, message: str, details: dict = None):
        super().__init__(message, details)
        self.kind = kind


class TransportFailure(WitnessLedgerError):
    """Raised when a ledger call fails transiently (retried next tick)"""
    pass


class LedgerRejected(TransportFailure):
    """Raised when the ledger replies with an error (unauthorized, frozen, bad payload)"""
    pass
