"""witnessledger receipt verification."""

from witnessledger.verification.verifier import Verifier, verify_receipt_dict

__all__ = ["Verifier", "verify_receipt_dict"]
