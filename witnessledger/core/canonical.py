"""
witnessledger: canonical JSON encoding (RFC 8785, JCS)

This is the ONLY canonicalization permitted in witnessledger.
Decision hashing, ledger message signing and message ids all use this module.

RFC 8785: https://www.rfc-editor.org/rfc/rfc8785
"""

import hashlib

import jcs


def canonicalize(obj: dict) -> bytes:
    """
    Encode a dict to RFC 8785 canonical JSON bytes.

    Output is deterministic regardless of key insertion order.
    All values must be JSON-primitive (str, int, float, bool, None, list, dict).

    Returns:
        UTF-8 encoded canonical JSON bytes, suitable for hashing and signing.
    """
    return jcs.canonicalize(obj)


def canonical_hash(obj: dict) -> str:
    """
    SHA-256 of the RFC 8785 canonical form.

    Returns:
        Lowercase hex-encoded SHA-256 digest (64 characters).
    """
    return hashlib.sha256(canonicalize(obj)).hexdigest()


def sha256_hex(text: str) -> str:
    """SHA-256 of a UTF-8 string, lowercase hex."""
    return hashlib.sha256(text.encode("utf-8")).hexdigest()
