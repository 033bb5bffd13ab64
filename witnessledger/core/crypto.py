"""
witnessledger/core/crypto.py

Signer: Ed25519 key management for receipts and ledger messages.

Key contracts:
    public_key_hex          : @property → 64-char lowercase hex  (NO parentheses)
    sign(data)              : bytes → base64url str, no padding
    sign_hash(hash_hex)     : signs the UTF-8 bytes of a receipt hash
    verify_hash(...)        : instance method: never raises, False on any failure
    verify_detached(...)    : @staticmethod: verifies with ONLY a pubkey hex string

The keypair is created once (generate() or from_file()) and passed by
reference to every component that signs or verifies. There is no rotation:
a new key invalidates every receipt signed by the old one.
"""

import base64
from pathlib import Path
from typing import Optional

from cryptography.hazmat.primitives.asymmetric.ed25519 import (
    Ed25519PrivateKey,
    Ed25519PublicKey,
)
from cryptography.hazmat.primitives.serialization import (
    Encoding,
    NoEncryption,
    PrivateFormat,
    PublicFormat,
    load_pem_private_key,
)


class Ed25519KeyManager:
    """
    Process signing identity.

    Public surface:
        Ed25519KeyManager.generate()                        → new random key
        Ed25519KeyManager.from_file(path)                  → load PEM private key
        Ed25519KeyManager.from_private_bytes(seed)         → load from raw 32-byte seed
        Ed25519KeyManager.verify_detached(data, sig, hex)  → @staticmethod, no instance needed

        key.public_key_hex          (@property) → 64-char lowercase hex
        key.public_key_pem()                    → SubjectPublicKeyInfo PEM
        key.sign(data: bytes)                   → base64url str (no padding)
        key.sign_hash(hash_hex)                 → base64url str (no padding)
        key.verify_hash(hash_hex, sig)          → bool
        key.save(path)                          → write PEM private key
    """

    def __init__(self, private_key: Ed25519PrivateKey) -> None:
        self._private_key:    Ed25519PrivateKey = private_key
        self._public_key:     Ed25519PublicKey  = private_key.public_key()
        self._public_key_hex: str = (
            self._public_key
            .public_bytes(Encoding.Raw, PublicFormat.Raw)
            .hex()
        )

    # ── Construction ──────────────────────────────────────────

    @classmethod
    def generate(cls) -> "Ed25519KeyManager":
        """Generate a new random Ed25519 key pair."""
        return cls(Ed25519PrivateKey.generate())

    @classmethod
    def from_file(cls, path: Path) -> "Ed25519KeyManager":
        """
        Load an Ed25519 private key from a PEM file.
        Raises FileNotFoundError if path does not exist.
        Raises ValueError if the file is not a valid Ed25519 PEM key.
        """
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Key file not found: {path}")
        pem_bytes = path.read_bytes()
        try:
            private_key = load_pem_private_key(pem_bytes, password=None)
        except Exception as exc:
            raise ValueError(
                f"Failed to load Ed25519 key from {path}: {exc}"
            ) from exc
        if not isinstance(private_key, Ed25519PrivateKey):
            raise ValueError(
                f"Key file {path} does not contain an Ed25519 private key"
            )
        return cls(private_key)

    @classmethod
    def from_private_bytes(cls, seed: bytes) -> "Ed25519KeyManager":
        """
        Load an Ed25519 key from a raw 32-byte seed.
        Raises ValueError if seed is not exactly 32 bytes.
        """
        if len(seed) != 32:
            raise ValueError(
                f"Ed25519 seed must be 32 bytes, got {len(seed)}"
            )
        return cls(Ed25519PrivateKey.from_private_bytes(seed))

    # ── Public Key ────────────────────────────────────────────

    @property
    def public_key_hex(self) -> str:
        """
        64-character lowercase hex string of the Ed25519 public key (32 bytes).

        THIS IS A @property: access as key.public_key_hex (NO parentheses).
        """
        return self._public_key_hex

    def public_key_pem(self) -> str:
        """Public key as a SubjectPublicKeyInfo PEM string, for external verifiers."""
        return self._public_key.public_bytes(
            Encoding.PEM, PublicFormat.SubjectPublicKeyInfo
        ).decode("ascii")

    # ── Signing ───────────────────────────────────────────────

    def sign(self, data: bytes) -> str:
        """
        Sign data with Ed25519. Returns base64url string, no '=' padding.

        Ed25519 is deterministic: the same data always yields the same
        signature under the same key.
        """
        raw_sig = self._private_key.sign(data)
        return base64.urlsafe_b64encode(raw_sig).rstrip(b"=").decode("ascii")

    def sign_hash(self, hash_hex: str) -> str:
        """Sign a receipt hash (the UTF-8 bytes of its hex string)."""
        return self.sign(hash_hex.encode("utf-8"))

    # ── Verification: INSTANCE ───────────────────────────────

    def verify(
        self,
        data:           bytes,
        signature_b64:  str,
        public_key_hex: Optional[str] = None,
    ) -> bool:
        """
        Verify an Ed25519 signature using this key manager's public key
        (or an explicit override).

        Returns:
            True if valid. False for ANY failure. Never raises.
        """
        key_hex = public_key_hex or self._public_key_hex
        return Ed25519KeyManager.verify_detached(data, signature_b64, key_hex)

    def verify_hash(self, hash_hex: str, signature_b64: str) -> bool:
        """
        Verify a receipt signature over its hash.

        Malformed input (non-string hash, garbage signature) returns False.
        """
        if not isinstance(hash_hex, str):
            return False
        return self.verify(hash_hex.encode("utf-8"), signature_b64)

    # ── Verification: STATIC ─────────────────────────────────

    @staticmethod
    def verify_detached(
        data:           bytes,
        signature_b64:  str,
        public_key_hex: str,
    ) -> bool:
        """
        Verify an Ed25519 signature using ONLY a public key hex string.

        No Ed25519KeyManager instance required. No private key required.

        Returns:
            True if the signature is valid over data with the given public key.
            False for ANY failure: wrong key, bad encoding, wrong length,
            corrupted signature. Never raises.
        """
        try:
            if not isinstance(public_key_hex, str) or len(public_key_hex) != 64:
                return False
            if not isinstance(signature_b64, str):
                return False

            raw_pub = bytes.fromhex(public_key_hex)
            pub     = Ed25519PublicKey.from_public_bytes(raw_pub)

            # Re-add base64url padding if stripped
            padding    = 4 - len(signature_b64) % 4
            padded_sig = signature_b64 + "=" * (padding % 4)
            raw_sig    = base64.urlsafe_b64decode(padded_sig)

            if len(raw_sig) != 64:
                return False

            pub.verify(raw_sig, data)
            return True

        except Exception:
            return False

    # ── Persistence ───────────────────────────────────────────

    def save(self, path: Path) -> None:
        """
        Write the private key to disk as a PEM file.
        Creates parent directories if needed.
        Raises RuntimeError on write failure.
        """
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        try:
            pem = self._private_key.private_bytes(
                encoding=             Encoding.PEM,
                format=               PrivateFormat.PKCS8,
                encryption_algorithm= NoEncryption(),
            )
            path.write_bytes(pem)
        except Exception as exc:
            raise RuntimeError(
                f"Failed to save Ed25519 key to {path}: {exc}"
            ) from exc

    def __repr__(self) -> str:
        return (
            f"Ed25519KeyManager(public_key_hex={self._public_key_hex[:16]}...)"
        )
