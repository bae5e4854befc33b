"""
Crypto Helper

Symmetric payload encryption and password hashing for protected shares.

Payloads are encrypted with AES-256-GCM; the stored format is
nonce (12 bytes) followed by ciphertext and the 16-byte GCM tag.

Passwords are hashed with unsalted SHA-256, matching existing records.
The random encryption key is persisted next to the record, so a reader of
the metadata store can decrypt every payload; see DESIGN.md.
"""

import hashlib
import hmac
import os
from typing import Optional

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from ..errors import DecryptionError


class CryptoHelper:
    """Key generation, AES-GCM payload encryption and password hashing."""

    KEY_BITS = 256
    NONCE_SIZE = 12
    TAG_SIZE = 16
    ENCRYPTED_CONTENT_TYPE = "application/encrypted"

    def generate_key(self) -> str:
        """
        Generate a random 256-bit key.

        Returns:
            Hex-encoded key (64 characters)
        """
        return AESGCM.generate_key(bit_length=self.KEY_BITS).hex()

    def hash_password(self, password: str) -> str:
        """SHA-256 hex digest of the password."""
        return hashlib.sha256(password.encode("utf-8")).hexdigest()

    def verify_password(self, password: str, stored_digest: str) -> bool:
        """
        Recompute the digest and compare in constant time.

        Returns:
            True if password matches stored_digest
        """
        if not stored_digest:
            return False
        return hmac.compare_digest(self.hash_password(password), stored_digest)

    def encrypt(self, payload: bytes, key: str) -> bytes:
        """
        Encrypt a whole payload.

        Args:
            payload: Plaintext bytes
            key: Hex-encoded 256-bit key from generate_key()

        Returns:
            nonce || ciphertext || tag
        """
        aesgcm = AESGCM(self._decode_key(key))
        nonce = os.urandom(self.NONCE_SIZE)
        return nonce + aesgcm.encrypt(nonce, payload, None)

    def decrypt(
        self, ciphertext: bytes, key: str, original_mime_type: Optional[str] = None
    ) -> bytes:
        """
        Decrypt a payload produced by encrypt().

        Args:
            ciphertext: nonce || ciphertext || tag
            key: Hex-encoded key used for encryption
            original_mime_type: Content type of the plaintext, for error context

        Returns:
            Plaintext bytes

        Raises:
            DecryptionError: On key mismatch, truncation or corruption
        """
        described = original_mime_type or "payload"
        if len(ciphertext) < self.NONCE_SIZE + self.TAG_SIZE:
            raise DecryptionError(
                f"Ciphertext for {described} is too short ({len(ciphertext)} bytes)"
            )

        aesgcm = AESGCM(self._decode_key(key))
        nonce = ciphertext[:self.NONCE_SIZE]
        try:
            return aesgcm.decrypt(nonce, ciphertext[self.NONCE_SIZE:], None)
        except InvalidTag as e:
            raise DecryptionError(
                f"Failed to decrypt {described}: key mismatch or corrupt data", e
            ) from e

    def _decode_key(self, key: str) -> bytes:
        try:
            raw = bytes.fromhex(key)
        except (TypeError, ValueError) as e:
            raise DecryptionError("Encryption key is not valid hex", e) from e
        if len(raw) * 8 != self.KEY_BITS:
            raise DecryptionError(
                f"Encryption key must be {self.KEY_BITS} bits, got {len(raw) * 8}"
            )
        return raw
