"""Confidentiality service for secret material.

Provides the ConfidentialityService protocol consumed by the secret codec and
its default AES-256-GCM implementation keyed by the process-wide master key.

Usage:
    from credcore.core.encryption import get_encryptor

    encryptor = get_encryptor()
    ciphertext = encryptor.encrypt(b"sensitive data")
    plaintext = encryptor.decrypt(ciphertext)
"""

import base64
import binascii
import hashlib
import secrets
from typing import Protocol, runtime_checkable

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from credcore.utils.exceptions import CredcoreError


class EncryptionError(CredcoreError):
    """Raised when encryption or decryption fails."""

    pass


class EncryptionKeyError(EncryptionError):
    """Raised when encryption key is missing or invalid."""

    pass


class DecryptionError(EncryptionError):
    """Raised when decryption fails (wrong key, corrupted data, etc.)."""

    pass


# Constants
NONCE_SIZE = 12  # 96 bits recommended for AES-GCM
TAG_SIZE = 16
KEY_SIZE = 32  # 256 bits for AES-256
CIPHERTEXT_OVERHEAD = NONCE_SIZE + TAG_SIZE


@runtime_checkable
class ConfidentialityService(Protocol):
    """Symmetric encryption keyed by a master key the caller never sees.

    Implementations must produce non-deterministic ciphertext and raise
    DecryptionError for data they did not produce.
    """

    def encrypt(self, plaintext: bytes) -> bytes:
        """Encrypt plaintext bytes."""
        ...

    def decrypt(self, ciphertext: bytes) -> bytes:
        """Decrypt ciphertext produced by encrypt."""
        ...


class Encryptor:
    """AES-256-GCM encryptor for secret material.

    Uses authenticated encryption to provide both confidentiality and integrity.

    Attributes:
        _aesgcm: The AESGCM cipher instance
    """

    def __init__(self, key: bytes):
        """Initialize encryptor with a key.

        Args:
            key: 32-byte (256-bit) encryption key

        Raises:
            EncryptionKeyError: If key is not 32 bytes
        """
        if len(key) != KEY_SIZE:
            raise EncryptionKeyError(
                f"Encryption key must be {KEY_SIZE} bytes, got {len(key)}"
            )
        self._aesgcm = AESGCM(key)

    def __repr__(self) -> str:
        return "Encryptor(algorithm='AES-256-GCM')"

    def encrypt(self, plaintext: bytes, associated_data: bytes | None = None) -> bytes:
        """Encrypt data using AES-256-GCM.

        Args:
            plaintext: Data to encrypt
            associated_data: Optional additional authenticated data (AAD)

        Returns:
            Encrypted data in format: nonce (12 bytes) || ciphertext || tag (16 bytes)

        Raises:
            EncryptionError: If encryption fails
        """
        try:
            nonce = secrets.token_bytes(NONCE_SIZE)
            ciphertext = self._aesgcm.encrypt(nonce, plaintext, associated_data)
            return nonce + ciphertext
        except (TypeError, ValueError, OverflowError) as e:
            raise EncryptionError(f"Encryption failed: {e}") from e

    def decrypt(self, ciphertext: bytes, associated_data: bytes | None = None) -> bytes:
        """Decrypt data encrypted with AES-256-GCM.

        Args:
            ciphertext: Data in format: nonce (12 bytes) || ciphertext || tag
            associated_data: Optional AAD that was used during encryption

        Returns:
            Decrypted plaintext

        Raises:
            DecryptionError: If decryption fails (wrong key, tampered data, etc.)
        """
        if len(ciphertext) < CIPHERTEXT_OVERHEAD:
            raise DecryptionError("Ciphertext too short")

        try:
            nonce = ciphertext[:NONCE_SIZE]
            actual_ciphertext = ciphertext[NONCE_SIZE:]
            return self._aesgcm.decrypt(nonce, actual_ciphertext, associated_data)
        except (InvalidTag, TypeError, ValueError) as e:
            raise DecryptionError("Decryption failed: authentication check failed") from e


def derive_key_from_password(password: str, salt: bytes | None = None) -> tuple[bytes, bytes]:
    """Derive an encryption key from a password using PBKDF2.

    Args:
        password: Password to derive key from
        salt: Optional salt (generated if not provided)

    Returns:
        Tuple of (key, salt) where key is 32 bytes
    """
    if salt is None:
        salt = secrets.token_bytes(16)

    # PBKDF2-HMAC-SHA256 with 600,000 iterations (OWASP 2023 recommendation)
    key = hashlib.pbkdf2_hmac(
        "sha256",
        password.encode("utf-8"),
        salt,
        iterations=600_000,
        dklen=KEY_SIZE,
    )
    return key, salt


def generate_key() -> bytes:
    """Generate a new random 256-bit encryption key."""
    return secrets.token_bytes(KEY_SIZE)


def key_to_string(key: bytes) -> str:
    """Convert key to base64 string for storage."""
    return base64.b64encode(key).decode("ascii")


def key_from_string(key_string: str) -> bytes:
    """Convert base64 string back to key bytes.

    Args:
        key_string: Base64-encoded key

    Returns:
        32-byte encryption key

    Raises:
        EncryptionKeyError: If key string is invalid
    """
    try:
        key = base64.b64decode(key_string, validate=True)
    except (binascii.Error, ValueError) as e:
        raise EncryptionKeyError(f"Invalid key string: {e}") from e
    if len(key) != KEY_SIZE:
        raise EncryptionKeyError(f"Key must be {KEY_SIZE} bytes, got {len(key)}")
    return key


# Global encryptor instance (lazy-loaded)
_encryptor: Encryptor | None = None


def get_encryptor() -> Encryptor:
    """Get the global encryptor instance.

    Loads the encryption key from settings on first call.

    Returns:
        Configured Encryptor instance

    Raises:
        EncryptionKeyError: If ENCRYPTION_KEY is not configured
    """
    global _encryptor

    if _encryptor is None:
        from credcore.config.settings import get_settings

        settings = get_settings()
        if settings.ENCRYPTION_KEY is None:
            raise EncryptionKeyError(
                "ENCRYPTION_KEY is not configured. Set it in environment variables."
            )

        key = key_from_string(settings.ENCRYPTION_KEY.get_secret_value())
        _encryptor = Encryptor(key)

    return _encryptor


def reset_encryptor() -> None:
    """Reset the global encryptor (for testing)."""
    global _encryptor
    _encryptor = None
