"""Textual codec for encrypted secret bytes.

Secrets are persisted as an envelope: ``{`` + base64(ciphertext) + ``}``. The
ciphertext comes from a ConfidentialityService, so envelopes are opaque
outside the process holding the master key.

Decoding also accepts the legacy form written by older releases, which is
plain base64 of the unencrypted bytes in any supported sub-encoding.

Usage:
    from credcore.secrets import decode_secret, encode_secret

    stored = encode_secret(b"hunter2")    # '{...}'
    decode_secret(stored)                 # b'hunter2'
    decode_secret("aHVudGVyMg==")         # b'hunter2' (legacy)
"""

import re

from credcore.core.encryption import (
    CIPHERTEXT_OVERHEAD,
    ConfidentialityService,
    EncryptionError,
    get_encryptor,
)
from credcore.core.logging import get_logger
from credcore.secrets.encodings import decode_base64, detect_encoding, encode_base64
from credcore.secrets.exceptions import InvalidEncodingError, SecretDecodeError

logger = get_logger(__name__)

ENVELOPE_PREFIX = "{"
ENVELOPE_SUFFIX = "}"

# Characters that can appear between the braces under any sub-encoding
_ENVELOPE_BODY = re.compile(r"[A-Za-z0-9+/\-_=\r\n]+")


def unwrap_envelope(
    text: str | None, min_payload_size: int = CIPHERTEXT_OVERHEAD
) -> bytes | None:
    """Extract the ciphertext from an envelope.

    The check is structural only: braces, a body that decodes under one of
    the supported sub-encodings, and a decoded payload at least as long as
    the cipher's fixed overhead. No decryption is attempted, so a legacy
    value can in principle look like an envelope.

    Returns:
        The ciphertext bytes, or None if text is not shaped like an envelope
    """
    if not text or len(text) < 3:
        return None
    if not (text.startswith(ENVELOPE_PREFIX) and text.endswith(ENVELOPE_SUFFIX)):
        return None

    body = text[1:-1]
    if not _ENVELOPE_BODY.fullmatch(body):
        return None

    detected = detect_encoding(body)
    if detected is None:
        return None

    payload = detected[1]
    if len(payload) < min_payload_size:
        return None
    return payload


def is_brace_delimited(text: str | None) -> bool:
    """Whether text is wrapped in envelope braces, valid or not.

    Legacy values never take this form, so such text is a damaged envelope.
    """
    if not text or len(text) < 2:
        return False
    return text.startswith(ENVELOPE_PREFIX) and text.endswith(ENVELOPE_SUFFIX)


def is_envelope(text: str | None, min_payload_size: int = CIPHERTEXT_OVERHEAD) -> bool:
    """Whether text is structurally an encrypted secret envelope."""
    return unwrap_envelope(text, min_payload_size) is not None


class SecretCodec:
    """Encodes secrets to envelopes and decodes envelopes or legacy text.

    Attributes:
        service: The confidentiality service used for encryption
        min_payload_size: Smallest ciphertext the service can produce
    """

    def __init__(
        self,
        service: ConfidentialityService,
        min_payload_size: int = CIPHERTEXT_OVERHEAD,
    ):
        self.service = service
        self.min_payload_size = min_payload_size

    def __repr__(self) -> str:
        return f"SecretCodec(service={self.service!r})"

    def encrypt(self, plaintext: bytes) -> bytes:
        """Encrypt plaintext with the underlying service."""
        return self.service.encrypt(plaintext)

    def decrypt(self, ciphertext: bytes) -> bytes:
        """Decrypt ciphertext.

        Raises:
            SecretDecodeError: If the service rejects the ciphertext
        """
        try:
            return self.service.decrypt(ciphertext)
        except (EncryptionError, ValueError) as e:
            logger.warning(
                "secret_decode_failed",
                reason="decryption_failed",
                ciphertext_length=len(ciphertext),
                error_type=type(e).__name__,
            )
            raise SecretDecodeError(
                "Secret could not be decrypted; it is corrupted or was "
                "encrypted under a different master key"
            ) from e

    def try_decrypt(self, ciphertext: bytes) -> bytes | None:
        """Decrypt ciphertext, returning None instead of raising."""
        try:
            return self.service.decrypt(ciphertext)
        except (EncryptionError, ValueError):
            return None

    def wrap(self, ciphertext: bytes) -> str:
        """Render ciphertext as an envelope."""
        return f"{ENVELOPE_PREFIX}{encode_base64(ciphertext)}{ENVELOPE_SUFFIX}"

    def unwrap(self, text: str | None) -> bytes | None:
        """Extract ciphertext from an envelope, or None if text is not one."""
        return unwrap_envelope(text, self.min_payload_size)

    def is_envelope(self, text: str | None) -> bool:
        """Whether text is structurally an envelope for this codec."""
        return self.unwrap(text) is not None

    def encode_bytes(self, plaintext: bytes) -> str:
        """Encrypt plaintext and render it as an envelope.

        Each call yields a different envelope for the same plaintext.
        """
        return self.wrap(self.encrypt(plaintext))

    def decode_legacy(self, text: str) -> bytes:
        """Decode a value written before secrets were encrypted.

        Text that is base64 in any supported sub-encoding is decoded. Any
        other text is taken to be the secret itself and returned as UTF-8.
        """
        try:
            return decode_base64(text)
        except InvalidEncodingError:
            logger.debug("secret_legacy_plaintext", text_length=len(text))
            return text.encode("utf-8")

    def decode_envelope(self, text: str | None) -> bytes:
        """Decode an envelope or a legacy value to plaintext bytes.

        Args:
            text: Stored secret text; None or empty decodes to b""

        Returns:
            The plaintext bytes

        Raises:
            SecretDecodeError: If text is wrapped in braces but is not an
                envelope that decrypts
        """
        if not text:
            return b""

        ciphertext = self.unwrap(text)
        if ciphertext is not None:
            return self.decrypt(ciphertext)
        if is_brace_delimited(text):
            logger.warning(
                "secret_decode_failed",
                reason="malformed_envelope",
                text_length=len(text),
            )
            raise SecretDecodeError("Secret envelope is malformed or truncated")
        return self.decode_legacy(text)


# Global codec instance (lazy-loaded)
_codec: SecretCodec | None = None


def get_codec() -> SecretCodec:
    """Get the global codec, backed by the global encryptor.

    Raises:
        EncryptionKeyError: If ENCRYPTION_KEY is not configured
    """
    global _codec

    if _codec is None:
        _codec = SecretCodec(get_encryptor())

    return _codec


def set_codec(codec: SecretCodec | None) -> None:
    """Replace the global codec (None restores lazy loading)."""
    global _codec
    _codec = codec


def reset_codec() -> None:
    """Reset the global codec (for testing)."""
    set_codec(None)


def encode_secret(plaintext: bytes) -> str:
    """Encrypt plaintext with the global codec and return its envelope."""
    return get_codec().encode_bytes(plaintext)


def decode_secret(text: str | None) -> bytes:
    """Decode an envelope or legacy value with the global codec.

    Raises:
        SecretDecodeError: If an envelope does not decrypt
    """
    if not text:
        return b""
    return get_codec().decode_envelope(text)


def looks_like_encoded_secret(text: str | None) -> bool:
    """Whether text is structurally an encrypted secret envelope.

    Does not need the master key.
    """
    return is_envelope(text)
