"""Encrypted-at-rest byte values.

A SecretBytes holds only ciphertext. Plaintext exists transiently, in the
return value of get_plain_data(), and never appears in str() or repr().
"""

from credcore.secrets.codec import SecretCodec, get_codec


class SecretBytes:
    """An immutable secret byte value.

    Equality and hashing are on the ciphertext, so two values holding the
    same plaintext encrypted separately are not equal.
    """

    __slots__ = ("_ciphertext", "_codec")

    def __init__(self, ciphertext: bytes, codec: SecretCodec | None = None):
        """Wrap existing ciphertext.

        Prefer from_bytes() or from_string(); this constructor does not check
        that the ciphertext decrypts.
        """
        self._ciphertext = bytes(ciphertext)
        self._codec = codec or get_codec()

    @classmethod
    def from_bytes(
        cls, data: bytes | bytearray | None, codec: SecretCodec | None = None
    ) -> "SecretBytes":
        """Build from bytes that are either ciphertext or plaintext.

        Bytes that already decrypt under the codec are kept as ciphertext;
        anything else is treated as plaintext and encrypted.
        """
        codec = codec or get_codec()
        data = bytes(data or b"")
        if data and codec.try_decrypt(data) is not None:
            return cls(data, codec)
        return cls(codec.encrypt(data), codec)

    @classmethod
    def from_string(cls, text: str | None, codec: SecretCodec | None = None) -> "SecretBytes":
        """Build from stored text, either an envelope or a legacy value.

        Raises:
            SecretDecodeError: If text is wrapped in braces but is not an
                envelope that decrypts
        """
        codec = codec or get_codec()
        ciphertext = codec.unwrap(text)
        if ciphertext is not None:
            # Validates the envelope before keeping its ciphertext
            codec.decrypt(ciphertext)
            return cls(ciphertext, codec)
        plaintext = codec.decode_envelope(text)
        return cls(codec.encrypt(plaintext), codec)

    def get_plain_data(self) -> bytes:
        """Decrypt and return the plaintext."""
        return self._codec.decrypt(self._ciphertext)

    def get_encrypted_data(self) -> bytes:
        """Return the ciphertext."""
        return self._ciphertext

    def to_string(self) -> str:
        """Render as an envelope suitable for persistence."""
        return self._codec.wrap(self._ciphertext)

    def __str__(self) -> str:
        return self.to_string()

    def __repr__(self) -> str:
        return f"SecretBytes(<{len(self._ciphertext)} encrypted bytes>)"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, SecretBytes):
            return NotImplemented
        return self._ciphertext == other._ciphertext

    def __hash__(self) -> int:
        return hash(self._ciphertext)

    @staticmethod
    def plain_data_of(secret: "SecretBytes | None") -> bytes:
        """Plaintext of secret, or b"" for None."""
        return b"" if secret is None else secret.get_plain_data()

    @staticmethod
    def to_string_of(secret: "SecretBytes | None") -> str:
        """Envelope of secret, or "" for None."""
        return "" if secret is None else secret.to_string()
