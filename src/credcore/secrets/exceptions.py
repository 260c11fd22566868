"""Exceptions raised by the secret codec."""

from credcore.utils.exceptions import CredcoreError


class SecretCodecError(CredcoreError):
    """Base class for secret encoding and decoding errors."""

    pass


class SecretDecodeError(SecretCodecError):
    """Raised when a string shaped like an envelope does not decrypt.

    The data is either corrupted or was produced under a different master
    key. Callers decide whether to treat the credential as unreadable.
    """

    pass


class InvalidEncodingError(SecretCodecError):
    """Raised when text is not valid under any supported base64 encoding."""

    pass
