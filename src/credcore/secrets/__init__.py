"""Secret byte encoding.

This module provides:
- SecretCodec: envelope encoding over a ConfidentialityService
- SecretBytes: an immutable value holding only ciphertext
- Module-level helpers backed by the process-wide master key
- Redaction of envelopes from serialized documents
"""

from credcore.secrets.codec import (
    ENVELOPE_PREFIX,
    ENVELOPE_SUFFIX,
    SecretCodec,
    decode_secret,
    encode_secret,
    get_codec,
    is_envelope,
    looks_like_encoded_secret,
    reset_codec,
    set_codec,
    unwrap_envelope,
)
from credcore.secrets.encodings import (
    CHUNKED,
    CHUNKED_URL_SAFE,
    DECODERS,
    STANDARD,
    URL_SAFE,
    Base64Encoding,
    decode_base64,
    detect_encoding,
    encode_base64,
)
from credcore.secrets.exceptions import (
    InvalidEncodingError,
    SecretCodecError,
    SecretDecodeError,
)
from credcore.secrets.redaction import REDACTED, redact_secrets
from credcore.secrets.secret_bytes import SecretBytes

__all__ = [
    # Codec
    "SecretCodec",
    "encode_secret",
    "decode_secret",
    "looks_like_encoded_secret",
    "is_envelope",
    "unwrap_envelope",
    "get_codec",
    "set_codec",
    "reset_codec",
    "ENVELOPE_PREFIX",
    "ENVELOPE_SUFFIX",
    # Values
    "SecretBytes",
    # Encodings
    "Base64Encoding",
    "STANDARD",
    "CHUNKED",
    "URL_SAFE",
    "CHUNKED_URL_SAFE",
    "DECODERS",
    "encode_base64",
    "decode_base64",
    "detect_encoding",
    # Redaction
    "REDACTED",
    "redact_secrets",
    # Errors
    "SecretCodecError",
    "SecretDecodeError",
    "InvalidEncodingError",
]
