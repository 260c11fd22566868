"""Base64 sub-encodings accepted by the secret codec.

Secrets written by older releases may use any of four textual forms:
standard or URL-safe alphabet, each either on one line or wrapped at a fixed
column. Encoding always emits the canonical form (standard, unchunked,
padded); decoding tries each form in DECODERS order until one accepts.

DECODERS is append-only. New forms go at the end so that text accepted by
an earlier form keeps decoding to the same bytes.
"""

import base64
import binascii
import re
from collections.abc import Callable
from dataclasses import dataclass

from credcore.secrets.exceptions import InvalidEncodingError

# MIME line length
DEFAULT_CHUNK_WIDTH = 76
LINE_SEPARATOR = "\r\n"

_STANDARD = re.compile(r"[A-Za-z0-9+/]*={0,2}")
_URL_SAFE = re.compile(r"[A-Za-z0-9\-_]*={0,2}")
_LINE_BREAKS = re.compile(r"\r?\n")
_URL_TO_STANDARD = str.maketrans("-_", "+/")


def _decode_standard(text: str) -> bytes | None:
    if len(text) % 4 != 0 or not _STANDARD.fullmatch(text):
        return None
    try:
        return base64.b64decode(text, validate=True)
    except (binascii.Error, ValueError):
        return None


def _decode_url_safe(text: str) -> bytes | None:
    # Padding is optional in the URL-safe form
    if len(text) % 4 == 1 or not _URL_SAFE.fullmatch(text):
        return None
    padded = text.translate(_URL_TO_STANDARD)
    padded += "=" * (-len(padded) % 4)
    try:
        return base64.b64decode(padded, validate=True)
    except (binascii.Error, ValueError):
        return None


def _unchunk(text: str) -> str | None:
    # A single line with a trailing break is still chunked output
    if not _LINE_BREAKS.search(text):
        return None
    joined = _LINE_BREAKS.sub("", text)
    return joined or None


def _chunked(decoder: Callable[[str], bytes | None]) -> Callable[[str], bytes | None]:
    def decode(text: str) -> bytes | None:
        joined = _unchunk(text)
        return None if joined is None else decoder(joined)

    return decode


@dataclass(frozen=True, slots=True)
class Base64Encoding:
    """One textual base64 form.

    Attributes:
        name: Identifier used in logs
        url_safe: Whether the form uses the ``-_`` alphabet
        chunked: Whether the form wraps lines
        decoder: Returns the decoded bytes, or None if text is not in this form
    """

    name: str
    url_safe: bool
    chunked: bool
    decoder: Callable[[str], bytes | None]

    def decode(self, text: str) -> bytes | None:
        """Decode text if it is in this form, else return None."""
        return self.decoder(text)


STANDARD = Base64Encoding("standard", url_safe=False, chunked=False, decoder=_decode_standard)
CHUNKED = Base64Encoding(
    "chunked", url_safe=False, chunked=True, decoder=_chunked(_decode_standard)
)
URL_SAFE = Base64Encoding("url_safe", url_safe=True, chunked=False, decoder=_decode_url_safe)
CHUNKED_URL_SAFE = Base64Encoding(
    "chunked_url_safe", url_safe=True, chunked=True, decoder=_chunked(_decode_url_safe)
)

DECODERS: tuple[Base64Encoding, ...] = (STANDARD, CHUNKED, URL_SAFE, CHUNKED_URL_SAFE)


def encode_base64(
    data: bytes,
    *,
    url_safe: bool = False,
    chunked: bool = False,
    width: int | None = None,
) -> str:
    """Encode bytes in one of the supported forms.

    Args:
        data: Bytes to encode
        url_safe: Use the ``-_`` alphabet
        chunked: Wrap output with CRLF every ``width`` characters
        width: Line width for chunked output; defaults to the
            secret_chunk_width setting

    Returns:
        The encoded text (no trailing line break)
    """
    if url_safe:
        text = base64.urlsafe_b64encode(data).decode("ascii")
    else:
        text = base64.b64encode(data).decode("ascii")

    if chunked:
        if width is None:
            from credcore.config.settings import get_settings

            width = get_settings().secret_chunk_width
        if width <= 0:
            raise ValueError(f"Chunk width must be positive, got {width}")
        text = LINE_SEPARATOR.join(text[i : i + width] for i in range(0, len(text), width))

    return text


def detect_encoding(text: str) -> tuple[Base64Encoding, bytes] | None:
    """Find the first form that accepts text.

    Returns:
        The accepting form and the decoded bytes, or None
    """
    for encoding in DECODERS:
        decoded = encoding.decode(text)
        if decoded is not None:
            return encoding, decoded
    return None


def decode_base64(text: str) -> bytes:
    """Decode text written in any supported form.

    Raises:
        InvalidEncodingError: If no form accepts the text
    """
    detected = detect_encoding(text)
    if detected is None:
        raise InvalidEncodingError("Text is not valid base64 in any supported form")
    return detected[1]
