"""Redaction of secret envelopes from serialized documents.

Used when a stored configuration document is shown to readers who may see
its structure but not its secrets.
"""

import re

from credcore.core.logging import get_logger
from credcore.secrets.codec import SecretCodec, is_envelope

logger = get_logger(__name__)

REDACTED = "********"

# An element whose entire text content is an envelope, e.g. <password>{...}</password>
_ELEMENT_ENVELOPE = re.compile(r">(\{[A-Za-z0-9+/\-_=\r\n]+\})<")


def redact_secrets(document: str, codec: SecretCodec | None = None) -> str:
    """Replace every element value that is an envelope with a fixed mask.

    Args:
        document: Serialized document text (XML or similar markup)
        codec: Codec whose envelope shape to recognize; defaults to the
            structural check, which needs no master key

    Returns:
        The document with envelope values replaced by ``********``
    """
    check = codec.is_envelope if codec is not None else is_envelope
    redacted = 0

    def replace(match: re.Match[str]) -> str:
        nonlocal redacted
        if not check(match.group(1)):
            return match.group(0)
        redacted += 1
        return f">{REDACTED}<"

    result = _ELEMENT_ENVELOPE.sub(replace, document)
    if redacted:
        logger.debug("secrets_redacted", count=redacted)
    return result
