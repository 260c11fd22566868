"""Unit tests for the secret envelope codec."""

import base64
import os
from unittest.mock import patch

import pytest

from credcore.core.encryption import EncryptionKeyError, Encryptor, generate_key
from credcore.secrets.codec import (
    SecretCodec,
    decode_secret,
    encode_secret,
    get_codec,
    is_envelope,
    looks_like_encoded_secret,
    unwrap_envelope,
)
from credcore.secrets.encodings import encode_base64
from credcore.secrets.exceptions import SecretCodecError, SecretDecodeError


def reencode(envelope: str, *, url_safe: bool, chunked: bool) -> str:
    """Rewrite an envelope body in another sub-encoding."""
    ciphertext = base64.b64decode(envelope[1:-1])
    body = encode_base64(ciphertext, url_safe=url_safe, chunked=chunked, width=76)
    return "{" + body + "}"


SUB_ENCODINGS = [
    pytest.param(False, False, id="standard"),
    pytest.param(False, True, id="chunked"),
    pytest.param(True, False, id="url_safe"),
    pytest.param(True, True, id="chunked_url_safe"),
]


class TestEncodeDecode:
    """Tests for encode_bytes() and decode_envelope()."""

    @pytest.mark.parametrize("size", [0, 1, 27, 28, 100, 2048])
    def test_roundtrip(self, codec: SecretCodec, size: int):
        """Test plaintext survives encoding at assorted sizes."""
        plaintext = os.urandom(size)
        assert codec.decode_envelope(codec.encode_bytes(plaintext)) == plaintext

    def test_envelope_shape(self, codec: SecretCodec):
        """Test envelopes are braces around standard padded base64."""
        envelope = codec.encode_bytes(b"secret")

        assert envelope.startswith("{")
        assert envelope.endswith("}")
        assert "\n" not in envelope
        assert len(base64.b64decode(envelope[1:-1], validate=True)) == 28 + len(b"secret")

    def test_encoding_is_not_deterministic(self, codec: SecretCodec):
        """Test each encoding of the same plaintext differs."""
        assert codec.encode_bytes(b"same") != codec.encode_bytes(b"same")

    def test_envelope_does_not_contain_plaintext(self, codec: SecretCodec):
        """Test the envelope hides the plaintext."""
        plaintext = b"very-recognisable-password"
        envelope = codec.encode_bytes(plaintext)

        assert plaintext.decode() not in envelope
        assert base64.b64encode(plaintext).decode() not in envelope

    @pytest.mark.parametrize(("url_safe", "chunked"), SUB_ENCODINGS)
    def test_envelope_in_any_sub_encoding(self, codec: SecretCodec, url_safe, chunked):
        """Test envelopes written in any sub-encoding decode."""
        plaintext = os.urandom(2048)
        envelope = reencode(codec.encode_bytes(plaintext), url_safe=url_safe, chunked=chunked)

        assert codec.is_envelope(envelope)
        assert codec.decode_envelope(envelope) == plaintext

    @pytest.mark.parametrize(("url_safe", "chunked"), SUB_ENCODINGS)
    def test_legacy_in_any_sub_encoding(self, codec: SecretCodec, url_safe, chunked):
        """Test unencrypted base64 values from older releases decode."""
        plaintext = os.urandom(300)
        legacy = encode_base64(plaintext, url_safe=url_safe, chunked=chunked, width=76)

        assert not codec.is_envelope(legacy)
        assert codec.decode_envelope(legacy) == plaintext

    @pytest.mark.parametrize("separator", ["\n", "\r\n"])
    def test_short_chunked_envelope(self, codec: SecretCodec, separator: str):
        """Test an envelope body that fits on one chunked line decodes."""
        envelope = codec.encode_bytes(b"hunter2")
        chunked = envelope[:-1] + separator + "}"

        assert codec.is_envelope(chunked)
        assert codec.decode_envelope(chunked) == b"hunter2"

    def test_short_chunked_legacy(self, codec: SecretCodec):
        """Test MIME-style base64 of a short value decodes."""
        legacy = base64.encodebytes(b"hello").decode()

        assert legacy.endswith("\n")
        assert codec.decode_envelope(legacy) == b"hello"

    def test_legacy_plain_text(self, codec: SecretCodec):
        """Test text that is not base64 decodes to its UTF-8 bytes."""
        assert codec.decode_envelope("p@ssw0rd!") == b"p@ssw0rd!"
        assert codec.decode_envelope("pässwörd") == "pässwörd".encode()

    @pytest.mark.parametrize("text", [None, ""])
    def test_empty_input(self, codec: SecretCodec, text):
        """Test missing values decode to empty bytes."""
        assert codec.decode_envelope(text) == b""

    def test_fake_service(self, fake_codec: SecretCodec):
        """Test the codec works over any confidentiality service."""
        envelope = fake_codec.encode_bytes(b"data")
        assert fake_codec.decode_envelope(envelope) == b"data"


class TestDecodeFailures:
    """Tests for envelopes that do not decrypt."""

    def test_tampered_envelope(self, codec: SecretCodec):
        """Test a flipped ciphertext bit raises SecretDecodeError."""
        ciphertext = bytearray(codec.service.encrypt(b"secret"))
        ciphertext[-1] ^= 0x01
        envelope = codec.wrap(bytes(ciphertext))

        assert codec.is_envelope(envelope)
        with pytest.raises(SecretDecodeError):
            codec.decode_envelope(envelope)

    def test_foreign_key(self, codec: SecretCodec):
        """Test envelopes from another master key raise SecretDecodeError."""
        other = SecretCodec(Encryptor(generate_key()))
        envelope = other.encode_bytes(b"hunter2")

        with pytest.raises(SecretDecodeError) as exc_info:
            codec.decode_envelope(envelope)

        assert "hunter2" not in str(exc_info.value)
        assert envelope not in str(exc_info.value)

    @pytest.mark.parametrize("position", [1, 5, -2])
    def test_corrupted_envelope_text(self, codec: SecretCodec, position: int):
        """Test an envelope with one character replaced raises SecretDecodeError."""
        envelope = codec.encode_bytes(b"hunter2")
        index = position % len(envelope)
        corrupted = envelope[:index] + "!" + envelope[index + 1 :]

        assert not codec.is_envelope(corrupted)
        with pytest.raises(SecretDecodeError):
            codec.decode_envelope(corrupted)

    @pytest.mark.parametrize("text", ["{}", "{aGk=}", "{not a secret}"])
    def test_brace_delimited_text_is_not_legacy(self, codec: SecretCodec, text: str):
        """Test braced text that is not an envelope is never read as plaintext."""
        with pytest.raises(SecretDecodeError):
            codec.decode_envelope(text)

    def test_truncated_envelope(self, codec: SecretCodec):
        """Test an envelope cut short raises SecretDecodeError."""
        envelope = codec.encode_bytes(b"hunter2")

        with pytest.raises(SecretDecodeError):
            codec.decode_envelope("{" + envelope[1:-9] + "}")

    def test_decode_error_is_codec_error(self):
        """Test the error hierarchy."""
        assert issubclass(SecretDecodeError, SecretCodecError)

    def test_try_decrypt(self, codec: SecretCodec):
        """Test try_decrypt returns None instead of raising."""
        assert codec.try_decrypt(b"\x00" * 40) is None
        assert codec.try_decrypt(codec.encrypt(b"x")) == b"x"


class TestIsEnvelope:
    """Tests for structural envelope detection."""

    def test_encoded_value(self, codec: SecretCodec):
        """Test encoder output is an envelope."""
        assert is_envelope(codec.encode_bytes(b""))

    @pytest.mark.parametrize(
        "text",
        [
            None,
            "",
            "{}",
            "{",
            "}",
            "plain",
            "aGk=",
            "{aGk=}",
            "{" + base64.b64encode(b"x" * 27).decode() + "}",
            "{" + base64.b64encode(b"x" * 30).decode(),
            "{not base64 at all!!!!!!!!!!!!!!!!!!!!!!!!}",
            "{" + base64.b64encode(b"x" * 30).decode() + "} ",
        ],
    )
    def test_not_envelope(self, text):
        """Test text that is not shaped like an envelope."""
        assert is_envelope(text) is False
        assert unwrap_envelope(text) is None

    def test_minimum_length(self):
        """Test 28 decoded bytes is the smallest envelope payload."""
        payload = b"x" * 28
        text = "{" + base64.b64encode(payload).decode() + "}"

        assert is_envelope(text)
        assert unwrap_envelope(text) == payload

    def test_structural_only(self):
        """Test detection does not try to decrypt."""
        text = "{" + base64.b64encode(b"\x00" * 64).decode() + "}"
        assert looks_like_encoded_secret(text)


class TestGlobalCodec:
    """Tests for the module-level helpers."""

    def test_helpers_use_global_codec(self, global_codec: SecretCodec):
        """Test encode_secret and decode_secret share the installed codec."""
        envelope = encode_secret(b"value")

        assert looks_like_encoded_secret(envelope)
        assert global_codec.decode_envelope(envelope) == b"value"
        assert decode_secret(envelope) == b"value"

    def test_decode_secret_empty(self):
        """Test empty input needs no master key."""
        assert decode_secret(None) == b""
        assert decode_secret("") == b""

    def test_codec_built_from_settings(self, patch_settings, encryption_key: bytes):
        """Test the global codec uses the configured master key."""
        envelope = encode_secret(b"value")
        assert Encryptor(encryption_key).decrypt(base64.b64decode(envelope[1:-1])) == b"value"
        assert get_codec() is get_codec()

    def test_missing_key(self):
        """Test an unconfigured master key is reported."""
        from credcore.config.settings import Settings

        with patch(
            "credcore.config.settings.get_settings",
            return_value=Settings(ENCRYPTION_KEY=None),
        ):
            with pytest.raises(EncryptionKeyError):
                encode_secret(b"value")
