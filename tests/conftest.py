"""Pytest fixtures for credcore tests."""

import hashlib
import itertools
from collections.abc import Generator
from unittest.mock import patch

import pytest
import structlog
from pydantic import SecretStr

from credcore.config.settings import Settings
from credcore.core.encryption import (
    DecryptionError,
    Encryptor,
    generate_key,
    key_to_string,
    reset_encryptor,
)
from credcore.matchers.scope import CredentialsScope
from credcore.secrets.codec import SecretCodec, reset_codec, set_codec

# =============================================================================
# Structlog Configuration Fixture
# =============================================================================


@pytest.fixture(scope="function", autouse=True)
def reset_structlog_after_test():
    """Reset structlog configuration after each test.

    This ensures tests that modify structlog global state
    don't affect other tests.
    """
    yield
    structlog.reset_defaults()
    structlog.configure(
        processors=[
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.dev.ConsoleRenderer(),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=False,
    )


@pytest.fixture(autouse=True)
def reset_global_codec() -> Generator[None, None, None]:
    """Clear the process-wide encryptor and codec around each test."""
    reset_encryptor()
    reset_codec()
    yield
    reset_encryptor()
    reset_codec()


# =============================================================================
# Settings
# =============================================================================


@pytest.fixture
def encryption_key() -> bytes:
    """A fresh 32-byte master key."""
    return generate_key()


@pytest.fixture
def mock_settings(encryption_key: bytes) -> Settings:
    """Create settings with a configured master key."""
    return Settings(
        ENVIRONMENT="test",
        log_level="DEBUG",
        ENCRYPTION_KEY=SecretStr(key_to_string(encryption_key)),
    )


@pytest.fixture
def patch_settings(mock_settings: Settings) -> Generator[Settings, None, None]:
    """Patch get_settings to return mock settings."""
    with patch("credcore.config.settings.get_settings", return_value=mock_settings):
        yield mock_settings


# =============================================================================
# Confidentiality services and codecs
# =============================================================================


class FakeConfidentialityService:
    """Deterministic stand-in for the AES-GCM encryptor.

    Output is a 12-byte counter nonce, the plaintext XORed with a keystream,
    and a 16-byte SHA-256 tag, so the overhead matches AES-GCM. Data that was
    not produced under the same key fails the tag check.
    """

    def __init__(self, key: bytes = b"fake-master-key"):
        self.key = key
        self._counter = itertools.count(1)

    def _keystream(self, nonce: bytes, length: int) -> bytes:
        blocks = bytearray()
        block = 0
        while len(blocks) < length:
            blocks += hashlib.sha256(self.key + nonce + block.to_bytes(4, "big")).digest()
            block += 1
        return bytes(blocks[:length])

    def _tag(self, nonce: bytes, body: bytes) -> bytes:
        return hashlib.sha256(self.key + b"tag" + nonce + body).digest()[:16]

    def encrypt(self, plaintext: bytes) -> bytes:
        nonce = next(self._counter).to_bytes(12, "big")
        body = bytes(a ^ b for a, b in zip(plaintext, self._keystream(nonce, len(plaintext))))
        return nonce + body + self._tag(nonce, body)

    def decrypt(self, ciphertext: bytes) -> bytes:
        if len(ciphertext) < 28:
            raise DecryptionError("Ciphertext too short")
        nonce, body, tag = ciphertext[:12], ciphertext[12:-16], ciphertext[-16:]
        if tag != self._tag(nonce, body):
            raise DecryptionError("Decryption failed: authentication check failed")
        return bytes(a ^ b for a, b in zip(body, self._keystream(nonce, len(body))))


@pytest.fixture
def fake_service() -> FakeConfidentialityService:
    """Deterministic confidentiality service."""
    return FakeConfidentialityService()


@pytest.fixture
def encryptor(encryption_key: bytes) -> Encryptor:
    """Real AES-256-GCM encryptor."""
    return Encryptor(encryption_key)


@pytest.fixture
def codec(encryptor: Encryptor) -> SecretCodec:
    """Codec over the real encryptor."""
    return SecretCodec(encryptor)


@pytest.fixture
def fake_codec(fake_service: FakeConfidentialityService) -> SecretCodec:
    """Codec over the deterministic service."""
    return SecretCodec(fake_service)


@pytest.fixture
def global_codec(codec: SecretCodec) -> Generator[SecretCodec, None, None]:
    """Install codec as the process-wide codec."""
    set_codec(codec)
    yield codec


# =============================================================================
# Credential candidates
# =============================================================================


class Credentials:
    """Minimal credential with an id and a scope."""

    def __init__(self, id: str, scope: CredentialsScope = CredentialsScope.GLOBAL):
        self._id = id
        self._scope = scope

    def get_id(self) -> str:
        return self._id

    def get_scope(self) -> CredentialsScope:
        return self._scope


class UsernamePasswordCredentials(Credentials):
    """Credential with a username and a password."""

    def __init__(
        self,
        id: str,
        username: str,
        password: str = "secret",
        scope: CredentialsScope = CredentialsScope.GLOBAL,
    ):
        super().__init__(id, scope)
        self._username = username
        self._password = password

    def get_username(self) -> str:
        return self._username

    def get_password(self) -> str:
        return self._password


class CertificateCredentials(Credentials):
    """Credential with a keystore and a flag property."""

    def __init__(
        self,
        id: str,
        keystore_size: int = 2048,
        enabled: bool = True,
        scope: CredentialsScope = CredentialsScope.GLOBAL,
    ):
        super().__init__(id, scope)
        self.keystore_size = keystore_size
        self._enabled = enabled

    def is_enabled(self) -> bool:
        return self._enabled


@pytest.fixture
def alice() -> UsernamePasswordCredentials:
    """Global username/password credential for alice."""
    return UsernamePasswordCredentials("alice-id", "alice")


@pytest.fixture
def bob() -> UsernamePasswordCredentials:
    """System username/password credential for bob."""
    return UsernamePasswordCredentials("bob-id", "bob", scope=CredentialsScope.SYSTEM)


@pytest.fixture
def certificate() -> CertificateCredentials:
    """User-scoped certificate credential."""
    return CertificateCredentials("cert-id", scope=CredentialsScope.USER)
