"""Core services and utilities for credcore."""

from .encryption import (
    ConfidentialityService,
    DecryptionError,
    EncryptionError,
    EncryptionKeyError,
    Encryptor,
    get_encryptor,
    reset_encryptor,
)
from .logging import LogContext, get_logger, setup_logging

__all__ = [
    # Encryption
    "ConfidentialityService",
    "DecryptionError",
    "EncryptionError",
    "EncryptionKeyError",
    "Encryptor",
    "get_encryptor",
    "reset_encryptor",
    # Logging
    "LogContext",
    "get_logger",
    "setup_logging",
]
