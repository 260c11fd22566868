"""Configuration validation for startup checks.

Validates that the master key and codec settings are usable before any
secret is encoded or decoded.

Usage:
    from credcore.config.validation import validate_configuration

    errors = validate_configuration()
    if errors:
        for error in errors:
            logger.error(f"Configuration error: {error}")
        sys.exit(1)
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any

from credcore.config.settings import Settings, get_settings
from credcore.utils.exceptions import ConfigurationError

logger = logging.getLogger("credcore.config")

# Base64 line lengths must be a multiple of 4 so that each line is decodable
# on its own by legacy readers.
CHUNK_WIDTH_MULTIPLE = 4


class ValidationSeverity(str, Enum):
    """Severity of configuration validation issues."""

    ERROR = "error"  # Must be fixed, secrets cannot be handled
    WARNING = "warning"  # Should be fixed


@dataclass
class ValidationResult:
    """Result of a configuration validation check."""

    field: str
    severity: ValidationSeverity
    message: str
    suggestion: str | None = None

    def __str__(self) -> str:
        prefix = "ERROR" if self.severity == ValidationSeverity.ERROR else "WARNING"
        result = f"[{prefix}] {self.field}: {self.message}"
        if self.suggestion:
            result += f"\n  Suggestion: {self.suggestion}"
        return result


def validate_configuration(settings: Settings | None = None) -> list[ValidationResult]:
    """Validate application configuration.

    Args:
        settings: Settings to validate (default: global settings)

    Returns:
        List of validation results (empty if all checks pass)
    """
    if settings is None:
        settings = get_settings()

    results: list[ValidationResult] = []

    results.extend(_validate_encryption(settings))
    results.extend(_validate_codec(settings))
    results.extend(_validate_environment(settings))

    return results


def validate_or_raise(settings: Settings | None = None) -> None:
    """Validate configuration and raise if errors found.

    Args:
        settings: Settings to validate

    Raises:
        ConfigurationError: If any validation errors are found
    """
    results = validate_configuration(settings)
    errors = [r for r in results if r.severity == ValidationSeverity.ERROR]

    if errors:
        error_messages = "\n".join(str(e) for e in errors)
        raise ConfigurationError(f"Configuration validation failed:\n{error_messages}")

    warnings = [r for r in results if r.severity == ValidationSeverity.WARNING]
    for warning in warnings:
        logger.warning(str(warning))


# =============================================================================
# Validators
# =============================================================================


def _validate_encryption(settings: Settings) -> list[ValidationResult]:
    """Validate the master encryption key."""
    from credcore.core.encryption import EncryptionKeyError, key_from_string

    results: list[ValidationResult] = []

    if settings.ENCRYPTION_KEY is None:
        if settings.ENVIRONMENT == "production":
            results.append(
                ValidationResult(
                    field="ENCRYPTION_KEY",
                    severity=ValidationSeverity.ERROR,
                    message="Encryption key is required in production",
                    suggestion="Generate with: python -c 'from credcore.core.encryption import generate_key, key_to_string; print(key_to_string(generate_key()))'",
                )
            )
        else:
            results.append(
                ValidationResult(
                    field="ENCRYPTION_KEY",
                    severity=ValidationSeverity.WARNING,
                    message="Encryption key not configured - secrets cannot be encoded",
                    suggestion="Set ENCRYPTION_KEY even in development",
                )
            )
        return results

    try:
        key_from_string(settings.ENCRYPTION_KEY.get_secret_value())
    except EncryptionKeyError:
        results.append(
            ValidationResult(
                field="ENCRYPTION_KEY",
                severity=ValidationSeverity.ERROR,
                message="Encryption key is not a base64-encoded 32-byte key",
                suggestion="Regenerate the key with credcore.core.encryption.generate_key",
            )
        )

    return results


def _validate_codec(settings: Settings) -> list[ValidationResult]:
    """Validate secret codec settings."""
    results: list[ValidationResult] = []

    if settings.secret_chunk_width % CHUNK_WIDTH_MULTIPLE != 0:
        results.append(
            ValidationResult(
                field="secret_chunk_width",
                severity=ValidationSeverity.ERROR,
                message=(
                    f"Chunk width {settings.secret_chunk_width} is not a multiple of "
                    f"{CHUNK_WIDTH_MULTIPLE}"
                ),
                suggestion="Use 76 (MIME) or 64 (PEM)",
            )
        )

    return results


def _validate_environment(settings: Settings) -> list[ValidationResult]:
    """Validate environment-specific settings."""
    results: list[ValidationResult] = []

    if settings.ENVIRONMENT == "production" and settings.log_level == "DEBUG":
        results.append(
            ValidationResult(
                field="log_level",
                severity=ValidationSeverity.WARNING,
                message="DEBUG log level in production may expose query details",
                suggestion="Use INFO or WARNING for production",
            )
        )

    return results


def get_configuration_summary(settings: Settings | None = None) -> dict[str, Any]:
    """Get a summary of current configuration (safe for logging).

    Args:
        settings: Settings to summarize

    Returns:
        Dictionary with configuration summary
    """
    if settings is None:
        settings = get_settings()

    return {
        "environment": settings.ENVIRONMENT,
        "log_level": settings.log_level,
        "encryption_configured": settings.ENCRYPTION_KEY is not None,
        "secret_chunk_width": settings.secret_chunk_width,
    }
