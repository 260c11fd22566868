"""Utility modules for credcore."""

from credcore.utils.exceptions import (
    ConfigurationError,
    CredcoreError,
)

__all__ = [
    "CredcoreError",
    "ConfigurationError",
]
