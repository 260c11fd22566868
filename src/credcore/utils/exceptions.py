"""Custom exceptions for credcore."""


class CredcoreError(Exception):
    """Base exception for all credcore errors."""

    pass


class ConfigurationError(CredcoreError):
    """Error in configuration or settings."""

    pass
