"""Configuration module for credcore."""

from credcore.config.settings import Settings, get_settings

__all__ = ["Settings", "get_settings"]
