"""Configuration error definitions."""

from __future__ import annotations


class ConfigurationError(RuntimeError):
    """Raised when configuration values are invalid."""


class MissingConfigurationError(ConfigurationError):
    """Raised when required configuration values are absent or blank."""


class UnsupportedStoreError(ConfigurationError):
    """Raised when the composite selects a store backend that does not exist."""


class CredentialsError(ConfigurationError):
    """Raised when supplied credential material cannot be parsed."""
