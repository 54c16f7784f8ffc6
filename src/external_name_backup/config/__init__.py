"""Application configuration helpers."""

from __future__ import annotations

from .credentials import AwsCredentials, get_aws_credentials, parse_aws_credentials
from .env import require_env_vars
from .errors import (
    ConfigurationError,
    CredentialsError,
    MissingConfigurationError,
    UnsupportedStoreError,
)
from .kubernetes import KubernetesConfig, get_kubernetes_config

__all__ = [
    "AwsCredentials",
    "ConfigurationError",
    "CredentialsError",
    "KubernetesConfig",
    "MissingConfigurationError",
    "UnsupportedStoreError",
    "get_aws_credentials",
    "get_kubernetes_config",
    "parse_aws_credentials",
    "require_env_vars",
]
