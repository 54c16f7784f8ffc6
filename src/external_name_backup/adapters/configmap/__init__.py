"""Public interface for the Kubernetes ConfigMap store adapter."""

from __future__ import annotations

from .client import ConfigMapClient, KubernetesAPIError, RetryPolicy
from .store import (
    ConfigMapIdentityStore,
    config_map_name,
    encode_data_key,
)

__all__ = [
    "ConfigMapClient",
    "ConfigMapIdentityStore",
    "KubernetesAPIError",
    "RetryPolicy",
    "config_map_name",
    "encode_data_key",
]
