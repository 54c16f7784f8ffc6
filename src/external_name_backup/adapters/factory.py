"""Select and connect the identity store named by the resolved policy."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

from external_name_backup.config import (
    UnsupportedStoreError,
    get_aws_credentials,
    get_kubernetes_config,
)
from external_name_backup.domain.model import StoreType

if TYPE_CHECKING:
    from collections.abc import Mapping

    from external_name_backup.domain.model import Policy
    from external_name_backup.domain.ports import IdentityStore

log = getLogger(__name__)

type CredentialData = Mapping[str, Mapping[str, bytes]]


def build_identity_store(
    policy: Policy,
    credentials: CredentialData | None = None,
) -> IdentityStore:
    """Return a connected store for ``policy.store_type``.

    Raises ``UnsupportedStoreError`` for unknown types, configuration errors for
    bad credential material and ``StoreError`` when the backend is unreachable.
    """

    options = policy.store_options
    match policy.store_type:
        case StoreType.AWS_DYNAMODB:
            from .dynamodb import DynamoDbIdentityStore

            return DynamoDbIdentityStore.connect(
                table_name=options.dynamodb_table,
                region=options.dynamodb_region,
                credentials=get_aws_credentials(credentials or {}),
            )
        case StoreType.K8S_CONFIGMAP:
            from .configmap import ConfigMapIdentityStore

            return ConfigMapIdentityStore.connect(
                get_kubernetes_config(),
                namespace=options.configmap_namespace,
            )
        case StoreType.SQL:
            from .sqlalchemy import SqlAlchemyIdentityStore

            return SqlAlchemyIdentityStore.from_uri()
        case StoreType.MEMORY:
            from .memory import InMemoryIdentityStore

            log.warning("Using the in-memory identity store; records do not outlive the process")
            return InMemoryIdentityStore()
        case _:
            supported = ", ".join(StoreType)
            raise UnsupportedStoreError(
                f"unsupported store type {policy.store_type!r} (supported: {supported})"
            )
