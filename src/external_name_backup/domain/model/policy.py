"""Per-invocation policy resolved from composite metadata."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Final

from external_name_backup.domain.model.enums import BackupScope, StoreType

DEFAULT_CLUSTER_ID: Final[str] = "default"
DEFAULT_STORE_TYPE: Final[str] = StoreType.AWS_DYNAMODB
DEFAULT_DYNAMODB_TABLE: Final[str] = "external-name-backup"
DEFAULT_DYNAMODB_REGION: Final[str] = "us-west-2"
DEFAULT_CONFIGMAP_NAMESPACE: Final[str] = "crossplane-system"


@dataclass(frozen=True, slots=True)
class StoreOptions:
    """Backend-specific connection parameters carried on the composite."""

    dynamodb_table: str = DEFAULT_DYNAMODB_TABLE
    dynamodb_region: str = DEFAULT_DYNAMODB_REGION
    configmap_namespace: str = DEFAULT_CONFIGMAP_NAMESPACE


@dataclass(frozen=True, slots=True)
class Policy:
    cluster_id: str = DEFAULT_CLUSTER_ID
    store_type: str = DEFAULT_STORE_TYPE
    backup_scope: BackupScope = BackupScope.ORPHANED
    require_restore: bool = False
    store_options: StoreOptions = field(default_factory=StoreOptions)
