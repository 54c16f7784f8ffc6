"""Domain enums (pure, dependency-light)."""

from __future__ import annotations

from enum import StrEnum
from typing import Final


class DeletionPolicy(StrEnum):
    DELETE = "Delete"
    ORPHAN = "Orphan"


class BackupScope(StrEnum):
    """Which members take part in external-name backup and restore."""

    ORPHANED = "orphaned"
    ALL = "all"


class StoreType(StrEnum):
    AWS_DYNAMODB = "awsdynamodb"
    K8S_CONFIGMAP = "k8sconfigmap"
    SQL = "sql"
    MEMORY = "memory"


class IdentityField(StrEnum):
    """Identity values carried by an ``IdentityRecord``."""

    EXTERNAL_NAME = "externalName"
    RESOURCE_NAME = "resourceName"


# managementPolicies entries that leave deletion of the backing resource enabled
DELETING_MANAGEMENT_POLICIES: Final[frozenset[str]] = frozenset({"*", "Delete"})
