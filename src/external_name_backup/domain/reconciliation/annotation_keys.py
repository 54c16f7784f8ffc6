"""Annotation and label names shared with the orchestrator and its audit tooling."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Final

from external_name_backup.domain.model import IdentityField

PREFIX: Final[str] = "fn.crossplane.io/"

# Composite-level configuration
ENABLE_EXTERNAL_STORE: Final[str] = PREFIX + "enable-external-store"
PURGE_EXTERNAL_STORE: Final[str] = PREFIX + "purge-external-store"
CLUSTER_ID: Final[str] = PREFIX + "cluster-id"
STORE_TYPE: Final[str] = PREFIX + "store-type"
DYNAMODB_TABLE: Final[str] = PREFIX + "dynamodb-table"
DYNAMODB_REGION: Final[str] = PREFIX + "dynamodb-region"
CONFIGMAP_NAMESPACE: Final[str] = PREFIX + "configmap-namespace"
BACKUP_SCOPE: Final[str] = PREFIX + "backup-scope"
OPERATION_MODE: Final[str] = PREFIX + "operation-mode"
OVERRIDE_KIND: Final[str] = PREFIX + "override-kind"
OVERRIDE_NAMESPACE: Final[str] = PREFIX + "override-namespace"
REQUIRE_RESTORE: Final[str] = PREFIX + "require-restore"

# Set by the orchestrator
EXTERNAL_NAME: Final[str] = "crossplane.io/external-name"
CLAIM_NAME_LABEL: Final[str] = "crossplane.io/claim-name"
CLAIM_NAMESPACE_LABEL: Final[str] = "crossplane.io/claim-namespace"

TRUTHY_VALUES: Final[frozenset[str]] = frozenset({"true", "yes", "1"})


@dataclass(frozen=True, slots=True)
class TrackingAnnotations:
    """Names of the tracking annotations kept for one identity field."""

    stored_value: str
    stored_at: str
    restored_at: str
    deleted_at: str

    @property
    def capture(self) -> tuple[str, str]:
        return (self.stored_value, self.stored_at)


TRACKING: Final[dict[IdentityField, TrackingAnnotations]] = {
    IdentityField.EXTERNAL_NAME: TrackingAnnotations(
        stored_value=PREFIX + "stored-external-name",
        stored_at=PREFIX + "external-name-stored",
        restored_at=PREFIX + "external-name-restored",
        deleted_at=PREFIX + "external-name-deleted",
    ),
    IdentityField.RESOURCE_NAME: TrackingAnnotations(
        stored_value=PREFIX + "stored-resource-name",
        stored_at=PREFIX + "resource-name-stored",
        restored_at=PREFIX + "resource-name-restored",
        deleted_at=PREFIX + "resource-name-deleted",
    ),
}

ALL_TRACKING_KEYS: Final[frozenset[str]] = frozenset(
    name
    for names in TRACKING.values()
    for name in (names.stored_value, names.stored_at, names.restored_at, names.deleted_at)
)


def is_truthy(value: str | None) -> bool:
    return value is not None and value.strip().lower() in TRUTHY_VALUES
