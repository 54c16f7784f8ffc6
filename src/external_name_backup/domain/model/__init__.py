"""Public domain model surface."""

from __future__ import annotations

from external_name_backup.domain.model.enums import (
    DELETING_MANAGEMENT_POLICIES,
    BackupScope,
    DeletionPolicy,
    IdentityField,
    StoreType,
)
from external_name_backup.domain.model.keys import UNSCOPED, CompositionKey, ResourceKey
from external_name_backup.domain.model.policy import Policy, StoreOptions
from external_name_backup.domain.model.records import (
    CompositionRecordSet,
    IdentityRecord,
    merge_record_sets,
    record_set_from_mapping,
    record_set_to_mapping,
)

__all__ = [
    "DELETING_MANAGEMENT_POLICIES",
    "UNSCOPED",
    "BackupScope",
    "CompositionKey",
    "CompositionRecordSet",
    "DeletionPolicy",
    "IdentityField",
    "IdentityRecord",
    "Policy",
    "ResourceKey",
    "StoreOptions",
    "StoreType",
    "merge_record_sets",
    "record_set_from_mapping",
    "record_set_to_mapping",
]
