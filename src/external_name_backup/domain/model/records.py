"""Identity records persisted per composition."""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import TYPE_CHECKING

from external_name_backup.domain.model.enums import IdentityField

if TYPE_CHECKING:
    from collections.abc import Mapping

    from external_name_backup.domain.model.keys import ResourceKey


@dataclass(frozen=True, slots=True)
class IdentityRecord:
    external_name: str | None = None
    resource_name: str | None = None

    @property
    def is_empty(self) -> bool:
        return not self.external_name and not self.resource_name

    def get(self, field: IdentityField) -> str | None:
        if field is IdentityField.EXTERNAL_NAME:
            return self.external_name
        return self.resource_name

    def with_value(self, field: IdentityField, value: str) -> IdentityRecord:
        if field is IdentityField.EXTERNAL_NAME:
            return replace(self, external_name=value)
        return replace(self, resource_name=value)

    def merged(self, update: IdentityRecord) -> IdentityRecord:
        """Overlay the fields present in ``update`` without erasing the others."""

        return IdentityRecord(
            external_name=update.external_name or self.external_name,
            resource_name=update.resource_name or self.resource_name,
        )

    def to_mapping(self) -> dict[str, str]:
        data: dict[str, str] = {}
        if self.external_name:
            data[IdentityField.EXTERNAL_NAME] = self.external_name
        if self.resource_name:
            data[IdentityField.RESOURCE_NAME] = self.resource_name
        return data

    @classmethod
    def from_mapping(cls, data: Mapping[str, object]) -> IdentityRecord:
        return cls(
            external_name=_text(data.get(IdentityField.EXTERNAL_NAME)),
            resource_name=_text(data.get(IdentityField.RESOURCE_NAME)),
        )


def _text(value: object) -> str | None:
    if isinstance(value, str) and value:
        return value
    return None


type CompositionRecordSet = dict[ResourceKey, IdentityRecord]


def merge_record_sets(
    existing: Mapping[ResourceKey, IdentityRecord],
    updates: Mapping[ResourceKey, IdentityRecord],
) -> CompositionRecordSet:
    """Return ``existing`` with ``updates`` merged in field by field."""

    merged: CompositionRecordSet = dict(existing)
    for resource_key, update in updates.items():
        current = merged.get(resource_key)
        merged[resource_key] = current.merged(update) if current is not None else update
    return merged


def record_set_to_mapping(
    records: Mapping[ResourceKey, IdentityRecord],
) -> dict[str, dict[str, str]]:
    """Serialisable form shared by the store backends; empty records are dropped."""

    return {key: record.to_mapping() for key, record in records.items() if not record.is_empty}


def record_set_from_mapping(data: Mapping[str, object]) -> CompositionRecordSet:
    records: CompositionRecordSet = {}
    for key, value in data.items():
        if isinstance(value, dict):
            records[key] = IdentityRecord.from_mapping(value)
    return records
