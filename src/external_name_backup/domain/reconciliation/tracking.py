"""Read/write helpers for identity values and their tracking annotations."""

from __future__ import annotations

from typing import TYPE_CHECKING

from external_name_backup.domain.model import IdentityField

from .annotation_keys import ALL_TRACKING_KEYS, EXTERNAL_NAME, TRACKING
from .documents import first_present, resolve_annotation

if TYPE_CHECKING:
    from .documents import ResourceDocument


def identity_value(document: ResourceDocument | None, field: IdentityField) -> str | None:
    """Return the identity value currently carried by ``document``."""

    if document is None:
        return None
    if field is IdentityField.EXTERNAL_NAME:
        return first_present(document.annotation(EXTERNAL_NAME))
    return first_present(document.name)


def resolve_identity(
    field: IdentityField,
    desired: ResourceDocument | None,
    observed: ResourceDocument | None,
) -> str | None:
    return first_present(identity_value(desired, field), identity_value(observed, field))


def write_identity(document: ResourceDocument, field: IdentityField, value: str) -> None:
    if field is IdentityField.EXTERNAL_NAME:
        document.set_annotation(EXTERNAL_NAME, value)
    else:
        document.set_name(value)


def tracked_value(
    field: IdentityField,
    desired: ResourceDocument | None,
    observed: ResourceDocument | None,
) -> str | None:
    """Last captured value for ``field``, preferring the desired copy."""

    return resolve_annotation(TRACKING[field].stored_value, desired, observed)


def tracked_fields(
    desired: ResourceDocument | None,
    observed: ResourceDocument | None,
) -> list[IdentityField]:
    return [field for field in IdentityField if tracked_value(field, desired, observed) is not None]


def stamp_capture(
    document: ResourceDocument,
    field: IdentityField,
    value: str,
    timestamp: str,
) -> None:
    names = TRACKING[field]
    document.set_annotation(names.stored_value, value)
    document.set_annotation(names.stored_at, timestamp)


def stamp_restore(
    document: ResourceDocument,
    field: IdentityField,
    value: str,
    timestamp: str,
) -> None:
    names = TRACKING[field]
    write_identity(document, field, value)
    document.set_annotation(names.stored_value, value)
    document.set_annotation(names.restored_at, timestamp)


def strip_capture_tracking(document: ResourceDocument | None) -> list[str]:
    if document is None:
        return []
    keys = [key for names in TRACKING.values() for key in names.capture]
    return document.delete_annotations(keys)


def stamp_retirement(document: ResourceDocument, field: IdentityField, timestamp: str) -> None:
    document.set_annotation(TRACKING[field].deleted_at, timestamp)


def merge_observed_tracking(
    desired: ResourceDocument,
    observed: ResourceDocument | None,
) -> list[str]:
    """Copy observed tracking annotations missing from ``desired``; return the copied keys."""

    if observed is None:
        return []
    copied: list[str] = []
    for key, value in observed.annotations().items():
        if key not in ALL_TRACKING_KEYS or desired.has_annotation(key):
            continue
        if isinstance(value, str):
            desired.set_annotation(key, value)
            copied.append(key)
    return copied
