from __future__ import annotations

from external_name_backup.domain.model import IdentityField
from external_name_backup.domain.reconciliation import ResourceDocument, first_present
from external_name_backup.domain.reconciliation import annotation_keys as ann
from external_name_backup.domain.reconciliation.documents import resolve_annotation
from external_name_backup.domain.reconciliation.tracking import (
    merge_observed_tracking,
    resolve_identity,
    stamp_capture,
    stamp_restore,
    strip_capture_tracking,
    tracked_fields,
)

EXT = ann.TRACKING[IdentityField.EXTERNAL_NAME]
RES = ann.TRACKING[IdentityField.RESOURCE_NAME]


def test_first_present_skips_none_and_empty() -> None:
    assert first_present(None, "", "a", "b") == "a"
    assert first_present(None, "") is None
    assert first_present() is None


def test_ensure_path_creates_and_reuses_containers() -> None:
    document = ResourceDocument({"metadata": "broken"})

    annotations = document.ensure_path("metadata", "annotations")
    annotations["k"] = "v"

    assert document.data == {"metadata": {"annotations": {"k": "v"}}}
    assert document.ensure_path("metadata", "annotations") is annotations


def test_delete_annotations_reports_removed_keys() -> None:
    document = ResourceDocument({"metadata": {"annotations": {"a": "1", "b": "2"}}})

    removed = document.delete_annotations(["a", "missing"])

    assert removed == ["a"]
    assert document.annotations() == {"b": "2"}
    assert ResourceDocument({}).delete_annotations(["a"]) == []


def test_resolve_annotation_prefers_first_document() -> None:
    desired = ResourceDocument({"metadata": {"annotations": {"k": ""}}})
    observed = ResourceDocument({"metadata": {"annotations": {"k": "observed"}}})

    assert resolve_annotation("k", desired, observed) == "observed"
    assert resolve_annotation("k", None, None) is None


def test_resolve_identity_reads_desired_then_observed() -> None:
    desired = ResourceDocument({"metadata": {"name": "from-desired"}})
    observed = ResourceDocument(
        {"metadata": {"name": "from-observed", "annotations": {ann.EXTERNAL_NAME: "ext"}}}
    )

    assert resolve_identity(IdentityField.RESOURCE_NAME, desired, observed) == "from-desired"
    assert resolve_identity(IdentityField.EXTERNAL_NAME, desired, observed) == "ext"
    assert resolve_identity(IdentityField.EXTERNAL_NAME, desired, None) is None


def test_stamp_restore_writes_value_and_tracking() -> None:
    document = ResourceDocument({})

    stamp_restore(document, IdentityField.EXTERNAL_NAME, "ext-1", "2025-01-01T00:00:00Z")
    stamp_restore(document, IdentityField.RESOURCE_NAME, "name-1", "2025-01-01T00:00:00Z")

    assert document.annotation(ann.EXTERNAL_NAME) == "ext-1"
    assert document.name == "name-1"
    assert document.annotation(EXT.stored_value) == "ext-1"
    assert document.annotation(RES.restored_at) == "2025-01-01T00:00:00Z"


def test_strip_capture_tracking_keeps_restore_and_delete_markers() -> None:
    document = ResourceDocument({})
    stamp_capture(document, IdentityField.EXTERNAL_NAME, "ext-1", "t1")
    document.set_annotation(EXT.restored_at, "t0")

    removed = strip_capture_tracking(document)

    assert sorted(removed) == sorted([EXT.stored_value, EXT.stored_at])
    assert document.annotations() == {EXT.restored_at: "t0"}
    assert tracked_fields(document, None) == []


def test_merge_observed_tracking_only_fills_gaps() -> None:
    desired = ResourceDocument({"metadata": {"annotations": {EXT.stored_value: "new"}}})
    observed = ResourceDocument(
        {
            "metadata": {
                "annotations": {
                    EXT.stored_value: "old",
                    EXT.stored_at: "t1",
                    "unrelated": "x",
                }
            }
        }
    )

    copied = merge_observed_tracking(desired, observed)

    assert copied == [EXT.stored_at]
    assert desired.annotations() == {EXT.stored_value: "new", EXT.stored_at: "t1"}
    assert merge_observed_tracking(desired, None) == []


def test_truthy_values() -> None:
    assert ann.is_truthy(" TRUE ")
    assert ann.is_truthy("yes")
    assert ann.is_truthy("1")
    assert not ann.is_truthy("on")
    assert not ann.is_truthy(None)
