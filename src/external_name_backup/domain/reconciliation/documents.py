"""Typed view over the structured resource documents exchanged with the orchestrator.

Documents are plain JSON-like dicts. ``ResourceDocument`` keeps a reference to the
underlying dict and mutates it in place, so edits made through the view show up in
whatever graph the dict belongs to.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping

type Document = dict[str, Any]


def first_present[T](*candidates: T | None) -> T | None:
    """Return the first candidate that is neither ``None`` nor an empty string."""

    for candidate in candidates:
        if candidate is None or candidate == "":
            continue
        return candidate
    return None


@dataclass(slots=True)
class ResourceDocument:
    data: Document = field(default_factory=dict)

    @property
    def api_version(self) -> str | None:
        return _as_str(self.data.get("apiVersion"))

    @property
    def kind(self) -> str | None:
        return _as_str(self.data.get("kind"))

    @property
    def metadata(self) -> Mapping[str, Any]:
        return _as_mapping(self.data.get("metadata"))

    @property
    def name(self) -> str | None:
        return _as_str(self.metadata.get("name"))

    @property
    def namespace(self) -> str | None:
        return _as_str(self.metadata.get("namespace"))

    @property
    def spec(self) -> Mapping[str, Any] | None:
        spec = self.data.get("spec")
        return spec if isinstance(spec, dict) else None

    def label(self, key: str) -> str | None:
        return _as_str(_as_mapping(self.metadata.get("labels")).get(key))

    def annotation(self, key: str) -> str | None:
        return _as_str(_as_mapping(self.metadata.get("annotations")).get(key))

    def has_annotation(self, key: str) -> bool:
        return key in _as_mapping(self.metadata.get("annotations"))

    def annotations(self) -> Mapping[str, Any]:
        return _as_mapping(self.metadata.get("annotations"))

    def ensure_path(self, *path: str) -> Document:
        """Create any missing containers along ``path`` and return the innermost one."""

        current = self.data
        for segment in path:
            child = current.get(segment)
            if not isinstance(child, dict):
                child = {}
                current[segment] = child
            current = child
        return current

    def set_annotation(self, key: str, value: str) -> None:
        self.ensure_path("metadata", "annotations")[key] = value

    def set_name(self, value: str) -> None:
        self.ensure_path("metadata")["name"] = value

    def delete_annotations(self, keys: Iterable[str]) -> list[str]:
        """Remove ``keys`` from the annotations, returning the ones that were present."""

        annotations = self.metadata.get("annotations")
        if not isinstance(annotations, dict):
            return []
        removed: list[str] = []
        for key in keys:
            if key in annotations:
                del annotations[key]
                removed.append(key)
        return removed


def resolve_annotation(key: str, *documents: ResourceDocument | None) -> str | None:
    """Look ``key`` up on each document in order and return the first present value."""

    return first_present(*(doc.annotation(key) for doc in documents if doc is not None))


def resolve_label(key: str, *documents: ResourceDocument | None) -> str | None:
    return first_present(*(doc.label(key) for doc in documents if doc is not None))


def _as_str(value: object) -> str | None:
    return value if isinstance(value, str) else None


def _as_mapping(value: object) -> Mapping[str, Any]:
    return value if isinstance(value, dict) else {}
