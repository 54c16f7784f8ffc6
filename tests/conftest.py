from __future__ import annotations

import os
from datetime import UTC, datetime
from pathlib import Path  # noqa: TC003
from typing import TYPE_CHECKING, Any

import pytest
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine  # noqa: TC002

from external_name_backup.adapters.memory import InMemoryIdentityStore
from external_name_backup.adapters.sqlalchemy import create_all_tables
from external_name_backup.domain.reconciliation import GraphPair, ResourceGraph
from external_name_backup.domain.reconciliation import annotation_keys as ann

os.environ.setdefault("DATABASE_URI", "sqlite+pysqlite:///:memory:")

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator, Mapping

type Document = dict[str, Any]

FIXED_NOW = datetime(2025, 1, 2, 3, 4, 5, tzinfo=UTC)


@pytest.fixture
def fixed_clock() -> Callable[[], datetime]:
    return lambda: FIXED_NOW


@pytest.fixture
def fixed_timestamp() -> str:
    return "2025-01-02T03:04:05Z"


@pytest.fixture
def memory_store() -> InMemoryIdentityStore:
    return InMemoryIdentityStore()


@pytest.fixture
def sqlite_engine(tmp_path: Path) -> Iterator[Engine]:
    engine = create_engine(f"sqlite+pysqlite:///{tmp_path / 'identities.db'}", future=True)
    create_all_tables(engine)
    try:
        yield engine
    finally:
        engine.dispose()


@pytest.fixture
def make_composite() -> Callable[..., Document]:
    """Composite XR ``v1/X/xr1`` bound to claim ``default/claim1`` unless overridden."""

    def build(
        *,
        annotations: Mapping[str, str] | None = None,
        enabled: bool = True,
        claim_name: str | None = "claim1",
        claim_namespace: str | None = "default",
        namespace: str | None = None,
        api_version: str = "v1",
        kind: str = "X",
        name: str = "xr1",
    ) -> Document:
        labels: dict[str, str] = {}
        if claim_name is not None:
            labels[ann.CLAIM_NAME_LABEL] = claim_name
        if claim_namespace is not None:
            labels[ann.CLAIM_NAMESPACE_LABEL] = claim_namespace
        metadata: dict[str, Any] = {
            "name": name,
            "labels": labels,
            "annotations": dict(annotations or {}),
        }
        if enabled:
            metadata["annotations"][ann.ENABLE_EXTERNAL_STORE] = "true"
        if namespace is not None:
            metadata["namespace"] = namespace
        return {"apiVersion": api_version, "kind": kind, "metadata": metadata}

    return build


@pytest.fixture
def make_member() -> Callable[..., Document]:
    """Managed-resource document with optional identity and deletion settings."""

    def build(
        *,
        name: str | None = None,
        external_name: str | None = None,
        deletion_policy: str | None = None,
        management_policies: list[str] | None = None,
        annotations: Mapping[str, str] | None = None,
        with_spec: bool = True,
    ) -> Document:
        metadata: dict[str, Any] = {"annotations": dict(annotations or {})}
        if name is not None:
            metadata["name"] = name
        if external_name is not None:
            metadata["annotations"][ann.EXTERNAL_NAME] = external_name
        document: Document = {
            "apiVersion": "example.org/v1",
            "kind": "Database",
            "metadata": metadata,
        }
        if with_spec:
            spec: dict[str, Any] = {"forProvider": {}}
            if deletion_policy is not None:
                spec["deletionPolicy"] = deletion_policy
            if management_policies is not None:
                spec["managementPolicies"] = list(management_policies)
            document["spec"] = spec
        return document

    return build


@pytest.fixture
def make_graphs() -> Callable[..., GraphPair]:
    def build(
        *,
        composite: Document | None = None,
        desired: Mapping[str, Document] | None = None,
        observed: Mapping[str, Document] | None = None,
        observed_composite: Document | None = None,
    ) -> GraphPair:
        return GraphPair(
            desired=ResourceGraph.from_documents(composite, dict(desired or {})),
            observed=ResourceGraph.from_documents(
                observed_composite if observed_composite is not None else composite,
                dict(observed or {}),
            ),
        )

    return build
