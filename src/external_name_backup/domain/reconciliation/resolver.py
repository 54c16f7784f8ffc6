"""Derive the composition key and the effective policy from composite metadata.

Values are read from the observed composite first and fall back to the desired
composite, because intermediate pipeline steps do not always echo back metadata
set by earlier steps. Nothing here raises: missing input yields defaults.
"""

from __future__ import annotations

from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING, Final

from external_name_backup.domain.model import (
    UNSCOPED,
    BackupScope,
    CompositionKey,
    Policy,
    StoreOptions,
)
from external_name_backup.domain.model.policy import (
    DEFAULT_CLUSTER_ID,
    DEFAULT_CONFIGMAP_NAMESPACE,
    DEFAULT_DYNAMODB_REGION,
    DEFAULT_DYNAMODB_TABLE,
    DEFAULT_STORE_TYPE,
)

from . import annotation_keys as ann
from .documents import first_present, resolve_annotation, resolve_label

if TYPE_CHECKING:
    from .documents import ResourceDocument
    from .graph import GraphPair

log = getLogger(__name__)

_SCOPE_ALIASES: Final[dict[str, BackupScope]] = {
    "orphaned": BackupScope.ORPHANED,
    "only-orphaned": BackupScope.ORPHANED,
    "all": BackupScope.ALL,
    "all-resources": BackupScope.ALL,
}


@dataclass(frozen=True, slots=True)
class Resolution:
    composition_key: CompositionKey
    policy: Policy


def _composites(graphs: GraphPair) -> tuple[ResourceDocument | None, ResourceDocument | None]:
    """Observed composite first, desired composite as fallback."""

    return graphs.observed.composite, graphs.desired.composite


def is_enabled(graphs: GraphPair) -> bool:
    return _flag_set(ann.ENABLE_EXTERNAL_STORE, graphs)


def is_purge_requested(graphs: GraphPair) -> bool:
    return _flag_set(ann.PURGE_EXTERNAL_STORE, graphs)


def _flag_set(key: str, graphs: GraphPair) -> bool:
    for source, composite in (
        ("desired", graphs.desired.composite),
        ("observed", graphs.observed.composite),
    ):
        value = composite.annotation(key) if composite is not None else None
        if ann.is_truthy(value):
            log.info(f"Annotation {key}={value!r} set on {source} composite")
            return True
    return False


def parse_backup_scope(value: str | None) -> BackupScope:
    if value is None:
        return BackupScope.ORPHANED
    scope = _SCOPE_ALIASES.get(value.strip().lower())
    if scope is None:
        log.warning(f"Unknown backup scope {value!r}, falling back to {BackupScope.ORPHANED}")
        return BackupScope.ORPHANED
    return scope


def resolve_policy(graphs: GraphPair) -> Policy:
    composites = _composites(graphs)

    def value(key: str) -> str | None:
        return resolve_annotation(key, *composites)

    store_options = StoreOptions(
        dynamodb_table=value(ann.DYNAMODB_TABLE) or DEFAULT_DYNAMODB_TABLE,
        dynamodb_region=value(ann.DYNAMODB_REGION) or DEFAULT_DYNAMODB_REGION,
        configmap_namespace=value(ann.CONFIGMAP_NAMESPACE) or DEFAULT_CONFIGMAP_NAMESPACE,
    )
    policy = Policy(
        cluster_id=value(ann.CLUSTER_ID) or DEFAULT_CLUSTER_ID,
        store_type=(value(ann.STORE_TYPE) or DEFAULT_STORE_TYPE).strip().lower(),
        backup_scope=parse_backup_scope(
            first_present(value(ann.BACKUP_SCOPE), value(ann.OPERATION_MODE))
        ),
        require_restore=ann.is_truthy(value(ann.REQUIRE_RESTORE)),
        store_options=store_options,
    )
    log.info(
        "Configuration loaded from composite annotations: "
        f"cluster_id={policy.cluster_id}, store_type={policy.store_type}, "
        f"backup_scope={policy.backup_scope}, require_restore={policy.require_restore}"
    )
    return policy


def resolve_composition_key(graphs: GraphPair) -> CompositionKey:
    composites = _composites(graphs)
    present = [doc for doc in composites if doc is not None]

    def field(getter: str) -> str:
        return first_present(*(getattr(doc, getter) for doc in present)) or ""

    claim_namespace = resolve_label(ann.CLAIM_NAMESPACE_LABEL, *composites)
    namespace = first_present(claim_namespace, field("namespace")) or UNSCOPED
    claim_name = resolve_label(ann.CLAIM_NAME_LABEL, *composites) or UNSCOPED

    computed = CompositionKey(
        namespace=namespace,
        claim_name=claim_name,
        api_version=field("api_version"),
        kind=field("kind"),
        name=field("name"),
    )
    key = computed.with_overrides(
        namespace=resolve_annotation(ann.OVERRIDE_NAMESPACE, *composites),
        kind=resolve_annotation(ann.OVERRIDE_KIND, *composites),
    )
    if key != computed:
        log.info(f"Composition key overridden: {computed} -> {key}")
    return key


def resolve(graphs: GraphPair) -> Resolution:
    """Resolve the composition key and policy for one invocation."""

    return Resolution(
        composition_key=resolve_composition_key(graphs),
        policy=resolve_policy(graphs),
    )
