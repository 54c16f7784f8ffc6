"""Identity reconciliation engine.

One call to ``IdentityReconciler.reconcile`` handles one orchestrator invocation:

0) gate: do nothing unless the composite opts in; purge on request
1) retire: forget identities of members that are now deleted with their owner
2) restore: write stored identities into desired members that lack them
3) capture: persist identities observed for the first time or changed since
4) merge: carry observed tracking annotations over into the desired graph

All mutations happen on a copy of the incoming graphs; the copy's desired graph is
only handed back when every phase succeeded.
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import StrEnum
from logging import getLogger
from typing import TYPE_CHECKING

from external_name_backup.domain.model import (
    CompositionRecordSet,
    IdentityField,
    IdentityRecord,
    merge_record_sets,
)
from external_name_backup.domain.ports import StoreError

from .eligibility import is_in_scope, is_retirement_due
from .errors import RestoreRequiredError
from .resolver import Resolution, is_enabled, is_purge_requested, resolve
from .tracking import (
    identity_value,
    merge_observed_tracking,
    resolve_identity,
    stamp_capture,
    stamp_restore,
    stamp_retirement,
    strip_capture_tracking,
    tracked_fields,
    tracked_value,
)

if TYPE_CHECKING:
    from collections.abc import Callable

    from external_name_backup.domain.model import Policy
    from external_name_backup.domain.ports import IdentityStore

    from .graph import GraphPair, ResourceGraph

log = getLogger(__name__)


def utc_now() -> datetime:
    return datetime.now(UTC)


def format_timestamp(value: datetime) -> str:
    """RFC 3339 with second precision, always in UTC."""

    return value.astimezone(UTC).strftime("%Y-%m-%dT%H:%M:%SZ")


class Outcome(StrEnum):
    DISABLED = "disabled"
    PURGED = "purged"
    RECONCILED = "reconciled"


@dataclass(slots=True)
class ReconcileResult:
    """What one invocation did, plus the desired graph to hand back."""

    outcome: Outcome
    desired: ResourceGraph
    composition_key: str | None = None
    retired: list[str] = field(default_factory=list)
    restored: dict[str, list[IdentityField]] = field(default_factory=dict)
    captured: CompositionRecordSet = field(default_factory=dict)
    saved: bool = False

    def summary(self) -> str:
        match self.outcome:
            case Outcome.DISABLED:
                return "external store disabled"
            case Outcome.PURGED:
                return f"purged external store for composition {self.composition_key!r}"
            case Outcome.RECONCILED:
                return (
                    f"composition {self.composition_key!r}: "
                    f"{len(self.retired)} retired, {len(self.restored)} restored, "
                    f"{len(self.captured)} captured"
                )


@dataclass(slots=True)
class IdentityReconciler:
    """Run backup/restore of member identities against an injected store."""

    store: IdentityStore
    clock: Callable[[], datetime] = utc_now

    def reconcile(
        self,
        graphs: GraphPair,
        *,
        resolution: Resolution | None = None,
    ) -> ReconcileResult:
        if not is_enabled(graphs):
            log.info("Skipping external store operations: not enabled on the composite")
            return ReconcileResult(outcome=Outcome.DISABLED, desired=graphs.desired)

        resolution = resolution or resolve(graphs)
        policy = resolution.policy
        composition_key = str(resolution.composition_key)

        if is_purge_requested(graphs):
            log.info(f"Purging external store for composition {composition_key}")
            self.store.purge(policy.cluster_id, composition_key)
            return ReconcileResult(
                outcome=Outcome.PURGED,
                desired=graphs.desired,
                composition_key=composition_key,
            )

        working = graphs.deep_copy()
        invocation = _Invocation(
            store=self.store,
            graphs=working,
            policy=policy,
            composition_key=composition_key,
            timestamp=format_timestamp(self.clock()),
            records=self.store.load(policy.cluster_id, composition_key),
        )
        log.info(f"Loaded {len(invocation.records)} stored identities for {composition_key}")

        invocation.retire()
        invocation.restore()
        if policy.require_restore:
            log.info("Require-restore mode: skipping capture")
        else:
            invocation.capture()
        invocation.merge()

        return ReconcileResult(
            outcome=Outcome.RECONCILED,
            desired=working.desired,
            composition_key=composition_key,
            retired=sorted(invocation.retired),
            restored=dict(invocation.restored),
            captured=invocation.captured,
            saved=invocation.saved,
        )


@dataclass(slots=True)
class _Invocation:
    store: IdentityStore
    graphs: GraphPair
    policy: Policy
    composition_key: str
    timestamp: str
    records: CompositionRecordSet
    retired: set[str] = field(default_factory=set)
    restored: defaultdict[str, list[IdentityField]] = field(
        default_factory=lambda: defaultdict(list)
    )
    captured: CompositionRecordSet = field(default_factory=dict)
    saved: bool = False

    @property
    def cluster_id(self) -> str:
        return self.policy.cluster_id

    def retire(self) -> None:
        for name, desired in self.graphs.desired.resources.items():
            observed = self.graphs.observed.member(name)
            fields = tracked_fields(desired, observed)
            if not fields:
                continue
            if not is_retirement_due(name, desired, observed):
                continue

            log.info(f"Retiring stored identity of {name} ({', '.join(fields)})")
            try:
                self.store.delete_resource(self.cluster_id, self.composition_key, name)
            except StoreError as exc:
                log.warning(f"Failed to delete {name} from external store: {exc}")

            self.records.pop(name, None)
            strip_capture_tracking(observed)
            strip_capture_tracking(desired)
            for identity_field in fields:
                stamp_retirement(desired, identity_field, self.timestamp)
            self.retired.add(name)

        if self.retired and not self.records:
            log.info(f"No stored identities left, purging composition {self.composition_key}")
            try:
                self.store.purge(self.cluster_id, self.composition_key)
            except StoreError as exc:
                log.warning(f"Failed to purge empty composition {self.composition_key}: {exc}")

    def restore(self) -> None:
        require_restore = self.policy.require_restore
        if require_restore and not self.records:
            raise RestoreRequiredError(self.composition_key)

        for name, desired in self.graphs.desired.resources.items():
            if name in self.retired:
                continue
            observed = self.graphs.observed.member(name)

            wanted = [IdentityField.RESOURCE_NAME]
            if require_restore or is_in_scope(name, self.policy.backup_scope, desired, observed):
                wanted.append(IdentityField.EXTERNAL_NAME)
            missing = [f for f in wanted if resolve_identity(f, desired, observed) is None]
            if not missing:
                continue

            record = self.records.get(name)
            if record is None:
                if require_restore:
                    raise RestoreRequiredError(self.composition_key, name)
                log.info(f"No stored identity for {name} in {self.composition_key}")
                continue

            for identity_field in missing:
                value = record.get(identity_field)
                if value is None:
                    continue
                log.info(f"Restoring {identity_field} of {name}: {value}")
                stamp_restore(desired, identity_field, value, self.timestamp)
                self.restored[name].append(identity_field)

    def capture(self) -> None:
        batch: CompositionRecordSet = {}
        for name, observed in self.graphs.observed.resources.items():
            if name in self.retired:
                continue
            desired = self.graphs.desired.member(name)
            # a capture here would be retired again on the next call
            if is_retirement_due(name, desired, observed):
                log.debug("Skipping capture of %s: deleted together with its owner", name)
                continue
            in_scope = is_in_scope(name, self.policy.backup_scope, desired, observed)

            candidate = IdentityRecord()
            for identity_field in IdentityField:
                if identity_field is IdentityField.EXTERNAL_NAME and not in_scope:
                    continue
                value = identity_value(observed, identity_field)
                if value is None:
                    continue
                if tracked_value(identity_field, desired, observed) == value:
                    log.debug("%s of %s already stored, skipping", identity_field, name)
                    continue
                candidate = candidate.with_value(identity_field, value)

            if not candidate.is_empty:
                log.info(f"Marked identity of {name} for storage: {candidate}")
                batch[name] = candidate

        if not batch:
            log.info("No new or changed identities to store")
            return

        merged = merge_record_sets(self.records, batch)
        self.store.save(self.cluster_id, self.composition_key, merged)
        self.records = merged
        self.captured = batch
        self.saved = True
        log.info(
            f"Saved identities for {self.composition_key}: "
            f"new={len(batch)}, total={len(merged)}"
        )

        for name, record in batch.items():
            desired = self.graphs.desired.member(name)
            if desired is None:
                continue
            for identity_field in IdentityField:
                value = record.get(identity_field)
                if value is not None:
                    stamp_capture(desired, identity_field, value, self.timestamp)

    def merge(self) -> None:
        for name, desired in self.graphs.desired.resources.items():
            merge_observed_tracking(desired, self.graphs.observed.member(name))
