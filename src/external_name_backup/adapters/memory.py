"""In-process identity store, used for tests and local runs."""

from __future__ import annotations

import threading
from collections import Counter
from logging import getLogger
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from external_name_backup.domain.model import (
        CompositionRecordSet,
        IdentityRecord,
        ResourceKey,
    )

log = getLogger(__name__)


class InMemoryIdentityStore:
    """Dict-backed store keyed by cluster id, then composition key.

    Reads and writes copy the record sets so callers never share state with the
    store. ``calls`` counts invocations per operation.
    """

    def __init__(self) -> None:
        self._data: dict[str, dict[str, dict[ResourceKey, IdentityRecord]]] = {}
        self._lock = threading.RLock()
        self.calls: Counter[str] = Counter()

    def save(self, cluster_id: str, composition_key: str, records: CompositionRecordSet) -> None:
        with self._lock:
            self.calls["save"] += 1
            self._data.setdefault(cluster_id, {})[composition_key] = dict(records)
        log.debug("Saved %d identities for %s/%s", len(records), cluster_id, composition_key)

    def load(self, cluster_id: str, composition_key: str) -> CompositionRecordSet:
        with self._lock:
            self.calls["load"] += 1
            return dict(self._data.get(cluster_id, {}).get(composition_key, {}))

    def delete_resource(
        self,
        cluster_id: str,
        composition_key: str,
        resource_key: ResourceKey,
    ) -> None:
        with self._lock:
            self.calls["delete_resource"] += 1
            composition = self._data.get(cluster_id, {}).get(composition_key)
            if composition is not None:
                composition.pop(resource_key, None)

    def purge(self, cluster_id: str, composition_key: str) -> None:
        with self._lock:
            self.calls["purge"] += 1
            self._data.get(cluster_id, {}).pop(composition_key, None)

    def contains(self, cluster_id: str, composition_key: str) -> bool:
        with self._lock:
            return composition_key in self._data.get(cluster_id, {})


if TYPE_CHECKING:
    from external_name_backup.domain.ports import IdentityStore

    _store_check: IdentityStore = InMemoryIdentityStore()
