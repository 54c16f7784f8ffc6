"""Port for persisting identity records per composition."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from external_name_backup.domain.model import CompositionRecordSet, ResourceKey


class StoreError(RuntimeError):
    """Raised by store backends when the underlying storage rejects or fails a call."""


@runtime_checkable
class IdentityStore(Protocol):
    """Persistence contract for identity record sets.

    ``load`` returns an empty mapping when nothing is stored; ``delete_resource``
    and ``purge`` succeed when the data is already gone. Implementations must not
    serve stale reads back to the invocation that just wrote.
    """

    def save(
        self,
        cluster_id: str,
        composition_key: str,
        records: CompositionRecordSet,
    ) -> None: ...

    def load(self, cluster_id: str, composition_key: str) -> CompositionRecordSet: ...

    def delete_resource(
        self,
        cluster_id: str,
        composition_key: str,
        resource_key: ResourceKey,
    ) -> None: ...

    def purge(self, cluster_id: str, composition_key: str) -> None: ...
