"""Application orchestration entry points."""

from __future__ import annotations

from collections.abc import Callable
from logging import getLogger
from typing import TYPE_CHECKING, Protocol, runtime_checkable

from external_name_backup.adapters.crossplane import (
    RunFunctionRequest,
    RunFunctionResponse,
    fatal_response,
    request_to_graphs,
    success_response,
)
from external_name_backup.adapters.factory import CredentialData, build_identity_store
from external_name_backup.config import ConfigurationError
from external_name_backup.domain.ports import IdentityStore, StoreError
from external_name_backup.domain.reconciliation import (
    IdentityReconciler,
    Outcome,
    ReconciliationError,
    is_enabled,
    resolve,
)
from external_name_backup.domain.reconciliation.engine import utc_now

if TYPE_CHECKING:
    from datetime import datetime

    from external_name_backup.domain.model import Policy

StoreFactory = Callable[["Policy", CredentialData], IdentityStore]

log = getLogger(__name__)


@runtime_checkable
class _Closeable(Protocol):
    def close(self) -> None: ...


def run_function(
    request: RunFunctionRequest,
    *,
    store: IdentityStore | None = None,
    store_factory: StoreFactory = build_identity_store,
    clock: Callable[[], datetime] = utc_now,
) -> RunFunctionResponse:
    """Handle one invocation and build the runner response.

    ``store`` bypasses the factory; a store built here is closed afterwards.
    """

    graphs = request_to_graphs(request)
    processed = (
        f"Processed {len(graphs.desired.resources)} desired and "
        f"{len(graphs.observed.resources)} observed resources"
    )
    log.info(f"Running function for tag {request.meta.tag!r}: {processed}")

    if not is_enabled(graphs):
        return success_response(request, graphs.desired, f"{processed} (external store disabled)")

    resolution = resolve(graphs)
    owned = store is None
    if store is None:
        try:
            store = store_factory(resolution.policy, request.credential_data())
        except ConfigurationError as exc:
            return fatal_response(request, f"invalid external store configuration: {exc}")
        except StoreError as exc:
            return fatal_response(
                request, f"failed to initialize {resolution.policy.store_type} store: {exc}"
            )

    try:
        result = IdentityReconciler(store, clock=clock).reconcile(graphs, resolution=resolution)
    except StoreError as exc:
        return fatal_response(request, f"external store operation failed: {exc}")
    except ReconciliationError as exc:
        return fatal_response(request, str(exc))
    finally:
        if owned and isinstance(store, _Closeable):
            store.close()

    log.info(f"Finished: {result.summary()}")
    if result.outcome is Outcome.PURGED:
        return success_response(
            request,
            result.desired,
            f"Purged external store for composition {result.composition_key!r}",
        )
    return success_response(request, result.desired, f"{processed}; {result.summary()}")
