"""Identity reconciliation core.

Layered flow for one invocation:
1) resolve the composition key and policy from composite metadata
2) retire identities of members that are now deleted with their owner
3) restore stored identities into desired members
4) capture new or changed identities into the store
5) merge observed tracking annotations into the desired graph
"""

from __future__ import annotations

from .documents import ResourceDocument, first_present
from .engine import IdentityReconciler, Outcome, ReconcileResult
from .errors import ReconciliationError, RestoreRequiredError
from .graph import GraphPair, ResourceGraph
from .resolver import Resolution, is_enabled, is_purge_requested, resolve

__all__ = [
    "GraphPair",
    "IdentityReconciler",
    "Outcome",
    "ReconcileResult",
    "ReconciliationError",
    "Resolution",
    "ResourceDocument",
    "ResourceGraph",
    "RestoreRequiredError",
    "first_present",
    "is_enabled",
    "is_purge_requested",
    "resolve",
]
