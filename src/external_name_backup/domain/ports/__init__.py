"""Domain port definitions for adapters."""

from __future__ import annotations

from .store import IdentityStore, StoreError

__all__ = [
    "IdentityStore",
    "StoreError",
]
