"""SQLAlchemy adapter package."""

from __future__ import annotations

from .mappings import create_all_tables, identity_record_table, metadata
from .store import SqlAlchemyIdentityStore

__all__ = [
    "SqlAlchemyIdentityStore",
    "create_all_tables",
    "identity_record_table",
    "metadata",
]
