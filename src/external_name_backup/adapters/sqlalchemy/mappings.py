"""SQLAlchemy table metadata for persisted identity records."""

from __future__ import annotations

import json
import logging
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any, cast

from sqlalchemy import (
    Column,
    DateTime,
    Dialect,
    MetaData,
    PrimaryKeyConstraint,
    String,
    Table,
    Text,
    TypeDecorator,
)

from external_name_backup.domain.model import (
    CompositionRecordSet,
    record_set_from_mapping,
    record_set_to_mapping,
)

if TYPE_CHECKING:
    from sqlalchemy.engine import Engine

log = logging.getLogger(__name__)


class UTCDateTime(TypeDecorator[datetime]):
    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None:
            return None
        if value.tzinfo is None:
            value = value.replace(tzinfo=UTC)
        return value.astimezone(UTC)

    def process_result_value(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None:
            return None
        return value if value.tzinfo else value.replace(tzinfo=UTC)


class RecordSetType(TypeDecorator[CompositionRecordSet]):
    """Stores a composition's record set as a JSON object of ResourceKey -> fields."""

    impl = Text
    cache_ok = True

    def process_bind_param(
        self, value: CompositionRecordSet | None, dialect: Dialect
    ) -> str | None:
        _ = dialect
        if value is None:
            return None
        return json.dumps(record_set_to_mapping(value), sort_keys=True)

    def process_result_value(self, value: str | None, dialect: Dialect) -> CompositionRecordSet:
        _ = dialect
        if value is None:
            return {}
        loaded = json.loads(value)
        if not isinstance(loaded, dict):
            return {}
        return record_set_from_mapping(cast(dict[str, Any], loaded))


metadata = MetaData(
    naming_convention={
        "ix": "ix_%(column_0_label)s",
        "uq": "uq_%(table_name)s_%(column_0_label)s",
        "pk": "pk_%(table_name)s",
    }
)

identity_record_table = Table(
    "identity_records",
    metadata,
    Column("cluster_id", String(253), nullable=False),
    Column("composition_key", String(1024), nullable=False),
    Column("resources", RecordSetType, nullable=False),
    Column("updated_at", UTCDateTime, nullable=False),
    PrimaryKeyConstraint("cluster_id", "composition_key"),
)


def create_all_tables(engine: Engine) -> None:
    """Create the identity tables if they do not exist yet."""

    log.info("Creating identity tables")
    metadata.create_all(engine, checkfirst=True)
