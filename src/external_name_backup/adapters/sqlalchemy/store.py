"""Identity store backed by a relational table through SQLAlchemy."""

from __future__ import annotations

from contextlib import contextmanager
from datetime import UTC, datetime
from logging import getLogger
from typing import TYPE_CHECKING

from sqlalchemy import create_engine, delete, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from external_name_backup.common.storage import get_database_uri
from external_name_backup.domain.ports import StoreError

from .mappings import create_all_tables, identity_record_table

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator

    from sqlalchemy.engine import Engine

    from external_name_backup.domain.model import CompositionRecordSet, ResourceKey

log = getLogger(__name__)


def _utc_now() -> datetime:
    return datetime.now(UTC)


class SqlAlchemyIdentityStore:
    """One row per (cluster id, composition key) holding the record set as JSON."""

    def __init__(
        self,
        engine: Engine,
        *,
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        self.engine = engine
        self.session_factory: sessionmaker[Session] = sessionmaker(
            bind=engine, expire_on_commit=False
        )
        self._clock = clock

    @classmethod
    def from_uri(cls, database_uri: str | None = None) -> SqlAlchemyIdentityStore:
        uri = database_uri or get_database_uri()
        try:
            engine = create_engine(uri, future=True)
            create_all_tables(engine)
        except SQLAlchemyError as exc:
            raise StoreError(f"failed to initialise SQL identity store: {exc}") from exc
        log.info(f"Initialised SQL identity store at {engine.url.render_as_string()}")
        return cls(engine)

    def save(self, cluster_id: str, composition_key: str, records: CompositionRecordSet) -> None:
        try:
            with self.session_factory.begin() as session:
                self._write(session, cluster_id, composition_key, records)
        except IntegrityError:
            # a concurrent first save inserted the row; last writer wins
            log.info(f"{cluster_id}/{composition_key} was created concurrently, overwriting")
            with self._transaction("save") as session:
                self._write(session, cluster_id, composition_key, records)
        except SQLAlchemyError as exc:
            raise StoreError(f"SQL identity store save failed: {exc}") from exc
        log.info(f"Saved {len(records)} identities for {cluster_id}/{composition_key}")

    def _write(
        self,
        session: Session,
        cluster_id: str,
        composition_key: str,
        records: CompositionRecordSet,
    ) -> None:
        table = identity_record_table
        now = self._clock()
        updated = session.execute(
            update(table)
            .where(table.c.cluster_id == cluster_id)
            .where(table.c.composition_key == composition_key)
            .values(resources=records, updated_at=now)
        )
        if updated.rowcount == 0:
            session.execute(
                table.insert().values(
                    cluster_id=cluster_id,
                    composition_key=composition_key,
                    resources=records,
                    updated_at=now,
                )
            )

    def load(self, cluster_id: str, composition_key: str) -> CompositionRecordSet:
        table = identity_record_table
        with self._transaction("load") as session:
            records = session.execute(
                select(table.c.resources)
                .where(table.c.cluster_id == cluster_id)
                .where(table.c.composition_key == composition_key)
            ).scalar_one_or_none()
        if records is None:
            log.info(f"No identities stored for {cluster_id}/{composition_key}")
            return {}
        return dict(records)

    def delete_resource(
        self,
        cluster_id: str,
        composition_key: str,
        resource_key: ResourceKey,
    ) -> None:
        records = self.load(cluster_id, composition_key)
        if resource_key not in records:
            log.info(f"{resource_key} not stored for {composition_key}, nothing to delete")
            return
        del records[resource_key]
        if not records:
            self.purge(cluster_id, composition_key)
            return
        self.save(cluster_id, composition_key, records)

    def purge(self, cluster_id: str, composition_key: str) -> None:
        table = identity_record_table
        with self._transaction("purge") as session:
            session.execute(
                delete(table)
                .where(table.c.cluster_id == cluster_id)
                .where(table.c.composition_key == composition_key)
            )
        log.info(f"Purged {cluster_id}/{composition_key} from SQL identity store")

    @contextmanager
    def _transaction(self, operation: str) -> Iterator[Session]:
        try:
            with self.session_factory.begin() as session:
                yield session
        except SQLAlchemyError as exc:
            raise StoreError(f"SQL identity store {operation} failed: {exc}") from exc


if TYPE_CHECKING:
    from external_name_backup.domain.ports import IdentityStore

    _store_check: IdentityStore = SqlAlchemyIdentityStore.from_uri()
