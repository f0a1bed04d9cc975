"""SQLAlchemy implementation of the record store.

Each call opens its own session and transaction, binds a deadline to the
connection, and maps SQLAlchemy failures onto the catalog error taxonomy.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator, Sequence
from contextlib import contextmanager
from datetime import datetime

from sqlalchemy import delete, insert, update
from sqlalchemy.exc import DBAPIError, SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from reelshelf.core.errors import (
    CatalogError,
    EditConflict,
    RecordNotFound,
    StoreError,
)
from reelshelf.core.filters import FilterConfig, FilterSpec, validate_filters
from reelshelf.core.pagination import calculate_metadata
from reelshelf.core.text import tokenize
from reelshelf.core.validator import Validator, validate_record
from reelshelf.db.query import build_search_query
from reelshelf.db.schema import Record, RecordTag, RecordTitleToken
from reelshelf.models.domain import Metadata, RecordEntity
from reelshelf.store.base import RecordStore
from reelshelf.store.deadline import Deadline, bind_deadline, is_timeout

logger = logging.getLogger(__name__)

# Seconds allowed per store call unless the caller says otherwise
DEFAULT_TIMEOUT = 3.0


# ============================================================================
# Converters: SQLAlchemy -> Domain
# ============================================================================


def _decode_tags(raw: object) -> list[str]:
    if not isinstance(raw, list) or not all(isinstance(tag, str) for tag in raw):
        raise ValueError(f"tags column is not a list of strings: {raw!r}")
    return list(raw)


def _row_to_entity(row) -> RecordEntity:
    """Convert a result row (ORM object or Row) to a domain entity.

    Raises:
        ValueError: If a column holds a value of the wrong shape.
    """
    if not isinstance(row.created_at, datetime):
        raise ValueError(f"created_at is not a timestamp: {row.created_at!r}")
    return RecordEntity(
        id=int(row.id),
        created_at=row.created_at,
        title=str(row.title),
        release_year=int(row.release_year),
        duration_minutes=int(row.duration_minutes),
        tags=_decode_tags(row.tags),
        version=int(row.version),
    )


# ============================================================================
# Store
# ============================================================================


class SqlRecordStore(RecordStore):
    """Record store backed by a relational database.

    Args:
        session_factory: Creates a fresh Session per call.
        timeout: Default per-call budget in seconds.
        filter_config: Limits and sort safelist that search specs must meet.
    """

    def __init__(
        self,
        session_factory: sessionmaker,
        *,
        timeout: float = DEFAULT_TIMEOUT,
        filter_config: FilterConfig | None = None,
    ):
        self._session_factory = session_factory
        self.timeout = timeout
        self.filter_config = filter_config or FilterConfig()

    @contextmanager
    def _transaction(self, operation: str, timeout: float | None) -> Iterator[Session]:
        """Run one store call in its own transaction under a deadline.

        Commits on success, rolls back on any failure, and always closes
        the session. Driver errors become StoreError (StoreTimeout when the
        deadline cut the statement off).
        """
        deadline = Deadline(operation, self.timeout if timeout is None else timeout)
        session = self._session_factory()
        try:
            with bind_deadline(session, deadline):
                yield session
                deadline.check()
            session.commit()
        except CatalogError as e:
            session.rollback()
            if getattr(e, "timeout", False):
                logger.warning(
                    f"{operation} timed out",
                    extra={"properties": {"operation": operation, "budget_s": deadline.seconds}},
                )
            raise
        except DBAPIError as e:
            session.rollback()
            if is_timeout(e) or deadline.expired():
                logger.warning(
                    f"{operation} timed out",
                    extra={"properties": {"operation": operation, "budget_s": deadline.seconds}},
                )
                raise deadline.timeout_error() from e
            raise StoreError(f"{operation} failed: {e.orig}") from e
        except SQLAlchemyError as e:
            session.rollback()
            raise StoreError(f"{operation} failed: {e}") from e
        finally:
            session.close()

    def _validate(self, record: RecordEntity) -> None:
        v = Validator()
        validate_record(v, record)
        v.raise_if_invalid()

    @staticmethod
    def _write_index_rows(session: Session, record_id: int, title: str, tags: Sequence[str]) -> None:
        """Replace the tag and title-token index rows of a record."""
        session.execute(delete(RecordTag).where(RecordTag.record_id == record_id))
        session.execute(delete(RecordTitleToken).where(RecordTitleToken.record_id == record_id))
        if tags:
            session.execute(
                insert(RecordTag), [{"record_id": record_id, "tag": tag} for tag in tags]
            )
        tokens = tokenize(title)
        if tokens:
            session.execute(
                insert(RecordTitleToken),
                [{"record_id": record_id, "token": token} for token in tokens],
            )

    def insert(self, record: RecordEntity, *, timeout: float | None = None) -> RecordEntity:
        self._validate(record)

        with self._transaction("insert", timeout) as session:
            row = Record(
                title=record.title,
                release_year=record.release_year,
                duration_minutes=record.duration_minutes,
                tags=list(record.tags),
            )
            session.add(row)
            session.flush()
            self._write_index_rows(session, row.id, row.title, row.tags)
            created = _row_to_entity(row)

        logger.info(
            f"Inserted record #{created.id}",
            extra={"properties": {"record_id": created.id, "version": created.version}},
        )
        return created

    def get(self, record_id: int, *, timeout: float | None = None) -> RecordEntity:
        if record_id < 1:
            raise RecordNotFound(record_id)

        with self._transaction("get", timeout) as session:
            row = session.get(Record, record_id)
            if row is None:
                raise RecordNotFound(record_id)
            try:
                found = _row_to_entity(row)
            except (TypeError, ValueError) as e:
                raise StoreError(f"get failed: record {record_id} is undecodable: {e}") from e

        return found

    def update(self, record: RecordEntity, *, timeout: float | None = None) -> RecordEntity:
        self._validate(record)

        with self._transaction("update", timeout) as session:
            stmt = (
                update(Record)
                .where(Record.id == record.id, Record.version == record.version)
                .values(
                    title=record.title,
                    release_year=record.release_year,
                    duration_minutes=record.duration_minutes,
                    tags=list(record.tags),
                    version=Record.version + 1,
                )
                .returning(Record.version, Record.created_at)
                .execution_options(synchronize_session=False)
            )
            stored = session.execute(stmt).one_or_none()
            if stored is None:
                logger.info(
                    f"Edit conflict on record #{record.id}",
                    extra={"properties": {"record_id": record.id, "version": record.version}},
                )
                raise EditConflict(record.id, record.version)
            self._write_index_rows(session, record.id, record.title, record.tags)
            new_version, created_at = stored

        logger.info(
            f"Updated record #{record.id} to version {new_version}",
            extra={"properties": {"record_id": record.id, "version": new_version}},
        )
        return RecordEntity(
            id=record.id,
            created_at=created_at,
            title=record.title,
            release_year=record.release_year,
            duration_minutes=record.duration_minutes,
            tags=list(record.tags),
            version=new_version,
        )

    def delete(self, record_id: int, *, timeout: float | None = None) -> None:
        if record_id < 1:
            raise RecordNotFound(record_id)

        with self._transaction("delete", timeout) as session:
            session.execute(delete(RecordTag).where(RecordTag.record_id == record_id))
            session.execute(delete(RecordTitleToken).where(RecordTitleToken.record_id == record_id))
            result = session.execute(
                delete(Record)
                .where(Record.id == record_id)
                .execution_options(synchronize_session=False)
            )
            affected = result.rowcount
            if affected is None or affected < 0:
                raise StoreError(f"delete failed: affected row count unavailable for record {record_id}")
            if affected == 0:
                raise RecordNotFound(record_id)

        logger.info(f"Deleted record #{record_id}", extra={"properties": {"record_id": record_id}})

    def search(
        self,
        title: str,
        tags: Sequence[str],
        spec: FilterSpec,
        *,
        timeout: float | None = None,
    ) -> tuple[list[RecordEntity], Metadata]:
        v = Validator()
        validate_filters(v, spec, self.filter_config)
        v.raise_if_invalid()

        query = build_search_query(title, tags, spec, self.filter_config.sort_safelist)

        with self._transaction("search", timeout) as session:
            total_records = 0
            records: list[RecordEntity] = []
            for row in session.execute(query):
                try:
                    entity = _row_to_entity(row)
                except (TypeError, ValueError) as e:
                    raise StoreError(f"search failed: undecodable row: {e}") from e
                total_records = row.total_records
                records.append(entity)

        metadata = calculate_metadata(total_records, spec.page, spec.page_size)
        logger.debug(
            f"Search returned {len(records)} of {total_records} records",
            extra={"properties": {"page": spec.page, "page_size": spec.page_size, "sort": spec.sort}},
        )
        return records, metadata
