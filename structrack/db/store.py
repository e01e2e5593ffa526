"""Generic record store over the relational schema.

The core talks to persistence only through ``RecordStore``: flat records
(plain dicts keyed by column name) in and out, one request/response round
trip per call. Each ``SQLRecordStore`` call opens its own short session so
independent calls may run concurrently (bulk imports fan out over it).
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import AsyncGenerator, Iterable, Mapping, Sequence
from contextlib import asynccontextmanager
from typing import Any

from sqlalchemy import delete, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import sessionmaker

from structrack.db.models import Base
from structrack.errors import (
    ConflictError,
    PermissionDeniedError,
    RelationNotFoundError,
    StoreError,
)

logger = logging.getLogger(__name__)

Record = dict[str, Any]

# PostgreSQL SQLSTATE codes
UNDEFINED_TABLE = "42P01"
INSUFFICIENT_PRIVILEGE = "42501"


class RecordStore(ABC):
    """Persistence collaborator used by every store in the core."""

    @abstractmethod
    async def list(
        self,
        table: str,
        filters: Mapping[str, Any] | None = None,
        order_by: str | None = None,
    ) -> list[Record]:
        """Return all records of ``table`` matching ``filters``.

        A filter value that is a list/tuple/set matches any of its members.
        """

    @abstractmethod
    async def get(self, table: str, record_id: str) -> Record | None:
        """Return one record by primary key, or None."""

    @abstractmethod
    async def insert(self, table: str, record: Mapping[str, Any]) -> Record:
        """Insert and return the stored record (with generated id)."""

    @abstractmethod
    async def update(self, table: str, record_id: str, partial: Mapping[str, Any]) -> bool:
        """Update columns of one record; False when no row matched."""

    @abstractmethod
    async def delete(self, table: str, record_id: str) -> bool:
        """Delete one record; False when no row matched."""

    @abstractmethod
    async def delete_where(self, table: str, column: str, values: Iterable[Any]) -> int:
        """Delete every record whose ``column`` is in ``values``."""

    @abstractmethod
    async def upsert(
        self, table: str, record: Mapping[str, Any], conflict_keys: Sequence[str]
    ) -> Record:
        """Insert, or update the record sharing ``conflict_keys`` values."""

    async def list_optional(
        self,
        table: str,
        filters: Mapping[str, Any] | None = None,
        order_by: str | None = None,
    ) -> list[Record]:
        """Like ``list`` but an absent table reads as zero rows."""
        try:
            return await self.list(table, filters, order_by)
        except RelationNotFoundError:
            logger.warning(f"Table '{table}' not found; treating as empty")
            return []


def translate_error(table: str, exc: SQLAlchemyError) -> StoreError:
    """Map a driver error onto the store's error taxonomy."""
    orig = getattr(exc, "orig", None)
    code = getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)
    text = str(orig if orig is not None else exc)
    lowered = text.lower()

    if code == UNDEFINED_TABLE or "no such table" in lowered or (
        "relation" in lowered and "does not exist" in lowered
    ):
        return RelationNotFoundError(table, text)
    if code == INSUFFICIENT_PRIVILEGE or "permission denied" in lowered:
        return PermissionDeniedError(table, text)
    if isinstance(exc, IntegrityError):
        return ConflictError(table, text)
    return StoreError(table, text)


class SQLRecordStore(RecordStore):
    """RecordStore backed by the async SQLAlchemy ORM models."""

    def __init__(self, session_factory: sessionmaker):
        self._session_factory = session_factory
        self._models = {
            mapper.class_.__tablename__: mapper.class_
            for mapper in Base.registry.mappers
        }

    def _model(self, table: str) -> type[Base]:
        model = self._models.get(table)
        if model is None:
            raise RelationNotFoundError(table, "unknown table")
        return model

    @asynccontextmanager
    async def _session(self, table: str) -> AsyncGenerator[AsyncSession, None]:
        session: AsyncSession = self._session_factory()
        try:
            yield session
            await session.commit()
        except SQLAlchemyError as exc:
            await session.rollback()
            raise translate_error(table, exc) from exc
        finally:
            await session.close()

    @staticmethod
    def _to_record(obj: Base) -> Record:
        return {column.name: getattr(obj, column.name) for column in obj.__table__.columns}

    @staticmethod
    def _check_columns(model: type[Base], table: str, keys: Iterable[str]) -> None:
        unknown = set(keys) - set(model.__table__.columns.keys())
        if unknown:
            raise StoreError(table, f"unknown column(s): {', '.join(sorted(unknown))}")

    async def list(self, table, filters=None, order_by=None):
        model = self._model(table)
        stmt = select(model)
        for column_name, value in (filters or {}).items():
            self._check_columns(model, table, [column_name])
            column = getattr(model, column_name)
            if isinstance(value, (list, tuple, set, frozenset)):
                stmt = stmt.where(column.in_(list(value)))
            else:
                stmt = stmt.where(column == value)
        if order_by:
            self._check_columns(model, table, [order_by])
            stmt = stmt.order_by(getattr(model, order_by))

        async with self._session(table) as session:
            rows = (await session.execute(stmt)).scalars().all()
            return [self._to_record(row) for row in rows]

    async def get(self, table, record_id):
        model = self._model(table)
        async with self._session(table) as session:
            obj = await session.get(model, record_id)
            return self._to_record(obj) if obj is not None else None

    async def insert(self, table, record):
        model = self._model(table)
        self._check_columns(model, table, record.keys())
        async with self._session(table) as session:
            obj = model(**record)
            session.add(obj)
            await session.flush()
            await session.refresh(obj)
            return self._to_record(obj)

    async def update(self, table, record_id, partial):
        model = self._model(table)
        if not partial:
            return await self.get(table, record_id) is not None
        self._check_columns(model, table, partial.keys())
        stmt = update(model).where(model.id == record_id).values(**partial)
        async with self._session(table) as session:
            result = await session.execute(stmt)
            return result.rowcount > 0

    async def delete(self, table, record_id):
        model = self._model(table)
        async with self._session(table) as session:
            result = await session.execute(delete(model).where(model.id == record_id))
            return result.rowcount > 0

    async def delete_where(self, table, column, values):
        model = self._model(table)
        self._check_columns(model, table, [column])
        values = list(values)
        if not values:
            return 0
        stmt = delete(model).where(getattr(model, column).in_(values))
        async with self._session(table) as session:
            result = await session.execute(stmt)
            return result.rowcount

    async def upsert(self, table, record, conflict_keys):
        model = self._model(table)
        self._check_columns(model, table, list(record.keys()) + list(conflict_keys))
        missing = [key for key in conflict_keys if record.get(key) is None]
        if missing:
            raise StoreError(table, f"upsert key(s) without value: {', '.join(missing)}")

        try:
            return await self._upsert_once(table, model, record, conflict_keys)
        except ConflictError:
            # A concurrent writer inserted the same key first; the retry
            # finds its row and turns into an update.
            logger.debug(f"Upsert race on {table} {conflict_keys}; retrying as update")
            return await self._upsert_once(table, model, record, conflict_keys)

    async def _upsert_once(self, table, model, record, conflict_keys) -> Record:
        stmt = select(model)
        for key in conflict_keys:
            stmt = stmt.where(getattr(model, key) == record[key])

        async with self._session(table) as session:
            existing = (await session.execute(stmt)).scalars().first()
            if existing is None:
                obj = model(**record)
                session.add(obj)
            else:
                obj = existing
                for key, value in record.items():
                    if key != "id":
                        setattr(obj, key, value)
            await session.flush()
            await session.refresh(obj)
            return self._to_record(obj)
