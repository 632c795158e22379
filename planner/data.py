"""
Table-scoped data access for the planner views.

Every view talks to a DataClient: an in-memory implementation for tests and
local runs, a SQLAlchemy-backed one for a database we own, and a REST client
for a hosted backend (see planner.hosted).
"""

from __future__ import annotations

import asyncio
import copy
import itertools
import uuid
from dataclasses import dataclass
from datetime import date, datetime, timezone
from typing import Dict, Iterable, Optional, Protocol

from sqlalchemy import (
    Boolean,
    Column,
    Date,
    DateTime,
    Float,
    String,
    Text,
    create_engine,
    delete,
    nulls_last,
    select,
    update,
)
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from planner.errors import DataError
from shared.constants import (
    EXPENSES_TABLE,
    GALLERY_ITEMS_TABLE,
    GUESTS_TABLE,
    TASKS_TABLE,
)

TABLES = (EXPENSES_TABLE, TASKS_TABLE, GUESTS_TABLE, GALLERY_ITEMS_TABLE)


@dataclass(frozen=True)
class Order:
    column: str
    ascending: bool = True


class DataClient(Protocol):
    """Interface for table-scoped reads and writes."""

    async def select(
        self,
        table: str,
        *,
        columns: Optional[Iterable[str]] = None,
        filters: Optional[dict] = None,
        order: Optional[Order] = None,
    ) -> list[dict]:
        ...

    async def insert(self, table: str, rows: list[dict]) -> list[dict]:
        ...

    async def update(
        self, table: str, patch: dict, match_id: str, *, user_id: str | None = None
    ) -> list[dict]:
        ...

    async def delete(
        self, table: str, match_id: str, *, user_id: str | None = None
    ) -> int:
        ...

    def bind(self, access_token: str | None) -> "DataClient":
        """Return a client whose requests carry the given user's token."""
        ...


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def check_table(table: str) -> None:
    if table not in TABLES:
        raise DataError(f'relation "{table}" does not exist', code="42P01")


def _sort_key(value, seq: int):
    if isinstance(value, datetime):
        return (0, value.timestamp(), seq)
    if isinstance(value, date):
        return (0, value.isoformat(), seq)
    return (0, value, seq)


class InMemoryDataClient:
    """Simple in-memory table store for development and tests."""

    def __init__(self):
        self.tables: Dict[str, Dict[str, dict]] = {name: {} for name in TABLES}
        self._seq: Dict[str, int] = {}
        self._counter = itertools.count()

    def bind(self, access_token: str | None) -> "InMemoryDataClient":
        return self

    def reset(self) -> None:
        """Clear all stored rows (useful in tests)."""
        for rows in self.tables.values():
            rows.clear()
        self._seq.clear()

    async def select(
        self,
        table: str,
        *,
        columns: Optional[Iterable[str]] = None,
        filters: Optional[dict] = None,
        order: Optional[Order] = None,
    ) -> list[dict]:
        check_table(table)
        rows = [
            row
            for row in self.tables[table].values()
            if all(row.get(key) == value for key, value in (filters or {}).items())
        ]
        if order:
            present = [row for row in rows if row.get(order.column) is not None]
            missing = [row for row in rows if row.get(order.column) is None]
            present.sort(
                key=lambda row: _sort_key(row.get(order.column), self._seq[row["id"]]),
                reverse=not order.ascending,
            )
            missing.sort(key=lambda row: self._seq[row["id"]])
            rows = present + missing
        if columns:
            wanted = list(columns)
            return [{key: row.get(key) for key in wanted} for row in rows]
        return [copy.deepcopy(row) for row in rows]

    async def insert(self, table: str, rows: list[dict]) -> list[dict]:
        check_table(table)
        inserted = []
        for values in rows:
            now = utcnow()
            row = {"created_at": now, "updated_at": now, **values}
            row["id"] = uuid.uuid4().hex
            self.tables[table][row["id"]] = row
            self._seq[row["id"]] = next(self._counter)
            inserted.append(copy.deepcopy(row))
        return inserted

    def _matching(self, table: str, match_id: str, user_id: str | None) -> list[dict]:
        row = self.tables[table].get(match_id)
        if row is None or (user_id is not None and row.get("user_id") != user_id):
            return []
        return [row]

    async def update(
        self, table: str, patch: dict, match_id: str, *, user_id: str | None = None
    ) -> list[dict]:
        check_table(table)
        updated = []
        for row in self._matching(table, match_id, user_id):
            row.update({k: v for k, v in patch.items() if k != "id"})
            updated.append(copy.deepcopy(row))
        return updated

    async def delete(
        self, table: str, match_id: str, *, user_id: str | None = None
    ) -> int:
        check_table(table)
        matched = self._matching(table, match_id, user_id)
        for row in matched:
            del self.tables[table][row["id"]]
            self._seq.pop(row["id"], None)
        return len(matched)


def db_error(exc: SQLAlchemyError) -> DataError:
    """Translate a SQLAlchemy failure into the DataError the views report."""
    orig = getattr(exc, "orig", None)
    return DataError(str(orig or exc), code=getattr(orig, "pgcode", None))


class SqlDataClient:
    """
    SQLAlchemy-backed implementation. Accepts any SQLAlchemy URL (e.g., Postgres or SQLite for tests).

    Statements run in a worker thread so the event loop stays free; extra
    keyword arguments go to `create_engine` (tests pass a StaticPool).
    """

    def __init__(self, database_url: str, **engine_options):
        if not database_url:
            raise ValueError("DATABASE_URL is required for SqlDataClient")
        options = {"pool_pre_ping": True, "pool_recycle": 1800, **engine_options}
        self.engine = create_engine(database_url, future=True, **options)
        self.Session = sessionmaker(
            bind=self.engine, class_=Session, expire_on_commit=False, future=True
        )
        Base.metadata.create_all(self.engine)

    def bind(self, access_token: str | None) -> "SqlDataClient":
        return self

    def _row_class(self, table: str):
        check_table(table)
        return ROW_CLASSES[table]

    def _column(self, row_class, name: str):
        column = row_class.__table__.columns.get(name)
        if column is None:
            raise DataError(
                f'column {row_class.__tablename__}.{name} does not exist', code="42703"
            )
        return column

    def _coerce(self, row_class, values: dict) -> dict:
        coerced = {}
        for key, value in values.items():
            column = self._column(row_class, key)
            try:
                if isinstance(value, str) and value and isinstance(column.type, DateTime):
                    value = datetime.fromisoformat(value)
                elif isinstance(value, str) and isinstance(column.type, Date):
                    value = date.fromisoformat(value) if value else None
            except ValueError as exc:
                raise DataError(f"invalid value for {key}: {value}", code="22007") from exc
            coerced[key] = value
        return coerced

    def _to_dict(self, row, columns: Optional[list[str]] = None) -> dict:
        names = columns or [c.name for c in row.__table__.columns]
        return {name: getattr(row, name) for name in names}

    async def _run(self, work, *args):
        try:
            return await asyncio.to_thread(work, *args)
        except SQLAlchemyError as exc:
            raise db_error(exc) from exc

    async def select(
        self,
        table: str,
        *,
        columns: Optional[Iterable[str]] = None,
        filters: Optional[dict] = None,
        order: Optional[Order] = None,
    ) -> list[dict]:
        row_class = self._row_class(table)
        stmt = select(row_class)
        for key, value in (filters or {}).items():
            stmt = stmt.where(self._column(row_class, key) == value)
        if order:
            column = self._column(row_class, order.column)
            direction = column.asc() if order.ascending else column.desc()
            stmt = stmt.order_by(nulls_last(direction), row_class.created_at.asc())
        wanted = list(columns) if columns else None
        for name in wanted or []:
            self._column(row_class, name)
        return await self._run(self._select, stmt, wanted)

    def _select(self, stmt, wanted: Optional[list[str]]) -> list[dict]:
        with self.Session() as session:
            rows = session.execute(stmt).scalars().all()
            return [self._to_dict(row, wanted) for row in rows]

    async def insert(self, table: str, rows: list[dict]) -> list[dict]:
        row_class = self._row_class(table)
        prepared = [self._coerce(row_class, values) for values in rows]
        return await self._run(self._insert, row_class, prepared)

    def _insert(self, row_class, rows: list[dict]) -> list[dict]:
        with self.Session() as session:
            created = []
            for values in rows:
                now = utcnow()
                data = {"created_at": now, "updated_at": now, **values}
                data["id"] = uuid.uuid4().hex
                row = row_class(**data)
                session.add(row)
                created.append(row)
            session.commit()
            return [self._to_dict(row) for row in created]

    async def update(
        self, table: str, patch: dict, match_id: str, *, user_id: str | None = None
    ) -> list[dict]:
        row_class = self._row_class(table)
        values = self._coerce(row_class, {k: v for k, v in patch.items() if k != "id"})
        stmt = update(row_class).where(row_class.id == match_id)
        if user_id is not None:
            stmt = stmt.where(row_class.user_id == user_id)
        return await self._run(self._update, row_class, stmt.values(**values), match_id)

    def _update(self, row_class, stmt, match_id: str) -> list[dict]:
        with self.Session() as session:
            result = session.execute(stmt)
            session.commit()
            if not result.rowcount:
                return []
            row = session.get(row_class, match_id)
            return [self._to_dict(row)] if row else []

    async def delete(
        self, table: str, match_id: str, *, user_id: str | None = None
    ) -> int:
        row_class = self._row_class(table)
        stmt = delete(row_class).where(row_class.id == match_id)
        if user_id is not None:
            stmt = stmt.where(row_class.user_id == user_id)
        return await self._run(self._delete, stmt)

    def _delete(self, stmt) -> int:
        with self.Session() as session:
            result = session.execute(stmt)
            session.commit()
            return result.rowcount or 0


Base = declarative_base()


class UserRow(Base):
    __tablename__ = "users"

    id = Column(String, primary_key=True)
    email = Column(String, nullable=False, unique=True, index=True)
    password_hash = Column(String, nullable=False)
    full_name = Column(String, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)


class ExpenseRow(Base):
    __tablename__ = EXPENSES_TABLE

    id = Column(String, primary_key=True)
    user_id = Column(String, nullable=True, index=True)
    category = Column(String, nullable=False)
    item = Column(String, nullable=False)
    estimated = Column(Float, nullable=False, default=0.0)
    actual = Column(Float, nullable=False, default=0.0)
    status = Column(String, nullable=False, default="Pending")
    created_at = Column(DateTime(timezone=True), nullable=False)
    updated_at = Column(DateTime(timezone=True), nullable=False)


class TaskRow(Base):
    __tablename__ = TASKS_TABLE

    id = Column(String, primary_key=True)
    user_id = Column(String, nullable=True, index=True)
    title = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    due_date = Column(Date, nullable=True)
    priority = Column(String, nullable=False, default="Medium Priority")
    category = Column(String, nullable=False, default="General")
    completed = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), nullable=False)
    updated_at = Column(DateTime(timezone=True), nullable=False)


class GuestRow(Base):
    __tablename__ = GUESTS_TABLE

    id = Column(String, primary_key=True)
    user_id = Column(String, nullable=True, index=True)
    name = Column(String, nullable=False, default="")
    rsvp_status = Column(String, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False)
    updated_at = Column(DateTime(timezone=True), nullable=False)


class GalleryItemRow(Base):
    __tablename__ = GALLERY_ITEMS_TABLE

    id = Column(String, primary_key=True)
    user_id = Column(String, nullable=True, index=True)
    title = Column(String, nullable=False)
    image_url = Column(String, nullable=False)
    category = Column(String, nullable=False)
    is_favorite = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), nullable=False)
    updated_at = Column(DateTime(timezone=True), nullable=False)


ROW_CLASSES = {
    EXPENSES_TABLE: ExpenseRow,
    TASKS_TABLE: TaskRow,
    GUESTS_TABLE: GuestRow,
    GALLERY_ITEMS_TABLE: GalleryItemRow,
}
