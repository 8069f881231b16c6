"""Saved-advisory storage.

``SqlAdvisoryStore`` writes to the ``advisories`` table through SQLAlchemy Core;
``InMemoryAdvisoryStore`` keeps a process-local list for development. Which one
is used depends on whether ``DATABASE_URL`` is configured.
"""
from abc import ABC, abstractmethod
from datetime import datetime, timezone
import json
import logging
import threading

from sqlalchemy import (
    Column, DateTime, MetaData, String, Table, Text, create_engine, insert, select,
)
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from krushi_sathi.core.config import settings
from krushi_sathi.core.errors import DatabaseNotConfiguredError, PersistenceError
from krushi_sathi.models.advisory import AdvisoryRecord

logger = logging.getLogger(__name__)

metadata = MetaData()

advisories_table = Table(
    "advisories",
    metadata,
    Column("id", String(64), primary_key=True),
    Column("user_id", String(255), nullable=False, index=True),
    Column("title", Text, nullable=False),
    Column("body", Text, nullable=False),
    Column("steps", Text, nullable=False), # JSON array
    Column("lang", String(8), nullable=False),
    Column("source", String(16), nullable=False, server_default="template"),
    Column("created_at", DateTime(timezone=True), nullable=False),
)


class AdvisoryStore(ABC):
    @abstractmethod
    def save(self, record: AdvisoryRecord) -> None:
        ...

    @abstractmethod
    def list(self, user_id: str) -> list[AdvisoryRecord]:
        """All records for ``user_id``, newest first."""

    def ensure_schema(self) -> None:
        pass


class InMemoryAdvisoryStore(AdvisoryStore):
    def __init__(self):
        self._records: list[AdvisoryRecord] = []
        self._lock = threading.Lock()

    def save(self, record: AdvisoryRecord) -> None:
        with self._lock:
            self._records.append(record)

    def list(self, user_id: str) -> list[AdvisoryRecord]:
        with self._lock:
            # Reverse insertion order first so equal timestamps stay newest-first
            matching = [r for r in reversed(self._records) if r.userId == user_id]
        return sorted(matching, key=lambda r: r.createdAt, reverse=True)


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes
    return value.replace(tzinfo=timezone.utc) if value.tzinfo is None else value


class SqlAdvisoryStore(AdvisoryStore):
    def __init__(self, engine: Engine):
        self.engine = engine
        self._schema_ready = False

    @classmethod
    def from_url(cls, url: str) -> "SqlAdvisoryStore":
        return cls(create_engine(url, pool_pre_ping=True))

    def ensure_schema(self) -> None:
        if self._schema_ready:
            return
        try:
            metadata.create_all(self.engine, checkfirst=True)
        except SQLAlchemyError as e:
            logger.error(f"Failed to create advisories table: {e}", exc_info=True)
            raise PersistenceError("Failed to prepare advisory storage") from e
        self._schema_ready = True

    def save(self, record: AdvisoryRecord) -> None:
        self.ensure_schema()
        row = {
            "id": record.id,
            "user_id": record.userId,
            "title": record.title,
            "body": record.text,
            "steps": json.dumps(record.steps, ensure_ascii=False),
            "lang": record.lang,
            "source": record.source,
            "created_at": record.createdAt,
        }
        try:
            with self.engine.begin() as conn:
                conn.execute(insert(advisories_table).values(**row))
        except SQLAlchemyError as e:
            logger.error(f"Failed to save advisory {record.id}: {e}", exc_info=True)
            raise PersistenceError("Failed to save advisory") from e

    def list(self, user_id: str) -> list[AdvisoryRecord]:
        self.ensure_schema()
        query = (
            select(advisories_table)
            .where(advisories_table.c.user_id == user_id)
            .order_by(advisories_table.c.created_at.desc())
        )
        try:
            with self.engine.connect() as conn:
                rows = conn.execute(query).mappings().all()
        except SQLAlchemyError as e:
            logger.error(f"Failed to list advisories for {user_id}: {e}", exc_info=True)
            raise PersistenceError("Failed to list advisories") from e
        return [self._to_record(row) for row in rows]

    @staticmethod
    def _to_record(row) -> AdvisoryRecord:
        steps = row["steps"]
        if isinstance(steps, str):
            steps = json.loads(steps)
        return AdvisoryRecord(
            id=row["id"],
            userId=row["user_id"],
            title=row["title"],
            text=row["body"],
            steps=steps,
            lang=row["lang"],
            source=row["source"] or "template",
            createdAt=_as_utc(row["created_at"]),
        )


_store: AdvisoryStore | None = None


def build_store() -> AdvisoryStore | None:
    if settings.DATABASE_URL:
        logger.info("Using SQL advisory store.")
        return SqlAdvisoryStore.from_url(settings.DATABASE_URL)
    if settings.is_production:
        logger.warning("DATABASE_URL not set in production; saved advisories are disabled.")
        return None
    logger.info("DATABASE_URL not set; using in-memory advisory store.")
    return InMemoryAdvisoryStore()


def get_store() -> AdvisoryStore:
    """Route dependency for the configured store."""
    global _store
    if _store is None:
        _store = build_store()
    if _store is None:
        raise DatabaseNotConfiguredError()
    return _store


def reset_store() -> None:
    global _store
    _store = None
