"""
Persistent offer-id -> content hash cache (SQLite via SQLAlchemy).

Every operation runs in its own transaction and is committed before it
returns, so a crash between two calls never loses a completed step.
"""

import logging
import pathlib
from datetime import datetime
from typing import Dict, Optional, Union

from sqlalchemy import String, DateTime, create_engine, select, delete
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.engine import Engine
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, sessionmaker, Session

from merchant_sync.core.feed.models import CachedVariantRecord

logger = logging.getLogger(__name__)


class Base(DeclarativeBase):
    pass


class VariantCacheRow(Base):
    __tablename__ = "variant_cache"

    offer_id: Mapped[str] = mapped_column(String(255), primary_key=True)
    item_group_id: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    hash: Mapped[str] = mapped_column(String(64))
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True))

    def to_record(self) -> CachedVariantRecord:
        return CachedVariantRecord(
            offer_id=self.offer_id,
            item_group_id=self.item_group_id,
            hash=self.hash,
            updated_at=self.updated_at,
        )


def _resolve_dsn(path: Union[str, pathlib.Path]) -> str:
    """SQLite DSN for a file path; the parent directory is created if missing."""
    db_path = pathlib.Path(path).expanduser().resolve()
    db_path.parent.mkdir(parents=True, exist_ok=True)
    return f"sqlite:///{db_path}"


class VariantCache:
    """
    File-backed cache of the last successfully uploaded state per offer ID.

    Usage:
        cache = VariantCache("data/variant_cache.db")
        records = cache.load_all()
        cache.upsert(CachedVariantRecord("ts1-black-s", "TS1", "ab12...", datetime.now(timezone.utc)))
        cache.delete("old-1")
        cache.close()
    """

    def __init__(self, path: Union[str, pathlib.Path], engine: Optional[Engine] = None):
        self.path = str(path)
        self._engine = engine or create_engine(_resolve_dsn(path), future=True)
        self._sessionmaker = sessionmaker(self._engine, expire_on_commit=False)
        Base.metadata.create_all(self._engine)
        logger.debug(f"Variant cache opened at {self.path}")

    def _session(self) -> Session:
        return self._sessionmaker()

    def load_all(self) -> Dict[str, CachedVariantRecord]:
        """All cached records keyed by offer ID."""
        with self._session() as session:
            rows = session.scalars(select(VariantCacheRow)).all()
            return {row.offer_id: row.to_record() for row in rows}

    def get(self, offer_id: str) -> Optional[CachedVariantRecord]:
        with self._session() as session:
            row = session.get(VariantCacheRow, offer_id)
            return row.to_record() if row else None

    def upsert(self, record: CachedVariantRecord) -> CachedVariantRecord:
        """Insert the record, or overwrite it when the offer ID already exists."""
        stmt = sqlite_insert(VariantCacheRow).values(
            offer_id=record.offer_id,
            item_group_id=record.item_group_id,
            hash=record.hash,
            updated_at=record.updated_at,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=[VariantCacheRow.offer_id],
            set_={
                'item_group_id': stmt.excluded.item_group_id,
                'hash': stmt.excluded.hash,
                'updated_at': stmt.excluded.updated_at,
            },
        )
        with self._session() as session:
            session.execute(stmt)
            session.commit()
        return record

    def delete(self, offer_id: str) -> bool:
        """Remove one record. Returns True if a row was deleted."""
        with self._session() as session:
            result = session.execute(delete(VariantCacheRow).where(VariantCacheRow.offer_id == offer_id))
            session.commit()
            return (result.rowcount or 0) > 0

    def close(self):
        self._engine.dispose()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
