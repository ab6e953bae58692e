"""
Distribution persistence.

Rows are appended per observed (type, url, version, build); fixed-URL store
links keep a single row that is updated in place. Nothing here deletes rows.
"""

import os
from datetime import datetime, timezone
from typing import Dict, Iterable, List, Optional

from sqlalchemy import Column, DateTime, Integer, String, Text, create_engine, func, select
from sqlalchemy.engine import Engine
from sqlalchemy.engine.url import make_url
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker
from sqlalchemy.pool import StaticPool

from chatdist.exceptions import StoreError
from chatdist.log_utils import logger

from .interfaces import DistributionRecord, SaveOutcome
from .types import DistributionType, is_fixed_url_type
from .version import format_display_version, select_latest_record


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    pass


class Distribution(Base):
    __tablename__ = "distributions"

    id = Column(Integer, primary_key=True, autoincrement=True)
    type = Column(String(64), nullable=False, index=True)
    url = Column(Text, nullable=False)
    version = Column(String(64), nullable=False)
    build = Column(Integer, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = Column(
        DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow
    )


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _to_record(row: Distribution) -> DistributionRecord:
    return DistributionRecord(
        id=row.id,
        type=row.type,
        url=row.url,
        version=row.version,
        build=row.build,
        created_at=_as_utc(row.created_at),
        updated_at=_as_utc(row.updated_at),
    )


def create_db_engine(database_url: str) -> Engine:
    """
    Create the SQLAlchemy engine, preparing SQLite files for multi-threaded use.

    For file-backed SQLite the parent directory is created and
    `check_same_thread` is disabled so the scheduler thread and request
    handlers can share the engine.
    """
    url = make_url(database_url)
    if url.get_backend_name() != "sqlite":
        return create_engine(database_url)

    connect_args = {"check_same_thread": False}
    if not url.database or url.database == ":memory:":
        # Single shared connection so every session sees the same in-memory database
        return create_engine(
            database_url, connect_args=connect_args, poolclass=StaticPool
        )

    parent = os.path.dirname(os.path.abspath(url.database))
    os.makedirs(parent, exist_ok=True)
    return create_engine(database_url, connect_args=connect_args)


class DistributionStore:
    """SQLAlchemy-backed store for distribution rows."""

    def __init__(self, database_url: str, engine: Optional[Engine] = None):
        self.database_url = database_url
        self.engine = engine or create_db_engine(database_url)
        self._session_factory = sessionmaker(bind=self.engine, expire_on_commit=False)

    def create_all(self) -> None:
        Base.metadata.create_all(self.engine)

    def dispose(self) -> None:
        self.engine.dispose()

    def save(
        self,
        dist_type: DistributionType,
        url: str,
        version: str,
        build: Optional[int],
    ) -> SaveOutcome:
        """
        Upsert one observed artifact.

        Fixed-URL types look up the row by (type, url) and update version/build in
        place when they changed. Every other type inserts only when the exact
        (type, url, version, build) tuple is new; a NULL build matches NULL.

        Returns:
            SaveOutcome: created, updated, or unchanged.

        Raises:
            StoreError: If the database operation fails.
        """
        type_key = str(dist_type)
        display = format_display_version(version, build)
        try:
            with self._session_factory.begin() as session:
                if is_fixed_url_type(dist_type):
                    existing = session.scalars(
                        select(Distribution)
                        .where(Distribution.type == type_key, Distribution.url == url)
                        .limit(1)
                    ).first()
                    if existing is not None:
                        if existing.version == version and existing.build == build:
                            logger.debug(
                                f"Record already exists with same version: {type_key} - {display} - {url}"
                            )
                            return SaveOutcome.UNCHANGED
                        existing.version = version
                        existing.build = build
                        existing.updated_at = _utcnow()
                        logger.debug(
                            f"Updated distribution record: {type_key} - {display} - {url}"
                        )
                        return SaveOutcome.UPDATED

                build_clause = (
                    Distribution.build.is_(None)
                    if build is None
                    else Distribution.build == build
                )
                duplicate = session.scalars(
                    select(Distribution)
                    .where(
                        Distribution.type == type_key,
                        Distribution.url == url,
                        Distribution.version == version,
                        build_clause,
                    )
                    .limit(1)
                ).first()
                if duplicate is not None:
                    logger.debug(f"Record already exists: {type_key} - {display} - {url}")
                    return SaveOutcome.UNCHANGED

                session.add(
                    Distribution(type=type_key, url=url, version=version, build=build)
                )
                logger.debug(f"Created new distribution record: {type_key} - {display} - {url}")
                return SaveOutcome.CREATED
        except SQLAlchemyError as e:
            raise StoreError(f"Failed to save {type_key} record", str(e)) from e

    def records_for_type(self, dist_type: DistributionType) -> List[DistributionRecord]:
        """
        Return every row of one type, newest created first (ties by highest id).

        Raises:
            StoreError: If the query fails.
        """
        try:
            with Session(self.engine) as session:
                rows = session.scalars(
                    select(Distribution)
                    .where(Distribution.type == str(dist_type))
                    .order_by(Distribution.created_at.desc(), Distribution.id.desc())
                ).all()
                return [_to_record(row) for row in rows]
        except SQLAlchemyError as e:
            raise StoreError(f"Failed to fetch records for {dist_type}", str(e)) from e

    def count(self, dist_type: Optional[DistributionType] = None) -> int:
        stmt = select(func.count()).select_from(Distribution)
        if dist_type is not None:
            stmt = stmt.where(Distribution.type == str(dist_type))
        try:
            with Session(self.engine) as session:
                return int(session.scalar(stmt) or 0)
        except SQLAlchemyError as e:
            raise StoreError("Failed to count distribution records", str(e)) from e

    def get_latest_distributions(
        self, types: Optional[Iterable[DistributionType]] = None
    ) -> Dict[str, Optional[DistributionRecord]]:
        """
        Select the current record for each requested type.

        A failing query for one type yields None for that type; the remaining
        types are still resolved.

        Parameters:
            types: Types to resolve; defaults to every DistributionType.

        Returns:
            Dict mapping type value to its latest record or None.
        """
        selected = list(types) if types is not None else list(DistributionType)
        result: Dict[str, Optional[DistributionRecord]] = {}
        for dist_type in selected:
            try:
                result[str(dist_type)] = select_latest_record(
                    self.records_for_type(dist_type)
                )
            except StoreError as e:
                logger.warning(f"Failed to fetch records for type {dist_type}: {e}")
                result[str(dist_type)] = None
        return result
