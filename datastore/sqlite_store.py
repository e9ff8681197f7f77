"""SQLite-backed append-only store for sensor readings."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from functools import lru_cache
from pathlib import Path
from threading import Lock
from typing import Any, List, Optional

from sqlalchemy import (
    Column,
    DateTime,
    Float,
    Index,
    Integer,
    MetaData,
    String,
    Table,
    create_engine,
    func,
    insert,
    select,
)
from sqlalchemy.engine import Engine, Row
from sqlalchemy.exc import SQLAlchemyError

from models.records import HistoryFilter, NewReading, SensorReading, SensorStats
from services.errors import StorageFailure
from settings import get_settings

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    # SQLite DATETIME columns are stored naive; keep them in UTC.
    return datetime.now(timezone.utc).replace(tzinfo=None)


metadata = MetaData()

sensor_readings = Table(
    "sensor_readings",
    metadata,
    Column("id", Integer, primary_key=True),
    Column("sensorId", String, nullable=False),
    Column("value", Float, nullable=False),
    Column("timestamp", String, nullable=False),
    Column("created_at", DateTime, nullable=False, default=_utcnow),
    Index("ix_sensor_readings_sensorId", "sensorId"),
    sqlite_autoincrement=True,
)


class ReadingStore:
    """Durable, append-only table of sensor readings.

    Appends are serialized through a process-local lock so each insert runs in
    its own transaction without contending with another writer. Reads do not
    take the lock and rely on SQLite's isolation.
    """

    def __init__(self, database_path: Path, engine: Optional[Engine] = None) -> None:
        self.database_path = database_path
        self._engine = engine or create_engine(
            f"sqlite:///{database_path}",
            connect_args={"check_same_thread": False, "timeout": 15},
            future=True,
        )
        self._write_lock = Lock()

    def __enter__(self) -> "ReadingStore":
        self.initialize()
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def initialize(self) -> None:
        """Create the readings table and its index if they do not exist yet."""

        try:
            self.database_path.parent.mkdir(parents=True, exist_ok=True)
            metadata.create_all(self._engine, checkfirst=True)
        except (OSError, SQLAlchemyError) as exc:
            logger.exception("Failed to initialize reading store", extra={"path": str(self.database_path)})
            raise StorageFailure("Failed to initialize storage") from exc
        logger.info("Reading store ready", extra={"path": str(self.database_path)})

    def append(self, reading: NewReading) -> int:
        statement = insert(sensor_readings).values(
            sensorId=reading.sensor_id,
            value=reading.value,
            timestamp=reading.timestamp,
        )
        with self._write_lock:
            try:
                with self._engine.begin() as conn:
                    result = conn.execute(statement)
            except SQLAlchemyError as exc:
                logger.exception("Failed to insert reading", extra={"sensor_id": reading.sensor_id})
                raise StorageFailure("Failed to save reading") from exc
        return int(result.inserted_primary_key[0])

    def query_history(self, history_filter: HistoryFilter) -> List[SensorReading]:
        """Return readings newest first by timestamp, ties broken by id."""

        statement = select(sensor_readings)
        if history_filter.sensor_id:
            statement = statement.where(sensor_readings.c.sensorId == history_filter.sensor_id)
        statement = statement.order_by(
            sensor_readings.c.timestamp.desc(),
            sensor_readings.c.id.desc(),
        ).limit(history_filter.limit)

        rows = self._fetch_all(statement, failure_message="Failed to fetch readings")
        return [self._to_reading(row) for row in rows]

    def query_latest_per_sensor(self) -> List[SensorReading]:
        """Return the reading with the greatest timestamp for every sensor.

        When several readings of one sensor share that timestamp, the one with
        the highest id (the last one ingested) is returned.
        """

        position = (
            func.row_number()
            .over(
                partition_by=sensor_readings.c.sensorId,
                order_by=(sensor_readings.c.timestamp.desc(), sensor_readings.c.id.desc()),
            )
            .label("position")
        )
        ranked = select(sensor_readings, position).subquery("ranked")
        statement = (
            select(
                ranked.c.id,
                ranked.c.sensorId,
                ranked.c.value,
                ranked.c.timestamp,
                ranked.c.created_at,
            )
            .where(ranked.c.position == 1)
            .order_by(ranked.c.sensorId)
        )

        rows = self._fetch_all(statement, failure_message="Failed to fetch latest readings")
        return [self._to_reading(row) for row in rows]

    def query_stats(self, sensor_id: str) -> SensorStats:
        column = sensor_readings.c.value
        statement = select(
            func.count(sensor_readings.c.id),
            func.avg(column),
            func.min(column),
            func.max(column),
        ).where(sensor_readings.c.sensorId == sensor_id)

        try:
            with self._engine.connect() as conn:
                count, average, min_value, max_value = conn.execute(statement).one()
        except SQLAlchemyError as exc:
            logger.exception("Failed to compute statistics", extra={"sensor_id": sensor_id})
            raise StorageFailure("Failed to fetch statistics") from exc

        if not count:
            return SensorStats()
        return SensorStats(
            count=int(count),
            average=float(average),
            min_value=float(min_value),
            max_value=float(max_value),
        )

    def count(self) -> int:
        statement = select(func.count()).select_from(sensor_readings)
        try:
            with self._engine.connect() as conn:
                return int(conn.execute(statement).scalar_one())
        except SQLAlchemyError as exc:
            logger.exception("Failed to count readings")
            raise StorageFailure("Failed to fetch readings") from exc

    def close(self) -> None:
        """Release pooled connections."""
        self._engine.dispose()

    def _fetch_all(self, statement: Any, failure_message: str) -> List[Row]:
        try:
            with self._engine.connect() as conn:
                return list(conn.execute(statement))
        except SQLAlchemyError as exc:
            logger.exception(failure_message)
            raise StorageFailure(failure_message) from exc

    @staticmethod
    def _to_reading(row: Row) -> SensorReading:
        return SensorReading(
            id=row.id,
            sensor_id=row.sensorId,
            value=row.value,
            timestamp=row.timestamp,
            recorded_at=row.created_at,
        )


@lru_cache
def build_default_store(path: Optional[str] = None) -> ReadingStore:
    settings = get_settings()
    database_path = settings.database_path if path is None else path
    return ReadingStore(database_path=Path(database_path))
