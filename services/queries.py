"""Read-only query operations over the reading store."""

from __future__ import annotations

import logging
import re
from typing import List, Optional, Union

from datastore.sqlite_store import ReadingStore
from models.records import HistoryFilter, SensorReading, SensorStats
from services.errors import ValidationFailure

logger = logging.getLogger(__name__)

DEFAULT_LIMIT = 100
MAX_LIMIT = 1000

_LEADING_INT = re.compile(r"\s*([+-]?[0-9]+)")


def parse_limit(
    raw: Union[str, int, None],
    default: int = DEFAULT_LIMIT,
    maximum: int = MAX_LIMIT,
) -> int:
    """Turn a client supplied limit into a usable row count.

    Only the leading integer of a string is read (``"25rows"`` gives 25).
    Missing, non-numeric and non-positive values fall back to ``default``;
    anything above ``maximum`` is clamped.
    """
    if raw is None or isinstance(raw, bool):
        return default
    if isinstance(raw, int):
        parsed = raw
    else:
        match = _LEADING_INT.match(raw)
        if match is None:
            return default
        parsed = int(match.group(1))
    if parsed <= 0:
        return default
    return min(parsed, maximum)


class QueryService:
    """Exposes history, latest-per-sensor and statistics reads."""

    def __init__(
        self,
        store: ReadingStore,
        default_limit: int = DEFAULT_LIMIT,
        max_limit: int = MAX_LIMIT,
    ) -> None:
        self.store = store
        self.default_limit = default_limit
        self.max_limit = max_limit

    def list_readings(
        self,
        sensor_id: Optional[str] = None,
        limit: Union[str, int, None] = None,
    ) -> List[SensorReading]:
        row_limit = parse_limit(limit, default=self.default_limit, maximum=self.max_limit)
        readings = self.store.query_history(
            HistoryFilter(limit=row_limit, sensor_id=sensor_id or None)
        )
        logger.debug(
            "Listed readings",
            extra={"sensor_id": sensor_id, "limit": row_limit, "row_count": len(readings)},
        )
        return readings

    def latest_readings(self) -> List[SensorReading]:
        return self.store.query_latest_per_sensor()

    def stats_for(self, sensor_id: Optional[str]) -> SensorStats:
        if sensor_id is None or not sensor_id.strip():
            raise ValidationFailure("sensorId is required.")
        return self.store.query_stats(sensor_id)
