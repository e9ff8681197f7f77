"""Domain models shared across services."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional


@dataclass(slots=True, frozen=True)
class NewReading:
    """A validated reading that has not been assigned an id yet."""

    sensor_id: str
    value: float
    timestamp: str


@dataclass(slots=True, frozen=True)
class SensorReading:
    """A persisted, immutable sensor observation."""

    id: int
    sensor_id: str
    value: float
    timestamp: str
    recorded_at: datetime


@dataclass(slots=True, frozen=True)
class HistoryFilter:
    limit: int
    sensor_id: Optional[str] = None


@dataclass(slots=True, frozen=True)
class SensorStats:
    """Summary statistics for one sensor.

    ``average``, ``min_value`` and ``max_value`` are ``None`` when ``count`` is 0.
    """

    count: int = 0
    average: Optional[float] = None
    min_value: Optional[float] = None
    max_value: Optional[float] = None
