"""Pydantic schemas for the HTTP API layer."""

from __future__ import annotations

import math
from datetime import datetime
from typing import Any, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, StrictFloat, StrictInt, StrictStr, field_validator

from models.records import SensorReading, SensorStats


class SensorDataIn(BaseModel):
    """Inbound reading as posted by a sensor."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    sensor_id: StrictStr = Field(..., alias="sensorId")
    value: Union[StrictInt, StrictFloat]
    timestamp: StrictStr
    type: Optional[Any] = Field(
        default=None, description="Sensor kind; accepted for compatibility, not stored."
    )

    @field_validator("sensor_id", "timestamp")
    @classmethod
    def _require_text(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("must not be empty")
        return value

    @field_validator("value")
    @classmethod
    def _require_finite(cls, value: Union[int, float]) -> Union[int, float]:
        # Integers beyond float range overflow instead of reporting inf.
        try:
            finite = math.isfinite(value)
        except OverflowError:
            finite = False
        if not finite:
            raise ValueError("must be a finite number")
        return value


class IngestResponse(BaseModel):
    success: bool = True
    id: int
    message: str = "Reading saved successfully"


class ReadingOut(BaseModel):
    """A stored reading as returned by the history endpoint."""

    model_config = ConfigDict(populate_by_name=True)

    id: int
    sensor_id: str = Field(..., alias="sensorId")
    value: float
    timestamp: str
    created_at: datetime

    @classmethod
    def from_record(cls, reading: SensorReading) -> "ReadingOut":
        return cls(
            id=reading.id,
            sensor_id=reading.sensor_id,
            value=reading.value,
            timestamp=reading.timestamp,
            created_at=reading.recorded_at,
        )


class LatestReadingOut(BaseModel):
    """Most recent reading of one sensor; ``latest`` repeats its timestamp."""

    model_config = ConfigDict(populate_by_name=True)

    id: int
    sensor_id: str = Field(..., alias="sensorId")
    value: float
    timestamp: str
    latest: str

    @classmethod
    def from_record(cls, reading: SensorReading) -> "LatestReadingOut":
        return cls(
            id=reading.id,
            sensor_id=reading.sensor_id,
            value=reading.value,
            timestamp=reading.timestamp,
            latest=reading.timestamp,
        )


class SensorStatsOut(BaseModel):
    """Aggregates over every reading of a sensor; null when count is 0."""

    count: int = Field(..., ge=0)
    average: Optional[float]
    min: Optional[float]
    max: Optional[float]

    @classmethod
    def from_record(cls, stats: SensorStats) -> "SensorStatsOut":
        return cls(
            count=stats.count,
            average=stats.average,
            min=stats.min_value,
            max=stats.max_value,
        )


class ErrorResponse(BaseModel):
    error: str
