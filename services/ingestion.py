"""Validation and persistence of inbound sensor readings."""

from __future__ import annotations

import logging
from typing import Any

from pydantic import ValidationError

from app.schemas import SensorDataIn
from datastore.sqlite_store import ReadingStore
from models.records import NewReading
from services.errors import ValidationFailure

logger = logging.getLogger(__name__)

INVALID_READING_MESSAGE = "Invalid data. sensorId, value and timestamp are required."


class IngestionService:
    """Accepts one reading per call and appends it to the store."""

    def __init__(self, store: ReadingStore) -> None:
        self.store = store

    def ingest(self, payload: Any) -> int:
        """Validate ``payload`` and persist it, returning the assigned id.

        Raises ``ValidationFailure`` for a malformed reading and lets
        ``StorageFailure`` from the store propagate; the write is attempted
        at most once.
        """
        reading = self.validate(payload)
        reading_id = self.store.append(reading)
        logger.info(
            "Reading received",
            extra={
                "sensor_id": reading.sensor_id,
                "reading_id": reading_id,
                "value": reading.value,
            },
        )
        return reading_id

    @staticmethod
    def validate(payload: Any) -> NewReading:
        if not isinstance(payload, dict):
            raise ValidationFailure(INVALID_READING_MESSAGE)
        try:
            data = SensorDataIn.model_validate(payload)
        except ValidationError as exc:
            fields = sorted({str(error["loc"][0]) for error in exc.errors() if error["loc"]})
            logger.info("Rejected reading", extra={"reason": ",".join(fields) or "payload"})
            raise ValidationFailure(INVALID_READING_MESSAGE) from exc
        return NewReading(
            sensor_id=data.sensor_id,
            value=float(data.value),
            timestamp=data.timestamp,
        )
