"""HTTP route definitions for the service."""

from __future__ import annotations

from typing import Any, List, Optional

from fastapi import APIRouter, Body, Depends, Query, status

from app.schemas import (
    ErrorResponse,
    IngestResponse,
    LatestReadingOut,
    ReadingOut,
    SensorStatsOut,
)
from datastore.sqlite_store import ReadingStore, build_default_store
from services.ingestion import IngestionService
from services.queries import QueryService
from settings import get_settings

router = APIRouter()
sensor_router = APIRouter(prefix="/api/sensor", tags=["sensor"])

_SERVER_ERROR = {status.HTTP_500_INTERNAL_SERVER_ERROR: {"model": ErrorResponse}}


def get_store() -> ReadingStore:
    return build_default_store()


def get_ingestion_service(store: ReadingStore = Depends(get_store)) -> IngestionService:
    return IngestionService(store)


def get_query_service(store: ReadingStore = Depends(get_store)) -> QueryService:
    settings = get_settings()
    return QueryService(
        store,
        default_limit=settings.readings_default_limit,
        max_limit=settings.readings_max_limit,
    )


@sensor_router.post(
    "/data",
    status_code=status.HTTP_201_CREATED,
    response_model=IngestResponse,
    responses={status.HTTP_400_BAD_REQUEST: {"model": ErrorResponse}, **_SERVER_ERROR},
    summary="Ingest a single sensor reading.",
)
def ingest_reading(
    payload: Any = Body(..., description="JSON object with sensorId, value, timestamp and optional type."),
    service: IngestionService = Depends(get_ingestion_service),
) -> IngestResponse:
    reading_id = service.ingest(payload)
    return IngestResponse(id=reading_id)


@sensor_router.get(
    "/readings",
    response_model=List[ReadingOut],
    responses=_SERVER_ERROR,
    summary="List stored readings, newest first.",
)
def list_readings(
    sensor_id: Optional[str] = Query(None, alias="sensorId"),
    limit: Optional[str] = Query(None, description="Maximum rows to return (default 100)."),
    service: QueryService = Depends(get_query_service),
) -> List[ReadingOut]:
    readings = service.list_readings(sensor_id=sensor_id, limit=limit)
    return [ReadingOut.from_record(reading) for reading in readings]


@sensor_router.get(
    "/latest",
    response_model=List[LatestReadingOut],
    responses=_SERVER_ERROR,
    summary="Most recent reading of every sensor.",
)
def latest_readings(
    service: QueryService = Depends(get_query_service),
) -> List[LatestReadingOut]:
    return [LatestReadingOut.from_record(reading) for reading in service.latest_readings()]


@sensor_router.get(
    "/stats/{sensor_id}",
    response_model=SensorStatsOut,
    responses={status.HTTP_400_BAD_REQUEST: {"model": ErrorResponse}, **_SERVER_ERROR},
    summary="Count, average, min and max of one sensor's readings.",
)
def sensor_stats(
    sensor_id: str,
    service: QueryService = Depends(get_query_service),
) -> SensorStatsOut:
    return SensorStatsOut.from_record(service.stats_for(sensor_id))


@sensor_router.get("/stats", include_in_schema=False)
@sensor_router.get("/stats/", include_in_schema=False)
def sensor_stats_without_id(
    service: QueryService = Depends(get_query_service),
) -> SensorStatsOut:
    return SensorStatsOut.from_record(service.stats_for(None))


@router.get(
    "/health",
    summary="Health check endpoint.",
    status_code=status.HTTP_200_OK,
)
async def healthcheck() -> dict[str, str]:
    return {"status": "ok"}


router.include_router(sensor_router)
