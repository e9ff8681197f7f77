from typing import Iterator

import pytest
from fastapi.testclient import TestClient

from app.main import create_app
from datastore.sqlite_store import ReadingStore, build_default_store
from services.errors import StorageFailure
from settings import get_settings


@pytest.fixture
def store(tmp_path) -> ReadingStore:
    return ReadingStore(database_path=tmp_path / "readings.db")


@pytest.fixture
def api_client(store: ReadingStore, monkeypatch) -> Iterator[TestClient]:
    def build_test_store(path: str | None = None) -> ReadingStore:
        return store

    build_test_store.cache_clear = lambda: None  # type: ignore[attr-defined]

    monkeypatch.setattr("app.main.build_default_store", build_test_store)
    monkeypatch.setattr("app.api.build_default_store", build_test_store)

    app = create_app()
    with TestClient(app) as client:
        yield client


def _post(client: TestClient, sensor_id: str, value: float, timestamp: str):
    return client.post(
        "/api/sensor/data",
        json={"sensorId": sensor_id, "value": value, "timestamp": timestamp},
    )


def test_lifespan_initializes_store_and_clears_cache(tmp_path, monkeypatch) -> None:
    monkeypatch.setenv("SENSOR_DB_PATH", str(tmp_path / "lifespan.db"))
    get_settings.cache_clear()
    build_default_store.cache_clear()
    try:
        app = create_app()
        with TestClient(app) as client:
            store_during = build_default_store()
            response = _post(client, "T1", 1.0, "2024-01-01T00:00:00Z")
            assert response.status_code == 201
            assert store_during.count() == 1

        store_after = build_default_store()
        assert store_after is not store_during
        assert (tmp_path / "lifespan.db").exists()
    finally:
        build_default_store.cache_clear()
        get_settings.cache_clear()


def test_ingest_then_list_round_trip(api_client: TestClient) -> None:
    response = api_client.post(
        "/api/sensor/data",
        json={"sensorId": "T1", "value": 23.5, "timestamp": "2024-01-01T10:00:00Z", "type": "temperature"},
    )

    assert response.status_code == 201
    body = response.json()
    assert body["success"] is True
    assert body["id"] >= 1
    assert body["message"]

    listing = api_client.get("/api/sensor/readings", params={"sensorId": "T1"})

    assert listing.status_code == 200
    rows = listing.json()
    assert len(rows) == 1
    assert rows[0]["id"] == body["id"]
    assert rows[0]["sensorId"] == "T1"
    assert rows[0]["value"] == 23.5
    assert rows[0]["timestamp"] == "2024-01-01T10:00:00Z"
    assert rows[0]["created_at"]
    assert "type" not in rows[0]


def test_missing_sensor_id_is_rejected_and_not_persisted(
    api_client: TestClient, store: ReadingStore
) -> None:
    response = api_client.post(
        "/api/sensor/data",
        json={"value": 23.5, "timestamp": "2024-01-01T10:00:00Z"},
    )

    assert response.status_code == 400
    assert "sensorId" in response.json()["error"]
    assert store.count() == 0


@pytest.mark.parametrize(
    "payload",
    [
        {"sensorId": "", "value": 1, "timestamp": "2024-01-01T10:00:00Z"},
        {"sensorId": "T1", "timestamp": "2024-01-01T10:00:00Z"},
        {"sensorId": "T1", "value": None, "timestamp": "2024-01-01T10:00:00Z"},
        {"sensorId": "T1", "value": "hot", "timestamp": "2024-01-01T10:00:00Z"},
        {"sensorId": "T1", "value": 10**400, "timestamp": "2024-01-01T10:00:00Z"},
        {"sensorId": "T1", "value": 1.0, "timestamp": ""},
        {"sensorId": "T1", "value": 1.0},
    ],
)
def test_invalid_payloads_return_bad_request(api_client: TestClient, payload: dict) -> None:
    response = api_client.post("/api/sensor/data", json=payload)

    assert response.status_code == 400
    assert set(response.json()) == {"error"}


def test_malformed_json_returns_bad_request(api_client: TestClient) -> None:
    response = api_client.post(
        "/api/sensor/data",
        content=b"{not json",
        headers={"content-type": "application/json"},
    )

    assert response.status_code == 400
    assert set(response.json()) == {"error"}


def test_readings_are_listed_newest_first(api_client: TestClient) -> None:
    _post(api_client, "T1", 2.0, "2024-01-01T10:02:00Z")
    _post(api_client, "T1", 1.0, "2024-01-01T10:01:00Z")
    _post(api_client, "T1", 3.0, "2024-01-01T10:03:00Z")
    _post(api_client, "H1", 50.0, "2024-01-01T10:04:00Z")

    rows = api_client.get("/api/sensor/readings", params={"sensorId": "T1"}).json()

    assert [row["timestamp"] for row in rows] == [
        "2024-01-01T10:03:00Z",
        "2024-01-01T10:02:00Z",
        "2024-01-01T10:01:00Z",
    ]


def test_limit_defaults_to_one_hundred(api_client: TestClient) -> None:
    for index in range(150):
        _post(api_client, f"S{index % 3}", float(index), f"2024-01-01T10:{index // 60:02d}:{index % 60:02d}Z")

    assert len(api_client.get("/api/sensor/readings").json()) == 100
    assert len(api_client.get("/api/sensor/readings", params={"limit": "abc"}).json()) == 100
    assert len(api_client.get("/api/sensor/readings", params={"limit": "7"}).json()) == 7


def test_limit_is_clamped_to_configured_maximum(api_client: TestClient, monkeypatch) -> None:
    monkeypatch.setenv("READINGS_MAX_LIMIT", "5")
    get_settings.cache_clear()
    try:
        for index in range(8):
            _post(api_client, "T1", float(index), f"2024-01-01T10:00:0{index}Z")

        rows = api_client.get("/api/sensor/readings", params={"limit": "500"}).json()
    finally:
        get_settings.cache_clear()

    assert len(rows) == 5


def test_latest_returns_one_row_per_sensor(api_client: TestClient) -> None:
    _post(api_client, "A", 3.0, "2024-01-01T10:01:00Z")
    _post(api_client, "A", 10.0, "2024-01-01T10:02:00Z")
    _post(api_client, "B", 5.0, "2024-01-01T10:01:00Z")
    _post(api_client, "A", 7.0, "2024-01-01T10:00:00Z")

    rows = api_client.get("/api/sensor/latest").json()

    assert [(row["sensorId"], row["value"]) for row in rows] == [("A", 10.0), ("B", 5.0)]
    assert rows[0]["timestamp"] == rows[0]["latest"] == "2024-01-01T10:02:00Z"
    assert rows[1]["timestamp"] == "2024-01-01T10:01:00Z"


def test_stats_for_known_and_unknown_sensor(api_client: TestClient) -> None:
    for value in (10, 20, 30):
        _post(api_client, "X", value, "2024-01-01T10:00:00Z")

    known = api_client.get("/api/sensor/stats/X")
    unknown = api_client.get("/api/sensor/stats/unknown")

    assert known.status_code == 200
    assert known.json() == {"count": 3, "average": 20.0, "min": 10.0, "max": 30.0}
    assert unknown.status_code == 200
    assert unknown.json() == {"count": 0, "average": None, "min": None, "max": None}


def test_stats_without_sensor_id_is_bad_request(api_client: TestClient) -> None:
    response = api_client.get("/api/sensor/stats/")

    assert response.status_code == 400
    assert "error" in response.json()


def test_storage_failure_returns_generic_server_error(
    api_client: TestClient, store: ReadingStore, monkeypatch
) -> None:
    def failing_append(reading):
        raise StorageFailure("Failed to save reading")

    monkeypatch.setattr(store, "append", failing_append)

    response = _post(api_client, "T1", 1.0, "2024-01-01T10:00:00Z")

    assert response.status_code == 500
    assert response.json() == {"error": "Failed to save reading"}


def test_unexpected_error_does_not_leak_details(store: ReadingStore, monkeypatch) -> None:
    def build_test_store(path: str | None = None) -> ReadingStore:
        return store

    build_test_store.cache_clear = lambda: None  # type: ignore[attr-defined]
    monkeypatch.setattr("app.main.build_default_store", build_test_store)
    monkeypatch.setattr("app.api.build_default_store", build_test_store)

    def broken_latest():
        raise RuntimeError("disk /var/secret exploded")

    monkeypatch.setattr(store, "query_latest_per_sensor", broken_latest)

    app = create_app()
    with TestClient(app, raise_server_exceptions=False) as client:
        response = client.get("/api/sensor/latest")

    assert response.status_code == 500
    assert response.json() == {"error": "Internal server error"}


def test_healthcheck(api_client: TestClient) -> None:
    response = api_client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}
