from __future__ import annotations

from typing import Any, Dict, List, Optional

import httpx
import typer

from cli.config import CLIConfig


class ApiClient:
    """Minimal HTTP client for the sensor telemetry service."""

    def __init__(self, config: CLIConfig) -> None:
        self._config = config
        self._client = httpx.Client(base_url=config.base_url, timeout=config.timeout)

    def close(self) -> None:
        self._client.close()

    def send_reading(
        self,
        sensor_id: str,
        value: float,
        timestamp: str,
        sensor_type: Optional[str] = None,
    ) -> int:
        body: Dict[str, Any] = {"sensorId": sensor_id, "value": value, "timestamp": timestamp}
        if sensor_type:
            body["type"] = sensor_type
        payload = self._request("POST", "/api/sensor/data", json=body)
        reading_id = payload.get("id")
        if not isinstance(reading_id, int):
            raise typer.BadParameter("Unexpected response payload when sending a reading.")
        return reading_id

    def list_readings(
        self, sensor_id: Optional[str] = None, limit: Optional[int] = None
    ) -> List[Dict[str, Any]]:
        params: Dict[str, Any] = {}
        if sensor_id:
            params["sensorId"] = sensor_id
        if limit is not None:
            params["limit"] = limit
        return self._request("GET", "/api/sensor/readings", params=params)

    def latest_readings(self) -> List[Dict[str, Any]]:
        return self._request("GET", "/api/sensor/latest")

    def get_stats(self, sensor_id: str) -> Dict[str, Any]:
        return self._request("GET", f"/api/sensor/stats/{sensor_id}")

    def _request(self, method: str, url: str, **kwargs: Any) -> Any:
        try:
            response = self._client.request(method, url, **kwargs)
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            self._handle_http_error(exc)
        except httpx.TransportError as exc:
            typer.secho(
                f"Could not reach {self._config.base_url}: {exc}",
                fg=typer.colors.RED,
                err=True,
            )
            raise typer.Exit(code=1) from exc
        return response.json()

    @staticmethod
    def _handle_http_error(exc: httpx.HTTPStatusError) -> None:
        detail: str | None = None
        try:
            data = exc.response.json()
            detail = data.get("error")
        except ValueError:
            detail = exc.response.text.strip()
        message = (
            f"Request failed with status {exc.response.status_code}: {detail or 'no detail provided.'}"
        )
        typer.secho(message, fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)
