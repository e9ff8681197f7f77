from __future__ import annotations

from typing import Any, Dict, Iterable, List

import typer


def echo_heading(text: str) -> None:
    typer.secho(text, bold=True)


def echo_key_values(pairs: Iterable[tuple[str, Any]]) -> None:
    for key, value in pairs:
        typer.echo(f"{key}: {value}")


def _format_value(value: Any) -> str:
    return "n/a" if value is None else str(value)


def render_readings(readings: List[Dict[str, Any]], title: str = "Readings") -> None:
    echo_heading(title)
    if not readings:
        typer.echo("No readings recorded.")
        return
    for reading in readings:
        typer.echo(
            f"  - #{reading.get('id')} {reading.get('sensorId')} = "
            f"{reading.get('value')} @ {reading.get('timestamp')}"
        )


def render_stats(sensor_id: str, payload: Dict[str, Any]) -> None:
    echo_heading(f"Statistics for {sensor_id}")
    echo_key_values(
        [
            ("count", payload.get("count")),
            ("average", _format_value(payload.get("average"))),
            ("min", _format_value(payload.get("min"))),
            ("max", _format_value(payload.get("max"))),
        ]
    )
