from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

import typer
import uvicorn

from cli.client import ApiClient
from cli.config import CLIConfig, load_config
from cli.render import echo_key_values, render_readings, render_stats
from settings import get_settings


@dataclass
class CLIState:
    config: CLIConfig
    client: ApiClient


app = typer.Typer(
    help="Utilities for sending readings to and querying the sensor telemetry service.",
    context_settings={"help_option_names": ["-h", "--help"]},
)


def _get_state(ctx: typer.Context) -> CLIState:
    state = ctx.obj
    if not isinstance(state, CLIState):
        raise typer.Exit(code=1)
    return state


def _utc_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="seconds").replace("+00:00", "Z")


@app.callback()
def main(
    ctx: typer.Context,
    base_url: Optional[str] = typer.Option(
        None,
        "--base-url",
        "-b",
        help="Service base URL (defaults to API_BASE_URL env or http://localhost:8080).",
    ),
    timeout: Optional[float] = typer.Option(
        None,
        "--timeout",
        help="Seconds to wait for each HTTP request.",
    ),
) -> None:
    """Entry point for the CLI."""
    if ctx.invoked_subcommand == "serve":
        return
    config = load_config(base_url=base_url, timeout=timeout)
    client = ApiClient(config)
    ctx.obj = CLIState(config=config, client=client)
    ctx.call_on_close(client.close)


@app.command("send")
def send_command(
    ctx: typer.Context,
    sensor_id: str = typer.Argument(..., help="Sensor identifier, e.g. T1."),
    value: float = typer.Argument(..., help="Numeric reading."),
    timestamp: Optional[str] = typer.Option(
        None,
        "--timestamp",
        "-t",
        help="Observation time (defaults to now, UTC ISO-8601).",
    ),
    sensor_type: Optional[str] = typer.Option(None, "--type", help="Optional sensor kind."),
) -> None:
    """Send one reading to the service."""
    state = _get_state(ctx)
    observed_at = timestamp or _utc_timestamp()
    reading_id = state.client.send_reading(sensor_id, value, observed_at, sensor_type=sensor_type)
    typer.secho(f"Reading saved. id={reading_id}", fg=typer.colors.GREEN)


@app.command("readings")
def readings_command(
    ctx: typer.Context,
    sensor_id: Optional[str] = typer.Option(None, "--sensor-id", "-s", help="Only this sensor."),
    limit: Optional[int] = typer.Option(None, "--limit", "-n", min=1, help="Maximum rows."),
) -> None:
    """List stored readings, newest first."""
    state = _get_state(ctx)
    render_readings(state.client.list_readings(sensor_id=sensor_id, limit=limit))


@app.command("latest")
def latest_command(ctx: typer.Context) -> None:
    """Show the most recent reading of every sensor."""
    state = _get_state(ctx)
    render_readings(state.client.latest_readings(), title="Latest readings")


@app.command("stats")
def stats_command(
    ctx: typer.Context,
    sensor_id: str = typer.Argument(..., help="Sensor identifier."),
) -> None:
    """Show count, average, min and max for one sensor."""
    state = _get_state(ctx)
    render_stats(sensor_id, state.client.get_stats(sensor_id))


@app.command("serve")
def serve_command(
    host: Optional[str] = typer.Option(None, "--host", help="Bind address (defaults to API_HOST)."),
    port: Optional[int] = typer.Option(None, "--port", "-p", help="Listening port (defaults to API_PORT)."),
) -> None:
    """Run the HTTP service."""
    settings = get_settings()
    bind_host = host or settings.api_host
    bind_port = port or settings.api_port
    echo_key_values([("database", settings.database_path), ("listening", f"{bind_host}:{bind_port}")])
    uvicorn.run("app.main:app", host=bind_host, port=bind_port, log_config=None)
