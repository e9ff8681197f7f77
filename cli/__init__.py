"""CLI package for interacting with the sensor telemetry service."""

from importlib import import_module
from types import ModuleType


def __getattr__(name: str) -> ModuleType:
    if name == "app":
        return import_module("cli.app")
    raise AttributeError(name)

# The Typer application is ``cli.app.app``. It is not re-exported here so that
# ``cli.app`` keeps resolving to the module, which tests patch by that path.

__all__ = []
