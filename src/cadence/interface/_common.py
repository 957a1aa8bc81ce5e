"""Shared helpers for CLI commands: input loading, JSON shaping, error display."""

import dataclasses
from collections.abc import Mapping
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Any

import typer
import yaml

from cadence.application.scheduler import Scheduler
from cadence.domain.errors import ConfigurationError, InvalidInputError, SchedulerError


def load_document(path: Path) -> Any:
    """Read a YAML or JSON file (JSON is valid YAML)."""
    try:
        return yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as e:
        raise InvalidInputError(str(path), None, f"not valid YAML/JSON: {e}") from e


def to_jsonable(value: Any) -> Any:
    """Convert cards, logs and record logs into JSON-ready structures."""
    if isinstance(value, Enum):
        return value.name.capitalize()
    if isinstance(value, datetime):
        return value.isoformat()
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return {f.name: to_jsonable(getattr(value, f.name)) for f in dataclasses.fields(value)}
    if isinstance(value, Mapping):
        return {to_jsonable(k): to_jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_jsonable(v) for v in value]
    return value


def humanize_error(e: SchedulerError) -> str:
    if isinstance(e, InvalidInputError):
        return f"Invalid input in '{e.field}': {e}"
    if isinstance(e, ConfigurationError):
        return f"Invalid configuration: {e}"
    return str(e)


def build_scheduler(ctx: typer.Context) -> Scheduler:
    """Scheduler from config file + env + global CLI overrides."""
    overrides = (ctx.obj or {}).get("overrides", {})
    try:
        return Scheduler(overrides)
    except SchedulerError as e:
        fail(e)


def fail(e: SchedulerError):
    typer.secho(humanize_error(e), fg="red", err=True)
    raise typer.Exit(1)
