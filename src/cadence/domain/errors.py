"""Exceptions raised by the scheduler."""

from typing import Any


class SchedulerError(Exception):
    """Base class for every error raised by Cadence."""


class ConfigurationError(SchedulerError, ValueError):
    """Scheduler parameters failed validation."""


class InvalidInputError(SchedulerError, ValueError):
    """
    A card, log, rating, state or date could not be normalized.

    Attributes:
        field: Name of the offending input field.
        value: The raw value that was rejected.
    """

    def __init__(self, field: str, value: Any, reason: str | None = None):
        self.field = field
        self.value = value
        detail = reason or "invalid value"
        super().__init__(f"{field}: {detail} ({value!r})")
