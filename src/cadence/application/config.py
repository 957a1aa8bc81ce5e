from pathlib import Path
from typing import Any

from pydantic import Field, ValidationError, field_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

from cadence.domain.constants import (
    DEFAULT_ENABLE_FUZZ,
    DEFAULT_MAXIMUM_INTERVAL,
    DEFAULT_REQUEST_RETENTION,
    DEFAULT_W,
    WEIGHT_COUNT,
)
from cadence.domain.errors import ConfigurationError


def config_file_candidates() -> list[Path]:
    return [
        Path.home() / ".config/cadence/config.toml",
        Path.home() / ".cadence.toml",
    ]


class SchedulerParameters(BaseSettings):
    """
    Scheduler parameters.
    Supports loading from:
    1. Explicit arguments
    2. Environment variables (CADENCE_*)
    3. Config file (~/.config/cadence/config.toml)

    Immutable once built; re-tuning means constructing a new scheduler.
    """

    model_config = SettingsConfigDict(
        env_prefix="CADENCE_",
        extra="ignore",
        frozen=True,
    )

    request_retention: float = DEFAULT_REQUEST_RETENTION
    maximum_interval: int = Field(default=DEFAULT_MAXIMUM_INTERVAL, ge=1)
    w: tuple[float, ...] = DEFAULT_W
    enable_fuzz: bool = DEFAULT_ENABLE_FUZZ

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        from pydantic_settings import TomlConfigSettingsSource

        # First existing file wins
        toml_file = None
        for f in config_file_candidates():
            if f.exists():
                toml_file = f
                break

        if toml_file:
            return (
                init_settings,
                env_settings,
                TomlConfigSettingsSource(settings_cls, toml_file=toml_file),
            )
        return (
            init_settings,
            env_settings,
        )

    @field_validator("request_retention")
    @classmethod
    def check_retention(cls, v: float) -> float:
        if not 0 < v <= 1:
            raise ValueError("request_retention must be in (0, 1]")
        return v

    @field_validator("w")
    @classmethod
    def check_weights(cls, v: tuple[float, ...]) -> tuple[float, ...]:
        if len(v) != WEIGHT_COUNT:
            raise ValueError(f"w must contain {WEIGHT_COUNT} weights, got {len(v)}")
        return v


def generate_parameters(**overrides: Any) -> SchedulerParameters:
    """
    Build validated scheduler parameters.

    Layering:
    1. Defaults in SchedulerParameters
    2. ~/.config/cadence/config.toml (if exists)
    3. Environment variables (CADENCE_*)
    4. overrides (None values are ignored)

    Raises:
        ConfigurationError: If any parameter is out of range.
    """
    cleaned = {k: v for k, v in overrides.items() if v is not None}
    try:
        return SchedulerParameters(**cleaned)
    except ValidationError as e:
        raise ConfigurationError(str(e)) from e
