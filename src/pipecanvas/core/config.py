# src/pipecanvas/core/config.py
"""
Configuration schema and loading for pipecanvas.

Uses Pydantic for validation and Dynaconf for multi-source loading.
Settings are frozen (immutable) after construction.
"""

from pathlib import Path
from typing import Any, Literal

from pydantic import BaseModel, Field, field_validator, model_validator

from pipecanvas.contracts.enums import Platform

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR"]


class EngineSettings(BaseModel):
    """Tunables for the editor, simulator and preview engine.

    Every field has a default so an empty settings file (or none at all)
    yields a working engine.
    """

    model_config = {"frozen": True}

    platform: Platform = Field(
        default=Platform.SSIS,
        description="Rule table and cost model used when a command does not name one",
    )
    history_capacity: int = Field(
        default=50,
        gt=0,
        description="Maximum number of undo snapshots kept (oldest evicted first)",
    )
    preview_sample_size: int = Field(
        default=5,
        gt=0,
        description="Rows generated per source node by the preview engine",
    )
    default_row_count: int = Field(
        default=100_000,
        gt=0,
        description="Nominal input row count for simulations",
    )
    base_memory_mb: float = Field(
        default=50.0,
        ge=0,
        description="Streaming engine baseline memory before per-node increments",
    )
    memory_cap_mb: float = Field(
        default=16_000.0,
        gt=0,
        description="Upper bound applied to the simulated memory estimate",
    )
    dbu_price_usd: float = Field(
        default=0.40,
        ge=0,
        description="Price of one Databricks unit, used for cost estimates",
    )
    log_level: LogLevel = Field(
        default="INFO",
        description="Root log level",
    )
    json_logs: bool = Field(
        default=False,
        description="Emit JSON log lines instead of console output",
    )

    @field_validator("log_level", mode="before")
    @classmethod
    def normalize_log_level(cls, v: Any) -> Any:
        """Accept lower-case level names from env vars."""
        if isinstance(v, str):
            return v.upper()
        return v

    @model_validator(mode="after")
    def validate_memory_bounds(self) -> "EngineSettings":
        """The memory cap must leave room for the baseline."""
        if self.memory_cap_mb < self.base_memory_mb:
            raise ValueError(f"memory_cap_mb ({self.memory_cap_mb}) must be >= base_memory_mb ({self.base_memory_mb})")
        return self


def load_settings(config_path: Path) -> EngineSettings:
    """Load settings from a YAML file with environment variable overrides.

    Uses Dynaconf for multi-source loading with precedence:
    1. Environment variables (PIPECANVAS_*) - highest priority
    2. Config file
    3. Defaults from the Pydantic schema - lowest priority

    Args:
        config_path: Path to YAML configuration file

    Returns:
        Validated EngineSettings instance

    Raises:
        ValidationError: If configuration fails Pydantic validation
        FileNotFoundError: If config file doesn't exist
    """
    from dynaconf import Dynaconf

    # Dynaconf silently accepts missing files
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    dynaconf_settings = Dynaconf(
        envvar_prefix="PIPECANVAS",
        settings_files=[str(config_path)],
        environments=False,
        load_dotenv=False,
        merge_enabled=True,
    )

    # Dynaconf returns uppercase keys; Pydantic fields are lowercase
    internal_keys = {"LOAD_DOTENV", "ENVIRONMENTS", "SETTINGS_FILES"}
    raw_config = {k.lower(): v for k, v in dynaconf_settings.as_dict().items() if k not in internal_keys}

    return EngineSettings(**raw_config)
