"""Pydantic schema for configuration validation.

All config values are validated at startup. Typos and invalid values
fail fast with clear error messages.

Usage:
    from src.config_schema import load_validated_config, AppConfig
    config = load_validated_config("config/config.yaml")
    # config is now a validated AppConfig instance
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import BaseModel, ConfigDict, Field, model_validator


# =============================================================================
# BASE MODEL WITH STRICT VALIDATION
# =============================================================================

class StrictModel(BaseModel):
    """Base model that rejects unknown fields (catches typos)."""

    model_config = ConfigDict(extra="forbid")


# =============================================================================
# LEDGER MODEL
# =============================================================================

class LedgerConfig(StrictModel):
    """Ledger identity."""

    name: str = Field(
        default="solar_system_nft",
        min_length=1,
        description="Ledger name, used as the row key in the state store"
    )


# =============================================================================
# STORE MODEL
# =============================================================================

class StoreConfig(StrictModel):
    """Durable state store configuration."""

    enabled: bool = Field(
        default=False,
        description="Persist state to SQLite after every committed mutation"
    )
    db_path: str = Field(
        default="ledger.db",
        description="SQLite database file"
    )


class TimeoutsConfig(StrictModel):
    """Lock timeouts and retry parameters for the state store."""

    state_store_lock: float = Field(
        default=30.0,
        gt=0,
        description="Seconds SQLite waits for a lock before raising"
    )
    state_store_retry_max: int = Field(
        default=5,
        ge=1,
        description="Max attempts on 'database is locked'"
    )
    state_store_retry_base: float = Field(
        default=0.1,
        gt=0,
        description="Initial backoff delay in seconds"
    )
    state_store_retry_max_delay: float = Field(
        default=5.0,
        gt=0,
        description="Backoff delay cap in seconds"
    )

    @model_validator(mode="after")
    def validate_backoff(self) -> "TimeoutsConfig":
        """Base delay cannot exceed the cap."""
        if self.state_store_retry_base > self.state_store_retry_max_delay:
            raise ValueError(
                f"state_store_retry_base ({self.state_store_retry_base}) must not exceed "
                f"state_store_retry_max_delay ({self.state_store_retry_max_delay})"
            )
        return self


# =============================================================================
# LOGGING MODEL
# =============================================================================

class LoggingConfig(StrictModel):
    """Logging configuration."""

    output_file: str = Field(
        default="events.jsonl",
        description="JSONL file for ledger events (empty string disables)"
    )
    default_recent: int = Field(
        default=50,
        gt=0,
        description="Default number of recent events to return"
    )
    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO",
        description="Log level for the runner"
    )


# =============================================================================
# ROOT CONFIG
# =============================================================================

class AppConfig(StrictModel):
    """Root configuration model.

    All fields have sensible defaults, so an empty config file is valid.
    """

    ledger: LedgerConfig = Field(default_factory=LedgerConfig)
    store: StoreConfig = Field(default_factory=StoreConfig)
    timeouts: TimeoutsConfig = Field(default_factory=TimeoutsConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


# =============================================================================
# LOADING FUNCTIONS
# =============================================================================

def load_validated_config(config_path: str | Path = "config/config.yaml") -> AppConfig:
    """Load and validate configuration from YAML file.

    Args:
        config_path: Path to config YAML file.

    Returns:
        Validated AppConfig instance.

    Raises:
        FileNotFoundError: If config file doesn't exist.
        pydantic.ValidationError: If config is invalid (with detailed error message).
    """
    path = Path(config_path)
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    with open(path) as f:
        raw_config = yaml.safe_load(f) or {}

    return AppConfig.model_validate(raw_config)


def validate_config_dict(config_dict: dict[str, Any]) -> AppConfig:
    """Validate a configuration dictionary.

    Args:
        config_dict: Configuration as a dictionary.

    Returns:
        Validated AppConfig instance.

    Raises:
        pydantic.ValidationError: If config is invalid.
    """
    return AppConfig.model_validate(config_dict)


__all__ = [
    "AppConfig",
    "LedgerConfig",
    "LoggingConfig",
    "StoreConfig",
    "TimeoutsConfig",
    "load_validated_config",
    "validate_config_dict",
]
