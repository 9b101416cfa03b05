"""Configuration loading and validation for stepladder."""

from __future__ import annotations

import os
from pathlib import Path

import yaml
from pydantic import BaseModel, Field, field_validator


class DatabaseConfig(BaseModel):
    """Database configuration for the bundled SQL adaptor."""

    url: str = "sqlite:///stepladder.db"
    version_table: str = "_schema_version"
    echo: bool = False

    @field_validator("version_table")
    @classmethod
    def validate_version_table(cls, v: str) -> str:
        """Validate version_table is a plain identifier."""
        if not v or not v.replace("_", "").isalnum():
            raise ValueError("version_table must be a plain identifier")
        return v


class MigrationsConfig(BaseModel):
    """Where migration files live."""

    directory: Path = Path("migrations")


class Config(BaseModel):
    """Root configuration for stepladder."""

    log_level: str = "INFO"
    log_json: bool = True

    database: DatabaseConfig = Field(default_factory=DatabaseConfig)
    migrations: MigrationsConfig = Field(default_factory=MigrationsConfig)

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log_level is valid."""
        allowed = {"DEBUG", "INFO", "WARNING", "ERROR"}
        v_upper = v.upper()
        if v_upper not in allowed:
            raise ValueError(f"log_level must be one of: {allowed}")
        return v_upper

    @classmethod
    def load(cls, config_path: Path | str = Path("stepladder.yaml")) -> "Config":
        """Load configuration from YAML file with env var overlay.

        Args:
            config_path: Path to YAML configuration file.

        Returns:
            Validated Config instance.

        Raises:
            FileNotFoundError: If config file doesn't exist.
            ValueError: If config is invalid.
        """
        config_path = Path(config_path)

        if not config_path.exists():
            raise FileNotFoundError(f"Configuration file not found: {config_path}")

        with open(config_path) as f:
            yaml_config = yaml.safe_load(f) or {}

        if not isinstance(yaml_config, dict):
            raise ValueError(f"Configuration must be a mapping: {config_path}")

        return cls.model_validate(_apply_env_overrides(yaml_config))

    @classmethod
    def load_or_default(cls, config_path: Path | str | None = None) -> "Config":
        """Load configuration, falling back to defaults if file not found.

        Args:
            config_path: Optional path to YAML configuration file.

        Returns:
            Config instance (from file or defaults).
        """
        if config_path is None:
            for path in [Path("stepladder.yaml"), Path("stepladder.yml")]:
                if path.exists():
                    return cls.load(path)
            return cls.model_validate(_apply_env_overrides({}))

        try:
            return cls.load(config_path)
        except FileNotFoundError:
            return cls.model_validate(_apply_env_overrides({}))


def _apply_env_overrides(raw: dict) -> dict:
    if "STEPLADDER_DATABASE_URL" in os.environ:
        raw["database"] = {
            **(raw.get("database") or {}),
            "url": os.environ["STEPLADDER_DATABASE_URL"],
        }
    if "STEPLADDER_MIGRATIONS_DIR" in os.environ:
        raw["migrations"] = {
            **(raw.get("migrations") or {}),
            "directory": os.environ["STEPLADDER_MIGRATIONS_DIR"],
        }
    if "STEPLADDER_LOG_LEVEL" in os.environ:
        raw["log_level"] = os.environ["STEPLADDER_LOG_LEVEL"]
    if "STEPLADDER_LOG_JSON" in os.environ:
        raw["log_json"] = os.environ["STEPLADDER_LOG_JSON"].lower() == "true"
    return raw
