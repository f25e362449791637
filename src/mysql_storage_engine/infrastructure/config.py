"""Configuration management for the MySQL storage engine."""

from __future__ import annotations

import json
from collections.abc import Mapping
from functools import lru_cache
from pathlib import Path
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from mysql_storage_engine.domain.value_objects import TableName
from mysql_storage_engine.infrastructure.merge import merge_no_array

AUTH_FILE_NAME = "auth.mysql.json"


class MySQLOptions(BaseModel):
    """Connection options for the backing MySQL database."""

    model_config = ConfigDict(frozen=True)

    host: str = Field(default="localhost", description="MySQL server host")
    port: int = Field(default=12345, ge=1, le=65535, description="MySQL server port")
    table: str = Field(default="ass", description="Table holding the entries")
    database: str = Field(default="dbname", description="Database (schema) name")
    username: str = Field(default="dbuser", description="MySQL user")
    password: str = Field(default="dbpass", description="MySQL password")

    @field_validator("table")
    @classmethod
    def _validate_table(cls, value: str) -> str:
        TableName(value)
        return value

    @property
    def table_name(self) -> TableName:
        """The table as a validated identifier."""
        return TableName(self.table)

    @classmethod
    def from_overrides(cls, overrides: Mapping[str, Any] | None = None) -> MySQLOptions:
        """
        Build options from the defaults with caller overrides merged on top.

        Args:
            overrides: Partial options; keys missing here keep their defaults

        Returns:
            Frozen options
        """
        return cls(**merge_no_array(cls().model_dump(), overrides))


class PoolConfig(BaseModel):
    """Connection pool configuration."""

    max_connections: int = Field(default=10, ge=1, le=1000, description="Max pooled connections")
    connect_timeout_seconds: int = Field(default=5, ge=1, description="Connect timeout in seconds")
    idle_timeout_seconds: int = Field(
        default=30, ge=1, description="Recycle connections idle longer than this"
    )


class ObservabilityConfig(BaseModel):
    """Observability configuration."""

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO", description="Log level"
    )
    log_format: Literal["json", "console"] = Field(default="json", description="Log format")
    otel_endpoint: str | None = Field(
        default=None, description="OpenTelemetry collector endpoint"
    )
    otel_service_name: str = Field(
        default="mysql_storage_engine", description="Service name for tracing"
    )


class Config(BaseSettings):
    """Main configuration for the MySQL storage engine."""

    model_config = SettingsConfigDict(
        env_prefix="MYSQL_ENGINE_",
        env_nested_delimiter="__",
        case_sensitive=False,
    )

    mysql: MySQLOptions = Field(default_factory=MySQLOptions)
    pool: PoolConfig = Field(default_factory=PoolConfig)
    observability: ObservabilityConfig = Field(default_factory=ObservabilityConfig)


def load_auth_file(path: str | Path | None = None) -> MySQLOptions:
    """
    Read connection options from the host's auth file.

    Args:
        path: File to read; defaults to ``auth.mysql.json`` in the working directory

    Returns:
        Options with the file's values merged over the defaults

    Raises:
        FileNotFoundError: If the file does not exist
        ValueError: If the file is not a JSON object or holds invalid values
    """
    auth_path = Path(path) if path is not None else Path.cwd() / AUTH_FILE_NAME
    with auth_path.open(encoding="utf-8") as f:
        raw = json.load(f)

    if not isinstance(raw, dict):
        raise ValueError(f"{auth_path} must contain a JSON object")

    known = {key: raw[key] for key in MySQLOptions.model_fields if key in raw}
    return MySQLOptions.from_overrides(known)


@lru_cache
def get_config() -> Config:
    """Get the global configuration instance."""
    return Config()
