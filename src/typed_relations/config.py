"""Configuration management for typed_relations."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

_PATH_SEPARATORS = ("/", "\\", "\0")


class StorageConfig(BaseModel):
    """Snapshot storage configuration."""

    data_dir: Path = Field(default=Path("store"), description="Directory holding table snapshots")
    extension: str = Field(
        default=".dbf", pattern=r"^\.[A-Za-z0-9_]+$", description="Snapshot file extension"
    )

    def path_for(self, table_name: str) -> Path:
        """Return the snapshot path for a table.

        Raises:
            ValueError: If the name is empty or would leave data_dir.
        """
        if (
            not table_name
            or table_name in (".", "..")
            or any(sep in table_name for sep in _PATH_SEPARATORS)
        ):
            raise ValueError(f"Invalid table name for a snapshot file: {table_name!r}")
        return self.data_dir / f"{table_name}{self.extension}"


class TableConfig(BaseModel):
    """Table behaviour configuration."""

    duplicate_keys: Literal["reject", "overwrite"] = Field(
        default="reject", description="What insert does with a key that is already indexed"
    )
    rename_suffix: str = Field(
        default="2", min_length=1, description="Appended to clashing attribute names in joins"
    )


class ObservabilityConfig(BaseModel):
    """Observability configuration."""

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO", description="Log level"
    )
    log_format: Literal["json", "console"] = Field(default="console", description="Log format")


class Config(BaseSettings):
    """Main configuration for typed_relations."""

    model_config = SettingsConfigDict(
        env_prefix="TYPED_RELATIONS_",
        env_nested_delimiter="__",
        case_sensitive=False,
    )

    storage: StorageConfig = Field(default_factory=StorageConfig)
    tables: TableConfig = Field(default_factory=TableConfig)
    observability: ObservabilityConfig = Field(default_factory=ObservabilityConfig)


@lru_cache
def get_config() -> Config:
    """Get the global configuration instance."""
    return Config()
