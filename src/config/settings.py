"""
Application settings with Pydantic v2 validation.

Each section reads its own environment prefix (``STORAGE_``, ``COSTING_``,
``LOG_``, ``API_``); top-level fields and a ``.env`` file are read as well.
"""

from pathlib import Path
from typing import Any, Literal

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

CostingMethodName = Literal["FIFO", "WEIGHTED_AVERAGE"]
RestorationModeName = Literal["reconstruct", "average"]


class StorageSettings(BaseSettings):
    """SQLite ledger database."""

    model_config = SettingsConfigDict(env_prefix="STORAGE_")

    data_dir: Path = Path("data")
    db_name: str = "workshop.db"

    pool_size: int = Field(default=5, ge=1)
    busy_timeout: int = Field(default=30000, ge=0)  # ms
    journal_mode: Literal["WAL", "DELETE"] = "WAL"

    # Copy an existing database aside before applying migrations
    backup_before_migrate: bool = True

    @property
    def db_path(self) -> Path:
        return self.data_dir / self.db_name


class CostingSettings(BaseSettings):
    """Inventory valuation."""

    model_config = SettingsConfigDict(env_prefix="COSTING_")

    # Used until a workshop-level method has been stored
    default_method: CostingMethodName = "FIFO"

    # Purchases within this unit-cost distance merge into one batch
    merge_tolerance: float = Field(default=0.01, ge=0)

    # Stock restoration when a completed job card is deleted
    restoration_mode: RestorationModeName = "reconstruct"

    # Reload-and-retry attempts after a concurrent stock change
    max_commit_retries: int = Field(default=3, ge=0)

    @field_validator("default_method", mode="before")
    @classmethod
    def normalize_method(cls, v: Any) -> Any:
        # Accept "fifo", "weighted-average" and similar spellings
        if isinstance(v, str):
            return v.strip().upper().replace("-", "_").replace(" ", "_")
        return v

    @field_validator("restoration_mode", mode="before")
    @classmethod
    def normalize_restoration_mode(cls, v: Any) -> Any:
        return v.strip().lower() if isinstance(v, str) else v


class LoggingSettings(BaseSettings):
    """structlog output."""

    model_config = SettingsConfigDict(env_prefix="LOG_")

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"

    # auto: console renderer in development, JSON elsewhere
    format: Literal["auto", "console", "json"] = "auto"

    quiet_loggers: list[str] = ["aiosqlite", "uvicorn.access"]


class APISettings(BaseSettings):
    """API server."""

    model_config = SettingsConfigDict(env_prefix="API_")

    host: str = "0.0.0.0"
    port: int = 8000
    debug: bool = False
    cors_origins: list[str] = ["*"]


class Settings(BaseSettings):
    """Main application settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    app_name: str = "Workshop Costing"
    app_version: str = "1.0.0"
    environment: Literal["development", "staging", "production"] = "development"

    storage: StorageSettings = Field(default_factory=StorageSettings)
    costing: CostingSettings = Field(default_factory=CostingSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    api: APISettings = Field(default_factory=APISettings)

    @field_validator("storage", mode="before")
    @classmethod
    def ensure_data_dir(cls, v: Any) -> StorageSettings:
        storage = StorageSettings(**v) if isinstance(v, dict) else v or StorageSettings()
        storage.data_dir.mkdir(parents=True, exist_ok=True)
        return storage

    @model_validator(mode="after")
    def no_debug_in_production(self) -> "Settings":
        if self.environment == "production" and self.api.debug:
            raise ValueError("API debug mode cannot be enabled in production")
        return self

    @property
    def json_logs(self) -> bool:
        if self.logging.format == "auto":
            return self.environment != "development"
        return self.logging.format == "json"


_settings: Settings | None = None


def get_settings() -> Settings:
    """Get or create global settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def reset_settings() -> None:
    """Drop the cached settings (for testing)."""
    global _settings
    _settings = None
