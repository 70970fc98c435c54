"""
Application settings with Pydantic v2 validation.

Loads configuration from environment variables with sensible defaults.
"""

from pathlib import Path
from typing import Any, Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class RemoteSettings(BaseSettings):
    """Remote system-of-record API configuration."""

    model_config = SettingsConfigDict(env_prefix="REMOTE_")

    base_url: str = "http://localhost:3000/api"
    timeout: float = 10.0  # seconds, applies to every remote call
    health_path: str = "/health"
    probe_timeout: float = 5.0

    # In-call retry for reads only; writes are retried by the queue
    read_retries: int = 3
    read_retry_delay: float = 0.5


class NetworkSettings(BaseSettings):
    """Device-level reachability probe."""

    model_config = SettingsConfigDict(env_prefix="NETWORK_")

    probe_host: str = "1.1.1.1"
    probe_port: int = 53
    probe_timeout: float = 3.0

    # Off for LAN-only terminals: the remote health probe alone decides
    probe_enabled: bool = True


class SyncSettings(BaseSettings):
    """Pending operation replay configuration."""

    model_config = SettingsConfigDict(env_prefix="SYNC_")

    max_attempts: int = 3
    batch_size: int = 20

    # Backoff after a retryable failure
    backoff: Literal["fixed", "exponential"] = "fixed"
    retry_delay: float = 5.0
    max_retry_delay: float = 300.0

    # How long submit() waits on the drain it triggers
    submit_timeout: float = 5.0

    # Background monitor
    poll_interval: float = 30.0
    auto_sync_enabled: bool = True
    auto_sync_interval: float = 300.0  # 5 minutes

    start_offline: bool = False


class CacheSettings(BaseSettings):
    """Remote state cache configuration."""

    model_config = SettingsConfigDict(env_prefix="CACHE_")

    ttl_seconds: int = 300
    auto_refresh: bool = True


class ReconciliationSettings(BaseSettings):
    """Cash session closing policy."""

    model_config = SettingsConfigDict(env_prefix="RECONCILIATION_")

    # Availability over strict consistency: allow closing while offline
    permissive_when_offline: bool = True
    cash_methods: list[str] = ["CASH"]


class StorageSettings(BaseSettings):
    """Storage configuration."""

    model_config = SettingsConfigDict(env_prefix="STORAGE_")

    data_dir: Path = Path("data")
    db_name: str = "possync.db"

    # SQLite settings
    pool_size: int = 2
    busy_timeout: int = 30000  # ms

    @property
    def db_path(self) -> Path:
        return self.data_dir / self.db_name


class APISettings(BaseSettings):
    """Local API server configuration."""

    model_config = SettingsConfigDict(env_prefix="API_")

    host: str = "127.0.0.1"
    port: int = 8700
    debug: bool = False
    cors_origins: list[str] = ["http://localhost", "http://127.0.0.1"]


class Settings(BaseSettings):
    """Main application settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    app_name: str = "POS Sync Agent"
    app_version: str = "1.0.0"
    environment: Literal["development", "staging", "production"] = "development"
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    terminal_id: str = "pos-01"

    # Sub-settings
    remote: RemoteSettings = Field(default_factory=RemoteSettings)
    network: NetworkSettings = Field(default_factory=NetworkSettings)
    sync: SyncSettings = Field(default_factory=SyncSettings)
    cache: CacheSettings = Field(default_factory=CacheSettings)
    reconciliation: ReconciliationSettings = Field(default_factory=ReconciliationSettings)
    storage: StorageSettings = Field(default_factory=StorageSettings)
    api: APISettings = Field(default_factory=APISettings)

    @field_validator("storage", mode="before")
    @classmethod
    def ensure_data_dir(cls, v: Any) -> StorageSettings:
        if isinstance(v, dict):
            settings = StorageSettings(**v)
        else:
            settings = v or StorageSettings()
        settings.data_dir.mkdir(parents=True, exist_ok=True)
        return settings


# Global settings instance
_settings: Settings | None = None


def get_settings() -> Settings:
    """Get or create global settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def reset_settings() -> None:
    """Reset settings (for testing)."""
    global _settings
    _settings = None
