# deploy_console/config/settings.py

from functools import lru_cache
from typing import Dict, Literal, Optional

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class ClusterSettings(BaseModel):
    """Connection configuration for one managed cluster."""

    endpoint: str = Field(..., min_length=1, description="Base URL of the cluster management API")
    token: Optional[str] = None
    name: Optional[str] = None


class AppSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # --- Application ---
    app_name: str = "deploy-console"
    environment: Literal["dev", "test", "prod"] = "dev"
    debug: bool = False
    version: str = "0.1.0"

    # --- Database ---
    database_url: str = "sqlite+aiosqlite:///./deploy_console.db"
    auto_create_schema: bool = True

    # --- Clusters (JSON: {"<code>": {"endpoint": ..., "token": ...}}) ---
    clusters: Dict[str, ClusterSettings] = Field(default_factory=dict)

    # --- Remote calls ---
    remote_default_timeout_ms: int = Field(15000, gt=0)
    snapshot_timeout_ms: int = Field(30000, gt=0)

    # --- Packages ---
    package_dir: str = "./packages"
    max_package_bytes: int = Field(1024 * 1024 * 1024, gt=0)

    # --- Audit ---
    audit_timezone: str = "UTC"

    # --- Observability ---
    enable_metrics: bool = True
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    oplog_log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"


@lru_cache
def get_settings() -> AppSettings:
    return AppSettings()
