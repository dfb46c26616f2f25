"""Application configuration using pydantic-settings."""

from functools import lru_cache
from typing import Literal

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class OutputLocations(BaseModel):
    """Secondary report destinations."""

    urls: list[str] = Field(
        default_factory=list,
        description="Additional HTTP endpoints receiving every report message",
    )
    files: list[str] = Field(
        default_factory=list,
        description="Local files that report messages are appended to",
    )


class DataCollectorSettings(BaseModel):
    """Run reporting configuration."""

    server_url: str | None = Field(
        default=None,
        description="Primary collector endpoint",
    )
    token: str | None = Field(
        default=None,
        description="Bearer token sent as x-data-collector-token",
    )
    mode: Literal["solo", "client", "both"] = Field(
        default="both",
        description="Run modes in which reporting is active",
    )
    raise_on_failure: bool = Field(
        default=False,
        description="Propagate primary delivery errors instead of logging them",
    )
    organization: str | None = Field(
        default=None,
        description="Organization reported for solo runs",
    )
    output_locations: OutputLocations | None = Field(
        default=None,
        description="Secondary sinks (HTTP urls and files)",
    )
    timeout: float = Field(
        default=30.0,
        gt=0,
        description="HTTP request timeout in seconds",
    )


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = "ConvergeReport"
    app_version: str = "0.1.0"
    debug: bool = False
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"

    # Run mode
    why_run: bool = Field(default=False, description="Dry-run mode, nothing is reported")
    solo: bool = Field(default=False, description="Running without a configuration server")
    local_mode: bool = Field(default=False, description="Running against a local in-memory server")

    # Node identity
    chef_server_url: str | None = Field(
        default=None,
        description="Configuration server URL, used for fqdn and organization",
    )
    node_name: str | None = Field(default=None, description="Configured node name")
    chef_guid_path: str = Field(
        default="/etc/chef/chef_guid",
        description="File holding the persisted per-node entity UUID",
    )

    data_collector: DataCollectorSettings = Field(default_factory=DataCollectorSettings)

    @property
    def solo_run(self) -> bool:
        """Whether this is a solo (or local mode) run."""
        return self.solo or self.local_mode

    @property
    def running_mode(self) -> Literal["solo", "client"]:
        return "solo" if self.solo_run else "client"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
