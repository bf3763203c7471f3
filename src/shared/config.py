"""Configuration management for the Smartsheet MCP Gateway.

Settings come from environment variables (and an optional ``.env`` file),
optionally overlaid by a YAML file. Configuration is loaded once and cached.
"""

import os
from functools import lru_cache
from pathlib import Path
from typing import Any

import yaml
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_SMARTSHEET_ENDPOINT = "https://api.smartsheet.com/2.0"


class Settings(BaseSettings):
    """Main application settings."""
    environment: str = Field(default="development")
    debug: bool = Field(default=False)
    log_level: str = Field(default="INFO")

    # HTTP server
    host: str = Field(default="0.0.0.0")
    port: int = Field(default=8080)

    # Security
    require_auth: bool = Field(default=True, description="Gate tools/call behind SECRET_KEY")
    secret_key: str = Field(default="", description="Shared secret expected in x-secret-key")

    # Backing API
    smartsheet_endpoint: str = Field(default=DEFAULT_SMARTSHEET_ENDPOINT)
    smartsheet_timeout: float = Field(default=30.0, gt=0)
    client_cache_capacity: int = Field(default=100, gt=0)

    # Audit
    enable_audit: bool = Field(default=False)
    audit_log_path: str = Field(default="logs/audit.log")

    # Reported by initialize and the metadata endpoints
    server_name: str = Field(default="smartsheet")
    server_version: str = Field(default="0.1.0")

    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore"
    )

    @property
    def effective_log_level(self) -> str:
        """DEBUG wins over LOG_LEVEL."""
        return "DEBUG" if self.debug else self.log_level.upper()

    @classmethod
    def from_yaml(cls, path: str | Path) -> "Settings":
        """Load settings from a YAML file, falling back to the environment."""
        path = Path(path)
        if not path.exists():
            return cls()

        return cls(**load_yaml_config(path))


def load_yaml_config(path: str | Path) -> dict[str, Any]:
    """Load a YAML configuration file."""
    path = Path(path)
    if not path.exists():
        return {}

    with open(path) as f:
        return yaml.safe_load(f) or {}


@lru_cache
def get_settings() -> Settings:
    """Get cached application settings."""
    config_path = os.environ.get("GATEWAY_CONFIG_PATH", "config/settings.yaml")
    return Settings.from_yaml(config_path)
