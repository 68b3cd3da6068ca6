"""Centralized configuration management for Tibia Character Lookup.

This module provides application-level configuration from environment variables.

Features:
- Environment variable support via .env files
- Fallback priority: .env → hardcoded defaults
- Type-safe configuration using Pydantic
- Lazily created singleton for global access

Usage:
    from utils.config import get_config

    config = get_config()
    client = TibiaDataClient(
        base_url=config.tibiadata.base_url,
        request_timeout=config.tibiadata.request_timeout,
    )
"""

from __future__ import annotations

import threading
import tomllib
from logging import getLogger
from pathlib import Path
from typing import Literal

from pydantic import Field, ValidationError, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .exceptions import ConfigurationError

logger = getLogger(__name__)

PROJECT_ROOT = Path(__file__).parent.parent.parent


def _read_pyproject() -> dict:
    """Read pyproject.toml and extract project metadata."""
    pyproject_path = PROJECT_ROOT / "pyproject.toml"
    try:
        with open(pyproject_path, "rb") as f:
            project = tomllib.load(f).get("project", {})
    except (OSError, tomllib.TOMLDecodeError) as e:
        logger.warning("Could not read pyproject.toml: %s", e)
        return {"name": "tibia-character-lookup", "version": "?.?.?", "urls": {}}

    urls = {}
    if isinstance(project.get("urls"), dict):
        for k, v in project["urls"].items():
            if isinstance(v, str):
                urls[str(k).lower()] = v

    return {
        "name": project.get("name", "tibia-character-lookup"),
        "version": project.get("version", "?.?.?"),
        "urls": urls,
    }


# Read project metadata once at module load
_PROJECT_METADATA = _read_pyproject()


class TibiaDataConfig(BaseSettings):
    """TibiaData API and lookup pipeline configuration."""

    base_url: str = Field(
        default="https://api.tibiadata.com/v4",
        description="Base URL for TibiaData API endpoints",
    )

    # Timeouts
    request_timeout: float = Field(
        default=15.0,
        description="Connect/read timeout in seconds for a single request",
        gt=0,
    )
    resource_timeout: float = Field(
        default=30.0,
        description="Overall timeout in seconds for fetching one resource",
        gt=0,
    )

    # Response cache
    cache_ttl_seconds: float = Field(
        default=60.0,
        description="Seconds a cached character response stays valid",
        ge=60,
        le=300,
    )
    cache_count_limit: int = Field(
        default=50,
        description="Maximum number of cached character responses",
        ge=1,
    )
    cache_cost_limit: int = Field(
        default=10 * 1024 * 1024,
        description="Approximate maximum total size in bytes of cached responses",
        ge=1,
    )

    # Recent searches
    max_recent_searches: int = Field(
        default=4,
        description="Number of recent searches kept",
        ge=1,
    )
    store_dir: str = Field(
        default="store",
        description="Key-value store directory for recent searches (relative to user_data_dir)",
    )
    recent_searches_key: str = Field(
        default="recentSearches",
        description="Key under which the recent searches list is persisted",
    )

    # Presentation smoothing
    min_loading_seconds: float = Field(
        default=0.5,
        description="Minimum time the loading flag stays set for a network lookup",
        ge=0,
    )

    # Connectivity probe
    connectivity_probe_host: str = Field(
        default="api.tibiadata.com",
        description="Host used to probe network connectivity",
    )
    connectivity_probe_port: int = Field(
        default=443,
        description="Port used to probe network connectivity",
    )
    connectivity_probe_timeout: float = Field(
        default=3.0,
        description="Seconds to wait for the connectivity probe",
        gt=0,
    )
    connectivity_poll_interval: float = Field(
        default=10.0,
        description="Seconds between background connectivity probes",
        gt=0,
    )

    model_config = SettingsConfigDict(
        env_prefix="TIBIADATA_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
    )

    @model_validator(mode="after")
    def _check_timeouts(self) -> TibiaDataConfig:
        if self.resource_timeout < self.request_timeout:
            raise ValueError(
                "resource_timeout must not be shorter than request_timeout "
                f"({self.resource_timeout} < {self.request_timeout})"
            )
        return self


class AppConfig(BaseSettings):
    """Application-wide configuration."""

    name: str = Field(
        default_factory=lambda: _PROJECT_METADATA["name"],
        description="Application name (from pyproject.toml)",
    )
    version: str = Field(
        default_factory=lambda: _PROJECT_METADATA["version"],
        description="Application version (from pyproject.toml)",
    )
    user_agent: str = Field(
        default="",
        description="HTTP User-Agent header (auto-generated if empty)",
    )

    # Logging
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="WARNING",
        description="Logging level",
    )

    data_dir: Path = Field(
        default_factory=lambda: PROJECT_ROOT / "data",
        description="Directory for writable files (store, logs)",
    )

    model_config = SettingsConfigDict(
        env_prefix="APP_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
    )

    @property
    def user_data_dir(self) -> Path:
        """Get user data directory for writable files, creating it if needed."""
        self.data_dir.mkdir(parents=True, exist_ok=True)
        return self.data_dir

    @property
    def computed_user_agent(self) -> str:
        """Generate User-Agent header if not explicitly set."""
        if self.user_agent:
            return self.user_agent
        agent = f"{self.name}/{self.version}"
        urls = _PROJECT_METADATA.get("urls") or {}
        primary = urls.get("repository") or urls.get("homepage")
        if primary:
            agent += f" (+{primary})"
        return agent


class Config:
    """Main configuration container."""

    def __init__(self) -> None:
        """Initialize configuration from environment and defaults.

        Raises:
            ConfigurationError: If a setting is missing or invalid
        """
        try:
            self.app = AppConfig()
            self.tibiadata = TibiaDataConfig()
        except ValidationError as e:
            raise ConfigurationError(f"Invalid configuration: {e}") from e

    def __repr__(self) -> str:
        """String representation of config."""
        return f"Config(\n  app={self.app},\n  tibiadata={self.tibiadata}\n)"


_config_instance: Config | None = None
_config_lock = threading.Lock()


def get_config(config: Config | None = None) -> Config:
    """Get the global configuration instance (lazy initialization).

    Args:
        config: Optional config instance to use instead of singleton.
                If provided, it replaces the singleton.

    Returns:
        Global Config instance
    """
    global _config_instance  # noqa: PLW0603

    if config is not None:
        with _config_lock:
            _config_instance = config
        return _config_instance

    if _config_instance is None:
        with _config_lock:
            if _config_instance is None:
                _config_instance = Config()

    assert _config_instance is not None
    return _config_instance


def reset_config() -> None:
    """Reset the global config instance.

    Primarily for testing.
    """
    global _config_instance  # noqa: PLW0603
    with _config_lock:
        _config_instance = None
