"""Application configuration using pydantic-settings."""
import os
from pathlib import Path
from typing import Optional

import yaml
from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)


class BrowserConfig(BaseModel):
    """Browser launch and context configuration."""

    headless: bool = True
    executable_path: Optional[str] = Field(default_factory=lambda: os.getenv("CHROMIUM_PATH"))
    launch_args: list[str] = [
        "--no-sandbox",
        "--disable-dev-shm-usage",
        "--disable-gpu",
        "--disable-software-rasterizer",
        "--disable-background-timer-throttling",
        "--disable-backgrounding-occluded-windows",
        "--disable-renderer-backgrounding",
    ]
    viewport_width: int = 1280
    viewport_height: int = 720
    user_agent: str = DEFAULT_USER_AGENT


class TimeoutConfig(BaseModel):
    """Driver timeouts and delays, in milliseconds."""

    navigation: int = 30000
    history: int = 10000
    action: int = 10000
    ready: int = 10000
    network_idle: int = 5000
    settle: int = 200
    snapshot_retry: int = 500
    scroll_settle: int = 300


class SessionConfig(BaseModel):
    """Idle session eviction."""

    idle_timeout_seconds: float = 30 * 60
    reap_interval_seconds: float = 60


class SnapshotConfig(BaseModel):
    """Accessibility snapshot limits."""

    max_refs: int = 500


class ServerConfig(BaseModel):
    """HTTP server configuration."""

    host: str = "0.0.0.0"
    port: int = Field(default_factory=lambda: int(os.getenv("PORT", "3000")))
    log_level: str = "INFO"


class Settings(BaseSettings):
    """Application settings loaded from YAML or environment."""

    model_config = SettingsConfigDict(
        env_prefix="TABHOST_",
        env_nested_delimiter="__",
        extra="ignore",
    )

    browser: BrowserConfig = Field(default_factory=BrowserConfig)
    timeouts: TimeoutConfig = Field(default_factory=TimeoutConfig)
    sessions: SessionConfig = Field(default_factory=SessionConfig)
    snapshot: SnapshotConfig = Field(default_factory=SnapshotConfig)
    server: ServerConfig = Field(default_factory=ServerConfig)

    @classmethod
    def from_yaml(cls, path: Path) -> "Settings":
        """Load settings from a YAML file.

        Args:
            path: Path to the YAML configuration file.

        Returns:
            Settings instance with loaded configuration.
        """
        with open(path) as f:
            data = yaml.safe_load(f) or {}
        return cls(**data)
