"""Core utilities: configuration, logging and errors."""
from .config import (
    BrowserConfig,
    ServerConfig,
    SessionConfig,
    Settings,
    SnapshotConfig,
    TimeoutConfig,
)
from .errors import ClientError, DriverError, NotFound, TabHostError
from .logging import setup_logging

__all__ = [
    "BrowserConfig",
    "ServerConfig",
    "SessionConfig",
    "Settings",
    "SnapshotConfig",
    "TimeoutConfig",
    "ClientError",
    "DriverError",
    "NotFound",
    "TabHostError",
    "setup_logging",
]
