"""CLI entry point for the tabhost server."""
import argparse
import logging
from pathlib import Path
from typing import Optional

import uvicorn

from .core.config import Settings
from .core.logging import setup_logging
from .server.app import create_app

DEFAULT_CONFIG = Path("config/settings.yaml")


def load_settings(config_path: Optional[Path]) -> Settings:
    """Load settings from YAML when the file exists, else from environment."""
    if config_path and config_path.exists():
        return Settings.from_yaml(config_path)
    return Settings()


def main(argv: Optional[list[str]] = None) -> int:
    """Run the tabhost HTTP server."""
    parser = argparse.ArgumentParser(
        description="Serve headless browser tabs over HTTP"
    )
    parser.add_argument(
        "--config", "-c",
        type=Path,
        default=DEFAULT_CONFIG,
        help="Path to settings YAML file"
    )
    parser.add_argument(
        "--host",
        help="Bind address (overrides settings)"
    )
    parser.add_argument(
        "--port", "-p",
        type=int,
        help="Port to listen on (overrides settings and $PORT)"
    )
    parser.add_argument(
        "--debug", "-d",
        action="store_true",
        help="Enable debug logging"
    )

    args = parser.parse_args(argv)

    settings = load_settings(args.config)
    if args.host:
        settings.server.host = args.host
    if args.port:
        settings.server.port = args.port

    level = "DEBUG" if args.debug else settings.server.log_level
    setup_logging(level)
    logger = logging.getLogger(__name__)

    logger.info(f"tabhost listening on {settings.server.host}:{settings.server.port}")
    uvicorn.run(
        create_app(settings),
        host=settings.server.host,
        port=settings.server.port,
        log_config=None,
    )
    return 0
