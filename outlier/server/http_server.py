"""HTTP server launcher for the outlier API.

Example:
    # Start server with defaults (0.0.0.0:3000)
    python -m outlier.server.http_server

    # Or use CLI entry point
    outlier serve --port 8080

    # Or point at a config file (useful for Docker/K8s)
    export CONFIG_FILE=config/outlier.yml
    python -m outlier.server.http_server
"""

import argparse
import logging
import sys

import uvicorn

from outlier.observability.logging import configure_logging
from outlier.server.config import (
    Config,
    ConfigError,
    LoggingConfig,
    ServerConfig,
    load_config_with_priority,
)
from outlier.server.rest_api import create_app

logger = logging.getLogger(__name__)

GRACEFUL_SHUTDOWN_TIMEOUT_S = 10
KEEP_ALIVE_TIMEOUT_S = 120


def start_server(config: Config) -> None:
    """Start the HTTP server and block until it shuts down.

    uvicorn handles SIGINT/SIGTERM and drains in-flight requests for up to
    GRACEFUL_SHUTDOWN_TIMEOUT_S seconds.

    Args:
        config: Loaded configuration
    """
    app = create_app(config)
    host, port = config.server.bind_ip, config.server.port

    logger.info("Outlier API server listening on http://%s:%s", host, port)
    uvicorn.run(
        app,
        host=host,
        port=port,
        log_level=config.logging.level.lower(),
        log_config=None,
        timeout_keep_alive=KEEP_ALIVE_TIMEOUT_S,
        timeout_graceful_shutdown=GRACEFUL_SHUTDOWN_TIMEOUT_S,
    )
    logger.info("Server stopped gracefully")


def apply_overrides(config: Config, host: str | None = None, port: int | None = None) -> Config:
    """Apply command-line host/port overrides to the server config."""
    overrides = {}
    if host:
        overrides["bind_ip"] = host
    if port:
        overrides["port"] = port
    if overrides:
        config.server = ServerConfig(**{**config.server.__dict__, **overrides})
    return config


def main() -> None:
    """CLI entry point for HTTP server.

    Supports command-line arguments:
    --config: Path to YAML configuration file (overrides CONFIG_FILE env var)
    --host: Host address to bind to
    --port: Port to listen on
    --log-level: Logging level
    """
    parser = argparse.ArgumentParser(description="Outlier HTTP API Server")
    parser.add_argument("--config", "-c", default=None, help="Path to configuration file")
    parser.add_argument("--host", default=None, help="Override bind address")
    parser.add_argument("--port", "-p", type=int, default=None, help="Override server port")
    parser.add_argument(
        "--log-level",
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Override logging level",
    )
    args = parser.parse_args()

    try:
        config = load_config_with_priority(args.config)
        config = apply_overrides(config, args.host, args.port)
        if args.log_level:
            config.logging = LoggingConfig(**{**config.logging.__dict__, "level": args.log_level})
    except (ConfigError, ValueError) as e:
        parser.error(str(e))

    configure_logging(config.logging)

    try:
        start_server(config)
    except Exception as e:
        logger.exception("Server startup failed: %s", e)
        sys.exit(1)


if __name__ == "__main__":
    main()
