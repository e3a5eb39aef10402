"""Configuration management with validation.

This module provides centralized configuration for the outlier CLI and HTTP
server with:
- YAML file support
- Environment variable overrides
- Validation in frozen dataclasses

Configuration sources (highest priority first):
1. Environment variables (OUTLIER_*)
2. YAML config file: explicit path, else the CONFIG_FILE environment variable
3. Default values

Example outlier.yml:
    logging:
      level: "INFO"
      output: "stdout"
      format: "compact"

    server:
      bind_ip: "0.0.0.0"
      port: 3000
      max_body_mb: 100

    calculation:
      default_percentile: 95.0

Usage:
    config = load_config_with_priority(args.config)
    percentile = config.calculation.default_percentile
"""

import logging
import os
import tempfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

logger = logging.getLogger(__name__)

CONFIG_FILE_ENV = "CONFIG_FILE"

VALID_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")
VALID_LOG_OUTPUTS = ("stdout", "stderr", "file")
VALID_LOG_FORMATS = ("compact", "pretty", "json")


class ConfigError(Exception):
    """Configuration file could not be read, parsed, or validated."""


@dataclass(frozen=True)
class LoggingConfig:
    """Logging configuration.

    Attributes:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        output: Destination: "stdout" | "stderr" | "file"
        format: Record layout: "compact" | "pretty" | "json"
        log_file: Path to log file, used when output is "file"
    """

    level: str = "INFO"
    output: str = "stdout"
    format: str = "compact"
    log_file: str = ""

    def __post_init__(self) -> None:
        """Validate configuration."""
        object.__setattr__(self, "level", str(self.level).upper())
        if self.level not in VALID_LOG_LEVELS:
            msg = f"level must be one of {list(VALID_LOG_LEVELS)}, got '{self.level}'"
            raise ValueError(msg)

        if self.output not in VALID_LOG_OUTPUTS:
            msg = f"output must be one of {list(VALID_LOG_OUTPUTS)}, got '{self.output}'"
            raise ValueError(msg)

        if self.format not in VALID_LOG_FORMATS:
            msg = f"format must be one of {list(VALID_LOG_FORMATS)}, got '{self.format}'"
            raise ValueError(msg)

        # Default log_file uses system temp dir for portability
        if self.output == "file" and not self.log_file:
            object.__setattr__(self, "log_file", str(Path(tempfile.gettempdir()) / "outlier.log"))


@dataclass(frozen=True)
class ServerConfig:
    """HTTP server configuration.

    Attributes:
        bind_ip: Address to bind to (0.0.0.0 binds all interfaces)
        port: Port to listen on
        max_body_mb: Request body ceiling in megabytes
        cors_origins: Allowed CORS origins ("*" allows all)
    """

    bind_ip: str = "0.0.0.0"  # noqa: S104
    port: int = 3000
    max_body_mb: int = 100
    cors_origins: tuple[str, ...] = ("*",)

    def __post_init__(self) -> None:
        """Validate configuration."""
        if not (1 <= int(self.port) <= 65535):
            msg = f"port must be 1-65535, got {self.port}"
            raise ValueError(msg)

        if int(self.max_body_mb) <= 0:
            msg = f"max_body_mb must be > 0, got {self.max_body_mb}"
            raise ValueError(msg)

        # YAML gives a list or a single string; keep the frozen dataclass hashable
        origins = self.cors_origins
        if isinstance(origins, str):
            origins = (origins,)
        elif not isinstance(origins, (list, tuple)):
            msg = f"cors_origins must be a list of origins, got {type(origins).__name__}"
            raise ValueError(msg)
        if not all(isinstance(origin, str) for origin in origins):
            msg = f"cors_origins must contain only strings, got {list(origins)}"
            raise ValueError(msg)
        object.__setattr__(self, "cors_origins", tuple(origins))

    @property
    def max_body_bytes(self) -> int:
        """Request body ceiling in bytes."""
        return int(self.max_body_mb) * 1024 * 1024


@dataclass(frozen=True)
class CalculationConfig:
    """Calculation defaults applied by callers of the percentile engine.

    Attributes:
        default_percentile: Percentile used when a request does not give one
    """

    default_percentile: float = 95.0

    def __post_init__(self) -> None:
        """Validate configuration."""
        if not (0 <= float(self.default_percentile) <= 100):
            msg = f"default_percentile must be 0-100, got {self.default_percentile}"
            raise ValueError(msg)


@dataclass
class Config:
    """Root configuration object.

    Attributes:
        logging: Logging configuration
        server: Server configuration
        calculation: Calculation defaults
        _config_path: Path the config was loaded from, if any
    """

    logging: LoggingConfig = field(default_factory=LoggingConfig)
    server: ServerConfig = field(default_factory=ServerConfig)
    calculation: CalculationConfig = field(default_factory=CalculationConfig)
    _config_path: Path | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert config to dictionary.

        Returns:
            Dict representation of config
        """
        return {
            "logging": {
                "level": self.logging.level,
                "output": self.logging.output,
                "format": self.logging.format,
                "log_file": self.logging.log_file,
            },
            "server": {
                "bind_ip": self.server.bind_ip,
                "port": self.server.port,
                "max_body_mb": self.server.max_body_mb,
                "cors_origins": list(self.server.cors_origins),
            },
            "calculation": {
                "default_percentile": self.calculation.default_percentile,
            },
        }


def _section(yaml_config: dict[str, Any], name: str) -> dict[str, Any]:
    section = yaml_config.get(name) or {}
    if not isinstance(section, dict):
        msg = f"config section '{name}' must be a mapping, got {type(section).__name__}"
        raise ConfigError(msg)
    return section


def load_config(config_path: str | Path) -> Config:
    """Load configuration from a YAML file on top of the defaults.

    Args:
        config_path: Path to config YAML file

    Returns:
        Config object

    Raises:
        ConfigError: If the file cannot be read or parsed, or holds invalid values
    """
    config_path = Path(config_path)
    logger.info("Loading configuration from %s", config_path)

    try:
        with open(config_path) as f:
            yaml_config = yaml.safe_load(f) or {}
    except OSError as e:
        msg = f"failed to read config file: {e}"
        raise ConfigError(msg) from e
    except yaml.YAMLError as e:
        msg = f"failed to parse config file: {e}"
        raise ConfigError(msg) from e

    if not isinstance(yaml_config, dict):
        msg = "failed to parse config file: top level must be a mapping"
        raise ConfigError(msg)

    defaults = Config()
    logging_dict = _section(yaml_config, "logging")
    server_dict = _section(yaml_config, "server")
    calculation_dict = _section(yaml_config, "calculation")

    try:
        return Config(
            logging=LoggingConfig(
                level=logging_dict.get("level", defaults.logging.level),
                output=logging_dict.get("output", defaults.logging.output),
                format=logging_dict.get("format", defaults.logging.format),
                log_file=logging_dict.get("log_file", defaults.logging.log_file),
            ),
            server=ServerConfig(
                bind_ip=server_dict.get("bind_ip", defaults.server.bind_ip),
                port=int(server_dict.get("port", defaults.server.port)),
                max_body_mb=int(server_dict.get("max_body_mb", defaults.server.max_body_mb)),
                cors_origins=server_dict.get("cors_origins", defaults.server.cors_origins),
            ),
            calculation=CalculationConfig(
                default_percentile=float(
                    calculation_dict.get(
                        "default_percentile", defaults.calculation.default_percentile
                    )
                ),
            ),
            _config_path=config_path,
        )
    except (TypeError, ValueError) as e:
        msg = f"invalid configuration in {config_path}: {e}"
        raise ConfigError(msg) from e


def _apply_env_overrides(config: Config) -> Config:
    """Apply OUTLIER_* environment variable overrides.

    Environment variables:
        OUTLIER_LOG_LEVEL: Log level (DEBUG/INFO/WARNING/ERROR/CRITICAL)
        OUTLIER_LOG_FORMAT: Log format (compact/pretty/json)
        OUTLIER_LOG_OUTPUT: Log destination (stdout/stderr/file)
        OUTLIER_BIND_IP: HTTP server bind address
        OUTLIER_PORT: HTTP server port
        OUTLIER_MAX_BODY_MB: Request body ceiling in megabytes
        OUTLIER_DEFAULT_PERCENTILE: Default percentile (0-100)
    """
    logging_overrides: dict[str, Any] = {}
    server_overrides: dict[str, Any] = {}
    calculation_overrides: dict[str, Any] = {}

    if os.getenv("OUTLIER_LOG_LEVEL"):
        logging_overrides["level"] = os.getenv("OUTLIER_LOG_LEVEL")
    if os.getenv("OUTLIER_LOG_FORMAT"):
        logging_overrides["format"] = os.getenv("OUTLIER_LOG_FORMAT")
    if os.getenv("OUTLIER_LOG_OUTPUT"):
        logging_overrides["output"] = os.getenv("OUTLIER_LOG_OUTPUT")

    try:
        if os.getenv("OUTLIER_BIND_IP"):
            server_overrides["bind_ip"] = os.getenv("OUTLIER_BIND_IP")
        if os.getenv("OUTLIER_PORT"):
            server_overrides["port"] = int(os.getenv("OUTLIER_PORT"))
        if os.getenv("OUTLIER_MAX_BODY_MB"):
            server_overrides["max_body_mb"] = int(os.getenv("OUTLIER_MAX_BODY_MB"))
        if os.getenv("OUTLIER_DEFAULT_PERCENTILE"):
            calculation_overrides["default_percentile"] = float(
                os.getenv("OUTLIER_DEFAULT_PERCENTILE")
            )

        # Recreate objects to trigger __post_init__ validation
        if logging_overrides:
            config.logging = LoggingConfig(**{**config.logging.__dict__, **logging_overrides})
        if server_overrides:
            config.server = ServerConfig(**{**config.server.__dict__, **server_overrides})
        if calculation_overrides:
            config.calculation = CalculationConfig(
                **{**config.calculation.__dict__, **calculation_overrides}
            )
    except ValueError as e:
        msg = f"invalid configuration in environment: {e}"
        raise ConfigError(msg) from e

    return config


def load_config_with_priority(config_path: str | Path | None = None) -> Config:
    """Load configuration from the first available source.

    Priority:
    1. Provided config_path (if not empty)
    2. CONFIG_FILE environment variable
    3. Default configuration

    Environment overrides (OUTLIER_*) are applied on top in every case.

    Args:
        config_path: Optional explicit path to a YAML config file

    Returns:
        Config object

    Raises:
        ConfigError: If a selected config file is unusable or an override is invalid
    """
    if config_path:
        config = load_config(config_path)
    elif os.getenv(CONFIG_FILE_ENV):
        config = load_config(os.environ[CONFIG_FILE_ENV])
    else:
        config = Config()

    return _apply_env_overrides(config)


__all__ = [
    "CONFIG_FILE_ENV",
    "CalculationConfig",
    "Config",
    "ConfigError",
    "LoggingConfig",
    "ServerConfig",
    "load_config",
    "load_config_with_priority",
]
