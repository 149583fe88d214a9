"""Configuration Management with Pydantic.

This module implements configuration models using Pydantic for parsing and
validation of YAML/JSON configuration files with environment variable overrides.
The configuration drives the default HTTP transport and logging setup.
"""

import os
import threading
from pathlib import Path

import structlog
import yaml
from pydantic import BaseModel, Field, field_validator

# Initialize logger
logger = structlog.get_logger(__name__)

# Constants
DEFAULT_CONFIG_FILES = (
    "parallel_requests.yaml",
    "parallel_requests.yml",
    "parallel_requests.json",
)
ENV_PREFIX = "PARALLEL_REQUESTS_"
HIGH_TIMEOUT_THRESHOLD = 300  # 5 minutes


class TransportConfig(BaseModel):
    """HTTP transport configuration settings.

    Attributes:
        base_url: Optional base URL prepended to relative request URLs
        timeout_seconds: Timeout applied to every request
        headers: Default headers sent with every request
        verify_ssl: Whether TLS certificates are verified
        follow_redirects: Whether redirects are followed automatically
    """

    base_url: str | None = Field(
        default=None,
        description="Base URL for relative request URLs",
    )
    timeout_seconds: float = Field(
        default=30.0,
        gt=0,
        description="Request timeout in seconds",
    )
    headers: dict[str, str] = Field(
        default_factory=dict,
        description="Default request headers",
    )
    verify_ssl: bool = Field(
        default=True,
        description="Verify TLS certificates",
    )
    follow_redirects: bool = Field(
        default=True,
        description="Follow HTTP redirects",
    )

    @field_validator("base_url")
    @classmethod
    def validate_base_url(cls, v: str | None) -> str | None:
        """Validate the base URL scheme and strip any trailing slash.

        Args:
            v: The base URL to validate

        Returns:
            The normalized base URL

        Raises:
            ValueError: If the URL is not http(s)
        """
        if v is None:
            return v
        if not v.startswith(("http://", "https://")):
            msg = "base_url must start with http:// or https://"
            raise ValueError(msg)
        return v.rstrip("/")

    model_config = {"str_strip_whitespace": True}


class ClientConfig(BaseModel):
    """Top-level configuration for the request orchestrator.

    Attributes:
        transport: HTTP transport configuration
        logging_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_logs: Render logs as JSON instead of console output
    """

    transport: TransportConfig = Field(default_factory=TransportConfig)
    logging_level: str = Field(
        default="INFO",
        description="Logging level",
        pattern=r"^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$",
    )
    json_logs: bool = Field(
        default=True,
        description="Render logs as JSON",
    )

    @classmethod
    def from_yaml(cls, path: str | Path) -> "ClientConfig":
        """Load configuration from a YAML (or JSON) file.

        Args:
            path: Path to the configuration file

        Returns:
            Parsed and validated ClientConfig instance

        Raises:
            FileNotFoundError: If configuration file doesn't exist
            ValueError: If configuration is invalid
        """
        config_path = Path(path)

        if not config_path.exists():
            msg = f"Configuration file not found: {config_path}"
            raise FileNotFoundError(msg)

        logger.info("loading_configuration", path=str(config_path))

        try:
            with config_path.open() as f:
                config_data = yaml.safe_load(f)

            if not config_data:
                msg = "Configuration file is empty"
                raise ValueError(msg)

            config_data = cls._apply_env_overrides(config_data)
            config = cls(**config_data)
        except yaml.YAMLError as e:
            logger.exception("yaml_parse_error", error=str(e), path=str(config_path))
            msg = f"Invalid YAML in configuration file: {e}"
            raise ValueError(msg) from e
        else:
            logger.info(
                "configuration_loaded",
                base_url=config.transport.base_url,
                timeout_seconds=config.transport.timeout_seconds,
                logging_level=config.logging_level,
            )

            return config

    @classmethod
    def _apply_env_overrides(cls, config_data: dict) -> dict:
        """Apply environment variable overrides to configuration.

        Environment variables follow the pattern: PARALLEL_REQUESTS_<KEY>
        Example: PARALLEL_REQUESTS_BASE_URL, PARALLEL_REQUESTS_TIMEOUT

        Args:
            config_data: Base configuration dictionary from file

        Returns:
            Configuration dictionary with environment overrides applied
        """
        env_overrides = {
            ("transport", "base_url"): f"{ENV_PREFIX}BASE_URL",
            ("transport", "timeout_seconds"): f"{ENV_PREFIX}TIMEOUT",
            ("transport", "verify_ssl"): f"{ENV_PREFIX}VERIFY_SSL",
            ("transport", "follow_redirects"): f"{ENV_PREFIX}FOLLOW_REDIRECTS",
            ("logging_level",): f"{ENV_PREFIX}LOGGING_LEVEL",
            ("json_logs",): f"{ENV_PREFIX}JSON_LOGS",
        }

        for path, env_var in env_overrides.items():
            value = os.environ.get(env_var)
            if value is None:
                continue

            current = config_data
            for key in path[:-1]:
                if key not in current or current[key] is None:
                    current[key] = {}
                current = current[key]

            if env_var.endswith("_TIMEOUT"):
                value = float(value)
            elif env_var.endswith(("_SSL", "_REDIRECTS", "_LOGS")):
                value = value.lower() in ("true", "1", "yes")

            current[path[-1]] = value
            logger.debug(
                "env_override_applied",
                env_var=env_var,
                config_path=".".join(path),
            )

        return config_data

    def validate_config(self) -> list[str]:
        """Validate configuration and return list of warnings.

        Returns:
            List of validation warning messages (empty if no warnings)
        """
        warnings = []

        if not self.transport.verify_ssl:
            warnings.append("TLS verification is disabled - only use against trusted hosts")

        if self.transport.base_url and self.transport.base_url.startswith("http://"):
            warnings.append("base_url uses plain HTTP - requests are not encrypted")

        if self.transport.timeout_seconds > HIGH_TIMEOUT_THRESHOLD:
            warnings.append(
                f"Request timeout is high ({self.transport.timeout_seconds}s) - "
                "batches may stay in flight for extended periods",
            )

        return warnings


class ConfigManager:
    """Configuration manager using singleton pattern."""

    _instance: ClientConfig | None = None
    _init_lock: threading.Lock = threading.Lock()

    @classmethod
    def load_config(cls, config_path: str | Path | None = None) -> ClientConfig:
        """Load configuration from file.

        Args:
            config_path: Path to configuration file. If None, looks for
                parallel_requests.yaml/.yml/.json in the current directory.

        Returns:
            Loaded ClientConfig instance

        Raises:
            FileNotFoundError: If config file not found
            ValueError: If config file is invalid
        """
        if config_path is None:
            for default_name in DEFAULT_CONFIG_FILES:
                default_path = Path(default_name)
                if default_path.exists():
                    config_path = default_path
                    break
            else:
                msg = (
                    "No configuration file found. Expected one of: "
                    f"{', '.join(DEFAULT_CONFIG_FILES)}"
                )
                raise FileNotFoundError(msg)

        return ClientConfig.from_yaml(config_path)

    @classmethod
    def get_config(
        cls,
        config_path: str | Path | None = None,
        reload: bool = False,
    ) -> ClientConfig:
        """Get configuration instance (singleton pattern).

        Uses double-checked locking so concurrent callers load the file once.

        Args:
            config_path: Path to configuration file. Only used on first call or when reload=True.
            reload: If True, force reload configuration from file.

        Returns:
            ClientConfig instance
        """
        if cls._instance is not None and not reload:
            return cls._instance

        with cls._init_lock:
            if cls._instance is None or reload:
                cls._instance = cls.load_config(config_path)

            return cls._instance

    @classmethod
    def peek_config(cls) -> ClientConfig | None:
        """Return the loaded configuration without triggering a load."""
        return cls._instance

    @classmethod
    def reset_config(cls) -> None:
        """Reset the configuration instance."""
        cls._instance = None


def load_config(config_path: str | Path | None = None) -> ClientConfig:
    """Load configuration from file."""
    return ConfigManager.load_config(config_path)


def get_config(config_path: str | Path | None = None, reload: bool = False) -> ClientConfig:
    """Get configuration instance (singleton pattern)."""
    return ConfigManager.get_config(config_path, reload)


def reset_config() -> None:
    """Reset the configuration instance."""
    ConfigManager.reset_config()


__all__ = [
    "ClientConfig",
    "ConfigManager",
    "TransportConfig",
    "get_config",
    "load_config",
    "reset_config",
]
