"""Client setup from configuration.

Loads the configuration file, configures logging from it, reports
configuration warnings and rebuilds the default transport so that
orchestrators created without an explicit transport use the configured
base URL, headers and timeout.

Example:
    >>> from src.client import configure_client
    >>> from src.orchestrator import parallel_get
    >>> config = configure_client("parallel_requests.yaml")
    >>> batch = parallel_get(lambda user_id: f"/users/{user_id}")
"""

from pathlib import Path

from src.config import ClientConfig, get_config
from src.log_config import configure_logging, get_logger
from src.transport.provider import reset_transport

# Initialize logger
logger = get_logger(__name__)


def configure_client(config_path: str | Path | None = None, reload: bool = False) -> ClientConfig:
    """Apply the client configuration to logging and the default transport.

    Args:
        config_path: Path to configuration file. If None, the default
            parallel_requests.yaml/.yml/.json files are looked up.
        reload: If True, force reload configuration from file.

    Returns:
        The applied ClientConfig

    Raises:
        FileNotFoundError: If config file not found
        ValueError: If config file is invalid
    """
    config = get_config(config_path, reload=reload)

    # Configure logging
    configure_logging(config.logging_level, config.json_logs)

    # Print configuration warnings
    for warning in config.validate_config():
        logger.warning("configuration_warning", message=warning)

    # Next default transport lookup picks up the loaded transport settings
    reset_transport()

    logger.info(
        "client_configured",
        base_url=config.transport.base_url,
        logging_level=config.logging_level,
    )
    return config


__all__ = ["configure_client"]
