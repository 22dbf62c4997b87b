"""Process-wide run configuration, loaded once from <environment>.yaml."""

import logging
import os
import threading
from collections.abc import Callable
from pathlib import Path

import yaml
from pydantic import ValidationError

from ui_harness.models.config import ConfigDocument, RunConfiguration

log = logging.getLogger(__name__)

ENVIRONMENT_VARIABLE = "UI_HARNESS_ENV"
CONFIG_DIR_VARIABLE = "UI_HARNESS_CONFIG_DIR"
DEFAULT_ENVIRONMENT = "qa"
DEFAULT_CONFIG_DIR = "config"


class ConfigurationError(Exception):
    """Raised when the run configuration cannot be loaded."""


def load_run_configuration(config_dir: Path, environment: str) -> RunConfiguration:
    """Read and validate the configuration file for an environment.

    Args:
        config_dir: Directory holding one YAML file per environment
        environment: Environment name, e.g. "qa"; selects <environment>.yaml

    Returns:
        Parsed run configuration

    Raises:
        ConfigurationError: If the file is missing, malformed or invalid

    """
    config_file = config_dir / f"{environment}.yaml"
    log.info("Loading configuration from %s", config_file)

    try:
        content = config_file.read_text()
    except FileNotFoundError as e:
        raise ConfigurationError(f"Configuration file not found: {config_file}") from e
    except OSError as e:
        raise ConfigurationError(f"Cannot read {config_file}: {e}") from e

    try:
        data = yaml.safe_load(content)
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML in {config_file}: {e}") from e

    if data is None:
        raise ConfigurationError(f"Empty configuration file: {config_file}")
    if not isinstance(data, dict):
        raise ConfigurationError(
            f"Invalid configuration schema in {config_file}: expected a mapping"
        )

    try:
        document = ConfigDocument.model_validate(data)
    except ValidationError as e:
        raise ConfigurationError(
            f"Invalid configuration schema in {config_file}: {e}"
        ) from e

    config = document.to_run_configuration(environment)
    log.info("Configuration loaded successfully for environment: %s", environment)
    return config


class ConfigurationStore:
    """Once-only holder of the run configuration.

    The first caller of `load` reads the file while holding the lock; callers
    arriving meanwhile block on the lock and then see the cached instance.
    A failed load leaves the store empty so a later call reads again.
    """

    def __init__(
        self,
        config_dir: Path | None = None,
        environment: str | None = None,
        reader: Callable[[Path, str], RunConfiguration] = load_run_configuration,
    ) -> None:
        self._config_dir = config_dir
        self._environment = environment
        self._reader = reader
        self._lock = threading.Lock()
        self._config: RunConfiguration | None = None

    @property
    def environment(self) -> str:
        """Selected environment name."""
        return self._environment or os.environ.get(
            ENVIRONMENT_VARIABLE, DEFAULT_ENVIRONMENT
        )

    @property
    def config_dir(self) -> Path:
        """Directory the environment file is read from."""
        if self._config_dir is not None:
            return self._config_dir
        return Path(os.environ.get(CONFIG_DIR_VARIABLE, DEFAULT_CONFIG_DIR))

    def load(self) -> RunConfiguration:
        """Return the cached configuration, reading it on first use."""
        if (config := self._config) is not None:
            return config

        with self._lock:
            if self._config is None:
                self._config = self._reader(self.config_dir, self.environment)
            return self._config


_default_store = ConfigurationStore()


def load() -> RunConfiguration:
    """Load the configuration selected by the process environment."""
    return _default_store.load()
