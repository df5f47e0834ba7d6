"""Configuration management for JujuHub.

Configuration is loaded from a TOML file with environment variable overrides.

Configuration Resolution Order:
1. Environment variables (highest priority)
2. TOML config file
3. Built-in defaults

Example config.toml:

    [storage]
    backend = "sqlite"

    [paths]
    data_dir = "~/Documents/jujuhub"

    [logging]
    level = "debug"
    file = "~/.local/state/jujuhub/logs/jujuhub.log"
"""

import os
import sys
import warnings
from pathlib import Path
from typing import Optional, Any

from jujuhub.host.environment import STORAGE_FILENAMES, resolve_context

# Python 3.11+ has tomllib in stdlib, otherwise use tomli
if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib

STORAGE_BACKENDS = ("json", "sqlite", "memory")


def load_toml_config(config_path: Path) -> dict[str, Any]:
    """Load configuration from TOML file.

    Args:
        config_path: Path to config.toml file

    Returns:
        Dictionary with configuration sections

    Raises:
        FileNotFoundError: If config file doesn't exist
        ValueError: If config file is invalid TOML
    """
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(config_path, "rb") as f:
        try:
            return tomllib.load(f)
        except tomllib.TOMLDecodeError as e:
            raise ValueError(f"Invalid TOML in {config_path}: {e}")


def get_config_path(config_override: Optional[Path] = None) -> Path:
    """Get configuration file path.

    Args:
        config_override: Optional explicit config path

    Returns:
        Path to configuration file

    Examples:
        >>> get_config_path()
        Path('~/.config/jujuhub/config.toml').expanduser()

        >>> get_config_path(Path("/tmp/jujuhub.toml"))
        Path('/tmp/jujuhub.toml')
    """
    if config_override:
        return Path(config_override)

    config_env = os.environ.get("JUJUHUB_CONFIG")
    if config_env:
        return Path(config_env).expanduser()

    return resolve_context().get_config_path()


class Settings:
    """Library settings with TOML configuration support.

    Attributes:
        storage_backend: 'json', 'sqlite' or 'memory'
        data_dir: Directory holding collection data
        log_level: Logging level name
        log_file: Optional log file path
        config_path: Config file that was consulted
    """

    def __init__(
        self,
        config_path: Optional[Path] = None,
        storage_backend: Optional[str] = None,
        data_dir: Optional[str | Path] = None,
    ):
        """Initialize settings.

        Args:
            config_path: Optional explicit path to config.toml
            storage_backend: Runtime override for the storage backend,
                taking precedence over environment and TOML
            data_dir: Runtime override for the data directory
        """
        self.config_path = get_config_path(config_path)
        self._config: dict[str, Any] = {}

        if self.config_path.exists():
            try:
                self._config = load_toml_config(self.config_path)
            except ValueError as e:
                # Broken config must not stop the application from starting
                warnings.warn(f"Failed to load config from {self.config_path}: {e}")

        self._apply_config()

        if storage_backend is not None:
            self.storage_backend = storage_backend
        if data_dir is not None:
            self.data_dir = Path(data_dir).expanduser()

        if self.storage_backend not in STORAGE_BACKENDS:
            raise ValueError(
                f"Unknown storage backend: {self.storage_backend}. "
                f"Available: {list(STORAGE_BACKENDS)}"
            )

    def _apply_config(self):
        """Apply settings in order env var > TOML > default."""
        context = resolve_context(self.config_path)

        storage_config = self._config.get("storage", {})
        self.storage_backend = os.environ.get(
            "JUJUHUB_STORAGE_BACKEND",
            storage_config.get("backend", "json")
        ).lower()

        # resolve_context already applied JUJUHUB_DATA_DIR
        paths_config = self._config.get("paths", {})
        if os.environ.get("JUJUHUB_DATA_DIR"):
            self.data_dir = context.data_dir
        elif paths_config.get("data_dir"):
            self.data_dir = Path(paths_config["data_dir"]).expanduser()
        else:
            self.data_dir = context.data_dir

        logging_config = self._config.get("logging", {})
        self.log_level = os.environ.get(
            "JUJUHUB_LOG_LEVEL",
            logging_config.get("level", "info")
        )
        log_file = os.environ.get("JUJUHUB_LOG_FILE", logging_config.get("file"))
        self.log_file = Path(log_file).expanduser() if log_file else None

    @property
    def storage_path(self) -> Path:
        """On-disk location of the configured backend.

        Raises:
            ValueError: For the 'memory' backend, which has none
        """
        if self.storage_backend in STORAGE_FILENAMES:
            return self.data_dir / STORAGE_FILENAMES[self.storage_backend]
        raise ValueError(f"Backend '{self.storage_backend}' has no storage path")

    def get(self, key: str, default: Any = None) -> Any:
        """Get a configuration value.

        Args:
            key: Configuration key
            default: Default value if key not found

        Returns:
            Configuration value or default
        """
        return getattr(self, key, default)
