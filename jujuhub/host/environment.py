"""Environment variable access and path resolution.

This module provides utilities for resolving where JujuHub keeps its
configuration, collection data and logs.

Path Resolution Order:
1. Specific environment variable (JUJUHUB_CONFIG, JUJUHUB_DATA_DIR, JUJUHUB_LOG_DIR)
2. XDG base directories (~/.config, ~/.local/share, ~/.local/state)

Explicit paths passed by callers always win over both.
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

APP_NAME = "jujuhub"

# Storage artefact per backend, relative to the data directory
STORAGE_FILENAMES = {
    "json": "collections",
    "sqlite": "jujuhub.db",
}


@dataclass
class RuntimeContext:
    """Resource locations for one JujuHub process.

    Attributes:
        data_dir: Directory holding collection data
        config_dir: Configuration directory
        log_dir: Log directory (None to log to stderr only)
    """
    data_dir: Path
    config_dir: Path
    log_dir: Optional[Path]

    def get_storage_path(self, backend: str) -> Path:
        """Return the storage location for a backend.

        Args:
            backend: Storage backend name ('json' or 'sqlite')

        Returns:
            Directory for 'json', database file for 'sqlite'

        Raises:
            ValueError: If backend has no on-disk location
        """
        if backend not in STORAGE_FILENAMES:
            raise ValueError(
                f"Backend '{backend}' has no storage path. "
                f"Must be one of: {', '.join(sorted(STORAGE_FILENAMES))}"
            )
        return self.data_dir / STORAGE_FILENAMES[backend]

    def get_config_path(self) -> Path:
        """Return config file path for this context."""
        return self.config_dir / "config.toml"

    def get_log_path(self, filename: str) -> Optional[Path]:
        """Return log file path for this context (if log_dir exists)."""
        if self.log_dir:
            return self.log_dir / filename
        return None


def get_env(key: str, default: str | None = None) -> str | None:
    """Get environment variable.

    Args:
        key: Environment variable name
        default: Default value if not found

    Returns:
        Environment variable value or default
    """
    return os.environ.get(key, default)


def resolve_context(config_override: Optional[Path] = None) -> RuntimeContext:
    """Resolve resource locations from the environment.

    Args:
        config_override: Optional explicit config file path. Its parent
            becomes the config directory.

    Returns:
        RuntimeContext with data, config and log directories

    Examples:
        >>> ctx = resolve_context()
        >>> ctx.data_dir
        Path('~/.local/share/jujuhub').expanduser()

        >>> ctx = resolve_context(Path("/custom/config.toml"))
        >>> ctx.config_dir
        Path('/custom')
    """
    home = Path.home()

    if config_override:
        config_dir = Path(config_override).parent
    else:
        config_env = get_env("JUJUHUB_CONFIG")
        config_dir = Path(config_env).parent if config_env else home / ".config" / APP_NAME

    data_env = get_env("JUJUHUB_DATA_DIR")
    data_dir = Path(data_env) if data_env else home / ".local/share" / APP_NAME

    log_env = get_env("JUJUHUB_LOG_DIR")
    log_dir = Path(log_env) if log_env else home / ".local/state" / APP_NAME / "logs"

    return RuntimeContext(data_dir=data_dir, config_dir=config_dir, log_dir=log_dir)
