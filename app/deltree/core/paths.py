"""Settings file location for deltree.

Follows the XDG base directory convention: the settings file lives in
``$XDG_CONFIG_HOME/deltree/`` and falls back to ``~/.config/deltree/``.
"""

import os
from pathlib import Path

APP_NAME = "deltree"
SETTINGS_FILENAME = "config.toml"


def get_config_dir() -> Path:
    """Get the configuration directory path.

    An unset or empty ``XDG_CONFIG_HOME`` means ``~/.config``.

    Returns:
        Path to the deltree configuration directory.
    """
    config_home = os.environ.get("XDG_CONFIG_HOME")
    base = Path(config_home) if config_home else Path.home() / ".config"
    return base / APP_NAME


def get_settings_path() -> Path:
    """Get the retry settings file path."""
    return get_config_dir() / SETTINGS_FILENAME


def ensure_config_dir() -> Path:
    """Create the configuration directory if it doesn't exist.

    Returns:
        Path to the configuration directory.

    Raises:
        RuntimeError: If the directory cannot be created.
    """
    path = get_config_dir()
    try:
        path.mkdir(parents=True, exist_ok=True)
    except PermissionError as e:
        raise RuntimeError(f"Cannot create config directory {path}: Permission denied") from e
    except OSError as e:
        raise RuntimeError(f"Cannot create config directory {path}: {e}") from e
    return path
