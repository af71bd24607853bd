"""Retry settings and their TOML persistence.

This module provides the configuration model for retry timing and the
I/O functions for the settings file. The deletion API never reads the
file on its own; callers (the CLI) load it and pass the result in.

Settings are stored in ~/.config/deltree/config.toml
"""

import logging
import os
import tomllib
from pathlib import Path
from tempfile import NamedTemporaryFile
from typing import Annotated, Self

import tomli_w
from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

from deltree.core.paths import get_settings_path

logger = logging.getLogger(__name__)


class RetrySettings(BaseModel):
    """Timing configuration for synchronous and background retries.

    Attributes:
        retry_interval: Pause between synchronous attempts, in seconds.
        background_initial_delay: First pause of a background continuation.
        background_backoff: Factor applied to the background pause after each attempt.
        background_max_delay: Upper bound for the background pause.
        default_timeout: Retry budget used by the CLI when none is given (None = unbounded).
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    retry_interval: Annotated[
        float,
        Field(gt=0, le=5, description="Seconds between synchronous attempts"),
    ] = 0.02
    background_initial_delay: Annotated[
        float,
        Field(gt=0, le=60, description="Initial seconds between background attempts"),
    ] = 0.1
    background_backoff: Annotated[
        float,
        Field(ge=1, le=10, description="Multiplier applied to the background delay"),
    ] = 1.5
    background_max_delay: Annotated[
        float,
        Field(gt=0, le=600, description="Maximum seconds between background attempts"),
    ] = 1.0
    default_timeout: Annotated[
        float | None,
        Field(ge=0, description="Default retry budget for the CLI (None = unbounded)"),
    ] = None

    @model_validator(mode="after")
    def check_background_delays(self) -> Self:
        if self.background_max_delay < self.background_initial_delay:
            msg = (
                f"background_max_delay ({self.background_max_delay}) must not be less than "
                f"background_initial_delay ({self.background_initial_delay})"
            )
            raise ValueError(msg)
        return self

    def next_background_delay(self, delay: float) -> float:
        """Compute the background pause following ``delay``.

        Args:
            delay: The pause just used.

        Returns:
            The next pause, capped at background_max_delay.
        """
        return min(delay * self.background_backoff, self.background_max_delay)


class SettingsError(Exception):
    """Base exception for settings file errors."""


class SettingsNotFoundError(SettingsError):
    """Raised when the settings file is not found."""


class SettingsParseError(SettingsError):
    """Raised when the settings file cannot be parsed."""


def load_settings(path: Path | None = None) -> RetrySettings:
    """Load retry settings from a TOML file.

    Args:
        path: Path to the settings file. If None, uses the default settings path.

    Returns:
        Validated RetrySettings object.

    Raises:
        SettingsNotFoundError: If the settings file doesn't exist.
        SettingsParseError: If the TOML syntax is invalid.
        SettingsError: If the content doesn't match the schema.
    """
    settings_path = path or get_settings_path()

    if not settings_path.exists():
        raise SettingsNotFoundError(f"Settings file not found: {settings_path}")

    try:
        with open(settings_path, "rb") as f:
            data = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise SettingsParseError(f"Invalid TOML syntax: {e}") from e
    except OSError as e:
        raise SettingsError(f"Failed to read settings: {e}") from e

    try:
        return RetrySettings.model_validate(data.get("retry", {}))
    except (ValueError, ValidationError) as e:
        raise SettingsError(f"Invalid settings content: {e}") from e


def load_settings_or_default(path: Path | None = None) -> RetrySettings:
    """Load retry settings, falling back to defaults if no file exists.

    Args:
        path: Path to the settings file. If None, uses the default settings path.

    Returns:
        Settings from the file, or defaults when the file is missing.

    Raises:
        SettingsParseError: If the TOML syntax is invalid.
        SettingsError: If the content doesn't match the schema.
    """
    try:
        return load_settings(path)
    except SettingsNotFoundError:
        logger.debug("No settings file, using defaults")
        return get_default_settings()


def save_settings(settings: RetrySettings, path: Path | None = None) -> Path:
    """Save retry settings to a TOML file.

    The file is written atomically by first writing to a temporary file
    and then using os.replace() for atomic rename.

    Args:
        settings: The RetrySettings object to save.
        path: Path to save the settings. If None, uses the default settings path.

    Returns:
        Path where the settings were saved.

    Raises:
        SettingsError: If the file cannot be written.
    """
    settings_path = path or get_settings_path()
    data = {"retry": settings.model_dump(exclude_none=True)}

    tmp_path: Path | None = None
    try:
        settings_path.parent.mkdir(parents=True, exist_ok=True)
        with NamedTemporaryFile(
            mode="wb",
            dir=settings_path.parent,
            delete=False,
            suffix=".tmp",
        ) as f:
            tmp_path = Path(f.name)
            tomli_w.dump(data, f)
        os.replace(str(tmp_path), str(settings_path))
    except OSError as e:
        if tmp_path is not None and tmp_path.exists():
            tmp_path.unlink()
        raise SettingsError(f"Failed to write settings: {e}") from e

    return settings_path


def get_default_settings() -> RetrySettings:
    """Create default RetrySettings.

    Returns:
        RetrySettings with default values.
    """
    return RetrySettings()
