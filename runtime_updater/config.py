"""Settings loading.

Settings come from an optional TOML file, parsed with tomlkit, with a few
environment variable overrides on top. Example config.toml:

    log_level = "INFO"
    lock_dir = "/tmp/runtime-updater"

    [perlbrew]
    executable = "~/perl5/perlbrew/bin/perlbrew"

    [rbenv]
    executable = "/usr/local/bin/rbenv"
"""

from __future__ import annotations

import os
import tempfile
from pathlib import Path
from typing import Any

import tomlkit
from pydantic import BaseModel, Field, ValidationError, field_validator
from tomlkit.exceptions import TOMLKitError

from .errors import BadArgument

CONFIG_ENV = "RUNTIME_UPDATER_CONFIG"
DEFAULT_CONFIG_PATH = "~/.config/runtime-updater/config.toml"

LOG_LEVELS = ("CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG")

# Environment variable → (section, key). A None section means top level.
ENV_OVERRIDES: dict[str, tuple[str | None, str]] = {
    "RUNTIME_UPDATER_LOG_LEVEL": (None, "log_level"),
    "RUNTIME_UPDATER_LOCK_DIR": (None, "lock_dir"),
    "PERLBREW_EXE": ("perlbrew", "executable"),
    "RBENV_EXE": ("rbenv", "executable"),
    "PYENV_EXE": ("pyenv", "executable"),
}


class ManagerSettings(BaseModel):
    """Per version manager settings."""

    executable: str

    @field_validator("executable")
    @classmethod
    def _expand_user(cls, value: str) -> str:
        return os.path.expanduser(value)


class Settings(BaseModel):
    """Runtime settings for all upgraders."""

    log_level: str = "INFO"
    lock_dir: Path = Field(
        default_factory=lambda: Path(tempfile.gettempdir()) / "runtime-updater"
    )
    perlbrew: ManagerSettings = Field(
        default_factory=lambda: ManagerSettings(
            executable="~/perl5/perlbrew/bin/perlbrew"
        )
    )
    rbenv: ManagerSettings = Field(
        default_factory=lambda: ManagerSettings(executable="rbenv")
    )
    pyenv: ManagerSettings = Field(
        default_factory=lambda: ManagerSettings(executable="pyenv")
    )

    @field_validator("log_level")
    @classmethod
    def _known_level(cls, value: str) -> str:
        level = value.upper()
        if level not in LOG_LEVELS:
            raise ValueError(
                f"unknown log level {value!r}, expected one of {LOG_LEVELS}"
            )
        return level

    @field_validator("lock_dir")
    @classmethod
    def _expand_lock_dir(cls, value: Path) -> Path:
        return value.expanduser()


def default_config_path() -> Path:
    """Config file location: $RUNTIME_UPDATER_CONFIG or the XDG-style default."""
    return Path(os.environ.get(CONFIG_ENV, DEFAULT_CONFIG_PATH)).expanduser()


def load_config_file(path: Path) -> dict[str, Any]:
    """Parse a TOML config file into plain Python data.

    Returns an empty dict when the file does not exist.

    Raises:
        BadArgument: If the file cannot be read or is not valid UTF-8 TOML.
    """
    if not path.exists():
        return {}
    try:
        doc = tomlkit.parse(path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError, TOMLKitError) as exc:
        raise BadArgument(f"Invalid config file {path}: {exc}") from exc
    return doc.unwrap()


def apply_env_overrides(
    data: dict[str, Any], environ: dict[str, str]
) -> dict[str, Any]:
    """Layer ENV_OVERRIDES from environ on top of file data (in place).

    Raises:
        BadArgument: If an overridden section is not a table in the file.
    """
    for var, (section, key) in ENV_OVERRIDES.items():
        value = environ.get(var)
        if not value:
            continue
        target = data if section is None else data.setdefault(section, {})
        if not isinstance(target, dict):
            raise BadArgument(
                f"Config key {section!r} must be a table, not {target!r}."
            )
        target[key] = value
    return data


def load_settings(
    path: Path | None = None, environ: dict[str, str] | None = None
) -> Settings:
    """Load settings from the config file and the environment.

    Raises:
        BadArgument: If the file cannot be parsed or holds invalid values.
    """
    path = path or default_config_path()
    environ = dict(os.environ) if environ is None else environ
    data = apply_env_overrides(load_config_file(path), environ)
    try:
        return Settings.model_validate(data)
    except ValidationError as exc:
        raise BadArgument(f"Invalid settings in {path}: {exc}") from exc
