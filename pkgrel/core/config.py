"""Typed loading of the optional ``pkgrel.toml`` file.

Every key has a default matching a Turborepo + npm monorepo, so most
repositories need no config file at all:

    [paths]
    manifest = "package.json"
    packages = "packages"
    lock_file = "package-lock.json"
    staging_dir = ".temp-isolation"

    [commands]
    build = ["turbo", "run", "build"]
    install = ["npm", "install"]

    [git]
    remote = "origin"
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path

from .result import Err, Ok, Result
from .structured import StrDict, as_str_dict, get_str, get_str_list, get_table

__all__ = [
    "CONFIG_FILE_NAME",
    "CommandsConfig",
    "Config",
    "ConfigError",
    "GitConfig",
    "PathsConfig",
    "load_config",
    "load_config_or_default",
]

CONFIG_FILE_NAME = "pkgrel.toml"

DEFAULT_MANIFEST = "package.json"
DEFAULT_PACKAGES_DIR = "packages"
DEFAULT_LOCK_FILE = "package-lock.json"
DEFAULT_STAGING_DIR = ".temp-isolation"
DEFAULT_BUILD_COMMAND = ("turbo", "run", "build")
DEFAULT_INSTALL_COMMAND = ("npm", "install")
DEFAULT_REMOTE = "origin"


@dataclass(frozen=True, slots=True)
class ConfigError:
    """Error when pkgrel.toml cannot be loaded or parsed."""

    message: str
    path: Path | None = None


@dataclass(frozen=True, slots=True)
class PathsConfig:
    """File and directory names, relative to the repository root.

    ``staging_dir`` is created next to the repository root, not inside it.
    """

    manifest: str = DEFAULT_MANIFEST
    packages: str = DEFAULT_PACKAGES_DIR
    lock_file: str = DEFAULT_LOCK_FILE
    staging_dir: str = DEFAULT_STAGING_DIR


@dataclass(frozen=True, slots=True)
class CommandsConfig:
    """External commands run during prepare."""

    build: tuple[str, ...] = DEFAULT_BUILD_COMMAND
    install: tuple[str, ...] = DEFAULT_INSTALL_COMMAND


@dataclass(frozen=True, slots=True)
class GitConfig:
    remote: str = DEFAULT_REMOTE


@dataclass(frozen=True, slots=True)
class Config:
    """Main configuration container."""

    paths: PathsConfig = field(default_factory=PathsConfig)
    commands: CommandsConfig = field(default_factory=CommandsConfig)
    git: GitConfig = field(default_factory=GitConfig)

    @classmethod
    def from_dict(cls, data: Mapping[str, object]) -> Config:
        """Create Config from a mapping (parsed TOML)."""
        paths: StrDict = get_table(data, "paths") or {}
        commands: StrDict = get_table(data, "commands") or {}
        git: StrDict = get_table(data, "git") or {}

        build = get_str_list(commands, "build")
        install = get_str_list(commands, "install")

        return cls(
            paths=PathsConfig(
                manifest=get_str(paths, "manifest") or DEFAULT_MANIFEST,
                packages=get_str(paths, "packages") or DEFAULT_PACKAGES_DIR,
                lock_file=get_str(paths, "lock_file") or DEFAULT_LOCK_FILE,
                staging_dir=get_str(paths, "staging_dir") or DEFAULT_STAGING_DIR,
            ),
            commands=CommandsConfig(
                build=tuple(build) if build else DEFAULT_BUILD_COMMAND,
                install=tuple(install) if install else DEFAULT_INSTALL_COMMAND,
            ),
            git=GitConfig(remote=get_str(git, "remote") or DEFAULT_REMOTE),
        )


def _parse_toml(path: Path) -> Result[StrDict, ConfigError]:
    """Parse a TOML file, handling import and parse errors."""
    import tomllib

    try:
        content = path.read_bytes()
        data_obj: object = tomllib.loads(content.decode("utf-8"))
        data = as_str_dict(data_obj)
        if data is None:
            return Err(ConfigError("Config root must be a TOML table", path=path))
        return Ok(data)
    except FileNotFoundError:
        return Err(ConfigError(f"Config file not found: {path}", path=path))
    except PermissionError:
        return Err(ConfigError(f"Permission denied reading: {path}", path=path))
    except tomllib.TOMLDecodeError as e:
        return Err(ConfigError(f"Invalid TOML syntax: {e}", path=path))
    except UnicodeDecodeError as e:
        return Err(ConfigError(f"Error reading config: {e}", path=path))


def load_config(path: Path) -> Result[Config, ConfigError]:
    """Load and parse configuration from a TOML file.

    Args:
        path: Path to pkgrel.toml

    Returns:
        Ok(Config) on success, Err(ConfigError) on failure
    """
    result = _parse_toml(path)
    if isinstance(result, Err):
        return result

    try:
        return Ok(Config.from_dict(result.value))
    except (KeyError, TypeError, ValueError) as e:
        return Err(ConfigError(f"Invalid config structure: {e}", path=path))


def load_config_or_default(path: Path) -> Result[Config, ConfigError]:
    """Load config if the file exists, otherwise return defaults.

    A present but broken file is still an error.
    """
    if not path.exists():
        return Ok(Config())
    return load_config(path)
