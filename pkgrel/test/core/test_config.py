"""Tests for pkgrel.core.config."""

from __future__ import annotations

from pathlib import Path

from pkgrel.core.config import (
    CommandsConfig,
    Config,
    PathsConfig,
    load_config,
    load_config_or_default,
)
from pkgrel.core.result import Err, Ok


class TestDefaults:
    def test_paths_defaults(self) -> None:
        paths = PathsConfig()
        assert paths.manifest == "package.json"
        assert paths.packages == "packages"
        assert paths.lock_file == "package-lock.json"
        assert paths.staging_dir == ".temp-isolation"

    def test_commands_defaults(self) -> None:
        commands = CommandsConfig()
        assert commands.build == ("turbo", "run", "build")
        assert commands.install == ("npm", "install")

    def test_from_empty_dict(self) -> None:
        assert Config.from_dict({}) == Config()


class TestFromDict:
    def test_overrides(self) -> None:
        config = Config.from_dict(
            {
                "paths": {"packages": "libs", "lock_file": "pnpm-lock.yaml"},
                "commands": {"build": ["pnpm", "-r", "build"], "install": ["pnpm", "install"]},
                "git": {"remote": "upstream"},
            }
        )
        assert config.paths.packages == "libs"
        assert config.paths.lock_file == "pnpm-lock.yaml"
        assert config.paths.manifest == "package.json"
        assert config.commands.build == ("pnpm", "-r", "build")
        assert config.commands.install == ("pnpm", "install")
        assert config.git.remote == "upstream"

    def test_invalid_command_falls_back_to_default(self) -> None:
        config = Config.from_dict({"commands": {"build": "turbo run build", "install": []}})
        assert config.commands == CommandsConfig()

    def test_blank_strings_fall_back(self) -> None:
        config = Config.from_dict({"paths": {"packages": "  "}, "git": {"remote": ""}})
        assert config.paths.packages == "packages"
        assert config.git.remote == "origin"


class TestLoadConfig:
    def test_load_valid_file(self, tmp_path: Path) -> None:
        path = tmp_path / "pkgrel.toml"
        path.write_text(
            '[paths]\npackages = "libs"\n\n[commands]\nbuild = ["make", "all"]\n',
            encoding="utf-8",
        )
        result = load_config(path)
        assert isinstance(result, Ok)
        assert result.value.paths.packages == "libs"
        assert result.value.commands.build == ("make", "all")

    def test_missing_file(self, tmp_path: Path) -> None:
        result = load_config(tmp_path / "pkgrel.toml")
        assert isinstance(result, Err)
        assert "not found" in result.error.message

    def test_invalid_toml(self, tmp_path: Path) -> None:
        path = tmp_path / "pkgrel.toml"
        path.write_text("[paths\n", encoding="utf-8")
        result = load_config(path)
        assert isinstance(result, Err)
        assert "Invalid TOML" in result.error.message
        assert result.error.path == path

    def test_or_default_without_file(self, tmp_path: Path) -> None:
        assert load_config_or_default(tmp_path / "pkgrel.toml") == Ok(Config())

    def test_or_default_with_broken_file(self, tmp_path: Path) -> None:
        path = tmp_path / "pkgrel.toml"
        path.write_text("not = [valid", encoding="utf-8")
        assert isinstance(load_config_or_default(path), Err)
