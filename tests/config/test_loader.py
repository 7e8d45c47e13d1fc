"""Tests for config/loader.py module.

Covers:
- _load_yaml() function
- _deep_merge() function
- load_config() precedence
- build_generate_config() path resolution
"""

from __future__ import annotations

from pathlib import Path
from typing import Any
from unittest.mock import patch

import pytest

from appupgen.config.loader import (
    _deep_merge,
    _load_yaml,
    build_generate_config,
    load_config,
)
from appupgen.config.models import AppupgenConfig
from appupgen.core.errors import ConfigError


@pytest.fixture(autouse=True)
def _no_global_config(tmp_path: Path) -> Any:
    """Keep the developer's ~/.config/appupgen out of the tests."""
    with patch("appupgen.config.loader.GLOBAL_CONFIG_PATH", tmp_path / "no-global.yaml"):
        yield


def _write_project_config(project: Path, text: str) -> None:
    config_dir = project / ".appupgen"
    config_dir.mkdir(parents=True, exist_ok=True)
    (config_dir / "config.yaml").write_text(text)


class TestLoadYaml:
    """Tests for _load_yaml function."""

    def test_returns_empty_dict_for_missing_file(self, tmp_path: Path) -> None:
        assert _load_yaml(tmp_path / "nonexistent.yaml") == {}

    def test_loads_valid_yaml(self, tmp_path: Path) -> None:
        yaml_file = tmp_path / "config.yaml"
        yaml_file.write_text("logging:\n  level: DEBUG\n")
        assert _load_yaml(yaml_file) == {"logging": {"level": "DEBUG"}}

    def test_returns_empty_for_empty_file(self, tmp_path: Path) -> None:
        yaml_file = tmp_path / "empty.yaml"
        yaml_file.write_text("")
        assert _load_yaml(yaml_file) == {}

    def test_raises_config_error_for_invalid_yaml(self, tmp_path: Path) -> None:
        yaml_file = tmp_path / "invalid.yaml"
        yaml_file.write_text("logging:\n  level:\n    - invalid: [unclosed")
        with pytest.raises(ConfigError):
            _load_yaml(yaml_file)

    def test_raises_config_error_for_non_mapping(self, tmp_path: Path) -> None:
        yaml_file = tmp_path / "list.yaml"
        yaml_file.write_text("- a\n- b\n")
        with pytest.raises(ConfigError, match="mapping"):
            _load_yaml(yaml_file)


class TestDeepMerge:
    """Tests for _deep_merge function."""

    def test_override_wins(self) -> None:
        assert _deep_merge({"a": 1, "b": 2}, {"b": 3}) == {"a": 1, "b": 3}

    def test_nested_merge(self) -> None:
        base = {"build": {"base_dir": "_build/default", "release_dir": "rel"}}
        override = {"build": {"base_dir": "_build/prod"}}
        assert _deep_merge(base, override) == {
            "build": {"base_dir": "_build/prod", "release_dir": "rel"}
        }

    def test_base_not_mutated(self) -> None:
        base: dict[str, Any] = {"a": {"b": 1}}
        _deep_merge(base, {"a": {"b": 2}})
        assert base == {"a": {"b": 1}}


class TestLoadConfig:
    """Tests for load_config precedence."""

    def test_defaults_without_files(self, tmp_path: Path) -> None:
        config = load_config(tmp_path)
        assert isinstance(config, AppupgenConfig)
        assert config.build.base_dir == "_build/default"
        assert config.appup.tool_name == "appupgen"
        assert config.appup.module_deps == {}

    def test_project_yaml_is_read(self, tmp_path: Path) -> None:
        _write_project_config(
            tmp_path,
            "appup:\n  module_deps:\n    my_server: [my_lib, my_util]\n"
            "build:\n  base_dir: _build/prod\n",
        )
        config = load_config(tmp_path)
        assert config.appup.module_deps == {"my_server": ["my_lib", "my_util"]}
        assert config.build.base_dir == "_build/prod"

    def test_project_yaml_overrides_global(self, tmp_path: Path) -> None:
        global_file = tmp_path / "global.yaml"
        global_file.write_text("appup:\n  tool_name: from_global\nlogging:\n  level: DEBUG\n")
        _write_project_config(tmp_path, "appup:\n  tool_name: from_project\n")

        with patch("appupgen.config.loader.GLOBAL_CONFIG_PATH", global_file):
            config = load_config(tmp_path)

        assert config.appup.tool_name == "from_project"
        assert config.logging.level == "DEBUG"

    def test_env_overrides_yaml(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        _write_project_config(tmp_path, "logging:\n  level: INFO\n")
        monkeypatch.setenv("APPUPGEN__LOGGING__LEVEL", "ERROR")
        assert load_config(tmp_path).logging.level == "ERROR"

    def test_kwargs_override_everything(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("APPUPGEN__LOGGING__LEVEL", "ERROR")
        config = load_config(tmp_path, logging={"level": "WARNING"})
        assert config.logging.level == "WARNING"

    def test_invalid_value_raises_config_error(self, tmp_path: Path) -> None:
        _write_project_config(tmp_path, "logging:\n  level: LOUD\n")
        with pytest.raises(ConfigError) as exc_info:
            load_config(tmp_path)
        assert "logging" in exc_info.value.details["field"]


class TestBuildGenerateConfig:
    """Tests for resolving a run config."""

    def test_current_defaults_under_base_dir(self, tmp_path: Path) -> None:
        config = load_config(tmp_path)
        run = build_generate_config(
            config, project_dir=tmp_path, release_name="myrel", previous=tmp_path / "old"
        )
        assert run.base_dir == tmp_path / "_build" / "default"
        assert run.current_path == tmp_path / "_build" / "default" / "rel" / "myrel"
        assert run.target_dir is None
        assert run.previous_version is None

    def test_explicit_paths_kept(self, tmp_path: Path) -> None:
        config = load_config(tmp_path)
        run = build_generate_config(
            config,
            project_dir=tmp_path,
            release_name="myrel",
            previous=tmp_path / "old",
            previous_version="0.9",
            current=tmp_path / "new",
            target_dir=tmp_path / "out",
        )
        assert run.current_path == tmp_path / "new"
        assert run.target_dir == tmp_path / "out"
        assert run.previous_version == "0.9"

    def test_absolute_base_dir_not_joined(self, tmp_path: Path) -> None:
        config = load_config(tmp_path, build={"base_dir": str(tmp_path / "elsewhere")})
        run = build_generate_config(
            config, project_dir=tmp_path / "proj", release_name="r", previous=tmp_path
        )
        assert run.base_dir == tmp_path / "elsewhere"

    def test_module_deps_and_tool_name_carried(self, tmp_path: Path) -> None:
        config = load_config(
            tmp_path, appup={"tool_name": "relbuild", "module_deps": {"a": ["b"]}}
        )
        run = build_generate_config(
            config, project_dir=tmp_path, release_name="r", previous=tmp_path
        )
        assert run.tool_name == "relbuild"
        assert run.module_deps == {"a": ["b"]}

    def test_empty_release_name_rejected(self, tmp_path: Path) -> None:
        config = load_config(tmp_path)
        with pytest.raises(ConfigError):
            build_generate_config(config, project_dir=tmp_path, release_name="", previous=tmp_path)
