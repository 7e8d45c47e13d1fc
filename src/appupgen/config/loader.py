"""Configuration loading with pydantic-settings.

Supports loading configuration from multiple sources with precedence:
1. Direct kwargs (highest priority)
2. Environment variables (APPUPGEN__SECTION__KEY)
3. Project config (.appupgen/config.yaml)
4. Global config (~/.config/appupgen/config.yaml)
5. Built-in defaults (lowest priority)
"""

from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource, SettingsConfigDict

from appupgen.config.models import (
    AppupConfig,
    AppupgenConfig,
    BuildConfig,
    GenerateConfig,
    LoggingConfig,
)
from appupgen.core.errors import ConfigError

GLOBAL_CONFIG_PATH = Path("~/.config/appupgen/config.yaml").expanduser()
PROJECT_CONFIG_NAME = Path(".appupgen") / "config.yaml"


def _load_yaml(path: Path) -> dict[str, Any]:
    if not path.exists():
        return {}
    try:
        with path.open() as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigError.parse_error(str(path), str(e)) from e
    if not isinstance(data, dict):
        raise ConfigError.parse_error(str(path), "top level must be a mapping")
    return data


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    result = base.copy()
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result


class _YamlSource(PydanticBaseSettingsSource):
    """Settings source that reads from pre-loaded YAML config."""

    def __init__(self, settings_cls: type[BaseSettings], yaml_config: dict[str, Any]) -> None:
        super().__init__(settings_cls)
        self._yaml_config = yaml_config

    def get_field_value(
        self,
        field: Any,  # noqa: ARG002
        field_name: str,
    ) -> tuple[Any, str, bool]:
        val = self._yaml_config.get(field_name)
        return val, field_name, val is not None

    def __call__(self) -> dict[str, Any]:
        return self._yaml_config


def _make_settings_class(yaml_config: dict[str, Any]) -> type[BaseSettings]:
    """Create a Settings class with instance-based YAML source."""

    class AppupgenSettings(BaseSettings):
        """Root config. Env vars: APPUPGEN__LOGGING__LEVEL, APPUPGEN__BUILD__BASE_DIR, etc."""

        model_config = SettingsConfigDict(
            env_prefix="APPUPGEN__",
            env_nested_delimiter="__",
            case_sensitive=False,
        )

        logging: LoggingConfig = LoggingConfig()
        build: BuildConfig = BuildConfig()
        appup: AppupConfig = AppupConfig()

        @classmethod
        def settings_customise_sources(
            cls,
            settings_cls: type[BaseSettings],
            init_settings: PydanticBaseSettingsSource,
            env_settings: PydanticBaseSettingsSource,
            dotenv_settings: PydanticBaseSettingsSource,  # noqa: ARG003
            file_secret_settings: PydanticBaseSettingsSource,  # noqa: ARG003
        ) -> tuple[PydanticBaseSettingsSource, ...]:
            # Precedence (first wins): init kwargs > env vars > yaml files
            return (init_settings, env_settings, _YamlSource(settings_cls, yaml_config))

    return AppupgenSettings


def load_config(project_dir: Path | None = None, **kwargs: Any) -> AppupgenConfig:
    """Load config: defaults < global yaml < project yaml < env vars < kwargs.

    Args:
        project_dir: Project root holding .appupgen/config.yaml.
                     Defaults to current working directory.
        **kwargs: Override values (highest precedence).

    Returns:
        Fully resolved configuration object.

    Raises:
        ConfigError: On invalid YAML syntax or validation errors.
    """
    project_dir = project_dir or Path.cwd()

    yaml_config = _deep_merge(
        _load_yaml(GLOBAL_CONFIG_PATH),
        _load_yaml(project_dir / PROJECT_CONFIG_NAME),
    )

    settings_cls = _make_settings_class(yaml_config)
    try:
        settings = settings_cls(**kwargs)
    except ValidationError as e:
        err = e.errors()[0]
        field = ".".join(str(loc) for loc in err["loc"])
        raise ConfigError.invalid_value(field, err.get("input"), err["msg"]) from e
    return AppupgenConfig.model_validate(settings.model_dump())


def build_generate_config(
    config: AppupgenConfig,
    *,
    project_dir: Path,
    release_name: str,
    previous: Path,
    previous_version: str | None = None,
    current: Path | None = None,
    target_dir: Path | None = None,
) -> GenerateConfig:
    """Resolve CLI inputs and project config into the struct one run consumes.

    The current release defaults to <base_dir>/<release_dir>/<release_name>.
    """
    base_dir = Path(config.build.base_dir)
    if not base_dir.is_absolute():
        base_dir = project_dir / base_dir
    if current is None:
        current = base_dir / config.build.release_dir / release_name
    try:
        return GenerateConfig(
            release_name=release_name,
            previous_path=previous,
            previous_version=previous_version,
            current_path=current,
            target_dir=target_dir,
            base_dir=base_dir,
            module_deps=config.appup.module_deps,
            tool_name=config.appup.tool_name,
        )
    except ValidationError as e:
        err = e.errors()[0]
        field = ".".join(str(loc) for loc in err["loc"])
        raise ConfigError.invalid_value(field, err.get("input"), err["msg"]) from e
