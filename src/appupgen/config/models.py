"""Pydantic configuration models with env var support.

Configuration Hierarchy (highest to lowest precedence):
1. Direct kwargs to load_config()
2. Environment variables (APPUPGEN__SECTION__KEY)
3. Project YAML (.appupgen/config.yaml)
4. Global YAML (~/.config/appupgen/config.yaml)
5. Built-in defaults (this file)

Environment Variable Format:
    APPUPGEN__<SECTION>__<KEY>=<VALUE>

Examples:
    APPUPGEN__LOGGING__LEVEL=DEBUG
    APPUPGEN__BUILD__BASE_DIR=_build/prod
    APPUPGEN__APPUP__TOOL_NAME=my_release_tool
"""

from pathlib import Path
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]

DependencyMap = dict[str, list[str]]


class LogOutputConfig(BaseModel):
    """Single logging output configuration.

    Env vars: Not directly configurable via env (use YAML for multi-output).
    """

    format: Literal["json", "console"] = "console"
    destination: str = "stderr"  # stderr, stdout, or absolute file path
    level: LogLevel | None = None  # Inherits from parent if None

    @field_validator("destination")
    @classmethod
    def validate_destination(cls, v: str) -> str:
        if v in ("stderr", "stdout"):
            return v
        path = Path(v).expanduser()
        if not path.is_absolute():
            raise ValueError(f"File destination must be absolute path: {v}")
        return str(path)


class LoggingConfig(BaseModel):
    """Logging configuration.

    Env vars:
        APPUPGEN__LOGGING__LEVEL: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """

    level: LogLevel = Field(
        default="INFO",
        description="Root log level. DEBUG prints every diff and instruction decision.",
    )
    outputs: list[LogOutputConfig] = Field(default_factory=lambda: [LogOutputConfig()])


class BuildConfig(BaseModel):
    """Layout of the project's build output.

    Env vars:
        APPUPGEN__BUILD__BASE_DIR: Build profile directory, relative to the project
        APPUPGEN__BUILD__RELEASE_DIR: Release directory inside the base dir
    """

    base_dir: str = Field(
        default="_build/default",
        description="Build profile directory. Relative paths resolve against the project dir.",
    )
    release_dir: str = Field(
        default="rel",
        description="Directory under base_dir holding assembled releases.",
    )


class AppupConfig(BaseModel):
    """appup generation settings.

    Env vars:
        APPUPGEN__APPUP__TOOL_NAME: Name written in the generated header comment
    """

    tool_name: str = Field(
        default="appupgen",
        description="Tool name recorded in the header of every generated .appup.",
    )
    module_deps: DependencyMap = Field(
        default_factory=dict,
        description="Module -> modules it depends on. Only deps that changed in the same "
        "application end up in the generated instruction.",
    )

    @field_validator("tool_name")
    @classmethod
    def validate_tool_name(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("tool_name must not be blank")
        return v


class AppupgenConfig(BaseModel):
    """Root configuration for appupgen."""

    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    build: BuildConfig = Field(default_factory=BuildConfig)
    appup: AppupConfig = Field(default_factory=AppupConfig)


class GenerateConfig(BaseModel):
    """Everything one generate run needs, resolved up front.

    The generator reads nothing else: no working directory, no environment.
    """

    model_config = ConfigDict(frozen=True)

    release_name: str
    previous_path: Path
    current_path: Path
    base_dir: Path
    previous_version: str | None = None
    target_dir: Path | None = None
    module_deps: DependencyMap = Field(default_factory=dict)
    tool_name: str = "appupgen"

    @field_validator("release_name")
    @classmethod
    def validate_release_name(cls, v: str) -> str:
        if not v:
            raise ValueError("release name must not be empty")
        return v
