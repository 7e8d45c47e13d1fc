"""Config module exports."""

from appupgen.config.loader import build_generate_config, load_config
from appupgen.config.models import (
    AppupConfig,
    AppupgenConfig,
    BuildConfig,
    DependencyMap,
    GenerateConfig,
    LoggingConfig,
)

__all__ = [
    "load_config",
    "build_generate_config",
    "AppupgenConfig",
    "AppupConfig",
    "BuildConfig",
    "DependencyMap",
    "GenerateConfig",
    "LoggingConfig",
]
