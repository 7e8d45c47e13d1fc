"""Core module exports."""

from appupgen.core.errors import (
    AppupError,
    ArtifactDirUnreadable,
    ConfigError,
    ErrorCode,
    InternalError,
    PlanWriteError,
    PreconditionViolation,
    ReleaseInfoUnavailable,
    UnreadableArtifact,
)
from appupgen.core.logging import (
    clear_run_id,
    configure_logging,
    get_logger,
    get_run_id,
    set_run_id,
)
from appupgen.core.progress import pluralize, spinner, status

__all__ = [
    # Errors
    "AppupError",
    "ArtifactDirUnreadable",
    "ConfigError",
    "ErrorCode",
    "InternalError",
    "PlanWriteError",
    "PreconditionViolation",
    "ReleaseInfoUnavailable",
    "UnreadableArtifact",
    # Logging
    "clear_run_id",
    "configure_logging",
    "get_logger",
    "get_run_id",
    "set_run_id",
    # Progress
    "pluralize",
    "spinner",
    "status",
]
