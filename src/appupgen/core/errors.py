"""appupgen error types with typed error codes.

Error code ranges:
- 2xxx: Config
- 3xxx: Release
- 4xxx: Artifact
- 5xxx: Emit
- 9xxx: Internal
"""

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any


class ErrorCode(IntEnum):
    """Typed error codes for programmatic handling."""

    # Config (2xxx)
    CONFIG_PARSE_ERROR = 2001
    CONFIG_INVALID_VALUE = 2002
    CONFIG_MISSING_REQUIRED = 2003

    # Release (3xxx)
    RELEASE_INFO_UNAVAILABLE = 3001
    RELEASE_NAME_MISMATCH = 3002
    RELEASE_VERSION_UNCHANGED = 3003

    # Artifact (4xxx)
    ARTIFACT_DIR_UNREADABLE = 4001
    UNREADABLE_ARTIFACT = 4002

    # Emit (5xxx)
    PLAN_WRITE_FAILED = 5001

    # Internal (9xxx)
    INTERNAL_ERROR = 9001


@dataclass(frozen=True)
class AppupError(Exception):
    """Base error with structured context for reports and logs."""

    code: ErrorCode
    message: str
    details: dict[str, Any] = field(default_factory=dict)

    @property
    def error_name(self) -> str:
        """String identifier for logging (e.g., 'UNREADABLE_ARTIFACT')."""
        return self.code.name

    def to_dict(self) -> dict[str, Any]:
        """Serialize for JSON reports."""
        return {
            "code": self.code.value,
            "error": self.error_name,
            "message": self.message,
            "details": self.details,
        }

    def __str__(self) -> str:
        return f"[{self.code.value}] {self.error_name}: {self.message}"


class ConfigError(AppupError):
    """Configuration-related errors."""

    @classmethod
    def parse_error(cls, path: str, reason: str) -> "ConfigError":
        return cls(
            code=ErrorCode.CONFIG_PARSE_ERROR,
            message=f"Failed to parse config at {path}: {reason}",
            details={"path": path, "reason": reason},
        )

    @classmethod
    def invalid_value(cls, field: str, value: Any, reason: str) -> "ConfigError":
        return cls(
            code=ErrorCode.CONFIG_INVALID_VALUE,
            message=f"Invalid value for '{field}': {reason}",
            details={"field": field, "value": str(value), "reason": reason},
        )

    @classmethod
    def missing_required(cls, field: str, hint: str | None = None) -> "ConfigError":
        suffix = f" ({hint})" if hint else ""
        return cls(
            code=ErrorCode.CONFIG_MISSING_REQUIRED,
            message=f"Missing required setting: {field}{suffix}",
            details={"field": field},
        )


class ReleaseInfoUnavailable(AppupError):
    """Release descriptor is missing, ambiguous or malformed."""

    @classmethod
    def missing(cls, release: str, path: str) -> "ReleaseInfoUnavailable":
        return cls(
            code=ErrorCode.RELEASE_INFO_UNAVAILABLE,
            message=f"No release descriptor for '{release}' at {path}",
            details={"release": release, "path": path},
        )

    @classmethod
    def malformed(cls, release: str, path: str, reason: str) -> "ReleaseInfoUnavailable":
        return cls(
            code=ErrorCode.RELEASE_INFO_UNAVAILABLE,
            message=f"Malformed release descriptor for '{release}' at {path}: {reason}",
            details={"release": release, "path": path, "reason": reason},
        )

    @classmethod
    def ambiguous(
        cls, release: str, path: str, candidates: list[str]
    ) -> "ReleaseInfoUnavailable":
        return cls(
            code=ErrorCode.RELEASE_INFO_UNAVAILABLE,
            message=(
                f"Several versions of '{release}' under {path} "
                f"({', '.join(candidates)}); pass the version explicitly"
            ),
            details={"release": release, "path": path, "candidates": candidates},
        )


class PreconditionViolation(AppupError):
    """The two releases cannot be compared."""

    @classmethod
    def name_mismatch(cls, previous: str, current: str) -> "PreconditionViolation":
        return cls(
            code=ErrorCode.RELEASE_NAME_MISMATCH,
            message=f"current ({current!r}) and previous ({previous!r}) release names do not match",
            details={"previous": previous, "current": current},
        )

    @classmethod
    def same_version(cls, release: str, version: str) -> "PreconditionViolation":
        return cls(
            code=ErrorCode.RELEASE_VERSION_UNCHANGED,
            message=f"current and previous versions of '{release}' are both {version!r}",
            details={"release": release, "version": version},
        )


class ArtifactDirUnreadable(AppupError):
    """An application's ebin directory is missing or not a directory."""

    @classmethod
    def missing(cls, app: str, path: str) -> "ArtifactDirUnreadable":
        return cls(
            code=ErrorCode.ARTIFACT_DIR_UNREADABLE,
            message=f"Artifact directory for '{app}' not found: {path}",
            details={"app": app, "path": path},
        )


class UnreadableArtifact(AppupError):
    """A compiled module could not be read."""

    @classmethod
    def at(cls, path: str, reason: str) -> "UnreadableArtifact":
        return cls(
            code=ErrorCode.UNREADABLE_ARTIFACT,
            message=f"Cannot read compiled module {path}: {reason}",
            details={"path": path, "reason": reason},
        )


class PlanWriteError(AppupError):
    """One or more descriptor targets could not be written."""

    @classmethod
    def targets(
        cls, app: str, failed: list[tuple[str, str]], written: list[str]
    ) -> "PlanWriteError":
        paths = ", ".join(path for path, _ in failed)
        return cls(
            code=ErrorCode.PLAN_WRITE_FAILED,
            message=f"Failed to write appup for '{app}' to {paths}",
            details={
                "app": app,
                "failed": [{"path": path, "reason": reason} for path, reason in failed],
                "written": written,
            },
        )


class InternalError(AppupError):
    """Internal/unexpected errors."""

    @classmethod
    def unexpected(cls, reason: str, **details: Any) -> "InternalError":
        return cls(
            code=ErrorCode.INTERNAL_ERROR,
            message=f"Internal error: {reason}",
            details=details,
        )
