"""Release snapshot and release diff models."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType


@dataclass(frozen=True, slots=True)
class ReleaseSnapshot:
    """The applications (and their versions) making up one release version."""

    name: str
    version: str
    apps: Mapping[str, str] = field(default_factory=dict)
    path: Path | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "apps", MappingProxyType(dict(self.apps)))


@dataclass(frozen=True, slots=True)
class UpgradedApp:
    """An application whose version differs between two releases.

    old_version is None when the application is new in the current release.
    """

    name: str
    old_version: str | None
    new_version: str

    @property
    def is_new(self) -> bool:
        return self.old_version is None

    def sort_key(self) -> tuple[str, bool, str, str]:
        # None sorts before every version string
        return (self.name, self.old_version is not None, self.old_version or "", self.new_version)


@dataclass(frozen=True, slots=True)
class DiffResult:
    """Applications added, removed and upgraded between two releases."""

    added: frozenset[str] = frozenset()
    removed: frozenset[str] = frozenset()
    upgraded: tuple[UpgradedApp, ...] = ()

    def to_dict(self) -> dict[str, object]:
        return {
            "added": sorted(self.added),
            "removed": sorted(self.removed),
            "upgraded": [
                {"app": u.name, "from": u.old_version, "to": u.new_version} for u in self.upgraded
            ],
        }
