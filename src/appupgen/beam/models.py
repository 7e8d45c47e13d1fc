"""Data models for compiled module inspection and comparison."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any


class StructuralRole(Enum):
    """Declared behaviour that changes how a module must be upgraded."""

    NONE = "none"
    SUPERVISOR = "supervisor"


@dataclass(frozen=True, slots=True)
class BeamModule:
    """Parsed contents of a BEAM file relevant to upgrades."""

    name: str
    exports: tuple[tuple[str, int], ...]
    attributes: list[Any]

    def exports_function(self, name: str) -> bool:
        """True if any arity of name is exported."""
        return any(fn == name for fn, _ in self.exports)


@dataclass(frozen=True, slots=True)
class ArtifactMetadata:
    """What the instruction synthesizer needs to know about one module."""

    module: str
    role: StructuralRole = StructuralRole.NONE
    has_migration_hook: bool = False


@dataclass(frozen=True, slots=True)
class ArtifactChangeSet:
    """Result of comparing an application's old and new ebin directories.

    added paths live in the new directory, removed paths in the old one,
    changed pairs are (path_in_new, path_in_old).
    """

    added: tuple[Path, ...] = ()
    removed: tuple[Path, ...] = ()
    changed: tuple[tuple[Path, Path], ...] = ()

    @property
    def is_empty(self) -> bool:
        return not (self.added or self.removed or self.changed)

    @property
    def changed_names(self) -> frozenset[str]:
        """Module names (file stems) of the changed files."""
        return frozenset(new.stem for new, _ in self.changed)
