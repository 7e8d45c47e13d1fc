"""appup instruction and plan models.

Each instruction renders to the appup term understood by release_handler:

    AddModule(m)                 {add_module, m}
    DeleteModule(m)              {delete_module, m}
    UpdateSupervisor(m)          {update, m, supervisor}
    UpdateWithMigration(m, ds)   {update, m, {advanced, []}, ds}
    LoadModule(m, ds)            {load_module, m, ds}
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from appupgen.terms.types import Atom


@dataclass(frozen=True, slots=True)
class AddModule:
    name: str

    def to_term(self) -> tuple[Any, ...]:
        return (Atom("add_module"), Atom(self.name))


@dataclass(frozen=True, slots=True)
class DeleteModule:
    name: str

    def to_term(self) -> tuple[Any, ...]:
        return (Atom("delete_module"), Atom(self.name))


@dataclass(frozen=True, slots=True)
class UpdateSupervisor:
    """Supervisor: release_handler re-reads the child specs."""

    name: str

    def to_term(self) -> tuple[Any, ...]:
        return (Atom("update"), Atom(self.name), Atom("supervisor"))


@dataclass(frozen=True, slots=True)
class UpdateWithMigration:
    """Suspend, load, run code_change, resume."""

    name: str
    deps: tuple[str, ...] = ()

    def to_term(self) -> tuple[Any, ...]:
        return (
            Atom("update"),
            Atom(self.name),
            (Atom("advanced"), []),
            [Atom(d) for d in self.deps],
        )


@dataclass(frozen=True, slots=True)
class LoadModule:
    """Plain code swap; no process state to transform."""

    name: str
    deps: tuple[str, ...] = ()

    def to_term(self) -> tuple[Any, ...]:
        return (Atom("load_module"), Atom(self.name), [Atom(d) for d in self.deps])


Instruction = AddModule | DeleteModule | UpdateSupervisor | UpdateWithMigration | LoadModule


@dataclass(frozen=True, slots=True)
class UpgradePlan:
    """Upgrade instructions for one application, old version -> new version."""

    app: str
    old_version: str
    new_version: str
    instructions: tuple[Instruction, ...] = ()

    def to_term(self) -> tuple[Any, ...]:
        """The appup term: {New, [{Old, Instructions}], [{Old, []}]}."""
        return (
            self.new_version,
            [(self.old_version, [i.to_term() for i in self.instructions])],
            [(self.old_version, [])],
        )


@dataclass(frozen=True, slots=True)
class EmitResult:
    """Outcome of writing one plan to its targets."""

    written: tuple[Path, ...] = ()
    failed: tuple[tuple[Path, str], ...] = ()

    @property
    def ok(self) -> bool:
        return not self.failed


@dataclass(frozen=True, slots=True)
class ComponentFailure:
    """An application whose appup could not be generated."""

    app: str
    error: str
    details: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class GenerateReport:
    """Summary of one generate run."""

    release: str
    previous_version: str
    current_version: str
    added: tuple[str, ...] = ()
    removed: tuple[str, ...] = ()
    generated: tuple[str, ...] = ()
    skipped: tuple[str, ...] = ()
    failures: tuple[ComponentFailure, ...] = ()
    written: tuple[Path, ...] = ()

    @property
    def ok(self) -> bool:
        return not self.failures

    def to_dict(self) -> dict[str, Any]:
        return {
            "release": self.release,
            "previous_version": self.previous_version,
            "current_version": self.current_version,
            "added": list(self.added),
            "removed": list(self.removed),
            "generated": list(self.generated),
            "skipped": list(self.skipped),
            "written": [str(p) for p in self.written],
            "failures": [
                {"app": f.app, "error": f.error, "details": f.details} for f in self.failures
            ],
        }
