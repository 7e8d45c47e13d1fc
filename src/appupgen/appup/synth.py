"""Turn an application's module changes into appup instructions."""

from __future__ import annotations

from collections.abc import Callable, Collection, Mapping, Sequence
from pathlib import Path

from appupgen.appup.models import (
    AddModule,
    DeleteModule,
    Instruction,
    LoadModule,
    UpdateSupervisor,
    UpdateWithMigration,
)
from appupgen.beam.models import ArtifactChangeSet, ArtifactMetadata, StructuralRole
from appupgen.beam.reader import inspect_beam
from appupgen.core.logging import get_logger

log = get_logger(__name__)

Inspector = Callable[[Path], ArtifactMetadata]


def filter_deps(
    module: str,
    dependency_map: Mapping[str, Sequence[str]],
    changed: Collection[str],
) -> tuple[str, ...]:
    """Declared deps of module that also changed in this application.

    Order follows the dependency map. Unknown or unchanged deps are dropped.
    """
    return tuple(dep for dep in dependency_map.get(module, ()) if dep in changed)


def instruction_for_change(metadata: ArtifactMetadata, deps: tuple[str, ...]) -> Instruction:
    """Pick the instruction for a changed module.

    A supervisor is always updated as a supervisor, even if it also
    exports code_change. Plain load is the fallback.
    """
    if metadata.role is StructuralRole.SUPERVISOR:
        return UpdateSupervisor(metadata.module)
    if metadata.has_migration_hook:
        return UpdateWithMigration(metadata.module, deps)
    return LoadModule(metadata.module, deps)


def synthesize(
    changes: ArtifactChangeSet,
    dependency_map: Mapping[str, Sequence[str]] | None = None,
    inspector: Inspector = inspect_beam,
) -> tuple[Instruction, ...]:
    """Instructions for one application: adds, then deletes, then changes.

    Raises:
        UnreadableArtifact: If a changed module cannot be inspected.
    """
    dependency_map = dependency_map or {}
    changed_names = changes.changed_names

    instructions: list[Instruction] = [AddModule(path.stem) for path in changes.added]
    instructions.extend(DeleteModule(path.stem) for path in changes.removed)

    for new_path, _old_path in changes.changed:
        metadata = inspector(new_path)
        deps = filter_deps(metadata.module, dependency_map, changed_names)
        instruction = instruction_for_change(metadata, deps)
        log.debug(
            "instruction_chosen",
            module=metadata.module,
            instruction=type(instruction).__name__,
            deps=list(deps),
        )
        instructions.append(instruction)

    return tuple(instructions)
