"""appup synthesis and emission."""

from appupgen.appup.emit import default_targets, emit, now_str, render_appup
from appupgen.appup.models import (
    AddModule,
    ComponentFailure,
    DeleteModule,
    EmitResult,
    GenerateReport,
    Instruction,
    LoadModule,
    UpdateSupervisor,
    UpdateWithMigration,
    UpgradePlan,
)
from appupgen.appup.ops import AppupGenerator, check_preconditions
from appupgen.appup.synth import filter_deps, instruction_for_change, synthesize

__all__ = [
    # Main class
    "AppupGenerator",
    # Operations
    "check_preconditions",
    "default_targets",
    "emit",
    "filter_deps",
    "instruction_for_change",
    "now_str",
    "render_appup",
    "synthesize",
    # Models
    "AddModule",
    "ComponentFailure",
    "DeleteModule",
    "EmitResult",
    "GenerateReport",
    "Instruction",
    "LoadModule",
    "UpdateSupervisor",
    "UpdateWithMigration",
    "UpgradePlan",
]
