"""Render upgrade plans as .appup files and write them out."""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime
from pathlib import Path

from appupgen.appup.models import EmitResult, UpgradePlan
from appupgen.core.errors import PlanWriteError
from appupgen.core.logging import get_logger
from appupgen.terms.formatter import format_atom, format_term

log = get_logger(__name__)

TIMESTAMP_FORMAT = "%Y/%m/%d %H:%M:%S"


def now_str(moment: datetime | None = None) -> str:
    """Local time as YYYY/MM/DD HH:MM:SS."""
    return (moment or datetime.now()).strftime(TIMESTAMP_FORMAT)


def render_appup(plan: UpgradePlan, tool_name: str, timestamp: str) -> str:
    """Render a plan in the canonical .appup layout.

    Example::

        %% appup generated for myapp by appupgen ("2024/05/01 10:00:00")
        {"1.1", [{"1.0", [{load_module,myapp_util,[]}]}], [{"1.0", []}]}.
    """
    new, old = format_term(plan.new_version), format_term(plan.old_version)
    instructions = format_term([i.to_term() for i in plan.instructions])
    return (
        f"%% appup generated for {format_atom(plan.app)} by {tool_name} "
        f"({format_term(timestamp)})\n"
        f"{{{new}, [{{{old}, {instructions}}}], [{{{old}, []}}]}}.\n"
    )


def default_targets(
    app: str,
    new_ebin_dir: Path,
    build_ebin_dir: Path,
    target_dir: Path | None = None,
) -> list[Path]:
    """Where an application's .appup goes.

    Without target_dir: next to the new release's modules and into the
    build output, so the next release assembly picks it up. With
    target_dir: only there.
    """
    filename = f"{app}.appup"
    if target_dir is not None:
        return [target_dir / filename]
    return [new_ebin_dir / filename, build_ebin_dir / filename]


def emit(
    plan: UpgradePlan,
    targets: Sequence[Path],
    *,
    tool_name: str = "appupgen",
    timestamp: str | None = None,
) -> EmitResult:
    """Render plan once and write the same bytes to every target.

    A failing target does not stop the others and nothing already written
    is rolled back.

    Raises:
        PlanWriteError: After all targets were tried, if any failed.
    """
    data = render_appup(plan, tool_name, timestamp or now_str()).encode("utf-8")
    written: list[Path] = []
    failed: list[tuple[Path, str]] = []

    for target in targets:
        try:
            target.write_bytes(data)
        except OSError as e:
            reason = e.strerror or str(e)
            log.error("appup_write_failed", app=plan.app, path=str(target), reason=reason)
            failed.append((target, reason))
            continue
        log.debug("appup_written", app=plan.app, path=str(target))
        written.append(target)

    result = EmitResult(written=tuple(written), failed=tuple(failed))
    if not result.ok:
        raise PlanWriteError.targets(
            plan.app,
            [(str(path), reason) for path, reason in failed],
            [str(path) for path in written],
        )
    return result
