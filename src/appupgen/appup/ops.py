"""Generate operation: compare two releases and write .appup files.

Pipeline per run:

    release info (previous, current) -> precondition checks
      -> read both releases -> diff -> drop apps that already have an appup
      -> per app: compare ebin dirs -> synthesize instructions -> emit

Fatal errors (ReleaseInfoUnavailable, PreconditionViolation) abort the
run. Errors that concern a single application (ArtifactDirUnreadable,
UnreadableArtifact, PlanWriteError) are recorded in the report and the
remaining applications are still processed.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from pathlib import Path

from appupgen.appup.emit import default_targets, emit, now_str
from appupgen.appup.models import (
    ComponentFailure,
    EmitResult,
    GenerateReport,
    UpgradePlan,
)
from appupgen.appup.synth import Inspector, synthesize
from appupgen.beam.compare import compare_artifacts
from appupgen.beam.models import ArtifactChangeSet
from appupgen.beam.reader import inspect_beam
from appupgen.config.models import GenerateConfig
from appupgen.core.errors import (
    ArtifactDirUnreadable,
    InternalError,
    PlanWriteError,
    PreconditionViolation,
    UnreadableArtifact,
)
from appupgen.core.logging import get_logger
from appupgen.release.diff import diff_releases, select_candidates
from appupgen.release.models import ReleaseSnapshot, UpgradedApp
from appupgen.release.reader import (
    app_ebin_dir,
    find_existing_appups,
    read_release,
    read_release_info,
)

log = get_logger(__name__)

ReleaseInfoReader = Callable[[str, Path], tuple[str, str]]
ReleaseReader = Callable[[str, str, Path], ReleaseSnapshot]
AppupFinder = Callable[[Path], list[str]]
ArtifactDiffer = Callable[[Path, Path, str], ArtifactChangeSet]
Emitter = Callable[..., EmitResult]


def check_preconditions(
    previous: tuple[str, str],
    current: tuple[str, str],
) -> None:
    """Refuse to compare a release with itself or with another release.

    Raises:
        PreconditionViolation: If versions match or names differ.
    """
    (prev_name, prev_vsn), (cur_name, cur_vsn) = previous, current
    if prev_vsn == cur_vsn:
        raise PreconditionViolation.same_version(cur_name, cur_vsn)
    if prev_name != cur_name:
        raise PreconditionViolation.name_mismatch(prev_name, cur_name)


class AppupGenerator:
    """Runs one previous-vs-current release comparison.

    Every collaborator touching the filesystem can be replaced, which is
    how tests observe that nothing is read after a failed precondition.
    """

    def __init__(
        self,
        config: GenerateConfig,
        *,
        release_info: ReleaseInfoReader = read_release_info,
        release_reader: ReleaseReader = read_release,
        appup_finder: AppupFinder = find_existing_appups,
        differ: ArtifactDiffer = compare_artifacts,
        inspector: Inspector = inspect_beam,
        emitter: Emitter = emit,
        clock: Callable[[], str] = now_str,
    ) -> None:
        self._config = config
        self._release_info = release_info
        self._release_reader = release_reader
        self._appup_finder = appup_finder
        self._differ = differ
        self._inspector = inspector
        self._emitter = emitter
        self._clock = clock

    def resolve_versions(self) -> tuple[tuple[str, str], tuple[str, str]]:
        """(name, version) of the previous and current releases."""
        cfg = self._config
        prev_name, prev_vsn = self._release_info(cfg.release_name, cfg.previous_path)
        if cfg.previous_version is not None:
            prev_vsn = cfg.previous_version
        current = self._release_info(cfg.release_name, cfg.current_path)
        log.debug(
            "versions_resolved",
            previous_name=prev_name,
            previous_version=prev_vsn,
            current_name=current[0],
            current_version=current[1],
        )
        return (prev_name, prev_vsn), current

    def run(self) -> GenerateReport:
        """Generate appups for every upgraded application.

        Raises:
            ReleaseInfoUnavailable: If either release cannot be read.
            PreconditionViolation: If the releases cannot be compared.
        """
        cfg = self._config
        previous, current = self.resolve_versions()
        check_preconditions(previous, current)

        old = self._release_reader(cfg.release_name, previous[1], cfg.previous_path)
        new = self._release_reader(cfg.release_name, current[1], cfg.current_path)
        diff = diff_releases(old, new)
        if diff.removed:
            # Whole-application removal belongs in a relup, not an appup
            log.info("apps_removed", apps=sorted(diff.removed))

        existing = self._appup_finder(cfg.current_path)
        log.debug("existing_appups", apps=existing)
        candidates = select_candidates(diff.upgraded, existing)
        skipped = tuple(u.name for u in diff.upgraded if not u.is_new and u.name in existing)

        generated: list[str] = []
        written: list[Path] = []
        failures: list[ComponentFailure] = []
        for upgraded in candidates:
            try:
                result = self.generate_app(upgraded)
            except (ArtifactDirUnreadable, UnreadableArtifact) as e:
                log.error("appup_failed", app=upgraded.name, error=str(e), details=e.details)
                failures.append(ComponentFailure(upgraded.name, str(e), e.details))
                continue
            except PlanWriteError as e:
                log.error("appup_failed", app=upgraded.name, error=str(e))
                failures.append(ComponentFailure(upgraded.name, str(e), e.details))
                written.extend(Path(p) for p in e.details.get("written", []))
                continue
            generated.append(upgraded.name)
            written.extend(result.written)

        report = GenerateReport(
            release=cfg.release_name,
            previous_version=previous[1],
            current_version=current[1],
            added=tuple(sorted(diff.added)),
            removed=tuple(sorted(diff.removed)),
            generated=tuple(generated),
            skipped=skipped,
            failures=tuple(failures),
            written=tuple(written),
        )
        log.info(
            "generate_done",
            release=report.release,
            generated=list(report.generated),
            skipped=list(report.skipped),
            failed=[f.app for f in report.failures],
        )
        return report

    def plan_app(self, upgraded: UpgradedApp) -> UpgradePlan:
        """Build the upgrade plan for one application without writing it."""
        cfg = self._config
        if upgraded.old_version is None:
            raise InternalError.unexpected(
                "no previous version to upgrade from", app=upgraded.name
            )
        old_ebin = app_ebin_dir(cfg.previous_path, upgraded.name, upgraded.old_version)
        new_ebin = app_ebin_dir(cfg.current_path, upgraded.name, upgraded.new_version)
        changes = self._differ(old_ebin, new_ebin, upgraded.name)
        instructions = synthesize(changes, cfg.module_deps, self._inspector)
        return UpgradePlan(
            app=upgraded.name,
            old_version=upgraded.old_version,
            new_version=upgraded.new_version,
            instructions=instructions,
        )

    def targets_for(self, upgraded: UpgradedApp) -> Sequence[Path]:
        cfg = self._config
        return default_targets(
            upgraded.name,
            new_ebin_dir=app_ebin_dir(cfg.current_path, upgraded.name, upgraded.new_version),
            build_ebin_dir=cfg.base_dir / "lib" / upgraded.name / "ebin",
            target_dir=cfg.target_dir,
        )

    def generate_app(self, upgraded: UpgradedApp) -> EmitResult:
        """Plan and write the appup of one application."""
        plan = self.plan_app(upgraded)
        targets = self.targets_for(upgraded)
        log.info(
            "appup_generating",
            app=plan.app,
            old_version=plan.old_version,
            new_version=plan.new_version,
            targets=[str(t) for t in targets],
        )
        return self._emitter(
            plan,
            targets,
            tool_name=self._config.tool_name,
            timestamp=self._clock(),
        )
