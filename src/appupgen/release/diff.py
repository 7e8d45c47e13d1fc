"""Set-difference of two release snapshots."""

from __future__ import annotations

from collections.abc import Collection, Iterable

from appupgen.core.logging import get_logger
from appupgen.release.models import DiffResult, ReleaseSnapshot, UpgradedApp

log = get_logger(__name__)


def diff_releases(old: ReleaseSnapshot, new: ReleaseSnapshot) -> DiffResult:
    """Compute added, removed and upgraded applications.

    Callers must have checked that both snapshots share a name and differ
    in version. Applications new in `new` appear in `added` and also in
    `upgraded` with old_version None; select_candidates drops them.
    """
    old_names = set(old.apps)
    new_names = set(new.apps)

    upgraded = [
        UpgradedApp(name, old.apps.get(name), new.apps[name])
        for name in new.apps
        if old.apps.get(name) != new.apps[name]
    ]
    result = DiffResult(
        added=frozenset(new_names - old_names),
        removed=frozenset(old_names - new_names),
        upgraded=tuple(sorted(upgraded, key=UpgradedApp.sort_key)),
    )
    log.debug("releases_diffed", **result.to_dict())
    return result


def select_candidates(
    upgraded: Iterable[UpgradedApp], already_planned: Collection[str]
) -> list[UpgradedApp]:
    """Upgraded applications that still need a generated appup.

    Drops applications new in this release and applications that already
    have an appup. Existing appups are left untouched.
    """
    candidates = [u for u in upgraded if not u.is_new and u.name not in already_planned]
    log.debug(
        "candidates_selected",
        candidates=[u.name for u in candidates],
        already_planned=sorted(already_planned),
    )
    return candidates
