"""Release reading and release-level diffing."""

from appupgen.release.diff import diff_releases, select_candidates
from appupgen.release.models import DiffResult, ReleaseSnapshot, UpgradedApp
from appupgen.release.reader import (
    app_ebin_dir,
    find_existing_appups,
    read_release,
    read_release_info,
    release_name_from_rebar_config,
)

__all__ = [
    # Operations
    "app_ebin_dir",
    "diff_releases",
    "find_existing_appups",
    "read_release",
    "read_release_info",
    "release_name_from_rebar_config",
    "select_candidates",
    # Models
    "DiffResult",
    "ReleaseSnapshot",
    "UpgradedApp",
]
