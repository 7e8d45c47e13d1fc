"""Read installed releases from a release root directory.

A release root looks like::

    <root>/
        lib/<app>-<vsn>/ebin/*.beam
        releases/<vsn>/<name>.rel
        releases/start_erl.data        ("<erts_vsn> <rel_vsn>")

The .rel file holds a single term::

    {release, {Name, Vsn}, {erts, ErtsVsn}, [{App, AppVsn} | {App, AppVsn, Type} | ...]}.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from appupgen.core.errors import ConfigError, ReleaseInfoUnavailable
from appupgen.core.logging import get_logger
from appupgen.release.models import ReleaseSnapshot
from appupgen.terms.parser import TermParseError, consult
from appupgen.terms.types import is_atom, is_tagged, proplist_get

log = get_logger(__name__)

APPUP_EXTENSION = ".appup"
REBAR_CONFIG = "rebar.config"


def rel_file_path(root: Path, name: str, version: str) -> Path:
    return root / "releases" / version / f"{name}.rel"


def app_ebin_dir(root: Path, app: str, version: str) -> Path:
    """ebin directory of one application version inside a release root."""
    return root / "lib" / f"{app}-{version}" / "ebin"


def _as_text(value: Any) -> str | None:
    if isinstance(value, str):
        return str(value)
    if isinstance(value, list) and all(isinstance(c, int) for c in value):
        return "".join(chr(c) for c in value)
    return None


def _load_release_term(path: Path, name: str) -> tuple[Any, ...]:
    if not path.is_file():
        raise ReleaseInfoUnavailable.missing(name, str(path))
    try:
        forms = consult(path)
    except (OSError, UnicodeDecodeError, TermParseError) as e:
        raise ReleaseInfoUnavailable.malformed(name, str(path), str(e)) from e
    if len(forms) != 1 or not is_tagged(forms[0], "release", 4):
        raise ReleaseInfoUnavailable.malformed(
            name, str(path), "expected {release, {Name, Vsn}, {erts, Vsn}, Apps}"
        )
    term: tuple[Any, ...] = forms[0]
    return term


def _release_id(term: tuple[Any, ...], name: str, path: Path) -> tuple[str, str]:
    rel_id = term[1]
    if isinstance(rel_id, tuple) and len(rel_id) == 2:
        rel_name, rel_vsn = _as_text(rel_id[0]), _as_text(rel_id[1])
        if rel_name is not None and rel_vsn is not None:
            return rel_name, rel_vsn
    raise ReleaseInfoUnavailable.malformed(name, str(path), f"bad release id {rel_id!r}")


def _parse_apps(term: tuple[Any, ...], name: str, path: Path) -> dict[str, str]:
    entries = term[3]
    if not isinstance(entries, list):
        raise ReleaseInfoUnavailable.malformed(name, str(path), "application list is not a list")
    apps: dict[str, str] = {}
    for entry in entries:
        # {App, Vsn}, {App, Vsn, Type}, {App, Vsn, IncApps}, {App, Vsn, Type, IncApps}
        if not (isinstance(entry, tuple) and 2 <= len(entry) <= 4 and is_atom(entry[0])):
            raise ReleaseInfoUnavailable.malformed(
                name, str(path), f"bad application entry {entry!r}"
            )
        vsn = _as_text(entry[1])
        if vsn is None:
            raise ReleaseInfoUnavailable.malformed(
                name, str(path), f"bad version for application {entry[0]}"
            )
        apps[str(entry[0])] = vsn
    return apps


def read_release(name: str, version: str, path: Path) -> ReleaseSnapshot:
    """Read the applications of release name/version installed under path.

    Raises:
        ReleaseInfoUnavailable: If the .rel file is missing or malformed.
    """
    rel_file = rel_file_path(path, name, version)
    term = _load_release_term(rel_file, name)
    rel_name, rel_vsn = _release_id(term, name, rel_file)
    if rel_vsn != version:
        raise ReleaseInfoUnavailable.malformed(
            name, str(rel_file), f"file declares version {rel_vsn!r}, expected {version!r}"
        )
    snapshot = ReleaseSnapshot(
        name=rel_name, version=rel_vsn, apps=_parse_apps(term, name, rel_file), path=path
    )
    log.debug("release_read", release=rel_name, version=rel_vsn, apps=dict(snapshot.apps))
    return snapshot


def _start_erl_version(path: Path) -> str | None:
    start_erl = path / "releases" / "start_erl.data"
    try:
        fields = start_erl.read_text(encoding="utf-8").split()
    except OSError:
        return None
    return fields[1] if len(fields) == 2 else None


def read_release_info(name: str, path: Path) -> tuple[str, str]:
    """Deduce (release name, version) of the release installed under path.

    With several installed versions, releases/start_erl.data picks the one
    in use.

    Raises:
        ReleaseInfoUnavailable: If no version, or no unambiguous version, is found.
    """
    candidates = sorted(path.glob(f"releases/*/{name}.rel"))
    if not candidates:
        raise ReleaseInfoUnavailable.missing(name, str(path / "releases" / "*" / f"{name}.rel"))

    if len(candidates) == 1:
        rel_file = candidates[0]
    else:
        versions = [c.parent.name for c in candidates]
        current = _start_erl_version(path)
        if current not in versions:
            raise ReleaseInfoUnavailable.ambiguous(name, str(path), versions)
        rel_file = rel_file_path(path, name, current)

    term = _load_release_term(rel_file, name)
    info = _release_id(term, name, rel_file)
    log.debug("release_info", path=str(path), release=info[0], version=info[1])
    return info


def find_existing_appups(path: Path) -> list[str]:
    """Names of applications that already ship an .appup under path/lib."""
    lib_dir = path / "lib"
    if not lib_dir.is_dir():
        return []
    return sorted({f.stem for f in lib_dir.rglob(f"*{APPUP_EXTENSION}") if f.is_file()})


def release_name_from_rebar_config(project_dir: Path) -> str:
    """Release name from the relx section of project_dir/rebar.config.

    Raises:
        ConfigError: If rebar.config is unreadable or declares no release.
    """
    config_path = project_dir / REBAR_CONFIG
    if not config_path.is_file():
        raise ConfigError.missing_required(
            "release name", f"no {REBAR_CONFIG} in {project_dir}; pass --name"
        )
    try:
        forms = consult(config_path)
    except (OSError, UnicodeDecodeError, TermParseError) as e:
        raise ConfigError.parse_error(str(config_path), str(e)) from e

    # {relx, [{release, {Name, Vsn}, Apps} | _]}; the first release wins
    rel_id = proplist_get(proplist_get(forms, "relx", []), "release")
    if isinstance(rel_id, tuple) and len(rel_id) == 2:
        rel_name = _as_text(rel_id[0])
        if rel_name:
            return rel_name
    raise ConfigError.missing_required(
        "release name", f"no {{release, {{Name, Vsn}}, _}} in relx section of {config_path}"
    )
