"""Compare the compiled modules of two versions of an application."""

from __future__ import annotations

import hashlib
from pathlib import Path

from appupgen.beam.models import ArtifactChangeSet
from appupgen.beam.reader import BEAM_EXTENSION, parse_chunks
from appupgen.core.errors import ArtifactDirUnreadable, UnreadableArtifact
from appupgen.core.logging import get_logger

log = get_logger(__name__)

# Compile info records compile time and options; it differs on every build
_VOLATILE_CHUNKS = frozenset({"CInf"})


def beam_digest(path: Path) -> str:
    """Content digest of a BEAM file, ignoring volatile chunks.

    Files that are not BEAM containers are digested whole.

    Raises:
        UnreadableArtifact: If the file cannot be read.
    """
    try:
        data = path.read_bytes()
    except OSError as e:
        raise UnreadableArtifact.at(str(path), str(e)) from e

    digest = hashlib.sha256()
    try:
        chunks = parse_chunks(data)
    except ValueError:
        digest.update(data)
        return digest.hexdigest()

    for chunk_id, payload in chunks.items():
        if chunk_id in _VOLATILE_CHUNKS:
            continue
        digest.update(chunk_id.encode("latin-1"))
        digest.update(len(payload).to_bytes(4, "big"))
        digest.update(payload)
    return digest.hexdigest()


def _beam_files(directory: Path, app: str) -> dict[str, Path]:
    if not directory.is_dir():
        raise ArtifactDirUnreadable.missing(app, str(directory))
    try:
        return {p.name: p for p in sorted(directory.glob(f"*{BEAM_EXTENSION}")) if p.is_file()}
    except OSError as e:
        raise ArtifactDirUnreadable.missing(app, f"{directory} ({e})") from e


def compare_artifacts(old_dir: Path, new_dir: Path, app: str = "") -> ArtifactChangeSet:
    """Diff the .beam files of two ebin directories by name and content.

    Args:
        old_dir: ebin directory of the previous version
        new_dir: ebin directory of the current version
        app: Application name, used in error details

    Returns:
        Added, removed and changed files, each in file-name order.

    Raises:
        ArtifactDirUnreadable: If either directory is missing.
        UnreadableArtifact: If a file present in both cannot be read.
    """
    old_files = _beam_files(old_dir, app)
    new_files = _beam_files(new_dir, app)

    added = tuple(new_files[name] for name in sorted(new_files.keys() - old_files.keys()))
    removed = tuple(old_files[name] for name in sorted(old_files.keys() - new_files.keys()))
    changed = tuple(
        (new_files[name], old_files[name])
        for name in sorted(new_files.keys() & old_files.keys())
        if beam_digest(new_files[name]) != beam_digest(old_files[name])
    )

    log.debug(
        "artifacts_compared",
        app=app,
        old_dir=str(old_dir),
        new_dir=str(new_dir),
        added=[p.name for p in added],
        removed=[p.name for p in removed],
        changed=[new.name for new, _ in changed],
    )
    return ArtifactChangeSet(added=added, removed=removed, changed=changed)
