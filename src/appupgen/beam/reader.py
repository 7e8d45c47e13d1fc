"""BEAM file reader.

A BEAM file is an IFF container::

    "FOR1" <u32 size> "BEAM" { <4-byte chunk id> <u32 size> <data> <pad to 4> }*

Only the chunks needed to classify a module for hot upgrade are decoded:
the atom table (AtU8 or legacy Atom), the export table (ExpT) and the
module attributes (Attr, an external-format term).
"""

from __future__ import annotations

import gzip
import struct
import zlib
from pathlib import Path

from appupgen.beam.etf import binary_to_term
from appupgen.beam.models import ArtifactMetadata, BeamModule, StructuralRole
from appupgen.core.errors import UnreadableArtifact
from appupgen.core.logging import get_logger
from appupgen.terms.types import is_atom

log = get_logger(__name__)

BEAM_EXTENSION = ".beam"

# Exports that mark a module as carrying its own state migration
MIGRATION_HOOKS = ("code_change", "system_code_change")

_GZIP_MAGIC = b"\x1f\x8b"


class _BeamFormatError(ValueError):
    pass


def _load_bytes(path: Path) -> bytes:
    data = path.read_bytes()
    if data.startswith(_GZIP_MAGIC):
        data = gzip.decompress(data)
    return data


def parse_chunks(data: bytes) -> dict[str, bytes]:
    """Split a BEAM container into its chunks, keyed by chunk id.

    Raises:
        ValueError: If data is not a BEAM container.
    """
    if len(data) < 12 or data[:4] != b"FOR1" or data[8:12] != b"BEAM":
        raise _BeamFormatError("not a BEAM file")
    (size,) = struct.unpack(">I", data[4:8])
    end = min(8 + size, len(data))
    chunks: dict[str, bytes] = {}
    pos = 12
    while pos + 8 <= end:
        chunk_id = data[pos : pos + 4].decode("latin-1")
        (chunk_size,) = struct.unpack(">I", data[pos + 4 : pos + 8])
        start = pos + 8
        if start + chunk_size > end:
            raise _BeamFormatError(f"chunk {chunk_id} overruns the file")
        chunks[chunk_id] = data[start : start + chunk_size]
        pos = start + ((chunk_size + 3) & ~3)
    return chunks


def read_chunks(path: Path) -> dict[str, bytes]:
    """Read and split a BEAM file.

    Raises:
        UnreadableArtifact: If the file is missing or not a BEAM container.
    """
    try:
        return parse_chunks(_load_bytes(path))
    except (OSError, EOFError, gzip.BadGzipFile, zlib.error, ValueError) as e:
        raise UnreadableArtifact.at(str(path), str(e)) from e


def _compact_uint(data: bytes, pos: int) -> tuple[int, int]:
    """Decode one compact-term unsigned integer; returns (value, new_pos)."""
    first = data[pos]
    pos += 1
    if first & 0x08 == 0:
        return first >> 4, pos
    if first & 0x10 == 0:
        return ((first & 0xE0) << 3) | data[pos], pos + 1
    n = (first >> 5) + 2
    return int.from_bytes(data[pos : pos + n], "big"), pos + n


def decode_atoms(chunks: dict[str, bytes]) -> list[str]:
    """Decode the atom table; index 0 of the result is atom number 1."""
    if "AtU8" in chunks:
        data, encoding = chunks["AtU8"], "utf-8"
    elif "Atom" in chunks:
        data, encoding = chunks["Atom"], "latin-1"
    else:
        raise _BeamFormatError("no atom table")
    (count,) = struct.unpack(">i", data[:4])
    # Negative count: lengths use the compact encoding (long atom support)
    compact = count < 0
    count = abs(count)
    atoms: list[str] = []
    pos = 4
    for _ in range(count):
        if compact:
            length, pos = _compact_uint(data, pos)
        else:
            length, pos = data[pos], pos + 1
        atoms.append(data[pos : pos + length].decode(encoding))
        pos += length
    if pos > len(data):
        raise _BeamFormatError("atom table is truncated")
    return atoms


def decode_exports(chunks: dict[str, bytes], atoms: list[str]) -> tuple[tuple[str, int], ...]:
    data = chunks.get("ExpT")
    if data is None:
        raise _BeamFormatError("no export table")
    (count,) = struct.unpack(">I", data[:4])
    exports: list[tuple[str, int]] = []
    for i in range(count):
        fn_index, arity, _label = struct.unpack(">III", data[4 + 12 * i : 16 + 12 * i])
        exports.append((atoms[fn_index - 1], arity))
    return tuple(exports)


def read_beam(path: Path) -> BeamModule:
    """Read module name, exports and attributes from a BEAM file.

    Raises:
        UnreadableArtifact: If any required chunk is missing or corrupt.
    """
    chunks = read_chunks(path)
    try:
        atoms = decode_atoms(chunks)
        exports = decode_exports(chunks, atoms)
        attr = chunks.get("Attr")
        attributes = binary_to_term(attr) if attr else []
    except (ValueError, IndexError, struct.error) as e:
        raise UnreadableArtifact.at(str(path), str(e)) from e
    if not atoms:
        raise UnreadableArtifact.at(str(path), "empty atom table")
    if not isinstance(attributes, list):
        raise UnreadableArtifact.at(str(path), "attribute chunk is not a list")
    return BeamModule(name=atoms[0], exports=exports, attributes=attributes)


def declared_behaviour(module: BeamModule) -> list[object] | None:
    """Value of the first -behavior or -behaviour attribute.

    The American spelling is looked up first.
    """
    for key in ("behavior", "behaviour"):
        for entry in module.attributes:
            if isinstance(entry, tuple) and len(entry) == 2 and is_atom(entry[0], key):
                value = entry[1]
                return value if isinstance(value, list) else [value]
    return None


def structural_role(module: BeamModule) -> StructuralRole:
    behaviour = declared_behaviour(module)
    if behaviour is not None and len(behaviour) == 1 and is_atom(behaviour[0], "supervisor"):
        return StructuralRole.SUPERVISOR
    return StructuralRole.NONE


def inspect_beam(path: Path) -> ArtifactMetadata:
    """Classify a compiled module for upgrade instruction synthesis.

    Raises:
        UnreadableArtifact: If the file cannot be read as a BEAM module.
    """
    module = read_beam(path)
    metadata = ArtifactMetadata(
        module=module.name,
        role=structural_role(module),
        has_migration_hook=any(module.exports_function(hook) for hook in MIGRATION_HOOKS),
    )
    log.debug(
        "beam_inspected",
        path=str(path),
        module=metadata.module,
        role=metadata.role.value,
        migration_hook=metadata.has_migration_hook,
    )
    return metadata
