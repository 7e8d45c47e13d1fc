"""Root conftest.py for test configuration.

Ensures local src/ directory takes priority over any installed packages,
and provides builders for BEAM files and release trees.
"""

from __future__ import annotations

import logging
import struct
import sys
from collections.abc import Callable, Generator, Sequence
from pathlib import Path
from typing import Any

import pytest
import structlog

# Insert local src directory at the beginning of sys.path
_src_dir = Path(__file__).parent.parent / "src"
if str(_src_dir) not in sys.path:
    sys.path.insert(0, str(_src_dir))

from appupgen.terms.types import Atom  # noqa: E402

# =============================================================================
# External term format encoder (test-only; the library only decodes)
# =============================================================================


def term_to_binary(value: Any) -> bytes:
    return bytes([131]) + _encode(value)


def _encode(value: Any) -> bytes:
    if isinstance(value, Atom):
        raw = value.encode("utf-8")
        return bytes([119, len(raw)]) + raw
    if isinstance(value, bool):
        return _encode(Atom("true" if value else "false"))
    if isinstance(value, int):
        if 0 <= value < 256:
            return bytes([97, value])
        return bytes([98]) + struct.pack(">i", value)
    if isinstance(value, str):
        raw = value.encode("latin-1")
        return bytes([107]) + struct.pack(">H", len(raw)) + raw
    if isinstance(value, bytes):
        return bytes([109]) + struct.pack(">I", len(value)) + value
    if isinstance(value, tuple):
        return bytes([104, len(value)]) + b"".join(_encode(v) for v in value)
    if isinstance(value, list):
        if not value:
            return bytes([106])
        body = b"".join(_encode(v) for v in value)
        return bytes([108]) + struct.pack(">I", len(value)) + body + bytes([106])
    raise TypeError(f"cannot encode {value!r}")


# =============================================================================
# BEAM builder
# =============================================================================


def _chunk(chunk_id: str, payload: bytes) -> bytes:
    padding = b"\x00" * ((4 - len(payload) % 4) % 4)
    return chunk_id.encode("latin-1") + struct.pack(">I", len(payload)) + payload + padding


def build_beam(
    module: str,
    *,
    exports: Sequence[tuple[str, int]] = (),
    attributes: Sequence[tuple[str, Any]] = (),
    code: bytes = b"",
    compile_info: bytes = b"",
) -> bytes:
    """Assemble a minimal BEAM container.

    attributes entries are (name, value); names become atoms.
    """
    atoms = [module]
    for fn, _ in exports:
        if fn not in atoms:
            atoms.append(fn)
    atom_payload = struct.pack(">i", len(atoms)) + b"".join(
        bytes([len(a.encode())]) + a.encode() for a in atoms
    )
    exp_payload = struct.pack(">I", len(exports)) + b"".join(
        struct.pack(">III", atoms.index(fn) + 1, arity, i + 1)
        for i, (fn, arity) in enumerate(exports)
    )
    attr_term = [(Atom(name), value) for name, value in attributes]

    body = b"BEAM"
    body += _chunk("AtU8", atom_payload)
    body += _chunk("Code", code or module.encode())
    body += _chunk("ExpT", exp_payload)
    body += _chunk("Attr", term_to_binary(attr_term))
    body += _chunk("CInf", compile_info or term_to_binary([]))
    return b"FOR1" + struct.pack(">I", len(body)) + body


BeamWriter = Callable[..., Path]


@pytest.fixture
def encode_term() -> Callable[[Any], bytes]:
    """Encode a value with the external term format."""
    return term_to_binary


@pytest.fixture
def beam_bytes() -> Callable[..., bytes]:
    """Build BEAM container bytes without writing them."""
    return build_beam


@pytest.fixture
def write_beam() -> BeamWriter:
    """Write a BEAM file: write_beam(ebin_dir, module, **build_beam_kwargs)."""

    def _write(ebin_dir: Path, module: str, **kwargs: Any) -> Path:
        ebin_dir.mkdir(parents=True, exist_ok=True)
        path = ebin_dir / f"{module}.beam"
        path.write_bytes(build_beam(module, **kwargs))
        return path

    return _write


# =============================================================================
# Release tree builder
# =============================================================================


def rel_file_text(name: str, version: str, apps: dict[str, str]) -> str:
    entries = ",\n  ".join(f'{{{app}, "{vsn}"}}' for app, vsn in apps.items())
    return (
        "%% generated for tests\n"
        f'{{release, {{"{name}", "{version}"}}, {{erts, "14.2"}},\n'
        f" [\n  {entries}\n ]}}.\n"
    )


ReleaseWriter = Callable[..., Path]


@pytest.fixture
def write_release() -> ReleaseWriter:
    """Write releases/<vsn>/<name>.rel and empty ebin dirs under root."""

    def _write(root: Path, name: str, version: str, apps: dict[str, str]) -> Path:
        rel_dir = root / "releases" / version
        rel_dir.mkdir(parents=True, exist_ok=True)
        (rel_dir / f"{name}.rel").write_text(rel_file_text(name, version, apps))
        for app, vsn in apps.items():
            (root / "lib" / f"{app}-{vsn}" / "ebin").mkdir(parents=True, exist_ok=True)
        return root

    return _write


@pytest.fixture(autouse=True)
def _reset_logging() -> Generator[None, None, None]:
    """Drop handlers bound to streams that CliRunner closes."""
    yield
    structlog.reset_defaults()
    logging.getLogger().handlers.clear()
