"""Compiled module (BEAM) inspection and comparison."""

from appupgen.beam.compare import beam_digest, compare_artifacts
from appupgen.beam.etf import ExternalTermError, binary_to_term
from appupgen.beam.models import ArtifactChangeSet, ArtifactMetadata, BeamModule, StructuralRole
from appupgen.beam.reader import inspect_beam, read_beam, read_chunks

__all__ = [
    # Operations
    "beam_digest",
    "binary_to_term",
    "compare_artifacts",
    "inspect_beam",
    "read_beam",
    "read_chunks",
    # Models
    "ArtifactChangeSet",
    "ArtifactMetadata",
    "BeamModule",
    "StructuralRole",
    # Errors
    "ExternalTermError",
]
