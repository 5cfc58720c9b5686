"""Artifact (blob) store adapters."""

from openai_extension.adapters.storage.base import (
    AbstractArtifactStore,
    ArtifactLocation,
    StoredArtifact,
    artifact_id_for,
)
from openai_extension.adapters.storage.filesystem import FilesystemArtifactStore
from openai_extension.adapters.storage.in_memory import InMemoryArtifactStore

__all__ = [
    "AbstractArtifactStore",
    "ArtifactLocation",
    "FilesystemArtifactStore",
    "InMemoryArtifactStore",
    "StoredArtifact",
    "artifact_id_for",
]
