"""Artifact store interfaces.

Generated audio and images are handed to a blob store which owns them from
then on. Artifacts are addressed by name: ``(context_id, component, area,
item_id, path, filename)``; the artifact id is the SHA-1 of that address so
the same name always maps to the same id.
"""

from __future__ import annotations

import hashlib
from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class ArtifactLocation:
    """Where an artifact lives, minus its filename."""

    context_id: int
    component: str
    area: str
    item_id: int = 0
    path: str = "/"


@dataclass(frozen=True)
class StoredArtifact:
    """Metadata of a persisted artifact (content is read separately)."""

    id: str
    size: int
    mimetype: str
    filename: str
    context_id: int
    component: str
    area: str
    item_id: int
    path: str


def normalize_path(path: str) -> str:
    """Return ``path`` with a leading and trailing slash."""
    path = "/" + path.strip("/")
    return path if path == "/" else path + "/"


def artifact_id_for(
    *,
    context_id: int,
    component: str,
    area: str,
    item_id: int,
    path: str,
    filename: str,
) -> str:
    """Compute the name-derived artifact id."""
    address = f"/{context_id}/{component}/{area}/{item_id}{normalize_path(path)}{filename}"
    return hashlib.sha1(address.encode("utf-8")).hexdigest()


class AbstractArtifactStore(ABC):
    """Interface for blob stores persisting generated artifacts."""

    @abstractmethod
    def create(
        self,
        *,
        context_id: int,
        component: str,
        area: str,
        item_id: int,
        path: str,
        filename: str,
        content: bytes,
        mimetype: str,
    ) -> StoredArtifact:
        """Persist ``content`` under the given address.

        The write is atomic: afterwards the artifact exists with its full
        content, or it does not exist at all.

        Raises:
            StorageAppError: If the address is taken or the write fails.
        """
        raise NotImplementedError

    @abstractmethod
    def get(self, artifact_id: str) -> StoredArtifact | None:
        """Return artifact metadata, or None when unknown."""
        raise NotImplementedError

    @abstractmethod
    def read(self, artifact_id: str) -> bytes:
        """Return artifact content.

        Raises:
            StorageAppError: If the artifact does not exist.
        """
        raise NotImplementedError
