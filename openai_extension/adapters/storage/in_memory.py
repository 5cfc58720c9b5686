"""In-memory artifact store.

Good for tests and single-process development; contents vanish on restart.
"""

from __future__ import annotations

import logging
import threading

from openai_extension.adapters.storage.base import (
    AbstractArtifactStore,
    StoredArtifact,
    artifact_id_for,
    normalize_path,
)
from openai_extension.core.errors import StorageAppError

logger = logging.getLogger(__name__)


class InMemoryArtifactStore(AbstractArtifactStore):
    """Thread-safe dict-backed artifact store."""

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._meta: dict[str, StoredArtifact] = {}
        self._content: dict[str, bytes] = {}

    def __len__(self) -> int:
        with self._lock:
            return len(self._meta)

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
        path = normalize_path(path)
        artifact_id = artifact_id_for(
            context_id=context_id,
            component=component,
            area=area,
            item_id=item_id,
            path=path,
            filename=filename,
        )
        artifact = StoredArtifact(
            id=artifact_id,
            size=len(content),
            mimetype=mimetype,
            filename=filename,
            context_id=context_id,
            component=component,
            area=area,
            item_id=item_id,
            path=path,
        )

        with self._lock:
            if artifact_id in self._meta:
                raise StorageAppError(
                    code="artifact_exists",
                    message=f"An artifact named {filename!r} already exists at this location",
                    details={"artifact_id": artifact_id, "filename": filename},
                )
            self._content[artifact_id] = bytes(content)
            self._meta[artifact_id] = artifact

        logger.debug(
            "storage.created",
            extra={"artifact_id": artifact_id, "size": artifact.size, "backend": "memory"},
        )
        return artifact

    def get(self, artifact_id: str) -> StoredArtifact | None:
        with self._lock:
            return self._meta.get(artifact_id)

    def read(self, artifact_id: str) -> bytes:
        with self._lock:
            content = self._content.get(artifact_id)
        if content is None:
            raise StorageAppError(
                code="artifact_not_found",
                message="Artifact not found",
                details={"artifact_id": artifact_id},
            )
        return content
