"""Filesystem artifact store.

Layout under ``root``::

    <id[:2]>/<id>.bin    artifact content
    <id[:2]>/<id>.json   artifact metadata

Both files are written to a temporary name and moved into place with
``os.replace`` so readers never observe a partial artifact. Metadata is
written last and is the marker of a complete artifact.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
import threading
from dataclasses import asdict
from pathlib import Path

from openai_extension.adapters.storage.base import (
    AbstractArtifactStore,
    StoredArtifact,
    artifact_id_for,
    normalize_path,
)
from openai_extension.core.errors import StorageAppError

logger = logging.getLogger(__name__)


def _atomic_write(target: Path, data: bytes) -> None:
    fd, tmp_name = tempfile.mkstemp(dir=target.parent, prefix=".tmp-")
    try:
        with os.fdopen(fd, "wb") as handle:
            handle.write(data)
            handle.flush()
            os.fsync(handle.fileno())
        os.replace(tmp_name, target)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise


class FilesystemArtifactStore(AbstractArtifactStore):
    """Artifact store keeping one content and one metadata file per artifact."""

    def __init__(self, root: str | Path) -> None:
        self.root = Path(root)
        self.root.mkdir(parents=True, exist_ok=True)
        self._lock = threading.Lock()

    def _paths(self, artifact_id: str) -> tuple[Path, Path]:
        shard = self.root / artifact_id[:2]
        return shard / f"{artifact_id}.bin", shard / f"{artifact_id}.json"

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
        content_path, meta_path = self._paths(artifact_id)

        with self._lock:
            if meta_path.exists():
                raise StorageAppError(
                    code="artifact_exists",
                    message=f"An artifact named {filename!r} already exists at this location",
                    details={"artifact_id": artifact_id, "filename": filename},
                )
            try:
                content_path.parent.mkdir(parents=True, exist_ok=True)
                _atomic_write(content_path, content)
                _atomic_write(meta_path, json.dumps(asdict(artifact)).encode("utf-8"))
            except OSError as exc:
                content_path.unlink(missing_ok=True)
                raise StorageAppError(
                    code="artifact_write_failed",
                    message=f"Could not write artifact: {exc}",
                    details={"artifact_id": artifact_id, "filename": filename},
                ) from exc

        logger.debug(
            "storage.created",
            extra={"artifact_id": artifact_id, "size": artifact.size, "backend": "filesystem"},
        )
        return artifact

    def get(self, artifact_id: str) -> StoredArtifact | None:
        _, meta_path = self._paths(artifact_id)
        try:
            raw = meta_path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        return StoredArtifact(**json.loads(raw))

    def read(self, artifact_id: str) -> bytes:
        content_path, meta_path = self._paths(artifact_id)
        if not meta_path.exists():
            raise StorageAppError(
                code="artifact_not_found",
                message="Artifact not found",
                details={"artifact_id": artifact_id},
            )
        return content_path.read_bytes()
