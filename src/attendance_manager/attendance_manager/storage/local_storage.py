from __future__ import annotations

import logging
from pathlib import Path, PurePosixPath
from typing import Optional

from ..core.exceptions import ValidationError
from .object_storage import ObjectStorage, StoredObject

logger = logging.getLogger(__name__)


class LocalObjectStorage(ObjectStorage):
    """Stores objects under a directory that a web server exposes at ``base_url``."""

    def __init__(self, root: str | Path, *, base_url: str = "/files"):
        self._root = Path(root).resolve()
        self._base_url = base_url.rstrip("/")

    def _resolve(self, path: str) -> Path:
        rel = PurePosixPath(path)
        if rel.is_absolute() or ".." in rel.parts:
            raise ValidationError("Invalid storage path")
        return self._root.joinpath(*rel.parts)

    def upload(self, path: str, data: bytes, *, content_type: Optional[str] = None) -> StoredObject:
        target = self._resolve(path)
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(data)
        logger.info("Stored %s (%d bytes, %s)", path, len(data), content_type or "application/octet-stream")
        return StoredObject(path=path, url=f"{self._base_url}/{path}")

    def delete(self, path: str) -> bool:
        target = self._resolve(path)
        if not target.exists():
            return False
        target.unlink()
        return True
