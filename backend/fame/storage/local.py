from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import List, Optional

from .base import DocumentStore, StorageError

logger = logging.getLogger(__name__)


class LocalDocumentStore(DocumentStore):
    """Stores objects as files under ``root``; keys map to relative paths."""

    backend_name = "local"

    def __init__(self, root: str | os.PathLike) -> None:
        super().__init__()
        self.root = Path(root).resolve()
        self.root.mkdir(parents=True, exist_ok=True)

    def _path(self, key: str) -> Path:
        path = (self.root / key.lstrip("/")).resolve()
        if path != self.root and self.root not in path.parents:
            raise StorageError(f"Key escapes storage root: {key}")
        return path

    def read_bytes(self, key: str) -> Optional[bytes]:
        path = self._path(key)
        if not path.is_file():
            return None
        try:
            return path.read_bytes()
        except OSError as exc:
            raise StorageError(f"Failed to read {key}") from exc

    def write_bytes(self, key: str, data: bytes, content_type: str = "application/octet-stream") -> None:
        path = self._path(key)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            tmp = path.with_name(path.name + ".tmp")
            tmp.write_bytes(data)
            os.replace(tmp, path)
        except OSError as exc:
            raise StorageError(f"Failed to write {key}") from exc
        logger.debug("Wrote %s (%d bytes)", key, len(data))

    def delete(self, key: str) -> bool:
        path = self._path(key)
        if not path.is_file():
            return False
        path.unlink()
        return True

    def exists(self, key: str) -> bool:
        return self._path(key).is_file()

    def list_keys(self, prefix: str) -> List[str]:
        base = self._path(prefix) if prefix else self.root
        search_root = base if base.is_dir() else base.parent
        if not search_root.is_dir():
            return []
        keys: List[str] = []
        for p in search_root.rglob("*"):
            if not p.is_file() or p.name.endswith(".tmp"):
                continue
            key = p.relative_to(self.root).as_posix()
            if key.startswith(prefix):
                keys.append(key)
        return sorted(keys)

    def media_url(self, key: str) -> str:
        return f"/api/media/{key}"
