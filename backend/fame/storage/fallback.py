from __future__ import annotations

import logging
from typing import List, Optional

from .base import DocumentStore, StorageError

logger = logging.getLogger(__name__)


class FallbackDocumentStore(DocumentStore):
    """Development wrapper: use ``primary`` and fall back to ``secondary`` on errors.

    Lets a developer run against a bucket with flaky or missing credentials
    without losing writes. Never used in production.
    """

    backend_name = "gcs+local"

    def __init__(self, primary: DocumentStore, secondary: DocumentStore) -> None:
        super().__init__()
        self.primary = primary
        self.secondary = secondary

    def _warn(self, op: str, key: str, exc: Exception) -> None:
        logger.warning(
            "Primary storage failed, using %s", self.secondary.backend_name,
            extra={"op": op, "key": key, "error": str(exc)},
        )

    def read_bytes(self, key: str) -> Optional[bytes]:
        try:
            return self.primary.read_bytes(key)
        except StorageError as exc:
            self._warn("read", key, exc)
            return self.secondary.read_bytes(key)

    def write_bytes(self, key: str, data: bytes, content_type: str = "application/octet-stream") -> None:
        try:
            self.primary.write_bytes(key, data, content_type)
        except StorageError as exc:
            self._warn("write", key, exc)
            self.secondary.write_bytes(key, data, content_type)

    def delete(self, key: str) -> bool:
        try:
            return self.primary.delete(key)
        except StorageError as exc:
            self._warn("delete", key, exc)
            return self.secondary.delete(key)

    def exists(self, key: str) -> bool:
        try:
            return self.primary.exists(key)
        except StorageError as exc:
            self._warn("exists", key, exc)
            return self.secondary.exists(key)

    def list_keys(self, prefix: str) -> List[str]:
        try:
            return self.primary.list_keys(prefix)
        except StorageError as exc:
            self._warn("list", prefix, exc)
            return self.secondary.list_keys(prefix)

    def media_url(self, key: str) -> str:
        if self.secondary.exists(key) and not self._primary_has(key):
            return self.secondary.media_url(key)
        return self.primary.media_url(key)

    def _primary_has(self, key: str) -> bool:
        try:
            return self.primary.exists(key)
        except StorageError:
            return False

    def signed_url(self, key: str, expires_in: int = 3600) -> Optional[str]:
        if not self._primary_has(key):
            return None
        return self.primary.signed_url(key, expires_in)
