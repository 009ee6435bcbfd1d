from __future__ import annotations

import abc
import logging
import threading
from contextlib import contextmanager
from typing import Any, Callable, Dict, Iterator, List, Optional

import orjson

from ..utils.json import dumps_bytes, loads

logger = logging.getLogger(__name__)


class StorageError(RuntimeError):
    """Raised when a backend cannot read or write an object."""


class DocumentStore(abc.ABC):
    """Whole-document JSON store addressed by slash-separated keys.

    Every mutation is a read-modify-write of one document. ``locked(key)``
    serializes those cycles within this process.
    """

    backend_name = "abstract"

    def __init__(self) -> None:
        self._locks: Dict[str, threading.RLock] = {}
        self._locks_guard = threading.Lock()

    # -- raw objects ---------------------------------------------------------

    @abc.abstractmethod
    def read_bytes(self, key: str) -> Optional[bytes]:
        """Return the object's bytes, or None when it does not exist."""

    @abc.abstractmethod
    def write_bytes(self, key: str, data: bytes, content_type: str = "application/octet-stream") -> None:
        ...

    @abc.abstractmethod
    def delete(self, key: str) -> bool:
        ...

    @abc.abstractmethod
    def exists(self, key: str) -> bool:
        ...

    @abc.abstractmethod
    def list_keys(self, prefix: str) -> List[str]:
        ...

    @abc.abstractmethod
    def media_url(self, key: str) -> str:
        """Stable reference to an uploaded object, stored on records."""

    def signed_url(self, key: str, expires_in: int = 3600) -> Optional[str]:
        return None

    # -- JSON documents ------------------------------------------------------

    def read_json(self, key: str, default: Any = None) -> Any:
        raw = self.read_bytes(key)
        if raw is None:
            return default
        try:
            return loads(raw)
        except orjson.JSONDecodeError as exc:
            logger.error("Corrupt JSON document %s: %s", key, exc)
            raise StorageError(f"Corrupt JSON document: {key}") from exc

    def write_json(self, key: str, data: Any) -> None:
        self.write_bytes(key, dumps_bytes(data, pretty=True), "application/json")

    def upload_file(self, key: str, data: bytes, content_type: str) -> str:
        self.write_bytes(key, data, content_type)
        return self.media_url(key)

    @contextmanager
    def locked(self, key: str) -> Iterator[None]:
        with self._locks_guard:
            lock = self._locks.setdefault(key, threading.RLock())
        with lock:
            yield

    def update_json(self, key: str, mutate: Callable[[Any], Any], default: Any = None) -> Any:
        """Apply ``mutate`` to the stored document and write the result back."""
        with self.locked(key):
            doc = self.read_json(key, default)
            updated = mutate(doc)
            self.write_json(key, updated)
            return updated
