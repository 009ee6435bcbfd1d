from __future__ import annotations

import logging
from functools import lru_cache

from ..core.config import Settings, settings
from .base import DocumentStore, StorageError
from .fallback import FallbackDocumentStore
from .gcs import GcsDocumentStore
from .local import LocalDocumentStore
from . import paths

logger = logging.getLogger(__name__)


def build_store(cfg: Settings) -> DocumentStore:
    """Select the storage backend from configuration."""
    backend = cfg.resolved_storage_backend
    if backend == "gcs":
        gcs = GcsDocumentStore(
            bucket=cfg.GCS_BUCKET_NAME,
            endpoint_url=cfg.GCS_ENDPOINT_URL,
            access_key_id=cfg.GCS_HMAC_ACCESS_KEY_ID,
            secret=cfg.GCS_HMAC_SECRET,
        )
        if cfg.is_production:
            logger.info("Using GCS document storage", extra={"bucket": cfg.GCS_BUCKET_NAME})
            return gcs
        logger.info("Using GCS document storage with local fallback", extra={"bucket": cfg.GCS_BUCKET_NAME})
        return FallbackDocumentStore(gcs, LocalDocumentStore(cfg.LOCAL_DATA_DIR))
    logger.info("Using local document storage", extra={"root": cfg.LOCAL_DATA_DIR})
    return LocalDocumentStore(cfg.LOCAL_DATA_DIR)


@lru_cache
def get_store() -> DocumentStore:
    """FastAPI dependency returning the process-wide store."""
    return build_store(settings)


__all__ = [
    "DocumentStore",
    "StorageError",
    "LocalDocumentStore",
    "GcsDocumentStore",
    "FallbackDocumentStore",
    "build_store",
    "get_store",
    "paths",
]
