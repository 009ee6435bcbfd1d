from __future__ import annotations

import logging
from typing import List, Optional

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from .base import DocumentStore, StorageError

logger = logging.getLogger(__name__)

_MISSING_CODES = {"NoSuchKey", "404", "NotFound"}


def _client(endpoint_url: str, access_key_id: str, secret: str):
    """S3 client pointed at Google Cloud Storage's XML interoperability API.

    GCS accepts SigV4 with HMAC keys; path-style addressing keeps the
    bucket out of the hostname.
    """
    return boto3.client(
        "s3",
        aws_access_key_id=access_key_id,
        aws_secret_access_key=secret,
        endpoint_url=endpoint_url,
        region_name="auto",
        config=Config(
            signature_version="s3v4",
            s3={"addressing_style": "path"},
        ),
    )


class GcsDocumentStore(DocumentStore):
    backend_name = "gcs"

    def __init__(
        self,
        bucket: str,
        endpoint_url: str = "https://storage.googleapis.com",
        access_key_id: str = "",
        secret: str = "",
        client=None,
    ) -> None:
        super().__init__()
        self.bucket = bucket
        self.client = client or _client(endpoint_url, access_key_id, secret)

    def read_bytes(self, key: str) -> Optional[bytes]:
        try:
            resp = self.client.get_object(Bucket=self.bucket, Key=key)
            return resp["Body"].read()
        except ClientError as exc:
            if exc.response.get("Error", {}).get("Code") in _MISSING_CODES:
                return None
            raise StorageError(f"Failed to download {key}") from exc
        except BotoCoreError as exc:
            raise StorageError(f"Failed to download {key}") from exc

    def write_bytes(self, key: str, data: bytes, content_type: str = "application/octet-stream") -> None:
        try:
            self.client.put_object(Bucket=self.bucket, Key=key, Body=data, ContentType=content_type)
        except (ClientError, BotoCoreError) as exc:
            raise StorageError(f"Failed to upload {key}") from exc
        logger.debug("Uploaded gs://%s/%s (%d bytes)", self.bucket, key, len(data))

    def delete(self, key: str) -> bool:
        if not self.exists(key):
            return False
        try:
            self.client.delete_object(Bucket=self.bucket, Key=key)
        except (ClientError, BotoCoreError) as exc:
            raise StorageError(f"Failed to delete {key}") from exc
        return True

    def exists(self, key: str) -> bool:
        try:
            self.client.head_object(Bucket=self.bucket, Key=key)
            return True
        except ClientError as exc:
            if exc.response.get("Error", {}).get("Code") in _MISSING_CODES:
                return False
            raise StorageError(f"Failed to stat {key}") from exc
        except BotoCoreError as exc:
            raise StorageError(f"Failed to stat {key}") from exc

    def list_keys(self, prefix: str) -> List[str]:
        keys: List[str] = []
        try:
            paginator = self.client.get_paginator("list_objects_v2")
            for page in paginator.paginate(Bucket=self.bucket, Prefix=prefix):
                keys.extend(obj["Key"] for obj in page.get("Contents", []))
        except (ClientError, BotoCoreError) as exc:
            raise StorageError(f"Failed to list {prefix}") from exc
        return sorted(keys)

    def media_url(self, key: str) -> str:
        return f"gs://{self.bucket}/{key}"

    def signed_url(self, key: str, expires_in: int = 3600) -> Optional[str]:
        return self.client.generate_presigned_url(
            ClientMethod="get_object",
            Params={"Bucket": self.bucket, "Key": key},
            ExpiresIn=expires_in,
        )
