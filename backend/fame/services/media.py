from __future__ import annotations

import math
from typing import Optional

_MB = 1024 * 1024

MEDIA_LIMITS: dict[str, dict] = {
    "image": {
        "max_size": 10 * _MB,
        "allowed_types": [
            "image/jpeg",
            "image/jpg",
            "image/png",
            "image/gif",
            "image/webp",
            "image/svg+xml",
        ],
    },
    "video": {
        "max_size": 100 * _MB,
        "allowed_types": [
            "video/mp4",
            "video/webm",
            "video/ogg",
            "video/avi",
            "video/mov",
            "video/quicktime",
            "video/wmv",
        ],
    },
    "audio": {
        "max_size": 50 * _MB,
        "allowed_types": [
            "audio/mpeg",
            "audio/mp3",
            "audio/wav",
            "audio/ogg",
            "audio/aac",
            "audio/m4a",
            "audio/mp4",
            "audio/flac",
            "audio/wma",
        ],
    },
}

# Anything that is not image/video/audio (riders, PDFs)
DOCUMENT_MAX_SIZE = 10 * _MB


def get_file_category(content_type: Optional[str]) -> str:
    ct = (content_type or "").lower()
    for prefix in ("image", "video", "audio"):
        if ct.startswith(prefix + "/"):
            return prefix
    return "document"


def validate_media_file(filename: Optional[str], size: int, content_type: Optional[str]) -> Optional[str]:
    """Return an error message, or None when the upload is acceptable."""
    if not filename or not filename.strip():
        return "File name is required"
    category = get_file_category(content_type)
    if category == "document":
        if size > DOCUMENT_MAX_SIZE:
            return f"File size exceeds {DOCUMENT_MAX_SIZE // _MB}MB limit for document files"
        return None
    limits = MEDIA_LIMITS[category]
    if size > limits["max_size"]:
        return f"File size exceeds {limits['max_size'] // _MB}MB limit for {category} files"
    if (content_type or "").lower() not in limits["allowed_types"]:
        return f"File type {content_type} is not supported for {category} files"
    return None


def format_file_size(num_bytes: int) -> str:
    if num_bytes <= 0:
        return "0 Bytes"
    units = ["Bytes", "KB", "MB", "GB"]
    i = min(int(math.floor(math.log(num_bytes, 1024))), len(units) - 1)
    value = round(num_bytes / (1024 ** i), 2)
    if value.is_integer():
        value = int(value)
    return f"{value} {units[i]}"
