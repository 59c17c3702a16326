import os
import time
from typing import Optional

MIME_TO_EXTENSION = {
    "image/jpeg": "jpg",
    "image/jpg": "jpg",
    "image/png": "png",
    "image/gif": "gif",
    "image/webp": "webp",
    "image/svg+xml": "svg",
    "video/mp4": "mp4",
    "video/webm": "webm",
    "video/quicktime": "mov",
}

DEFAULT_EXTENSION = "jpg"


def is_uploadable(content_type: str) -> bool:
    return content_type.startswith(("image/", "video/"))


def get_file_extension(content_type: str, original_name: Optional[str]) -> str:
    """
    Pick an extension for an upload.

    The MIME type wins when we know it; otherwise fall back to the original
    file's extension, and finally to a generic image extension.
    """
    if content_type in MIME_TO_EXTENSION:
        return MIME_TO_EXTENSION[content_type]

    if original_name:
        extension = os.path.splitext(original_name)[1]
        return extension[1:].lower() or DEFAULT_EXTENSION

    return DEFAULT_EXTENSION


def generate_file_name(content_type: str, original_name: Optional[str] = None, now: Optional[float] = None) -> str:
    """Build a storage key such as `image-1718000000000.png` (timestamp in ms)."""
    timestamp = int((time.time() if now is None else now) * 1000)
    kind = "video" if content_type.startswith("video/") else "image"
    return f"{kind}-{timestamp}.{get_file_extension(content_type, original_name)}"
