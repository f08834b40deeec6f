"""Utility helper functions for the Vault."""

import math
import re
import unicodedata
import uuid
from datetime import datetime, timezone
from typing import Optional

from common.constants import STORAGE_KEY_PREFIX

# C0 and C1 controls, DEL, and the Unicode line/paragraph separators
_STRIPPED_CATEGORIES = ("Cc", "Zl", "Zp")


def generate_uuid() -> str:
    """
    Generate a new UUID4 string.

    Returns:
        UUID4 string
    """
    return str(uuid.uuid4())


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def is_valid_uuid(value: str) -> bool:
    try:
        uuid.UUID(value)
    except (TypeError, ValueError, AttributeError):
        return False
    return True


def sanitize_filename(name: str, default: str = "file") -> str:
    """
    Reduce a client-supplied name to a single safe path segment.

    Keeps only the part after the last path separator and drops control
    characters, so the result can never escape its storage prefix.

    Args:
        name: Name as sent by the client
        default: Value used when nothing survives sanitization

    Returns:
        Sanitized name
    """
    if not name:
        return default
    base = re.split(r"[\\/]", name)[-1]
    base = "".join(ch for ch in base if unicodedata.category(ch) not in _STRIPPED_CATEGORIES).strip()
    if base in ("", ".", ".."):
        return default
    return base


def build_storage_key(owner_id: str, file_id: str, file_name: str) -> str:
    """
    Derive the object-store key for an upload.

    Returns:
        Key in the form uploads/<owner>/<file_id>-<name>
    """
    owner = sanitize_filename(owner_id, default="anonymous")
    name = sanitize_filename(file_name)
    return f"{STORAGE_KEY_PREFIX}/{owner}/{file_id}-{name}"


def get_file_category(mime_type: str) -> str:
    """
    Map a MIME type onto the coarse category used for statistics.
    """
    mime_type = mime_type or ""
    if mime_type.startswith("image/"):
        return "images"
    if mime_type.startswith("video/"):
        return "videos"
    if mime_type.startswith("audio/"):
        return "audio"
    if "pdf" in mime_type:
        return "documents"
    if mime_type.startswith("text/"):
        return "text"
    if mime_type.startswith("application/"):
        return "applications"
    return "other"


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def normalize_content_type(content_type: Optional[str]) -> str:
    """
    Reduce a Content-Type header to its bare, lower-cased media type.

    "text/plain; charset=utf-8" becomes "text/plain".
    """
    if not content_type:
        return "application/octet-stream"
    media_type = content_type.split(";", 1)[0].strip().lower()
    return media_type or "application/octet-stream"
