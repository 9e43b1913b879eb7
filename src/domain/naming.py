"""
Naming conventions: folder slugs, filenames and object-store keys.

Object key format: media/{YYYY}/{MM}/{timestamp_ms}-{sanitized filename}
"""

from __future__ import annotations

import re
from datetime import datetime

_UNSAFE = re.compile(r"[^a-zA-Z0-9.-]")

EDITED_PREFIX = "edited-"


def sanitize_filename(filename: str) -> str:
    """Replace every character outside [a-zA-Z0-9.-] with '-'."""
    cleaned = _UNSAFE.sub("-", filename.strip())
    return cleaned or "unnamed"


def edited_filename(original: str) -> str:
    """Default filename for a derived copy."""
    return f"{EDITED_PREFIX}{original}"


def generate_storage_key(filename: str, at: datetime) -> str:
    """Storage key for a new object, unique per millisecond and name."""
    timestamp_ms = int(at.timestamp() * 1000)
    return f"media/{at.year:04d}/{at.month:02d}/{timestamp_ms}-{sanitize_filename(filename)}"


def mime_to_extension(mime_type: str) -> str:
    """Get file extension from MIME type."""
    mapping = {
        "image/jpeg": "jpg",
        "image/png": "png",
        "image/webp": "webp",
        "image/gif": "gif",
    }
    return mapping.get(mime_type, "bin")


def with_extension(filename: str, mime_type: str) -> str:
    """Swap the filename's extension for the one matching mime_type."""
    stem, dot, _ = filename.rpartition(".")
    base = stem if dot else filename
    return f"{base}.{mime_to_extension(mime_type)}"


def slugify(text: str) -> str:
    """Create URL-safe slug from text."""
    slug = text.lower().strip()
    slug = re.sub(r"\s+", "-", slug)
    slug = re.sub(r"[^a-z0-9-]", "", slug)
    slug = re.sub(r"-+", "-", slug)
    return slug.strip("-")
