"""Utility functions for gdrivesync."""

import os
import re
from collections.abc import Iterable
from datetime import datetime, timezone
from typing import Optional

# =============================================================================
# Constants
# =============================================================================

# Mime type Google Drive uses for folders
FOLDER_MIME_TYPE: str = "application/vnd.google-apps.folder"

# Page size for folder listings (Drive maximum is 1000)
DEFAULT_PAGE_SIZE: int = 1000

# Retry configuration for transient errors
DEFAULT_MAX_RETRIES: int = 3
DEFAULT_RETRY_DELAY: float = 1.0  # seconds

# Chunk size used when streaming downloads to disk
DOWNLOAD_CHUNK_SIZE: int = 64 * 1024

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


# =============================================================================
# Timestamp utilities
# =============================================================================


def parse_rfc3339(timestamp_str: Optional[str]) -> Optional[datetime]:
    """Parse an RFC 3339 timestamp as returned by the Drive API.

    Args:
        timestamp_str: Timestamp string (e.g., "2025-01-15T10:30:00.123Z")

    Returns:
        Timezone-aware datetime in UTC, or None if missing or unparsable
    """
    if not timestamp_str:
        return None

    try:
        # The 'Z' suffix indicates UTC time
        if timestamp_str.endswith("Z"):
            timestamp_str = timestamp_str[:-1] + "+00:00"
        dt = datetime.fromisoformat(timestamp_str)
    except (ValueError, AttributeError):
        return None

    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def datetime_to_ns(dt: datetime) -> int:
    """Convert a datetime to integer nanoseconds since the Unix epoch.

    Integer arithmetic keeps the conversion exact, so a value written with
    ``os.utime(ns=...)`` compares equal to ``st_mtime_ns`` afterwards.

    Examples:
        >>> datetime_to_ns(datetime(1970, 1, 1, 0, 0, 1, 500, tzinfo=timezone.utc))
        1000500000
    """
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    delta = dt - _EPOCH
    return (delta.days * 86400 + delta.seconds) * 10**9 + delta.microseconds * 1000


# =============================================================================
# Listing query utilities
# =============================================================================


def normalize_extensions(extensions: Optional[Iterable[str]]) -> list[str]:
    """Normalize extension arguments for the exclusion filter.

    Each value may hold several extensions separated by commas or whitespace.
    Leading dots are removed and duplicates dropped, keeping first-seen order.

    Examples:
        >>> normalize_extensions([".tmp", "log, bak"])
        ['tmp', 'log', 'bak']
    """
    result: list[str] = []
    for value in extensions or []:
        for part in re.split(r"[,\s]+", value):
            ext = part.strip().lstrip(".").strip()
            if ext and ext not in result:
                result.append(ext)
    return result


def _quote(value: str) -> str:
    """Escape a value for use inside a single-quoted Drive query literal."""
    return value.replace("\\", "\\\\").replace("'", "\\'")


def build_children_query(folder_id: str, excluded_extensions: list[str]) -> str:
    """Build the ``q`` parameter listing the direct children of a folder.

    Examples:
        >>> build_children_query("abc", ["tmp"])
        "'abc' in parents and trashed = false and fileExtension != 'tmp'"
    """
    query = f"'{_quote(folder_id)}' in parents and trashed = false"
    for ext in excluded_extensions:
        query += f" and fileExtension != '{_quote(ext)}'"
    return query


# =============================================================================
# Path utilities
# =============================================================================


def is_safe_name(name: str) -> bool:
    """Check whether a remote name can be used as a single local path part.

    Drive allows names that would point elsewhere once joined to a local
    directory: empty names, ``.``, ``..`` and names containing separators.

    Examples:
        >>> is_safe_name("report.pdf")
        True
        >>> is_safe_name("../report.pdf")
        False
    """
    if name in ("", ".", "..") or "\0" in name:
        return False
    separators = {"/", os.sep} | ({os.altsep} if os.altsep else set())
    return not any(sep in name for sep in separators)
