# src/core/locations.py
"""Conversions between file URIs and local paths."""

from __future__ import annotations

from pathlib import Path
from urllib.parse import unquote, urlparse


def to_local_file(location: str | Path) -> str:
    """Return the local path for a plain path or a ``file://`` URI."""
    if isinstance(location, Path):
        return str(location)
    if location.startswith("file://"):
        parsed = urlparse(location)
        return unquote(parsed.path)
    return location


def is_well_formed(location: object) -> bool:
    """A usable local file location: non-empty text without NUL bytes."""
    if not isinstance(location, (str, Path)):
        return False
    local = to_local_file(location)
    return bool(local) and "\x00" not in local
