from __future__ import annotations

import re
from typing import Iterable

from patchlocator.core.exceptions import PathResolutionError

_ABSOLUTE_PREFIXES = ("/Users/", "/home/", "/var/")
_WINDOWS_DRIVE_PATTERN = re.compile(r"^[A-Z]:\\")
_DEV_SERVER_PATTERN = re.compile(r"localhost:\d+/(.+)$")


def is_absolute_source_path(file_path: str) -> bool:
    return file_path.startswith(_ABSOLUTE_PREFIXES) or bool(_WINDOWS_DRIVE_PATTERN.match(file_path))


def clean_relative_path(file_path: str) -> str:
    """Strips dev-server URL noise (host prefix, leading slashes, cache-busting query)."""

    relative = file_path
    url_match = _DEV_SERVER_PATTERN.search(relative)
    if url_match:
        relative = url_match.group(1)
    relative = relative.lstrip("/")
    return relative.split("?")[0]


def resolve_file_path(file_path: str, project_path: str | None = None) -> str:
    """Maps a source-map file reference onto the filesystem."""

    if is_absolute_source_path(file_path):
        return file_path
    relative = clean_relative_path(file_path)
    if not project_path:
        raise PathResolutionError(f"No project path provided for relative path: {file_path}")
    return f"{project_path.rstrip('/')}/{relative}"


def is_blocked_path(
    file_path: str,
    blocked_fragments: Iterable[str],
    allowed_fragments: Iterable[str] = (),
) -> bool:
    """True when ``file_path`` belongs to a tree the locator must never patch."""

    if any(fragment and fragment in file_path for fragment in allowed_fragments):
        return False
    return any(fragment and fragment in file_path for fragment in blocked_fragments)
