"""Project root discovery for Bun workspaces."""

import json
from pathlib import Path
from typing import Optional

MANIFEST_NAME = "package.json"
LOCKFILE_NAME = "bun.lock"


class ProjectRootNotFoundError(FileNotFoundError):
    """Raised when no directory above the start path holds a package.json."""


def _read_manifest(directory: Path) -> Optional[dict]:
    """Read ``package.json`` from a directory.

    Args:
        directory: Directory to look in

    Returns:
        Parsed manifest, or None if it is missing or not valid JSON
    """
    manifest = directory / MANIFEST_NAME
    try:
        with open(manifest, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, ValueError):
        return None
    return data if isinstance(data, dict) else {}


def find_root_dir(start: Optional[Path] = None) -> Path:
    """Find the project root, walking up from ``start``.

    The root is the nearest directory with a valid package.json next to a
    bun.lock. Without any bun.lock on the way up, the nearest directory with
    a valid package.json is used.

    Args:
        start: Directory to start from (defaults to the working directory)

    Returns:
        Project root directory

    Raises:
        ProjectRootNotFoundError: If no package.json is found up to the
            filesystem root
    """
    current = (start or Path.cwd()).resolve()
    nearest: Optional[Path] = None

    for directory in (current, *current.parents):
        if _read_manifest(directory) is None:
            continue
        if lockfile_path(directory).is_file():
            return directory
        if nearest is None:
            nearest = directory

    if nearest is None:
        raise ProjectRootNotFoundError(f"Could not find {MANIFEST_NAME} above {current}")
    return nearest


def get_current_package_name(cwd: Optional[Path] = None) -> Optional[str]:
    """Name of the package the user is working in.

    Returns ``""`` at the project root, the manifest's ``name`` inside a
    workspace, and None when it cannot be determined.
    """
    current = (cwd or Path.cwd()).resolve()
    try:
        root = find_root_dir(current)
    except ProjectRootNotFoundError:
        return None

    if current == root:
        return ""

    manifest = _read_manifest(current)
    if manifest is None:
        return None

    name = manifest.get("name")
    return name if isinstance(name, str) and name else None


def lockfile_path(root: Path) -> Path:
    """Location of bun.lock for a project root."""
    return root / LOCKFILE_NAME
