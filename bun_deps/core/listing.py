"""Workspace selection for the ``list`` command."""

from typing import List, Optional

from .lockfile import Lockfile, Workspace


def select_workspaces(
    lockfile: Lockfile,
    current_package: Optional[str],
    recursive: bool = False,
) -> List[Workspace]:
    """Select the workspaces whose dependencies should be listed.

    Args:
        lockfile: Parsed lockfile
        current_package: ``""`` when running from the project root, the
            package name when running inside a workspace, None if unknown
        recursive: Select every workspace

    Returns:
        Workspaces in lockfile order
    """
    if recursive:
        return list(lockfile.iter_workspaces())

    if current_package is None:
        return []

    if current_package == "":
        return [ws for ws in lockfile.iter_workspaces() if ws.is_root]

    return [ws for ws in lockfile.iter_workspaces() if ws.name == current_package]
