"""Utility functions and helpers for bun-deps."""

from .logging import setup_logging, get_logger
from .path_utils import (
    ProjectRootNotFoundError,
    find_root_dir,
    get_current_package_name,
    lockfile_path,
)

__all__ = [
    "setup_logging",
    "get_logger",
    "ProjectRootNotFoundError",
    "find_root_dir",
    "get_current_package_name",
    "lockfile_path",
]
