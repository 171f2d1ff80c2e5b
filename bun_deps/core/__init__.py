"""Lockfile model and dependency graph queries for bun-deps."""

from .lockfile import Lockfile, PackageMetadata, PackageRecord, Workspace
from .parser import BunLockfileParser, MalformedLockfileError, parse_lockfile
from .attributor import (
    DependencyAttributor,
    DependencyExplanation,
    DependencySource,
    TransitiveEdge,
)
from .audit_tree import AuditNode, AuditTree, AuditTreeBuilder, build_audit_tree
from .listing import select_workspaces

__all__ = [
    "Lockfile",
    "PackageMetadata",
    "PackageRecord",
    "Workspace",
    "BunLockfileParser",
    "MalformedLockfileError",
    "parse_lockfile",
    "DependencyAttributor",
    "DependencyExplanation",
    "DependencySource",
    "TransitiveEdge",
    "AuditNode",
    "AuditTree",
    "AuditTreeBuilder",
    "build_audit_tree",
    "select_workspaces",
]
