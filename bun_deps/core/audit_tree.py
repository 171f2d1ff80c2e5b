"""Build the legacy nested audit tree expected by the npm audit endpoint."""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .lockfile import Lockfile
from ..utils.logging import get_logger

ROOT_NAME = "root"
ROOT_VERSION = "1.0.0"
WILDCARD_RANGE = "*"


@dataclass
class AuditNode:
    """A package node of the audit tree."""

    version: str
    dev: bool = False
    dependencies: Optional[Dict[str, "AuditNode"]] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"version": self.version}
        if self.dev:
            data["dev"] = True
        if self.dependencies is not None:
            data["dependencies"] = {
                name: node.to_dict() for name, node in self.dependencies.items()
            }
        return data


@dataclass
class AuditTree:
    """Audit tree for one lockfile.

    ``collisions`` maps a bare package name to the resolved versions that
    lost to the first record with that name. It is informational and not
    part of the request payload.
    """

    name: str
    version: str
    requires: Dict[str, str] = field(default_factory=dict)
    dependencies: Dict[str, AuditNode] = field(default_factory=dict)
    collisions: Dict[str, List[str]] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        """Return the wire representation of the tree."""
        return {
            "name": self.name,
            "version": self.version,
            "requires": dict(self.requires),
            "dependencies": {
                name: node.to_dict() for name, node in self.dependencies.items()
            },
        }


class AuditTreeBuilder:
    """Transform a Lockfile into an AuditTree."""

    def __init__(self) -> None:
        self.logger = get_logger("AuditTreeBuilder")

    def build(self, lockfile: Lockfile) -> AuditTree:
        """Build the audit tree.

        Root workspace dependencies are seeded with their declared ranges.
        Each bare package name is then resolved to the version of the first
        package record carrying it, and every record contributes its
        declared dependencies one level deep under its name.

        Args:
            lockfile: Parsed lockfile

        Returns:
            A freshly built audit tree
        """
        root = lockfile.root_workspace
        tree = AuditTree(name=root.name or ROOT_NAME, version=ROOT_VERSION)

        for name, spec in root.dependencies.items():
            tree.requires[name] = spec
            tree.dependencies[name] = AuditNode(version=spec)

        for name, spec in root.dev_dependencies.items():
            tree.requires[name] = spec
            tree.dependencies[name] = AuditNode(version=spec, dev=True)

        resolved: Dict[str, str] = {}
        for record in lockfile.iter_packages():
            name = record.name
            if not name:
                continue

            version = record.version
            if name not in resolved:
                resolved[name] = version
                node = tree.dependencies.get(name)
                if node is None:
                    tree.dependencies[name] = AuditNode(version=version)
                else:
                    node.version = version
            elif version != resolved[name] and version not in tree.collisions.get(name, []):
                tree.collisions.setdefault(name, []).append(version)

            if record.metadata.declares_dependencies:
                node = tree.dependencies[name]
                if node.dependencies is None:
                    node.dependencies = {}
                for dep_name, dep_spec in record.dependencies.items():
                    node.dependencies[dep_name] = AuditNode(
                        version=dep_spec if isinstance(dep_spec, str) else WILDCARD_RANGE
                    )

        if tree.collisions:
            self.logger.debug(
                f"{len(tree.collisions)} package names resolve to several versions; "
                "only the first version of each is audited"
            )

        return tree


def build_audit_tree(lockfile: Lockfile) -> AuditTree:
    """Build an audit tree with the default builder."""
    return AuditTreeBuilder().build(lockfile)
