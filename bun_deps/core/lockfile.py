"""Typed in-memory model of a resolved bun.lock file."""

from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Optional, Tuple, Union

ROOT_WORKSPACE = ""
UNKNOWN_VERSION = "unknown"


def bare_package_name(key: str) -> str:
    """Strip the version or alias locator from a package key.

    The leading ``@`` of a scoped package is part of the name, so
    ``@types/node@npm:foo`` yields ``@types/node``.

    Args:
        key: Package table key or resolved key

    Returns:
        Bare package name, or an empty string if none can be derived
    """
    start = 1 if key.startswith("@") else 0
    index = key.find("@", start)
    if index == -1:
        return key
    return key[:index]


def resolved_version(resolved_key: str) -> str:
    """Return the text after the last ``@`` of a resolved key."""
    _, sep, version = resolved_key.rpartition("@")
    if not sep or not version:
        return UNKNOWN_VERSION
    return version


@dataclass(frozen=True)
class Workspace:
    """A workspace declared in the lockfile."""

    path: str
    name: str = ""
    dependencies: Dict[str, str] = field(default_factory=dict)
    dev_dependencies: Dict[str, str] = field(default_factory=dict)

    @property
    def is_root(self) -> bool:
        return self.path == ROOT_WORKSPACE

    @property
    def label(self) -> str:
        """Display name, falling back to the workspace path."""
        return self.name or self.path


@dataclass(frozen=True)
class PackageMetadata:
    """Metadata block stored as the third element of a package tuple.

    ``declares_dependencies`` is set when the block carries a
    ``dependencies`` object, even an empty one.
    """

    dependencies: Dict[str, Any] = field(default_factory=dict)
    declares_dependencies: bool = False
    dev_dependencies: Dict[str, Any] = field(default_factory=dict)
    peer_dependencies: Dict[str, Any] = field(default_factory=dict)
    optional_dependencies: Dict[str, Any] = field(default_factory=dict)
    bin: Optional[Union[str, Dict[str, str]]] = None
    os: Optional[Union[str, List[str]]] = None
    cpu: Optional[Union[str, List[str]]] = None


@dataclass(frozen=True)
class PackageRecord:
    """A resolved package instance from the lockfile ``packages`` table."""

    key: str
    resolved_key: str
    source_id: str
    metadata: PackageMetadata
    integrity: Optional[str] = None

    @property
    def name(self) -> str:
        return bare_package_name(self.key)

    @property
    def version(self) -> str:
        return resolved_version(self.resolved_key)

    @property
    def dependencies(self) -> Dict[str, Any]:
        return self.metadata.dependencies

    def depends_on(self, name: str) -> bool:
        """Check whether the package declares ``name`` as a dependency."""
        return name in self.metadata.dependencies


@dataclass(frozen=True)
class Lockfile:
    """Validated view of a bun.lock file.

    Built once per invocation and read-only afterwards. Workspaces keep the
    iteration order of the lockfile; so do packages, as ``(key, record)``
    pairs. Entries that did not have the expected shape are listed in
    ``skipped_packages`` and ``skipped_workspaces`` and never reach a query.
    """

    lockfile_version: Optional[int]
    workspaces: Dict[str, Workspace]
    packages: Tuple[Tuple[str, PackageRecord], ...]
    skipped_packages: Tuple[str, ...] = ()
    skipped_workspaces: Tuple[str, ...] = ()

    @property
    def root_workspace(self) -> Workspace:
        """Workspace keyed by the empty path, else the first one declared."""
        root = self.workspaces.get(ROOT_WORKSPACE)
        if root is not None:
            return root
        return next(iter(self.workspaces.values()))

    def iter_workspaces(self) -> Iterator[Workspace]:
        return iter(self.workspaces.values())

    def iter_packages(self) -> Iterator[PackageRecord]:
        for _, record in self.packages:
            yield record

    def __len__(self) -> int:
        return len(self.packages)
