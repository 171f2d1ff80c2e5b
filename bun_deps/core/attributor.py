"""Answer "why is this package installed" queries over a lockfile."""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Set, Tuple

from .lockfile import Lockfile, PackageRecord

PRODUCTION = "production"
DEVELOPMENT = "development"


@dataclass(frozen=True)
class DependencySource:
    """A workspace that declares the queried package directly."""

    workspace_path: str
    workspace_name: str
    kind: str

    @property
    def label(self) -> str:
        return self.workspace_name or self.workspace_path

    @property
    def is_dev(self) -> bool:
        return self.kind == DEVELOPMENT


@dataclass(frozen=True)
class TransitiveEdge:
    """A resolved package that requires the queried package.

    ``through`` lists the intermediate packages between this package and
    the queried one, excluding both; the package closest to the queried
    one comes first.
    """

    name: str
    version: str
    through: Tuple[str, ...] = ()


@dataclass(frozen=True)
class DependencyExplanation:
    """Direct and transitive sources of a package."""

    target: str
    direct: List[DependencySource] = field(default_factory=list)
    transitive: List[TransitiveEdge] = field(default_factory=list)

    @property
    def found(self) -> bool:
        return bool(self.direct or self.transitive)


class DependencyAttributor:
    """Find which workspaces and packages pull a package into the lockfile."""

    def __init__(self, lockfile: Lockfile) -> None:
        """Initialize the attributor.

        Args:
            lockfile: Parsed lockfile to query
        """
        self.lockfile = lockfile
        self._consumers: Optional[Dict[str, List[PackageRecord]]] = None

    def find_direct_sources(self, target: str) -> List[DependencySource]:
        """Find workspaces declaring ``target`` as a direct dependency.

        A workspace declaring it both as a production and as a development
        dependency yields two sources.

        Args:
            target: Package name to look up

        Returns:
            Sources in workspace table order, empty if none match
        """
        sources = []
        for workspace in self.lockfile.iter_workspaces():
            if target in workspace.dependencies:
                sources.append(DependencySource(workspace.path, workspace.name, PRODUCTION))
            if target in workspace.dev_dependencies:
                sources.append(DependencySource(workspace.path, workspace.name, DEVELOPMENT))
        return sources

    def find_transitive_sources(
        self,
        target: str,
        visited: Optional[Set[str]] = None,
    ) -> List[TransitiveEdge]:
        """Find every resolved package that requires ``target``, directly or not.

        The walk is depth-first in package table order: each consumer is
        followed by its own consumers before the next sibling. Each package
        name is expanded at most once per walk, which also stops cycles.

        Args:
            target: Package name to look up
            visited: Names already expanded; shared by the whole walk.
                A fresh set is used when omitted.

        Returns:
            Transitive edges, empty if nothing requires ``target``
        """
        if visited is None:
            visited = set()

        if target in visited:
            return []
        visited.add(target)

        results = []
        for record in self._consumers_of(target):
            results.append(TransitiveEdge(name=record.name, version=record.version))

            for edge in self.find_transitive_sources(record.name, visited):
                results.append(
                    TransitiveEdge(
                        name=edge.name,
                        version=edge.version,
                        through=(record.name,) + edge.through,
                    )
                )

        return results

    def explain(self, target: str) -> DependencyExplanation:
        """Run both queries for ``target``."""
        return DependencyExplanation(
            target=target,
            direct=self.find_direct_sources(target),
            transitive=self.find_transitive_sources(target),
        )

    def _consumers_of(self, name: str) -> List[PackageRecord]:
        """Records declaring ``name`` in their dependencies, in table order."""
        if self._consumers is None:
            index: Dict[str, List[PackageRecord]] = {}
            for record in self.lockfile.iter_packages():
                if not record.name:
                    continue
                for dependency in record.dependencies:
                    index.setdefault(dependency, []).append(record)
            self._consumers = index
        return self._consumers.get(name, [])
