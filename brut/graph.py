"""Package dependency graph built from Cargo.lock.

Edges point from a package to the packages it depends on, exactly as the
lock file records them. An incoming-edge index is built once at construction
so reverse lookups never scan the whole graph.
"""

from __future__ import annotations

from collections import deque
from collections.abc import Iterable

import tomlkit

from .errors import PackageNotInGraph
from .models import LockedPackage, Package, PackageId


def parse_lockfile(doc: tomlkit.TOMLDocument) -> list[LockedPackage]:
    """Read every [[package]] entry of a parsed Cargo.lock."""
    locked: list[LockedPackage] = []
    for entry in doc.get("package", []):
        source = entry.get("source")
        locked.append(
            LockedPackage(
                id=PackageId(name=str(entry["name"]), version=str(entry["version"])),
                source=str(source) if source is not None else None,
                dependencies=tuple(str(d) for d in entry.get("dependencies", [])),
            )
        )
    return locked


def parse_dependency(entry: str) -> tuple[str, str | None, str | None]:
    """Split a lock dependency string into (name, version, source).

    Cargo writes only as much as it needs to disambiguate:

        "serde"                          → ("serde", None, None)
        "syn 1.0.109"                    → ("syn", "1.0.109", None)
        "rand 0.8.5 (registry+…)"        → ("rand", "0.8.5", "registry+…")
    """
    name, _, rest = entry.strip().partition(" ")
    version, _, source = rest.partition(" ")
    return name, version or None, source.strip("()") or None


class DependencyGraph:
    """Directed graph over lock entries; an edge A → B means A depends on B."""

    def __init__(self) -> None:
        self._nodes: dict[PackageId, LockedPackage] = {}
        self._dependencies: dict[PackageId, set[PackageId]] = {}
        self._dependents: dict[PackageId, set[PackageId]] = {}
        self._members: set[PackageId] = set()

    @classmethod
    def build(
        cls, locked: Iterable[LockedPackage], members: Iterable[Package]
    ) -> DependencyGraph:
        """Build the graph from resolved lock entries.

        Args:
            locked: Every package entry of the lock file.
            members: Workspace members; these are always reportable as
                     affected, whatever their lock source.

        Raises:
            PackageNotInGraph: If a dependency string names no lock entry.
        """
        graph = cls()
        graph._members = {m.id for m in members}

        # Cargo.lock may hold the same (name, version) from several sources
        # (say crates.io and a git fork); those share one node.
        by_name: dict[str, list[PackageId]] = {}
        sources: dict[PackageId, set[str | None]] = {}
        for pkg in locked:
            existing = graph._nodes.get(pkg.id)
            if existing is None:
                graph._nodes[pkg.id] = pkg
                graph._dependencies[pkg.id] = set()
                graph._dependents[pkg.id] = set()
                by_name.setdefault(pkg.id.name, []).append(pkg.id)
                sources[pkg.id] = {pkg.source}
            else:
                graph._nodes[pkg.id] = _merge(existing, pkg)
                sources[pkg.id].add(pkg.source)

        for pkg in graph._nodes.values():
            for entry in pkg.dependencies:
                dep = _resolve_dependency(entry, by_name, sources)
                graph._dependencies[pkg.id].add(dep)
                graph._dependents[dep].add(pkg.id)

        return graph

    def __contains__(self, pkg_id: object) -> bool:
        return pkg_id in self._nodes

    def __len__(self) -> int:
        return len(self._nodes)

    def _require(self, pkg_id: PackageId) -> LockedPackage:
        try:
            return self._nodes[pkg_id]
        except KeyError:
            raise PackageNotInGraph(str(pkg_id)) from None

    def is_local(self, pkg_id: PackageId) -> bool:
        """True for workspace members and path dependencies."""
        return pkg_id in self._members or self._require(pkg_id).is_local

    def dependencies(self, pkg_id: PackageId) -> set[PackageId]:
        """Packages pkg_id depends on directly."""
        self._require(pkg_id)
        return set(self._dependencies[pkg_id])

    def dependents(self, pkg_id: PackageId) -> set[PackageId]:
        """Packages that depend on pkg_id directly."""
        self._require(pkg_id)
        return set(self._dependents[pkg_id])

    def reverse_dependents(self, pkg_id: PackageId) -> set[str]:
        """Names of every local package that depends on pkg_id, transitively.

        Walks incoming edges breadth-first. Registry and git packages are
        walked through but never reported. pkg_id itself is not reported,
        even when a cycle leads back to it.

        Raises:
            PackageNotInGraph: If pkg_id has no node (stale lock file).
        """
        self._require(pkg_id)

        names: set[str] = set()
        visited = {pkg_id}
        queue = deque([pkg_id])
        while queue:
            node = queue.popleft()
            for dependent in self._dependents[node]:
                if dependent in visited:
                    continue
                visited.add(dependent)
                queue.append(dependent)
                if self.is_local(dependent):
                    names.add(dependent.name)
        return names


def _merge(first: LockedPackage, second: LockedPackage) -> LockedPackage:
    """Fold two lock entries sharing an id into one node.

    The node is local if either entry is, and depends on the union of both
    entries' dependencies.
    """
    extra = tuple(d for d in second.dependencies if d not in first.dependencies)
    return LockedPackage(
        id=first.id,
        source=None if second.is_local else first.source,
        dependencies=first.dependencies + extra,
    )


def _resolve_dependency(
    entry: str,
    by_name: dict[str, list[PackageId]],
    sources: dict[PackageId, set[str | None]],
) -> PackageId:
    name, version, source = parse_dependency(entry)
    candidates = [
        pkg_id
        for pkg_id in by_name.get(name, [])
        if version is None or pkg_id.version == version
    ]
    if source is not None and len(candidates) > 1:
        candidates = [c for c in candidates if source in sources[c]] or candidates
    if len(candidates) != 1:
        raise PackageNotInGraph(entry)
    return candidates[0]
