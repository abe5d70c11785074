"""Affected-set computation.

Turns a set of changed files into the set of package names that need to be
rebuilt:

1. If any changed file matches a global trigger pattern, every workspace
   member is affected.
2. Otherwise each changed file is mapped to the members that own it.
3. Each owning member is affected, along with every local package that
   depends on it, directly or transitively.

A changed file that no member owns (workspace tooling, docs at the root)
contributes nothing. If no file maps to a member the result is empty, which
tells the caller to skip the build.
"""

from __future__ import annotations

from collections.abc import Iterable
from fnmatch import fnmatchcase
from pathlib import Path, PurePosixPath

from .graph import DependencyGraph
from .models import PackageId
from .workspace import WorkspaceIndex


class GlobalTriggers:
    """Glob patterns whose match forces a full-workspace rebuild.

    Each pattern must match the whole path relative to root. ``*`` and ``?``
    also match ``/``, and ``**/`` matches zero or more directories, so
    ``**/Cargo.toml`` matches a manifest at any depth including the root
    while a bare ``Cargo.lock`` matches only the root lock file. A leading
    ``/`` is dropped since every pattern is already rooted.
    """

    def __init__(self, patterns: Iterable[str], root: Path) -> None:
        self.patterns = list(patterns)
        self.root = root
        self._globs = sorted(
            {v for p in self.patterns for v in _globstar_variants(p.lstrip("/"))}
        )

    def matches(self, path: str | Path) -> bool:
        if not self.patterns:
            return False
        candidate = Path(path)
        if candidate.is_absolute():
            if not candidate.is_relative_to(self.root):
                return False
            candidate = candidate.relative_to(self.root)
        target = PurePosixPath(candidate).as_posix()
        return any(fnmatchcase(target, glob) for glob in self._globs)

    def match_any(self, paths: Iterable[str | Path]) -> bool:
        return any(self.matches(path) for path in paths)

    def __bool__(self) -> bool:
        return bool(self.patterns)


def _globstar_variants(pattern: str) -> set[str]:
    """Expand each directory-level ``**/`` into its present and absent forms.

    fnmatch's ``*`` already spans directories; only the zero-directory case
    of ``**/`` needs spelling out.
    """
    head, sep, tail = pattern.partition("**/")
    if not sep:
        return {pattern}
    prefixes = {head + sep}
    if not head or head.endswith("/"):
        prefixes.add(head)
    return {p + rest for p in prefixes for rest in _globstar_variants(tail)}


def find_seed_packages(
    changes: Iterable[str | Path], index: WorkspaceIndex
) -> set[PackageId]:
    """Map changed files to the ids of every member that owns one of them."""
    seeds: set[PackageId] = set()
    for path in changes:
        seeds.update(pkg.id for pkg in index.resolve(path))
    return seeds


def expand_seeds(seeds: Iterable[PackageId], graph: DependencyGraph) -> set[str]:
    """Names of the seeds plus every local package depending on one of them."""
    affected: set[str] = set()
    for seed in seeds:
        affected.add(seed.name)
        affected.update(graph.reverse_dependents(seed))
    return affected


def compute_affected(
    changes: Iterable[str | Path],
    global_triggers: GlobalTriggers,
    index: WorkspaceIndex,
    graph: DependencyGraph,
) -> set[str]:
    """Compute the names of every package affected by the changed files.

    Args:
        changes: Changed file paths, relative to ``index.base_dir`` or absolute.
        global_triggers: Patterns that mark every member affected.
        index: Workspace members and their roots.
        graph: Lock dependency graph used to find reverse dependents.

    Returns:
        Affected package names. Empty when nothing needs rebuilding.

    Raises:
        PackageNotInGraph: If an owning member is missing from the lock graph.
    """
    changes = list(changes)
    if global_triggers.match_any(changes):
        return index.member_names
    return expand_seeds(find_seed_packages(changes, index), graph)
