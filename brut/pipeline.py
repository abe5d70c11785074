"""Selection pipeline: diff → workspace → config → graph → affected set.

This module wires the stages together for one invocation:
1. Locate the git repository and list the files changed since base
2. Locate the Cargo workspace through its Cargo.lock
3. Load brut's configuration (global trigger patterns)
4. Build the dependency graph from Cargo.lock
5. Compute the affected package names

Every stage receives the working directory explicitly; nothing reads the
process directory behind the caller's back.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from .affected import GlobalTriggers, expand_seeds, find_seed_packages
from .config import load_config
from .git import DEFAULT_BASE, find_repo_root, get_changed_files
from .graph import DependencyGraph, parse_lockfile
from .models import BrutConfig, PackageId
from .shell import info, step
from .toml import load_toml
from .workspace import Workspace, find_lockfile_dir, load_workspace


@dataclass(frozen=True)
class Selection:
    """Everything computed for one invocation, ready for dispatch or display."""

    repo_root: Path
    workspace_root: Path
    changed_files: frozenset[str]
    affected: frozenset[str]
    global_trigger: bool = False
    seeds: frozenset[str] = field(default_factory=frozenset)


def discover_workspace(cwd: Path, verbose: bool = False) -> Workspace:
    """Find the workspace owning cwd and enumerate its members."""
    workspace = load_workspace(find_lockfile_dir(cwd))
    if verbose:
        step(f"Workspace {workspace.root}")
        for pkg in workspace.members:
            info(f"{pkg.id} ({pkg.root.relative_to(workspace.root)})")
    return workspace


def select_affected(
    cwd: Path,
    base: str = DEFAULT_BASE,
    head: str | None = None,
    verbose: bool = False,
) -> Selection:
    """Compute the packages affected by the changes between base and head.

    Args:
        cwd: Working directory; locates the repository, the workspace and
             brut.toml.
        base: Revision to diff against.
        head: Revision to diff to; the working tree when None.
        verbose: Print progress for each stage to stderr.

    Raises:
        BrutError: If any stage fails; no partial result is returned.
    """
    repo_root = find_repo_root(cwd)
    changed = get_changed_files(repo_root, base, head)
    if verbose:
        step(f"Changes {base}..{head or '<working tree>'}")
        for path in sorted(changed):
            info(path)

    workspace = discover_workspace(cwd, verbose)
    config: BrutConfig = load_config(cwd, workspace.manifest)
    triggers = GlobalTriggers(config.global_dependencies, root=repo_root)

    graph = DependencyGraph.build(
        parse_lockfile(load_toml(workspace.lockfile)), workspace.members
    )
    index = workspace.index(base_dir=repo_root)

    triggered = triggers.match_any(changed)
    if triggered:
        seeds: set[PackageId] = set()
        affected = index.member_names
    else:
        seeds = find_seed_packages(changed, index)
        affected = expand_seeds(seeds, graph)

    if verbose:
        step("Affected packages")
        if triggered:
            info("global trigger matched: all members affected")
        for name in sorted(affected):
            info(name)

    return Selection(
        repo_root=repo_root,
        workspace_root=workspace.root,
        changed_files=frozenset(changed),
        affected=frozenset(affected),
        global_trigger=triggered,
        seeds=frozenset(seed.name for seed in seeds),
    )
