"""Workspace discovery and file ownership.

Reads the root Cargo.toml to enumerate workspace members, and maps changed
files to the members whose directories contain them.
"""

from __future__ import annotations

import glob
import os
from collections import deque
from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from pathlib import Path

import tomlkit

from .errors import LockFileMissing
from .models import Package, PackageId
from .toml import (
    LOCKFILE_NAME,
    MANIFEST_NAME,
    get_dependency_specs,
    get_package_name,
    get_package_version,
    get_table,
    get_workspace_dependency,
    get_workspace_excludes,
    get_workspace_member_globs,
    load_toml,
)


def normalize_path(path: str | Path, cwd: Path) -> Path:
    """Make path absolute against cwd and collapse ``.``/``..`` segments.

    Purely lexical: symlinks are not resolved and the path need not exist.
    """
    return Path(os.path.normpath(os.path.join(cwd, path)))


def find_lockfile_dir(cwd: Path) -> Path:
    """Return the nearest directory at or above cwd that holds Cargo.lock.

    Raises:
        LockFileMissing: If no ancestor has a lock file.
    """
    for directory in (cwd, *cwd.parents):
        if (directory / LOCKFILE_NAME).is_file():
            return directory
    raise LockFileMissing(cwd)


def discover_members(
    workspace_root: Path, manifest: tomlkit.TOMLDocument
) -> list[Package]:
    """Enumerate the workspace members declared by the root manifest.

    The root package (when the manifest has a [package] table) is a member,
    as is every directory matched by [workspace].members that contains a
    Cargo.toml and is not listed in [workspace].exclude. Path dependencies
    of any member are members too when they sit inside workspace_root and
    are not under an excluded directory; these are followed transitively.
    """
    member_dirs: list[Path] = []
    if get_table(manifest, "package") is not None:
        member_dirs.append(workspace_root)

    excluded = [
        normalize_path(p, workspace_root) for p in get_workspace_excludes(manifest)
    ]
    for pattern in get_workspace_member_globs(manifest):
        for match in sorted(glob.glob(str(workspace_root / pattern))):
            d = normalize_path(match, workspace_root)
            if d in excluded or d in member_dirs:
                continue
            if (d / MANIFEST_NAME).is_file():
                member_dirs.append(d)

    members: list[Package] = []
    queue = deque(member_dirs)
    while queue:
        d = queue.popleft()
        doc = manifest if d == workspace_root else load_toml(d / MANIFEST_NAME)
        name = get_package_name(doc, d.name)
        version = get_package_version(doc, manifest)
        members.append(
            Package(id=PackageId(name=name, version=version), name=name, root=d)
        )

        for dep_dir in _path_dependencies(doc, d, workspace_root, manifest):
            if dep_dir in member_dirs or not dep_dir.is_relative_to(workspace_root):
                continue
            if any(dep_dir.is_relative_to(ex) for ex in excluded):
                continue
            if (dep_dir / MANIFEST_NAME).is_file():
                member_dirs.append(dep_dir)
                queue.append(dep_dir)
    return members


def _path_dependencies(
    doc: tomlkit.TOMLDocument,
    crate_dir: Path,
    workspace_root: Path,
    manifest: tomlkit.TOMLDocument,
) -> list[Path]:
    dirs: list[Path] = []
    for key, spec in get_dependency_specs(doc):
        if "path" in spec:
            dirs.append(normalize_path(str(spec["path"]), crate_dir))
        elif spec.get("workspace"):
            # Inherited paths are relative to the workspace root
            inherited = get_workspace_dependency(manifest, key) or {}
            if "path" in inherited:
                dirs.append(normalize_path(str(inherited["path"]), workspace_root))
    return dirs


class WorkspaceIndex:
    """Resolves file paths to the workspace members that own them.

    A member owns every path equal to or below its root. Members may be
    nested, in which case a path is owned by every enclosing member.
    """

    def __init__(self, members: Iterable[Package], base_dir: Path) -> None:
        # Outermost first, so nested matches come back parent before child
        self._members = sorted(members, key=lambda p: (len(p.root.parts), str(p.root)))
        self.base_dir = base_dir

    def resolve(self, path: str | Path) -> list[Package]:
        """Return every member owning path, or an empty list if none does.

        Relative paths are taken relative to ``base_dir``.
        """
        target = normalize_path(path, self.base_dir)
        return [p for p in self._members if target.is_relative_to(p.root)]

    @property
    def members(self) -> list[Package]:
        return list(self._members)

    @property
    def member_names(self) -> set[str]:
        return {p.name for p in self._members}

    @property
    def member_ids(self) -> set[PackageId]:
        return {p.id for p in self._members}

    def __iter__(self) -> Iterator[Package]:
        return iter(self._members)

    def __len__(self) -> int:
        return len(self._members)


@dataclass(frozen=True)
class Workspace:
    """A loaded Cargo workspace: its root, parsed manifest and members."""

    root: Path
    manifest: tomlkit.TOMLDocument
    members: list[Package]

    @property
    def lockfile(self) -> Path:
        return self.root / LOCKFILE_NAME

    def index(self, base_dir: Path) -> WorkspaceIndex:
        return WorkspaceIndex(self.members, base_dir)


def load_workspace(workspace_root: Path) -> Workspace:
    """Parse the root manifest at workspace_root and discover its members."""
    manifest = load_toml(workspace_root / MANIFEST_NAME)
    return Workspace(
        root=workspace_root,
        manifest=manifest,
        members=discover_members(workspace_root, manifest),
    )
