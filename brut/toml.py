"""TOML reading utilities for Cargo manifests, lock files and brut.toml.

Uses tomlkit so the same parser handles every file brut reads. Values come
back as tomlkit containers, which behave like plain dicts and lists.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import tomlkit

MANIFEST_NAME = "Cargo.toml"
LOCKFILE_NAME = "Cargo.lock"


def load_toml(path: Path) -> tomlkit.TOMLDocument:
    """Load and parse a TOML file."""
    return tomlkit.parse(path.read_text())


def get_table(doc: Any, *keys: str) -> dict[str, Any] | None:
    """Walk nested tables, returning None if any step is missing or not a table.

    Example:
        get_table(doc, "workspace", "metadata", "brut")
    """
    node = doc
    for key in keys:
        if not isinstance(node, dict):
            return None
        node = node.get(key)
    return node if isinstance(node, dict) else None


def get_workspace_member_globs(doc: tomlkit.TOMLDocument) -> list[str]:
    """Extract member glob patterns from [workspace].members (e.g. "crates/*")."""
    workspace = get_table(doc, "workspace") or {}
    return [str(m) for m in workspace.get("members", [])]


def get_workspace_excludes(doc: tomlkit.TOMLDocument) -> list[str]:
    """Extract [workspace].exclude paths."""
    workspace = get_table(doc, "workspace") or {}
    return [str(m) for m in workspace.get("exclude", [])]


def get_package_name(doc: tomlkit.TOMLDocument, fallback: str) -> str:
    """Extract [package].name."""
    package = get_table(doc, "package") or {}
    return str(package.get("name", fallback))


def get_package_version(
    doc: tomlkit.TOMLDocument, workspace_doc: tomlkit.TOMLDocument | None = None
) -> str:
    """Extract [package].version, defaulting to '0.0.0' like cargo does.

    ``version.workspace = true`` is resolved from [workspace.package].version
    of ``workspace_doc``.
    """
    package = get_table(doc, "package") or {}
    version = package.get("version", "0.0.0")
    if isinstance(version, dict) and version.get("workspace"):
        inherited = get_table(workspace_doc, "workspace", "package") or {}
        version = inherited.get("version", "0.0.0")
    return str(version)


DEPENDENCY_KINDS = ("dependencies", "dev-dependencies", "build-dependencies")


def get_dependency_specs(
    doc: tomlkit.TOMLDocument,
) -> list[tuple[str, dict[str, Any]]]:
    """Collect every table-form dependency of a manifest as (key, table) pairs.

    Covers [dependencies], [dev-dependencies] and [build-dependencies], both
    top-level and under ``[target.<cfg>]``. Plain version strings are skipped
    since they can never carry a path.
    """
    scopes = [doc]
    targets = get_table(doc, "target") or {}
    scopes.extend(t for t in targets.values() if isinstance(t, dict))

    specs: list[tuple[str, dict[str, Any]]] = []
    for scope in scopes:
        for kind in DEPENDENCY_KINDS:
            table = get_table(scope, kind) or {}
            specs.extend(
                (key, spec) for key, spec in table.items() if isinstance(spec, dict)
            )
    return specs


def get_workspace_dependency(
    doc: tomlkit.TOMLDocument, name: str
) -> dict[str, Any] | None:
    """Look up an entry of [workspace.dependencies] by its key."""
    return get_table(doc, "workspace", "dependencies", name)
